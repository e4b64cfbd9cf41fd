"""
Order service — checkout, order queries and status changes.

Status changes go through domain.order_policy; this module only loads the
row, applies the planned fields, and flushes. There is no locking: two
concurrent updates to one order both succeed and the last write wins.
"""

import logging
import secrets

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Order, OrderItem, Product, User
from domain.constants import (
    AVAILABLE_PREPARED_STATUSES,
    AVAILABLE_SHOPPED_STATUSES,
    DEFAULT_BUSINESS_TYPE,
    DEFAULT_REQUESTED_TIME,
    ORDER_NUMBER_PREFIX,
)
from domain.enums import BusinessType, OrderStatus, ProductStatus, UserRole
from domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from domain.order_policy import plan_status_update
from utils.timeutil import utcnow

logger = logging.getLogger(__name__)


def generate_order_number() -> str:
    return f"{ORDER_NUMBER_PREFIX}-{utcnow():%y%m%d}-{secrets.token_hex(3).upper()}"


async def _load_business(db: AsyncSession, business_uid: str) -> User:
    res = await db.execute(select(User).where(User.uid == business_uid))
    business = res.scalar_one_or_none()
    if not business or business.role != UserRole.BUSINESS.value:
        raise NotFoundError("Business", business_uid)
    return business


async def price_items(db: AsyncSession, *, business_uid: str, items: list[dict]) -> tuple[float, list[dict]]:
    """
    Price cart lines from the catalog.

    items: [{product_id:int, quantity:int, notes:str|None}]
    Returns (subtotal, lines) where each line carries the unit price.
    """
    if not items:
        raise ValidationError("Cart is empty", field="items")

    product_ids = [int(i["product_id"]) for i in items]
    res = await db.execute(
        select(Product).where(Product.business_id == business_uid, Product.id.in_(product_ids))
    )
    products = {p.id: p for p in res.scalars().all()}

    subtotal = 0.0
    lines: list[dict] = []
    for i in items:
        pid = int(i["product_id"])
        qty = int(i.get("quantity", 1))
        if qty <= 0:
            raise ValidationError("Quantity must be positive", field="quantity")
        p = products.get(pid)
        if not p or p.status != ProductStatus.ACTIVE.value:
            raise ValidationError(f"Product {pid} not available", field="items")

        subtotal += p.price * qty
        lines.append({"product_id": pid, "quantity": qty, "price": p.price, "notes": i.get("notes")})

    return round(subtotal, 2), lines


async def create_order(
    db: AsyncSession,
    *,
    customer_uid: str,
    business_uid: str,
    items: list[dict],
    delivery_address: str,
    delivery_fee: float | None = None,
    driver_tip: float = 0.0,
    customer_name: str | None = None,
    customer_phone: str | None = None,
    pickup_address: str | None = None,
    requested_time: str = DEFAULT_REQUESTED_TIME,
    payment_method: str = "cash",
) -> Order:
    """
    Place a new order.

    The business's type decides the fulfillment flow once, here:
    restaurants prepare orders themselves, everyone else is shopped by a driver.
    """
    business = await _load_business(db, business_uid)
    business_type = business.business_type or DEFAULT_BUSINESS_TYPE
    needs_preparation = business_type == BusinessType.RESTAURANT.value

    subtotal, lines = await price_items(db, business_uid=business_uid, items=items)
    if delivery_fee is None:
        delivery_fee = settings.default_delivery_fee

    order = Order(
        order_number=generate_order_number(),
        customer_id=customer_uid,
        business_id=business_uid,
        business_type=business_type,
        needs_preparation=needs_preparation,
        status=OrderStatus.NEW.value,
        subtotal=subtotal,
        delivery_fee=delivery_fee,
        driver_tip=driver_tip,
        total=round(subtotal + delivery_fee + driver_tip, 2),
        payment_method=payment_method,
        customer_name=customer_name,
        customer_phone=customer_phone,
        delivery_address=delivery_address,
        pickup_address=pickup_address or business.business_address,
        requested_time=requested_time,
        created_at=utcnow(),
        updated_at=utcnow(),
    )
    db.add(order)
    await db.flush()

    for line in lines:
        db.add(OrderItem(order_id=order.id, **line))
    await db.flush()

    logger.info(
        f"Order {order.order_number} created: customer={customer_uid} business={business_uid} "
        f"type={business_type} total={order.total}"
    )
    return order


async def get_order(db: AsyncSession, *, order_id: int) -> Order:
    order = await db.get(Order, order_id)
    if not order:
        raise NotFoundError("Order", order_id)
    return order


async def get_payable_order(
    db: AsyncSession,
    *,
    order_id: int,
    customer_uid: str,
    amount: float | None = None,
) -> Order:
    """
    Load the order a payment is for. Only its customer may pay for it, and
    when `amount` is given it must match the order total.
    """
    order = await get_order(db, order_id=order_id)
    if order.customer_id != customer_uid:
        raise PermissionDeniedError("You can only pay for your own orders.")
    if amount is not None and round(amount, 2) != round(order.total, 2):
        raise ValidationError(
            f"amount {amount} does not match order total {order.total}",
            field="amount",
            details={"orderTotal": order.total},
        )
    return order


async def list_order_items(db: AsyncSession, *, order_id: int) -> list[OrderItem]:
    res = await db.execute(
        select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id)
    )
    return list(res.scalars().all())


async def get_order_with_items(db: AsyncSession, *, order_id: int) -> tuple[Order, list[OrderItem]]:
    order = await get_order(db, order_id=order_id)
    items = await list_order_items(db, order_id=order_id)
    return order, items


async def _list_where(db: AsyncSession, *conditions) -> list[Order]:
    res = await db.execute(
        select(Order).where(*conditions).order_by(Order.created_at.desc(), Order.id.desc())
    )
    return list(res.scalars().all())


async def list_customer_orders(db: AsyncSession, *, customer_uid: str) -> list[Order]:
    return await _list_where(db, Order.customer_id == customer_uid)


async def list_business_orders(db: AsyncSession, *, business_uid: str) -> list[Order]:
    return await _list_where(db, Order.business_id == business_uid)


async def list_driver_orders(db: AsyncSession, *, driver_uid: str) -> list[Order]:
    return await _list_where(db, Order.driver_id == driver_uid)


async def list_available_orders(db: AsyncSession) -> list[Order]:
    """
    Unassigned orders a driver can take.

    Prepared orders become available once the business marks them ready;
    shopped orders are available from the start.
    """
    prepared = or_(
        Order.needs_preparation.is_(True),
        and_(Order.needs_preparation.is_(None), Order.business_type == BusinessType.RESTAURANT.value),
    )
    shopped = or_(
        Order.needs_preparation.is_(False),
        and_(Order.needs_preparation.is_(None), Order.business_type != BusinessType.RESTAURANT.value),
    )
    return await _list_where(
        db,
        Order.driver_id.is_(None),
        or_(
            and_(prepared, Order.status.in_(AVAILABLE_PREPARED_STATUSES)),
            and_(shopped, Order.status.in_(AVAILABLE_SHOPPED_STATUSES)),
        ),
    )


async def update_order_status(
    db: AsyncSession,
    *,
    order_id: int,
    status: str,
    extra_fields: dict | None = None,
) -> Order:
    """
    Apply a requested status change.

    The stored status may differ from the requested one (see
    domain.order_policy). Extra fields such as driver_id are merged in.
    """
    order = await get_order(db, order_id=order_id)
    update = plan_status_update(order, status, extra_fields)

    previous = order.status
    for name, value in update.fields.items():
        setattr(order, name, value)
    await db.flush()

    logger.info(
        f"Order {order.order_number}: {previous} -> {update.status}"
        + (f" (requested {status})" if update.status != status else "")
    )
    return order
