"""
Product service — business catalog CRUD.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import Order, OrderItem, Product
from domain.constants import TERMINAL_ORDER_STATUSES
from domain.enums import ProductStatus
from domain.errors import ConflictError, NotFoundError, PermissionDeniedError
from utils.timeutil import utcnow


async def create_product(
    db: AsyncSession,
    *,
    business_id: str,
    name: str,
    price: float,
    description: str | None = None,
    category: str | None = None,
    image_url: str | None = None,
    status: str = "active",
) -> Product:
    product = Product(
        business_id=business_id,
        name=name,
        description=description,
        price=price,
        category=category,
        image_url=image_url,
        status=status,
    )
    db.add(product)
    await db.flush()
    return product


async def get_product(db: AsyncSession, *, product_id: int) -> Product | None:
    return await db.get(Product, product_id)


async def get_owned_product(db: AsyncSession, *, product_id: int, business_id: str) -> Product:
    """Fetch a product and make sure `business_id` owns it."""
    product = await get_product(db, product_id=product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    if product.business_id != business_id:
        raise PermissionDeniedError("Product belongs to another business.")
    return product


async def list_business_products(
    db: AsyncSession,
    *,
    business_id: str,
    include_hidden: bool = True,
) -> list[Product]:
    query = select(Product).where(Product.business_id == business_id)
    if not include_hidden:
        query = query.where(Product.status != ProductStatus.HIDDEN.value)
    res = await db.execute(query.order_by(Product.created_at.desc(), Product.id.desc()))
    return list(res.scalars().all())


async def update_product(
    db: AsyncSession,
    *,
    product_id: int,
    business_id: str,
    **changes,
) -> Product:
    """Update a product's fields. Only provided (non-None) fields are updated."""
    product = await get_owned_product(db, product_id=product_id, business_id=business_id)

    for name, value in changes.items():
        if value is not None:
            setattr(product, name, value)

    product.updated_at = utcnow()
    await db.flush()
    return product


async def delete_product(db: AsyncSession, *, product_id: int, business_id: str) -> str:
    """
    Remove a product.

    Open orders block deletion (409). Products that only appear on finished
    orders are hidden rather than deleted so order history keeps its rows.
    Returns "deleted" or "hidden".
    """
    product = await get_owned_product(db, product_id=product_id, business_id=business_id)

    res = await db.execute(
        select(Order.id, Order.status)
        .join(OrderItem, OrderItem.order_id == Order.id)
        .where(OrderItem.product_id == product_id)
    )
    rows = res.all()
    open_order_ids = sorted({oid for oid, status in rows if status not in TERMINAL_ORDER_STATUSES})
    if open_order_ids:
        raise ConflictError(
            f"Cannot delete product {product.name}: {len(open_order_ids)} open order(s) reference it",
            details={"orderIds": open_order_ids},
        )

    if rows:
        product.status = ProductStatus.HIDDEN.value
        product.updated_at = utcnow()
        await db.flush()
        return "hidden"

    await db.delete(product)
    await db.flush()
    return "deleted"
