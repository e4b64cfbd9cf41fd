"""
Order endpoints — checkout, dashboards (customer/business/driver), status changes.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import current_user, driver_claim, ensure_order_access, ensure_self, require_driver
from domain.responses import list_response, success_response
from middleware.auth import AuthSession, require_session
from models import (
    OrderCreateRequest,
    OrderItemResponse,
    OrderResponse,
    OrderStatusUpdateRequest,
    OrderWithItemsResponse,
)
from services import order_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


def _orders(orders) -> dict:
    return list_response([OrderResponse.model_validate(o).to_api() for o in orders])


# Declared before /{order_id} so "available" is not parsed as an id
@router.get("/available")
async def list_available_orders(
    _driver=Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    return _orders(await order_service.list_available_orders(db))


@router.get("/customer/{customer_uid}")
async def list_customer_orders(
    customer_uid: str,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    ensure_self(session, customer_uid)
    return _orders(await order_service.list_customer_orders(db, customer_uid=customer_uid))


@router.get("/business/{business_uid}")
async def list_business_orders(
    business_uid: str,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    ensure_self(session, business_uid)
    return _orders(await order_service.list_business_orders(db, business_uid=business_uid))


@router.get("/driver/{driver_uid}")
async def list_driver_orders(
    driver_uid: str,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    ensure_self(session, driver_uid)
    return _orders(await order_service.list_driver_orders(db, driver_uid=driver_uid))


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    order, items = await order_service.get_order_with_items(db, order_id=order_id)
    ensure_order_access(session, order)
    return success_response(
        data=OrderWithItemsResponse(
            order=OrderResponse.model_validate(order),
            items=[OrderItemResponse.model_validate(i) for i in items],
        ).to_api()
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreateRequest,
    customer=Depends(current_user),
    db: AsyncSession = Depends(get_db),
):
    order = await order_service.create_order(
        db,
        customer_uid=customer.uid,
        business_uid=request.business_id,
        items=[i.model_dump() for i in request.items],
        delivery_address=request.delivery_address,
        delivery_fee=request.delivery_fee,
        driver_tip=request.driver_tip,
        customer_name=request.customer_name or customer.name,
        customer_phone=request.customer_phone,
        pickup_address=request.pickup_address,
        requested_time=request.requested_time,
        payment_method=request.payment_method.value,
    )
    await db.commit()
    await db.refresh(order)
    items = await order_service.list_order_items(db, order_id=order.id)

    return success_response(
        data=OrderWithItemsResponse(
            order=OrderResponse.model_validate(order),
            items=[OrderItemResponse.model_validate(i) for i in items],
        ).to_api()
    )


@router.patch("/{order_id}/status")
async def update_order_status(
    order_id: int,
    request: OrderStatusUpdateRequest,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    """
    Request a status change. The stored status can differ from the request:
    grocery/pharmacy orders become "shopping" when a driver accepts and
    "items_collected" when ready; restaurant orders become "ready_for_pickup".
    """
    order = await order_service.get_order(db, order_id=order_id)
    ensure_order_access(session, order)

    order = await order_service.update_order_status(
        db,
        order_id=order_id,
        status=request.status,
        extra_fields=driver_claim(session, order, request.extra_fields()),
    )
    await db.commit()
    await db.refresh(order)
    return success_response(data=OrderResponse.model_validate(order).to_api())
