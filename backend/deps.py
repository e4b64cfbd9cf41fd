"""
Shared FastAPI dependencies: DB-backed role guards built on AuthSession.
"""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from db_models import Order, User
from domain.enums import UserRole
from domain.errors import PermissionDeniedError
from middleware.auth import AuthSession, require_session
from services import user_service


async def current_user(
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
) -> User:
    """The registered user behind the access token."""
    user = await user_service.get_user_by_uid(db, uid=session.uid)
    if not user:
        raise PermissionDeniedError("No account registered for this login.")
    return user


async def require_business(user: User = Depends(current_user)) -> User:
    if user.role != UserRole.BUSINESS.value:
        raise PermissionDeniedError("Business account required for this endpoint.")
    return user


async def require_driver(user: User = Depends(current_user)) -> User:
    if user.role != UserRole.DELIVERY.value:
        raise PermissionDeniedError("Delivery account required for this endpoint.")
    return user


def ensure_self(session: AuthSession, uid: str) -> None:
    """Callers may only read their own per-user listings."""
    if session.uid != uid:
        raise PermissionDeniedError("You can only access your own records.")


def ensure_order_access(session: AuthSession, order: Order) -> None:
    """
    Parties to an order may see and update it. Drivers may also act on
    unassigned orders (that is how they accept them).
    """
    if session.uid in (order.customer_id, order.business_id, order.driver_id):
        return
    if session.role == UserRole.DELIVERY.value and order.driver_id is None:
        return
    raise PermissionDeniedError("You are not a party to this order.")


def driver_claim(session: AuthSession, order: Order, extra_fields: dict) -> dict:
    """
    Drivers may only put themselves on an order. An unassigned order a
    driver acts on becomes theirs.
    """
    if session.role != UserRole.DELIVERY.value:
        return extra_fields

    claimed = extra_fields.get("driver_id")
    if claimed is not None and claimed != session.uid:
        raise PermissionDeniedError("Drivers can only assign orders to themselves.")
    if order.driver_id is None:
        return {**extra_fields, "driver_id": session.uid}
    return extra_fields
