"""
User endpoints — registration, profile updates, business directory and map pins, driver availability.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from deps import ensure_self, require_business, require_driver
from domain.errors import NotFoundError, PermissionDeniedError
from domain.responses import list_response, success_response
from middleware.auth import AuthSession, require_session
from models import (
    BusinessLocationRequest,
    OnlineStatusRequest,
    UserCreateRequest,
    UserResponse,
    UserUpdateRequest,
)
from services import user_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["users"])


@router.get("/users/uid/{uid}")
async def get_user_by_uid(uid: str, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user_by_uid(db, uid=uid)
    if not user:
        raise NotFoundError("User", uid)
    return success_response(data=UserResponse.model_validate(user).to_api())


@router.get("/users/{user_id}")
async def get_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, user_id=user_id)
    if not user:
        raise NotFoundError("User", user_id)
    return success_response(data=UserResponse.model_validate(user).to_api())


@router.post("/users", status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Register the profile for an identity-provider account.

    Called by the web client right after sign-up, before any API session
    exists, so it is unauthenticated.
    """
    user = await user_service.create_user(db, **request.model_dump(mode="json"))
    await db.commit()
    await db.refresh(user)
    return success_response(data=UserResponse.model_validate(user).to_api())


@router.patch("/users/{user_id}")
async def update_user(
    user_id: int,
    request: UserUpdateRequest,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user(db, user_id=user_id)
    if not user:
        raise NotFoundError("User", user_id)
    ensure_self(session, user.uid)

    user = await user_service.update_user(db, user=user, **request.model_dump(mode="json", exclude_unset=True))
    await db.commit()
    await db.refresh(user)
    return success_response(data=UserResponse.model_validate(user).to_api())


@router.patch("/users/uid/{uid}/online")
async def set_online(
    uid: str,
    request: OnlineStatusRequest,
    driver=Depends(require_driver),
    db: AsyncSession = Depends(get_db),
):
    if driver.uid != uid:
        raise PermissionDeniedError("Drivers can only change their own availability.")

    user = await user_service.set_driver_online(db, uid=uid, is_online=request.is_online)
    await db.commit()
    return success_response(data={"uid": user.uid, "isOnline": user.is_online})


@router.patch("/users/uid/{uid}/location")
async def set_location(
    uid: str,
    request: BusinessLocationRequest,
    business=Depends(require_business),
    db: AsyncSession = Depends(get_db),
):
    """Where the business shows up on the customer map."""
    if business.uid != uid:
        raise PermissionDeniedError("Businesses can only move their own pin.")

    user = await user_service.set_business_location(
        db, uid=uid, lat=request.lat, lng=request.lng, address=request.address
    )
    await db.commit()
    await db.refresh(user)
    return success_response(data=UserResponse.model_validate(user).to_api())


@router.get("/businesses")
async def list_businesses(
    category: str | None = Query(None, description="restaurant | grocery | pharmacy | other"),
    db: AsyncSession = Depends(get_db),
):
    businesses = await user_service.list_businesses(db, category=category)
    return list_response([UserResponse.model_validate(b).to_api() for b in businesses])
