"""
User service — customer, business and driver accounts.
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db_models import User
from domain.constants import DEFAULT_BUSINESS_TYPE
from domain.enums import UserRole
from domain.errors import ConflictError, NotFoundError, ValidationError
from utils.timeutil import utcnow

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, *, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def get_user_by_uid(db: AsyncSession, *, uid: str) -> User | None:
    res = await db.execute(select(User).where(User.uid == uid))
    return res.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, *, username: str) -> User | None:
    res = await db.execute(select(User).where(User.username == username))
    return res.scalar_one_or_none()


async def create_user(db: AsyncSession, **fields) -> User:
    """
    Register a user. uid and username must be unique.

    Business accounts without a business_type default to restaurants.
    """
    uid = fields["uid"]
    username = fields.get("username")

    clauses = [User.uid == uid]
    if username:
        clauses.append(User.username == username)
    res = await db.execute(select(User).where(or_(*clauses)))
    existing = res.scalars().first()
    if existing:
        taken = "uid" if existing.uid == uid else "username"
        raise ConflictError(f"User with this {taken} already exists", details={"field": taken})

    if fields.get("role") == UserRole.BUSINESS.value and not fields.get("business_type"):
        fields["business_type"] = DEFAULT_BUSINESS_TYPE

    user = User(**fields)
    db.add(user)
    await db.flush()
    logger.info(f"User registered: uid={uid} role={user.role}")
    return user


async def update_user(db: AsyncSession, *, user: User, **changes) -> User:
    """Apply a partial update. None values are ignored."""
    username = changes.get("username")
    if username and username != user.username:
        other = await get_user_by_username(db, username=username)
        if other and other.id != user.id:
            raise ConflictError("Username already taken", details={"field": "username"})

    for name, value in changes.items():
        if value is not None:
            setattr(user, name, value)

    user.updated_at = utcnow()
    await db.flush()
    return user


async def list_businesses(db: AsyncSession, *, category: str | None = None) -> list[User]:
    query = select(User).where(User.role == UserRole.BUSINESS.value)
    if category:
        query = query.where(User.business_type == category)
    res = await db.execute(query.order_by(User.business_name))
    return list(res.scalars().all())


async def set_driver_online(db: AsyncSession, *, uid: str, is_online: bool) -> User:
    user = await get_user_by_uid(db, uid=uid)
    if not user:
        raise NotFoundError("User", uid)
    if user.role != UserRole.DELIVERY.value:
        raise ValidationError("Only delivery accounts have an online status", field="role")

    user.is_online = is_online
    user.updated_at = utcnow()
    await db.flush()
    return user


async def set_business_location(
    db: AsyncSession,
    *,
    uid: str,
    lat: float,
    lng: float,
    address: str | None = None,
) -> User:
    """Pin a business on the map. The address is replaced only when given."""
    user = await get_user_by_uid(db, uid=uid)
    if not user:
        raise NotFoundError("User", uid)
    if user.role != UserRole.BUSINESS.value:
        raise ValidationError("Only business accounts have a map location", field="role")

    user.business_lat = lat
    user.business_lng = lng
    if address:
        user.business_address = address
    user.updated_at = utcnow()
    await db.flush()
    logger.info(f"Business {uid} located at ({lat}, {lng})")
    return user
