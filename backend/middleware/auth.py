"""
Access tokens and the per-request session.

Flow:
  1) The web client signs in with the identity provider (Firebase Auth).
  2) POST /auth/session exchanges its ID token for a short-lived API token.
  3) Protected endpoints read `Authorization: Bearer <token>` and receive an
     AuthSession(uid, role) through FastAPI dependency injection.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Optional

import jwt
from fastapi import Header

from config import settings
from domain.errors import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthSession:
    """Who is calling. Built per request from the access token."""
    uid: str
    role: str


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _signing_secret() -> str:
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is not configured")
    return settings.jwt_secret


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def issue_access_token(*, uid: str, role: str) -> str:
    now = _now_utc().replace(microsecond=0)
    payload = {
        "iss": settings.jwt_issuer,
        "sub": uid,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_access_ttl_minutes)).timestamp()),
    }
    return jwt.encode(payload, _signing_secret(), algorithm="HS256")


def decode_access_token(token: str) -> AuthSession:
    try:
        payload = jwt.decode(
            token,
            _signing_secret(),
            algorithms=["HS256"],
            issuer=settings.jwt_issuer,
            options={"require": ["exp", "iat", "iss", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Access token expired.")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid access token.")
    return AuthSession(uid=payload["sub"], role=payload.get("role", "customer"))


async def require_session(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> AuthSession:
    token = parse_bearer_token(authorization)
    if not token:
        raise UnauthorizedError("Authentication required. Provide Authorization: Bearer <token>.")
    return decode_access_token(token)
