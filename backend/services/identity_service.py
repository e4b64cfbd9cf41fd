"""
Identity service — turns an identity-provider login into an API session.

Firebase ID tokens are RS256 JWTs. Signing keys are published as a JWKS by
Google; audience is the Firebase project id and the issuer is
https://securetoken.google.com/<project-id>.

In SIMULATION_MODE a bare uid is accepted so local clients can log in
without a Firebase project.
"""
import logging

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import User
from domain.errors import NotFoundError, UnauthorizedError, ValidationError
from middleware.auth import issue_access_token
from services import user_service
from services.async_executor import run_blocking

logger = logging.getLogger(__name__)

_jwk_client: jwt.PyJWKClient | None = None


def _get_jwk_client() -> jwt.PyJWKClient:
    global _jwk_client
    if _jwk_client is None:
        _jwk_client = jwt.PyJWKClient(settings.firebase_jwks_url, cache_keys=True)
    return _jwk_client


def _decode_id_token(id_token: str) -> dict:
    signing_key = _get_jwk_client().get_signing_key_from_jwt(id_token)
    return jwt.decode(
        id_token,
        signing_key.key,
        algorithms=["RS256"],
        audience=settings.firebase_project_id,
        issuer=settings.firebase_issuer,
        options={"require": ["exp", "iat", "aud", "iss", "sub"]},
    )


async def verify_id_token(id_token: str) -> str:
    """Verify a Firebase ID token and return its uid."""
    if not settings.firebase_project_id:
        raise UnauthorizedError("Identity token login is not configured on this server.")

    try:
        claims = await run_blocking(_decode_id_token, id_token)
    except jwt.PyJWKClientError as e:
        logger.error(f"Could not fetch identity provider signing keys: {e}")
        raise UnauthorizedError("Could not verify identity token. Try again.")
    except jwt.InvalidTokenError as e:
        logger.info(f"Rejected identity token: {e}")
        raise UnauthorizedError("Invalid identity token.")

    return claims.get("user_id") or claims["sub"]


async def open_session(
    db: AsyncSession,
    *,
    id_token: str | None = None,
    uid: str | None = None,
) -> tuple[User, str]:
    """
    Resolve the caller's user row and issue an API access token.

    The user must already be registered via POST /api/users.
    """
    if id_token:
        uid = await verify_id_token(id_token)
    elif uid:
        if not settings.simulation_mode:
            raise UnauthorizedError("Dev login is disabled. Provide idToken.")
        logger.info(f"SIMULATION MODE: dev login for uid={uid}")
    else:
        raise ValidationError("Provide idToken (or uid in simulation mode).")

    user = await user_service.get_user_by_uid(db, uid=uid)
    if not user:
        raise NotFoundError("User", uid)

    return user, issue_access_token(uid=user.uid, role=user.role)
