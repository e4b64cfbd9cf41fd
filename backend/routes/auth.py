"""
Auth endpoints — exchange an identity-provider login for an API token.

Flow:
  1) Client signs in with Firebase Auth and gets an ID token
  2) POST /auth/session {idToken} -> verifies it, returns an access token
  3) Client sends Authorization: Bearer <accessToken> on later calls
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from domain.responses import success_response
from middleware.rate_limit import rate_limit
from models import SessionRequest, SessionResponse
from services import identity_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/session")
async def open_session(
    request: SessionRequest,
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=30, window_seconds=60)),
):
    user, token = await identity_service.open_session(db, id_token=request.id_token, uid=request.uid)
    return success_response(
        data=SessionResponse(
            uid=user.uid,
            role=user.role,
            access_token=token,
            expires_in_seconds=settings.jwt_access_ttl_minutes * 60,
        ).to_api()
    )
