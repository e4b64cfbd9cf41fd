"""
In-memory rate limiting for payment and session endpoints.

Sliding window per caller and route: the authenticated uid when a valid
bearer token is present, otherwise the client IP. Buckets are keyed on the
route template (/api/check-payment/{invoice_id}), not the concrete URL.
State lives in the process, so limits are per worker.
"""
import time
import logging
from collections import deque
from typing import Deque, Dict, Optional

from fastapi import Header, Request

from domain.errors import RateLimitError, UnauthorizedError
from middleware.auth import parse_bearer_token, decode_access_token

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window counter keyed by arbitrary strings."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = {}

    def _prune(self, key: str, window_seconds: float) -> Deque[float]:
        """Drop hits older than the window; empty buckets are forgotten."""
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        cutoff = self._clock() - window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def allow(self, key: str, max_requests: int, window_seconds: float) -> bool:
        """Record a hit and report whether it fits in the window."""
        hits = self._prune(key, window_seconds)
        if len(hits) >= max_requests:
            return False
        hits.append(self._clock())
        self._hits[key] = hits
        return True

    def remaining(self, key: str, max_requests: int, window_seconds: float) -> int:
        return max(0, max_requests - len(self._prune(key, window_seconds)))

    def tracked_keys(self) -> int:
        return len(self._hits)

    def reset(self) -> None:
        self._hits.clear()


limiter = RateLimiter()


def _caller(request: Request, authorization: Optional[str]) -> str:
    """uid for a valid token; expired or bad tokens count against the client IP."""
    token = parse_bearer_token(authorization)
    if token:
        try:
            return decode_access_token(token).uid
        except UnauthorizedError:
            logger.debug(f"Rate limit: unusable bearer token on {request.url.path}, keying on IP")
    return request.client.host if request.client else "unknown"


def _route_path(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or request.url.path


def rate_limit(max_requests: int = 10, window_seconds: int = 60):
    """
    Dependency factory.

    Usage:
        @router.post("/create-qpay-payment")
        async def create(..., _rate=Depends(rate_limit(10, 60))):

    Authentication is left to the endpoint's own dependencies, so a stale
    token never blocks e.g. POST /auth/session here.
    """
    async def _check(
        request: Request,
        authorization: Optional[str] = Header(None, alias="Authorization"),
    ) -> None:
        caller = _caller(request, authorization)
        path = _route_path(request)
        key = f"{caller}:{path}"

        if not limiter.allow(key, max_requests, window_seconds):
            logger.warning(
                f"Rate limit exceeded: {caller} on {path} "
                f"({max_requests}/{window_seconds}s)"
            )
            raise RateLimitError(
                f"Maximum {max_requests} requests per {window_seconds} seconds. Try again later.",
                details={"limit": max_requests, "windowSeconds": window_seconds},
                retry_after=window_seconds,
            )

    return _check
