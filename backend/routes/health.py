"""
Health check and public client configuration.
"""
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from domain.responses import success_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(db: AsyncSession = Depends(get_db)):
    """Health check — verifies database connectivity."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "database_connected": False,
                "error": "database unavailable",
            },
        )
    return {
        "status": "healthy",
        "database_connected": True,
        "environment": settings.environment,
        "simulation_mode": settings.simulation_mode,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/api/config")
async def public_config():
    """Browser-safe keys and defaults the web client needs at startup."""
    return success_response(
        data={
            "googleMapsApiKey": settings.google_maps_api_key,
            "stripePublishableKey": settings.stripe_publishable_key,
            "currency": settings.default_currency,
            "defaultDeliveryFee": settings.default_delivery_fee,
            "simulationMode": settings.simulation_mode,
        }
    )
