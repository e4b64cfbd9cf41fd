"""
Configuration management for the GobiGo delivery API.

Loads settings from .env via pydantic-settings.

Notes:
    - SIMULATION_MODE skips live QPay/Stripe calls and enables dev login
    - validate_production_settings() enforces strict CORS in production
"""
import logging

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ── Database ────────────────────────────────────────────────────
    database_url: str = "sqlite:///./data/gobigo.db"

    # ── Application ─────────────────────────────────────────────────
    environment: str = "development"
    simulation_mode: bool = True  # fake payment providers + dev login

    # ── Auth (JWT) ──────────────────────────────────────────────────
    jwt_secret: str = ""
    jwt_issuer: str = "gobigo-api"
    jwt_access_ttl_minutes: int = 60

    # ── Firebase (ID token verification) ────────────────────────────
    firebase_project_id: str = ""
    firebase_jwks_url: str = (
        "https://www.googleapis.com/service_accounts/v1/jwk/"
        "securetoken@system.gserviceaccount.com"
    )

    # ── QPay ────────────────────────────────────────────────────────
    qpay_base_url: str = "https://merchant.qpay.mn"
    qpay_username: str = ""
    qpay_password: str = ""
    qpay_invoice_code: str = ""
    qpay_callback_url: str = "http://localhost:8000/api/qpay/callback"

    # ── Stripe ──────────────────────────────────────────────────────
    stripe_api_base: str = "https://api.stripe.com"
    stripe_secret_key: str = ""
    stripe_publishable_key: str = ""

    # ── Maps ────────────────────────────────────────────────────────
    google_maps_api_key: str = ""

    # ── Orders ──────────────────────────────────────────────────────
    default_currency: str = "MNT"
    default_delivery_fee: float = 3000.0

    # ── CORS ────────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:5000,http://127.0.0.1:5000,http://localhost:5173,http://127.0.0.1:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def firebase_issuer(self) -> str:
        return f"https://securetoken.google.com/{self.firebase_project_id}"

    def validate_production_settings(self):
        """
        Validate settings for production safety.

        Called during app startup. Production refuses wildcard CORS,
        simulated payments, and a missing JWT secret.
        """
        if self.environment == "production":
            if "*" in self.cors_origins:
                raise ValueError(
                    "CORS_ORIGINS must not contain '*' in production. "
                    "Set explicit allowed origins."
                )
            if self.simulation_mode:
                raise ValueError(
                    "SIMULATION_MODE must be false in production. "
                    "Simulation accepts dev logins and fakes payments."
                )
            if not self.jwt_secret:
                raise ValueError(
                    "JWT_SECRET must be set in production. "
                    "It is used to sign API access tokens."
                )
            if not self.firebase_project_id:
                raise ValueError(
                    "FIREBASE_PROJECT_ID must be set in production "
                    "to verify identity tokens."
                )
            logger.info("Production settings validated")
        else:
            warnings = []
            if self.simulation_mode:
                warnings.append("SIMULATION_MODE=true (payments faked, dev login enabled)")
            if "*" in self.cors_origins:
                warnings.append("CORS_ORIGINS contains '*' (open access)")
            for w in warnings:
                logger.warning(w)


# Global settings instance
settings = Settings()
