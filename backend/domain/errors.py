"""
Domain exceptions raised by services and dependencies.

Each carries an HTTP status and a short machine-readable code; main.py turns
them into the standard error envelope.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found (404)."""
    code = "not_found"

    def __init__(self, resource_type: str, identifier, details: dict | None = None):
        super().__init__(
            f"{resource_type} not found: {identifier}",
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class ValidationError(DomainError):
    """Invalid input that passed schema validation (400)."""
    code = "validation_error"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class UnauthorizedError(DomainError):
    """Missing or invalid credentials (401)."""
    code = "unauthorized"

    def __init__(self, message: str = "Authentication required", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class PermissionDeniedError(DomainError):
    """Authenticated but not allowed (403)."""
    code = "permission_denied"

    def __init__(self, message: str = "Permission denied", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class ConflictError(DomainError):
    """Resource conflict (409)."""
    code = "conflict"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)


class RateLimitError(DomainError):
    """Too many requests (429)."""
    code = "rate_limited"

    def __init__(self, message: str = "Rate limit exceeded", details: dict | None = None, retry_after: int | None = None):
        super().__init__(message, status_code=status.HTTP_429_TOO_MANY_REQUESTS, details=details)
        if retry_after is not None:
            self.headers = {"Retry-After": str(retry_after)}


class PaymentProviderError(DomainError):
    """QPay/Stripe call failed or returned something unusable (502)."""
    code = "payment_provider_error"

    def __init__(self, provider: str, message: str, details: dict | None = None):
        super().__init__(
            f"{provider} error: {message}",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"provider": provider, **(details or {})},
        )
        self.provider = provider
