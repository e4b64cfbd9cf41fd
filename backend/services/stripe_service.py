"""
Stripe Service — server side of the card payment form.

The browser renders Stripe Elements and needs a PaymentIntent client secret.
We create the intent over Stripe's REST API (form-encoded, secret key as
bearer) and hand back the secret. Card confirmation happens in the browser.
"""
import logging
import uuid

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Payment
from domain.enums import PaymentProvider, PaymentStatus
from domain.errors import PaymentProviderError

logger = logging.getLogger(__name__)

PROVIDER = "Stripe"

# Currencies Stripe takes in whole units rather than cents
ZERO_DECIMAL_CURRENCIES = frozenset({
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
})


def to_minor_units(amount: float, currency: str) -> int:
    if currency.lower() in ZERO_DECIMAL_CURRENCIES:
        return int(round(amount))
    return int(round(amount * 100))


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=settings.stripe_api_base, timeout=15.0)


async def create_payment_intent(
    db: AsyncSession,
    *,
    amount: float,
    order_id: int | None = None,
    currency: str | None = None,
) -> tuple[Payment, str]:
    """
    Create a PaymentIntent and record it as a PENDING payment.

    Returns (payment, client_secret). The secret is not stored.
    """
    currency = (currency or settings.default_currency).lower()
    minor = to_minor_units(amount, currency)

    if settings.simulation_mode:
        intent_id = f"pi_sim_{uuid.uuid4().hex[:16]}"
        client_secret = f"{intent_id}_secret_{uuid.uuid4().hex[:12]}"
        logger.info(f"SIMULATION MODE: Stripe intent {intent_id} for {minor} {currency}")
    else:
        if not settings.stripe_secret_key:
            raise PaymentProviderError(PROVIDER, "secret key is not configured")

        form = {
            "amount": str(minor),
            "currency": currency,
            "automatic_payment_methods[enabled]": "true",
        }
        if order_id is not None:
            form["metadata[order_id]"] = str(order_id)

        try:
            async with _client() as client:
                response = await client.post(
                    "/v1/payment_intents",
                    data=form,
                    headers={"Authorization": f"Bearer {settings.stripe_secret_key}"},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            try:
                message = e.response.json().get("error", {}).get("message", "request failed")
            except ValueError:
                message = "request failed"
            logger.error(f"Stripe payment_intents returned {e.response.status_code}: {message}")
            raise PaymentProviderError(PROVIDER, message, details={"status": e.response.status_code})
        except httpx.RequestError as e:
            logger.error(f"Stripe unreachable: {e}")
            raise PaymentProviderError(PROVIDER, "service unreachable")

        intent_id = data.get("id")
        client_secret = data.get("client_secret")
        if not intent_id or not client_secret:
            raise PaymentProviderError(PROVIDER, "payment intent response was incomplete")
        logger.info(f"Stripe intent {intent_id} created for {minor} {currency} (order={order_id})")

    payment = Payment(
        provider=PaymentProvider.STRIPE.value,
        invoice_id=intent_id,
        order_id=order_id,
        amount=amount,
        currency=currency.upper(),
        status=PaymentStatus.PENDING.value,
    )
    db.add(payment)
    await db.flush()
    return payment, client_secret
