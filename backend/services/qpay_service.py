"""
QPay Service — invoice-based QR payments (Mongolian banks).

Merchant API v2:
    POST /v2/auth/token       basic auth -> bearer token (cached until expiry)
    POST /v2/invoice          create invoice -> qr_image, qr_text, bank deep links
    POST /v2/payment/check    list payments made against an invoice

The client polls /api/check-payment/{invoice_id}; re-checking is a manual
customer action, there is no background polling or retry here.

In SIMULATION_MODE no network calls are made: invoices get a SIM- id and the
first check reports them paid.
"""
import json
import logging
import time
import uuid

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db_models import Payment
from domain.enums import PaymentProvider, PaymentStatus
from domain.errors import NotFoundError, PaymentProviderError
from utils.timeutil import utcnow

logger = logging.getLogger(__name__)

PROVIDER = "QPay"

# Refresh the token this many seconds before QPay says it expires
_TOKEN_SKEW_SECONDS = 30

_token_cache: dict = {"access_token": None, "expires_at": 0.0}

SIMULATED_BANKS = [
    {"name": "Khan bank", "description": "Хаан банк", "logo": None, "link": "khanbank://q?qPay_QRcode={qr}"},
    {"name": "Golomt bank", "description": "Голомт банк", "logo": None, "link": "golomtbank://q?qPay_QRcode={qr}"},
    {"name": "TDB online", "description": "Худалдаа хөгжлийн банк", "logo": None, "link": "tdbbank://q?qPay_QRcode={qr}"},
]


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=settings.qpay_base_url, timeout=15.0)


def reset_token_cache() -> None:
    _token_cache["access_token"] = None
    _token_cache["expires_at"] = 0.0


async def _post(client: httpx.AsyncClient, path: str, **kwargs) -> dict:
    try:
        response = await client.post(path, **kwargs)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPStatusError as e:
        logger.error(f"QPay {path} returned {e.response.status_code}: {e.response.text[:200]}")
        raise PaymentProviderError(PROVIDER, f"{path} failed", details={"status": e.response.status_code})
    except httpx.RequestError as e:
        logger.error(f"QPay {path} unreachable: {e}")
        raise PaymentProviderError(PROVIDER, "service unreachable")


async def _access_token(client: httpx.AsyncClient) -> str:
    if _token_cache["access_token"] and time.time() < _token_cache["expires_at"]:
        return _token_cache["access_token"]

    if not settings.qpay_username or not settings.qpay_password:
        raise PaymentProviderError(PROVIDER, "merchant credentials are not configured")

    data = await _post(client, "/v2/auth/token", auth=(settings.qpay_username, settings.qpay_password))
    token = data.get("access_token")
    if not token:
        raise PaymentProviderError(PROVIDER, "auth response had no access_token")

    # expires_in is an absolute unix timestamp in QPay's v2 responses
    expires_at = float(data.get("expires_in") or 0)
    if expires_at < 10**9:
        expires_at = time.time() + expires_at
    _token_cache["access_token"] = token
    _token_cache["expires_at"] = expires_at - _TOKEN_SKEW_SECONDS
    return token


async def create_invoice(
    db: AsyncSession,
    *,
    amount: float,
    order_id: int | None = None,
    customer_email: str | None = None,
    customer_name: str | None = None,
    description: str | None = None,
) -> Payment:
    """
    Create a QPay invoice and record it as a PENDING payment.

    Returns the Payment row; deep_links holds the JSON list of bank links.
    """
    sender_invoice_no = f"order-{order_id}" if order_id else f"gobigo-{uuid.uuid4().hex[:10]}"
    description = description or (f"GobiGo order #{order_id}" if order_id else "GobiGo payment")

    if settings.simulation_mode:
        invoice_id = f"SIM-{uuid.uuid4().hex[:12]}"
        qr_text = f"qpay-sim://{invoice_id}?amount={amount}"
        data = {
            "invoice_id": invoice_id,
            "qr_text": qr_text,
            "qr_image": None,
            "urls": [dict(b, link=b["link"].format(qr=invoice_id)) for b in SIMULATED_BANKS],
        }
        logger.info(f"SIMULATION MODE: QPay invoice {invoice_id} for {amount} {settings.default_currency}")
    else:
        async with _client() as client:
            token = await _access_token(client)
            data = await _post(
                client,
                "/v2/invoice",
                headers={"Authorization": f"Bearer {token}"},
                json={
                    "invoice_code": settings.qpay_invoice_code,
                    "sender_invoice_no": sender_invoice_no,
                    "invoice_receiver_code": customer_email or "terminal",
                    "invoice_description": description,
                    "amount": amount,
                    "callback_url": settings.qpay_callback_url,
                },
            )
        if not data.get("invoice_id"):
            raise PaymentProviderError(PROVIDER, "invoice response had no invoice_id")
        logger.info(f"QPay invoice {data['invoice_id']} created for {amount} ({sender_invoice_no})")

    payment = Payment(
        provider=PaymentProvider.QPAY.value,
        invoice_id=data["invoice_id"],
        order_id=order_id,
        amount=amount,
        currency=settings.default_currency,
        status=PaymentStatus.PENDING.value,
        qr_image=data.get("qr_image"),
        qr_text=data.get("qr_text"),
        deep_links=json.dumps(data.get("urls") or []),
        customer_email=customer_email,
        customer_name=customer_name,
    )
    db.add(payment)
    await db.flush()
    return payment


def bank_links(payment: Payment) -> list[dict]:
    try:
        return json.loads(payment.deep_links or "[]")
    except ValueError:
        logger.warning(f"Payment {payment.invoice_id} has unreadable deep_links")
        return []


async def _fetch_paid(invoice_id: str) -> bool:
    async with _client() as client:
        token = await _access_token(client)
        data = await _post(
            client,
            "/v2/payment/check",
            headers={"Authorization": f"Bearer {token}"},
            json={
                "object_type": "INVOICE",
                "object_id": invoice_id,
                "offset": {"page_number": 1, "page_limit": 100},
            },
        )
    rows = data.get("rows") or []
    return any(row.get("payment_status") == "PAID" for row in rows)


async def check_payment(db: AsyncSession, *, invoice_id: str) -> Payment:
    """
    Ask QPay whether an invoice has been paid; stamp the payment PAID if so.

    Already-paid payments are returned without calling QPay again.
    """
    res = await db.execute(
        select(Payment).where(
            Payment.invoice_id == invoice_id,
            Payment.provider == PaymentProvider.QPAY.value,
        )
    )
    payment = res.scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment", invoice_id)

    if payment.status == PaymentStatus.PAID.value:
        return payment

    paid = True if settings.simulation_mode else await _fetch_paid(invoice_id)
    if paid:
        payment.status = PaymentStatus.PAID.value
        payment.paid_at = utcnow()
        await db.flush()
        logger.info(f"QPay invoice {invoice_id} paid (order={payment.order_id})")

    return payment
