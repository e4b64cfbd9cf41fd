"""
Payment endpoints — QPay invoices and Stripe payment intents.

Paths match what the web client calls:
    POST /api/create-qpay-payment
    GET  /api/check-payment/{invoice_id}
    POST /api/create-payment-intent
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from database import get_db
from domain.enums import PaymentStatus
from domain.responses import success_response
from middleware.auth import AuthSession, require_session
from middleware.rate_limit import rate_limit
from models import (
    BankLink,
    PaymentCheckResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    QPayPaymentRequest,
    QPayPaymentResponse,
)
from services import order_service, qpay_service, stripe_service

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["payments"])


@router.post("/create-qpay-payment")
async def create_qpay_payment(
    request: QPayPaymentRequest,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=10, window_seconds=60)),
):
    if request.order_id is not None:
        await order_service.get_payable_order(
            db, order_id=request.order_id, customer_uid=session.uid, amount=request.amount
        )

    payment = await qpay_service.create_invoice(
        db,
        amount=request.amount,
        order_id=request.order_id,
        customer_email=request.customer_email,
        customer_name=request.customer_name,
        description=request.description,
    )
    await db.commit()

    return success_response(
        data=QPayPaymentResponse(
            invoice_id=payment.invoice_id,
            qr_image=payment.qr_image,
            qr_text=payment.qr_text,
            urls=[BankLink.model_validate(link) for link in qpay_service.bank_links(payment)],
        ).to_api()
    )


@router.get("/check-payment/{invoice_id}")
async def check_payment(
    invoice_id: str,
    _session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=30, window_seconds=60)),
):
    payment = await qpay_service.check_payment(db, invoice_id=invoice_id)
    await db.commit()
    return success_response(
        data=PaymentCheckResponse(
            invoice_id=payment.invoice_id,
            paid=payment.status == PaymentStatus.PAID.value,
            status=payment.status,
        ).to_api()
    )


@router.post("/create-payment-intent")
async def create_payment_intent(
    request: PaymentIntentRequest,
    session: AuthSession = Depends(require_session),
    db: AsyncSession = Depends(get_db),
    _rate=Depends(rate_limit(max_requests=10, window_seconds=60)),
):
    if request.order_id is not None:
        # Totals are kept in the default currency; other currencies skip the amount match
        same_currency = (request.currency or settings.default_currency).upper() == settings.default_currency.upper()
        await order_service.get_payable_order(
            db,
            order_id=request.order_id,
            customer_uid=session.uid,
            amount=request.amount if same_currency else None,
        )

    payment, client_secret = await stripe_service.create_payment_intent(
        db,
        amount=request.amount,
        order_id=request.order_id,
        currency=request.currency,
    )
    await db.commit()
    return success_response(
        data=PaymentIntentResponse(
            payment_intent_id=payment.invoice_id,
            client_secret=client_secret,
        ).to_api()
    )
