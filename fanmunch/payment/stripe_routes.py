# payment/stripe_routes.py
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from fanmunch.core.dependencies import get_stripe_service
from fanmunch.payment.stripe_service import PaymentValidationError, StripeService

logger = logging.getLogger("payment.stripe_routes")

router = APIRouter(prefix="/api/stripe", tags=["stripe"])


class CreateIntentRequest(BaseModel):
    amount: Optional[float] = None
    currency: str = "USD"
    metadata: Optional[Dict[str, Any]] = None


class ConfirmPaymentRequest(BaseModel):
    paymentIntentId: Optional[str] = None


@router.get("/config")
def stripe_config(service: StripeService = Depends(get_stripe_service)):
    return {"success": True, **service.public_config()}


@router.post("/create-intent")
def create_intent(body: CreateIntentRequest, service: StripeService = Depends(get_stripe_service)):
    try:
        intent = service.create_payment_intent(body.amount, body.currency, body.metadata)
    except PaymentValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("[Stripe] Error creating payment intent")
        raise HTTPException(status_code=500, detail=str(e) or "Failed to create payment intent")

    return {
        "success": True,
        "intentId": intent.id,
        "clientSecret": intent.client_secret,
        "mode": "stripe",
    }


@router.post("/confirm-payment")
def confirm_payment(body: ConfirmPaymentRequest, service: StripeService = Depends(get_stripe_service)):
    if not body.paymentIntentId:
        raise HTTPException(status_code=400, detail="Payment intent ID is required")
    try:
        intent = service.retrieve_payment_intent(body.paymentIntentId)
    except Exception as e:
        logger.exception("[Stripe] Error confirming payment %s", body.paymentIntentId)
        raise HTTPException(status_code=500, detail=str(e) or "Failed to confirm payment")

    return {
        "success": True,
        "status": intent.status,
        "paymentIntent": {
            "id": intent.id,
            "status": intent.status,
            "amount": intent.amount,
            "currency": intent.currency,
        },
    }
