# payment/routes.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel

from fanmunch.core.dependencies import get_airwallex_gateway, get_shop_repository
from fanmunch.payment.airwallex_gateway import AirwallexGateway
from fanmunch.payment.split import (
    OrderAmounts,
    PaymentSplitError,
    build_transfer_metadata,
    calculate_complete_payment_breakdown,
)
from fanmunch.Shop.repository import ShopRepository

logger = logging.getLogger("payment.routes")

router = APIRouter(prefix="/api/payments", tags=["payments"])
airwallex_router = APIRouter(prefix="/api/airwallex", tags=["airwallex"])


class CreateIntentRequest(BaseModel):
    amount: Optional[float] = None
    currency: Optional[str] = None


class SplitPreviewRequest(BaseModel):
    order: OrderAmounts
    shopId: Optional[str] = None
    paymentOptions: Optional[Dict[str, Any]] = None
    currency: str = "ils"


# ==============================
# Airwallex checkout
# ==============================
@router.post("/create-intent")
async def create_intent(
    body: Optional[CreateIntentRequest] = None,
    gateway: AirwallexGateway = Depends(get_airwallex_gateway),
):
    body = body or CreateIntentRequest()
    logger.info("[Payments] MODE: %s", gateway.mode)
    try:
        return await gateway.create_payment_intent(body.amount, body.currency)
    except Exception as e:
        logger.error("[Payments] createPaymentIntent error: %s", e)
        raise HTTPException(status_code=500, detail=str(e) or "Payment intent failed")


@airwallex_router.post("/test")
async def test_payment(body: Optional[Dict[str, Any]] = Body(None)):
    # Simulated processing delay
    await asyncio.sleep(0.3)
    body = body or {}
    return {
        "success": True,
        "message": "✅ We got your payment. Processing your order now... (test mode)",
        "amount": body.get("amount") if body.get("amount") is not None else 0,
        "currency": body.get("currency") if body.get("currency") is not None else "USD",
        "serverTime": datetime.now(timezone.utc).isoformat(),
    }


# ==============================
# Split preview
# ==============================
@router.post("/split-preview")
def split_preview(
    body: SplitPreviewRequest,
    shops: ShopRepository = Depends(get_shop_repository),
):
    """Show how an order would be divided before the intent is created."""
    if body.paymentOptions:
        shop_config = {"payment-options": body.paymentOptions}
    elif body.shopId:
        shop_config = shops.get_shop_document(body.shopId)
        if shop_config is None:
            raise HTTPException(status_code=404, detail="Shop not found")
    else:
        raise HTTPException(status_code=400, detail="shopId or paymentOptions is required")

    try:
        breakdown = calculate_complete_payment_breakdown(body.order, shop_config, body.currency)
    except PaymentSplitError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "success": True,
        **breakdown,
        "transferMetadata": build_transfer_metadata(breakdown["finalAmounts"], shop_config, body.currency),
    }
