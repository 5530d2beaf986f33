# file: fanmunch/payment/webhook.py
"""
Stripe webhook endpoint.

Only payment_intent.succeeded does work: when the intent was created for a
3-way split (metadata requiresManualTransfers == "true") the vendor and hotel
shares are transferred out of the captured charge.

Events are not deduplicated. A redelivered event repeats its transfers.
"""
import logging
from typing import Any, Dict

import stripe
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from fanmunch.core.dependencies import get_stripe_service
from fanmunch.payment.stripe_service import StripeService

logger = logging.getLogger("payment.webhook")

router = APIRouter(prefix="/api/webhooks", tags=["webhooks"])

DEFAULT_TRANSFER_CURRENCY = "ils"


def _positive(value: Any) -> bool:
    try:
        return float(value) > 0
    except (TypeError, ValueError):
        return False


def _transfer(
    service: StripeService,
    party: str,
    destination: str,
    amount: Any,
    currency: str,
    charge_id: str,
    intent_id: str,
) -> None:
    try:
        transfer = service.create_transfer(
            amount=amount,
            currency=currency,
            destination=destination,
            source_transaction=charge_id,
            description=f"Transfer to {party} for order {intent_id}",
            metadata={"paymentIntentId": intent_id},
        )
        logger.info("✅ [3-WAY SPLIT] %s transfer created: %s (%s %s)", party, transfer.id, amount, currency)
    except Exception as e:
        logger.error("❌ [3-WAY SPLIT] %s transfer failed: %s", party, e)


def handle_payment_success(service: StripeService, intent: Dict[str, Any]) -> None:
    intent_id = intent.get("id")
    metadata = intent.get("metadata") or {}
    logger.info("🔔 [Webhook] Payment Intent Succeeded: %s", intent_id)

    if metadata.get("requiresManualTransfers") != "true":
        logger.info("ℹ️ [Webhook] Normal payment (2-way or other), no manual transfers needed")
        return

    charge_id = intent.get("latest_charge")
    if not charge_id:
        logger.error("❌ [3-WAY SPLIT] No charge ID found on payment intent %s", intent_id)
        return

    # The charge currency wins over the intent's; they can differ
    currency = metadata.get("currency") or DEFAULT_TRANSFER_CURRENCY
    try:
        charge_currency = service.retrieve_charge(charge_id).currency
        if charge_currency:
            currency = charge_currency
            logger.info("💱 [3-WAY SPLIT] Using charge currency: %s", currency.upper())
        else:
            logger.warning("⚠️ [3-WAY SPLIT] Charge has no currency, falling back to: %s", currency)
    except Exception as e:
        logger.warning("⚠️ [3-WAY SPLIT] Could not fetch charge currency (%s), falling back to: %s", e, currency)

    vendor_id = metadata.get("vendorId")
    if vendor_id and _positive(metadata.get("vendorAmount")):
        _transfer(service, "Vendor", vendor_id, metadata["vendorAmount"], currency, charge_id, intent_id)

    hotel_id = metadata.get("hotelId")
    if hotel_id and _positive(metadata.get("hotelAmount")):
        _transfer(service, "Hotel", hotel_id, metadata["hotelAmount"], currency, charge_id, intent_id)

    logger.info("🏨 [3-WAY SPLIT] All transfers processed for %s", intent_id)


@router.post("/stripe")
async def stripe_webhook(request: Request, service: StripeService = Depends(get_stripe_service)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")
    logger.info("🔔 [Webhook] Received %d bytes, signature present: %s", len(payload), bool(signature))

    try:
        event = service.verify_webhook(payload, signature)
    except (stripe.SignatureVerificationError, ValueError) as e:
        logger.error("❌ [Webhook] Signature verification failed: %s", e)
        return PlainTextResponse(f"Webhook Error: {e}", status_code=400)

    event_type = event.get("type")
    logger.info("📋 [Webhook] Event %s (%s)", event.get("id"), event_type)

    try:
        if event_type == "payment_intent.succeeded":
            intent = (event.get("data") or {}).get("object") or {}
            # Stripe SDK calls block; keep them off the event loop
            await run_in_threadpool(handle_payment_success, service, intent)
        else:
            logger.info("ℹ️ [Webhook] Unhandled event type: %s", event_type)
    except Exception:
        logger.exception("❌ [Webhook] Error processing event %s", event.get("id"))
        return JSONResponse(status_code=500, content={"error": "Webhook handler failed"})

    return {"received": True}


@router.get("/stripe/test")
def stripe_webhook_test(service: StripeService = Depends(get_stripe_service)):
    return {
        "success": True,
        "message": "Webhook endpoint is reachable",
        "stripeConfigured": service.is_configured,
        "webhookSecretConfigured": bool(service.settings.stripe_webhook_secret),
    }
