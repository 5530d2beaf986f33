# file: fanmunch/payment/stripe_service.py
"""
Thin wrapper over stripe.StripeClient.

Amounts enter in major units (12.50) and leave in the smallest unit (1250).
Webhook payloads are verified against STRIPE_WEBHOOK_SECRET before anything
reads them.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

import stripe

from fanmunch.core.config import Settings

logger = logging.getLogger("payment.stripe")

PAYMENT_SOURCE = "fans-munch-app"
WEBHOOK_TOLERANCE = 300


class StripeNotConfigured(RuntimeError):
    pass


class PaymentValidationError(ValueError):
    pass


def to_minor_units(amount: Union[float, str]) -> int:
    return int(round(float(amount) * 100))


class StripeService:
    def __init__(self, settings: Settings, client: Optional[stripe.StripeClient] = None):
        self.settings = settings
        if client is None and settings.stripe_secret_key:
            client = stripe.StripeClient(settings.stripe_secret_key)
        self._client = client
        if self._client is None:
            logger.warning("⚠️ [Stripe] STRIPE_SECRET_KEY not set, Stripe calls will fail")

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> stripe.StripeClient:
        if self._client is None:
            raise StripeNotConfigured("STRIPE_SECRET_KEY environment variable is required")
        return self._client

    def public_config(self) -> Dict[str, Any]:
        return {
            "publishableKey": self.settings.stripe_publishable_key,
            "vendorAccountId": self.settings.stripe_vendor_account_id,
            "mode": self.settings.stripe_mode,
        }

    # ---------------------------
    # Payment intents
    # ---------------------------
    def create_payment_intent(
        self,
        amount: float,
        currency: str = "USD",
        metadata: Optional[Dict[str, Any]] = None,
    ):
        if not amount or amount <= 0:
            raise PaymentValidationError("Valid amount is required")

        params = {
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "automatic_payment_methods": {"enabled": True},
            "metadata": {
                # Stripe metadata values are strings
                **{k: str(v) for k, v in (metadata or {}).items()},
                "source": PAYMENT_SOURCE,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        }
        logger.info("[Stripe] Creating payment intent: %s %s", params["amount"], params["currency"])
        intent = self.client.payment_intents.create(params=params)
        logger.info("[Stripe] Payment intent created: %s", intent.id)
        return intent

    def retrieve_payment_intent(self, payment_intent_id: str):
        return self.client.payment_intents.retrieve(payment_intent_id)

    def retrieve_charge(self, charge_id: str):
        return self.client.charges.retrieve(charge_id)

    def create_transfer(
        self,
        amount: Union[float, str],
        currency: str,
        destination: str,
        source_transaction: str,
        description: str,
        metadata: Optional[Dict[str, str]] = None,
    ):
        return self.client.transfers.create(params={
            "amount": to_minor_units(amount),
            "currency": currency.lower(),
            "destination": destination,
            "source_transaction": source_transaction,
            "description": description,
            "metadata": metadata or {},
        })

    # ---------------------------
    # Webhooks
    # ---------------------------
    def verify_webhook(self, payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Check the Stripe-Signature header and return the decoded event.
        Raises stripe.SignatureVerificationError on any mismatch.
        """
        secret = self.settings.stripe_webhook_secret
        if not secret:
            raise stripe.SignatureVerificationError(
                "No webhook secret configured", signature, payload
            )
        text = payload.decode("utf-8") if isinstance(payload, (bytes, bytearray)) else payload
        stripe.WebhookSignature.verify_header(text, signature or "", secret, WEBHOOK_TOLERANCE)
        return json.loads(text)
