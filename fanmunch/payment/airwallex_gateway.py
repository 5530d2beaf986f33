# file: fanmunch/payment/airwallex_gateway.py
"""
Airwallex payment intents over REST (async).

Modes, from AIRWALLEX_ENV:
    mock        no network, returns a fake intent for local testing
    production  production URL, AIRWALLEX_CLIENT_ID / AIRWALLEX_API_KEY
    demo        demo URL, *_DEMO credentials falling back to the plain ones
Flow: POST /authentication/login for a bearer token, then
POST /pa/payment_intents/create.
"""
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from fanmunch.core.config import AIRWALLEX_DEMO_URL, AIRWALLEX_PROD_URL, Settings

logger = logging.getLogger("payment.airwallex")

TIMEOUT = 30
DEFAULT_AMOUNT = 11.0
DEFAULT_CURRENCY = "USD"


class AirwallexError(RuntimeError):
    pass


@dataclass
class AirwallexConfig:
    mode: str
    base_url: Optional[str]
    client_id: Optional[str]
    api_key: Optional[str]

    @classmethod
    def from_settings(cls, settings: Settings) -> "AirwallexConfig":
        mode = settings.airwallex_env
        if mode == "mock":
            return cls(mode="mock", base_url=None, client_id=None, api_key=None)
        if mode == "production":
            return cls(
                mode="production",
                base_url=settings.airwallex_base_url or AIRWALLEX_PROD_URL,
                client_id=settings.airwallex_client_id,
                api_key=settings.airwallex_api_key,
            )
        return cls(
            mode="demo",
            base_url=settings.airwallex_base_url or AIRWALLEX_DEMO_URL,
            client_id=settings.airwallex_client_id_demo or settings.airwallex_client_id,
            api_key=settings.airwallex_api_key_demo or settings.airwallex_api_key,
        )


def _millis() -> int:
    return int(time.time() * 1000)


def _safe_json(resp: httpx.Response) -> Any:
    """Return parsed json or text if JSON fails."""
    try:
        return resp.json()
    except ValueError:
        return resp.text


class AirwallexGateway:
    def __init__(self, settings: Settings, http: httpx.AsyncClient):
        self.config = AirwallexConfig.from_settings(settings)
        self.http = http
        logger.info(
            "[Airwallex] mode=%s base=%s client_id=%s api_key=%s",
            self.config.mode,
            self.config.base_url,
            bool(self.config.client_id),
            bool(self.config.api_key),
        )

    @property
    def mode(self) -> str:
        return self.config.mode

    async def _login(self) -> str:
        url = f"{self.config.base_url}/authentication/login"
        headers = {
            "Content-Type": "application/json",
            "x-client-id": self.config.client_id or "",
            "x-api-key": self.config.api_key or "",
        }
        try:
            resp = await self.http.post(url, json={}, headers=headers, timeout=TIMEOUT)
        except httpx.RequestError as e:
            logger.exception("[Airwallex] request error during login")
            raise AirwallexError(f"Airwallex request error: {e}") from e

        body = _safe_json(resp)
        if resp.status_code >= 400:
            logger.error("[Airwallex] REST auth failed %s %s", resp.status_code, body)
            raise AirwallexError("Airwallex auth failed")

        token = (body.get("token") or body.get("access_token")) if isinstance(body, dict) else None
        if not token:
            raise AirwallexError("Airwallex auth missing token")
        return token

    async def create_payment_intent(
        self,
        amount: Optional[float] = None,
        currency: Optional[str] = None,
    ) -> Dict[str, Any]:
        amount = amount or DEFAULT_AMOUNT
        currency = currency or DEFAULT_CURRENCY

        if self.mode == "mock":
            return {
                "success": True,
                "intentId": f"mock_{_millis()}",
                "clientSecret": f"mock_secret_{secrets.token_hex(6)}",
                "mode": "mock",
            }

        token = await self._login()
        payload = {
            "request_id": f"req_{_millis()}",
            "amount": float(amount),
            "currency": currency,
            "merchant_order_id": f"order_{_millis()}",
            "capture_method": "AUTOMATIC",
        }
        url = f"{self.config.base_url}/pa/payment_intents/create"
        logger.info("[Airwallex] create intent amount=%s currency=%s", payload["amount"], currency)
        try:
            resp = await self.http.post(
                url,
                json=payload,
                headers={"Content-Type": "application/json", "Authorization": f"Bearer {token}"},
                timeout=TIMEOUT,
            )
        except httpx.RequestError as e:
            logger.exception("[Airwallex] request error during create intent")
            raise AirwallexError(f"Airwallex request error: {e}") from e

        body = _safe_json(resp)
        if resp.status_code >= 400:
            logger.error("[Airwallex] REST create intent failed %s %s", resp.status_code, body)
            raise AirwallexError("Airwallex create intent failed")
        if not isinstance(body, dict) or not body.get("id") or not body.get("client_secret"):
            raise AirwallexError("Airwallex create intent missing fields")

        return {
            "success": True,
            "intentId": body["id"],
            "clientSecret": body["client_secret"],
            "mode": self.mode,
        }
