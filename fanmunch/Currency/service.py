# file: fanmunch/Currency/service.py
"""
Exchange-rate cache.

Rates are USD-based, pulled from the exchange-rate API and kept in
currency_rates/latest for eight hours:
    {rates, timestamp, expiresAt, currencies}
A failed refresh never touches the stored document.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import httpx
from starlette.concurrency import run_in_threadpool

from fanmunch.core.config import EXCHANGE_RATE_API

logger = logging.getLogger("currency.service")

CACHE_COLLECTION = "currency_rates"
CACHE_DOCUMENT = "latest"
UPDATE_INTERVAL = timedelta(hours=8)
TIMEOUT = 10

CURRENCIES = [
    "ILS", "USD", "EUR", "GBP", "JPY", "AUD", "CAD", "CHF", "CNY", "INR",
    "MXN", "BRL", "ZAR", "SGD", "HKD", "NZD", "SEK", "NOK", "DKK", "AED",
]

# Legacy currency code still sent by older clients
CURRENCY_ALIASES = {"NIS": "ILS"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class CurrencyService:
    def __init__(self, db, http: httpx.AsyncClient, api_url: str = EXCHANGE_RATE_API):
        self.db = db
        self.http = http
        self.api_url = api_url

    @property
    def _doc(self):
        return self.db.collection(CACHE_COLLECTION).document(CACHE_DOCUMENT)

    async def fetch_exchange_rates(self) -> Optional[Dict[str, float]]:
        """Fetch tracked rates from the API. None on any failure."""
        try:
            logger.info("💱 [CURRENCY] Fetching exchange rates from API...")
            resp = await self.http.get(self.api_url, timeout=TIMEOUT)
            resp.raise_for_status()
            body = resp.json()
            if not isinstance(body, dict) or not isinstance(body.get("rates"), dict):
                raise ValueError("Invalid API response")
            rates = {c: body["rates"][c] for c in CURRENCIES if body["rates"].get(c)}
            logger.info("✅ [CURRENCY] Exchange rates fetched: %d currencies", len(rates))
            return rates
        except Exception as e:
            logger.error("❌ [CURRENCY] Error fetching exchange rates: %s", e)
            return None

    def store_rates(self, rates: Dict[str, float], now: Optional[datetime] = None) -> bool:
        timestamp = now or _utcnow()
        try:
            self._doc.set({
                "rates": rates,
                "timestamp": timestamp,
                "expiresAt": timestamp + UPDATE_INTERVAL,
                "currencies": CURRENCIES,
            })
            logger.info("💾 [CURRENCY] Rates stored in Firestore")
            return True
        except Exception as e:
            logger.error("❌ [CURRENCY] Error storing rates: %s", e)
            return False

    def get_cached_rates(self, now: Optional[datetime] = None) -> Optional[Dict[str, float]]:
        now = _as_utc(now or _utcnow())
        try:
            doc = self._doc.get()
            if not doc.exists:
                logger.info("⚠️ [CURRENCY] No cached rates found")
                return None
            data = doc.to_dict() or {}
            expires_at = data.get("expiresAt")
            if isinstance(expires_at, datetime) and _as_utc(expires_at) < now:
                logger.info("⏰ [CURRENCY] Cache expired, will fetch new rates")
                return None
            logger.debug("✅ [CURRENCY] Using cached rates from %s", data.get("timestamp"))
            return data.get("rates")
        except Exception as e:
            logger.error("❌ [CURRENCY] Error retrieving cached rates: %s", e)
            return None

    async def update_rates(self, now: Optional[datetime] = None) -> bool:
        """
        Refresh the cache when it is missing or expired. Returns True when
        valid rates are stored afterwards. Never raises.

        Firestore calls are blocking and run in the threadpool.
        """
        logger.info("🔄 [CURRENCY] Checking if rates need updating...")
        if await run_in_threadpool(self.get_cached_rates, now):
            logger.info("✅ [CURRENCY] Rates are still fresh, skipping update")
            return True

        rates = await self.fetch_exchange_rates()
        if not rates:
            logger.warning("⚠️ [CURRENCY] Update failed, will retry next cycle")
            return False
        return await run_in_threadpool(self.store_rates, rates, now)


def convert_price(
    price: float,
    from_currency: str,
    to_currency: str,
    rates: Optional[Dict[str, float]],
) -> float:
    """Convert through USD, the base every stored rate is quoted against."""
    if not price or price <= 0:
        return 0
    src = CURRENCY_ALIASES.get(from_currency.upper(), from_currency.upper())
    dst = CURRENCY_ALIASES.get(to_currency.upper(), to_currency.upper())
    if src == dst or not rates:
        return price
    src_rate = rates.get(src)
    dst_rate = rates.get(dst)
    if not src_rate or not dst_rate:
        logger.warning("[CURRENCY] No rate for %s -> %s, price left unchanged", src, dst)
        return price
    return price / src_rate * dst_rate
