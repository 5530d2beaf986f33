# Currency/routes.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from fanmunch.core.dependencies import get_currency_service
from fanmunch.Currency.service import CurrencyService

logger = logging.getLogger("currency.routes")

router = APIRouter(prefix="/api/currency", tags=["currency"])


@router.get("/rates")
async def get_rates(service: CurrencyService = Depends(get_currency_service)):
    logger.info("📊 [API] GET /api/currency/rates")
    rates = await run_in_threadpool(service.get_cached_rates)
    if rates:
        return {
            "success": True,
            "rates": rates,
            "source": "cached",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    logger.info("⚠️ [API] Cache empty, fetching fresh rates...")
    fresh = await service.fetch_exchange_rates()
    if not fresh:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "error": "Unable to fetch currency rates",
                "message": "Please try again later",
            },
        )
    await run_in_threadpool(service.store_rates, fresh)
    return {
        "success": True,
        "rates": fresh,
        "source": "fresh",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/update")
async def update_rates(service: CurrencyService = Depends(get_currency_service)):
    logger.info("🔄 [API] POST /api/currency/update")
    if not await service.update_rates():
        return JSONResponse(
            status_code=503,
            content={"success": False, "error": "Failed to update currency rates"},
        )
    return {
        "success": True,
        "message": "Currency rates updated successfully",
        "rates": await run_in_threadpool(service.get_cached_rates),
    }
