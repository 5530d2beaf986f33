# file: fanmunch/main.py
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
import uvicorn
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from fanmunch.core.config import Settings, load_settings
from fanmunch.core.errors import (
    ModelValidationError,
    http_error_handler,
    model_validation_handler,
    request_validation_handler,
    unhandled_error_handler,
)
from fanmunch.core.firebase import init_firebase
from fanmunch.core.logger import setup_logging
from fanmunch.core.rate_limit import build_limiter, rate_limit_handler
from fanmunch.Currency.service import UPDATE_INTERVAL, CurrencyService
from fanmunch.Food.repository import FoodRepository
from fanmunch.Notification.service import NotificationService
from fanmunch.Order.repository import OrderRepository
from fanmunch.payment.airwallex_gateway import AirwallexGateway
from fanmunch.payment.stripe_service import StripeService
from fanmunch.Shop.repository import ShopRepository
from fanmunch.Stadium.repository import StadiumRepository

# ------------------------------
# Routers
# ------------------------------
from fanmunch.admin.routes import router as admin_router
from fanmunch.Cart.routes import router as cart_router
from fanmunch.Currency.routes import router as currency_router
from fanmunch.Food.routes import router as food_router
from fanmunch.Notification.routes import router as notification_router
from fanmunch.Order.routes import router as order_router
from fanmunch.payment.routes import airwallex_router, router as payments_router
from fanmunch.payment.stripe_routes import router as stripe_router
from fanmunch.payment.webhook import router as webhook_router
from fanmunch.Shop.routes import router as shop_router
from fanmunch.Stadium.routes import router as stadium_router

logger = logging.getLogger("main")


def create_app(
    settings: Optional[Settings] = None,
    *,
    db=None,
    firebase_app=None,
    http: Optional[httpx.AsyncClient] = None,
    stripe_service: Optional[StripeService] = None,
    notification_service: Optional[NotificationService] = None,
    currency_service: Optional[CurrencyService] = None,
    airwallex_gateway: Optional[AirwallexGateway] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """
    Build the application and every client it uses. Anything passed in is
    used as-is, which is how tests swap in fakes.
    """
    if settings is None:
        settings = load_settings()
        setup_logging(settings.log_level, settings.use_cloud_logging)

    if db is None:
        firebase = init_firebase(settings)
        db = firebase.db
        firebase_app = firebase_app or firebase.app

    http = http or httpx.AsyncClient()

    app = FastAPI(title="FanMunch API")
    app.state.settings = settings
    app.state.db = db
    app.state.http = http
    app.state.stadium_repository = StadiumRepository(db)
    app.state.shop_repository = ShopRepository(db)
    app.state.food_repository = FoodRepository(db)
    app.state.order_repository = OrderRepository(db)
    app.state.stripe_service = stripe_service or StripeService(settings)
    app.state.notification_service = notification_service or NotificationService(firebase_app)
    app.state.currency_service = currency_service or CurrencyService(db, http, settings.currency_api_url)
    app.state.airwallex_gateway = airwallex_gateway or AirwallexGateway(settings, http)
    app.state.scheduler = None

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Rate limiter
    limiter = build_limiter()
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    # Errors
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(ModelValidationError, model_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Routers
    app.include_router(stadium_router)
    app.include_router(shop_router)
    app.include_router(food_router)
    app.include_router(cart_router)
    app.include_router(order_router)
    app.include_router(currency_router)
    app.include_router(notification_router)
    app.include_router(stripe_router)
    app.include_router(webhook_router)
    app.include_router(payments_router)
    app.include_router(airwallex_router)
    app.include_router(admin_router)

    @app.get("/health")
    async def health(request: Request):
        return {
            "status": "ok",
            "project": getattr(request.app.state.db, "project", None),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/ping")
    @limiter.limit("5/minute")
    async def ping(request: Request):
        return {"message": "pong"}

    @app.on_event("startup")
    async def startup_event():
        if not start_scheduler:
            return
        scheduler = AsyncIOScheduler()
        # Refresh once now, then every 8 hours
        scheduler.add_job(
            app.state.currency_service.update_rates,
            "interval",
            seconds=int(UPDATE_INTERVAL.total_seconds()),
            next_run_time=datetime.now(timezone.utc),
            id="currency_update",
            coalesce=True,
            max_instances=1,
        )
        scheduler.start()
        app.state.scheduler = scheduler
        logger.info("[SCHEDULER] Currency rates refresh scheduled every 8 hours.")

    @app.on_event("shutdown")
    async def shutdown_event():
        if app.state.scheduler is not None:
            app.state.scheduler.shutdown(wait=False)
        await app.state.http.aclose()
        logger.info("[SHUTDOWN] Scheduler stopped, HTTP client closed.")

    return app


def run() -> None:
    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)


if __name__ == "__main__":
    run()
