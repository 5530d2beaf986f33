"""
FastAPI dependencies handing out the clients built in create_app().

Everything lives on app.state; handlers never reach for module globals.
"""
from fastapi import HTTPException, Request


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=503,
            detail=f"{name} is not available. Check server configuration.",
        )
    return value


def get_settings(request: Request):
    return _state(request, "settings")


def get_db(request: Request):
    return _state(request, "db")


def get_stadium_repository(request: Request):
    return _state(request, "stadium_repository")


def get_shop_repository(request: Request):
    return _state(request, "shop_repository")


def get_currency_service(request: Request):
    return _state(request, "currency_service")


def get_notification_service(request: Request):
    return _state(request, "notification_service")


def get_stripe_service(request: Request):
    return _state(request, "stripe_service")


def get_airwallex_gateway(request: Request):
    return _state(request, "airwallex_gateway")


def get_food_repository(request: Request):
    return _state(request, "food_repository")


def get_order_repository(request: Request):
    return _state(request, "order_repository")
