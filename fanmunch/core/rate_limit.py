from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

DEFAULT_LIMITS = ["1000/hour"]


def build_limiter() -> Limiter:
    return Limiter(key_func=get_remote_address, default_limits=DEFAULT_LIMITS)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    retry_after = getattr(exc, "reset_in", None) or 60
    response = JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Too many requests. Please slow down.",
            "limit": str(exc.detail),
            "retry_after_seconds": retry_after,
        },
    )
    response.headers["Retry-After"] = str(retry_after)
    return response
