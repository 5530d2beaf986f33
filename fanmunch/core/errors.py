# fanmunch/core/errors.py
import logging
from typing import Any, Dict, List

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("core.errors")

REQUEST_LOCATIONS = {"body", "query", "path", "header", "cookie"}


class ModelValidationError(ValueError):
    """
    Raised when a stored document or request payload cannot be turned into a
    typed model. Carries the offending fields instead of silently coercing.
    """

    def __init__(self, model: str, errors: List[Dict[str, Any]]):
        self.model = model
        self.errors = errors
        fields = ", ".join(_field_path(e) for e in errors) or "unknown"
        super().__init__(f"Invalid {model} data: {fields}")

    @classmethod
    def from_pydantic(cls, model: str, exc: ValidationError) -> "ModelValidationError":
        return cls(
            model,
            [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()],
        )


def _field_path(error: Dict[str, Any]) -> str:
    loc = [str(p) for p in error.get("loc", ())]
    if loc and loc[0] in REQUEST_LOCATIONS:
        loc = loc[1:]
    return ".".join(loc)


def describe_validation_errors(errors: List[Dict[str, Any]]) -> str:
    missing = [_field_path(e) for e in errors if e.get("type") == "missing"]
    if missing:
        return f"{', '.join(missing)} {'is' if len(missing) == 1 else 'are'} required"
    return "; ".join(f"{_field_path(e)}: {e.get('msg')}" for e in errors)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed request fields answer 400, not FastAPI's 422."""
    errors = exc.errors()
    message = describe_validation_errors(errors)
    logger.warning("[VALIDATION] %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": message},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """HTTPException bodies follow the {success, error} shape the clients read."""
    detail = exc.detail
    if isinstance(detail, dict):
        content = {"success": False, **detail}
    else:
        content = {"success": False, "error": detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def model_validation_handler(request: Request, exc: ModelValidationError):
    logger.error("[MODEL] %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": str(exc), "fields": exc.errors},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("[UNHANDLED] %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error", "message": str(exc)},
    )
