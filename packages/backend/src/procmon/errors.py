"""Error responses — one JSON shape for every failure.

Learn: The dashboard client reads `message` (and `details` for
validation problems) from error bodies, so FastAPI's defaults are
replaced:
- request validation → 400 {"message": "Validation error", "details": ...}
- HTTPException      → its status, {"message": detail}
- anything else      → 500 {"message": "Internal server error"}, with the
  traceback logged server-side only
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


def describe_validation_error(exc: RequestValidationError) -> str:
    """Human-readable text for the first validation error."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = first.get("loc", ())[-1] if first.get("loc") else "request"
    return f'"{field}" {first.get("msg", "is invalid")}'


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"message": "Validation error", "details": describe_validation_error(exc)},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(
        "http.unhandled_error",
        method=request.method,
        path=request.url.path,
    )
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
