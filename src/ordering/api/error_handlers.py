"""Global exception handlers for the Storefront API.

    StorefrontError       → its own status code and ``{"error": {...}}`` envelope
    ValidationError       → 422 with Protean's field messages
    RequestValidationError → 422 with pydantic's field-level details
    Exception             → 500, logged with traceback, no internals leaked
"""

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError
from shared.errors import StorefrontError

logger = structlog.get_logger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        logger.info("Request refused", path=request.url.path, code=exc.code, detail=exc.message)
        return JSONResponse(status_code=exc.http_status, content=exc.to_response())

    @app.exception_handler(ValidationError)
    async def domain_validation_error_handler(request: Request, exc: ValidationError):
        logger.info("Domain validation failed", path=request.url.path, messages=exc.messages)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": {"code": "VALIDATION_ERROR", "message": "Invalid data", "fields": exc.messages}},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        fields = {".".join(str(part) for part in error["loc"]): error["msg"] for error in exc.errors()}
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": {"code": "VALIDATION_ERROR", "message": "Invalid request", "fields": fields}},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"code": "INTERNAL_ERROR", "message": "An unexpected error occurred"}},
        )
