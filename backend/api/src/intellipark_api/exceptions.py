"""FastAPI exception handlers for payment errors.

ErrorCode-to-HTTP status mapping:
- 400 Bad Request: missing or malformed request fields
- 403 Forbidden: webhook callback token missing or mismatched
- 500 Internal Server Error: gateway not configured/unreachable, store failures

GatewayError is special: the gateway's own status code and body are relayed
unchanged.

Usage:
    from intellipark_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from intellipark.models.errors import ErrorCode, GatewayError, PaymentError
from intellipark.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_FAILED: HTTP_400_BAD_REQUEST,
    ErrorCode.AUTH_FAILED: HTTP_403_FORBIDDEN,
    ErrorCode.GATEWAY_NOT_CONFIGURED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.GATEWAY_UNAVAILABLE: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.STORE_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.INTERNAL: HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status for an ErrorCode (500 if not mapped)."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_500_INTERNAL_SERVER_ERROR)


async def gateway_error_handler(request: Request, exc: GatewayError) -> Response:
    """Relay a gateway rejection with its own status and body.

    Non-JSON bodies are relayed as the raw text with the gateway's content type.
    """
    if exc.content_type is not None:
        return Response(
            content=exc.body,
            status_code=exc.status_code,
            media_type=exc.content_type,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.body)


async def payment_error_handler(request: Request, exc: PaymentError) -> JSONResponse:
    """Render a PaymentError as ``{"error": ..., "details": ...}``."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s on %s: %s", exc.code.value, request.url.path, exc.message)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_error_response().model_dump(mode="json", exclude_none=True),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for uncaught exceptions; internal details are not exposed."""
    logger.exception("Unhandled exception on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    # Handlers resolve by MRO, so GatewayError beats its PaymentError base
    app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PaymentError, payment_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
