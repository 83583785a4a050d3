"""Standard error codes and exceptions for the payments backend.

Every failure surfaced to a caller carries an ErrorCode. The API layer maps
codes to HTTP statuses (see intellipark_api.exceptions) and renders the
ErrorResponse body ``{"error": ..., "details": ...}``.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error codes returned by the payments API."""

    VALIDATION_FAILED = "ERR_VALIDATION"
    AUTH_FAILED = "ERR_AUTH"
    GATEWAY_NOT_CONFIGURED = "ERR_GATEWAY_CONFIG"
    GATEWAY_REJECTED = "ERR_GATEWAY"
    GATEWAY_UNAVAILABLE = "ERR_GATEWAY_UNAVAILABLE"
    STORE_FAILED = "ERR_STORE"
    INTERNAL = "ERR_INTERNAL"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_FAILED: "Invalid request",
    ErrorCode.AUTH_FAILED: "Forbidden",
    ErrorCode.GATEWAY_NOT_CONFIGURED: "XENDIT_API_KEY missing",
    ErrorCode.GATEWAY_REJECTED: "Payment gateway rejected the request",
    ErrorCode.GATEWAY_UNAVAILABLE: "Failed to create invoice",
    ErrorCode.STORE_FAILED: "Reservation store operation failed",
    ErrorCode.INTERNAL: "Internal error",
}


class ErrorResponse(BaseModel):
    """Error body returned to API callers."""

    model_config = ConfigDict(strict=True)

    error: str
    details: Optional[dict[str, Any]] = None


class PaymentError(Exception):
    """Base exception for payment operations.

    Can be caught and converted to an ErrorResponse at the API boundary.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to the API error body."""
        return ErrorResponse(error=self.message, details=self.details)


class ValidationError(PaymentError):
    """Missing or malformed request fields."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(ErrorCode.VALIDATION_FAILED, details=details, message=message)


class AuthError(PaymentError):
    """Webhook callback token missing or mismatched.

    ``reason`` is for server logs only and never reaches the response body.
    """

    def __init__(self, reason: str = "token mismatch"):
        self.reason = reason
        super().__init__(ErrorCode.AUTH_FAILED)


class GatewayError(PaymentError):
    """The payment gateway answered with a non-2xx status.

    The status code and body are kept verbatim so the API can relay them.
    ``body`` is the decoded JSON, or the raw text when the reply is not JSON,
    in which case ``content_type`` carries the gateway's media type.
    """

    def __init__(self, status_code: int, body: Any, content_type: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.content_type = content_type
        super().__init__(
            ErrorCode.GATEWAY_REJECTED,
            message=f"Payment gateway returned HTTP {status_code}",
        )


class StoreError(PaymentError):
    """A reservation store read or write failed."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(ErrorCode.STORE_FAILED, details=details, message=message)
