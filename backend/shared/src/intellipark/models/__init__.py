"""Pydantic models for IntelliPark payment data."""

from .enums import ReconciliationOutcome, SlotStatus
from .errors import (
    ERROR_MESSAGES,
    AuthError,
    ErrorCode,
    ErrorResponse,
    GatewayError,
    PaymentError,
    StoreError,
    ValidationError,
)
from .invoice import InvoiceRequest
from .payment import PaymentRecord, SlotRecord
from .webhook import UNKNOWN_STATUS, CanonicalEvent, ReconciliationResult

__all__ = [
    # Enums
    "ReconciliationOutcome",
    "SlotStatus",
    # Records
    "PaymentRecord",
    "SlotRecord",
    # Invoice
    "InvoiceRequest",
    # Webhook
    "CanonicalEvent",
    "ReconciliationResult",
    "UNKNOWN_STATUS",
    # Errors
    "AuthError",
    "ERROR_MESSAGES",
    "ErrorCode",
    "ErrorResponse",
    "GatewayError",
    "PaymentError",
    "StoreError",
    "ValidationError",
]
