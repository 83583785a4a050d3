"""Backend services for IntelliPark payments."""

from .dynamodb import DynamoDBReservationStore, get_dynamodb_store, reset_dynamodb_store
from .invoice_service import InvoiceService, build_external_id
from .reconciliation import ReconciliationEngine, is_paid_status, slot_id_from_external_id
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .store import InMemoryReservationStore, ReservationStore
from .webhook_handler import CALLBACK_TOKEN_HEADER, canonicalize_event, verify_callback_token
from .xendit_service import XenditService, get_xendit_service

__all__ = [
    "CALLBACK_TOKEN_HEADER",
    "DynamoDBReservationStore",
    "InMemoryReservationStore",
    "InvoiceService",
    "ReconciliationEngine",
    "ReservationStore",
    "SSMService",
    "SSMServiceError",
    "XenditService",
    "build_external_id",
    "canonicalize_event",
    "get_dynamodb_store",
    "get_ssm_service",
    "get_xendit_service",
    "is_paid_status",
    "reset_dynamodb_store",
    "slot_id_from_external_id",
    "verify_callback_token",
]
