"""Invoice creation for slot reservations.

Validates the request, builds the SLOT-<slotId>-<ts> external id, asks the
gateway for an invoice and records a draft payment. The draft is
best-effort: the webhook path recreates the payment record if it is missing.
"""

import math
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from intellipark.config import Settings
from intellipark.models import InvoiceRequest, PaymentRecord, ValidationError
from intellipark.services.store import payment_key
from intellipark.utils.clock import Clock, MonotonicMillis, now_millis
from intellipark.utils.logging import get_logger, log_payment_operation

if TYPE_CHECKING:
    from .store import ReservationStore
    from .xendit_service import XenditService

logger = get_logger(__name__)

EXTERNAL_ID_PREFIX = "SLOT"

# Shared by every InvoiceService in the process so ids stay unique
_external_id_clock = MonotonicMillis()


def build_external_id(slot_id: str, timestamp_ms: int) -> str:
    """Build the external id that links a gateway invoice back to a slot."""
    return f"{EXTERNAL_ID_PREFIX}-{slot_id}-{timestamp_ms}"


class InvoiceService:
    """Creates gateway invoices and draft payment records."""

    def __init__(
        self,
        store: "ReservationStore",
        gateway: "XenditService",
        settings: Settings,
        *,
        id_clock: Clock = _external_id_clock,
        clock: Clock = now_millis,
    ) -> None:
        """Initialize invoice service.

        Args:
            store: Reservation store for the draft payment record
            gateway: Xendit client
            settings: Amount policy, currency and redirect configuration
            id_clock: Strictly increasing ms source for external ids
            clock: Wall clock for createdAt
        """
        self.store = store
        self.gateway = gateway
        self.settings = settings
        self._id_clock = id_clock
        self._clock = clock

    def resolve_amount(self, amount: Any) -> float:
        """Apply the configured amount policy.

        Missing amounts use the default. Invalid ones (non-numeric, not
        finite, or not positive) are rejected unless coercion is enabled.

        Raises:
            ValidationError: If the amount is invalid and coercion is off.
        """
        if amount is None or amount == "":
            return self.settings.default_invoice_amount

        value: float | None
        if isinstance(amount, bool):
            value = None
        else:
            try:
                value = float(amount)
            except (TypeError, ValueError):
                value = None

        if value is not None and math.isfinite(value) and value > 0:
            return int(value) if value.is_integer() else value

        if self.settings.coerce_invalid_amount:
            logger.warning(
                "Invalid amount %r coerced to default %s",
                amount,
                self.settings.default_invoice_amount,
            )
            return self.settings.default_invoice_amount

        raise ValidationError(
            "amount must be a positive number",
            details={"field": "amount"},
        )

    def build_invoice_body(self, request: InvoiceRequest, external_id: str) -> dict[str, Any]:
        """Compose the gateway invoice request body."""
        redirect_url = self.settings.success_redirect_url.format(
            slot=quote(request.slot_id, safe=""),
            email=quote(request.email, safe=""),
        )
        body: dict[str, Any] = {
            "external_id": external_id,
            "amount": self.resolve_amount(request.amount),
            "currency": self.settings.invoice_currency,
            "description": request.description or f"Reservation for {request.slot_id}",
            "payer_email": request.email,
            "success_redirect_url": redirect_url,
            "invoice_duration": self.settings.invoice_duration_seconds,
        }
        if request.metadata:
            body["metadata"] = request.metadata
        return body

    def create_invoice(self, payload: Any) -> dict[str, Any]:
        """Create a gateway invoice for a reservation request.

        Args:
            payload: Raw request body

        Returns:
            The gateway invoice object, unchanged.

        Raises:
            ValidationError: Missing or malformed fields
            GatewayError: Gateway answered non-2xx (status/body relayed)
            PaymentError: Gateway not configured or unreachable
        """
        request = InvoiceRequest.from_payload(payload)
        external_id = build_external_id(request.slot_id, self._id_clock())
        body = self.build_invoice_body(request, external_id)

        invoice = self.gateway.create_invoice(body)

        log_payment_operation(
            logger,
            "create_invoice",
            external_id=external_id,
            slot_id=request.slot_id,
            amount=body["amount"],
            status=invoice.get("status"),
            invoice_id=invoice.get("id"),
        )

        self._persist_draft(invoice)
        return invoice

    def _persist_draft(self, invoice: dict[str, Any]) -> None:
        """Store a draft payment record keyed by the gateway invoice id.

        The draft is merged, and a callback that already reached the record
        keeps its status and timestamps. Failures are logged and swallowed.
        """
        resource_id = invoice.get("id")
        if not resource_id:
            logger.warning("Invoice response has no id; draft payment not stored")
            return

        record = PaymentRecord(
            status=str(invoice.get("status") or "PENDING"),
            external_id=invoice.get("external_id"),
            resource_id=str(resource_id),
            created_at=self._clock(),
            raw=invoice,
        )
        key = payment_key(str(resource_id))
        draft = record.to_document()
        try:
            existing = self.store.get(key)
            if existing is not None:
                draft = {field: value for field, value in draft.items() if field not in existing}
            self.store.update(key, draft)
        except Exception as e:
            log_payment_operation(
                logger,
                "persist_draft",
                external_id=record.external_id,
                error=f"Failed to persist draft invoice: {e}",
            )
