"""Webhook acknowledgement models."""

from pydantic import BaseModel, Field

from intellipark.models import ReconciliationOutcome, ReconciliationResult


class WebhookResponse(BaseModel):
    """Body returned once an event has been reconciled.

    No-ops (unassociated events, unknown slots) are acknowledged too so the
    gateway stops redelivering them.
    """

    received: bool = True
    outcome: ReconciliationOutcome
    idempotency_key: str | None = Field(
        default=None, description="Payment record key (invoice id, else external id)"
    )
    slot_id: str | None = None
    status: str | None = None

    @classmethod
    def from_result(cls, result: ReconciliationResult) -> "WebhookResponse":
        return cls(
            outcome=result.outcome,
            idempotency_key=result.idempotency_key,
            slot_id=result.slot_id,
            status=result.status,
        )
