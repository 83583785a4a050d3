"""Canonical webhook event and reconciliation result models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import ReconciliationOutcome

UNKNOWN_STATUS = "UNKNOWN"


class CanonicalEvent(BaseModel):
    """Gateway webhook payload reduced to the fields reconciliation needs.

    Produced by ``canonicalize_event`` whatever the delivery shape was.
    """

    model_config = ConfigDict(frozen=True)

    resource_id: str | None = Field(default=None, description="Gateway invoice id")
    external_id: str | None = Field(default=None, description="Our SLOT-<slotId>-<ts> id")
    status: str = Field(default=UNKNOWN_STATUS)
    raw: dict[str, Any] = Field(default_factory=dict, description="Payload as delivered")

    @property
    def idempotency_key(self) -> str | None:
        """Key of the payment record this event belongs to."""
        return self.resource_id or self.external_id


class ReconciliationResult(BaseModel):
    """Summary of what processing one event changed."""

    outcome: ReconciliationOutcome
    idempotency_key: str | None = None
    slot_id: str | None = None
    status: str | None = None
