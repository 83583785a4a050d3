"""Stored document shapes for payments and slots.

Documents are persisted as plain dicts with camelCase keys; these models
build and read them.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import SlotStatus


class PaymentRecord(BaseModel):
    """Payment state at ``payments/<idempotencyKey>``.

    The key is the gateway resource id when known, else the external id.
    Timestamps are epoch milliseconds.
    """

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(..., description="Last status reported by the gateway")
    external_id: str | None = Field(default=None, alias="externalId")
    resource_id: str | None = Field(default=None, alias="resourceId")
    created_at: int | None = Field(default=None, alias="createdAt")
    last_update_at: int | None = Field(default=None, alias="lastUpdateAt")
    raw: dict[str, Any] | None = Field(
        default=None, description="Last gateway payload seen for this payment"
    )

    def to_document(self) -> dict[str, Any]:
        """Render as a store document, omitting unknown fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SlotRecord(BaseModel):
    """Slot availability at ``<slotId>``."""

    model_config = ConfigDict(populate_by_name=True)

    status: SlotStatus = SlotStatus.AVAILABLE
    reserved: bool = False

    @classmethod
    def reserved_slot(cls) -> "SlotRecord":
        return cls(status=SlotStatus.RESERVED, reserved=True)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
