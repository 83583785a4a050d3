"""Invoice creation request schema.

Documents the body of POST /api/create-invoice in the OpenAPI schema. The
route reads the raw JSON itself so that missing fields answer 400 with the
service's own message instead of FastAPI's 422.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateInvoiceBody(BaseModel):
    """Request body for invoice creation."""

    model_config = ConfigDict(populate_by_name=True)

    email: str = Field(..., examples=["driver@example.com"])
    slot_id: str = Field(..., alias="slotId", examples=["A12"])
    amount: float | None = Field(
        default=None,
        description="Invoice amount; the configured default is used when omitted",
        examples=[50],
    )
    description: str | None = None
    metadata: dict[str, Any] | None = None
