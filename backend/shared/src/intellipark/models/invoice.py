"""Invoice request model for slot reservations."""

from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .errors import ValidationError

# Characters that would break the SLOT-<slotId>-<ts> convention or path keys
FORBIDDEN_SLOT_CHARS = ("-", "/")


class InvoiceRequest(BaseModel):
    """Request to create a gateway invoice for a slot.

    ``amount`` is kept as received; the invoice service applies the
    configured amount policy to it.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "email": "driver@example.com",
                    "slotId": "A12",
                    "amount": 50,
                    "metadata": {"plate": "ABC-1234"},
                }
            ]
        },
    )

    email: EmailStr = Field(..., description="Payer email address")
    slot_id: str = Field(..., alias="slotId", description="Slot being reserved")
    amount: Any = Field(default=None, description="Invoice amount; default applies if omitted")
    description: str | None = Field(default=None, description="Invoice description")
    metadata: dict[str, Any] | None = Field(default=None)

    @field_validator("slot_id")
    @classmethod
    def _check_slot_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("slotId must not be empty")
        for char in FORBIDDEN_SLOT_CHARS:
            if char in value:
                raise ValueError(f"slotId must not contain '{char}'")
        return value

    @classmethod
    def from_payload(cls, payload: Any) -> "InvoiceRequest":
        """Validate a raw JSON body.

        Raises:
            ValidationError: With a field-specific message on bad input.
        """
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        missing = [
            name for name in ("email", "slotId")
            if payload.get(name) in (None, "")
        ]
        if missing:
            raise ValidationError(
                "email and slotId are required",
                details={"missing": missing},
            )

        try:
            return cls.model_validate(payload)
        except pydantic.ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or "body"
            raise ValidationError(
                f"Invalid {field}: {first['msg']}",
                details={"field": field},
            ) from e
