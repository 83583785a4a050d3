"""Shared API response models.

Error bodies use intellipark.models.ErrorResponse; this module only adds
HTTP-layer concerns.
"""

from pydantic import BaseModel, Field

from intellipark.models.errors import ErrorResponse

__all__ = ["ErrorResponse", "HealthResponse"]


class HealthResponse(BaseModel):
    """Liveness probe body."""

    ok: bool = True
    service: str = Field(..., examples=["intellipark-backend"])
    time: int = Field(..., description="Server time, epoch milliseconds")
