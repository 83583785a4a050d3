"""Invoice creation endpoint.

The request body is read as raw JSON and handed to InvoiceService, which
owns validation. Errors surface through the registered exception handlers:

- ValidationError → 400 ``{"error", "details"}``
- GatewayError → gateway status and body relayed unchanged
- PaymentError → mapped status (missing API key or unreachable gateway → 500)
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from intellipark.models import ErrorCode, ErrorResponse, PaymentError, ValidationError
from intellipark.services.invoice_service import InvoiceService
from intellipark.utils.logging import get_logger, log_payment_operation
from intellipark_api.dependencies import get_invoice_service
from intellipark_api.models.invoices import CreateInvoiceBody

logger = get_logger(__name__)

router = APIRouter(tags=["invoices"])


@router.post(
    "/create-invoice",
    summary="Create a Xendit invoice for a slot",
    description="""
Create a payment invoice for a parking slot reservation.

The invoice is linked back to the slot through its external id
(`SLOT-<slotId>-<timestamp>`). A draft payment record is stored on a
best-effort basis; the webhook recreates it if it is missing.

**Notes:**
- `amount` falls back to the configured default when omitted
- The gateway invoice object is returned unchanged
- Gateway rejections are relayed with the gateway's own status and body
""",
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {"schema": CreateInvoiceBody.model_json_schema()}
            },
        }
    },
    responses={
        200: {"description": "Gateway invoice object"},
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        500: {"description": "Gateway not configured or unavailable", "model": ErrorResponse},
    },
)
async def create_invoice(
    request: Request,
    service: InvoiceService = Depends(get_invoice_service),
) -> dict[str, Any]:
    """Create an invoice and return the gateway's response."""
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be a JSON object") from e

    try:
        return await run_in_threadpool(service.create_invoice, payload)
    except PaymentError:
        raise
    except Exception as e:
        log_payment_operation(logger, "create_invoice", error=str(e))
        raise PaymentError(ErrorCode.INTERNAL, message="Failed to create invoice") from e
