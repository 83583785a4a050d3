"""Webhook endpoint for Xendit invoice callbacks.

Xendit authenticates deliveries with a shared callback token in the
``x-callback-token`` header rather than a payload signature. The token is
checked before anything touches the store.

Deliveries are at-least-once and may arrive out of order; the
ReconciliationEngine makes reprocessing converge, so there is no separate
event-id ledger. Any failure answers 500 and the gateway redelivers.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool

from intellipark.config import Settings
from intellipark.models import AuthError, ErrorCode, ErrorResponse, PaymentError
from intellipark.services.reconciliation import ReconciliationEngine
from intellipark.services.webhook_handler import (
    CALLBACK_TOKEN_HEADER,
    canonicalize_event,
    verify_callback_token,
)
from intellipark.utils.logging import get_logger, log_webhook_event
from intellipark_api.dependencies import get_app_settings, get_reconciliation_engine
from intellipark_api.models.webhooks import WebhookResponse

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


def _parse_body(raw: bytes) -> Any:
    """Decode a delivery body; anything unparseable becomes an empty object."""
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook body is not valid JSON (%d bytes)", len(raw))
        return {}


@router.post(
    "/webhooks/xendit",
    summary="Receive Xendit invoice callbacks",
    description="""
Endpoint for Xendit invoice status callbacks.

**Authentication:** `x-callback-token` must equal the configured callback
token. Missing or wrong tokens get 403 and nothing is written.

Both payload shapes are accepted: fields at the top level, or nested under
`data`. A PAID status on a `SLOT-<slotId>-<ts>` invoice moves the pending
reservation to a confirmed one and marks the slot Reserved.

**Idempotent:** redelivering an event leaves the same final state.
""",
    response_model=WebhookResponse,
    responses={
        200: {
            "description": "Event processed (or acknowledged as a no-op)",
            "model": WebhookResponse,
        },
        403: {"description": "Missing or invalid callback token", "model": ErrorResponse},
        500: {"description": "Processing failed; the gateway will retry", "model": ErrorResponse},
    },
)
async def handle_xendit_webhook(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    engine: ReconciliationEngine = Depends(get_reconciliation_engine),
) -> WebhookResponse:
    """Authenticate, canonicalize and reconcile one delivery."""
    token = request.headers.get(CALLBACK_TOKEN_HEADER)
    try:
        verify_callback_token(token, settings.xendit_webhook_token)
    except AuthError as e:
        logger.warning("Webhook rejected: %s", e.reason)
        raise

    event = canonicalize_event(_parse_body(await request.body()))
    log_webhook_event(logger, event.status, event.idempotency_key, result="received")

    try:
        result = await run_in_threadpool(engine.process, event)
    except Exception as e:
        log_webhook_event(
            logger,
            event.status,
            event.idempotency_key,
            result="error",
            error=str(e),
        )
        raise PaymentError(ErrorCode.INTERNAL) from e

    return WebhookResponse.from_result(result)
