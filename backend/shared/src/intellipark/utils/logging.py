"""Logging helpers with correlation ID support.

Usage:
    from intellipark.utils.logging import get_logger, log_webhook_event

    logger = get_logger(__name__)
    log_webhook_event(logger, "PAID", "inv_123", slot_id="A12", result="migrated")

The correlation ID is stored in a ContextVar, set per request by
CorrelationIdMiddleware, and prefixed to every record through
CorrelationIdFilter.
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

NO_CORRELATION_ID = "no-correlation-id"

# Results logged at WARNING rather than INFO
_WARNING_RESULTS = {"unassociated", "no_reservation", "stale_status"}


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: Incoming ID; a new one is generated if None.

    Returns:
        The correlation ID that was set
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Adds ``correlation_id`` to every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes formatted records with ``[<correlation_id>]``."""

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "correlation_id"):
            record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        base = super().format(record)
        return f"[{record.correlation_id}] {base}"


def configure_logging(level: str = "INFO") -> None:
    """Install a StructuredFormatter handler on the root logger.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger()
    root.setLevel(level)
    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        StructuredFormatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the correlation ID filter attached."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def _level_for(result: str | None, error: str | None) -> int:
    if error or result == "error":
        return logging.ERROR
    if result in _WARNING_RESULTS:
        return logging.WARNING
    return logging.INFO


def log_payment_operation(
    logger: logging.Logger,
    operation: str,
    *,
    external_id: str | None = None,
    slot_id: str | None = None,
    amount: float | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log an invoice/payment operation with structured context.

    Args:
        logger: Logger instance
        operation: Operation name (e.g. "create_invoice", "persist_draft")
        external_id: SLOT-<slotId>-<ts> id if known
        slot_id: Slot being paid for
        amount: Invoice amount
        status: Gateway status
        error: Error message if the operation failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {"operation": operation}
    if external_id:
        context["external_id"] = external_id
    if slot_id:
        context["slot_id"] = slot_id
    if amount is not None:
        context["amount"] = amount
    if status:
        context["status"] = status
    if error:
        context["error"] = error
    context.update(extra)

    msg_parts = [f"Payment operation: {operation}"]
    msg_parts.extend(f"{key}={value}" for key, value in context.items() if key != "operation")

    logger.log(_level_for(None, error), " | ".join(msg_parts), extra=context)


def log_webhook_event(
    logger: logging.Logger,
    status: str,
    idempotency_key: str | None,
    *,
    slot_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a gateway webhook delivery with structured context.

    Args:
        logger: Logger instance
        status: Canonical event status
        idempotency_key: Payment record key, None if unassociated
        slot_id: Slot derived from the external id, if any
        result: Processing result (received, migrated, unassociated, error, ...)
        error: Error message if processing failed
        **extra: Additional context fields
    """
    context: dict[str, Any] = {
        "event_status": status,
        "idempotency_key": idempotency_key,
    }
    if slot_id:
        context["slot_id"] = slot_id
    if result:
        context["result"] = result
    if error:
        context["error"] = error
    context.update(extra)

    msg_parts = [f"Webhook event: {status} ({idempotency_key or 'no-key'})"]
    if result:
        msg_parts.append(f"result={result}")
    if slot_id:
        msg_parts.append(f"slot={slot_id}")
    if error:
        msg_parts.append(f"error={error}")

    logger.log(_level_for(result, error), " | ".join(msg_parts), extra=context)
