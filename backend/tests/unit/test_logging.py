"""Unit tests for correlation-id aware logging helpers."""

import logging

import pytest

from intellipark.utils.logging import (
    NO_CORRELATION_ID,
    CorrelationIdFilter,
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_payment_operation,
    log_webhook_event,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def _clear_correlation():
    clear_correlation_id()
    yield
    clear_correlation_id()


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)


class TestCorrelationId:
    def test_set_and_get(self) -> None:
        assert set_correlation_id("req-1") == "req-1"
        assert get_correlation_id() == "req-1"

    def test_generated_when_missing(self) -> None:
        cid = set_correlation_id()

        assert cid
        assert get_correlation_id() == cid

    def test_clear(self) -> None:
        set_correlation_id("req-1")
        clear_correlation_id()

        assert get_correlation_id() is None

    def test_filter_adds_attribute(self) -> None:
        record = _record()
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == NO_CORRELATION_ID

        set_correlation_id("req-2")
        record = _record()
        CorrelationIdFilter().filter(record)
        assert record.correlation_id == "req-2"

    def test_formatter_prefixes_message(self) -> None:
        set_correlation_id("req-3")

        output = StructuredFormatter("%(message)s").format(_record("payment stored"))

        assert output == "[req-3] payment stored"

    def test_get_logger_attaches_filter_once(self) -> None:
        logger = get_logger("intellipark.test.filters")
        get_logger("intellipark.test.filters")

        filters = [f for f in logger.filters if isinstance(f, CorrelationIdFilter)]
        assert len(filters) == 1


class TestLogWebhookEvent:
    """Log level follows the processing result."""

    @pytest.mark.parametrize(
        ("result", "error", "level"),
        [
            ("migrated", None, logging.INFO),
            ("received", None, logging.INFO),
            ("unassociated", None, logging.WARNING),
            ("no_reservation", None, logging.WARNING),
            ("stale_status", None, logging.WARNING),
            ("error", "store unavailable", logging.ERROR),
        ],
    )
    def test_levels(
        self,
        caplog: pytest.LogCaptureFixture,
        result: str,
        error: str | None,
        level: int,
    ) -> None:
        logger = get_logger("intellipark.test.webhook")

        with caplog.at_level(logging.DEBUG, logger="intellipark.test.webhook"):
            log_webhook_event(logger, "PAID", "inv_1", slot_id="A12", result=result, error=error)

        record = caplog.records[-1]
        assert record.levelno == level
        assert record.idempotency_key == "inv_1"
        assert record.event_status == "PAID"
        assert f"result={result}" in record.getMessage()

    def test_without_key(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("intellipark.test.webhook")

        with caplog.at_level(logging.INFO, logger="intellipark.test.webhook"):
            log_webhook_event(logger, "UNKNOWN", None, result="unassociated")

        assert "(no-key)" in caplog.records[-1].getMessage()


class TestLogPaymentOperation:
    def test_context_fields(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("intellipark.test.payment")

        with caplog.at_level(logging.INFO, logger="intellipark.test.payment"):
            log_payment_operation(
                logger,
                "create_invoice",
                external_id="SLOT-A12-1",
                slot_id="A12",
                amount=50,
                invoice_id="inv_1",
            )

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.external_id == "SLOT-A12-1"
        assert record.invoice_id == "inv_1"
        assert "Payment operation: create_invoice" in record.getMessage()

    def test_error_logged_at_error_level(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("intellipark.test.payment")

        with caplog.at_level(logging.INFO, logger="intellipark.test.payment"):
            log_payment_operation(logger, "persist_draft", error="boom")

        assert caplog.records[-1].levelno == logging.ERROR
