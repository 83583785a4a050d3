"""Integration tests for DynamoDBReservationStore against moto."""

from decimal import Decimal
from typing import Any
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError

from intellipark.models import ErrorCode, StoreError
from intellipark.services.dynamodb import (
    KEY_ATTRIBUTE,
    DynamoDBReservationStore,
    from_dynamo,
    get_dynamodb_store,
    to_dynamo,
)
from intellipark.services.reconciliation import ReconciliationEngine
from intellipark.services.webhook_handler import canonicalize_event


def _cancelled(*codes: str) -> ClientError:
    """A TransactWriteItems cancellation with one reason per transaction item."""
    return ClientError(
        {
            "Error": {"Code": "TransactionCanceledException", "Message": "Transaction cancelled"},
            "CancellationReasons": [{"Code": code} for code in codes],
        },
        "TransactWriteItems",
    )


class TestConversions:
    def test_to_dynamo_converts_floats(self) -> None:
        assert to_dynamo({"amount": 12.5, "n": 3}) == {"amount": Decimal("12.5"), "n": 3}

    def test_from_dynamo_restores_numbers(self) -> None:
        value = {"a": Decimal("3"), "b": Decimal("2.5"), "c": [Decimal("1")], "d": "x"}

        assert from_dynamo(value) == {"a": 3, "b": 2.5, "c": [1], "d": "x"}


class TestDocumentOperations:
    """get/set/update/remove on the documents table."""

    def test_table_name(self, dynamodb_store: DynamoDBReservationStore) -> None:
        assert dynamodb_store.table_name == "test-intellipark-documents"

    def test_ensure_table_is_idempotent(self, dynamodb_store: DynamoDBReservationStore) -> None:
        dynamodb_store.ensure_table()

    def test_set_and_get(self, dynamodb_store: DynamoDBReservationStore) -> None:
        document = {
            "status": "PENDING",
            "createdAt": 1_700_000_000_000,
            "raw": {"amount": 12.5, "items": [{"qty": 1}]},
        }

        dynamodb_store.set("payments/inv_1", document)

        assert dynamodb_store.get("payments/inv_1") == document

    def test_key_attribute_not_returned(self, dynamodb_store: DynamoDBReservationStore) -> None:
        dynamodb_store.set("A12", {"status": "Available"})

        assert KEY_ATTRIBUTE not in dynamodb_store.get("A12")

    def test_get_missing(self, dynamodb_store: DynamoDBReservationStore) -> None:
        assert dynamodb_store.get("pending/Z9") is None

    def test_update_merges_fields(self, dynamodb_store: DynamoDBReservationStore) -> None:
        dynamodb_store.set("A12", {"status": "Available", "reserved": False, "level": 2})

        merged = dynamodb_store.update("A12", {"status": "Reserved", "reserved": True})

        assert merged == {"status": "Reserved", "reserved": True, "level": 2}
        assert dynamodb_store.get("A12") == merged

    def test_update_creates_by_default(self, dynamodb_store: DynamoDBReservationStore) -> None:
        dynamodb_store.update("payments/inv_2", {"status": "PAID", "lastUpdateAt": 5})

        assert dynamodb_store.get("payments/inv_2") == {"status": "PAID", "lastUpdateAt": 5}

    def test_update_without_create(self, dynamodb_store: DynamoDBReservationStore) -> None:
        result = dynamodb_store.update(
            "reservations/A12", {"paymentStatus": "PAID"}, create=False
        )

        assert result is None
        assert dynamodb_store.get("reservations/A12") is None

    def test_update_failure_raises_store_error(
        self, dynamodb_store: DynamoDBReservationStore
    ) -> None:
        throttled = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
            "UpdateItem",
        )

        with patch.object(dynamodb_store._table, "update_item", side_effect=throttled):
            with pytest.raises(StoreError) as exc_info:
                dynamodb_store.update("A12", {"status": "Reserved"})

        assert exc_info.value.code == ErrorCode.STORE_FAILED
        assert exc_info.value.details == {"code": "ProvisionedThroughputExceededException"}

    def test_remove(self, dynamodb_store: DynamoDBReservationStore) -> None:
        dynamodb_store.set("pending/A12", {"slotId": "A12"})

        dynamodb_store.remove("pending/A12")
        dynamodb_store.remove("pending/A12")

        assert dynamodb_store.get("pending/A12") is None


class TestMigratePending:
    """Transactional migration of a pending reservation."""

    @pytest.fixture
    def seeded(
        self,
        dynamodb_store: DynamoDBReservationStore,
        pending_reservation: dict[str, Any],
    ) -> DynamoDBReservationStore:
        dynamodb_store.set("pending/A12", pending_reservation)
        dynamodb_store.set("A12", {"status": "Available", "reserved": False, "level": 2})
        return dynamodb_store

    def test_commits_all_writes(
        self,
        seeded: DynamoDBReservationStore,
        pending_reservation: dict[str, Any],
    ) -> None:
        reservation = {**pending_reservation, "paymentStatus": "PAID", "paidAt": 1}

        applied = seeded.migrate_pending(
            "A12", reservation, {"status": "Reserved", "reserved": True}
        )

        assert applied is True
        assert seeded.get("reservations/A12") == reservation
        assert seeded.get("A12") == {"status": "Reserved", "reserved": True, "level": 2}
        assert seeded.get("pending/A12") is None

    def test_second_migration_cancelled(
        self,
        seeded: DynamoDBReservationStore,
        pending_reservation: dict[str, Any],
    ) -> None:
        first = {**pending_reservation, "paymentStatus": "PAID", "paidAt": 1}
        seeded.migrate_pending("A12", first, {"status": "Reserved", "reserved": True})

        applied = seeded.migrate_pending(
            "A12",
            {**pending_reservation, "paymentStatus": "PAID", "paidAt": 2},
            {"status": "Reserved", "reserved": True},
        )

        assert applied is False
        assert seeded.get("reservations/A12")["paidAt"] == 1

    def test_claimed_pending_reported_from_cancellation_reasons(
        self, seeded: DynamoDBReservationStore
    ) -> None:
        cancelled = _cancelled("None", "None", "ConditionalCheckFailed")

        with patch.object(seeded._client, "transact_write_items", side_effect=cancelled):
            applied = seeded.migrate_pending("A12", {"paymentStatus": "PAID"}, {"reserved": True})

        assert applied is False

    @pytest.mark.parametrize(
        "reasons",
        [
            ("None", "ThrottlingError", "None"),
            ("TransactionConflict", "None", "None"),
            ("None", "None", "TransactionConflict"),
            ("ValidationError", "None", "None"),
            (),
        ],
    )
    def test_other_cancellations_raise(
        self,
        seeded: DynamoDBReservationStore,
        pending_reservation: dict[str, Any],
        reasons: tuple[str, ...],
    ) -> None:
        cancelled = _cancelled(*reasons)

        with patch.object(seeded._client, "transact_write_items", side_effect=cancelled):
            with pytest.raises(StoreError) as exc_info:
                seeded.migrate_pending("A12", {"paymentStatus": "PAID"}, {"reserved": True})

        assert exc_info.value.code == ErrorCode.STORE_FAILED
        assert seeded.get("pending/A12") == pending_reservation
        assert seeded.get("reservations/A12") is None

    def test_engine_propagates_failed_migration(
        self,
        seeded: DynamoDBReservationStore,
        pending_reservation: dict[str, Any],
        paid_event: dict[str, Any],
    ) -> None:
        engine = ReconciliationEngine(seeded, clock=lambda: 1_700_000_000_000)
        cancelled = _cancelled("None", "ThrottlingError", "None")

        with patch.object(seeded._client, "transact_write_items", side_effect=cancelled):
            with pytest.raises(StoreError):
                engine.process(canonicalize_event(paid_event))

        assert seeded.get("pending/A12") == pending_reservation
        assert seeded.get("reservations/A12") is None
        assert seeded.get("A12") == {"status": "Available", "reserved": False, "level": 2}

    def test_raw_items_use_document_path(self, seeded: DynamoDBReservationStore) -> None:
        seeded.migrate_pending("A12", {"paymentStatus": "PAID"}, {"reserved": True})

        table = boto3.resource("dynamodb", region_name="eu-west-1").Table(seeded.table_name)
        item = table.get_item(Key={KEY_ATTRIBUTE: "reservations/A12"})["Item"]
        assert item == {KEY_ATTRIBUTE: "reservations/A12", "paymentStatus": "PAID"}


class TestSharedInstance:
    def test_singleton(self, aws_credentials: None) -> None:
        first = get_dynamodb_store("test-intellipark")

        assert get_dynamodb_store() is first
        assert first.table_name == "test-intellipark-documents"
