"""DynamoDB-backed reservation store.

All documents live in one table, ``<prefix>-documents``, keyed by the
document path (``payments/inv_1``, ``pending/A12``, ``A12``...). Document
fields are stored as top-level attributes so updates can merge individual
fields with ``SET`` expressions.

DynamoDB offers conditional writes and TransactWriteItems, so this store
overrides ``migrate_pending`` to commit the whole migration at once.
"""

import json
import os
from decimal import Decimal
from typing import Any

import boto3
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from intellipark.models import StoreError
from intellipark.services.store import (
    ReservationStore,
    pending_key,
    reservation_key,
    slot_key,
)
from intellipark.utils.logging import get_logger

logger = get_logger(__name__)

KEY_ATTRIBUTE = "doc_path"
DOCUMENTS_TABLE = "documents"

# Position of the pending Delete in the migration transaction
PENDING_DELETE_INDEX = 2

_dynamodb_store_instance: "DynamoDBReservationStore | None" = None


def get_dynamodb_store(table_prefix: str | None = None) -> "DynamoDBReservationStore":
    """Get or create the shared DynamoDB store.

    Reusing one instance avoids building new boto3 clients per request.

    Args:
        table_prefix: Table name prefix. Only used on first call.
    """
    global _dynamodb_store_instance
    if _dynamodb_store_instance is None:
        _dynamodb_store_instance = DynamoDBReservationStore(table_prefix)
    return _dynamodb_store_instance


def reset_dynamodb_store() -> None:
    """Reset the shared instance (for testing only).

    Lets tests build a fresh store inside a mock_aws context.
    """
    global _dynamodb_store_instance
    _dynamodb_store_instance = None


def to_dynamo(value: Any) -> Any:
    """Convert a JSON-like value to DynamoDB-safe types (floats -> Decimal)."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def from_dynamo(value: Any) -> Any:
    """Convert DynamoDB Decimals back to int/float, recursively."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [from_dynamo(v) for v in value]
    return value


def _set_expression(fields: dict[str, Any]) -> tuple[str, dict[str, str], dict[str, Any]]:
    """Build ``SET #f0 = :v0, ...`` with placeholder names for every field.

    Placeholders sidestep DynamoDB reserved words such as ``status``.
    """
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    assignments = []
    for i, (field, value) in enumerate(fields.items()):
        names[f"#f{i}"] = field
        values[f":v{i}"] = value
        assignments.append(f"#f{i} = :v{i}")
    return "SET " + ", ".join(assignments), names, values


def _pending_already_claimed(error: ClientError) -> bool:
    """True if a migration was cancelled only because the pending entry is gone.

    TransactionCanceledException also covers throttling, conflicts with
    concurrent transactions and validation failures. Those are faults, not a
    lost race.
    """
    if error.response["Error"]["Code"] != "TransactionCanceledException":
        return False
    reasons = error.response.get("CancellationReasons") or []
    if len(reasons) <= PENDING_DELETE_INDEX:
        return False
    return reasons[PENDING_DELETE_INDEX].get("Code") == "ConditionalCheckFailed"


class DynamoDBReservationStore(ReservationStore):
    """Reservation store on a single DynamoDB table."""

    def __init__(self, table_prefix: str | None = None) -> None:
        """Initialize the store.

        Args:
            table_prefix: Table name prefix. Defaults to DYNAMODB_TABLE_PREFIX,
                else ``intellipark-<ENVIRONMENT>``.
        """
        environment = os.getenv("ENVIRONMENT", "dev")
        self.table_prefix = table_prefix or os.getenv(
            "DYNAMODB_TABLE_PREFIX", f"intellipark-{environment}"
        )
        self.table_name = f"{self.table_prefix}-{DOCUMENTS_TABLE}"
        self._dynamodb = boto3.resource("dynamodb")
        self._client = boto3.client("dynamodb")
        self._table = self._dynamodb.Table(self.table_name)
        self._serializer = TypeSerializer()

    def ensure_table(self) -> None:
        """Create the documents table if it does not exist yet."""
        try:
            self._client.describe_table(TableName=self.table_name)
            return
        except ClientError as e:
            if e.response["Error"]["Code"] != "ResourceNotFoundException":
                raise

        logger.info("Creating DynamoDB table %s", self.table_name)
        self._client.create_table(
            TableName=self.table_name,
            KeySchema=[{"AttributeName": KEY_ATTRIBUTE, "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": KEY_ATTRIBUTE, "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        self._client.get_waiter("table_exists").wait(TableName=self.table_name)

    def get(self, key: str) -> dict[str, Any] | None:
        response = self._table.get_item(Key={KEY_ATTRIBUTE: key}, ConsistentRead=True)
        item = response.get("Item")
        if item is None:
            return None
        item.pop(KEY_ATTRIBUTE, None)
        result: dict[str, Any] = from_dynamo(item)
        return result

    def set(self, key: str, document: dict[str, Any]) -> None:
        item = to_dynamo(document)
        item[KEY_ATTRIBUTE] = key
        self._table.put_item(Item=item)

    def update(
        self,
        key: str,
        fields: dict[str, Any],
        *,
        create: bool = True,
    ) -> dict[str, Any] | None:
        if not fields:
            current = self.get(key)
            return current if current is not None or not create else {}

        expression, names, values = _set_expression(to_dynamo(fields))
        kwargs: dict[str, Any] = {
            "Key": {KEY_ATTRIBUTE: key},
            "UpdateExpression": expression,
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
            "ReturnValues": "ALL_NEW",
        }
        if not create:
            names["#pk"] = KEY_ATTRIBUTE
            kwargs["ConditionExpression"] = "attribute_exists(#pk)"

        try:
            response = self._table.update_item(**kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return None
            logger.error("Update of %s failed: %s", key, e)
            raise StoreError(
                f"Failed to update {key}",
                details={"code": e.response["Error"]["Code"]},
            ) from e

        attrs = response.get("Attributes", {})
        attrs.pop(KEY_ATTRIBUTE, None)
        result: dict[str, Any] = from_dynamo(attrs)
        return result

    def remove(self, key: str) -> None:
        self._table.delete_item(Key={KEY_ATTRIBUTE: key})

    def _serialize_key(self, key: str) -> dict[str, Any]:
        return {KEY_ATTRIBUTE: self._serializer.serialize(key)}

    def _serialize_item(self, document: dict[str, Any]) -> dict[str, Any]:
        return {k: self._serializer.serialize(v) for k, v in to_dynamo(document).items()}

    def migrate_pending(
        self,
        slot_id: str,
        reservation: dict[str, Any],
        slot_fields: dict[str, Any],
    ) -> bool:
        """Confirm a pending reservation in one transaction.

        The pending delete is conditioned on the pending entry still
        existing, so only one of several concurrent deliveries commits.

        Returns:
            True if committed, False if the pending entry was already gone.
        """
        reservation_item = self._serialize_item(reservation)
        reservation_item.update(self._serialize_key(reservation_key(slot_id)))

        expression, names, values = _set_expression(to_dynamo(slot_fields))

        try:
            self._client.transact_write_items(
                TransactItems=[
                    {
                        "Put": {
                            "TableName": self.table_name,
                            "Item": reservation_item,
                        }
                    },
                    {
                        "Update": {
                            "TableName": self.table_name,
                            "Key": self._serialize_key(slot_key(slot_id)),
                            "UpdateExpression": expression,
                            "ExpressionAttributeNames": names,
                            "ExpressionAttributeValues": {
                                k: self._serializer.serialize(v) for k, v in values.items()
                            },
                        }
                    },
                    {
                        "Delete": {
                            "TableName": self.table_name,
                            "Key": self._serialize_key(pending_key(slot_id)),
                            "ConditionExpression": "attribute_exists(#pk)",
                            "ExpressionAttributeNames": {"#pk": KEY_ATTRIBUTE},
                        }
                    },
                ]
            )
            return True
        except ClientError as e:
            if _pending_already_claimed(e):
                logger.warning(
                    "Migration for slot %s cancelled; pending entry already claimed",
                    slot_id,
                )
                return False
            logger.error("Migration for slot %s failed: %s", slot_id, e)
            raise StoreError(
                f"Failed to confirm reservation for slot {slot_id}",
                details={"code": e.response["Error"]["Code"]},
            ) from e
