#!/usr/bin/env python3
"""Seed the development documents table with parking slots.

Creates ``intellipark-<env>-documents`` if needed, writes Available slot
documents and, optionally, a pending reservation so the webhook flow can be
exercised end to end without the client app:

- Slots A1..A<n> and B1..B<n>, status Available
- pending/<slotId> for the slot given with --pending-slot

Usage:
    python backend/scripts/seed_data.py --env dev
    python backend/scripts/seed_data.py --env dev --slots 20
    python backend/scripts/seed_data.py --env dev --clear-first --pending-slot A12
"""

import argparse
import sys
from typing import Any

import boto3

from intellipark.models import SlotRecord
from intellipark.services.dynamodb import KEY_ATTRIBUTE, DynamoDBReservationStore
from intellipark.services.store import ReservationStore, pending_key, slot_key

SLOT_ROWS = ("A", "B")


def slot_ids(per_row: int) -> list[str]:
    """Slot ids for every row, e.g. A1..A12, B1..B12."""
    return [f"{row}{n}" for row in SLOT_ROWS for n in range(1, per_row + 1)]


def seed_slots(store: ReservationStore, per_row: int) -> list[str]:
    """Write an Available slot document for every slot id."""
    ids = slot_ids(per_row)
    available = SlotRecord().to_document()
    for slot_id in ids:
        store.set(slot_key(slot_id), available)
    print(f"  Seeded {len(ids)} slots ({ids[0]}..{ids[-1]})")
    return ids


def seed_pending(store: ReservationStore, slot_id: str, email: str) -> dict[str, Any]:
    """Write the pending reservation the client app creates before checkout."""
    pending = {
        "email": email,
        "slotId": slot_id,
        "plate": "DEV 0001",
        "durationHours": 2,
    }
    store.set(pending_key(slot_id), pending)
    print(f"  Seeded pending reservation for {slot_id} ({email})")
    return pending


def clear_documents(store: DynamoDBReservationStore) -> int:
    """Delete every document in the table."""
    table = boto3.resource("dynamodb").Table(store.table_name)
    count = 0
    scan_kwargs: dict[str, Any] = {
        "ProjectionExpression": "#pk",
        "ExpressionAttributeNames": {"#pk": KEY_ATTRIBUTE},
    }
    with table.batch_writer() as batch:
        while True:
            response = table.scan(**scan_kwargs)
            for item in response.get("Items", []):
                batch.delete_item(Key={KEY_ATTRIBUTE: item[KEY_ATTRIBUTE]})
                count += 1
            if "LastEvaluatedKey" not in response:
                break
            scan_kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
    return count


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the documents table with parking slots")
    parser.add_argument("--env", default="dev", help="Environment name (default: dev)")
    parser.add_argument(
        "--table-prefix",
        help="Table prefix (default: intellipark-<env>)",
    )
    parser.add_argument("--slots", type=int, default=12, help="Slots per row (default: 12)")
    parser.add_argument("--pending-slot", help="Also create pending/<slot> for this slot")
    parser.add_argument(
        "--email",
        default="driver@example.com",
        help="Email on the pending reservation",
    )
    parser.add_argument(
        "--clear-first",
        action="store_true",
        help="Delete all documents before seeding",
    )
    args = parser.parse_args(argv)

    store = DynamoDBReservationStore(args.table_prefix or f"intellipark-{args.env}")
    print(f"Seeding {store.table_name}")
    store.ensure_table()

    if args.clear_first:
        print(f"  Cleared {clear_documents(store)} documents")

    seed_slots(store, args.slots)
    if args.pending_slot:
        seed_pending(store, args.pending_slot, args.email)

    print("\n✅ Seed completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
