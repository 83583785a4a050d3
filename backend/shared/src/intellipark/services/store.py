"""Reservation store contract and in-memory implementation.

The store is a keyed document store addressed by path-like keys:

    payments/<idempotencyKey>   PaymentRecord
    pending/<slotId>            PendingReservation
    reservations/<slotId>       ReservationRecord
    <slotId>                    SlotRecord

The generic contract has get/set/update/remove and nothing else: no
multi-key transactions and no compare-and-swap. ``migrate_pending`` is the
one multi-key operation the reconciliation engine needs; the base
implementation performs it as three sequential writes, and stores that
support transactions override it.
"""

import copy
import threading
from abc import ABC, abstractmethod
from typing import Any


def payment_key(idempotency_key: str) -> str:
    return f"payments/{idempotency_key}"


def pending_key(slot_id: str) -> str:
    return f"pending/{slot_id}"


def reservation_key(slot_id: str) -> str:
    return f"reservations/{slot_id}"


def slot_key(slot_id: str) -> str:
    return slot_id


class ReservationStore(ABC):
    """Keyed document store used by the invoice and webhook paths."""

    @abstractmethod
    def get(self, key: str) -> dict[str, Any] | None:
        """Return the document at ``key`` or None if absent."""

    @abstractmethod
    def set(self, key: str, document: dict[str, Any]) -> None:
        """Replace the document at ``key``."""

    @abstractmethod
    def update(
        self,
        key: str,
        fields: dict[str, Any],
        *,
        create: bool = True,
    ) -> dict[str, Any] | None:
        """Merge ``fields`` into the document at ``key``.

        Fields not named are left as stored.

        Args:
            key: Document key
            fields: Top-level fields to set
            create: If False, only update an existing document

        Returns:
            The merged document, or None if create=False and the
            document did not exist.
        """

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete the document at ``key`` (no error if absent)."""

    def migrate_pending(
        self,
        slot_id: str,
        reservation: dict[str, Any],
        slot_fields: dict[str, Any],
    ) -> bool:
        """Confirm a pending reservation.

        Writes the reservation, marks the slot, then deletes the pending
        entry, in that order. Not atomic: a crash part-way leaves the
        pending entry in place so a redelivered event repeats the sequence.

        Returns:
            True if the migration was applied.
        """
        self.set(reservation_key(slot_id), reservation)
        self.update(slot_key(slot_id), slot_fields)
        self.remove(pending_key(slot_id))
        return True


class InMemoryReservationStore(ReservationStore):
    """Dict-backed store for local development and tests.

    Documents are deep-copied on the way in and out so callers can't mutate
    stored state by accident. ``writes`` records every mutation as
    ``(operation, key)`` in call order.
    """

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None) -> None:
        self._documents: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})
        self._lock = threading.Lock()
        self.writes: list[tuple[str, str]] = []

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            document = self._documents.get(key)
            return copy.deepcopy(document) if document is not None else None

    def set(self, key: str, document: dict[str, Any]) -> None:
        with self._lock:
            self._documents[key] = copy.deepcopy(document)
            self.writes.append(("set", key))

    def update(
        self,
        key: str,
        fields: dict[str, Any],
        *,
        create: bool = True,
    ) -> dict[str, Any] | None:
        with self._lock:
            if key not in self._documents and not create:
                return None
            document = self._documents.setdefault(key, {})
            document.update(copy.deepcopy(fields))
            self.writes.append(("update", key))
            return copy.deepcopy(document)

    def remove(self, key: str) -> None:
        with self._lock:
            self._documents.pop(key, None)
            self.writes.append(("remove", key))

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Copy of every stored document, keyed by path."""
        with self._lock:
            return copy.deepcopy(self._documents)
