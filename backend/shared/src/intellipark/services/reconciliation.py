"""Payment-event reconciliation.

Merges one canonical gateway event into persistent payment and reservation
state. Deliveries are at-least-once and unordered, so every step is written
to converge: processing the same event again leaves the same final state.

Steps for one event:

1. Merge the payment record at ``payments/<key>`` (key = resource id, else
   external id). Events with neither id are acknowledged and ignored.
2. Derive the slot id from an external id of the form SLOT-<slotId>-<ts>.
   Other external ids stop here.
3. PAID-equivalent status with a pending reservation: migrate it
   (reservation written, slot reserved, pending deleted).
4. PAID-equivalent status without a pending reservation (already migrated,
   or a redelivery): mark the existing reservation paid.
5. Any other status: refresh paymentStatus/lastUpdated on the existing
   reservation. Slot and pending entries are never touched.

There is no lock per slot. With a non-transactional store a duplicate
delivery racing a migration may repeat it; the repeated writes carry the
same content.
"""

import re
from typing import TYPE_CHECKING, Any

from intellipark.models import (
    CanonicalEvent,
    ReconciliationOutcome,
    ReconciliationResult,
    SlotRecord,
)
from intellipark.services.store import payment_key, pending_key, reservation_key
from intellipark.utils.clock import Clock, now_millis
from intellipark.utils.logging import get_logger, log_webhook_event

if TYPE_CHECKING:
    from .store import ReservationStore

logger = get_logger(__name__)

SLOT_EXTERNAL_ID_PREFIX = "SLOT-"

# "PAID" anywhere except as the tail of a longer word ("UNPAID")
_PAID_PATTERN = re.compile(r"(?<![A-Z])PAID")


def is_paid_status(status: Any) -> bool:
    """Whether a gateway status is PAID-equivalent (case-insensitive)."""
    if not status:
        return False
    return _PAID_PATTERN.search(str(status).upper()) is not None


def slot_id_from_external_id(external_id: str | None) -> str | None:
    """Extract the slot id from a SLOT-<slotId>-<suffix> external id.

    Returns:
        The second ``-`` separated token, or None if the id does not
        follow the convention.
    """
    if not external_id or not external_id.startswith(SLOT_EXTERNAL_ID_PREFIX):
        return None
    parts = external_id.split("-")
    return parts[1] or None


class ReconciliationEngine:
    """Applies canonical webhook events to the reservation store."""

    def __init__(self, store: "ReservationStore", clock: Clock = now_millis) -> None:
        """Initialize the engine.

        Args:
            store: Reservation store
            clock: Millisecond clock for lastUpdateAt/paidAt/lastUpdated
        """
        self.store = store
        self._clock = clock

    def process(self, event: CanonicalEvent) -> ReconciliationResult:
        """Reconcile one event.

        Store failures propagate so the caller can answer 5xx and let the
        gateway redeliver.
        """
        key = event.idempotency_key
        if not key:
            log_webhook_event(logger, event.status, None, result="unassociated")
            return ReconciliationResult(
                outcome=ReconciliationOutcome.UNASSOCIATED,
                status=event.status,
            )

        now = self._clock()
        self._merge_payment(key, event, now)

        slot_id = slot_id_from_external_id(event.external_id)
        if slot_id is None:
            outcome = ReconciliationOutcome.PAYMENT_ONLY
        elif is_paid_status(event.status):
            outcome = self._apply_paid(slot_id, event.status, now)
        else:
            outcome = self._apply_status(slot_id, event.status, now)

        log_webhook_event(
            logger,
            event.status,
            key,
            slot_id=slot_id,
            result=outcome.value,
        )
        return ReconciliationResult(
            outcome=outcome,
            idempotency_key=key,
            slot_id=slot_id,
            status=event.status,
        )

    def _merge_payment(self, key: str, event: CanonicalEvent, now: int) -> None:
        fields: dict[str, Any] = {
            "status": event.status,
            "lastUpdateAt": now,
            "raw": event.raw,
        }
        if event.external_id:
            fields["externalId"] = event.external_id
        if event.resource_id:
            fields["resourceId"] = event.resource_id

        record_key = payment_key(key)
        if self.store.get(record_key) is None:
            # No draft from invoice creation; this delivery creates the record
            fields["createdAt"] = now
        self.store.update(record_key, fields)

    def _apply_paid(self, slot_id: str, status: str, now: int) -> ReconciliationOutcome:
        pending = self.store.get(pending_key(slot_id))
        if pending is not None:
            reservation = {**pending, "paymentStatus": status, "paidAt": now}
            if self.store.migrate_pending(
                slot_id, reservation, SlotRecord.reserved_slot().to_document()
            ):
                logger.info("Pending reservation for slot %s confirmed", slot_id)
                return ReconciliationOutcome.MIGRATED
            # Another delivery claimed the pending entry first

        existing = self.store.get(reservation_key(slot_id))
        if existing is None:
            logger.warning("Paid event for slot %s without pending or reservation", slot_id)
            return ReconciliationOutcome.NO_RESERVATION

        paid_at = existing.get("paidAt")
        if not (paid_at and is_paid_status(existing.get("paymentStatus"))):
            paid_at = now

        updated = self.store.update(
            reservation_key(slot_id),
            {"paymentStatus": status, "paidAt": paid_at},
            create=False,
        )
        if updated is None:
            return ReconciliationOutcome.NO_RESERVATION
        return ReconciliationOutcome.PAID_UPDATE

    def _apply_status(self, slot_id: str, status: str, now: int) -> ReconciliationOutcome:
        existing = self.store.get(reservation_key(slot_id))
        if existing is None:
            return ReconciliationOutcome.NO_RESERVATION

        if is_paid_status(existing.get("paymentStatus")):
            # Late non-terminal delivery; a paid reservation is never downgraded
            return ReconciliationOutcome.STALE_STATUS

        updated = self.store.update(
            reservation_key(slot_id),
            {"paymentStatus": status, "lastUpdated": now},
            create=False,
        )
        if updated is None:
            return ReconciliationOutcome.NO_RESERVATION
        return ReconciliationOutcome.STATUS_UPDATE
