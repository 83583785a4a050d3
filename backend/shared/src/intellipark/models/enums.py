"""Enumeration types for payment and slot state."""

from enum import Enum


class SlotStatus(str, Enum):
    """Status of a parking slot."""

    AVAILABLE = "Available"
    RESERVED = "Reserved"


class ReconciliationOutcome(str, Enum):
    """What a webhook event did to persistent state."""

    UNASSOCIATED = "unassociated"  # no resourceId/externalId, nothing written
    PAYMENT_ONLY = "payment_only"  # payment record merged, no slot link
    MIGRATED = "migrated"  # pending reservation confirmed
    PAID_UPDATE = "paid_update"  # existing reservation marked paid
    STATUS_UPDATE = "status_update"  # existing reservation status refreshed
    STALE_STATUS = "stale_status"  # non-terminal status after payment, ignored
    NO_RESERVATION = "no_reservation"  # slot linked but nothing to update
