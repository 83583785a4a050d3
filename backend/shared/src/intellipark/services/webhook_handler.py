"""Webhook ingest: authentication and canonicalization of gateway events.

Kept apart from HTTP routing so it can be unit tested without a client and
reused by any transport.

Xendit has delivered invoice callbacks in two shapes over time: fields at
the top level, or nested under ``data``. Both reduce to one CanonicalEvent.
"""

import hmac
from typing import Any

from intellipark.models import UNKNOWN_STATUS, AuthError, CanonicalEvent

CALLBACK_TOKEN_HEADER = "x-callback-token"


def verify_callback_token(token: str | None, expected: str) -> None:
    """Check the shared-secret callback token.

    An unconfigured secret rejects every delivery.

    Raises:
        AuthError: If the token is missing or does not match exactly.
    """
    if not token or not expected:
        raise AuthError("missing token" if not token else "no secret configured")
    if not hmac.compare_digest(token.encode("utf-8"), expected.encode("utf-8")):
        raise AuthError()


def _first_present(*values: Any) -> Any:
    """Return the first truthy value, or None."""
    for value in values:
        if value:
            return value
    return None


def _as_text(value: Any) -> str | None:
    return None if value is None else str(value)


def canonicalize_event(body: Any) -> CanonicalEvent:
    """Reduce a webhook payload to a CanonicalEvent.

    Precedence:
        resource_id: ``id``, else ``data.id``
        external_id: ``external_id``, else ``data.external_id``
        status: ``status``, else ``data.status``, else ``event``, else UNKNOWN

    Empty values count as absent. Never raises: a payload that is not an
    object yields an event with no ids and UNKNOWN status.
    """
    if not isinstance(body, dict):
        return CanonicalEvent(raw={})

    data = body.get("data")
    if not isinstance(data, dict):
        data = {}

    resource_id = _first_present(body.get("id"), data.get("id"))
    external_id = _first_present(body.get("external_id"), data.get("external_id"))
    status = _first_present(body.get("status"), data.get("status"), body.get("event"))

    return CanonicalEvent(
        resource_id=_as_text(resource_id),
        external_id=_as_text(external_id),
        status=_as_text(status) or UNKNOWN_STATUS,
        raw=body,
    )
