"""Xendit invoice API client.

Creates invoices through ``POST /v2/invoices`` with HTTP Basic auth (the
secret API key as username, empty password). Webhook deliveries are handled
by webhook_handler and reconciliation, not here.
"""

import logging
from functools import lru_cache
from typing import Any

import httpx

from intellipark.config import get_settings
from intellipark.models.errors import ErrorCode, GatewayError, PaymentError

logger = logging.getLogger(__name__)

INVOICES_PATH = "/v2/invoices"


class XenditService:
    """Client for Xendit invoice operations.

    Usage:
        xendit = get_xendit_service()
        invoice = xendit.create_invoice({"external_id": "SLOT-A12-1690000000000", ...})
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.xendit.co",
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Xendit secret API key; may be empty, in which case
                create_invoice fails with GATEWAY_NOT_CONFIGURED.
            base_url: API base URL
            timeout: Transport timeout in seconds
            http_client: Pre-built httpx client (tests pass one with a MockTransport)
        """
        self._api_key = api_key
        self._client = http_client or httpx.Client(base_url=base_url, timeout=timeout)

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def create_invoice(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create an invoice.

        Args:
            body: Invoice request body (external_id, amount, payer_email, ...)

        Returns:
            The gateway's invoice object, unchanged.

        Raises:
            PaymentError: GATEWAY_NOT_CONFIGURED without an API key,
                GATEWAY_UNAVAILABLE on transport failure or a non-JSON reply.
            GatewayError: On a non-2xx reply, carrying its status and body.
        """
        if not self.is_configured:
            raise PaymentError(ErrorCode.GATEWAY_NOT_CONFIGURED)

        external_id = body.get("external_id")
        logger.info("Creating Xendit invoice %s", external_id)

        try:
            response = self._client.post(
                INVOICES_PATH,
                json=body,
                auth=httpx.BasicAuth(self._api_key, ""),
            )
        except httpx.HTTPError as e:
            logger.error("Xendit request failed for %s: %s", external_id, e)
            raise PaymentError(ErrorCode.GATEWAY_UNAVAILABLE) from e

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not response.is_success:
            logger.warning(
                "Xendit rejected invoice %s with HTTP %d",
                external_id,
                response.status_code,
            )
            if payload is None:
                raise GatewayError(
                    response.status_code,
                    response.text,
                    content_type=response.headers.get("content-type", "text/plain"),
                )
            raise GatewayError(response.status_code, payload)

        if not isinstance(payload, dict):
            logger.error("Xendit returned a non-object body for %s", external_id)
            raise PaymentError(ErrorCode.GATEWAY_UNAVAILABLE)

        logger.info("Xendit invoice %s created for %s", payload.get("id"), external_id)
        return payload

    def close(self) -> None:
        self._client.close()


@lru_cache(maxsize=1)
def get_xendit_service() -> XenditService:
    """Get the shared XenditService instance (singleton pattern)."""
    settings = get_settings()
    return XenditService(
        settings.xendit_api_key,
        base_url=settings.xendit_api_base_url,
        timeout=settings.xendit_timeout_seconds,
    )
