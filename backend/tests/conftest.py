"""Pytest configuration and fixtures for IntelliPark payments backend tests.

This module provides reusable fixtures for testing:
- Environment defaults (set before any application import)
- In-memory and moto-backed DynamoDB reservation stores
- A Xendit client wired to an httpx MockTransport
- Sample pending reservation, slot and webhook payloads
"""

import json
import os
from typing import Any, Callable, Generator

import httpx
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-intellipark")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("XENDIT_API_KEY", "xnd_development_test_key")
os.environ.setdefault("XENDIT_WEBHOOK_TOKEN", "test-callback-token")

# Only set fake credentials for moto if no real credentials are present
if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from intellipark.config import Settings  # noqa: E402
from intellipark.services.dynamodb import DynamoDBReservationStore  # noqa: E402
from intellipark.services.store import InMemoryReservationStore  # noqa: E402
from intellipark.services.xendit_service import XenditService  # noqa: E402

TEST_WEBHOOK_TOKEN = "test-callback-token"
TEST_API_KEY = "xnd_development_test_key"
TEST_TABLE_PREFIX = "test-intellipark"
FIXED_NOW = 1_700_000_000_000


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached settings and services before and after each test.

    Tests using mock_aws then get fresh boto3 clients inside the mock
    context rather than ones built by a previous test.
    """
    from intellipark_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === Configuration ===


@pytest.fixture
def settings() -> Settings:
    """Settings with gateway secrets configured and the in-memory store."""
    return Settings(
        environment="test",
        xendit_api_key=TEST_API_KEY,
        xendit_webhook_token=TEST_WEBHOOK_TOKEN,
        store_backend="memory",
        dynamodb_table_prefix=TEST_TABLE_PREFIX,
    )


@pytest.fixture
def fixed_clock() -> Callable[[], int]:
    """Clock that always returns FIXED_NOW."""
    return lambda: FIXED_NOW


class StepClock:
    """Clock that advances by ``step`` ms on every call."""

    def __init__(self, start: int = FIXED_NOW, step: int = 1000) -> None:
        self.now = start - step
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture
def step_clock() -> StepClock:
    return StepClock()


# === Sample Data ===


@pytest.fixture
def pending_reservation() -> dict[str, Any]:
    """Pending reservation written by the client app before payment."""
    return {
        "email": "driver@example.com",
        "slotId": "A12",
        "plate": "ABC 1234",
        "startTime": "2025-07-22T08:00:00+08:00",
        "durationHours": 2,
    }


@pytest.fixture
def seeded_documents(pending_reservation: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Store contents for slot A12 awaiting payment."""
    return {
        "pending/A12": pending_reservation,
        "A12": {"status": "Available", "reserved": False},
    }


@pytest.fixture
def memory_store(seeded_documents: dict[str, dict[str, Any]]) -> InMemoryReservationStore:
    """In-memory store seeded with a pending reservation for A12."""
    return InMemoryReservationStore(seeded_documents)


@pytest.fixture
def paid_event() -> dict[str, Any]:
    """Top-level shaped Xendit invoice callback for a paid A12 invoice."""
    return {
        "id": "inv_5f2b7c1d",
        "external_id": "SLOT-A12-1690000000000",
        "status": "PAID",
        "amount": 50,
        "paid_amount": 50,
        "payer_email": "driver@example.com",
        "payment_method": "EWALLET",
        "paid_at": "2023-07-22T04:26:40.000Z",
    }


# === AWS Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_store(aws_credentials: None) -> Generator[DynamoDBReservationStore, None, None]:
    """DynamoDB store on a mocked documents table."""
    with mock_aws():
        store = DynamoDBReservationStore(TEST_TABLE_PREFIX)
        store.ensure_table()
        yield store


# === Xendit Fixtures ===


def _invoice_for(external_id: str, invoice_id: str = "inv_5f2b7c1d") -> dict[str, Any]:
    """Invoice object as Xendit returns it from POST /v2/invoices."""
    return {
        "id": invoice_id,
        "external_id": external_id,
        "status": "PENDING",
        "amount": 50,
        "currency": "PHP",
        "payer_email": "driver@example.com",
        "invoice_url": f"https://checkout-staging.xendit.co/web/{invoice_id}",
        "expiry_date": "2023-07-22T04:41:40.000Z",
    }


class RecordingTransport:
    """httpx MockTransport handler that records requests.

    By default answers with a PENDING invoice echoing the request's
    external_id. Set ``status_code``/``json_body``/``text`` for a canned
    reply, or ``error`` to raise a transport exception.
    """

    def __init__(self) -> None:
        self.status_code = 200
        self.json_body: Any = None
        self.text: str | None = None
        self.error: Exception | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        if self.json_body is not None:
            return httpx.Response(self.status_code, json=self.json_body)
        external_id = json.loads(request.content)["external_id"]
        return httpx.Response(self.status_code, json=_invoice_for(external_id))

    @property
    def last_body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def xendit_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def xendit_service(xendit_transport: RecordingTransport) -> Generator[XenditService, None, None]:
    """XenditService whose HTTP calls go to xendit_transport."""
    client = httpx.Client(
        base_url="https://api.xendit.co",
        transport=httpx.MockTransport(xendit_transport),
    )
    service = XenditService(TEST_API_KEY, http_client=client)
    yield service
    service.close()
