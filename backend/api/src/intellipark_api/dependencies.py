"""FastAPI dependency providers for shared services.

Process-wide objects are created once and cached with @lru_cache, then
injected into routes with Depends. Tests swap them through
``app.dependency_overrides`` and clear the caches with reset_services().

Usage in routes:
    from intellipark_api.dependencies import get_reconciliation_engine

    @router.post("/webhooks/xendit")
    async def webhook(engine: ReconciliationEngine = Depends(get_reconciliation_engine)):
        ...

Service Dependency Graph:
    Settings (get_settings)
        ├── ReservationStore (DynamoDB or in-memory)
        │       ├── ReconciliationEngine
        │       └── InvoiceService
        └── XenditService
                └── InvoiceService
"""

from functools import lru_cache

from fastapi import Depends

from intellipark.config import Settings, get_settings
from intellipark.services.dynamodb import get_dynamodb_store
from intellipark.services.invoice_service import InvoiceService
from intellipark.services.reconciliation import ReconciliationEngine
from intellipark.services.store import InMemoryReservationStore, ReservationStore
from intellipark.services.xendit_service import XenditService, get_xendit_service


def get_app_settings() -> Settings:
    return get_settings()


@lru_cache
def get_reservation_store() -> ReservationStore:
    """Get the configured reservation store.

    STORE_BACKEND=memory gives a process-local store for local development.
    """
    settings = get_settings()
    if settings.store_backend == "memory":
        return InMemoryReservationStore()
    return get_dynamodb_store(settings.dynamodb_table_prefix)


def get_gateway() -> XenditService:
    return get_xendit_service()


def get_reconciliation_engine(
    store: ReservationStore = Depends(get_reservation_store),
) -> ReconciliationEngine:
    """Engine bound to the injected store (cheap to build per request)."""
    return ReconciliationEngine(store=store)


def get_invoice_service(
    store: ReservationStore = Depends(get_reservation_store),
    gateway: XenditService = Depends(get_gateway),
    settings: Settings = Depends(get_app_settings),
) -> InvoiceService:
    return InvoiceService(store=store, gateway=gateway, settings=settings)


def reset_services() -> None:
    """Clear all cached service instances.

    Also resets settings, the DynamoDB store, the SSM client and the
    Xendit client singletons.
    """
    from intellipark.config import reset_settings
    from intellipark.services.dynamodb import reset_dynamodb_store
    from intellipark.services.ssm_service import reset_ssm_service

    get_reservation_store.cache_clear()
    get_xendit_service.cache_clear()

    reset_dynamodb_store()
    reset_ssm_service()
    reset_settings()
