"""API routes package.

Routers are organized by domain:

- health: Liveness probes (/ and /api/ping)
- invoices: Xendit invoice creation
- webhooks: Xendit invoice callbacks

All routers are registered in main.py; invoices and webhooks under /api.
"""

from intellipark_api.routes.health import router as health_router
from intellipark_api.routes.invoices import router as invoices_router
from intellipark_api.routes.webhooks import router as webhooks_router

__all__ = [
    "health_router",
    "invoices_router",
    "webhooks_router",
]
