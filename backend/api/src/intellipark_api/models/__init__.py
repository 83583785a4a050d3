"""API-specific request/response models.

Domain models (PaymentRecord, CanonicalEvent, ErrorResponse, ...) live in
intellipark.models and are reused here where they fit.

Modules:
- common: Health and error response wrappers
- invoices: Invoice creation request body
- webhooks: Webhook acknowledgement body
"""

from intellipark_api.models.common import HealthResponse
from intellipark_api.models.invoices import CreateInvoiceBody
from intellipark_api.models.webhooks import WebhookResponse

__all__ = [
    "CreateInvoiceBody",
    "HealthResponse",
    "WebhookResponse",
]
