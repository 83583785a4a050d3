"""FastAPI application for the IntelliPark payments backend.

Endpoints:
- Health checks (/ and /api/ping)
- Xendit invoice creation (/api/create-invoice)
- Xendit invoice callbacks (/api/webhooks/xendit)
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from intellipark import __version__
from intellipark.config import get_settings
from intellipark.utils.logging import configure_logging
from intellipark_api.exceptions import register_exception_handlers
from intellipark_api.middleware.correlation import CorrelationIdMiddleware
from intellipark_api.routes.health import router as health_router
from intellipark_api.routes.invoices import router as invoices_router
from intellipark_api.routes.webhooks import router as webhooks_router


def create_app() -> FastAPI:
    """Build the application from current settings."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="IntelliPark Payments API",
        description="Invoice creation and payment webhook reconciliation for parking slots",
        version=__version__,
    )

    # Credentials stay off so a wildcard origin remains valid
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(invoices_router, prefix="/api")
    app.include_router(webhooks_router, prefix="/api")
    return app


app = create_app()

# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int | None = None, reload: bool = False) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: PORT setting, 8080)
        reload: Enable hot reload for development (default: False)
    """
    import uvicorn

    port = port or get_settings().port
    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run(
            "intellipark_api.main:app",
            host=host,
            port=port,
            reload=True,
            reload_dirs=["backend/api/src", "backend/shared/src"],
        )
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
