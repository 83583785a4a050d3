"""Process-wide settings for the payments backend.

Settings are read once from environment variables and cached. Secrets
(the Xendit API key and the webhook callback token) fall back to SSM
Parameter Store when they are not present in the environment.

Usage:
    from intellipark.config import get_settings

    settings = get_settings()
    token = settings.xendit_webhook_token

Testing:
    Call reset_settings() after changing environment variables.
"""

import logging
import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_SUCCESS_REDIRECT_URL = (
    "https://intellipark2025-327e9.web.app/confirmation.html?slot={slot}&email={email}"
)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _resolve_secret(env_var: str, environment: str, name: str) -> str:
    """Read a secret from the environment, then from SSM.

    Args:
        env_var: Environment variable checked first
        environment: Deployment environment used in the SSM path
        name: Secret name under /intellipark/<environment>/xendit/

    Returns:
        Secret value, or an empty string if neither source has it.
    """
    from intellipark.services.ssm_service import get_ssm_service, xendit_parameter_name

    value = os.getenv(env_var)
    if value:
        return value

    value = get_ssm_service().get_optional_parameter(
        xendit_parameter_name(environment, name)
    )
    if value is None:
        logger.warning("%s not configured", env_var)
        return ""
    return value


class Settings(BaseModel):
    """Runtime configuration.

    Amount handling is explicit policy: a missing amount falls back to
    default_invoice_amount, an invalid one is rejected unless
    coerce_invalid_amount is enabled.
    """

    model_config = ConfigDict(frozen=True)

    environment: str = Field(default="dev", description="Environment name (dev/prod)")
    port: int = Field(default=8080, description="Listen port for run_server")
    log_level: str = Field(default="INFO")

    xendit_api_key: str = Field(default="", repr=False)
    xendit_webhook_token: str = Field(default="", repr=False)
    xendit_api_base_url: str = Field(default="https://api.xendit.co")
    xendit_timeout_seconds: float = Field(default=30.0, gt=0)

    invoice_currency: str = Field(default="PHP")
    invoice_duration_seconds: int = Field(default=900, gt=0)
    default_invoice_amount: float = Field(default=50, gt=0)
    coerce_invalid_amount: bool = Field(default=False)
    success_redirect_url: str = Field(default=DEFAULT_SUCCESS_REDIRECT_URL)

    store_backend: str = Field(default="dynamodb", pattern="^(dynamodb|memory)$")
    dynamodb_table_prefix: str = Field(default="intellipark-dev")
    cors_allow_origins: list[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (and SSM for secrets)."""
        environment = os.getenv("ENVIRONMENT", "dev")
        origins = os.getenv("CORS_ALLOW_ORIGINS", "*")

        return cls(
            environment=environment,
            port=int(os.getenv("PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            xendit_api_key=_resolve_secret("XENDIT_API_KEY", environment, "secret_key"),
            xendit_webhook_token=_resolve_secret(
                "XENDIT_WEBHOOK_TOKEN", environment, "webhook_token"
            ),
            xendit_api_base_url=os.getenv("XENDIT_API_BASE_URL", "https://api.xendit.co"),
            xendit_timeout_seconds=float(os.getenv("XENDIT_TIMEOUT_SECONDS", "30")),
            invoice_currency=os.getenv("INVOICE_CURRENCY", "PHP"),
            invoice_duration_seconds=int(os.getenv("INVOICE_DURATION_SECONDS", "900")),
            default_invoice_amount=float(os.getenv("DEFAULT_INVOICE_AMOUNT", "50")),
            coerce_invalid_amount=_env_bool("COERCE_INVALID_AMOUNT"),
            success_redirect_url=os.getenv("SUCCESS_REDIRECT_URL", DEFAULT_SUCCESS_REDIRECT_URL),
            store_backend=os.getenv("STORE_BACKEND", "dynamodb").lower(),
            dynamodb_table_prefix=os.getenv(
                "DYNAMODB_TABLE_PREFIX", f"intellipark-{environment}"
            ),
            cors_allow_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the shared Settings instance (singleton pattern)."""
    return Settings.from_env()


def reset_settings() -> None:
    """Clear cached settings (for testing only)."""
    get_settings.cache_clear()
