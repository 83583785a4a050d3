"""SSM Parameter Store access for gateway secrets.

Used as the fallback source for the Xendit secret key and the webhook
callback token when they are not set in the environment.
"""

import logging
from functools import lru_cache

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

XENDIT_PARAMETER_PATH = "/intellipark/{environment}/xendit/{name}"


def xendit_parameter_name(environment: str, name: str) -> str:
    """SSM path of a Xendit secret, e.g. /intellipark/dev/xendit/secret_key."""
    return XENDIT_PARAMETER_PATH.format(environment=environment, name=name)


class SSMServiceError(Exception):
    """Raised when an SSM parameter cannot be retrieved."""

    pass


class SSMService:
    """Reads SecureString parameters with in-process caching.

    Usage:
        ssm = SSMService()
        api_key = ssm.get_parameter("/intellipark/dev/xendit/secret_key")
    """

    def __init__(self, client=None) -> None:
        self._client = client
        self._cache: dict[str, str] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Retrieve a decrypted parameter value.

        Args:
            name: Full parameter path
            use_cache: Whether to use a previously fetched value

        Returns:
            The decrypted parameter value.

        Raises:
            SSMServiceError: If the parameter cannot be retrieved.
        """
        if use_cache and name in self._cache:
            logger.debug("SSM cache hit for %s", name)
            return self._cache[name]

        try:
            if self._client is None:
                self._client = boto3.client("ssm")
            logger.info("Fetching SSM parameter: %s", name)
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "ParameterNotFound":
                raise SSMServiceError(f"SSM parameter not found: {name}") from e
            if error_code == "AccessDeniedException":
                raise SSMServiceError(
                    f"Access denied to SSM parameter: {name}. "
                    "Check IAM permissions for ssm:GetParameter."
                ) from e
            raise SSMServiceError(f"Failed to retrieve SSM parameter {name}: {e}") from e
        except BotoCoreError as e:
            # No credentials / no region: treat as "not configured"
            raise SSMServiceError(f"SSM unavailable while reading {name}: {e}") from e

        value: str = response["Parameter"]["Value"]
        self._cache[name] = value
        return value

    def get_optional_parameter(self, name: str) -> str | None:
        """Like get_parameter, but None when the parameter cannot be read.

        Used for secrets that may legitimately be unset in a deployment;
        callers decide how to fail.
        """
        try:
            return self.get_parameter(name)
        except SSMServiceError as e:
            logger.warning("%s", e)
            return None

    def clear_cache(self) -> None:
        """Forget all cached parameters."""
        self._cache.clear()
        logger.info("SSM parameter cache cleared")


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the shared SSMService instance (singleton pattern)."""
    return SSMService()


def reset_ssm_service() -> None:
    """Drop the shared SSMService instance (for testing only)."""
    get_ssm_service.cache_clear()
