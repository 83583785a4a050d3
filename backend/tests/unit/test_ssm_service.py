"""Unit tests for SSMService against moto."""

from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

from intellipark.services.ssm_service import (
    SSMService,
    SSMServiceError,
    get_ssm_service,
    reset_ssm_service,
    xendit_parameter_name,
)

PARAMETER = "/intellipark/test/xendit/secret_key"


@pytest.fixture
def ssm_client(aws_credentials: None) -> Generator[Any, None, None]:
    with mock_aws():
        client = boto3.client("ssm", region_name="eu-west-1")
        client.put_parameter(Name=PARAMETER, Value="xnd_secret", Type="SecureString")
        yield client


class TestParameterNames:
    def test_xendit_parameter_name(self):
        assert xendit_parameter_name("prod", "webhook_token") == (
            "/intellipark/prod/xendit/webhook_token"
        )


class TestGetParameter:
    """Tests for SSMService.get_parameter."""

    def test_reads_decrypted_value(self, ssm_client: Any):
        assert SSMService(ssm_client).get_parameter(PARAMETER) == "xnd_secret"

    def test_value_cached(self, ssm_client: Any):
        service = SSMService(ssm_client)
        service.get_parameter(PARAMETER)

        ssm_client.put_parameter(Name=PARAMETER, Value="rotated", Type="SecureString", Overwrite=True)

        assert service.get_parameter(PARAMETER) == "xnd_secret"
        assert service.get_parameter(PARAMETER, use_cache=False) == "rotated"

    def test_clear_cache(self, ssm_client: Any):
        service = SSMService(ssm_client)
        service.get_parameter(PARAMETER)
        ssm_client.put_parameter(Name=PARAMETER, Value="rotated", Type="SecureString", Overwrite=True)

        service.clear_cache()

        assert service.get_parameter(PARAMETER) == "rotated"

    def test_missing_parameter(self, ssm_client: Any):
        with pytest.raises(SSMServiceError, match="not found"):
            SSMService(ssm_client).get_parameter("/intellipark/test/xendit/missing")

    def test_optional_parameter(self, ssm_client: Any):
        service = SSMService(ssm_client)

        assert service.get_optional_parameter(PARAMETER) == "xnd_secret"
        assert service.get_optional_parameter("/intellipark/test/xendit/missing") is None


class TestSharedInstance:
    def test_singleton_until_reset(self):
        first = get_ssm_service()
        assert get_ssm_service() is first

        reset_ssm_service()

        assert get_ssm_service() is not first
