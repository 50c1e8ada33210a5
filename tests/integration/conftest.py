"""
Integration test fixtures and configuration.

Integration tests run the handlers against moto-mocked SES and S3.
"""

from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock, patch

import boto3
import pytest
from moto import mock_aws

from gateway.shared.config import Settings

INBOUND_BUCKET = "gateway-inbound-integration"
INBOUND_PREFIX = "incoming/"


@pytest.fixture
def integration_settings() -> Settings:
    return Settings(
        worker_address="gateway@example.com",
        forward_addresses=["inbox@example.com"],
        allowed_senders=["allowed@x.com"],
        inbound_bucket_name=INBOUND_BUCKET,
        inbound_prefix=INBOUND_PREFIX,
        aws_region="us-west-2",
    )


@pytest.fixture
def integration_aws_setup() -> Generator[dict[str, Any], None, None]:
    """
    Fresh mocked AWS environment per test.

    Provides a verified worker identity and the bucket an SES S3 action
    writes raw inbound mail to.
    """
    with mock_aws():
        ses = boto3.client("ses", region_name="us-west-2")
        s3 = boto3.client("s3", region_name="us-west-2")

        ses.verify_email_identity(EmailAddress="gateway@example.com")
        s3.create_bucket(
            Bucket=INBOUND_BUCKET,
            CreateBucketConfiguration={"LocationConstraint": "us-west-2"},
        )

        yield {"ses": ses, "s3": s3}


@pytest.fixture
def ses_spy(integration_aws_setup) -> Generator[MagicMock, None, None]:
    """The moto SES client, wrapped so every call the gateway makes is recorded."""
    spy = MagicMock(wraps=integration_aws_setup["ses"])
    with patch("gateway.shared.tools.ses._get_client", return_value=spy):
        yield spy
