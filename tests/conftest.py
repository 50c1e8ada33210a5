"""
Pytest Configuration and Shared Fixtures

Provides test settings, sample messages and recording transport
doubles. moto fixtures for the integration tests live in
tests/integration/conftest.py.
"""

import json
import os

import pytest

# Set test environment before importing application modules
os.environ["GATEWAY_WORKER_ADDRESS"] = "gateway@example.com"
os.environ["GATEWAY_FORWARD_ADDRESSES"] = json.dumps(["inbox@example.com"])
os.environ["GATEWAY_AWS_REGION"] = "us-west-2"
os.environ["AWS_DEFAULT_REGION"] = "us-west-2"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"

from gateway.shared.config import Settings, get_settings
from tests.mocks.mock_transport import RecordingInboundMessage, RecordingMailSender
from tests.utils.event_generator import build_raw_email


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Never let one test's settings leak into another."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# --- Settings Fixtures ---


@pytest.fixture
def settings() -> Settings:
    """Gateway settings with an explicit allow-list."""
    return Settings(
        worker_address="gateway@example.com",
        forward_addresses=["inbox@example.com"],
        allowed_senders=["allowed@x.com", "@partner.example.com"],
        rejection_reason="Sender address is not permitted",
    )


@pytest.fixture
def open_settings() -> Settings:
    """Gateway settings that accept every sender."""
    return Settings(
        worker_address="gateway@example.com",
        forward_addresses=["inbox@example.com", "archive@example.com"],
        allowed_senders=None,
    )


# --- Address Fixtures ---


@pytest.fixture
def allowed_sender() -> str:
    return "allowed@x.com"


@pytest.fixture
def blocked_sender() -> str:
    return "blocked@y.com"


# --- Message Fixtures ---


@pytest.fixture
def json_attachment() -> tuple[str, str, bytes]:
    return ("payload.json", "application/json", b'{"k":1}')


@pytest.fixture
def raw_with_json(allowed_sender, json_attachment) -> bytes:
    """Allowed sender, no Message-ID, one JSON attachment."""
    return build_raw_email(sender=allowed_sender, attachments=[json_attachment])


@pytest.fixture
def raw_with_message_id(allowed_sender) -> bytes:
    return build_raw_email(sender=allowed_sender, message_id="<id-1>")


@pytest.fixture
def make_inbound():
    """Factory for RecordingInboundMessage."""

    def _make(sender: str, raw: bytes | None = None, **kwargs) -> RecordingInboundMessage:
        return RecordingInboundMessage(sender, raw if raw is not None else build_raw_email(sender=sender), **kwargs)

    return _make


@pytest.fixture
def mail_sender() -> RecordingMailSender:
    return RecordingMailSender()

