# Shared Infrastructure for the Email Gateway
"""
Shared infrastructure components for the gateway Lambdas.

This package provides:
- Pydantic models for decoded mail, verdicts and outbound messages
- Transport capability protocols and the SES implementation
- Configuration management
- Custom exceptions
"""

from gateway.shared.config import Settings, get_settings
from gateway.shared.exceptions import (
    AttachmentError,
    DecodeError,
    EncodingError,
    GatewayError,
    JsonParseError,
    SendFailure,
)

__all__ = [
    # Exceptions
    "GatewayError",
    "DecodeError",
    "AttachmentError",
    "EncodingError",
    "JsonParseError",
    "SendFailure",
    # Config
    "Settings",
    "get_settings",
]
