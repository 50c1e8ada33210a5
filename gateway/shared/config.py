"""
Configuration Management

Pydantic-settings based configuration for the email gateway.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Literal

from email_validator import EmailNotValidError, validate_email
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _check_address(value: str) -> str:
    """Syntax-check an email address (RFC 5321), returning it unchanged."""
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email address '{value}': {e}") from e
    return value


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables are prefixed with GATEWAY_ and are case-insensitive.
    List values are JSON encoded.
    Example: GATEWAY_FORWARD_ADDRESSES='["ops@example.com", "audit@example.com"]'
    """

    model_config = SettingsConfigDict(
        env_prefix="GATEWAY_",
        env_file=[".env.local", ".env"],  # Try .env.local first
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Addressing
    worker_address: str = Field(
        default="gateway@example.com",
        description="Address the gateway sends replies, forwards and HTTP-triggered mail from",
    )
    forward_addresses: list[str] = Field(
        default_factory=lambda: ["inbox@example.com"],
        min_length=1,
        description="Downstream mailboxes every accepted message is forwarded to",
    )

    # Sender policy
    allowed_senders: list[str] | None = Field(
        default=None,
        description="Exact sender addresses or '@domain' entries; None allows everyone",
    )
    rejection_reason: str = Field(
        default="Sender address is not permitted",
        min_length=1,
        description="Reason passed to the transport when a sender is rejected",
    )

    # Auto-reply
    reply_enabled: bool = Field(
        default=True,
        description="Send a threaded auto-reply when the original has a Message-ID",
    )
    reply_subject: str = Field(default="Auto-reply")
    reply_body: str = Field(default="Thanks for the message")

    # HTTP trigger
    outbound_subject: str = Field(default="Message from email gateway")
    outbound_placeholder_body: str = Field(
        default="(no message body)",
        description="Body used when the POST request body is empty",
    )

    # SES / S3
    aws_region: str = Field(default="us-west-2", description="AWS region")
    ses_endpoint_url: str | None = Field(
        default=None,
        description="SES endpoint URL (for local development)",
    )
    ses_configuration_set: str | None = Field(
        default=None,
        description="SES configuration set for tracking",
    )
    s3_endpoint_url: str | None = Field(
        default=None,
        description="S3 endpoint URL (for local development)",
    )
    inbound_bucket_name: str | None = Field(
        default=None,
        description="Bucket where an SES S3 action stores raw inbound mail",
    )
    inbound_prefix: str = Field(
        default="",
        description="Key prefix of the SES S3 action (object key is prefix + messageId)",
    )

    # Application Configuration
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("worker_address")
    @classmethod
    def _validate_worker_address(cls, value: str) -> str:
        return _check_address(value)

    @field_validator("forward_addresses")
    @classmethod
    def _validate_forward_addresses(cls, value: list[str]) -> list[str]:
        return [_check_address(address) for address in value]

    @property
    def primary_forward_address(self) -> str:
        """Destination for mail synthesized by the HTTP trigger."""
        return self.forward_addresses[0]

    @property
    def ses_config(self) -> dict:
        """SES client configuration."""
        config = {"region_name": self.aws_region}
        if self.ses_endpoint_url:
            config["endpoint_url"] = self.ses_endpoint_url
        return config

    @property
    def s3_config(self) -> dict:
        """S3 client configuration."""
        config = {"region_name": self.aws_region}
        if self.s3_endpoint_url:
            config["endpoint_url"] = self.s3_endpoint_url
        return config


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are loaded only once.
    Construct Settings(...) directly in tests to override.
    """
    return Settings()
