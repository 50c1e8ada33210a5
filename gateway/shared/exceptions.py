"""
Custom Exceptions for the Email Gateway

All exceptions follow the pattern of specific, actionable errors
with context needed for debugging and logging.

Sender rejection is not an exception: it is a SenderVerdict.
"""

from dataclasses import dataclass
from typing import Any


class GatewayError(Exception):
    """Base exception for the email gateway."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


@dataclass
class DecodeError(GatewayError):
    """Raw payload could not be parsed as a MIME message at all."""

    reason: str

    def __init__(self, reason: str, **context: Any) -> None:
        self.reason = reason
        super().__init__(f"Failed to decode MIME message: {reason}", **context)


class AttachmentError(GatewayError):
    """Base for per-attachment inspection failures (never fatal)."""


@dataclass
class EncodingError(AttachmentError):
    """Attachment bytes are not valid UTF-8."""

    filename: str | None
    position: int | None = None

    def __init__(self, filename: str | None, position: int | None = None) -> None:
        self.filename = filename
        self.position = position
        super().__init__(
            f"Attachment '{filename or 'unnamed'}' is not valid UTF-8",
            filename=filename,
            position=position,
        )


@dataclass
class JsonParseError(AttachmentError):
    """Attachment text is not valid JSON."""

    filename: str | None
    error_message: str | None = None

    def __init__(self, filename: str | None, error_message: str | None = None) -> None:
        self.filename = filename
        self.error_message = error_message
        super().__init__(
            f"Attachment '{filename or 'unnamed'}' is not valid JSON: "
            f"{error_message or 'Unknown error'}",
            filename=filename,
        )


@dataclass
class SendFailure(GatewayError):
    """A reject, forward, reply or send action failed in the transport."""

    operation: str  # "reject", "forward", "reply", "send"
    recipient: str | None = None
    error_message: str | None = None

    def __init__(
        self,
        operation: str,
        recipient: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.operation = operation
        self.recipient = recipient
        self.error_message = error_message
        super().__init__(
            f"Email {operation} failed{f' for {recipient}' if recipient else ''}: "
            f"{error_message or 'Unknown error'}",
            operation=operation,
            recipient=recipient,
        )
