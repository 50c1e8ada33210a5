"""
Message Models

Pydantic models for the data that flows through one gateway invocation:
decoded inbound mail, attachment inspection results, sender verdicts and
outbound messages. All of them are request-scoped and immutable.
"""

from datetime import datetime, timezone
from email.message import EmailMessage as MimeMessage
from email.policy import SMTP
from email.utils import format_datetime, make_msgid
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from gateway.shared.models.headers import HeaderMap

# No line wrapping: a refolded In-Reply-To/References value becomes
# encoded-words and no longer matches the Message-ID it threads to.
# RFC 5322 allows 998 characters per line.
WIRE_POLICY = SMTP.clone(max_line_length=0)


class Attachment(BaseModel):
    """A typed binary part of a MIME message, distinct from the body."""

    model_config = ConfigDict(frozen=True)

    media_type: str = Field(..., description="Lower-cased `type/subtype`")
    filename: str | None = Field(default=None, description="Declared filename, if any")
    content: bytes = Field(..., repr=False, description="Transfer-decoded content")

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class DecodedEmail(BaseModel):
    """Structured view of a raw inbound message."""

    model_config = ConfigDict(frozen=True)

    sender: str = Field(default="", description="Address part of the From header")
    subject: str = Field(default="")
    message_id: str | None = Field(default=None)
    attachments: tuple[Attachment, ...] = Field(default=())


class InspectionStatus(str, Enum):
    """Outcome of inspecting a single attachment."""

    DECODED = "decoded"
    """JSON attachment decoded and parsed."""

    SKIPPED = "skipped"
    """Media type is not JSON; content was not touched."""

    FAILED = "failed"
    """JSON attachment could not be decoded or parsed."""


class InspectionResult(BaseModel):
    """
    Result of inspecting one attachment.

    `value` holds the parsed JSON only when status is DECODED (it may
    legitimately be None for a JSON `null`). A FAILED result always
    carries the error; it is never a silently-absent value.
    """

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Position in the original attachment order")
    attachment: Attachment
    status: InspectionStatus
    value: Any = None
    error: str | None = None
    error_type: str | None = None

    @model_validator(mode="after")
    def _check_status_fields(self) -> "InspectionResult":
        if self.status == InspectionStatus.FAILED:
            if not self.error or not self.error_type:
                raise ValueError("failed inspection must carry an error")
        elif self.error is not None or self.error_type is not None:
            raise ValueError(f"{self.status.value} inspection cannot carry an error")
        if self.status != InspectionStatus.DECODED and self.value is not None:
            raise ValueError(f"{self.status.value} inspection cannot carry a value")
        return self

    @property
    def decoded(self) -> bool:
        return self.status == InspectionStatus.DECODED


class Verdict(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class SenderVerdict(BaseModel):
    """Accept/reject decision for one inbound sender."""

    model_config = ConfigDict(frozen=True)

    verdict: Verdict
    reason: str | None = None

    @model_validator(mode="after")
    def _check_reason(self) -> "SenderVerdict":
        if self.verdict == Verdict.REJECTED and not self.reason:
            raise ValueError("a rejection needs a reason")
        if self.verdict == Verdict.ACCEPTED and self.reason is not None:
            raise ValueError("an acceptance cannot carry a reason")
        return self

    @classmethod
    def accepted(cls) -> "SenderVerdict":
        return cls(verdict=Verdict.ACCEPTED)

    @classmethod
    def rejected(cls, reason: str) -> "SenderVerdict":
        return cls(verdict=Verdict.REJECTED, reason=reason)

    @property
    def is_accepted(self) -> bool:
        return self.verdict == Verdict.ACCEPTED


class OutboundMessage(BaseModel):
    """
    A new single-part plain-text message to be sent exactly once.

    Extra headers (In-Reply-To, References, ...) are copied onto the MIME
    message verbatim.
    """

    model_config = ConfigDict(frozen=True)

    from_address: str
    to_address: str
    subject: str
    body_text: str
    headers: dict[str, str] = Field(default_factory=dict)

    def header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        return HeaderMap(self.headers.items()).get(name)

    @property
    def in_reply_to(self) -> str | None:
        return self.header("In-Reply-To")

    def to_mime(self) -> MimeMessage:
        """Render as a MIME message with Date and a fresh Message-ID."""
        msg = MimeMessage()
        msg["From"] = self.from_address
        msg["To"] = self.to_address
        msg["Subject"] = self.subject
        msg["Date"] = format_datetime(datetime.now(timezone.utc))
        msg["Message-ID"] = make_msgid(domain=self.from_address.rpartition("@")[2] or None)
        for name, value in self.headers.items():
            msg[name] = value
        msg.set_content(self.body_text)
        return msg

    def as_bytes(self) -> bytes:
        """Wire format (CRLF line endings)."""
        return self.to_mime().as_bytes(policy=WIRE_POLICY)
