# Shared Models
"""
Pydantic models for inbound/outbound messages, verdicts and headers.
"""

from gateway.shared.models.headers import HeaderMap
from gateway.shared.models.messages import (
    Attachment,
    DecodedEmail,
    InspectionResult,
    InspectionStatus,
    OutboundMessage,
    SenderVerdict,
    Verdict,
)

__all__ = [
    "Attachment",
    "DecodedEmail",
    "HeaderMap",
    "InspectionResult",
    "InspectionStatus",
    "OutboundMessage",
    "SenderVerdict",
    "Verdict",
]
