"""
ProcessInboundEmail Lambda

Handles inbound email delivered by an SES receipt rule.
Checks the sender, inspects JSON attachments, sends a threaded
auto-reply and forwards accepted mail downstream.

Flow:
    Sender
    → SES Receipt Rule
    → (SNS Topic)
    → This Lambda
    → SES: bounce | auto-reply + forwarded copies
"""

from lambdas.process_inbound_email.attachment_handler import (
    decode_json_attachment,
    inspect_attachment,
    inspect_attachments,
)
from lambdas.process_inbound_email.email_parser import decode_email
from lambdas.process_inbound_email.orchestrator import (
    GatewayOutcome,
    GatewayState,
    handle_inbound,
)
from lambdas.process_inbound_email.handler import lambda_handler
from lambdas.process_inbound_email.reply_composer import compose_reply
from lambdas.process_inbound_email.sender_policy import SenderPolicy

__all__ = [
    "GatewayOutcome",
    "GatewayState",
    "SenderPolicy",
    "compose_reply",
    "decode_email",
    "decode_json_attachment",
    "handle_inbound",
    "inspect_attachment",
    "inspect_attachments",
    "lambda_handler",
]
