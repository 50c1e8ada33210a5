# Shared Tools
"""
Transport implementations for the gateway Lambdas.
"""

from gateway.shared.tools.ses import (
    SesInboundMessage,
    SesMailSender,
    load_raw_email,
    parse_ses_notification,
    rewrite_for_forward,
    send_raw_email,
)

__all__ = [
    "SesInboundMessage",
    "SesMailSender",
    "load_raw_email",
    "parse_ses_notification",
    "rewrite_for_forward",
    "send_raw_email",
]
