"""
ProcessInboundEmail Lambda Handler

Main entry point for inbound mail delivered by an SES receipt rule.

Trigger: SES receipt rule (Lambda action, or SNS topic subscription)
Output: SES bounce / auto-reply / forwarded copies; disposition for SES

Flow:
1. Extract the SES notification (direct record or SNS-wrapped)
2. Skip bounce/complaint notifications
3. Load the raw message (embedded content or S3)
4. Run the gateway pipeline (policy, attachments, reply, forward)
5. Return the receipt rule disposition with a summary
"""

import asyncio
from typing import Any

import structlog

from gateway.shared.config import get_settings
from gateway.shared.exceptions import DecodeError
from gateway.shared.tools.ses import (
    DISPOSITION_CONTINUE,
    SesInboundMessage,
    parse_ses_notification,
)
from lambdas.process_inbound_email.orchestrator import handle_inbound

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

log = structlog.get_logger()


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    AWS Lambda handler for inbound email.

    Args:
        event: SES receipt rule event (direct or via SNS)
        context: Lambda context

    Returns:
        Dict with the SES disposition and the delivery summary
    """
    request_id = getattr(context, "aws_request_id", "local")
    settings = get_settings()

    log.info(
        "processing_inbound_email",
        request_id=request_id,
        event_keys=list(event.keys()),
    )

    try:
        notification = parse_ses_notification(event)

        notification_type = notification.get("notificationType")
        if notification_type in ("Bounce", "Complaint"):
            log.info(
                "received_delivery_notification",
                type=notification_type,
                message_id=notification.get("mail", {}).get("messageId"),
            )
            return {
                "disposition": DISPOSITION_CONTINUE,
                "status": "skipped",
                "reason": f"{notification_type} notification - not an inbound message",
            }

        try:
            message = SesInboundMessage.from_notification(notification, settings)
        except DecodeError as e:
            log.error("raw_email_unavailable", request_id=request_id, error=str(e))
            return {
                "disposition": DISPOSITION_CONTINUE,
                "status": "decode_failed",
                "error": str(e),
            }

        outcome = asyncio.run(handle_inbound(message, settings))

    except Exception as e:
        log.error("lambda_handler_failed", request_id=request_id, error=str(e), exc_info=True)
        raise

    return {
        "disposition": message.disposition,
        "status": "processed",
        **outcome.to_dict(),
    }
