"""
SendOutboundEmail Lambda Handler

HTTP trigger that turns a POST body into a brand-new email.

Trigger: Lambda function URL / API Gateway HTTP API
Output: one email from the worker address to the primary forward address

Flow:
1. Reject anything but POST with 405
2. Read the request body (placeholder text when empty)
3. Build the OutboundMessage and send it via SES
4. Return 200, or 500 carrying the send failure's message

The trigger is not authenticated; restrict it at the function URL /
API Gateway level.
"""

import asyncio
import base64
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from gateway.shared.config import Settings, get_settings
from gateway.shared.models.messages import OutboundMessage
from gateway.shared.tools.ses import SesMailSender
from gateway.shared.transport import MailSender

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

SUCCESS_BODY = "Email sent"
METHOD_NOT_ALLOWED_BODY = "Method Not Allowed"


class Request(Protocol):
    method: str

    async def text(self) -> str:
        ...


@dataclass(frozen=True)
class HttpRequest:
    """Request built from a Lambda HTTP event."""

    method: str
    body: str = ""

    async def text(self) -> str:
        return self.body

    @classmethod
    def from_event(cls, event: dict[str, Any]) -> "HttpRequest":
        """Accept function URL / HTTP API v2 events and REST API v1 events."""
        method = (
            event.get("requestContext", {}).get("http", {}).get("method")
            or event.get("httpMethod")
            or "GET"
        )
        body = event.get("body") or ""
        if body and event.get("isBase64Encoded"):
            body = base64.b64decode(body).decode("utf-8", errors="replace")
        return cls(method=method, body=body)


@dataclass(frozen=True)
class HttpResponse:
    status_code: int
    body: str
    headers: dict[str, str] = field(default_factory=lambda: {"Content-Type": "text/plain; charset=utf-8"})

    def to_lambda(self) -> dict[str, Any]:
        return {
            "statusCode": self.status_code,
            "headers": self.headers,
            "body": self.body,
        }


def build_outbound_message(body: str, settings: Settings) -> OutboundMessage:
    """Wrap request text in a message from the worker to the primary forward address."""
    return OutboundMessage(
        from_address=settings.worker_address,
        to_address=settings.primary_forward_address,
        subject=settings.outbound_subject,
        body_text=body or settings.outbound_placeholder_body,
    )


async def handle_request(
    request: Request,
    sender: MailSender,
    settings: Settings | None = None,
) -> HttpResponse:
    """
    Handle one HTTP trigger request.

    Args:
        request: Incoming request (method + async text())
        sender: Transport used to send the new message
        settings: Override settings

    Returns:
        HttpResponse (405, 500 or 200)
    """
    settings = settings or get_settings()

    if request.method.upper() != "POST":
        log.info("method_not_allowed", method=request.method)
        return HttpResponse(
            status_code=405,
            body=METHOD_NOT_ALLOWED_BODY,
            headers={"Allow": "POST", "Content-Type": "text/plain; charset=utf-8"},
        )

    text = await request.text()
    outbound = build_outbound_message(text, settings)

    log.info(
        "sending_outbound_email",
        to=outbound.to_address,
        body_length=len(text),
        used_placeholder=not text,
    )

    try:
        await sender.send(outbound)
    except Exception as e:
        log.error(
            "outbound_send_failed",
            to=outbound.to_address,
            error=str(e),
            error_type=type(e).__name__,
        )
        return HttpResponse(status_code=500, body=str(e))

    log.info("outbound_email_sent", to=outbound.to_address)
    return HttpResponse(status_code=200, body=SUCCESS_BODY)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """
    AWS Lambda handler for the HTTP trigger.

    Args:
        event: Function URL / API Gateway event
        context: Lambda context

    Returns:
        Dict with statusCode, headers and body
    """
    request_id = getattr(context, "aws_request_id", "local")
    settings = get_settings()
    request = HttpRequest.from_event(event)

    log.info("outbound_trigger_invoked", request_id=request_id, method=request.method)

    response = asyncio.run(handle_request(request, SesMailSender(settings), settings))
    return response.to_lambda()
