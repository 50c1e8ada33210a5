"""
Gateway Orchestrator

Runs one inbound delivery through the pipeline:

    START → POLICY_CHECKED → REJECTED
                           → DECODE_FAILED
                           → ATTACHMENTS_INSPECTED → REPLY_EVALUATED → FORWARDED

A rejected sender is refused and nothing else happens. For an accepted
sender the attachments are inspected (best-effort), an auto-reply is sent
when the original carries a Message-ID, and the message is forwarded to
every configured address. Reply and forward run concurrently and are all
awaited before returning; a failing action is logged, never retried.
"""

import asyncio
import json
from collections.abc import Awaitable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

from gateway.shared.config import Settings, get_settings
from gateway.shared.exceptions import DecodeError, GatewayError, SendFailure
from gateway.shared.models.messages import InspectionResult, InspectionStatus, SenderVerdict
from gateway.shared.transport import InboundMessage
from lambdas.process_inbound_email.attachment_handler import inspect_attachments
from lambdas.process_inbound_email.email_parser import decode_email
from lambdas.process_inbound_email.reply_composer import compose_reply
from lambdas.process_inbound_email.sender_policy import SenderPolicy

log = structlog.get_logger()

MESSAGE_ID_HEADER = "Message-ID"


class GatewayState(str, Enum):
    """Pipeline states for one delivery."""

    START = "START"
    POLICY_CHECKED = "POLICY_CHECKED"
    REJECTED = "REJECTED"
    DECODE_FAILED = "DECODE_FAILED"
    ATTACHMENTS_INSPECTED = "ATTACHMENTS_INSPECTED"
    REPLY_EVALUATED = "REPLY_EVALUATED"
    FORWARDED = "FORWARDED"


@dataclass
class GatewayOutcome:
    """Summary of one delivery, for logs and the Lambda response."""

    verdict: SenderVerdict
    state: GatewayState = GatewayState.START
    inspections: list[InspectionResult] = field(default_factory=list)
    replied: bool = False
    forwarded_to: list[str] = field(default_factory=list)
    failures: list[GatewayError] = field(default_factory=list)

    @property
    def decoded_values(self) -> list[Any]:
        return [result.value for result in self.inspections if result.decoded]

    def to_dict(self) -> dict[str, Any]:
        return {
            "verdict": self.verdict.verdict.value,
            "reason": self.verdict.reason,
            "state": self.state.value,
            "attachments": {
                status.value: sum(1 for r in self.inspections if r.status == status)
                for status in InspectionStatus
            },
            "replied": self.replied,
            "forwarded_to": self.forwarded_to,
            "failures": [str(failure) for failure in self.failures],
        }


def _log_inspections(results: list[InspectionResult]) -> None:
    for result in results:
        if result.status == InspectionStatus.DECODED:
            log.info(
                "json_attachment_decoded",
                index=result.index,
                filename=result.attachment.filename,
                value=json.dumps(result.value, indent=2),
            )
        elif result.status == InspectionStatus.FAILED:
            log.warning(
                "attachment_inspection_failed",
                index=result.index,
                filename=result.attachment.filename,
                media_type=result.attachment.media_type,
                error_type=result.error_type,
                error=result.error,
            )
        else:
            log.debug(
                "attachment_skipped",
                index=result.index,
                media_type=result.attachment.media_type,
            )


async def handle_inbound(
    message: InboundMessage,
    settings: Settings | None = None,
    *,
    policy: SenderPolicy | None = None,
) -> GatewayOutcome:
    """
    Handle one inbound delivery.

    Args:
        message: Delivered message with its transport actions
        settings: Override settings
        policy: Override the sender policy built from settings

    Returns:
        GatewayOutcome describing what happened
    """
    settings = settings or get_settings()
    policy = policy or SenderPolicy.from_settings(settings)

    log.info("inbound_email_received", sender=message.sender, size_bytes=len(message.raw))

    verdict = policy.evaluate(message.sender)
    outcome = GatewayOutcome(verdict=verdict, state=GatewayState.POLICY_CHECKED)

    if not verdict.is_accepted:
        log.info("sender_rejected", sender=message.sender, reason=verdict.reason)
        try:
            message.reject(verdict.reason)
        except Exception as e:
            failure = (
                e
                if isinstance(e, SendFailure)
                else SendFailure(operation="reject", recipient=message.sender, error_message=str(e))
            )
            log.error(
                "reject_failed",
                sender=message.sender,
                error=str(failure),
                error_type=type(e).__name__,
            )
            outcome.failures.append(failure)
        outcome.state = GatewayState.REJECTED
        return outcome

    try:
        decoded = decode_email(message.raw)
    except DecodeError as e:
        log.error("mime_decode_failed", sender=message.sender, error=str(e))
        outcome.failures.append(e)
        outcome.state = GatewayState.DECODE_FAILED
        return outcome

    outcome.inspections = inspect_attachments(decoded.attachments)
    _log_inspections(outcome.inspections)
    outcome.state = GatewayState.ATTACHMENTS_INSPECTED

    # (operation, target, pending action)
    actions: list[tuple[str, str, Awaitable[None]]] = []

    thread_id = message.get_header(MESSAGE_ID_HEADER)
    reply = None
    if settings.reply_enabled:
        reply = compose_reply(
            thread_id,
            message.sender,
            settings.worker_address,
            subject=settings.reply_subject,
            body=settings.reply_body,
        )
    if reply is not None:
        log.info("replying", to=message.sender, in_reply_to=thread_id)
        actions.append(("reply", message.sender, message.reply(reply)))
    outcome.state = GatewayState.REPLY_EVALUATED

    for address in settings.forward_addresses:
        actions.append(("forward", address, message.forward(address)))

    results = await asyncio.gather(*(pending for _, _, pending in actions), return_exceptions=True)

    for (operation, target, _), result in zip(actions, results):
        if isinstance(result, BaseException):
            failure = (
                result
                if isinstance(result, SendFailure)
                else SendFailure(operation=operation, recipient=target, error_message=str(result))
            )
            log.error(
                f"{operation}_failed",
                target=target,
                error=str(failure),
                error_type=type(result).__name__,
            )
            outcome.failures.append(failure)
        elif operation == "reply":
            outcome.replied = True
            log.info("reply_sent", to=target)
        else:
            outcome.forwarded_to.append(target)
            log.info("email_forwarded", to=target)

    outcome.state = GatewayState.FORWARDED

    log.info(
        "inbound_email_handled",
        sender=message.sender,
        replied=outcome.replied,
        forwarded_to=outcome.forwarded_to,
        failure_count=len(outcome.failures),
    )

    return outcome
