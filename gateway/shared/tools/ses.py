"""
SES Transport

Amazon SES implementation of the mail transport capabilities:
- parse_ses_notification: normalise the shapes SES delivers inbound mail in
- SesInboundMessage: reject (bounce), forward and reply for one delivery
- SesMailSender: send brand-new mail

Inbound mail reaches the gateway in one of three ways:
1. SES Lambda action: Records[].ses, raw content stored by a preceding S3 action
2. SES SNS action: Records[].Sns.Message with the content embedded
3. SNS/direct notification whose receipt action is S3 (bucketName/objectKey)
"""

import asyncio
import base64
import binascii
import json
from email import message_from_bytes
from email.policy import default as default_policy
from email.utils import formataddr
from typing import Any

import boto3
import structlog
from botocore.exceptions import ClientError

from gateway.shared.config import Settings, get_settings
from gateway.shared.exceptions import DecodeError, SendFailure
from gateway.shared.models.headers import HeaderMap
from gateway.shared.models.messages import WIRE_POLICY, OutboundMessage

log = structlog.get_logger()

# SES Lambda action dispositions
DISPOSITION_CONTINUE = "CONTINUE"
DISPOSITION_STOP_RULE_SET = "STOP_RULE_SET"

# Headers SES rejects or that would misattribute a re-sent message
FORWARD_STRIPPED_HEADERS = (
    "Return-Path",
    "Sender",
    "DKIM-Signature",
    "Received-SPF",
    "Authentication-Results",
    "X-SES-RECEIPT",
    "X-SES-DKIM-SIGNATURE",
)

# Headers of the original are re-emitted exactly as received
FORWARD_POLICY = WIRE_POLICY.clone(refold_source="none")


def _get_client(settings: Settings | None = None):
    """Get SES client."""
    settings = settings or get_settings()
    return boto3.client("ses", **settings.ses_config)


def _get_s3_client(settings: Settings | None = None):
    """Get S3 client with optional endpoint override for local dev."""
    settings = settings or get_settings()
    return boto3.client("s3", **settings.s3_config)


def _client_error_message(error: ClientError) -> str:
    details = error.response.get("Error", {})
    return f"{details.get('Code', 'Unknown')}: {details.get('Message', str(error))}"


def send_raw_email(
    raw: bytes,
    *,
    source: str,
    destinations: list[str],
    operation: str = "send",
    client: Any = None,
    settings: Settings | None = None,
) -> str:
    """
    Send a fully rendered MIME message via SES.

    Args:
        raw: RFC 5322 message bytes
        source: Envelope sender (must be a verified identity)
        destinations: Envelope recipients
        operation: Action name used in logs and errors
        client: Reuse an existing SES client
        settings: Override settings

    Returns:
        SES message ID

    Raises:
        SendFailure: If SES refuses the message
    """
    settings = settings or get_settings()
    client = client or _get_client(settings)

    send_params: dict[str, Any] = {
        "Source": source,
        "Destinations": destinations,
        "RawMessage": {"Data": raw},
    }
    if settings.ses_configuration_set:
        send_params["ConfigurationSetName"] = settings.ses_configuration_set

    log.info(
        "sending_raw_email",
        operation=operation,
        source=source,
        destinations=destinations,
        size_bytes=len(raw),
    )

    try:
        response = client.send_raw_email(**send_params)
    except ClientError as e:
        error_message = _client_error_message(e)
        log.error(
            "ses_send_failed",
            operation=operation,
            destinations=destinations,
            error_message=error_message,
        )
        raise SendFailure(
            operation=operation,
            recipient=", ".join(destinations),
            error_message=error_message,
        ) from e

    message_id = response["MessageId"]
    log.info("ses_email_sent", operation=operation, message_id=message_id)
    return message_id


def rewrite_for_forward(raw: bytes, *, worker_address: str, original_sender: str) -> bytes:
    """
    Prepare a received message for re-sending through SES.

    SES only sends from verified identities, so From becomes the worker
    address (keeping the original sender as display name) and Reply-To
    points back at the original sender.
    """
    msg = message_from_bytes(raw, policy=default_policy)

    for name in FORWARD_STRIPPED_HEADERS:
        del msg[name]

    del msg["From"]
    msg["From"] = formataddr((original_sender, worker_address)) if original_sender else worker_address
    if original_sender:
        del msg["Reply-To"]
        msg["Reply-To"] = original_sender

    return msg.as_bytes(policy=FORWARD_POLICY)


def fetch_raw_email(bucket: str, key: str, settings: Settings | None = None) -> bytes:
    """
    Fetch raw email content stored by an SES S3 action.

    Raises:
        ClientError: If S3 get fails
    """
    log.info("fetching_email_from_s3", bucket=bucket, key=key)

    client = _get_s3_client(settings)

    try:
        response = client.get_object(Bucket=bucket, Key=key)
        content = response["Body"].read()
    except ClientError as e:
        log.error("s3_fetch_failed", bucket=bucket, key=key, error=str(e))
        raise

    log.debug("email_fetched_from_s3", bucket=bucket, key=key, size_bytes=len(content))
    return content


def parse_ses_notification(event: dict[str, Any]) -> dict[str, Any]:
    """
    Extract the SES notification (mail, receipt, content) from a Lambda event.

    Handles Lambda-action records, SNS records, a bare SNS message and a
    bare notification (for testing).
    """
    records = event.get("Records")
    if records:
        record = records[0]
        if "ses" in record:
            return record["ses"]
        if "Sns" in record:
            return json.loads(record["Sns"].get("Message") or "{}")

    if "Message" in event:
        return json.loads(event["Message"])

    return event


def _decode_content(content: str, encoding: str | None) -> bytes:
    """Decode the `content` of an SNS notification (UTF8 or BASE64 encoding)."""
    if encoding and encoding.upper() == "BASE64":
        return base64.b64decode(content)
    if encoding is None and not content.lstrip().startswith(("From:", "Return-Path:", "Received:", "MIME")):
        try:
            return base64.b64decode(content, validate=True)
        except (binascii.Error, ValueError):
            pass
    return content.encode("utf-8", errors="surrogateescape")


def load_raw_email(notification: dict[str, Any], settings: Settings | None = None) -> bytes:
    """
    Get the raw MIME bytes for an SES notification.

    Raises:
        DecodeError: If the notification carries no content and no S3 location
        ClientError: If the S3 fetch fails
    """
    settings = settings or get_settings()
    receipt = notification.get("receipt", {})
    action = receipt.get("action", {})
    mail = notification.get("mail", {})

    content = notification.get("content")
    if content:
        return _decode_content(content, action.get("encoding"))

    if action.get("type") == "S3" and action.get("bucketName"):
        key = action.get("objectKey") or f"{action.get('objectKeyPrefix', '')}{mail.get('messageId', '')}"
        return fetch_raw_email(action["bucketName"], key, settings)

    if settings.inbound_bucket_name and mail.get("messageId"):
        key = f"{settings.inbound_prefix}{mail['messageId']}"
        return fetch_raw_email(settings.inbound_bucket_name, key, settings)

    raise DecodeError(
        "Raw message content is not embedded and no S3 location is configured",
        message_id=mail.get("messageId"),
    )


class SesInboundMessage:
    """
    One SES-delivered message with SES-backed actions.

    `disposition` is what the Lambda returns to the SES receipt rule:
    STOP_RULE_SET once the message is rejected, CONTINUE otherwise.
    """

    def __init__(
        self,
        *,
        mail: dict[str, Any],
        raw: bytes,
        settings: Settings | None = None,
        client: Any = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.mail = mail
        self.raw = raw
        self.sender: str = mail.get("source", "")
        self.recipients: list[str] = list(mail.get("destination", []))
        self.disposition = DISPOSITION_CONTINUE
        self.rejection_reason: str | None = None
        self._headers = HeaderMap.from_raw(raw)
        # boto3 clients are thread-safe; sessions are not
        self._client = client or _get_client(self.settings)

    @classmethod
    def from_notification(
        cls,
        notification: dict[str, Any],
        settings: Settings | None = None,
        client: Any = None,
    ) -> "SesInboundMessage":
        raw = load_raw_email(notification, settings)
        return cls(mail=notification.get("mail", {}), raw=raw, settings=settings, client=client)

    def get_header(self, name: str) -> str | None:
        return self._headers.get(name)

    def reject(self, reason: str) -> None:
        """
        Bounce the message back to its sender and stop the receipt rule set.

        Raises:
            SendFailure: If SES refuses the bounce
        """
        self.disposition = DISPOSITION_STOP_RULE_SET
        self.rejection_reason = reason

        original_message_id = self.mail.get("messageId")
        if not original_message_id or not self.recipients:
            log.warning(
                "bounce_skipped",
                reason="notification has no SES messageId or destination",
                sender=self.sender,
            )
            return

        try:
            self._client.send_bounce(
                OriginalMessageId=original_message_id,
                BounceSender=self.settings.worker_address,
                Explanation=reason,
                BouncedRecipientInfoList=[
                    {"Recipient": recipient, "BounceType": "ContentRejected"}
                    for recipient in self.recipients
                ],
            )
        except ClientError as e:
            raise SendFailure(
                operation="reject",
                recipient=self.sender,
                error_message=_client_error_message(e),
            ) from e

        log.info("bounce_sent", sender=self.sender, message_id=original_message_id)

    async def forward(self, address: str) -> None:
        forwarded = rewrite_for_forward(
            self.raw,
            worker_address=self.settings.worker_address,
            original_sender=self.sender,
        )
        await asyncio.to_thread(
            send_raw_email,
            forwarded,
            source=self.settings.worker_address,
            destinations=[address],
            operation="forward",
            client=self._client,
            settings=self.settings,
        )

    async def reply(self, outbound: OutboundMessage) -> None:
        await asyncio.to_thread(
            send_raw_email,
            outbound.as_bytes(),
            source=outbound.from_address,
            destinations=[outbound.to_address],
            operation="reply",
            client=self._client,
            settings=self.settings,
        )


class SesMailSender:
    """Sends brand-new mail through SES."""

    def __init__(self, settings: Settings | None = None, client: Any = None) -> None:
        self.settings = settings or get_settings()
        self._client = client or _get_client(self.settings)

    async def send(self, outbound: OutboundMessage) -> None:
        await asyncio.to_thread(
            send_raw_email,
            outbound.as_bytes(),
            source=outbound.from_address,
            destinations=[outbound.to_address],
            operation="send",
            client=self._client,
            settings=self.settings,
        )
