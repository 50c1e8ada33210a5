"""
Mock Event Generator for Testing

Builds raw MIME messages and the Lambda events the gateway receives:
SES receipt records (direct and via SNS) and HTTP trigger events.
"""

import base64
import json
from email.message import EmailMessage
from email.policy import SMTP
from typing import Any
from uuid import uuid4


def build_raw_email(
    *,
    sender: str = "allowed@x.com",
    to: str = "gateway@example.com",
    subject: str = "Inbound test",
    body: str = "Hello gateway",
    message_id: str | None = None,
    attachments: list[tuple[str, str, bytes]] | None = None,
) -> bytes:
    """
    Build a raw MIME message.

    Args:
        attachments: (filename, media_type, content) triples

    Returns:
        RFC 5322 bytes with CRLF line endings
    """
    msg = EmailMessage()
    msg["From"] = sender
    msg["To"] = to
    msg["Subject"] = subject
    msg.set_content(body)

    for filename, media_type, content in attachments or []:
        maintype, _, subtype = media_type.partition("/")
        msg.add_attachment(content, maintype=maintype, subtype=subtype, filename=filename)

    raw = msg.as_bytes(policy=SMTP)
    if message_id is not None:
        # Prepended as-is so the identifier is byte-for-byte what the test chose
        raw = f"Message-ID: {message_id}\r\n".encode("utf-8") + raw
    return raw


def build_ses_mail(
    *,
    source: str = "allowed@x.com",
    destination: list[str] | None = None,
    message_id: str | None = None,
) -> dict[str, Any]:
    """SES `mail` object for a receipt notification."""
    return {
        "timestamp": "2025-02-06T00:00:00.000Z",
        "source": source,
        "messageId": message_id or uuid4().hex,
        "destination": destination or ["gateway@example.com"],
        "headersTruncated": False,
    }


def build_sns_event(
    raw: bytes,
    *,
    source: str = "allowed@x.com",
    encoding: str = "BASE64",
    notification_type: str = "Received",
) -> dict[str, Any]:
    """SNS-wrapped SES notification with the content embedded."""
    content = base64.b64encode(raw).decode("ascii") if encoding == "BASE64" else raw.decode("utf-8")
    notification = {
        "notificationType": notification_type,
        "mail": build_ses_mail(source=source),
        "receipt": {
            "action": {
                "type": "SNS",
                "topicArn": "arn:aws:sns:us-west-2:123456789012:inbound-email",
                "encoding": encoding,
            },
        },
        "content": content,
    }
    return {
        "Records": [
            {
                "EventSource": "aws:sns",
                "Sns": {"Message": json.dumps(notification)},
            }
        ]
    }


def build_ses_lambda_event(*, source: str = "allowed@x.com", message_id: str = "ses-msg-001") -> dict[str, Any]:
    """SES Lambda-action record; content lives in S3."""
    return {
        "Records": [
            {
                "eventSource": "aws:ses",
                "eventVersion": "1.0",
                "ses": {
                    "mail": build_ses_mail(source=source, message_id=message_id),
                    "receipt": {
                        "action": {
                            "type": "Lambda",
                            "functionArn": "arn:aws:lambda:us-west-2:123456789012:function:inbound",
                            "invocationType": "RequestResponse",
                        },
                    },
                },
            }
        ]
    }


def build_http_event(method: str = "POST", body: str | None = None, *, base64_encoded: bool = False) -> dict[str, Any]:
    """Lambda function URL (payload v2) event."""
    event: dict[str, Any] = {
        "version": "2.0",
        "rawPath": "/",
        "requestContext": {"http": {"method": method, "path": "/"}},
        "isBase64Encoded": base64_encoded,
    }
    if body is not None:
        event["body"] = base64.b64encode(body.encode("utf-8")).decode("ascii") if base64_encoded else body
    return event
