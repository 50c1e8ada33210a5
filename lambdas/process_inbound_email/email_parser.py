"""
Email Parser Module

Decodes a raw MIME payload into a DecodedEmail: sender, subject,
Message-ID and the ordered attachments.

Malformed parts (bad base64, unknown charsets) never raise; the parser keeps
whatever it could recover. Only a payload with no header section at all is
a DecodeError.
"""

import email
import re
from collections.abc import Iterator
from email.message import EmailMessage
from email.policy import default as default_policy

import structlog

from gateway.shared.exceptions import DecodeError
from gateway.shared.models.messages import Attachment, DecodedEmail

log = structlog.get_logger()


def _extract_address(header_value: str | None) -> str:
    """
    Extract email address from a header value.

    Handles formats like:
    - "John Doe <john@example.com>"
    - "<john@example.com>"
    - "john@example.com"
    """
    if not header_value:
        return ""

    # Try to extract from angle brackets
    match = re.search(r"<([^>]+)>", header_value)
    if match:
        return match.group(1).strip()

    return header_value.strip()


def _iter_leaf_parts(part: EmailMessage) -> Iterator[EmailMessage]:
    """Yield non-container parts in document order; message/rfc822 is a leaf."""
    if part.get_content_type() == "message/rfc822" or not part.is_multipart():
        yield part
        return
    for child in part.iter_parts():
        yield from _iter_leaf_parts(child)


def _is_attachment(part: EmailMessage) -> bool:
    if part.get_content_disposition() == "attachment":
        return True
    if part.get_filename():
        return True
    # A multipart leaf is a container whose boundary could not be parsed
    return part.get_content_maintype() not in ("text", "multipart")


def _part_content(part: EmailMessage) -> bytes:
    if part.get_content_type() == "message/rfc822":
        inner = part.get_payload()
        if isinstance(inner, list) and inner:
            return inner[0].as_bytes()
        return b""
    return part.get_payload(decode=True) or b""


def _extract_attachments(msg: EmailMessage) -> tuple[Attachment, ...]:
    attachments = []

    for part in _iter_leaf_parts(msg):
        if not _is_attachment(part):
            continue

        attachment = Attachment(
            media_type=part.get_content_type().lower(),
            filename=part.get_filename(),
            content=_part_content(part),
        )
        attachments.append(attachment)

        log.debug(
            "extracted_attachment",
            filename=attachment.filename,
            media_type=attachment.media_type,
            size_bytes=attachment.size_bytes,
        )

    return tuple(attachments)


def decode_email(raw: bytes | str) -> DecodedEmail:
    """
    Parse raw email content (MIME format) into a DecodedEmail.

    Args:
        raw: Raw email content as bytes (str is encoded as UTF-8)

    Returns:
        DecodedEmail with sender, subject, message_id and attachments

    Raises:
        DecodeError: If the payload is empty or has no header section
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8", errors="surrogateescape")
    if not isinstance(raw, bytes | bytearray):
        raise DecodeError("payload is not bytes", payload_type=type(raw).__name__)
    if not raw.strip():
        raise DecodeError("payload is empty")

    try:
        msg = email.message_from_bytes(bytes(raw), policy=default_policy)
    except Exception as e:
        log.error("email_parse_failed", error=str(e))
        raise DecodeError(str(e)) from e

    if not msg.keys():
        raise DecodeError(
            "no header section found",
            defects=[type(defect).__name__ for defect in msg.defects],
        )

    message_id = msg.get("Message-ID")

    return DecodedEmail(
        sender=_extract_address(str(msg.get("From", "") or "")),
        subject=str(msg.get("Subject", "") or ""),
        message_id=str(message_id) if message_id else None,
        attachments=_extract_attachments(msg),
    )
