"""
Attachment Handler Module

Inspects decoded attachments and interprets structured JSON payloads.

Each attachment is inspected independently: a JSON attachment that is not
valid UTF-8 or not valid JSON yields a FAILED result for that item only.
Logging is left to the caller; this module is a pure transformation.
"""

import json
from collections.abc import Sequence
from typing import Any

from gateway.shared.exceptions import AttachmentError, EncodingError, JsonParseError
from gateway.shared.models.messages import Attachment, InspectionResult, InspectionStatus

JSON_MEDIA_TYPE = "application/json"


def is_json_attachment(attachment: Attachment) -> bool:
    """Media type is, or starts with, application/json."""
    return attachment.media_type.lower().startswith(JSON_MEDIA_TYPE)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def decode_json_attachment(attachment: Attachment) -> Any:
    """
    Decode attachment bytes as UTF-8 and parse them as JSON.

    Raises:
        EncodingError: If the bytes are not valid UTF-8
        JsonParseError: If the text is not valid JSON
    """
    try:
        # utf-8-sig drops a leading byte order mark
        text = attachment.content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise EncodingError(filename=attachment.filename, position=e.start) from e

    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as e:
        raise JsonParseError(filename=attachment.filename, error_message=str(e)) from e


def inspect_attachment(index: int, attachment: Attachment) -> InspectionResult:
    """Inspect a single attachment; never raises for bad content."""
    if not is_json_attachment(attachment):
        return InspectionResult(
            index=index,
            attachment=attachment,
            status=InspectionStatus.SKIPPED,
        )

    try:
        value = decode_json_attachment(attachment)
    except AttachmentError as e:
        return InspectionResult(
            index=index,
            attachment=attachment,
            status=InspectionStatus.FAILED,
            error=str(e),
            error_type=type(e).__name__,
        )

    return InspectionResult(
        index=index,
        attachment=attachment,
        status=InspectionStatus.DECODED,
        value=value,
    )


def inspect_attachments(attachments: Sequence[Attachment]) -> list[InspectionResult]:
    """
    Inspect every attachment, in order.

    Returns:
        One InspectionResult per attachment
    """
    return [inspect_attachment(index, attachment) for index, attachment in enumerate(attachments)]
