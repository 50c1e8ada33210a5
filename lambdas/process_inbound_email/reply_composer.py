"""
Reply Composer

Builds the threaded auto-reply for an inbound message.

The original Message-ID is copied into In-Reply-To and References exactly
as received, angle brackets included: mail clients thread by exact string
comparison.
"""

from gateway.shared.models.messages import OutboundMessage

DEFAULT_REPLY_SUBJECT = "Auto-reply"
DEFAULT_REPLY_BODY = "Thanks for the message"


def compose_reply(
    thread_id: str | None,
    original_sender: str,
    from_address: str,
    *,
    subject: str = DEFAULT_REPLY_SUBJECT,
    body: str = DEFAULT_REPLY_BODY,
) -> OutboundMessage | None:
    """
    Compose an auto-reply threaded to the original message.

    Args:
        thread_id: Message-ID of the original, verbatim
        original_sender: Address the reply goes to
        from_address: Address the reply comes from
        subject: Reply subject
        body: Plain-text reply body

    Returns:
        OutboundMessage, or None when the original has no Message-ID
    """
    if not thread_id:
        return None

    return OutboundMessage(
        from_address=from_address,
        to_address=original_sender,
        subject=subject,
        body_text=body,
        headers={
            "In-Reply-To": thread_id,
            "References": thread_id,
            # RFC 3834: keeps other responders from answering us
            "Auto-Submitted": "auto-replied",
        },
    )
