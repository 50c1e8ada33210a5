"""
Mail Transport Capabilities

The gateway core never talks to a mail platform directly. It is handed an
InboundMessage carrying the reject/forward/reply primitives, and a
MailSender for brand-new mail. The SES implementation lives in
gateway.shared.tools.ses; tests substitute recording doubles.

Failed actions raise SendFailure.
"""

from typing import Protocol

from gateway.shared.models.messages import OutboundMessage


class InboundMessage(Protocol):
    """One delivered message plus the actions the transport allows on it."""

    sender: str
    """Envelope sender address."""

    raw: bytes
    """Raw MIME payload."""

    def get_header(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        ...

    def reject(self, reason: str) -> None:
        """Refuse the message back to the sender."""
        ...

    async def forward(self, address: str) -> None:
        """Deliver the message to another mailbox."""
        ...

    async def reply(self, outbound: OutboundMessage) -> None:
        """Send a reply threaded to this message."""
        ...


class MailSender(Protocol):
    """Sends brand-new outbound mail."""

    async def send(self, outbound: OutboundMessage) -> None:
        ...
