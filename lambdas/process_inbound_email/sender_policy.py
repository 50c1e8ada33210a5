"""
Sender Policy

Accept/reject decision keyed on the envelope sender.

Allow-list entries are either exact addresses ("ops@example.com") or domain
entries ("@example.com"). Matching is exact and case-sensitive.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from gateway.shared.config import Settings
from gateway.shared.models.messages import SenderVerdict

DEFAULT_REJECTION_REASON = "Sender address is not permitted"


@dataclass(frozen=True)
class SenderPolicy:
    """
    Pure sender predicate.

    An allow-list of None accepts every sender; an empty allow-list
    accepts none.
    """

    allowed_senders: frozenset[str] | None = None
    rejection_reason: str = DEFAULT_REJECTION_REASON

    @classmethod
    def allow_only(
        cls,
        senders: Iterable[str],
        rejection_reason: str = DEFAULT_REJECTION_REASON,
    ) -> "SenderPolicy":
        return cls(allowed_senders=frozenset(senders), rejection_reason=rejection_reason)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SenderPolicy":
        allowed = settings.allowed_senders
        return cls(
            allowed_senders=frozenset(allowed) if allowed is not None else None,
            rejection_reason=settings.rejection_reason,
        )

    def allows(self, sender: str) -> bool:
        if self.allowed_senders is None:
            return True
        if sender in self.allowed_senders:
            return True
        return any(
            entry.startswith("@") and sender.endswith(entry)
            for entry in self.allowed_senders
        )

    def evaluate(self, sender: str) -> SenderVerdict:
        if self.allows(sender):
            return SenderVerdict.accepted()
        return SenderVerdict.rejected(self.rejection_reason)
