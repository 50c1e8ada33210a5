"""
Case-insensitive header map.

Header names are matched case-insensitively (RFC 5322), so `message-id`,
`Message-ID` and `MESSAGE-ID` are one entry. Values are unfolded and
trimmed of surrounding whitespace, otherwise kept verbatim: threading
identifiers are compared byte-for-byte by mail clients.
"""

import re
from collections.abc import Iterable, Iterator, Mapping
from email.parser import BytesHeaderParser
from email.policy import compat32

_FOLD_PATTERN = re.compile(r"\r?\n(?=[ \t])")


def unfold(value: str) -> str:
    """Remove header folding line breaks (RFC 5322 section 2.2.3)."""
    return _FOLD_PATTERN.sub("", value)


class HeaderMap(Mapping[str, str]):
    """Read-only header mapping; first occurrence of a name wins."""

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._headers: dict[str, tuple[str, str]] = {}
        for name, value in items:
            key = name.lower()
            if key not in self._headers:
                # Whitespace around the value is folding, not content
                self._headers[key] = (name, unfold(str(value)).strip(" \t"))

    @classmethod
    def from_raw(cls, raw: bytes) -> "HeaderMap":
        """Build from the header section of a raw MIME message."""
        # compat32 returns source values without re-rendering them
        parsed = BytesHeaderParser(policy=compat32).parsebytes(raw)
        return cls(parsed.items())

    def __getitem__(self, name: str) -> str:
        return self._headers[name.lower()][1]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._headers

    def __iter__(self) -> Iterator[str]:
        return (original for original, _ in self._headers.values())

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self._headers.values())!r})"
