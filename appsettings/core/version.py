"""Dotted-numeric application versions.

Version directories are named ``major.minor[.build[.revision]]``. Ordering
compares components left to right; a version with fewer components sorts
before one that spells out the same prefix (``1.0 < 1.0.0``).
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Optional

from appsettings.core.errors import InvalidVersionError

_MIN_PARTS = 2
_MAX_PARTS = 4


@total_ordering
@dataclass(frozen=True, slots=True, eq=True)
class VersionToken:
    parts: tuple[int, ...]

    @classmethod
    def parse(cls, text: str) -> "VersionToken":
        raw = text.strip()
        pieces = raw.split(".")
        if not _MIN_PARTS <= len(pieces) <= _MAX_PARTS:
            raise InvalidVersionError(f"Expected 2 to 4 dotted components: {text!r}")
        parts: list[int] = []
        for piece in pieces:
            # int() would also accept "+1", " 1" and "1_0".
            if not piece.isdigit() or not piece.isascii():
                raise InvalidVersionError(f"Version component is not a number: {text!r}")
            parts.append(int(piece))
        return cls(tuple(parts))

    @classmethod
    def try_parse(cls, text: str) -> Optional["VersionToken"]:
        try:
            return cls.parse(text)
        except InvalidVersionError:
            return None

    @property
    def major(self) -> int:
        return self.parts[0]

    @property
    def minor(self) -> int:
        return self.parts[1]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionToken):
            return NotImplemented
        return self.parts < other.parts

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.parts)


__all__ = ["VersionToken"]
