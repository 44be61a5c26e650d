from __future__ import annotations

class UserFacingError(Exception):
    """Base exception carrying user-presentable context."""

    def __init__(self, message: str, *, title: str, remediation: str | None = None) -> None:
        super().__init__(message)
        self.title = title
        self.remediation = remediation or ""


class SettingsLocationError(UserFacingError):
    pass


class CodecError(ValueError):
    """A stored value could not be decoded to the requested type."""


class InvalidVersionError(ValueError):
    """A string is not a dotted-numeric version."""


__all__ = [
    "UserFacingError",
    "SettingsLocationError",
    "CodecError",
    "InvalidVersionError",
]
