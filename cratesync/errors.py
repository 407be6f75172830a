from __future__ import annotations


class CratesyncError(Exception):
    """Base class for errors raised by cratesync."""


class AuthError(CratesyncError):
    """No usable Spotify credential. Fatal for the run."""

    def __init__(self, reason: str, detail: str = ""):
        self.reason = reason
        self.detail = detail
        super().__init__(f"{reason}: {detail}" if detail else reason)


class TransportError(CratesyncError):
    """A remote read failed; callers treat the result as empty."""


class WriteError(CratesyncError):
    """A playlist write was rejected; the remaining chunks are abandoned."""


class ConfigError(CratesyncError):
    pass


__all__ = ["CratesyncError", "AuthError", "TransportError", "WriteError", "ConfigError"]
