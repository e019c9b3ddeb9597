"""Exception types raised by the acquisition pipeline."""

from __future__ import annotations


class KitwatchError(Exception):
    """Base class for kitwatch failures."""


class AcquireError(KitwatchError):
    """Downloading a validated candidate failed (network, timeout or disk)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class StoreError(KitwatchError):
    """The dedup store cannot be read or written; the run must halt."""


__all__ = ["AcquireError", "KitwatchError", "StoreError"]
