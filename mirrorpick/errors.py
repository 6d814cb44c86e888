"""Exception classes for mirrorpick."""

from __future__ import annotations

from typing import Optional


class MirrorPickError(Exception):
    """Base exception for mirrorpick errors."""

    pass


class ConfigurationError(MirrorPickError, ValueError):
    """Raised for an invalid run plan, before any probing starts."""

    pass


class NoCandidates(MirrorPickError):
    """Raised when no endpoint produced a single successful sample."""

    def __init__(self, message: str = "No successful measurements were made.") -> None:
        super().__init__(message)


class ProbeFailure(MirrorPickError):
    """A single endpoint's measurement failed in one run.

    Never raised past the engine: it is stored on the failed ``Sample``
    with the original exception kept as ``cause``.
    """

    def __init__(self, endpoint: str, cause: Optional[BaseException] = None) -> None:
        self.endpoint = endpoint
        self.cause = cause
        if cause is None:
            detail = "unknown error"
        else:
            detail = str(cause) or type(cause).__name__
        self.detail = detail
        super().__init__(f"{endpoint}: {detail}")
