"""
Exception classes for wbs-sync.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import SyncStats


class WbsSyncError(Exception):
    """Base exception for all wbs-sync errors."""
    pass


class ConfigurationError(WbsSyncError):
    """Raised when the project reference or credential is missing or invalid."""
    pass


class ApiError(WbsSyncError):
    """Raised when the remote service answers with a structured failure."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RequestFailedError(WbsSyncError):
    """Raised when a request keeps failing at the transport level after all retries."""
    pass


class SyncAlreadyRunningError(WbsSyncError):
    """Raised when sync() is called while another run is active."""
    pass


class SyncAbortedError(WbsSyncError):
    """Raised when a run cannot bootstrap; carries the (zeroed) stats of the run."""

    def __init__(self, message: str, *, stats: SyncStats) -> None:
        super().__init__(message)
        self.stats = stats
