"""Shared types for curiosync.

This module defines the enums and exceptions used by the local store,
the remote store and the sync orchestrator.
"""

from __future__ import annotations

from enum import Enum


class LoadState(str, Enum):
    """State of one load cycle of the sync orchestrator."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    DEGRADED = "degraded"


class StatusTone(str, Enum):
    """Tone of a status message reported to the presentation layer."""

    SUCCESS = "success"
    ERROR = "error"


class StatusKey(str, Enum):
    """Message keys passed to the status callback.

    The presentation layer translates these into user-facing text.
    """

    SYNCED = "statusSynced"
    SYNC_PAUSED = "statusSyncPaused"
    SYNC_ERROR = "statusSyncError"
    UPLOAD_FAILED = "statusUploadFailed"
    PENDING_SYNCED = "statusPendingSynced"


# === Exceptions ===


class CurioError(Exception):
    """Base exception for curiosync errors."""


class ValidationError(CurioError):
    """Malformed entity (e.g. missing identifier).

    Fatal to the operation that raised it; never retried.
    """


class LocalStoreError(CurioError):
    """The local durable store failed to read or write."""


class RemoteError(CurioError):
    """Base exception for remote store errors."""


class RemoteUnavailableError(RemoteError):
    """Network or authentication failure while talking to the remote store."""


class AuthenticationError(RemoteUnavailableError):
    """Authentication failed (invalid or expired token)."""


class APIError(RemoteError):
    """Remote store answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientUploadError(RemoteError):
    """A single upload attempt failed; it may succeed on retry."""

    def __init__(self, label: str, attempt: int, cause: BaseException) -> None:
        self.label = label
        self.attempt = attempt
        self.cause = cause
        super().__init__(f"Upload of {label} failed on attempt {attempt}: {cause}")


class RemoteWriteError(RemoteError):
    """Remote upsert/upload failed after the local write succeeded."""
