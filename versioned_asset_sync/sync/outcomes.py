"""
Sync outcome types.

Remote failures travel as RemoteResult values until they reach
downgrade(), the one place where a failure is turned into a quiet
"not updated" outcome and logged.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..remote.types import FailureKind, RemoteResult

_LOG_LEVELS = {
    FailureKind.NO_SESSION: logging.DEBUG,
    FailureKind.NOT_FOUND: logging.INFO,
    FailureKind.PERMISSION_DENIED: logging.WARNING,
    FailureKind.UNAVAILABLE: logging.WARNING,
    FailureKind.MALFORMED: logging.WARNING,
}


class AssetKind(Enum):
    """How a cached value is stored and decoded."""

    BLOB = "blob"
    JSON = "json"


class SyncState(Enum):
    """Reconciliation states for one (owner, key)."""

    IDLE = "idle"
    CHECKING_REMOTE = "checking_remote"
    COMPARING_VERSION = "comparing_version"
    NOTIFYING_CALLER = "notifying_caller"
    FETCHING = "fetching"
    COMMITTING = "committing"


@dataclass
class SyncOutcome:
    """Result of a reconciliation pass.

    Attributes:
        updated: True only when new remote content was committed locally
        data: The committed value (CachedBlob or JSON document) when updated
        version: Remote version marker seen during the pass, if any
        stage: State in which the pass terminated
        failure: Why a remote step produced nothing, if it failed
        cancelled: True if the requester abandoned the pass
    """

    updated: bool
    data: Any = None
    version: str | None = None
    stage: SyncState = SyncState.IDLE
    failure: FailureKind | None = None
    cancelled: bool = False


@dataclass
class UploadOutcome:
    """Result of an upload.

    The value is always saved locally when an outcome is returned; a
    local failure raises instead. marker is the new remote version, or
    None when the upload stayed local-only.
    """

    marker: str | None = None
    saved_locally: bool = True
    failure: FailureKind | None = None
    message: str = ""

    @property
    def remote_written(self) -> bool:
        return self.marker is not None


class CancellationToken:
    """Flag a requester sets when it no longer wants a pass's result.

    In-flight network calls are allowed to finish; the reconciler checks
    the flag after each suspension point and discards what it got.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


def downgrade(
    result: RemoteResult[Any],
    log: logging.LoggerAdapter | logging.Logger,
    stage: SyncState,
    version: str | None = None,
) -> SyncOutcome:
    """Turn a failed remote result into a logged "not updated" outcome."""
    failure = result.failure or FailureKind.UNAVAILABLE
    log.log(
        _LOG_LEVELS[failure],
        f"Remote step skipped during {stage.value}: {failure.value}"
        + (f" ({result.message})" if result.message else ""),
    )
    return SyncOutcome(updated=False, version=version, stage=stage, failure=failure)


def downgrade_upload(
    result: RemoteResult[Any],
    log: logging.LoggerAdapter | logging.Logger,
) -> UploadOutcome:
    """Turn a failed remote write into a logged local-only upload outcome."""
    failure = result.failure or FailureKind.UNAVAILABLE
    log.log(
        _LOG_LEVELS[failure],
        f"Upload kept local only: {failure.value}"
        + (f" ({result.message})" if result.message else ""),
    )
    return UploadOutcome(marker=None, failure=failure, message=result.message)
