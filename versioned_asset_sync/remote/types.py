"""
Remote storage types.

Defines the sortable version identifier embedded in object names, the
object metadata returned by backends, and the typed result that the
remote store hands back instead of raising.
"""

from __future__ import annotations

import re
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from functools import total_ordering
from typing import Generic, TypeVar

T = TypeVar("T")

_VERSION_NAME = re.compile(r"^(?P<ts>\d+)-(?:(?P<tag>[0-9a-f]{8})-)?(?P<filename>.+)$")


@total_ordering
@dataclass(frozen=True)
class VersionId:
    """Sortable identifier of one immutable write.

    Rendered as ``{created_at_ms}-{filename}``, or
    ``{created_at_ms}-{disambiguator}-{filename}`` when a write collided
    with another writer's object of the same name. Versions order by
    creation time first, then by rendered name, which matches a plain
    lexicographic sort of names for same-width timestamps.

    Attributes:
        created_at_ms: Creation time in milliseconds since the epoch
        filename: Original (sanitized) file name
        disambiguator: Optional 8 hex char suffix added on collision
    """

    created_at_ms: int
    filename: str
    disambiguator: str | None = None

    @property
    def name(self) -> str:
        if self.disambiguator:
            return f"{self.created_at_ms}-{self.disambiguator}-{self.filename}"
        return f"{self.created_at_ms}-{self.filename}"

    @property
    def created_at(self) -> datetime:
        return datetime.fromtimestamp(self.created_at_ms / 1000, tz=UTC)

    def _sort_key(self) -> tuple[int, str]:
        return (self.created_at_ms, self.name)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, VersionId):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def disambiguated(self) -> VersionId:
        """Return a copy carrying a fresh random disambiguator."""
        return VersionId(
            created_at_ms=self.created_at_ms,
            filename=self.filename,
            disambiguator=secrets.token_hex(4),
        )

    @classmethod
    def parse(cls, name: str) -> VersionId | None:
        """Parse an object file name. Returns None for names this library did not write."""
        match = _VERSION_NAME.match(name)
        if match is None:
            return None
        return cls(
            created_at_ms=int(match.group("ts")),
            filename=match.group("filename"),
            disambiguator=match.group("tag"),
        )

    def __str__(self) -> str:
        return self.name


class VersionClock:
    """Issues strictly increasing version timestamps within one process.

    Two writes in the same millisecond get distinct timestamps, so
    uniqueness only depends on the backend's no-overwrite check for
    writes coming from other processes.
    """

    def __init__(self, now_ms: Callable[[], int] | None = None):
        self._now_ms = now_ms or (lambda: time.time_ns() // 1_000_000)
        self._last_ms = 0

    def next_version(self, filename: str) -> VersionId:
        ms = max(self._now_ms(), self._last_ms + 1)
        self._last_ms = ms
        return VersionId(created_at_ms=ms, filename=filename)


@dataclass
class ObjectInfo:
    """Metadata for one stored object as reported by a backend."""

    key: str
    size_bytes: int = 0
    content_type: str = "application/octet-stream"
    etag: str | None = None
    last_modified: datetime | None = None

    @property
    def name(self) -> str:
        """Final path segment of the key."""
        return self.key.rsplit("/", 1)[-1]


@dataclass
class StoredObject:
    """Downloaded object content plus its metadata."""

    content: bytes
    info: ObjectInfo

    @property
    def content_type(self) -> str:
        return self.info.content_type


@dataclass(frozen=True)
class VersionedObject:
    """One immutable write under a logical key's folder."""

    path: str
    version: VersionId | None
    content_type: str
    size_bytes: int

    @property
    def created_at(self) -> datetime | None:
        return self.version.created_at if self.version else None


class FailureKind(Enum):
    """Why a remote step did not produce a value."""

    NO_SESSION = "no_session"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    UNAVAILABLE = "unavailable"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class RemoteResult(Generic[T]):
    """Typed outcome of a remote call: a value, or a failure kind."""

    value: T | None = None
    failure: FailureKind | None = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> RemoteResult[T]:
        return cls(value=value)

    @classmethod
    def failed(cls, failure: FailureKind, message: str = "") -> RemoteResult[T]:
        return cls(failure=failure, message=message)


@dataclass
class RemovalReport:
    """Outcome of a best-effort batch removal."""

    removed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed
