# Storage protocol - the contract both backends implement.
# Created: 2026-10-19
#
# Backends return raw listings; soundshelf.storage.normalizer turns them into
# the canonical Listing shape so route code never inspects backend identity.

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol, runtime_checkable


class EntryKind(str, Enum):
    """Kinds of listable items."""

    FILE = "file"
    FOLDER = "folder"


@dataclass
class Entry:
    """A single file or folder in a backend's namespace.

    Folder entries never carry size, mime or audio fields.
    """

    key: str
    name: str
    kind: EntryKind
    size: int | None = None
    mime_type: str | None = None
    modified_at: int | None = None  # epoch milliseconds
    is_audio: bool | None = None
    access_url: str | None = None


@dataclass
class Listing:
    """Canonical result of a list operation."""

    prefix: str
    files: list[Entry] = field(default_factory=list)
    folders: list[Entry] = field(default_factory=list)


@dataclass
class RawItem:
    """One object/file as the backend reports it, before normalization."""

    key: str
    size: int
    modified_at: int | None = None
    mime_type: str | None = None


@dataclass
class RawListing:
    """Backend-native listing.

    ``common_prefixes`` is the object-store virtual-folder channel,
    ``directories`` holds native directory keys (trailing separator kept).
    ``marker`` is the continuation token for the next page, if any.
    """

    prefix: str
    items: list[RawItem] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    directories: list[str] = field(default_factory=list)
    marker: str | None = None


@dataclass
class AccessGrant:
    """Ephemeral access URL, produced per request and never cached."""

    url: str
    expires_at: datetime | None = None


class UrlResolver(Protocol):
    """Produces backend-appropriate access URLs for keys."""

    @property
    def domain(self) -> str:
        """Normalized public domain, empty when the backend has none."""
        ...

    def public_url(self, key: str) -> str:
        """Stable URL placed on listing entries."""
        ...

    def grant(self, key: str) -> AccessGrant:
        """Fresh access grant (signed URL or internal route)."""
        ...


class ContentStream(ABC):
    """Open byte stream plus the headers describing it.

    ``aclose`` must be safe to call more than once.
    """

    status_code: int = 200

    @property
    @abstractmethod
    def headers(self) -> dict[str, str]:
        """Content headers to send with the stream."""
        ...

    @abstractmethod
    def iter_chunks(self) -> AsyncIterator[bytes]:
        """Yield content until EOF."""
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release the underlying socket or descriptor."""
        ...


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for storage backends (object store, local filesystem)."""

    kind: str

    @property
    def resolver(self) -> UrlResolver:
        ...

    async def list(
        self,
        prefix: str = "",
        limit: int = 1000,
        *,
        marker: str | None = None,
        recursive: bool = False,
    ) -> RawListing:
        """List one page of entries under *prefix*."""
        ...

    async def stat_one(self, key: str) -> Entry:
        """Return the File entry for *key* or raise NotFound."""
        ...

    async def open_content(self, key: str) -> ContentStream:
        """Open *key* for streaming."""
        ...

    def resolve_url(self, key: str) -> AccessGrant:
        """Access grant for *key*, delegated to the resolver."""
        ...

    def config_flags(self) -> dict[str, bool] | None:
        """Presence flags for required configuration, if any."""
        ...

    async def aclose(self) -> None:
        """Release long-lived clients."""
        ...
