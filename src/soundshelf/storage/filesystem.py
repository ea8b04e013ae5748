# Local filesystem storage backend.
# Created: 2026-10-19
#
# Files live under the storage root mirroring the key hierarchy verbatim.
# Size/mime/mtime are derived live on every call, no sidecar metadata.

from __future__ import annotations

import asyncio
import logging
import os
import stat
from collections.abc import AsyncIterator
from pathlib import Path
from typing import BinaryIO

from soundshelf.errors import BackendUnavailable, InvalidInput, NotFound
from soundshelf.storage import keys, media
from soundshelf.storage.protocol import (
    AccessGrant,
    ContentStream,
    Entry,
    EntryKind,
    RawItem,
    RawListing,
)
from soundshelf.storage.urls import RouteUrlResolver, encode_key

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def _mtime_ms(st: os.stat_result) -> int:
    return st.st_mtime_ns // 1_000_000


class FileContentStream(ContentStream):
    """Read stream over an open file descriptor."""

    def __init__(self, fh: BinaryIO, entry: Entry) -> None:
        self._fh = fh
        self._entry = entry

    @property
    def headers(self) -> dict[str, str]:
        return {
            "content-type": self._entry.mime_type or media.DEFAULT_MIME_TYPE,
            "content-length": str(self._entry.size or 0),
            "content-disposition": f'inline; filename="{encode_key(self._entry.name)}"',
        }

    @property
    def closed(self) -> bool:
        return self._fh.closed

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        while True:
            chunk = await asyncio.to_thread(self._fh.read, CHUNK_SIZE)
            if not chunk:
                break
            yield chunk

    async def aclose(self) -> None:
        if not self._fh.closed:
            self._fh.close()


class FilesystemBackend:
    """Storage backend rooted at a local directory."""

    kind = "local"

    def __init__(self, root: str | Path, route_base: str = "/api/files") -> None:
        self.root = Path(root).expanduser().resolve()
        if not self.root.exists():
            self.root.mkdir(parents=True, exist_ok=True)
            logger.info("Created storage directory: %s", self.root)
        self._resolver = RouteUrlResolver(route_base)

    @property
    def resolver(self) -> RouteUrlResolver:
        return self._resolver

    def path_for(self, key: str) -> Path | None:
        """Resolve a key under the root, or None if it escapes (symlinks)."""
        scope = keys.strip_traversal(key)
        candidate = (self.root / scope).resolve() if scope else self.root
        try:
            candidate.relative_to(self.root)
        except ValueError:
            logger.warning("Key %r resolves outside the storage root", key)
            return None
        return candidate

    # -- listing -----------------------------------------------------------

    async def list(
        self,
        prefix: str = "",
        limit: int = 1000,
        *,
        marker: str | None = None,
        recursive: bool = False,
    ) -> RawListing:
        """List a directory. A missing directory is an empty listing.

        The filesystem has a single page, so *limit* and *marker* are
        accepted for contract symmetry only.
        """
        scope = keys.strip_traversal(prefix)
        directory = self.path_for(scope)
        raw = RawListing(prefix=scope)
        if directory is None:
            return raw

        logger.debug("Reading directory: %s", directory)
        try:
            if recursive:
                raw.items = await asyncio.to_thread(self._walk, directory)
            else:
                raw.items, raw.directories = await asyncio.to_thread(self._scan, directory, scope)
        except (FileNotFoundError, NotADirectoryError):
            return raw
        except OSError as exc:
            raise BackendUnavailable(f"Cannot read directory {scope or '/'}: {exc}") from exc
        return raw

    def _scan(self, directory: Path, scope: str) -> tuple[list[RawItem], list[str]]:
        items: list[RawItem] = []
        directories: list[str] = []
        with os.scandir(directory) as it:
            for entry in it:
                key = keys.join_key(scope, entry.name)
                if entry.is_dir():
                    directories.append(keys.folder_key(key))
                    continue
                try:
                    st = entry.stat()
                except OSError as exc:
                    # Unreadable entries are skipped, the rest of the listing stands
                    logger.warning("Skipping %s: %s", key, exc)
                    continue
                items.append(RawItem(key=key, size=st.st_size, modified_at=_mtime_ms(st)))
        return items, directories

    def _walk(self, directory: Path) -> list[RawItem]:
        items: list[RawItem] = []
        for current, dirnames, filenames in os.walk(directory):
            dirnames.sort()
            for filename in sorted(filenames):
                full_path = Path(current) / filename
                try:
                    st = full_path.stat()
                except OSError as exc:
                    logger.warning("Skipping %s: %s", full_path, exc)
                    continue
                key = full_path.relative_to(self.root).as_posix()
                items.append(RawItem(key=key, size=st.st_size, modified_at=_mtime_ms(st)))
        return items

    # -- content -----------------------------------------------------------

    def _locate(self, key: str) -> Path:
        if not keys.strip_traversal(key):
            raise InvalidInput(f"Invalid key: {key!r}")
        path = self.path_for(key)
        if path is None:
            raise NotFound(f"File not found: {key}")
        return path

    async def _stat_path(self, path: Path, key: str) -> Entry:
        try:
            st = await asyncio.to_thread(path.stat)
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise NotFound(f"File not found: {key}") from exc
        except OSError as exc:
            raise BackendUnavailable(f"Cannot stat {key}: {exc}") from exc
        if stat.S_ISDIR(st.st_mode):
            raise NotFound(f"Not a file: {key}")

        clean_key = keys.strip_traversal(key)
        return Entry(
            key=clean_key,
            name=path.name,
            kind=EntryKind.FILE,
            size=st.st_size,
            mime_type=media.guess_mime_type(clean_key),
            modified_at=_mtime_ms(st),
            is_audio=media.is_audio(clean_key),
            access_url=self._resolver.public_url(clean_key),
        )

    async def stat_one(self, key: str) -> Entry:
        return await self._stat_path(self._locate(key), key)

    async def open_content(self, key: str) -> FileContentStream:
        path = self._locate(key)
        entry = await self._stat_path(path, key)
        try:
            fh = await asyncio.to_thread(open, path, "rb")
        except FileNotFoundError as exc:
            raise NotFound(f"File not found: {key}") from exc
        except OSError as exc:
            raise BackendUnavailable(f"Cannot open {key}: {exc}") from exc
        return FileContentStream(fh, entry)

    def resolve_url(self, key: str) -> AccessGrant:
        return self._resolver.grant(keys.strip_traversal(key))

    def config_flags(self) -> dict[str, bool] | None:
        return None

    async def aclose(self) -> None:
        return None
