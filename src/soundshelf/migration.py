# Migration runner - bulk copy of every key from a backend onto local disk.
# Created: 2026-10-19
#
# A batch client of the same list/open_content contract the HTTP API uses.
# Per-file failures are recorded and skipped; a listing failure ends the run.

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path

from soundshelf.errors import InvalidInput, StorageError
from soundshelf.storage import keys
from soundshelf.storage.protocol import RawItem, StorageBackend

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000


@dataclass
class MigrationFailure:
    key: str
    error: str


@dataclass
class MigrationReport:
    """Outcome of one migration run."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: list[MigrationFailure] = field(default_factory=list)
    seconds: float = 0.0

    def write_failures(self, path: Path) -> None:
        path.write_text(
            json.dumps([asdict(f) for f in self.failures], indent=2, ensure_ascii=False),
            encoding="utf-8",
        )


class MigrationRunner:
    """Copies every file under a prefix from *source* into *target_root*."""

    def __init__(self, source: StorageBackend, target_root: str | Path) -> None:
        self.source = source
        self.target_root = Path(target_root).expanduser().resolve()

    async def collect(self, prefix: str = "") -> list[RawItem]:
        """Page through the full recursive listing (marker pagination)."""
        items: list[RawItem] = []
        marker: str | None = None
        page = 1
        while True:
            raw = await self.source.list(prefix, PAGE_SIZE, marker=marker, recursive=True)
            files = [i for i in raw.items if not keys.is_folder_marker(i.key, i.size)]
            items.extend(files)
            logger.info("Fetched page %d: %d files", page, len(files))
            marker = raw.marker
            page += 1
            if not marker:
                break
        return items

    def target_path(self, key: str) -> Path:
        relative = keys.strip_traversal(key)
        if not relative:
            raise InvalidInput(f"Invalid key: {key!r}")
        path = (self.target_root / relative).resolve()
        try:
            path.relative_to(self.target_root)
        except ValueError as exc:
            raise InvalidInput(f"Key resolves outside target: {key!r}") from exc
        return path

    async def copy_one(self, key: str) -> None:
        """Stream one key to disk; a partial file is removed on failure."""
        destination = self.target_path(key)
        await asyncio.to_thread(destination.parent.mkdir, parents=True, exist_ok=True)

        stream = await self.source.open_content(key)
        try:
            fh = await asyncio.to_thread(open, destination, "wb")
            try:
                async for chunk in stream.iter_chunks():
                    await asyncio.to_thread(fh.write, chunk)
            finally:
                fh.close()
        except BaseException:
            destination.unlink(missing_ok=True)
            raise
        finally:
            await stream.aclose()

    async def run(self, prefix: str = "") -> MigrationReport:
        started = time.monotonic()
        await asyncio.to_thread(self.target_root.mkdir, parents=True, exist_ok=True)

        items = await self.collect(prefix)
        report = MigrationReport(total=len(items))
        logger.info("Migrating %d files into %s", report.total, self.target_root)

        for item in items:
            try:
                await self.copy_one(item.key)
            except (StorageError, OSError) as exc:
                message = exc.message if isinstance(exc, StorageError) else str(exc)
                logger.error("Failed: %s (%s)", item.key, message)
                report.failed += 1
                report.failures.append(MigrationFailure(key=item.key, error=message))
            else:
                report.succeeded += 1
                logger.info("Downloaded: %s", item.key)

        report.seconds = round(time.monotonic() - started, 2)
        logger.info(
            "Migration finished: %d/%d succeeded, %d failed in %.1fs",
            report.succeeded,
            report.total,
            report.failed,
            report.seconds,
        )
        return report
