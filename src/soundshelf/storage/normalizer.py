# Listing normalizer - raw backend listings into the canonical Listing shape.
# Created: 2026-10-19

from __future__ import annotations

import logging

from soundshelf.storage import keys, media
from soundshelf.storage.protocol import Entry, EntryKind, Listing, RawItem, RawListing, UrlResolver

logger = logging.getLogger(__name__)


def file_entry(item: RawItem, resolver: UrlResolver) -> Entry:
    """Build a File entry with audio flag and access URL attached."""
    return Entry(
        key=item.key,
        name=keys.basename(item.key),
        kind=EntryKind.FILE,
        size=item.size,
        mime_type=item.mime_type or media.guess_mime_type(item.key),
        modified_at=item.modified_at,
        is_audio=media.is_audio(item.key),
        access_url=resolver.public_url(item.key),
    )


def folder_entry(key: str) -> Entry:
    return Entry(key=keys.folder_key(key), name=keys.basename(key), kind=EntryKind.FOLDER)


def normalize_listing(raw: RawListing, resolver: UrlResolver, prefix: str | None = None) -> Listing:
    """Merge objects, folder markers, common prefixes and directories.

    Folder keys are deduplicated by equality no matter which channel
    reported them. A marker for the listed prefix itself is not a child
    folder and is dropped. Ordering is left to the presentation layer.
    """
    scope = raw.prefix if prefix is None else prefix
    files: list[Entry] = []
    folder_keys: dict[str, None] = {}

    for item in raw.items:
        if keys.is_folder_marker(item.key, item.size):
            if raw.prefix and item.key == keys.folder_key(raw.prefix):
                continue
            folder_keys.setdefault(item.key, None)
            continue
        files.append(file_entry(item, resolver))

    for common_prefix in raw.common_prefixes:
        folder_keys.setdefault(keys.folder_key(common_prefix), None)

    for directory in raw.directories:
        folder_keys.setdefault(keys.folder_key(directory), None)

    folders = [folder_entry(key) for key in folder_keys]
    logger.debug("Normalized %r: %d files, %d folders", scope, len(files), len(folders))
    return Listing(prefix=scope, files=files, folders=folders)
