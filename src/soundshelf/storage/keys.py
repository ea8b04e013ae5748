# Key helpers - traversal stripping and basename handling.
# Created: 2026-10-19

from __future__ import annotations

SEPARATOR = "/"


def strip_traversal(value: str | None) -> str:
    """Remove every ``..`` sequence and empty/``.`` segments.

    Traversal attempts are sanitized, not rejected. The result never has a
    leading separator, so it always joins underneath a storage root.
    """
    cleaned = (value or "").replace("\\", SEPARATOR).replace("..", "")
    segments = [seg for seg in cleaned.split(SEPARATOR) if seg not in ("", ".")]
    return SEPARATOR.join(segments)


def basename(key: str) -> str:
    """Last path segment, ignoring a trailing separator."""
    return key.rstrip(SEPARATOR).rsplit(SEPARATOR, 1)[-1]


def is_folder_marker(key: str, size: int) -> bool:
    """Object-store convention: zero-byte keys ending in the separator."""
    return key.endswith(SEPARATOR) and size == 0


def folder_key(key: str) -> str:
    return key if key.endswith(SEPARATOR) else key + SEPARATOR


def join_key(scope: str, name: str) -> str:
    return f"{scope}{SEPARATOR}{name}" if scope else name
