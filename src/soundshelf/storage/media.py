# Media helpers - audio detection and the static extension to MIME table.
# Created: 2026-10-19

from __future__ import annotations

import posixpath

DEFAULT_MIME_TYPE = "application/octet-stream"

AUDIO_EXTENSIONS = frozenset({".mp3", ".wav", ".ogg", ".flac", ".aac", ".m4a"})

MIME_TYPES: dict[str, str] = {
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".aac": "audio/aac",
    ".m4a": "audio/mp4",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".txt": "text/plain",
}


def extension_of(key: str) -> str:
    """Lower-cased extension of the key's basename, including the dot."""
    return posixpath.splitext(posixpath.basename(key))[1].lower()


def is_audio(key: str) -> bool:
    return extension_of(key) in AUDIO_EXTENSIONS


def guess_mime_type(key: str) -> str:
    return MIME_TYPES.get(extension_of(key), DEFAULT_MIME_TYPE)
