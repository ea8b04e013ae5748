"""Storage backends sharing one listing/retrieval contract."""

from .factory import build_backend
from .filesystem import FilesystemBackend
from .normalizer import normalize_listing
from .object_store import ObjectStoreBackend
from .protocol import (
    AccessGrant,
    ContentStream,
    Entry,
    EntryKind,
    Listing,
    RawItem,
    RawListing,
    StorageBackend,
    UrlResolver,
)

__all__ = [
    "AccessGrant",
    "ContentStream",
    "Entry",
    "EntryKind",
    "FilesystemBackend",
    "Listing",
    "ObjectStoreBackend",
    "RawItem",
    "RawListing",
    "StorageBackend",
    "UrlResolver",
    "build_backend",
    "normalize_listing",
]
