# Backend factory - picks and builds the storage backend once at startup.
# Created: 2026-10-19

from __future__ import annotations

import logging

from soundshelf.config import Settings
from soundshelf.errors import ConfigurationError
from soundshelf.storage.filesystem import FilesystemBackend
from soundshelf.storage.object_store import ObjectStoreBackend
from soundshelf.storage.protocol import StorageBackend

logger = logging.getLogger(__name__)


def build_filesystem_backend(settings: Settings) -> FilesystemBackend:
    return FilesystemBackend(settings.storage_path)


def build_object_store_backend(settings: Settings) -> ObjectStoreBackend:
    missing = settings.missing_object_store_fields()
    if missing:
        raise ConfigurationError(
            "Object store backend is missing required settings: " + ", ".join(missing)
        )
    return ObjectStoreBackend(
        bucket=settings.bucket or "",
        domain=settings.domain,
        access_key=settings.access_key,
        secret_key=settings.secret_key,
        region=settings.region,
        endpoint_url=settings.resolved_endpoint_url,
    )


def build_backend(settings: Settings) -> StorageBackend:
    """Build the backend selected by ``settings.backend``."""
    if settings.backend == "object_store":
        backend: StorageBackend = build_object_store_backend(settings)
        logger.info(
            "Using object store backend (bucket=%s, endpoint=%s)",
            settings.bucket,
            settings.resolved_endpoint_url,
        )
    else:
        backend = build_filesystem_backend(settings)
        logger.info("Using local filesystem backend (root=%s)", settings.storage_path)
    return backend
