# Files router - listing, access URLs and streamed content.
# Created: 2026-10-19
#
# Written once for every backend; differences live behind StorageBackend.

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from soundshelf.api.deps import get_storage
from soundshelf.api.schemas import (
    HealthResponse,
    ListingData,
    ListingResponse,
    TempUrlData,
    TempUrlResponse,
)
from soundshelf.proxy import StreamingProxy
from soundshelf.storage.normalizer import normalize_listing
from soundshelf.storage.protocol import StorageBackend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Files"])

DEFAULT_LIMIT = 1000


def _parse_limit(raw: str | None) -> int:
    """Lenient integer parse; anything unusable falls back to the default."""
    try:
        value = int(raw) if raw is not None else DEFAULT_LIMIT
    except ValueError:
        return DEFAULT_LIMIT
    return value if value > 0 else DEFAULT_LIMIT


@router.get("/files", response_model=ListingResponse)
async def list_files(
    prefix: str = "",
    limit: str | None = None,
    storage: StorageBackend = Depends(get_storage),
):
    """List files and folders under a prefix. Missing folders list empty."""
    raw = await storage.list(prefix, _parse_limit(limit))
    listing = normalize_listing(raw, storage.resolver, prefix=prefix)
    return ListingResponse(data=ListingData.from_listing(listing))


@router.get("/files/{key:path}")
async def get_file(key: str, storage: StorageBackend = Depends(get_storage)):
    """Serve the internal route URLs handed out by the filesystem backend."""
    return await StreamingProxy(storage).respond(key)


@router.get(
    "/temp-url/{key:path}",
    response_model=TempUrlResponse,
    response_model_exclude_none=True,
)
async def temp_url(key: str, storage: StorageBackend = Depends(get_storage)):
    """Fresh access URL for a key (signed for the object store)."""
    logger.debug("Access URL requested for %s", key)
    grant = storage.resolve_url(key)
    return TempUrlResponse(
        data=TempUrlData(
            url=grant.url,
            key=key,
            domain=storage.resolver.domain,
            expiresAt=int(grant.expires_at.timestamp()) if grant.expires_at else None,
        ),
        debug=storage.config_flags(),
    )


@router.get("/proxy/{key:path}")
async def proxy(key: str, storage: StorageBackend = Depends(get_storage)):
    """Stream backend content under this server's origin."""
    return await StreamingProxy(storage).respond(key)


@router.get("/health", response_model=HealthResponse)
async def health(storage: StorageBackend = Depends(get_storage)):
    return HealthResponse(backend=storage.kind)
