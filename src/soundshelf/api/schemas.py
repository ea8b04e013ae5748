# API response schemas.
# Created: 2026-10-19
#
# Field names are the wire format shared by both backends.

from __future__ import annotations

from pydantic import BaseModel

from soundshelf.storage.protocol import Entry, Listing


class APIResponse(BaseModel):
    """Base response wrapper."""

    model_config = {"from_attributes": True}


class ErrorResponse(APIResponse):
    """Standard error envelope."""

    success: bool = False
    message: str


class FileEntry(APIResponse):
    """A single file in a listing."""

    name: str
    key: str
    url: str
    size: int
    mimeType: str
    putTime: int | None = None
    isAudio: bool = False

    @classmethod
    def from_entry(cls, entry: Entry) -> FileEntry:
        return cls(
            name=entry.name,
            key=entry.key,
            url=entry.access_url or "",
            size=entry.size or 0,
            mimeType=entry.mime_type or "application/octet-stream",
            putTime=entry.modified_at,
            isAudio=bool(entry.is_audio),
        )


class FolderEntry(APIResponse):
    """A single folder in a listing."""

    name: str
    key: str
    isFolder: bool = True

    @classmethod
    def from_entry(cls, entry: Entry) -> FolderEntry:
        return cls(name=entry.name, key=entry.key)


class ListingData(APIResponse):
    files: list[FileEntry] = []
    folders: list[FolderEntry] = []
    currentPrefix: str = ""

    @classmethod
    def from_listing(cls, listing: Listing) -> ListingData:
        return cls(
            files=[FileEntry.from_entry(e) for e in listing.files],
            folders=[FolderEntry.from_entry(e) for e in listing.folders],
            currentPrefix=listing.prefix,
        )


class ListingResponse(APIResponse):
    """File browser listing."""

    success: bool = True
    data: ListingData


class TempUrlData(APIResponse):
    url: str
    key: str
    domain: str = ""
    expiresAt: int | None = None  # epoch seconds, absent for stable paths


class TempUrlResponse(APIResponse):
    """Access URL for one key."""

    success: bool = True
    data: TempUrlData
    debug: dict[str, bool] | None = None


class HealthResponse(APIResponse):
    status: str = "ok"
    backend: str
