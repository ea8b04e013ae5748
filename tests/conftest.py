# Shared fixtures and fakes for soundshelf tests.
# Created: 2026-10-19

from __future__ import annotations

from datetime import UTC, datetime

import httpx
import pytest
from botocore.exceptions import ClientError

from soundshelf.storage.filesystem import FilesystemBackend
from soundshelf.storage.object_store import ObjectStoreBackend

CDN = "http://cdn.example.com"


def client_error(code: str, status: int, operation: str = "ListObjectsV2") -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": code}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


class FakeS3Client:
    """Stand-in for a boto3 S3 client: canned pages, recorded calls."""

    def __init__(self, pages=None, head=None, error=None):
        self.pages = list(pages or [])
        self.head = head or {}
        self.error = error
        self.list_calls: list[dict] = []

    def list_objects_v2(self, **params):
        self.list_calls.append(params)
        if self.error:
            raise self.error
        if not self.pages:
            return {"ResponseMetadata": {"HTTPStatusCode": 200}, "Contents": []}
        return self.pages.pop(0)

    def head_object(self, Bucket, Key):
        if Key not in self.head:
            raise client_error("404", 404, "HeadObject")
        return self.head[Key]


class ChunkStream(httpx.AsyncByteStream):
    """Lazily streamed upstream body, read in two chunks."""

    def __init__(self, body: bytes) -> None:
        self.body = body

    async def __aiter__(self):
        half = len(self.body) // 2
        yield self.body[:half]
        yield self.body[half:]

    async def aclose(self) -> None:
        pass


def upstream_response(body: bytes, content_type: str = "audio/mpeg", headers=None) -> httpx.Response:
    """A 200 upstream response whose body is only read when streamed."""
    return httpx.Response(
        200,
        headers={"Content-Type": content_type, **(headers or {})},
        stream=ChunkStream(body),
    )


def page(contents=(), prefixes=(), token=None, status=200):
    """Build a list_objects_v2 response."""
    data = {
        "ResponseMetadata": {"HTTPStatusCode": status},
        "Contents": [
            {
                "Key": key,
                "Size": size,
                "LastModified": datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC),
            }
            for key, size in contents
        ],
        "CommonPrefixes": [{"Prefix": p} for p in prefixes],
        "IsTruncated": token is not None,
    }
    if token is not None:
        data["NextContinuationToken"] = token
    return data


def make_object_store(s3=None, handler=None, domain="cdn.example.com"):
    """ObjectStoreBackend wired to a fake S3 client and an httpx MockTransport."""
    if handler is None:

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ObjectStoreBackend(
        bucket="media",
        domain=domain,
        access_key="ak",
        secret_key="sk",
        region="cn-east-1",
        client=s3 or FakeS3Client(),
        http=http,
    )


@pytest.fixture
def storage_root(tmp_path):
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def music_root(storage_root):
    """Storage root holding music/song.mp3 (10 bytes) and music/cover.png."""
    music = storage_root / "music"
    music.mkdir()
    (music / "song.mp3").write_bytes(b"0123456789")
    (music / "cover.png").write_bytes(b"\x89PNG....")
    return storage_root


@pytest.fixture
def fs_backend(music_root):
    return FilesystemBackend(music_root)
