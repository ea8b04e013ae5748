# S3-compatible object store backend.
# Created: 2026-10-19
#
# Listing and stat go through boto3 (sync, run in worker threads). Temporary
# URLs are private-download URLs on the configured domain, signed with the
# qiniu SDK. Content is fetched over httpx with a fixed 30s timeout.

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

import httpx
from botocore.exceptions import BotoCoreError, ClientError

from soundshelf.errors import BackendUnavailable, NotFound, UpstreamTimeout
from soundshelf.storage import keys, media
from soundshelf.storage.protocol import (
    AccessGrant,
    ContentStream,
    Entry,
    EntryKind,
    RawItem,
    RawListing,
)
from soundshelf.storage.urls import ObjectStoreUrlResolver

logger = logging.getLogger(__name__)

PAGE_MAX = 1000
FETCH_TIMEOUT_SECONDS = 30.0


def _epoch_ms(value: datetime | None) -> int | None:
    if value is None:
        return None
    return int(value.timestamp() * 1000)


def _clamp_limit(limit: int) -> int:
    if limit <= 0:
        return PAGE_MAX
    return min(limit, PAGE_MAX)


def _is_missing(exc: ClientError) -> bool:
    response = getattr(exc, "response", {}) or {}
    status_code = (response.get("ResponseMetadata") or {}).get("HTTPStatusCode")
    error_code = str((response.get("Error") or {}).get("Code") or "")
    return status_code == 404 or error_code in ("404", "NoSuchKey", "NotFound")


class HttpContentStream(ContentStream):
    """Upstream HTTP response body, passed through undecoded."""

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.status_code = response.status_code

    @property
    def headers(self) -> dict[str, str]:
        return {name.lower(): value for name, value in self._response.headers.items()}

    @property
    def closed(self) -> bool:
        return self._response.is_closed

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.aiter_raw():
                yield chunk
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"Upstream read timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise BackendUnavailable(f"Upstream stream failed: {exc}") from exc

    async def aclose(self) -> None:
        await self._response.aclose()


class ObjectStoreBackend:
    """Object store backend with lazy boto3 initialization."""

    kind = "object_store"

    def __init__(
        self,
        *,
        bucket: str,
        domain: str | None = None,
        access_key: str | None = None,
        secret_key: str | None = None,
        region: str | None = None,
        endpoint_url: str | None = None,
        client: Any = None,
        auth: Any = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self.bucket = bucket
        self.access_key = access_key
        self.secret_key = secret_key
        self.region = region
        self.endpoint_url = endpoint_url
        self._client = client
        self._auth = auth
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=httpx.Timeout(FETCH_TIMEOUT_SECONDS), follow_redirects=True
        )
        self._resolver = ObjectStoreUrlResolver(domain, self._sign)

    @property
    def resolver(self) -> ObjectStoreUrlResolver:
        return self._resolver

    def _get_client(self):
        if self._client is not None:
            return self._client

        import boto3
        from botocore.config import Config

        client_kwargs: dict[str, Any] = {"service_name": "s3"}
        if self.region:
            client_kwargs["region_name"] = self.region
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url
        if self.access_key:
            client_kwargs["aws_access_key_id"] = self.access_key
        if self.secret_key:
            client_kwargs["aws_secret_access_key"] = self.secret_key
        client_kwargs["config"] = Config(signature_version="s3v4", s3={"addressing_style": "virtual"})

        self._client = boto3.client(**client_kwargs)
        return self._client

    def _get_auth(self):
        if self._auth is not None:
            return self._auth

        from qiniu import Auth

        try:
            self._auth = Auth(self.access_key, self.secret_key)
        except ValueError as exc:
            raise BackendUnavailable(f"Signing credentials rejected: {exc}") from exc
        return self._auth

    def _sign(self, public_url: str, expires_in: int) -> str:
        return self._get_auth().private_download_url(public_url, expires=int(expires_in))

    # -- listing -----------------------------------------------------------

    async def list(
        self,
        prefix: str = "",
        limit: int = 1000,
        *,
        marker: str | None = None,
        recursive: bool = False,
    ) -> RawListing:
        """List one page under *prefix*.

        Interactive listings use the ``/`` delimiter so sub-folders come back
        as common prefixes; recursive listings page through every key.
        """
        scope = prefix or ""
        if scope and not recursive:
            scope = keys.folder_key(scope)

        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Prefix": scope,
            "MaxKeys": _clamp_limit(limit),
        }
        if not recursive:
            params["Delimiter"] = keys.SEPARATOR
        if marker:
            params["ContinuationToken"] = marker

        try:
            data = await asyncio.to_thread(self._get_client().list_objects_v2, **params)
        except (BotoCoreError, ClientError) as exc:
            logger.error("Object store listing failed for %r: %s", scope, exc)
            raise BackendUnavailable(f"Listing failed: {exc}") from exc

        status_code = (data.get("ResponseMetadata") or {}).get("HTTPStatusCode", 200)
        if status_code != 200:
            raise BackendUnavailable(f"Listing failed with status {status_code}")

        items = [
            RawItem(
                key=obj["Key"],
                size=int(obj.get("Size") or 0),
                modified_at=_epoch_ms(obj.get("LastModified")),
            )
            for obj in data.get("Contents") or []
        ]
        common_prefixes = [cp["Prefix"] for cp in data.get("CommonPrefixes") or [] if cp.get("Prefix")]
        next_marker = data.get("NextContinuationToken") if data.get("IsTruncated") else None
        return RawListing(prefix=scope, items=items, common_prefixes=common_prefixes, marker=next_marker)

    # -- content -----------------------------------------------------------

    async def stat_one(self, key: str) -> Entry:
        try:
            data = await asyncio.to_thread(self._get_client().head_object, Bucket=self.bucket, Key=key)
        except ClientError as exc:
            if _is_missing(exc):
                raise NotFound(f"File not found: {key}") from exc
            raise BackendUnavailable(f"Stat failed: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendUnavailable(f"Stat failed: {exc}") from exc

        return Entry(
            key=key,
            name=keys.basename(key),
            kind=EntryKind.FILE,
            size=int(data.get("ContentLength") or 0),
            mime_type=data.get("ContentType") or media.guess_mime_type(key),
            modified_at=_epoch_ms(data.get("LastModified")),
            is_audio=media.is_audio(key),
            access_url=self._resolver.public_url(key),
        )

    async def open_content(self, key: str) -> HttpContentStream:
        """GET the key through a freshly signed URL, streaming the body."""
        grant = self._resolver.grant(key)
        request = self._http.build_request("GET", grant.url)
        try:
            response = await self._http.send(request, stream=True)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"Upstream fetch timed out after {FETCH_TIMEOUT_SECONDS:.0f}s") from exc
        except httpx.HTTPError as exc:
            raise BackendUnavailable(f"Upstream fetch failed: {exc}") from exc

        if response.status_code >= 400:
            await response.aclose()
            raise BackendUnavailable(f"Upstream returned status {response.status_code}")
        return HttpContentStream(response)

    def resolve_url(self, key: str) -> AccessGrant:
        return self._resolver.grant(key)

    def config_flags(self) -> dict[str, bool]:
        return {
            "hasAccessKey": bool(self.access_key),
            "hasSecretKey": bool(self.secret_key),
            "hasBucket": bool(self.bucket),
            "hasDomain": bool(self._resolver.domain),
        }

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()
