# Streaming proxy - same-origin pass-through of backend content.
# Created: 2026-10-19
#
# One ProxyRequest per HTTP request:
#   IDLE -> OPENING -> STREAMING -> COMPLETED | ABORTED | FAILED
# Every opened upstream stream is released exactly once, from release(),
# whether the body finished, failed, or the client went away.

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from enum import Enum
from typing import TYPE_CHECKING

from starlette.responses import StreamingResponse

from soundshelf.errors import ClientAborted, StorageError, UpstreamTimeout
from soundshelf.storage.protocol import ContentStream, StorageBackend

if TYPE_CHECKING:
    from starlette.types import Receive, Scope, Send

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS: dict[str, str] = {
    "cache-control": "no-cache, no-store, must-revalidate",
    "pragma": "no-cache",
    "expires": "0",
}

# Never copied from upstream: hop-by-hop headers plus the caching headers
# that get force-overridden above.
_DROPPED_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "cache-control",
        "pragma",
        "expires",
        "set-cookie",
    }
)


class ProxyState(str, Enum):
    """Lifecycle of one proxied request."""

    IDLE = "idle"
    OPENING = "opening"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"
    FAILED = "failed"


_TERMINAL = frozenset({ProxyState.COMPLETED, ProxyState.ABORTED, ProxyState.FAILED})


def response_headers(upstream: dict[str, str]) -> dict[str, str]:
    """Remap upstream content headers onto the local response."""
    headers = {
        name.lower(): value
        for name, value in upstream.items()
        if name.lower() not in _DROPPED_HEADERS
    }
    headers.update(NO_CACHE_HEADERS)
    return headers


class ProxyRequest:
    """Opens one key on a backend and streams it to one client."""

    def __init__(self, backend: StorageBackend, key: str) -> None:
        self.backend = backend
        self.key = key
        self.state = ProxyState.IDLE
        self.bytes_sent = 0
        self.error: StorageError | None = None
        self._stream: ContentStream | None = None

    async def open(self) -> ContentStream:
        self.state = ProxyState.OPENING
        try:
            self._stream = await self.backend.open_content(self.key)
        except StorageError as exc:
            self.state = ProxyState.FAILED
            self.error = exc
            logger.warning("Proxy open failed for %s: %s", self.key, exc.message)
            raise
        logger.debug("Proxy opened %s (status %d)", self.key, self._stream.status_code)
        return self._stream

    async def body(self) -> AsyncIterator[bytes]:
        """Yield upstream chunks, releasing the stream on every exit path."""
        if self._stream is None:
            raise RuntimeError("ProxyRequest.body() called before open()")
        stream = self._stream
        self.state = ProxyState.STREAMING
        try:
            async for chunk in stream.iter_chunks():
                self.bytes_sent += len(chunk)
                yield chunk
        except (asyncio.CancelledError, GeneratorExit):
            self._abort(f"Client aborted {self.key} after {self.bytes_sent} bytes")
            raise
        except UpstreamTimeout as exc:
            self.state = ProxyState.ABORTED
            self.error = exc
            logger.warning("Proxy timed out mid-stream for %s: %s", self.key, exc.message)
            raise
        except StorageError as exc:
            self.state = ProxyState.FAILED
            self.error = exc
            logger.error("Proxy stream failed for %s: %s", self.key, exc.message)
            raise
        else:
            self.state = ProxyState.COMPLETED
            logger.debug("Proxy completed %s (%d bytes)", self.key, self.bytes_sent)
        finally:
            await self.release()

    def _abort(self, message: str) -> None:
        self.state = ProxyState.ABORTED
        self.error = ClientAborted(message)
        logger.info("%s", message)

    async def release(self) -> None:
        """Close the upstream stream if still held. Safe to call repeatedly."""
        stream, self._stream = self._stream, None
        if stream is None:
            return
        if self.state not in _TERMINAL:
            # Response torn down before the body finished
            self._abort(f"Client aborted {self.key} before streaming finished")
        await asyncio.shield(stream.aclose())


class ProxyResponse(StreamingResponse):
    """StreamingResponse that releases its ProxyRequest when torn down."""

    def __init__(self, proxy_request: ProxyRequest, stream: ContentStream) -> None:
        super().__init__(
            proxy_request.body(),
            status_code=stream.status_code,
            headers=response_headers(stream.headers),
        )
        self.proxy_request = proxy_request

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.proxy_request.release()


class StreamingProxy:
    """Serves ``GET /api/proxy/<key>`` for whichever backend is configured."""

    def __init__(self, backend: StorageBackend) -> None:
        self.backend = backend

    async def respond(self, key: str) -> ProxyResponse:
        """Open *key* and wrap it in a streaming response.

        Errors raised here happen before any header is sent and become a
        structured JSON error at the HTTP boundary.
        """
        proxy_request = ProxyRequest(self.backend, key)
        stream = await proxy_request.open()
        return ProxyResponse(proxy_request, stream)
