# URL resolution - public, signed and internal-route access URLs.
# Created: 2026-10-19
#
# encode_key() is the only place keys get percent-encoded. Route handlers
# receive keys already decoded once by the framework.

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from urllib.parse import quote

from soundshelf.storage.protocol import AccessGrant

logger = logging.getLogger(__name__)

SIGNED_URL_TTL_SECONDS = 3600

# Characters encodeURIComponent leaves alone; "/" is encoded so a key
# always travels as a single path segment.
_COMPONENT_SAFE = "-_.!~*'()"


def encode_key(key: str) -> str:
    """Percent-encode a key exactly once."""
    return quote(key, safe=_COMPONENT_SAFE)


def normalize_domain(domain: str | None) -> str:
    """Ensure a scheme prefix and drop trailing separators.

    Defaults to plain http so a custom domain without a matching
    certificate still resolves.
    """
    value = (domain or "").strip()
    if not value:
        return ""
    if not value.startswith(("http://", "https://")):
        value = "http://" + value
    return value.rstrip("/")


class ObjectStoreUrlResolver:
    """Public URLs from the configured domain, temporary URLs from a signer.

    *signer* is the object-store SDK's private-download primitive:
    ``signer(public_url, expires_in_seconds) -> url``. It receives the
    public URL on the configured domain and its output is returned
    unchanged.
    """

    def __init__(
        self,
        domain: str | None,
        signer: Callable[[str, int], str],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._domain = normalize_domain(domain)
        self._signer = signer
        self._clock = clock

    @property
    def domain(self) -> str:
        return self._domain

    def public_url(self, key: str) -> str:
        return f"{self._domain}/{encode_key(key)}"

    def grant(self, key: str) -> AccessGrant:
        deadline = int(self._clock()) + SIGNED_URL_TTL_SECONDS
        url = self._signer(self.public_url(key), SIGNED_URL_TTL_SECONDS)
        logger.debug("Signed URL for %s (expires %d)", key, deadline)
        return AccessGrant(url=url, expires_at=datetime.fromtimestamp(deadline, tz=UTC))


class RouteUrlResolver:
    """Internal route URLs for content served by this process.

    Paths are stable, so grants carry no expiry and need no signing.
    """

    def __init__(self, route_base: str = "/api/files") -> None:
        self._route_base = route_base.rstrip("/")

    @property
    def domain(self) -> str:
        return ""

    def public_url(self, key: str) -> str:
        return f"{self._route_base}/{encode_key(key)}"

    def grant(self, key: str) -> AccessGrant:
        return AccessGrant(url=self.public_url(key))
