# Tests for access URL resolution and key encoding.
# Created: 2026-10-19

from datetime import UTC, datetime
from urllib.parse import unquote

from soundshelf.storage.keys import strip_traversal
from soundshelf.storage.urls import (
    SIGNED_URL_TTL_SECONDS,
    ObjectStoreUrlResolver,
    RouteUrlResolver,
    encode_key,
    normalize_domain,
)

NOW = 1_700_000_000


class TestNormalizeDomain:
    def test_adds_plain_http_scheme(self):
        assert normalize_domain("cdn.example.com") == "http://cdn.example.com"

    def test_keeps_existing_scheme(self):
        assert normalize_domain("https://cdn.example.com") == "https://cdn.example.com"

    def test_strips_trailing_separator(self):
        assert normalize_domain("cdn.example.com/") == "http://cdn.example.com"

    def test_empty(self):
        assert normalize_domain(None) == ""
        assert normalize_domain("  ") == ""


class TestEncoding:
    def test_space_and_separator_round_trip(self):
        key = "my music/first song.mp3"
        resolver = ObjectStoreUrlResolver("cdn.example.com", signer=lambda k, t: k)
        url = resolver.public_url(key)
        encoded = url[len("http://cdn.example.com/"):]
        assert " " not in encoded
        assert "/" not in encoded
        assert unquote(encoded) == key

    def test_percent_sign_encoded_once(self):
        key = "100%/done.mp3"
        encoded = encode_key(key)
        assert encoded == "100%25%2Fdone.mp3"
        assert unquote(encoded) == key

    def test_unreserved_characters_untouched(self):
        assert encode_key("a-b_c.d!~*'()") == "a-b_c.d!~*'()"


class TestObjectStoreResolver:
    def test_grant_requests_one_hour_signature(self):
        calls = []

        def signer(url, ttl):
            calls.append((url, ttl))
            return "https://signed.example/x?token=abc"

        resolver = ObjectStoreUrlResolver("cdn.example.com", signer=signer, clock=lambda: NOW)
        grant = resolver.grant("music/a b.mp3")

        assert calls == [("http://cdn.example.com/music%2Fa%20b.mp3", SIGNED_URL_TTL_SECONDS)]
        assert grant.url == "https://signed.example/x?token=abc"
        assert grant.expires_at == datetime.fromtimestamp(NOW + 3600, tz=UTC)

    def test_grant_is_regenerated_per_call(self):
        counter = iter(range(100))
        resolver = ObjectStoreUrlResolver("d", signer=lambda k, t: f"u{next(counter)}")
        assert resolver.grant("k").url != resolver.grant("k").url

    def test_domain_exposed_normalized(self):
        assert ObjectStoreUrlResolver("cdn.example.com/", signer=lambda k, t: "").domain == (
            "http://cdn.example.com"
        )


class TestRouteResolver:
    def test_internal_route_without_expiry(self):
        grant = RouteUrlResolver().grant("music/a b.mp3")
        assert grant.url == "/api/files/music%2Fa%20b.mp3"
        assert grant.expires_at is None

    def test_no_domain(self):
        assert RouteUrlResolver().domain == ""


class TestStripTraversal:
    def test_parent_segments_removed(self):
        assert strip_traversal("../../etc") == "etc"

    def test_embedded_parent_segments(self):
        assert strip_traversal("a/../b") == "a/b"

    def test_leading_separator_removed(self):
        assert strip_traversal("/abs/path/") == "abs/path"

    def test_backslashes(self):
        assert strip_traversal("..\\..\\x") == "x"

    def test_empty(self):
        assert strip_traversal(None) == ""
        assert strip_traversal("..") == ""
