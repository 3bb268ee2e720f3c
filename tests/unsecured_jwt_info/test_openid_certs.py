"""
Tests for OpenIDCertsResolver and key selection.
"""

import http.client
import json

import pytest
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientError

from unsecured_jwt_info import FetchError, KeySet, OpenIDCertsResolver, select_key
from unsecured_jwt_info.key_providers import certs_url


class TestKeySelection:
    def test_matching_kid_returns_that_key(self, jwks):
        key = select_key(KeySet.from_dict(jwks), "key-2")
        assert key.key_id == "key-2"
        assert key.certificate_chain == ("CERT-2",)
        assert key.thumbprint_sha256 == "thumb256-2"

    def test_no_kid_returns_first_key(self, jwks):
        assert select_key(KeySet.from_dict(jwks)).key_id == "key-1"

    def test_unknown_kid_raises(self, jwks):
        with pytest.raises(FetchError, match="No key with ID"):
            select_key(KeySet.from_dict(jwks), "key-9")

    def test_empty_set_raises(self):
        with pytest.raises(FetchError, match="no keys"):
            select_key(KeySet.from_dict({"keys": []}))

    def test_missing_keys_field_is_empty_set(self):
        assert KeySet.from_dict({}).keys == ()

    @pytest.mark.parametrize(
        "body",
        [[], "keys", {"keys": {}}, {"keys": ["a"]}, {"keys": [{"x5c": "CERT"}]}, {"keys": [{"kid": 1}]}],
    )
    def test_malformed_key_set_raises(self, body):
        with pytest.raises(FetchError):
            KeySet.from_dict(body)


class TestCertsUrl:
    def test_appends_subpath(self):
        assert (
            certs_url("https://sso.example.com/realms/kafka")
            == "https://sso.example.com/realms/kafka/protocol/openid-connect/certs"
        )

    def test_trailing_slash_is_not_doubled(self):
        assert certs_url("https://sso/realms/k/") == "https://sso/realms/k/protocol/openid-connect/certs"

    def test_host_alias_rewrites_host_only(self):
        url = certs_url(
            "http://user@LOCALHOST:8080/realms/localhost",
            {"localhost": "host.docker.internal"},
        )
        assert url == "http://user@host.docker.internal:8080/realms/localhost/protocol/openid-connect/certs"

    def test_no_alias_leaves_localhost(self):
        assert certs_url("http://localhost:8080/realms/k").startswith("http://localhost:8080/")

    def test_ipv6_alias_is_bracketed(self):
        url = certs_url("http://localhost:8080/r", {"localhost": "::1"})
        assert url == "http://[::1]:8080/r/protocol/openid-connect/certs"

    @pytest.mark.parametrize("issuer", ["file:///etc", "ftp://sso/realms/k", "sso/realms/k"])
    def test_non_http_issuer_raises(self, issuer):
        with pytest.raises(ValueError, match="scheme"):
            certs_url(issuer)


class TestOpenIDCertsResolver:
    def test_resolves_first_certificate_without_kid(self, jwks, fake_client):
        client = fake_client(response=jwks)
        resolver = OpenIDCertsResolver(timeout=3, client_factory=client.factory)

        cert, kid = resolver.resolve_certificate("https://sso/realms/k")

        assert (cert, kid) == ("CERT-1", "key-1")
        assert client.calls == [("https://sso/realms/k/protocol/openid-connect/certs", 3)]

    def test_resolves_by_kid(self, jwks, fake_client):
        client = fake_client(response=jwks)
        resolver = OpenIDCertsResolver(client_factory=client.factory)

        assert resolver.resolve_certificate("https://sso", "key-2") == ("CERT-2", "key-2")

    def test_applies_host_aliases(self, jwks, fake_client):
        client = fake_client(response=jwks)
        resolver = OpenIDCertsResolver(
            host_aliases={"LocalHost": "host.docker.internal"},
            client_factory=client.factory,
        )

        resolver.resolve_certificate("http://localhost:8080/realms/k")

        assert client.calls[0][0] == "http://host.docker.internal:8080/realms/k/protocol/openid-connect/certs"

    def test_empty_certificate_chain_raises(self, jwks, fake_client):
        jwks["keys"][0]["x5c"] = []
        resolver = OpenIDCertsResolver(client_factory=fake_client(response=jwks).factory)

        with pytest.raises(FetchError, match="no X.509"):
            resolver.resolve_certificate("https://sso")

    def test_empty_key_set_raises(self, fake_client):
        resolver = OpenIDCertsResolver(client_factory=fake_client(response={"keys": []}).factory)

        with pytest.raises(FetchError):
            resolver.resolve_certificate("https://sso")

    @pytest.mark.parametrize(
        "error",
        [
            PyJWKClientError("Fail to fetch data from the url"),
            TimeoutError("timed out"),
            json.JSONDecodeError("Expecting value", "", 0),
            http.client.BadStatusLine("GARBAGE"),
            http.client.IncompleteRead(b"{\"ke"),
        ],
    )
    def test_fetch_failures_become_fetch_error(self, fake_client, error):
        resolver = OpenIDCertsResolver(client_factory=fake_client(error=error).factory)

        with pytest.raises(FetchError) as exc_info:
            resolver.resolve_certificate("https://sso")
        assert exc_info.value.__cause__ is error

    def test_invalid_issuer_url_raises(self, fake_client):
        resolver = OpenIDCertsResolver(
            host_aliases={"localhost": "alias"},
            client_factory=fake_client(response={}).factory,
        )

        with pytest.raises(FetchError):
            resolver.resolve_certificate("http://localhost:notaport/realms/k")

    def test_default_client_fetches_fresh_with_timeout(self, monkeypatch: pytest.MonkeyPatch, jwks):
        seen: list[PyJWKClient] = []

        def fake_fetch(self: PyJWKClient):
            seen.append(self)
            return jwks

        monkeypatch.setattr(PyJWKClient, "fetch_data", fake_fetch)
        resolver = OpenIDCertsResolver(timeout=2.5)

        assert resolver.resolve_certificate("https://sso") == ("CERT-1", "key-1")
        assert resolver.resolve_certificate("https://sso") == ("CERT-1", "key-1")
        assert len(seen) == 2
        assert seen[0].uri == "https://sso/protocol/openid-connect/certs"
        assert seen[0].timeout == 2.5
        assert seen[0].jwk_set_cache is None

    def test_non_http_issuer_is_never_fetched(self, fake_client):
        client = fake_client(response={"keys": []})
        resolver = OpenIDCertsResolver(client_factory=client.factory)

        with pytest.raises(FetchError, match="not a valid URL"):
            resolver.resolve_certificate("file:///etc")
        assert client.calls == []
