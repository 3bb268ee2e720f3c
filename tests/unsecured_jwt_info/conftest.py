import time
from typing import Any

import pytest
from flask import Flask

from unsecured_jwt_info import encode_unsigned

NOW = 1_700_000_000


@pytest.fixture()
def app():
    app = Flask(__name__)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def make_token():
    """
    Factory fixture that returns a function.

    Usage in tests:
        token = make_token(sub="alice", iat=NOW - 10, exp=NOW + 3600)
    """

    def _make(*, alg: str = "RS256", kid: str | None = None, **claims: Any) -> str:
        header: dict[str, Any] = {"alg": alg, "typ": "JWT"}
        if kid is not None:
            header["kid"] = kid
        return encode_unsigned(header, claims)

    return _make


@pytest.fixture
def valid_claims() -> dict[str, Any]:
    return {"sub": "alice", "iat": NOW - 10, "exp": NOW + 3600}


@pytest.fixture
def jwks() -> dict[str, Any]:
    """Two-key set in the shape Keycloak publishes."""
    return {
        "keys": [
            {
                "kid": "key-1",
                "kty": "RSA",
                "alg": "RS256",
                "use": "sig",
                "n": "modulus-1",
                "e": "AQAB",
                "x5c": ["CERT-1", "CA-1"],
                "x5t": "thumb-1",
                "x5t#S256": "thumb256-1",
            },
            {
                "kid": "key-2",
                "kty": "RSA",
                "alg": "RS256",
                "use": "sig",
                "n": "modulus-2",
                "e": "AQAB",
                "x5c": ["CERT-2"],
                "x5t": "thumb-2",
                "x5t#S256": "thumb256-2",
            },
        ]
    }


class FakeClient:
    """
    Minimal PyJWKClient stub. Records the URL and timeout it was built with
    and returns (or raises) a canned response from fetch_data().
    """

    def __init__(self, response: Any = None, error: Exception | None = None):
        self._response = response
        self._error = error
        self.calls: list[tuple[str, float]] = []

    def factory(self, url: str, timeout: float) -> "FakeClient":
        self.calls.append((url, timeout))
        return self

    def fetch_data(self) -> Any:
        if self._error is not None:
            raise self._error
        return self._response


@pytest.fixture
def fake_client():
    def _make(response: Any = None, error: Exception | None = None) -> FakeClient:
        return FakeClient(response=response, error=error)

    return _make


class StaticResolver:
    """Duck-typed KeyResolver for verifier tests."""

    def __init__(self, error: Exception | None = None):
        self._error = error
        self.calls: list[tuple[str, str | None]] = []

    def resolve_certificate(self, issuer_url: str, key_id: str | None = None):
        self.calls.append((issuer_url, key_id))
        if self._error is not None:
            raise self._error
        return "CERT", key_id or "first"


@pytest.fixture
def static_resolver():
    def _make(error: Exception | None = None) -> StaticResolver:
        return StaticResolver(error=error)

    return _make


@pytest.fixture
def wall_clock_token(make_token):
    def _make(**overrides: Any) -> str:
        t = int(time.time())
        claims = {"sub": "alice", "iat": t - 10, "exp": t + 3600}
        claims.update(overrides)
        return make_token(**claims)

    return _make
