"""
OpenID Connect certs key resolver.

Resolves an issuer's X.509 signing certificate from its
`<issuer>/protocol/openid-connect/certs` JSON Web Key Set (the Keycloak
layout).
"""

from __future__ import annotations

import http.client
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Final, TypeAlias
from urllib.parse import urlsplit, urlunsplit

import structlog
from jwt import PyJWKClient
from jwt.exceptions import PyJWKClientError

from ..config import DEFAULT_CERTS_TIMEOUT
from ..errors import FetchError
from ..protocols import KeyResolver

CERTS_SUBPATH: Final[str] = "protocol/openid-connect/certs"

_ALLOWED_SCHEMES: Final[frozenset[str]] = frozenset({"http", "https"})

logger = structlog.get_logger(__name__)

ClientFactory: TypeAlias = Callable[[str, float], PyJWKClient]


@dataclass(frozen=True, slots=True)
class ValidationKey:
    """One entry of a JSON Web Key Set, as published by the issuer."""

    key_id: str = ""
    key_type: str = ""
    algorithm: str = ""
    use: str = ""
    modulus: str = ""
    exponent: str = ""
    certificate_chain: tuple[str, ...] = ()
    thumbprint: str = ""
    thumbprint_sha256: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidationKey:
        chain = data.get("x5c") or []
        if not isinstance(chain, list) or not all(isinstance(c, str) for c in chain):
            raise FetchError("Key set entry has a malformed 'x5c' chain")

        return cls(
            key_id=_str_field(data, "kid"),
            key_type=_str_field(data, "kty"),
            algorithm=_str_field(data, "alg"),
            use=_str_field(data, "use"),
            modulus=_str_field(data, "n"),
            exponent=_str_field(data, "e"),
            certificate_chain=tuple(chain),
            thumbprint=_str_field(data, "x5t"),
            thumbprint_sha256=_str_field(data, "x5t#S256"),
        )


@dataclass(frozen=True, slots=True)
class KeySet:
    """Ordered keys of a JSON Web Key Set. Order matters for the fallback."""

    keys: tuple[ValidationKey, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> KeySet:
        if not isinstance(data, Mapping):
            raise FetchError("Key set response is not a JSON object")

        keys = data.get("keys")
        if keys is None:
            return cls()
        if not isinstance(keys, list) or not all(isinstance(k, Mapping) for k in keys):
            raise FetchError("Key set 'keys' is not a list of objects")

        return cls(keys=tuple(ValidationKey.from_dict(k) for k in keys))


def select_key(key_set: KeySet, key_id: str | None = None) -> ValidationKey:
    """Pick the signing key for a token.

    Args:
        key_set: Keys published by the issuer.
        key_id: The token's `kid`. When given, only an exact match is accepted.

    Returns:
        The matching key, or the first key when no `kid` hint is given.

    Raises:
        FetchError: If the set is empty or the `kid` is unknown.
    """
    if not key_set.keys:
        raise FetchError("Key set contains no keys")

    if key_id is None:
        return key_set.keys[0]

    for key in key_set.keys:
        if key.key_id == key_id:
            return key

    raise FetchError(f"No key with ID {key_id!r} found")


def apply_host_aliases(url: str, aliases: Mapping[str, str]) -> str:
    """Rewrite the host name of `url` if it has an alias.

    Only the host component is compared, case-insensitively. Scheme, port,
    credentials and path are kept.

    Raises:
        ValueError: If `url` cannot be split (e.g. a bad port).
    """
    if not aliases:
        return url

    parts = urlsplit(url)
    host = parts.hostname
    if not host or host not in aliases:
        return url

    port = parts.port
    alias = aliases[host]
    # IPv6 literals need brackets in a netloc
    if ":" in alias and not alias.startswith("["):
        alias = f"[{alias}]"
    userinfo, at, _ = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{alias}"
    if port is not None:
        netloc = f"{netloc}:{port}"
    return urlunsplit(parts._replace(netloc=netloc))


def certs_url(issuer_url: str, aliases: Mapping[str, str] | None = None) -> str:
    """Build the certs discovery URL for an issuer.

    Raises:
        ValueError: If the issuer is not an http(s) URL or cannot be split.
    """
    if urlsplit(issuer_url).scheme.lower() not in _ALLOWED_SCHEMES:
        raise ValueError(f"Unsupported issuer URL scheme in {issuer_url!r}")
    base = apply_host_aliases(issuer_url, aliases or {})
    return f"{base.rstrip('/')}/{CERTS_SUBPATH}"


def _default_client(url: str, timeout: float) -> PyJWKClient:
    # Fetched fresh on every call; no JWKS caching.
    return PyJWKClient(url, cache_keys=False, cache_jwk_set=False, timeout=timeout)


class OpenIDCertsResolver(KeyResolver):
    """
    Resolves an issuer's signing certificate from its OpenID Connect certs
    endpoint.

    Resolution Strategy
    -------------------
    1) Build `<issuer>/protocol/openid-connect/certs`, after applying host
       aliases to the issuer host.
    2) Blocking GET through `PyJWKClient.fetch_data` with a bounded timeout.
       No retries.
    3) Parse the body into a `KeySet`.
    4) Select the key by exact `kid`, or the first key without a hint.
    5) Return the first entry of the key's `x5c` chain.

    Any failure raises FetchError. Nothing is cached between calls.

    Parameters
    ----------
    host_aliases : Mapping[str, str]
        Host name rewrites, e.g. {"localhost": "host.docker.internal"}.

    timeout : float
        Seconds before the certs request is abandoned.

    client_factory : Callable[[str, float], PyJWKClient]
        Builds the client for a certs URL. Overridable for tests.

    Example
    -------
    resolver = OpenIDCertsResolver(timeout=5)
    cert, kid = resolver.resolve_certificate("https://sso.example.com/realms/kafka")
    """

    def __init__(
        self,
        host_aliases: Mapping[str, str] | None = None,
        timeout: float = DEFAULT_CERTS_TIMEOUT,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._aliases = {k.lower(): v for k, v in (host_aliases or {}).items()}
        self._timeout = timeout
        self._client_factory = client_factory or _default_client

    def fetch_key_set(self, issuer_url: str) -> KeySet:
        try:
            url = certs_url(issuer_url, self._aliases)
        except ValueError as e:
            raise FetchError("Issuer is not a valid URL") from e
        logger.debug("fetching_issuer_certs", url=url)

        try:
            data = self._client_factory(url, self._timeout).fetch_data()
        except PyJWKClientError as e:
            # Connection errors, timeouts and non-2xx answers
            raise FetchError(f"Unable to fetch key set from {url}") from e
        except (OSError, ValueError, http.client.HTTPException) as e:
            # Read errors, broken HTTP responses and malformed JSON bodies
            raise FetchError(f"Invalid key set response from {url}") from e

        return KeySet.from_dict(data)

    def resolve_certificate(
        self, issuer_url: str, key_id: str | None = None
    ) -> tuple[str, str]:
        key = select_key(self.fetch_key_set(issuer_url), key_id)
        if not key.certificate_chain:
            raise FetchError("Selected key contains no X.509 certificates")
        return key.certificate_chain[0], key.key_id


def _str_field(data: Mapping[str, Any], name: str) -> str:
    value = data.get(name, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise FetchError(f"Key set entry field {name!r} is not a string")
    return value
