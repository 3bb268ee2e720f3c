"""Verifier configuration.

The configuration is built once at startup (see `cli.py`) and shared read-only
by every verification call, so it is a frozen value object.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

DEFAULT_CLOCK_SKEW: Final[int] = 60
"""Tolerance in seconds applied to both `iat` and `exp` bounds."""

DEFAULT_CERTS_TIMEOUT: Final[float] = 10.0
"""Timeout in seconds for the issuer certs request."""


@dataclass(frozen=True, slots=True)
class VerifierConfig:
    """Policy applied by `UnsecuredJWTVerifier`.

    Attributes:
        allowed_subjects: Accepted `sub` claims. Empty means any subject.

        allowed_algorithms: Accepted header `alg` values. Empty means any
            algorithm. The value "none" is not rejected unless the set is
            non-empty and omits it.

        clock_skew: Seconds of tolerance for `iat` and `exp`. Default: 60.

        host_aliases: Host name rewrites applied to issuer URLs before the
            certs request, e.g. {"localhost": "host.docker.internal"} when the
            verifier runs inside a container. Default: no rewrite.

        certs_timeout: Timeout in seconds for the certs request. Default: 10.

        resolve_keys: Whether the verifier looks up the issuer certificate at
            all. Default: True.

    Example:
        ```python
        config = VerifierConfig(
            allowed_subjects=frozenset({"alice"}),
            allowed_algorithms=frozenset({"RS256"}),
            host_aliases={"localhost": "host.docker.internal"},
        )
        ```
    """

    allowed_subjects: frozenset[str] = frozenset()
    allowed_algorithms: frozenset[str] = frozenset()
    clock_skew: int = DEFAULT_CLOCK_SKEW
    host_aliases: Mapping[str, str] = field(default_factory=dict)
    certs_timeout: float = DEFAULT_CERTS_TIMEOUT
    resolve_keys: bool = True

    def __post_init__(self) -> None:
        if self.clock_skew < 0:
            raise ValueError(f"clock_skew must not be negative, got {self.clock_skew}")
        if self.certs_timeout <= 0:
            raise ValueError(f"certs_timeout must be positive, got {self.certs_timeout}")

        # Accept any iterable/mapping but store immutable copies.
        object.__setattr__(self, "allowed_subjects", frozenset(self.allowed_subjects))
        object.__setattr__(self, "allowed_algorithms", frozenset(self.allowed_algorithms))
        object.__setattr__(self, "host_aliases", MappingProxyType(dict(self.host_aliases)))


def parse_host_aliases(pairs: Iterable[str]) -> dict[str, str]:
    """Parse `host=alias` strings into a mapping.

    Raises:
        ValueError: If an entry has no `=` or an empty side.
    """
    aliases: dict[str, str] = {}
    for pair in pairs:
        host, sep, alias = pair.partition("=")
        host, alias = host.strip(), alias.strip()
        if not sep or not host or not alias:
            raise ValueError(f"Invalid host alias {pair!r} (expected 'host=alias')")
        aliases[host.lower()] = alias
    return aliases
