"""Protocol definitions for the token-info engine.

Structural interfaces (PEP 544) let the HTTP adapter and the tests swap in any
object with the right methods, without inheritance.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeAlias

if TYPE_CHECKING:
    from .status import VerifyResponse

# ============================================================================
# Type Aliases
# ============================================================================

Clock: TypeAlias = Callable[[], float]
"""Returns the current Unix time in seconds (e.g. `time.time`)."""

ViewFunc: TypeAlias = Callable[..., Any]
"""Type alias for Flask view functions."""


# ============================================================================
# Core Protocols
# ============================================================================


class TokenVerifier(Protocol):
    """Protocol for the host invocation interface: `verify(token) -> response`."""

    def verify(self, token: str) -> VerifyResponse:
        """Verify a raw token and report exactly one status.

        Never raises for a bad token; every failure is a status.
        """
        ...


class KeyResolver(Protocol):
    """Protocol for resolving an issuer's signing certificate.

    Common implementations:
    - OpenID Connect certs endpoint fetcher (`OpenIDCertsResolver`)
    - Static certificate map (tests, air-gapped deployments)
    """

    def resolve_certificate(
        self, issuer_url: str, key_id: str | None = None
    ) -> tuple[str, str]:
        """Resolve the certificate for a token issued by `issuer_url`.

        Args:
            issuer_url: The token's `iss` claim.
            key_id: The token header's `kid`, if any. When given, the key must
                match exactly; otherwise the first published key is used.

        Returns:
            Tuple of (base64 DER certificate, key id of the selected key).

        Raises:
            FetchError: If the certificate cannot be resolved.
        """
        ...


class Extractor(Protocol):
    """Protocol for extracting the raw token from a Flask request."""

    def extract(self) -> str:
        """Return the raw token.

        Raises:
            MissingToken: Token not found or improperly formatted.
        """
        ...
