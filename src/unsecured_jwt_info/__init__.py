"""
Unsecured JWT token-info engine.

Authorizes clients presenting bearer tokens to a proxying service (e.g. a
Kafka proxy forwarding SASL/OAUTHBEARER tokens) without verifying the token
signature.

High-level flow (per request)
-----------------------------
1. The host calls `UnsecuredJWTVerifier.verify(token)` (directly, or through
   `POST /verify` served by `TokenInfoExtension`).
2. `codec.decode` base64url-decodes header and payload. No signature check.
3. Algorithm and subject allow-lists are enforced.
4. `iat` and `exp` must be present.
5. If the token names an issuer, its certificate is looked up from
   `<iss>/protocol/openid-connect/certs` and logged. Best effort only.
6. The token must be inside `[iat - skew, exp + skew]`.
7. Exactly one `VerificationStatus` is returned.

Security notes
--------------
- The signature is never verified. The resolved certificate is not used to
  check the token, so a forged token with valid shape and timing passes.
  Only deploy behind a component that already authenticated the token, or
  where the allow-lists are the intended trust boundary.
- Algorithm "none" is not rejected unless the algorithm allow-list omits it.

Example usage
-----------

.. code-block:: python

    from unsecured_jwt_info import UnsecuredJWTVerifier, VerifierConfig

    verifier = UnsecuredJWTVerifier(
        VerifierConfig(
            allowed_subjects=frozenset({"alice", "bob"}),
            allowed_algorithms=frozenset({"RS256"}),
            host_aliases={"localhost": "host.docker.internal"},
        )
    )

    response = verifier.verify(raw_token)
    response.success, response.status
"""

# Codec
from .codec import ALGORITHM_NONE, ClaimSet, Header, decode, encode_unsigned

# Config
from .config import VerifierConfig, parse_host_aliases

# Errors
from .errors import DecodeError, FetchError, MissingToken, TokenInfoError

# Extractors
from .extractors import BearerExtractor

# Flask extension
from .flask_extension import TokenInfoExtension, create_app

# Key providers
from .key_providers import KeySet, OpenIDCertsResolver, ValidationKey, select_key

# Logging
from .logging_config import configure_logging

# Protocols
from .protocols import Clock, Extractor, KeyResolver, TokenVerifier, ViewFunc

# Status
from .status import VerificationStatus, VerifyResponse

# Verifier
from .verifier import UnsecuredJWTVerifier, verify

__all__ = [
    # Errors
    "TokenInfoError",
    "DecodeError",
    "FetchError",
    "MissingToken",
    # Protocols
    "Clock",
    "Extractor",
    "KeyResolver",
    "TokenVerifier",
    "ViewFunc",
    # Status
    "VerificationStatus",
    "VerifyResponse",
    # Codec
    "ALGORITHM_NONE",
    "ClaimSet",
    "Header",
    "decode",
    "encode_unsigned",
    # Config
    "VerifierConfig",
    "parse_host_aliases",
    # Key providers
    "KeySet",
    "OpenIDCertsResolver",
    "ValidationKey",
    "select_key",
    # Verifier
    "UnsecuredJWTVerifier",
    "verify",
    # Extractors
    "BearerExtractor",
    # Flask extension
    "TokenInfoExtension",
    "create_app",
    # Logging
    "configure_logging",
]
