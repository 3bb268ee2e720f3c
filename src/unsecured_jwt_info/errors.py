"""Infrastructure errors raised by the codec, key resolver and HTTP adapter.

Verification outcomes are never exceptions: they are reported as a
`VerificationStatus`. The exceptions below describe recoverable faults local
to a single component. The verifier maps them onto statuses (or logs them),
so none of them escapes `UnsecuredJWTVerifier.verify`.

Security Note:
    Error messages are intentionally generic to avoid leaking token contents.
    Never put the raw token into an exception message.
"""

from __future__ import annotations


class TokenInfoError(Exception):
    """Base exception for all token-info failures.

    Attributes:
        error_code: HTTP status code the Flask adapter answers with.
        description: Client-facing message.
    """

    error_code: int = 401

    def __init__(self, description: str = "Token verification failed") -> None:
        super().__init__(description)
        self.description = description


class DecodeError(TokenInfoError):
    """Raised when a token cannot be decoded into header and claim set.

    This occurs when:
    - The token has fewer than two dot-separated segments
    - A segment is not valid unpadded URL-safe base64
    - A segment is not a JSON object
    - A registered claim has the wrong JSON type (e.g. string `exp`)
    """


class FetchError(TokenInfoError):
    """Raised when the issuer's signing certificate cannot be resolved.

    This occurs when:
    - The certs endpoint is unreachable, times out or answers non-2xx
    - The body is not a JSON Web Key Set
    - The key set is empty or has no key with the requested `kid`
    - The selected key carries no X.509 certificate chain

    The verifier only logs this error; it never changes the verification status.
    """

    error_code = 502


class MissingToken(TokenInfoError):  # noqa: N818
    """Raised when no bearer token is found in the request.

    This should result in an HTTP 401 Unauthorized response.
    """
