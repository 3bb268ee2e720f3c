"""
Key resolver implementations for locating an issuer's signing certificate.

This package contains implementations of the KeyResolver protocol.
"""

from .openid_certs import (
    CERTS_SUBPATH,
    KeySet,
    OpenIDCertsResolver,
    ValidationKey,
    certs_url,
    select_key,
)

__all__ = [
    "CERTS_SUBPATH",
    "KeySet",
    "OpenIDCertsResolver",
    "ValidationKey",
    "certs_url",
    "select_key",
]
