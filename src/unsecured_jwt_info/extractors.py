"""Token extraction from HTTP requests.

Implements the Extractor protocol for the `Authorization: Bearer <token>`
header, the scheme Kafka proxies forward OAUTHBEARER tokens with.
"""

from __future__ import annotations

from flask import request

from .errors import MissingToken


class BearerExtractor:
    """Extracts the raw token from the Authorization header.

    Expects requests with header format:
        Authorization: Bearer <token>
    """

    def extract(self) -> str:
        """Extract the token from the Authorization: Bearer header.

        Returns:
            Raw token string (without "Bearer " prefix).

        Raises:
            MissingToken: If the header is missing or doesn't use Bearer scheme.
        """
        auth_header = request.headers.get("Authorization", "").strip()

        if not auth_header:
            raise MissingToken("Missing Authorization header")

        parts = auth_header.split(" ", 1)
        if len(parts) != 2:
            raise MissingToken("Invalid Authorization header format (expected 'Bearer <token>')")

        scheme, token = parts
        if scheme.lower() != "bearer":
            raise MissingToken("Invalid authorization scheme (expected 'Bearer')")

        token = token.strip()
        if not token:
            raise MissingToken("Bearer token is empty")

        return token
