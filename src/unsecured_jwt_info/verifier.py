"""Claim validation for unsecured JWTs.

This module turns a raw bearer token into exactly one `VerificationStatus`.
Checks run in a fixed order and stop at the first failure, so the reported
status is deterministic when several checks would fail at once:

    EMPTY_TOKEN -> PARSE_FAILED -> WRONG_ALGORITHM -> UNAUTHORIZED
    -> NO_ISSUE_TIME -> NO_EXPIRATION_TIME -> (issuer certificate lookup)
    -> TOO_EARLY -> EXPIRED -> OK

Security Note:
    The signature is NOT verified. The issuer certificate is looked up on a
    best-effort basis and only logged; a token with a forged or missing
    signature but valid shape and timing is reported as OK.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

import structlog

from .codec import decode
from .errors import DecodeError, FetchError
from .key_providers import OpenIDCertsResolver
from .status import VerificationStatus, VerifyResponse

if TYPE_CHECKING:
    from .codec import ClaimSet, Header
    from .config import VerifierConfig
    from .protocols import Clock, KeyResolver

logger = structlog.get_logger(__name__)


class UnsecuredJWTVerifier:
    """Allow-list and time-window verifier for JWTs.

    Implements the TokenVerifier protocol. Holds only the frozen config, the
    key resolver and a clock, so one instance can serve concurrent requests.

    Example:
        ```python
        verifier = UnsecuredJWTVerifier(
            VerifierConfig(allowed_subjects=frozenset({"alice"}))
        )

        response = verifier.verify(raw_token)
        if not response.success:
            reject(response.status)
        ```

    Attributes:
        _config: Immutable verification policy.
        _keys: KeyResolver for the issuer certificate, or None when disabled.
        _clock: Source of the current Unix time.
    """

    def __init__(
        self,
        config: VerifierConfig,
        key_resolver: KeyResolver | None = None,
        clock: Clock = time.time,
    ) -> None:
        """Initialize the verifier.

        Args:
            config: Verification policy.
            key_resolver: Resolver for issuer certificates. Defaults to an
                OpenIDCertsResolver built from `config`; ignored when
                `config.resolve_keys` is False.
            clock: Returns the current Unix time. Defaults to time.time.
        """
        self._config = config
        self._clock = clock
        if not config.resolve_keys:
            self._keys = None
        elif key_resolver is not None:
            self._keys = key_resolver
        else:
            self._keys = OpenIDCertsResolver(
                host_aliases=config.host_aliases, timeout=config.certs_timeout
            )

    @property
    def config(self) -> VerifierConfig:
        return self._config

    def verify(self, token: str) -> VerifyResponse:
        """Verify a token against the current time.

        Args:
            token: Raw JWT string (e.g. the SASL/OAUTHBEARER token).

        Returns:
            VerifyResponse with `success` set iff the status is OK.
        """
        status = self.check(token)
        if status is not VerificationStatus.OK:
            logger.info("token_rejected", status=status.name)
        return VerifyResponse.from_status(status)

    def check(self, token: str, now: float | None = None) -> VerificationStatus:
        """Run every check and return the first failing status, or OK.

        Args:
            token: Raw JWT string.
            now: Unix time to evaluate against. Defaults to the clock.
        """
        if not token:
            return VerificationStatus.EMPTY_TOKEN

        try:
            header, claims = decode(token)
        except DecodeError:
            return VerificationStatus.PARSE_FAILED

        cfg = self._config
        if cfg.allowed_algorithms and header.algorithm not in cfg.allowed_algorithms:
            return VerificationStatus.WRONG_ALGORITHM
        if cfg.allowed_subjects and (claims.subject or "") not in cfg.allowed_subjects:
            return VerificationStatus.UNAUTHORIZED

        if claims.issued_at is None or claims.issued_at < 1:
            return VerificationStatus.NO_ISSUE_TIME
        if claims.expires_at is None or claims.expires_at < 1:
            return VerificationStatus.NO_EXPIRATION_TIME

        self._resolve_issuer_certificate(header, claims)

        # Whole-second comparisons
        unix = int(self._clock() if now is None else now)
        earliest = int(claims.issued_at) - cfg.clock_skew
        latest = int(claims.expires_at) + cfg.clock_skew

        if unix < earliest:
            return VerificationStatus.TOO_EARLY
        if unix > latest:
            return VerificationStatus.EXPIRED
        return VerificationStatus.OK

    def _resolve_issuer_certificate(self, header: Header, claims: ClaimSet) -> None:
        # Best effort only: the outcome never changes the status.
        if self._keys is None:
            return
        if not claims.issuer:
            logger.debug("issuer_missing")
            return

        try:
            _, key_id = self._keys.resolve_certificate(
                claims.issuer, header.key_id or None
            )
        except FetchError as e:
            logger.warning(
                "issuer_certificate_unavailable", issuer=claims.issuer, error=str(e)
            )
            return

        logger.info("issuer_certificate_resolved", issuer=claims.issuer, kid=key_id)


def verify(
    token: str,
    now: float,
    config: VerifierConfig,
    *,
    key_resolver: KeyResolver | None = None,
) -> VerificationStatus:
    """Pure form of the verifier: (token, now, config) -> status."""
    return UnsecuredJWTVerifier(config, key_resolver=key_resolver).check(token, now)
