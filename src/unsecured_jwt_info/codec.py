"""Structural decoding of compact JWTs.

Nothing here checks a signature. `decode` only turns the first two segments
of a compact JWT into a `Header` and a `ClaimSet`; the signature segment is
ignored and may even be absent.
"""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from typing import Any, Final

from jwt.utils import base64url_decode, base64url_encode

from .errors import DecodeError

ALGORITHM_NONE: Final[str] = "none"
"""The `alg` value of an unsecured JWS. Not rejected unless policy says so."""

_SEGMENT_RE: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_-]*")

_REGISTERED_CLAIMS: Final[frozenset[str]] = frozenset({"sub", "iat", "exp", "iss"})


@dataclass(frozen=True, slots=True)
class Header:
    """JOSE header fields the verifier cares about."""

    algorithm: str
    key_id: str | None = None
    type: str | None = None
    other_fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ClaimSet:
    """Registered claims plus everything else the payload carried.

    `issued_at` and `expires_at` stay floats: some clients encode Unix
    seconds as JSON floating point numbers.
    """

    subject: str | None = None
    issued_at: float | None = None
    expires_at: float | None = None
    issuer: str | None = None
    other_claims: dict[str, Any] = field(default_factory=dict)


def decode(token: str) -> tuple[Header, ClaimSet]:
    """Decode header and payload of a compact JWT.

    Args:
        token: Compact serialization `header.payload[.signature]`.

    Returns:
        Tuple of (Header, ClaimSet).

    Raises:
        DecodeError: Fewer than two segments, bad base64 or bad JSON.
    """
    segments = token.split(".")
    if len(segments) < 2:
        raise DecodeError("Invalid token: expected at least two segments")

    header_json = _decode_segment(segments[0], "header")
    payload_json = _decode_segment(segments[1], "payload")

    return _parse_header(header_json), _parse_claims(payload_json)


def encode_unsigned(header: dict[str, Any], claims: dict[str, Any]) -> str:
    """Build a compact JWT with an empty signature segment."""
    parts = [
        base64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))
        for obj in (header, claims)
    ]
    return b".".join(parts).decode("ascii") + "."


def _decode_segment(segment: str, name: str) -> dict[str, Any]:
    # Unpadded URL-safe alphabet only; a single leftover character is never valid.
    if not _SEGMENT_RE.fullmatch(segment) or len(segment) % 4 == 1:
        raise DecodeError(f"Invalid token: {name} is not base64url")

    try:
        raw = base64url_decode(segment)
        obj = json.loads(raw, parse_constant=_reject_constant)
    except DecodeError:
        raise
    except (ValueError, UnicodeDecodeError) as e:
        raise DecodeError(f"Invalid token: {name} is not JSON") from e
    except RecursionError as e:
        raise DecodeError(f"Invalid token: {name} is nested too deeply") from e

    if not isinstance(obj, dict):
        raise DecodeError(f"Invalid token: {name} is not a JSON object")
    return obj


def _reject_constant(name: str) -> Any:
    raise DecodeError(f"Invalid token: unexpected JSON constant {name}")


def _parse_header(obj: dict[str, Any]) -> Header:
    algorithm = obj.get("alg", "")
    if not isinstance(algorithm, str):
        raise DecodeError("Invalid token: header 'alg' is not a string")

    return Header(
        algorithm=algorithm,
        key_id=_optional_str(obj, "kid"),
        type=_optional_str(obj, "typ"),
        other_fields={k: v for k, v in obj.items() if k not in ("alg", "kid", "typ")},
    )


def _parse_claims(obj: dict[str, Any]) -> ClaimSet:
    return ClaimSet(
        subject=_optional_str(obj, "sub"),
        issued_at=_optional_number(obj, "iat"),
        expires_at=_optional_number(obj, "exp"),
        issuer=_optional_str(obj, "iss"),
        other_claims={k: v for k, v in obj.items() if k not in _REGISTERED_CLAIMS},
    )


def _optional_str(obj: dict[str, Any], name: str) -> str | None:
    value = obj.get(name)
    if value is not None and not isinstance(value, str):
        raise DecodeError(f"Invalid token: '{name}' is not a string")
    return value


def _optional_number(obj: dict[str, Any], name: str) -> float | None:
    value = obj.get(name)
    if value is None:
        return None
    # bool is an int subclass but never a timestamp
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Invalid token: '{name}' is not a number")
    try:
        number = float(value)
    except OverflowError as e:
        raise DecodeError(f"Invalid token: '{name}' is out of range") from e
    # json reads 1e400 as inf
    if not math.isfinite(number):
        raise DecodeError(f"Invalid token: '{name}' is out of range")
    return number
