"""Verification statuses and the host-facing response type."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class VerificationStatus(IntEnum):
    """Terminal outcome of one verification call.

    The numeric values are part of the wire contract with existing callers
    and must not be renumbered.
    """

    OK = 0
    EMPTY_TOKEN = 1
    PARSE_FAILED = 2
    WRONG_ALGORITHM = 3
    UNAUTHORIZED = 4
    NO_ISSUE_TIME = 5
    NO_EXPIRATION_TIME = 6
    TOO_EARLY = 7
    EXPIRED = 8


@dataclass(frozen=True, slots=True)
class VerifyResponse:
    """Answer returned to the host for a `{token}` request."""

    success: bool
    status: VerificationStatus

    @classmethod
    def from_status(cls, status: VerificationStatus) -> VerifyResponse:
        return cls(success=status is VerificationStatus.OK, status=status)

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "status": int(self.status)}
