"""
Verification State

One record per normalized address. The record holds exactly one state, so
an address can never have an outstanding code and a live verification at
the same time.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class Unset:
    """No outstanding code and no usable verification."""


@dataclass(frozen=True)
class CodeIssued:
    code: str
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class Verified:
    verified_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


VerificationState = Unset | CodeIssued | Verified


@dataclass
class VerificationRecord:
    """
    Verification record for one address.

    Attributes:
        address: Normalized address, the record key
        state: Current state
        last_issued_at: Time of the most recent issuance; kept across state
            changes and used for the cooldown
    """

    address: str
    state: VerificationState = field(default_factory=Unset)
    last_issued_at: datetime | None = None


@dataclass(frozen=True)
class IssuedCode:
    """Result of a successful issuance."""

    address: str
    code: str
    expires_at: datetime


@dataclass(frozen=True)
class VerifiedAddress:
    """Result of a successful confirmation."""

    address: str
    expires_at: datetime
