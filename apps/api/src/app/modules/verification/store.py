"""
Verification Store

Process-wide store backing the email OTP flow:

1. request_code: issue a 6-digit code, subject to a per-address cooldown
2. confirm_code: match the code and promote the address to Verified
3. check_verified: non-consuming peek at the Verified state
4. consume_verification: atomic check-and-clear used by submissions

Expiry is lazy: every operation compares stored deadlines against the
clock, so an expired code or verification is never observed as live.
purge_expired() only reclaims memory and runs from a background job.

The clock and code generator are injectable for tests.
"""

import logging
import math
import secrets
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from app.modules.verification.errors import (
    CodeExpiredError,
    CodeMismatchError,
    CodeNotFoundError,
    CodeRateLimitedError,
)
from app.modules.verification.models import (
    CodeIssued,
    IssuedCode,
    Unset,
    VerificationRecord,
    Verified,
    VerifiedAddress,
)

logger = logging.getLogger(__name__)

CODE_LENGTH = 6

DEFAULT_CODE_TTL_SECONDS = 10 * 60
DEFAULT_COOLDOWN_SECONDS = 60
DEFAULT_VERIFIED_TTL_SECONDS = 30 * 60

Clock = Callable[[], datetime]
CodeGenerator = Callable[[], str]


def utc_now() -> datetime:
    return datetime.now(UTC)


def normalize_address(address: str) -> str:
    """Lowercase and trim an email address."""
    return address.strip().lower()


def generate_code() -> str:
    """Uniformly random 6-digit code, leading zeros kept."""
    return f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"


def retry_after(last_issued_at: datetime, now: datetime, cooldown: timedelta) -> int:
    """Whole seconds left in the cooldown, rounded up."""
    remaining = (cooldown - (now - last_issued_at)).total_seconds()
    return max(1, math.ceil(remaining))


class VerificationStore(ABC):
    """Interface shared by the in-memory and Redis-backed stores."""

    @abstractmethod
    async def request_code(self, address: str) -> IssuedCode:
        """
        Issue a fresh code for an address.

        Replaces any outstanding code or live verification.

        Raises:
            CodeRateLimitedError: If the last issuance is inside the cooldown
        """

    @abstractmethod
    async def confirm_code(self, address: str, code: str) -> VerifiedAddress:
        """
        Match a submitted code and promote the address to Verified.

        Raises:
            CodeNotFoundError: If no code is outstanding
            CodeExpiredError: If the code is past its deadline (it is removed)
            CodeMismatchError: If the code differs (the record is kept)
        """

    @abstractmethod
    async def check_verified(self, address: str) -> bool:
        """Whether the address is currently verified. Does not consume."""

    @abstractmethod
    async def consume_verification(self, address: str) -> bool:
        """
        Clear a live verification in one atomic step.

        Returns:
            True if the address was verified (and now is not), False otherwise
        """

    async def purge_expired(self) -> int:
        """Reclaim expired entries. Returns the number of records removed."""
        return 0


class InMemoryVerificationStore(VerificationStore):
    """
    Verification store held in process memory.

    Every operation runs its read-modify-write under one lock and never
    awaits while holding it, so the cooldown check and the consume
    check-and-clear cannot interleave with another request.

    Outstanding codes and verifications are lost on restart.
    """

    def __init__(
        self,
        clock: Clock = utc_now,
        code_generator: CodeGenerator = generate_code,
        code_ttl_seconds: int = DEFAULT_CODE_TTL_SECONDS,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        verified_ttl_seconds: int = DEFAULT_VERIFIED_TTL_SECONDS,
    ):
        self._clock = clock
        self._code_generator = code_generator
        self.code_ttl = timedelta(seconds=code_ttl_seconds)
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self.verified_ttl = timedelta(seconds=verified_ttl_seconds)
        self._records: dict[str, VerificationRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._records)

    def get_record(self, address: str) -> VerificationRecord | None:
        """Return the current record for an address, after lazy expiry."""
        with self._lock:
            return self._load(normalize_address(address), self._clock())

    def _settle(self, record: VerificationRecord, now: datetime) -> None:
        state = record.state
        if isinstance(state, (CodeIssued, Verified)) and state.is_expired(now):
            record.state = Unset()

    def _reclaimable(self, record: VerificationRecord, now: datetime) -> bool:
        if not isinstance(record.state, Unset):
            return False
        return record.last_issued_at is None or now - record.last_issued_at >= self.cooldown

    def _load(self, address: str, now: datetime) -> VerificationRecord | None:
        """Fetch a record, expiring stale state and dropping dead records. Lock held."""
        record = self._records.get(address)
        if record is None:
            return None
        self._settle(record, now)
        if self._reclaimable(record, now):
            del self._records[address]
            return None
        return record

    async def request_code(self, address: str) -> IssuedCode:
        address = normalize_address(address)
        with self._lock:
            now = self._clock()
            record = self._load(address, now)

            if record is not None and record.last_issued_at is not None:
                if now - record.last_issued_at < self.cooldown:
                    wait = retry_after(record.last_issued_at, now, self.cooldown)
                    logger.warning(f"Code request for {address} inside cooldown ({wait}s left)")
                    raise CodeRateLimitedError(wait)

            code = self._code_generator()
            expires_at = now + self.code_ttl
            self._records[address] = VerificationRecord(
                address=address,
                state=CodeIssued(code=code, issued_at=now, expires_at=expires_at),
                last_issued_at=now,
            )

        logger.info(f"Issued verification code for {address}")
        return IssuedCode(address=address, code=code, expires_at=expires_at)

    async def confirm_code(self, address: str, code: str) -> VerifiedAddress:
        address = normalize_address(address)
        with self._lock:
            now = self._clock()
            record = self._records.get(address)
            state = record.state if record is not None else None

            if not isinstance(state, CodeIssued):
                raise CodeNotFoundError()

            if state.is_expired(now):
                record.state = Unset()
                self._load(address, now)
                logger.warning(f"Expired verification code submitted for {address}")
                raise CodeExpiredError()

            if code != state.code:
                logger.warning(f"Verification code mismatch for {address}")
                raise CodeMismatchError()

            expires_at = now + self.verified_ttl
            record.state = Verified(verified_at=now, expires_at=expires_at)

        logger.info(f"Email verified: {address}")
        return VerifiedAddress(address=address, expires_at=expires_at)

    async def check_verified(self, address: str) -> bool:
        with self._lock:
            record = self._load(normalize_address(address), self._clock())
            return record is not None and isinstance(record.state, Verified)

    async def consume_verification(self, address: str) -> bool:
        address = normalize_address(address)
        with self._lock:
            now = self._clock()
            record = self._load(address, now)
            if record is None or not isinstance(record.state, Verified):
                return False
            record.state = Unset()
            self._load(address, now)

        logger.info(f"Verification consumed for {address}")
        return True

    async def purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            before = len(self._records)
            for address in list(self._records):
                self._load(address, now)
            removed = before - len(self._records)

        if removed:
            logger.info(f"Purged {removed} stale verification records")
        return removed
