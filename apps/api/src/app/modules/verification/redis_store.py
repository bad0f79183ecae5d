"""
Redis Verification Store

Verification store shared by every API instance and surviving restarts.

Each address is one Redis hash ``verification:{address}``:
- state: "code" or "verified" (absent means Unset)
- code: the outstanding code (state "code" only)
- expires_at: deadline of the current state, epoch milliseconds
- last_issued: time of the most recent issuance, epoch milliseconds

Mutations run as Lua scripts so the cooldown check-and-set and the consume
check-and-clear are atomic on the server. Key TTLs reclaim records once
both the state and the cooldown have lapsed, so no sweep is needed.
"""

import logging
from datetime import UTC, datetime

from redis.asyncio import Redis

from app.modules.verification.errors import (
    CodeExpiredError,
    CodeMismatchError,
    CodeNotFoundError,
    CodeRateLimitedError,
)
from app.modules.verification.models import IssuedCode, VerifiedAddress
from app.modules.verification.store import (
    DEFAULT_CODE_TTL_SECONDS,
    DEFAULT_COOLDOWN_SECONDS,
    DEFAULT_VERIFIED_TTL_SECONDS,
    Clock,
    CodeGenerator,
    VerificationStore,
    generate_code,
    normalize_address,
    utc_now,
)

logger = logging.getLogger(__name__)

KEY_PREFIX = "verification:"

# ARGV: now_ms, cooldown_ms, code, code_ttl_ms
# Returns {1, 0} when issued, {0, last_issued_ms} inside the cooldown
REQUEST_SCRIPT = """
local now = tonumber(ARGV[1])
local cooldown = tonumber(ARGV[2])
local ttl = tonumber(ARGV[4])
local last = tonumber(redis.call('HGET', KEYS[1], 'last_issued'))
if last and now - last < cooldown then
    return {0, last}
end
redis.call('DEL', KEYS[1])
redis.call('HSET', KEYS[1], 'state', 'code', 'code', ARGV[3], 'expires_at', now + ttl, 'last_issued', now)
-- keep the key past the deadline so a late confirm reports EXPIRED
redis.call('PEXPIRE', KEYS[1], math.max(2 * ttl, cooldown))
return {1, 0}
"""

# ARGV: now_ms, code, verified_ttl_ms, cooldown_ms
# Returns VERIFIED, NOT_FOUND, EXPIRED or MISMATCH
CONFIRM_SCRIPT = """
if redis.call('HGET', KEYS[1], 'state') ~= 'code' then
    return 'NOT_FOUND'
end
local now = tonumber(ARGV[1])
local ttl = tonumber(ARGV[3])
local last = tonumber(redis.call('HGET', KEYS[1], 'last_issued'))
local cooldown_left = last + tonumber(ARGV[4]) - now
if now > tonumber(redis.call('HGET', KEYS[1], 'expires_at')) then
    if cooldown_left > 0 then
        redis.call('HDEL', KEYS[1], 'state', 'code', 'expires_at')
        redis.call('PEXPIRE', KEYS[1], cooldown_left)
    else
        redis.call('DEL', KEYS[1])
    end
    return 'EXPIRED'
end
if redis.call('HGET', KEYS[1], 'code') ~= ARGV[2] then
    return 'MISMATCH'
end
redis.call('HDEL', KEYS[1], 'code')
redis.call('HSET', KEYS[1], 'state', 'verified', 'expires_at', now + ttl)
redis.call('PEXPIRE', KEYS[1], math.max(ttl, cooldown_left))
return 'VERIFIED'
"""

# ARGV: now_ms, cooldown_ms
# Returns 1 when a live verification was cleared, 0 otherwise
CONSUME_SCRIPT = """
if redis.call('HGET', KEYS[1], 'state') ~= 'verified' then
    return 0
end
local now = tonumber(ARGV[1])
if now > tonumber(redis.call('HGET', KEYS[1], 'expires_at')) then
    return 0
end
local cooldown_left = tonumber(redis.call('HGET', KEYS[1], 'last_issued')) + tonumber(ARGV[2]) - now
if cooldown_left > 0 then
    redis.call('HDEL', KEYS[1], 'state', 'expires_at')
    redis.call('PEXPIRE', KEYS[1], cooldown_left)
else
    redis.call('DEL', KEYS[1])
end
return 1
"""


def _key(address: str) -> str:
    return f"{KEY_PREFIX}{address}"


def _from_ms(epoch_ms: int) -> datetime:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=UTC)


class RedisVerificationStore(VerificationStore):
    """Verification store backed by Redis hashes and Lua scripts."""

    def __init__(
        self,
        client: Redis,
        clock: Clock = utc_now,
        code_generator: CodeGenerator = generate_code,
        code_ttl_seconds: int = DEFAULT_CODE_TTL_SECONDS,
        cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
        verified_ttl_seconds: int = DEFAULT_VERIFIED_TTL_SECONDS,
    ):
        self._client = client
        self._clock = clock
        self._code_generator = code_generator
        self.code_ttl_ms = code_ttl_seconds * 1000
        self.cooldown_ms = cooldown_seconds * 1000
        self.verified_ttl_ms = verified_ttl_seconds * 1000

        self._request = client.register_script(REQUEST_SCRIPT)
        self._confirm = client.register_script(CONFIRM_SCRIPT)
        self._consume = client.register_script(CONSUME_SCRIPT)

    def _now_ms(self) -> int:
        return int(self._clock().timestamp() * 1000)

    async def request_code(self, address: str) -> IssuedCode:
        address = normalize_address(address)
        now_ms = self._now_ms()
        code = self._code_generator()

        issued, last_issued_ms = await self._request(
            keys=[_key(address)],
            args=[now_ms, self.cooldown_ms, code, self.code_ttl_ms],
        )
        if not int(issued):
            remaining_ms = self.cooldown_ms - (now_ms - int(last_issued_ms))
            wait = max(1, -(-remaining_ms // 1000))
            logger.warning(f"Code request for {address} inside cooldown ({wait}s left)")
            raise CodeRateLimitedError(wait)

        logger.info(f"Issued verification code for {address}")
        expires_at = _from_ms(now_ms + self.code_ttl_ms)
        return IssuedCode(address=address, code=code, expires_at=expires_at)

    async def confirm_code(self, address: str, code: str) -> VerifiedAddress:
        address = normalize_address(address)
        now_ms = self._now_ms()

        outcome = await self._confirm(
            keys=[_key(address)],
            args=[now_ms, code, self.verified_ttl_ms, self.cooldown_ms],
        )
        if isinstance(outcome, bytes):
            outcome = outcome.decode()

        if outcome == "NOT_FOUND":
            raise CodeNotFoundError()
        if outcome == "EXPIRED":
            logger.warning(f"Expired verification code submitted for {address}")
            raise CodeExpiredError()
        if outcome == "MISMATCH":
            logger.warning(f"Verification code mismatch for {address}")
            raise CodeMismatchError()

        logger.info(f"Email verified: {address}")
        return VerifiedAddress(
            address=address,
            expires_at=_from_ms(now_ms + self.verified_ttl_ms),
        )

    async def check_verified(self, address: str) -> bool:
        state, expires_at = await self._client.hmget(
            _key(normalize_address(address)), ["state", "expires_at"]
        )
        if isinstance(state, bytes):
            state = state.decode()
        if state != "verified" or expires_at is None:
            return False
        return self._now_ms() <= int(expires_at)

    async def consume_verification(self, address: str) -> bool:
        address = normalize_address(address)
        cleared = await self._consume(
            keys=[_key(address)],
            args=[self._now_ms(), self.cooldown_ms],
        )
        if int(cleared):
            logger.info(f"Verification consumed for {address}")
            return True
        return False
