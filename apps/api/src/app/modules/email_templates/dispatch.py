"""
Bulk Email Dispatch

Sends a batch of messages one at a time with a fixed pause between
consecutive sends to stay under the provider's rate limit. A failed send is
recorded against its recipient and the batch carries on.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutgoingMessage:
    """
    One rendered message.

    Attributes:
        key: Caller's identifier for the recipient (e.g. application id)
        to: Recipient address
        subject: Rendered subject
        html: Rendered HTML body
        reply_to: Optional reply-to address
    """

    key: str
    to: str
    subject: str
    html: str
    reply_to: str | None = None


@dataclass(frozen=True)
class DispatchOutcome:
    key: str
    to: str
    status: Literal["sent", "failed"]
    attempted_at: datetime
    message_id: str | None = None
    error: str | None = None


@dataclass
class BulkDispatchResult:
    outcomes: list[DispatchOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def sent(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "sent")

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == "failed")

    def summary(self) -> dict[str, int]:
        return {"total": self.total, "sent": self.sent, "failed": self.failed}


SendFunc = Callable[[OutgoingMessage], Awaitable[str]]


async def dispatch_bulk(
    messages: Sequence[OutgoingMessage],
    send: SendFunc,
    delay_seconds: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> BulkDispatchResult:
    """
    Send messages sequentially.

    Args:
        messages: Messages in send order
        send: Coroutine delivering one message and returning its provider id;
            any exception marks that recipient as failed
        delay_seconds: Pause between consecutive sends
        sleep: Pause implementation

    Returns:
        BulkDispatchResult with one outcome per message, in order
    """
    result = BulkDispatchResult()

    for index, message in enumerate(messages):
        if index > 0 and delay_seconds > 0:
            await sleep(delay_seconds)

        attempted_at = datetime.now(UTC)
        try:
            message_id = await send(message)
        except Exception as e:
            logger.error(f"Bulk email to {message.to} failed: {e}")
            result.outcomes.append(
                DispatchOutcome(
                    key=message.key,
                    to=message.to,
                    status="failed",
                    attempted_at=attempted_at,
                    error=str(e) or type(e).__name__,
                )
            )
            continue

        result.outcomes.append(
            DispatchOutcome(
                key=message.key,
                to=message.to,
                status="sent",
                attempted_at=attempted_at,
                message_id=message_id,
            )
        )

    logger.info(f"Bulk dispatch complete: {result.sent}/{result.total} sent")
    return result
