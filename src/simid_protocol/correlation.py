"""Correlation Table: outstanding message ids and their futures.

Each message that requires a response gets a PendingCall keyed by its
message id. A resolve or reject envelope from the counterpart carries
that id back and completes the call exactly once; the entry is removed
on completion so duplicate replies find nothing.

Optional deadlines convert a call that never gets a reply into a
ResponseTimeoutError instead of waiting forever.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import MessageRejectedError, ResponseTimeoutError

logger = logging.getLogger(__name__)


class PendingCallState(str, Enum):
    """Completion state of a pending call."""

    PENDING = "pending"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass
class PendingCall:
    """A sent message waiting for a resolve or reject."""

    message_id: int
    message_type: str
    future: asyncio.Future[Any]
    timeout: float | None = None
    state: PendingCallState = PendingCallState.PENDING
    created_at: float = field(default_factory=time.monotonic)
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    @property
    def is_pending(self) -> bool:
        return self.state == PendingCallState.PENDING and not self.future.done()

    def _settle(self, state: PendingCallState) -> bool:
        """Move out of PENDING. Returns False if already settled."""
        if not self.is_pending:
            return False
        self.state = state
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None
        return True

    def resolve(self, value: Any) -> bool:
        if not self._settle(PendingCallState.RESOLVED):
            return False
        self.future.set_result(value)
        return True

    def reject(self, value: Any) -> bool:
        if not self._settle(PendingCallState.REJECTED):
            return False
        self.future.set_exception(
            MessageRejectedError(value, self.message_id, self.message_type)
        )
        return True

    def expire(self) -> bool:
        if not self._settle(PendingCallState.EXPIRED):
            return False
        self.future.set_exception(
            ResponseTimeoutError(self.message_id, self.message_type, self.timeout or 0.0)
        )
        return True

    def cancel(self) -> bool:
        if not self._settle(PendingCallState.CANCELLED):
            return False
        self.future.cancel()
        return True


class CorrelationTable:
    """Maps outstanding message ids to their pending calls."""

    def __init__(self) -> None:
        self._pending: dict[int, PendingCall] = {}

    def __len__(self) -> int:
        return len(self._pending)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._pending

    def get(self, message_id: int) -> PendingCall | None:
        return self._pending.get(message_id)

    def register(
        self,
        message_id: int,
        message_type: str,
        *,
        timeout: float | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> asyncio.Future[Any]:
        """Create the pending call for a message about to be posted.

        Must be called before the message is transmitted, so that a reply
        can never arrive ahead of its entry.
        """
        if message_id in self._pending:
            raise ValueError(f"Message id {message_id} is already pending")

        loop = loop or asyncio.get_running_loop()
        future: asyncio.Future[Any] = loop.create_future()
        call = PendingCall(
            message_id=message_id,
            message_type=message_type,
            future=future,
            timeout=timeout,
        )
        self._pending[message_id] = call

        if timeout is not None:
            call.timer = loop.call_later(timeout, self._expire, message_id)

        # Callers may cancel the future themselves (e.g. asyncio.wait_for)
        future.add_done_callback(lambda _: self._discard(call))

        logger.debug(f"Registered pending call {message_id} ({message_type})")
        return future

    def resolve(self, message_id: int, value: Any = None) -> bool:
        """Complete a pending call successfully. Unknown ids are a no-op."""
        call = self._pending.pop(message_id, None)
        if call is None:
            logger.debug(f"No pending call for resolve of {message_id}")
            return False
        return call.resolve(value)

    def reject(self, message_id: int, value: Any = None) -> bool:
        """Fail a pending call with MessageRejectedError. Unknown ids are a no-op."""
        call = self._pending.pop(message_id, None)
        if call is None:
            logger.debug(f"No pending call for reject of {message_id}")
            return False
        return call.reject(value)

    def cancel_all(self) -> int:
        """Cancel every outstanding call and forget it. Returns the count."""
        calls = list(self._pending.values())
        self._pending.clear()
        cancelled = sum(1 for call in calls if call.cancel())
        if cancelled:
            logger.debug(f"Cancelled {cancelled} pending call(s)")
        return cancelled

    def _expire(self, message_id: int) -> None:
        call = self._pending.pop(message_id, None)
        if call is not None and call.expire():
            logger.warning(
                f"Pending call {message_id} ({call.message_type}) expired after {call.timeout}s"
            )

    def _discard(self, call: PendingCall) -> None:
        if call.state == PendingCallState.PENDING:
            call.state = PendingCallState.CANCELLED
            if call.timer is not None:
                call.timer.cancel()
                call.timer = None
        if self._pending.get(call.message_id) is call:
            del self._pending[call.message_id]
