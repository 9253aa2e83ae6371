"""Listener Registry for unsolicited SIMID messages.

Listeners are keyed by bare message type (``"Player:init"``, not
``"SIMID:Player:init"``) and run synchronously in registration order.
A listener that raises is logged and skipped; the remaining listeners
still run. Coroutine listeners are scheduled as tasks on the running
loop.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .envelope import Envelope

logger = logging.getLogger(__name__)

# Type for listener callbacks
Listener = Callable[[Envelope], Awaitable[None] | None]


@dataclass(eq=False)
class _Registration:
    """One add() call; compared by identity so duplicates stay distinct."""

    callback: Listener


class ListenerRegistry:
    """Ordered callbacks per message type."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[_Registration]] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def __contains__(self, message_type: object) -> bool:
        return bool(self._listeners.get(message_type))  # type: ignore[arg-type]

    def count(self, message_type: str) -> int:
        return len(self._listeners.get(message_type, []))

    def add(self, message_type: str, callback: Listener) -> Callable[[], None]:
        """Register a callback for a message type.

        The same callback may be registered more than once and will then be
        called once per registration.

        Returns:
            Function that removes this registration
        """
        registration = _Registration(callback)
        self._listeners.setdefault(message_type, []).append(registration)

        def unsubscribe() -> None:
            registrations = self._listeners.get(message_type)
            if registrations and registration in registrations:
                registrations.remove(registration)

        return unsubscribe

    def dispatch(self, message_type: str, envelope: Envelope) -> int:
        """Invoke every listener for ``message_type`` with the envelope.

        Returns:
            Number of listeners invoked
        """
        # Copy so listeners may register/unsubscribe during dispatch
        registrations = list(self._listeners.get(message_type, []))
        for registration in registrations:
            try:
                result = registration.callback(envelope)
                if inspect.isawaitable(result):
                    self._schedule(message_type, result)
            except Exception:
                logger.exception(f"Error in listener for {message_type}")
        return len(registrations)

    def clear(self) -> None:
        """Drop every registration."""
        self._listeners.clear()

    def _schedule(self, message_type: str, awaitable: Awaitable[None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(f"No running event loop for async listener for {message_type}")
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._tasks.add(task)

        def done(finished: asyncio.Task[Any]) -> None:
            self._tasks.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                logger.error(
                    f"Error in async listener for {message_type}",
                    exc_info=finished.exception(),
                )

        task.add_done_callback(done)
