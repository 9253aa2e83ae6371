"""Exceptions raised by the SIMID protocol layer.

Inbound failures (noise, session mismatch, unknown correlation ids) never
raise; they are dropped. These exceptions surface only through the futures
returned by ``SimidProtocol.send`` or from misuse of the outbound API.
"""

from __future__ import annotations

from typing import Any


class SimidProtocolError(Exception):
    """Base class for all protocol errors."""


class MessageRejectedError(SimidProtocolError):
    """The counterpart answered a message with a reject envelope.

    The rejection payload is kept verbatim on ``value``; for SIMID this is
    usually a dict carrying an ``errorCode`` from the error catalogue.
    """

    def __init__(
        self,
        value: Any = None,
        message_id: int | None = None,
        message_type: str | None = None,
    ) -> None:
        self.value = value
        self.message_id = message_id
        self.message_type = message_type
        super().__init__(f"Message {message_type!r} (id={message_id}) was rejected: {value!r}")


class ResponseTimeoutError(SimidProtocolError, TimeoutError):
    """No resolve or reject arrived before the pending call's deadline."""

    def __init__(self, message_id: int, message_type: str | None, timeout: float) -> None:
        self.message_id = message_id
        self.message_type = message_type
        self.timeout = timeout
        super().__init__(
            f"No response to {message_type!r} (id={message_id}) within {timeout:g}s"
        )


class MessageTargetNotSetError(SimidProtocolError, RuntimeError):
    """An outbound message was sent before a message target was configured."""
