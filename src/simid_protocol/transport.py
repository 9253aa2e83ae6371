"""Message targets the protocol can post envelopes to.

The protocol only needs something with ``post_message(data, origin)``.
This module provides:

- MessageTarget: the protocol (interface) for outbound delivery
- MessageChannel: an in-memory pair of ports, like a browser MessageChannel
- StreamMessageTarget / pump_stream: JSON lines over text streams (stdio)
- RecordingTarget: records posted messages, for tests and inspection

Wire format for streams (one envelope per line):
    {"sessionId": "...", "messageId": 1, "type": "createSession", ...}\\n
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, TextIO, runtime_checkable

from .envelope import Envelope

if TYPE_CHECKING:
    from .protocol import SimidProtocol

logger = logging.getLogger(__name__)

# Inbound handler: receives raw message text
MessageHandler = Callable[[str], None]


@runtime_checkable
class MessageTarget(Protocol):
    """Anything envelopes can be posted to.

    Delivery is fire-and-forget: no confirmation, no return value.
    """

    def post_message(self, data: str, target_origin: str) -> None:
        """Post serialized envelope text to the counterpart."""
        ...


class MessagePort:
    """One end of a MessageChannel.

    Posting on a port delivers to the handler registered on the other port.
    Delivery is scheduled with ``loop.call_soon`` so it is asynchronous and
    FIFO per sender.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._peer: MessagePort | None = None
        self._handler: MessageHandler | None = None
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    def on_message(self, handler: MessageHandler) -> None:
        """Set the single inbound handler for this port."""
        self._handler = handler

    def post_message(self, data: str, target_origin: str = "*") -> None:
        peer = self._peer
        if self._closed or peer is None or peer.is_closed:
            logger.debug(f"Dropping message posted on closed port {self.name}")
            return
        asyncio.get_running_loop().call_soon(peer._deliver, data)

    def close(self) -> None:
        """Stop sending and receiving on this port."""
        self._closed = True
        self._handler = None

    def _deliver(self, data: str) -> None:
        if self._closed or self._handler is None:
            logger.debug(f"Port {self.name} has no handler, message dropped")
            return
        self._handler(data)


class MessageChannel:
    """Two entangled in-memory ports."""

    def __init__(self) -> None:
        self.port1 = MessagePort("port1")
        self.port2 = MessagePort("port2")
        self.port1._peer = self.port2
        self.port2._peer = self.port1

    def close(self) -> None:
        self.port1.close()
        self.port2.close()


def connect(first: SimidProtocol, second: SimidProtocol) -> MessageChannel:
    """Wire two protocol instances to each other over a new MessageChannel."""
    channel = MessageChannel()
    first.set_message_target(channel.port1)
    channel.port1.on_message(first.receive)
    second.set_message_target(channel.port2)
    channel.port2.on_message(second.receive)
    return channel


class StreamMessageTarget:
    """Writes each posted envelope as one line to a text stream."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    def post_message(self, data: str, target_origin: str = "*") -> None:
        try:
            self._stream.write(data + "\n")
            self._stream.flush()
        except Exception as e:
            logger.error(f"Error writing message: {e}")


async def pump_stream(reader: asyncio.StreamReader, handler: MessageHandler) -> int:
    """Feed JSON lines from ``reader`` into ``handler`` until EOF.

    Returns:
        Number of non-empty lines delivered
    """
    delivered = 0
    while True:
        line = await reader.readline()
        if not line:
            break
        text = line.decode("utf-8", errors="replace").strip()
        if not text:
            continue
        handler(text)
        delivered += 1
    return delivered


async def run_stdio(protocol: SimidProtocol, stdin: TextIO | None = None) -> int:
    """Run a protocol over stdin/stdout until stdin closes."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), stdin or sys.stdin
    )
    protocol.set_message_target(StreamMessageTarget(sys.stdout))
    return await pump_stream(reader, protocol.receive)


class RecordingTarget:
    """Message target that keeps everything posted to it.

    Usage:
        target = RecordingTarget()
        protocol = SimidProtocol(target)
        protocol.send("Creative:clickThru", {})

        assert target.envelopes[-1].type == "SIMID:Creative:clickThru"
    """

    def __init__(self) -> None:
        self._messages: list[tuple[str, str]] = []

    @property
    def messages(self) -> list[str]:
        """Raw posted text, oldest first."""
        return [data for data, _ in self._messages]

    @property
    def origins(self) -> list[str]:
        return [origin for _, origin in self._messages]

    @property
    def envelopes(self) -> list[Envelope]:
        """Posted messages parsed back into envelopes."""
        parsed = (Envelope.from_wire(data) for data in self.messages)
        return [envelope for envelope in parsed if envelope is not None]

    def post_message(self, data: str, target_origin: str = "*") -> None:
        self._messages.append((data, target_origin))

    def clear(self) -> None:
        self._messages.clear()
