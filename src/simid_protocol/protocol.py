"""SIMID protocol instance: session handshake, correlation and dispatch.

The same class runs on both sides of the channel. Either side may
initiate the session with ``create_session()``; the other side adopts
the offered id when the createSession envelope arrives and answers it
with an implicit resolve.

Outbound:
    send(type, args)          -> future (resolved by the counterpart's reply,
                                 or already done for informational messages)
    resolve/reject(incoming)  -> answer a message received from the counterpart

Inbound:
    receive(data)             -> bound to the transport's message event

Instances are not thread-safe. All calls are expected to come from one
event loop, which is also where the transport delivers messages.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

from .config import ProtocolConfig
from .correlation import CorrelationTable
from .envelope import ApplicationMessage, Envelope, namespaced
from .errors import MessageTargetNotSetError, SimidProtocolError
from .listeners import Listener, ListenerRegistry
from .messages import ProtocolMessage
from .session import SessionManager, SessionState
from .transport import MessageTarget

logger = logging.getLogger(__name__)


def _type_name(message_type: str | Enum) -> str:
    """Accept catalogue enum members as well as plain strings."""
    if isinstance(message_type, Enum):
        return str(message_type.value)
    return message_type


class SimidProtocol:
    """Message protocol between a SIMID creative and player.

    Usage:
        creative = SimidProtocol(target)
        creative.add_listener(PlayerMessage.INIT, on_init)
        created = creative.create_session()
        ...
        assert await created
        state = await creative.send(CreativeMessage.GET_VIDEO_STATE)
    """

    def __init__(
        self,
        target: MessageTarget | None = None,
        config: ProtocolConfig | None = None,
    ) -> None:
        self.config = config or ProtocolConfig()
        self._target = target
        self._session = SessionManager()
        self._pending = CorrelationTable()
        self._listeners = ListenerRegistry()
        self._next_message_id = 1

    # =========================================================================
    # State
    # =========================================================================

    @property
    def session_id(self) -> str:
        return self._session.session_id

    @property
    def session_state(self) -> SessionState:
        return self._session.state

    @property
    def pending_count(self) -> int:
        """Number of sent messages still waiting for a reply."""
        return len(self._pending)

    @property
    def target(self) -> MessageTarget | None:
        return self._target

    def set_message_target(self, target: MessageTarget) -> None:
        """Set where outbound envelopes are posted."""
        self._target = target

    def listener_count(self, message_type: str | Enum) -> int:
        return self._listeners.count(_type_name(message_type))

    def reset(self) -> None:
        """Return to the pre-session state.

        Clears the session id and all listeners, and cancels every pending
        call; replies that arrive later for those ids are ignored. Message
        ids keep counting up so they are never reused.
        """
        self._listeners.clear()
        self._session.reset()
        self._pending.cancel_all()

    # =========================================================================
    # Outbound
    # =========================================================================

    def create_session(self) -> asyncio.Future[bool]:
        """Start a new session and offer it to the counterpart.

        Returns:
            Future that becomes True once the counterpart acknowledges the
            session, or False if it rejects it or the call expires. It never
            raises for a rejection.

        Raises:
            MessageTargetNotSetError: If no message target has been set
            SimidProtocolError: If a session is already active
        """
        if self._target is None:
            raise MessageTargetNotSetError("No message target set")
        if self._session.is_active:
            raise SimidProtocolError(
                f"Session {self.session_id} is already active; reset() before creating another"
            )

        outcome: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._session.create()
        reply = self.send(ProtocolMessage.CREATE_SESSION)

        def on_reply(future: asyncio.Future[Any]) -> None:
            if future.cancelled():
                logger.warning("Session creation was cancelled.")
                created = False
            elif future.exception() is not None:
                # If this ever happens the two sides may never be able to talk
                logger.warning(f"Session creation was rejected: {future.exception()}")
                created = False
            else:
                logger.info("Session created.")
                created = True
            if not outcome.done():
                outcome.set_result(created)

        reply.add_done_callback(on_reply)
        return outcome

    def send(
        self,
        message_type: str | Enum,
        args: Any = None,
        *,
        timeout: float | None = None,
    ) -> asyncio.Future[Any]:
        """Send a message to the counterpart.

        Args:
            message_type: Bare message type, e.g. "Creative:clickThru"
            args: JSON-serializable payload, may be None
            timeout: Deadline for a reply in seconds; defaults to
                ``config.response_timeout``. Ignored for informational types.

        Returns:
            For types that require a response, a future completed by the
            counterpart's resolve (result = resolved value) or reject
            (MessageRejectedError). For all other types, a future that is
            already done with result None.

        Raises:
            MessageTargetNotSetError: If no message target has been set
        """
        if self._target is None:
            raise MessageTargetNotSetError("No message target set")

        message_type = _type_name(message_type)
        loop = asyncio.get_running_loop()
        envelope = Envelope(
            session_id=self.session_id,
            message_id=self._allocate_message_id(),
            type=namespaced(message_type, self.config.namespace),
            args=args,
        )

        if not self._requires_response(message_type):
            self._post(envelope)
            done: asyncio.Future[Any] = loop.create_future()
            done.set_result(None)
            return done

        # The pending call must exist before the message id leaves this side
        future = self._pending.register(
            envelope.message_id,
            message_type,
            timeout=timeout if timeout is not None else self.config.response_timeout,
            loop=loop,
        )
        try:
            self._post(envelope)
        except Exception:
            future.cancel()
            raise
        return future

    def resolve(self, incoming: Envelope, value: Any = None) -> None:
        """Answer a received message successfully."""
        self._reply(ProtocolMessage.RESOLVE, incoming, value)

    def reject(self, incoming: Envelope, value: Any = None) -> None:
        """Answer a received message with a failure payload."""
        self._reply(ProtocolMessage.REJECT, incoming, value)

    def add_listener(
        self, message_type: str | Enum, callback: Listener
    ) -> Callable[[], None]:
        """Register a callback for a bare message type.

        Use "createSession" to be told when the counterpart opens a session.

        Returns:
            Function that removes this registration
        """
        return self._listeners.add(_type_name(message_type), callback)

    # =========================================================================
    # Inbound
    # =========================================================================

    def receive(self, data: str | bytes | None) -> None:
        """Handle one message from the transport.

        Anything that is not a valid envelope for this session is dropped
        without raising: the channel may carry unrelated traffic.
        """
        envelope = Envelope.from_wire(data)
        if envelope is None:
            return

        if envelope.type is None:
            logger.debug("Dropping envelope without a type")
            return

        if not self._session.validate(envelope):
            logger.debug(
                f"Dropping {envelope.type} for session {envelope.session_id!r} "
                f"(current {self.session_id!r})"
            )
            return

        match envelope.kind(self.config.namespace):
            case ProtocolMessage.CREATE_SESSION:
                self._handle_create_session(envelope)
            case ProtocolMessage.RESOLVE:
                self._handle_resolution(envelope, resolved=True)
            case ProtocolMessage.REJECT:
                self._handle_resolution(envelope, resolved=False)
            case ApplicationMessage(type=message_type):
                self._listeners.dispatch(message_type, envelope)
            case _:
                logger.debug(f"Ignoring foreign message type {envelope.type!r}")

    def _handle_create_session(self, envelope: Envelope) -> None:
        self._session.adopt(envelope.session_id)
        try:
            self.resolve(envelope)
        except Exception:
            logger.exception("Failed to acknowledge session creation")
        self._listeners.dispatch(ProtocolMessage.CREATE_SESSION.value, envelope)

    def _handle_resolution(self, envelope: Envelope, resolved: bool) -> None:
        correlating_id = envelope.correlating_id
        if correlating_id is None:
            logger.debug(f"Dropping {envelope.type} without a messageId")
            return
        if resolved:
            self._pending.resolve(correlating_id, envelope.value)
        else:
            self._pending.reject(correlating_id, envelope.value)

    # =========================================================================
    # Internals
    # =========================================================================

    def _allocate_message_id(self) -> int:
        message_id = self._next_message_id
        self._next_message_id += 1
        return message_id

    def _requires_response(self, message_type: str) -> bool:
        if message_type == ProtocolMessage.CREATE_SESSION.value:
            return True
        return message_type in self.config.requires_response

    def _reply(self, kind: ProtocolMessage, incoming: Envelope, value: Any) -> None:
        envelope = Envelope(
            session_id=self.session_id,
            message_id=self._allocate_message_id(),
            type=kind.value,
            args={"messageId": incoming.message_id, "value": value},
        )
        self._post(envelope)

    def _post(self, envelope: Envelope) -> None:
        if self._target is None:
            raise MessageTargetNotSetError("No message target set")
        logger.debug(f"Posting {envelope.type} (id={envelope.message_id})")
        self._target.post_message(envelope.to_wire(), self.config.target_origin)
