"""SIMID protocol - session, correlation and dispatch for creative/player messaging.

Key concepts:
- Envelope: one JSON message on the channel
- Session: handshake scope shared by both sides
- Pending call: a sent message waiting for resolve/reject
- Listener: callback for unsolicited messages from the counterpart
"""

from .config import ProtocolConfig
from .correlation import CorrelationTable, PendingCall, PendingCallState
from .envelope import ApplicationMessage, Envelope, MessageKind, classify, namespaced
from .errors import (
    MessageRejectedError,
    MessageTargetNotSetError,
    ResponseTimeoutError,
    SimidProtocolError,
)
from .listeners import Listener, ListenerRegistry
from .messages import (
    EVENTS_THAT_REQUIRE_RESPONSE,
    CreativeErrorCode,
    CreativeMessage,
    MediaMessage,
    PlayerErrorCode,
    PlayerMessage,
    ProtocolMessage,
    StopCode,
)
from .protocol import SimidProtocol
from .session import SessionManager, SessionState, generate_session_id
from .transport import (
    MessageChannel,
    MessagePort,
    MessageTarget,
    RecordingTarget,
    StreamMessageTarget,
    connect,
    pump_stream,
    run_stdio,
)

__all__ = [
    # Protocol
    "SimidProtocol",
    "ProtocolConfig",
    # Building blocks
    "SessionManager",
    "SessionState",
    "generate_session_id",
    "CorrelationTable",
    "PendingCall",
    "PendingCallState",
    "ListenerRegistry",
    "Listener",
    # Wire format
    "Envelope",
    "ApplicationMessage",
    "MessageKind",
    "classify",
    "namespaced",
    # Transports
    "MessageTarget",
    "MessageChannel",
    "MessagePort",
    "RecordingTarget",
    "StreamMessageTarget",
    "connect",
    "pump_stream",
    "run_stdio",
    # Errors
    "SimidProtocolError",
    "MessageRejectedError",
    "ResponseTimeoutError",
    "MessageTargetNotSetError",
    # Catalogue
    "ProtocolMessage",
    "CreativeMessage",
    "PlayerMessage",
    "MediaMessage",
    "EVENTS_THAT_REQUIRE_RESPONSE",
    "CreativeErrorCode",
    "PlayerErrorCode",
    "StopCode",
]
