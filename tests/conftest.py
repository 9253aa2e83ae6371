"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from simid_protocol import Envelope, ProtocolConfig, RecordingTarget, SimidProtocol


@pytest.fixture(scope="module")
def anyio_backend():
    """Configure anyio to use asyncio backend."""
    return "asyncio"


@pytest.fixture
def target() -> RecordingTarget:
    """Message target that records everything posted to it."""
    return RecordingTarget()


@pytest.fixture
def protocol(target: RecordingTarget) -> SimidProtocol:
    """Protocol instance posting to the recording target."""
    return SimidProtocol(target, ProtocolConfig())


def wire(
    type: str,
    session_id: str = "",
    message_id: int = 1,
    args: Any = None,
) -> str:
    """Serialize an inbound envelope as the counterpart would."""
    return Envelope(
        session_id=session_id,
        message_id=message_id,
        type=type,
        args=args,
    ).to_wire()


def open_session(protocol: SimidProtocol, session_id: str = "session-under-test") -> str:
    """Put ``protocol`` into an active session as the non-initiating side."""
    protocol.receive(wire("createSession", session_id=session_id, message_id=1))
    return session_id


@pytest.fixture
def make_wire():
    """Factory for inbound envelope text."""
    return wire


@pytest.fixture
def active_protocol(protocol: SimidProtocol, target: RecordingTarget) -> SimidProtocol:
    """Protocol that has accepted a session from the counterpart.

    The implicit resolve for the handshake is cleared from the target.
    """
    open_session(protocol)
    target.clear()
    return protocol
