"""Session Manager.

A SIMID session is a single identifier shared by player and creative.
The initiating side generates it; the other side adopts it from the
createSession envelope. Until then only the creation handshake is
accepted, and afterwards only envelopes carrying the exact same id.
"""

from __future__ import annotations

import logging
import uuid
from enum import Enum

from .envelope import Envelope
from .messages import ProtocolMessage

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    """Session lifecycle."""

    NO_SESSION = "no_session"
    ACTIVE = "active"


def generate_session_id() -> str:
    """Generate a UUID-v4 session identifier in its 36-character text form."""
    return str(uuid.uuid4())


class SessionManager:
    """Owns the session id of one protocol instance."""

    def __init__(self) -> None:
        self._session_id = ""

    @property
    def session_id(self) -> str:
        """Current session id ("" when there is no session)."""
        return self._session_id

    @property
    def state(self) -> SessionState:
        return SessionState.ACTIVE if self._session_id else SessionState.NO_SESSION

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def create(self) -> str:
        """Generate a fresh session id and make it current."""
        self._session_id = generate_session_id()
        logger.info(f"Created session {self._session_id}")
        return self._session_id

    def adopt(self, session_id: str) -> None:
        """Take over the session id offered by the counterpart."""
        if self._session_id == session_id:
            return
        self._session_id = session_id
        logger.info(f"Adopted session {session_id}")

    def validate(self, envelope: Envelope) -> bool:
        """Check whether an inbound envelope belongs to this session.

        Without a session only the createSession handshake is accepted.
        With one, the envelope's session id must match exactly.
        """
        if not self._session_id:
            return envelope.type == ProtocolMessage.CREATE_SESSION.value
        return envelope.session_id == self._session_id

    def reset(self) -> None:
        """Forget the current session."""
        if self._session_id:
            logger.info(f"Reset session {self._session_id}")
        self._session_id = ""
