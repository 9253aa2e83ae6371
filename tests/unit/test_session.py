"""Tests for session module - SessionState, generate_session_id, SessionManager."""

from __future__ import annotations

import re

import pytest

from simid_protocol import Envelope, SessionManager, SessionState, generate_session_id

UUID_V4 = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")

# =============================================================================
# Session id generation
# =============================================================================


class TestGenerateSessionId:
    """Tests for generate_session_id()."""

    def test_uuid_v4_shape(self) -> None:
        """Ids have the 36-character UUID-v4 text form."""
        session_id = generate_session_id()

        assert len(session_id) == 36
        assert UUID_V4.match(session_id)

    def test_ids_do_not_collide(self) -> None:
        """Consecutive ids are distinct."""
        ids = {generate_session_id() for _ in range(1000)}

        assert len(ids) == 1000


# =============================================================================
# SessionManager
# =============================================================================


class TestSessionManagerLifecycle:
    """Tests for create/adopt/reset."""

    def test_starts_without_session(self) -> None:
        """A new manager has no session."""
        manager = SessionManager()

        assert manager.session_id == ""
        assert manager.state == SessionState.NO_SESSION
        assert manager.is_active is False

    def test_create(self) -> None:
        """create() generates and stores a fresh id."""
        manager = SessionManager()

        session_id = manager.create()

        assert manager.session_id == session_id
        assert UUID_V4.match(session_id)
        assert manager.state == SessionState.ACTIVE

    def test_adopt(self) -> None:
        """adopt() takes over the counterpart's id verbatim."""
        manager = SessionManager()

        manager.adopt("Their-Session")

        assert manager.session_id == "Their-Session"
        assert manager.is_active is True

    def test_reset(self) -> None:
        """reset() returns to the no-session state."""
        manager = SessionManager()
        manager.create()

        manager.reset()

        assert manager.session_id == ""
        assert manager.state == SessionState.NO_SESSION

    def test_state_is_string_enum(self) -> None:
        """States can be used as strings."""
        assert SessionState.NO_SESSION == "no_session"
        assert SessionState.ACTIVE.value == "active"


class TestSessionValidation:
    """Tests for SessionManager.validate()."""

    def test_bootstrap_accepts_create_session(self) -> None:
        """Without a session, createSession is accepted whatever id it carries."""
        manager = SessionManager()

        assert manager.validate(Envelope(type="createSession", session_id="offered"))

    @pytest.mark.parametrize("message_type", ["resolve", "reject", "SIMID:Player:init"])
    def test_bootstrap_rejects_everything_else(self, message_type: str) -> None:
        """Without a session, only the handshake gets through."""
        manager = SessionManager()

        assert not manager.validate(Envelope(type=message_type, session_id=""))
        assert not manager.validate(Envelope(type=message_type, session_id="any"))

    def test_matching_session_accepted(self) -> None:
        """With a session, the exact id is accepted."""
        manager = SessionManager()
        manager.adopt("abc-123")

        assert manager.validate(Envelope(type="SIMID:Player:init", session_id="abc-123"))

    @pytest.mark.parametrize("session_id", ["", "ABC-123", "abc-1234", "other"])
    def test_mismatched_session_rejected(self, session_id: str) -> None:
        """With a session, any other id (including case changes) is rejected."""
        manager = SessionManager()
        manager.adopt("abc-123")

        assert not manager.validate(Envelope(type="SIMID:Player:init", session_id=session_id))

    def test_create_session_for_other_session_rejected(self) -> None:
        """A second handshake from a foreign window cannot replace the session."""
        manager = SessionManager()
        manager.adopt("abc-123")

        assert not manager.validate(Envelope(type="createSession", session_id="intruder"))
