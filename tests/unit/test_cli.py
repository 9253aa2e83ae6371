"""Tests for the simid-protocol CLI."""

from __future__ import annotations

import json
import re

import pytest
from click.testing import CliRunner

from simid_protocol import Envelope, ProtocolConfig, RecordingTarget
from simid_protocol.cli import main, start_counterpart


def run(*args: str, input: str | None = None):
    return CliRunner().invoke(main, list(args), input=input)


class TestSessionId:
    def test_prints_uuid(self):
        result = run("session-id")

        assert result.exit_code == 0
        assert re.match(r"^[0-9a-f-]{36}$", result.output.strip())


class TestCatalogue:
    """Test messages and codes listings."""

    def test_messages_json(self):
        """JSON listing includes wire form and response flag."""
        result = run("messages", "--format", "json")

        assert result.exit_code == 0
        rows = {row["type"]: row for row in json.loads(result.output)}
        assert rows["createSession"]["wire"] == "createSession"
        assert rows["Player:init"]["wire"] == "SIMID:Player:init"
        assert rows["Player:init"]["requires_response"] is True
        assert rows["Media:play"]["requires_response"] is False

    def test_messages_table(self):
        result = run("messages")

        assert result.exit_code == 0
        assert "Creative:requestSkip" in result.output

    def test_codes_json(self):
        """Error and stop codes are grouped."""
        result = run("codes", "-f", "json")

        assert result.exit_code == 0
        groups = json.loads(result.output)
        assert {"name": "UNSPECIFIED", "code": 1100} in groups["creative_error"]
        assert {"name": "SPEC_NOT_FOLLOWED_ON_MESSAGES", "code": 1211} in groups["player_error"]
        assert [entry["code"] for entry in groups["stop"]] == [0, 1, 2, 3, 4]

    def test_codes_table(self):
        result = run("codes")

        assert result.exit_code == 0
        assert "PLAYER_RESPONSE_TIMEOUT" in result.output


class TestInspect:
    """Test classification of captured traffic."""

    def test_classifies_lines(self):
        """Lines are classified with session tracking like a receiver."""
        lines = [
            Envelope(session_id="s1", message_id=1, type="createSession").to_wire(),
            Envelope(session_id="s1", message_id=2, type="SIMID:Player:init").to_wire(),
            Envelope(session_id="other", message_id=3, type="SIMID:Player:init").to_wire(),
            Envelope(session_id="s1", message_id=4, type="Player:init").to_wire(),
            "garbage",
            "",
        ]

        result = run("inspect", "--format", "json", input="\n".join(lines) + "\n")

        assert result.exit_code == 0
        results = json.loads(result.output)
        assert [(r["kind"], r["accepted"]) for r in results] == [
            ("protocol", True),
            ("application", True),
            ("application", False),
            ("foreign", False),
            ("noise", False),
        ]
        assert results[1]["type"] == "Player:init"

    def test_with_session_id(self):
        """--session-id starts the receiver inside that session."""
        line = Envelope(session_id="s1", message_id=2, type="SIMID:Media:play").to_wire()

        result = run("inspect", "--session-id", "s1", "-f", "json", input=line + "\n")

        assert json.loads(result.output)[0]["accepted"] is True

    def test_table_output(self):
        line = Envelope(session_id="s1", message_id=1, type="createSession").to_wire()

        result = run("inspect", input=line + "\n")

        assert result.exit_code == 0
        assert "Total: 1 message(s)" in result.output


class TestServeCounterpart:
    """Test the protocol instance that ``serve`` runs."""

    @pytest.mark.asyncio
    async def test_auto_resolves_requests(self, make_wire):
        """A request arriving after the handshake is resolved by message id."""
        target = RecordingTarget()
        protocol = start_counterpart(target, ProtocolConfig())

        protocol.receive(make_wire("createSession", "s1", 1))
        protocol.receive(make_wire("SIMID:Player:init", "s1", 2))

        replies = [e for e in target.envelopes if e.type == "resolve"]
        assert [reply.correlating_id for reply in replies] == [1, 2]
        assert all(reply.session_id == "s1" for reply in replies)

    @pytest.mark.asyncio
    async def test_no_auto_resolve(self, make_wire):
        """Without auto-resolve only the handshake is acknowledged."""
        target = RecordingTarget()
        protocol = start_counterpart(target, ProtocolConfig(), auto_resolve=False)

        protocol.receive(make_wire("createSession", "s1", 1))
        protocol.receive(make_wire("SIMID:Player:init", "s1", 2))

        assert [e.correlating_id for e in target.envelopes] == [1]

    @pytest.mark.asyncio
    async def test_informational_messages_not_resolved(self, make_wire):
        """Messages that need no response get no reply."""
        target = RecordingTarget()
        protocol = start_counterpart(target, ProtocolConfig())

        protocol.receive(make_wire("createSession", "s1", 1))
        target.clear()
        protocol.receive(make_wire("SIMID:Media:play", "s1", 2))

        assert target.messages == []

    @pytest.mark.asyncio
    async def test_create_session(self):
        """With initiate the handshake is posted straight away."""
        target = RecordingTarget()
        protocol = start_counterpart(target, ProtocolConfig(), initiate=True)

        [offer] = target.envelopes
        assert offer.type == "createSession"
        assert offer.session_id == protocol.session_id
        assert protocol.pending_count == 1
