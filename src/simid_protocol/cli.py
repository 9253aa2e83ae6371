"""SIMID protocol developer CLI.

Usage:
    simid-protocol session-id                 # Print a fresh session id
    simid-protocol messages                   # List message types
    simid-protocol codes                      # List error and stop codes
    simid-protocol inspect < traffic.jsonl    # Classify captured envelopes
    simid-protocol serve                      # Speak the protocol over stdio
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from typing import Any

import click

from .config import ProtocolConfig
from .envelope import ApplicationMessage, Envelope
from .messages import (
    CreativeErrorCode,
    CreativeMessage,
    MediaMessage,
    PlayerErrorCode,
    PlayerMessage,
    ProtocolMessage,
    StopCode,
)
from .protocol import SimidProtocol
from .session import SessionManager, generate_session_id
from .transport import MessageTarget, StreamMessageTarget, run_stdio

# Output format options
FORMAT_TABLE = "table"
FORMAT_JSON = "json"

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def truncate(text: str | None, max_len: int = 50) -> str:
    """Truncate text for display."""
    if not text:
        return ""
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


format_option = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice([FORMAT_TABLE, FORMAT_JSON]),
    default=FORMAT_TABLE,
    help="Output format",
)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=lambda: os.getenv("SIMID_LOG_LEVEL", "WARNING"),
    help="Logging level (default: $SIMID_LOG_LEVEL or WARNING)",
)
def main(log_level: str) -> None:
    """SIMID protocol tools for creative and player developers."""
    logging.basicConfig(
        level=log_level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("session-id")
def session_id() -> None:
    """Print a freshly generated session id."""
    click.echo(generate_session_id())


@main.command("messages")
@format_option
def messages(output_format: str) -> None:
    """List every known message type.

    Examples:

        simid-protocol messages
        simid-protocol messages --format json
    """
    config = ProtocolConfig()
    rows = [
        {
            "type": member.value,
            "wire": member.value if enum is ProtocolMessage else config.namespace + member.value,
            "requires_response": member.value in config.requires_response,
        }
        for enum in (ProtocolMessage, CreativeMessage, PlayerMessage, MediaMessage)
        for member in enum
    ]

    if output_format == FORMAT_JSON:
        click.echo(json.dumps(rows, indent=2))
        return

    click.echo(f"{'Type':<36} {'Response':<8}")
    click.echo("-" * 45)
    for row in rows:
        response = "yes" if row["requires_response"] else "no"
        click.echo(f"{row['type']:<36} {response:<8}")


@main.command("codes")
@format_option
def codes(output_format: str) -> None:
    """List creative/player error codes and stop reasons."""
    groups: dict[str, list[dict[str, Any]]] = {
        "creative_error": [{"name": c.name, "code": int(c)} for c in CreativeErrorCode],
        "player_error": [{"name": c.name, "code": int(c)} for c in PlayerErrorCode],
        "stop": [{"name": c.name, "code": int(c)} for c in StopCode],
    }

    if output_format == FORMAT_JSON:
        click.echo(json.dumps(groups, indent=2))
        return

    click.echo(f"{'Group':<16} {'Code':>5}  {'Name':<36}")
    click.echo("-" * 60)
    for group, entries in groups.items():
        for entry in entries:
            click.echo(f"{group:<16} {entry['code']:>5}  {entry['name']:<36}")


def describe(line: str, sessions: SessionManager, namespace: str) -> dict[str, Any]:
    """Classify one captured line the way a protocol instance would."""
    envelope = Envelope.from_wire(line)
    if envelope is None:
        return {"valid": False, "kind": "noise", "type": None, "accepted": False}

    kind = envelope.kind(namespace)
    if isinstance(kind, ApplicationMessage):
        kind_name = "application"
        bare_type = kind.type
    elif kind is None:
        kind_name = "foreign"
        bare_type = envelope.type
    else:
        kind_name = "protocol"
        bare_type = kind.value

    accepted = kind is not None and sessions.validate(envelope)
    if accepted and kind == ProtocolMessage.CREATE_SESSION:
        sessions.adopt(envelope.session_id)

    return {
        "valid": True,
        "kind": kind_name,
        "type": bare_type,
        "message_id": envelope.message_id,
        "session_id": envelope.session_id,
        "accepted": accepted,
    }


@main.command("inspect")
@click.option("--session-id", "session", default=None, help="Session id the receiver holds")
@format_option
def inspect_traffic(session: str | None, output_format: str) -> None:
    """Classify JSON-lines envelopes read from stdin.

    Without --session-id the receiver starts with no session and adopts the
    first createSession it accepts, like a real protocol instance.

    Examples:

        simid-protocol inspect < capture.jsonl
        simid-protocol inspect --session-id 0c6c5f5e-... --format json < capture.jsonl
    """
    sessions = SessionManager()
    if session:
        sessions.adopt(session)
    namespace = ProtocolConfig.from_env().namespace

    results = [
        describe(line.strip(), sessions, namespace)
        for line in click.get_text_stream("stdin")
        if line.strip()
    ]

    if output_format == FORMAT_JSON:
        click.echo(json.dumps(results, indent=2))
        return

    click.echo(f"{'#':>4} {'Kind':<12} {'Type':<36} {'Accepted':<8}")
    click.echo("-" * 63)
    for index, result in enumerate(results, start=1):
        accepted = "yes" if result["accepted"] else "no"
        message_type = truncate(result["type"] or "-", 36)
        click.echo(f"{index:>4} {result['kind']:<12} {message_type:<36} {accepted:<8}")
    click.echo(f"\nTotal: {len(results)} message(s)")


def start_counterpart(
    target: MessageTarget,
    config: ProtocolConfig,
    *,
    initiate: bool = False,
    auto_resolve: bool = True,
) -> SimidProtocol:
    """Build the protocol instance behind ``serve``.

    With ``auto_resolve`` every received message that requires a response is
    resolved with no value. With ``initiate`` the createSession handshake is
    sent immediately, so this must run inside an event loop.
    """
    protocol = SimidProtocol(target, config)

    if auto_resolve:
        for message_type in sorted(config.requires_response):
            if message_type == ProtocolMessage.CREATE_SESSION.value:
                continue
            protocol.add_listener(message_type, lambda envelope: protocol.resolve(envelope))

    if initiate:
        protocol.create_session()

    return protocol


@main.command("serve")
@click.option("--create-session", "initiate", is_flag=True, help="Initiate the session handshake")
@click.option(
    "--auto-resolve/--no-auto-resolve",
    default=True,
    help="Resolve every message that expects a response",
)
def serve(initiate: bool, auto_resolve: bool) -> None:
    """Run a protocol instance over stdin/stdout (JSON lines).

    Useful as a stand-in counterpart when developing a creative or player.
    """

    async def run() -> None:
        protocol = start_counterpart(
            StreamMessageTarget(sys.stdout),
            ProtocolConfig.from_env(),
            initiate=initiate,
            auto_resolve=auto_resolve,
        )
        count = await run_stdio(protocol)
        click.echo(f"stdin closed after {count} message(s)", err=True)

    asyncio.run(run())
