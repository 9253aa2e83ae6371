"""Envelope wire model and message-type classification.

Every SIMID message is a JSON object with five fields:

    {
        "sessionId": "0c6c5f5e-3b2a-4d1c-9f0e-6a7b8c9d0e1f",
        "messageId": 7,
        "type": "SIMID:Player:init",
        "timestamp": 1700000000000,
        "args": {...}
    }

Field names are camelCase on the wire and snake_case in Python.
Application types carry the ``SIMID:`` namespace; the three reserved
protocol types (createSession, resolve, reject) are sent bare.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .config import DEFAULT_NAMESPACE
from .messages import ProtocolMessage

logger = logging.getLogger(__name__)


def now_ms() -> int:
    """Current epoch time in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ApplicationMessage:
    """A namespaced application message, with the namespace stripped."""

    type: str


# Closed set of inbound message kinds: a reserved protocol type or an
# application type. Anything else classifies as None and is dropped.
MessageKind = ProtocolMessage | ApplicationMessage


def classify(raw_type: str | None, namespace: str = DEFAULT_NAMESPACE) -> MessageKind | None:
    """Classify a wire ``type`` string.

    Returns the matching ``ProtocolMessage``, an ``ApplicationMessage`` for
    namespaced types, or None for missing and foreign types.
    """
    if not raw_type:
        return None
    try:
        return ProtocolMessage(raw_type)
    except ValueError:
        pass
    if raw_type.startswith(namespace):
        return ApplicationMessage(raw_type[len(namespace) :])
    return None


def namespaced(message_type: str, namespace: str = DEFAULT_NAMESPACE) -> str:
    """Return the on-the-wire form of a bare message type."""
    if message_type == ProtocolMessage.CREATE_SESSION.value:
        return message_type
    return namespace + message_type


class Envelope(BaseModel):
    """One SIMID message as exchanged over the transport."""

    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(default="", alias="sessionId")
    message_id: int = Field(default=0, alias="messageId")
    type: str | None = None
    timestamp: int = Field(default_factory=now_ms)
    args: Any = None

    @field_validator("session_id", mode="before")
    @classmethod
    def _null_session_is_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _truncate_timestamp(cls, value: Any) -> Any:
        if isinstance(value, float):
            return int(value)
        return value

    @property
    def correlating_id(self) -> int | None:
        """Message id answered by a resolve/reject envelope, if well formed."""
        if not isinstance(self.args, dict):
            return None
        message_id = self.args.get("messageId")
        if isinstance(message_id, bool) or not isinstance(message_id, int):
            return None
        return message_id

    @property
    def value(self) -> Any:
        """Payload carried by a resolve/reject envelope."""
        if isinstance(self.args, dict):
            return self.args.get("value")
        return None

    def kind(self, namespace: str = DEFAULT_NAMESPACE) -> MessageKind | None:
        """Classify this envelope's type."""
        return classify(self.type, namespace)

    def to_wire(self) -> str:
        """Serialize to the JSON text posted on the transport."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_wire(cls, data: str | bytes | None) -> Envelope | None:
        """Parse transport text into an envelope.

        Returns None for anything that is not a SIMID message: empty data,
        invalid JSON, non-object JSON, or fields of the wrong shape. The
        channel may carry unrelated traffic, so none of these are errors.
        """
        if not data:
            return None
        try:
            parsed = json.loads(data)
        except (ValueError, UnicodeDecodeError, RecursionError):
            logger.debug("Ignoring non-JSON message")
            return None
        if not isinstance(parsed, dict):
            logger.debug(f"Ignoring non-object message: {type(parsed).__name__}")
            return None
        try:
            return cls.model_validate(parsed)
        except ValidationError as e:
            logger.debug(f"Ignoring malformed envelope: {e.error_count()} error(s)")
            return None
