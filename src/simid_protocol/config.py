"""Protocol configuration.

Defaults match the SIMID wire format. Environment variables override the
few knobs that a deployment may want to tune without code changes:

    SIMID_TARGET_ORIGIN      origin passed to post_message (default "*")
    SIMID_RESPONSE_TIMEOUT   seconds before an unanswered call expires
                             (unset, empty or 0 disables the deadline)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from .messages import EVENTS_THAT_REQUIRE_RESPONSE

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "SIMID:"
DEFAULT_TARGET_ORIGIN = "*"


@dataclass
class ProtocolConfig:
    """Configuration for a single ``SimidProtocol`` instance."""

    # Prefix applied to every application message type on the wire
    namespace: str = DEFAULT_NAMESPACE

    # Origin argument handed to the message target
    target_origin: str = DEFAULT_TARGET_ORIGIN

    # Bare message types that register a pending call
    requires_response: frozenset[str] = field(
        default_factory=lambda: EVENTS_THAT_REQUIRE_RESPONSE
    )

    # Default deadline for pending calls (None = wait forever)
    response_timeout: float | None = None

    @classmethod
    def from_env(cls) -> ProtocolConfig:
        """Build a config from ``SIMID_*`` environment variables."""
        config = cls()

        if origin := os.getenv("SIMID_TARGET_ORIGIN"):
            config.target_origin = origin

        raw_timeout = os.getenv("SIMID_RESPONSE_TIMEOUT", "").strip()
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                logger.warning(f"Ignoring invalid SIMID_RESPONSE_TIMEOUT: {raw_timeout!r}")
            else:
                config.response_timeout = timeout if timeout > 0 else None

        return config
