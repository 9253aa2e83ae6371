"""SIMID message-type catalogue and error codes.

This is vocabulary, not logic. The protocol core only looks at
``ProtocolMessage`` and ``EVENTS_THAT_REQUIRE_RESPONSE``; the remaining
enums exist so player and creative code can build and read payloads
without string literals.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class ProtocolMessage(str, Enum):
    """Reserved protocol types. These are never namespaced on the wire."""

    CREATE_SESSION = "createSession"
    RESOLVE = "resolve"
    REJECT = "reject"


class MediaMessage(str, Enum):
    """Media element events forwarded from the player."""

    DURATION_CHANGE = "Media:durationchange"
    ENDED = "Media:ended"
    ERROR = "Media:error"
    PAUSE = "Media:pause"
    PLAY = "Media:play"
    PLAYING = "Media:playing"
    SEEKED = "Media:seeked"
    SEEKING = "Media:seeking"
    TIME_UPDATE = "Media:timeupdate"
    VOLUME_CHANGE = "Media:volumechange"


class PlayerMessage(str, Enum):
    """Messages sent by the player to the creative."""

    RESIZE = "Player:resize"
    INIT = "Player:init"
    START_CREATIVE = "Player:startCreative"
    AD_SKIPPED = "Player:adSkipped"
    AD_STOPPED = "Player:adStopped"
    FATAL_ERROR = "Player:fatalError"


class CreativeMessage(str, Enum):
    """Messages sent by the creative to the player."""

    CLICK_THRU = "Creative:clickThru"
    FATAL_ERROR = "Creative:fatalError"
    GET_VIDEO_STATE = "Creative:getVideoState"
    REQUEST_FULL_SCREEN = "Creative:requestFullScreen"
    REQUEST_SKIP = "Creative:requestSkip"
    REQUEST_STOP = "Creative:requestStop"
    REQUEST_PAUSE = "Creative:requestPause"
    REQUEST_PLAY = "Creative:requestPlay"
    REQUEST_RESIZE = "Creative:requestResize"
    REQUEST_VOLUME = "Creative:requestVolume"
    REPORT_TRACKING = "Creative:reportTracking"
    REQUEST_CHANGE_AD_DURATION = "Creative:requestChangeAdDuration"


# Messages that expect a resolve or reject. Everything else is
# informational and completes as soon as it is posted.
EVENTS_THAT_REQUIRE_RESPONSE: frozenset[str] = frozenset(
    {
        CreativeMessage.GET_VIDEO_STATE.value,
        CreativeMessage.CLICK_THRU.value,
        CreativeMessage.REQUEST_SKIP.value,
        CreativeMessage.REQUEST_STOP.value,
        CreativeMessage.REQUEST_PAUSE.value,
        CreativeMessage.REQUEST_PLAY.value,
        CreativeMessage.REQUEST_FULL_SCREEN.value,
        CreativeMessage.REQUEST_VOLUME.value,
        CreativeMessage.REQUEST_RESIZE.value,
        CreativeMessage.REQUEST_CHANGE_AD_DURATION.value,
        CreativeMessage.REPORT_TRACKING.value,
        PlayerMessage.INIT.value,
        PlayerMessage.START_CREATIVE.value,
        PlayerMessage.AD_SKIPPED.value,
        PlayerMessage.AD_STOPPED.value,
        PlayerMessage.FATAL_ERROR.value,
        ProtocolMessage.CREATE_SESSION.value,
    }
)


class CreativeErrorCode(IntEnum):
    """Errors the creative may report to the player."""

    UNSPECIFIED = 1100
    CANNOT_LOAD_RESOURCE = 1101
    PLAYBACK_AREA_UNUSABLE = 1102
    INCORRECT_VERSION = 1103
    TECHNICAL_ERROR = 1104
    EXPAND_NOT_POSSIBLE = 1105
    PAUSE_NOT_HONORED = 1106
    PLAYMODE_NOT_ADEQUATE = 1107
    CREATIVE_INTERNAL_ERROR = 1108
    DEVICE_NOT_SUPPORTED = 1109
    MESSAGES_NOT_FOLLOWING_SPEC = 1110
    PLAYER_RESPONSE_TIMEOUT = 1111


class PlayerErrorCode(IntEnum):
    """Errors the player may report to the creative."""

    UNSPECIFIED = 1200
    WRONG_VERSION = 1201
    UNSUPPORTED_TIME = 1202
    UNSUPPORTED_FUNCTIONALITY_REQUEST = 1203
    UNSUPPORTED_ACTIONS = 1204
    POSTMESSAGE_CHANNEL_OVERLOADED = 1205
    VIDEO_COULD_NOT_LOAD = 1206
    VIDEO_TIME_OUT = 1207
    RESPONSE_TIMEOUT = 1208
    MEDIA_NOT_SUPPORTED = 1209
    SPEC_NOT_FOLLOWED_ON_INIT = 1210
    SPEC_NOT_FOLLOWED_ON_MESSAGES = 1211


class StopCode(IntEnum):
    """Reasons a player may stop the ad."""

    UNSPECIFIED = 0
    USER_INITIATED = 1
    MEDIA_PLAYBACK_COMPLETE = 2
    PLAYER_INITIATED = 3
    CREATIVE_INITIATED = 4


def requires_response(message_type: str, table: frozenset[str] | None = None) -> bool:
    """Check whether a bare (un-namespaced) message type expects a reply."""
    if table is None:
        table = EVENTS_THAT_REQUIRE_RESPONSE
    return message_type in table
