"""Typed failure outcomes shared by the transport and the controller.

The transport raises :class:`SessionFailure`; the controller catches it and
hands the wrapped :class:`Failure` back to its caller as a plain value.  Guard
rejections (``INVALID_STATE`` and ``BUSY``) never reach the wire.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "Failure",
    "FailureKind",
    "InvalidStateReason",
    "SessionFailure",
]


class FailureKind(str, Enum):
    TRANSPORT_ERROR = "transport_error"
    SERVER_ERROR = "server_error"
    PROTOCOL_ERROR = "protocol_error"
    INVALID_STATE = "invalid_state"
    BUSY = "busy"


class InvalidStateReason(str, Enum):
    NO_ACTIVE_SESSION = "no_active_session"
    GAME_ENDED = "game_ended"
    ALREADY_EXCLUDED = "already_excluded"
    UNKNOWN_CANDIDATE = "unknown_candidate"
    SESSION_SUPERSEDED = "session_superseded"


_REASON_MESSAGES: dict[InvalidStateReason, str] = {
    InvalidStateReason.NO_ACTIVE_SESSION: "No game in progress. Start a new game first.",
    InvalidStateReason.GAME_ENDED: "This game has ended. Start a new game to keep playing.",
    InvalidStateReason.ALREADY_EXCLUDED: "That species has already been excluded.",
    InvalidStateReason.UNKNOWN_CANDIDATE: "That species is not part of the current game.",
    InvalidStateReason.SESSION_SUPERSEDED: "The response arrived for a game that is no longer active.",
}


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str
    status: int | None = None
    reason: InvalidStateReason | None = None

    @property
    def recoverable(self) -> bool:
        # A protocol mismatch needs a server fix; everything else can be retried by the user.
        return self.kind is not FailureKind.PROTOCOL_ERROR

    @classmethod
    def transport(cls, message: str) -> Failure:
        return cls(FailureKind.TRANSPORT_ERROR, message)

    @classmethod
    def server(cls, status: int) -> Failure:
        return cls(FailureKind.SERVER_ERROR, f"Server returned HTTP {status}", status=status)

    @classmethod
    def protocol(cls, detail: str) -> Failure:
        return cls(FailureKind.PROTOCOL_ERROR, f"Unexpected response from the game server: {detail}")

    @classmethod
    def invalid_state(cls, reason: InvalidStateReason) -> Failure:
        return cls(FailureKind.INVALID_STATE, _REASON_MESSAGES[reason], reason=reason)

    @classmethod
    def busy(cls) -> Failure:
        return cls(FailureKind.BUSY, "Another request is still in progress; please wait.")


class SessionFailure(Exception):
    """Raised by the transport; carries the typed :class:`Failure`."""

    def __init__(self, failure: Failure) -> None:
        self.failure = failure
        super().__init__(failure.message)

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind
