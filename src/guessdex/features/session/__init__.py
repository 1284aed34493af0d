"""Session feature: wire schemas, HTTP transport and the session controller."""

from .controller import SessionController, SessionView, Transport
from .schemas import ExcludeRequest, GamePayload, SpeciesPayload
from .transport import EXCLUDE_PATH, NEW_GAME_PATH, SessionTransport

__all__ = [
    "EXCLUDE_PATH",
    "ExcludeRequest",
    "GamePayload",
    "NEW_GAME_PATH",
    "SessionController",
    "SessionTransport",
    "SessionView",
    "SpeciesPayload",
    "Transport",
]
