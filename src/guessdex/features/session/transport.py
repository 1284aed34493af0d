from __future__ import annotations

import json
import logging
from types import TracebackType
from typing import Any

import httpx
from pydantic import ValidationError

from ...core.errors import Failure, SessionFailure
from ...core.models import SessionId, SessionState
from ...core.settings import ClientSettings, load_settings
from .schemas import ExcludeRequest, GamePayload

__all__ = ["EXCLUDE_PATH", "NEW_GAME_PATH", "SessionTransport"]

logger = logging.getLogger(__name__)

NEW_GAME_PATH = "/game/new"
EXCLUDE_PATH = "/game/exclude"

_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class SessionTransport:
    """Issues the two game requests and normalises every failure.

    Each call either returns a fresh :class:`SessionState` or raises
    :class:`SessionFailure`.  Nothing is retried here.
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or load_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=httpx.Timeout(self.settings.timeout),
        )

    @property
    def base_url(self) -> str:
        return str(self._client.base_url).rstrip("/") or self.settings.base_url

    async def start_session(self) -> SessionState:
        return await self._post(NEW_GAME_PATH, None)

    async def submit_exclusion(self, session_id: SessionId, candidate_id: int, form: str | None) -> SessionState:
        body = ExcludeRequest(game_id=session_id, species_id=candidate_id, form=form)
        return await self._post(EXCLUDE_PATH, body.to_dict())

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> SessionTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ helpers
    async def _post(self, path: str, body: dict[str, Any] | None) -> SessionState:
        logger.debug("POST %s", path, extra={"path": path, "body": body})
        try:
            if body is None:
                response = await self._client.post(path, headers=_HEADERS)
            else:
                response = await self._client.post(path, headers=_HEADERS, json=body)
        except httpx.TimeoutException as exc:
            logger.warning("Request to %s timed out", path, extra={"path": path})
            raise SessionFailure(
                Failure.transport(f"The game server at {self.base_url} did not answer in time.")
            ) from exc
        except httpx.RequestError as exc:
            logger.warning("Could not reach game server: %s", exc, extra={"path": path})
            raise SessionFailure(
                Failure.transport(
                    f"Unable to connect to the game server at {self.base_url}. "
                    "Check that it is running and reachable from this client (CORS or proxy settings)."
                )
            ) from exc

        if not response.is_success:
            logger.warning("Game server rejected %s", path, extra={"path": path, "status": response.status_code})
            raise SessionFailure(Failure.server(response.status_code))

        return _parse_state(response)


def _parse_state(response: httpx.Response) -> SessionState:
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SessionFailure(Failure.protocol("body is not JSON")) from exc
    try:
        payload = GamePayload.model_validate(data)
    except ValidationError as exc:
        logger.warning("Malformed game payload", extra={"errors": exc.error_count()})
        raise SessionFailure(Failure.protocol(f"{exc.error_count()} invalid field(s)")) from exc
    return payload.to_state()
