from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure "src" is on sys.path for imports in tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from guessdex.core.errors import Failure, SessionFailure  # noqa: E402
from guessdex.core.models import Candidate, CandidateStatus, Phase, SessionState  # noqa: E402


def species(
    species_id: int,
    state: str = "AVAILABLE",
    *,
    form: str | None = None,
    name: str | None = None,
    image_url: str | None = None,
) -> dict[str, Any]:
    return {
        "id": species_id,
        "name": name or f"species-{species_id}",
        "imageUrl": image_url,
        "form": form,
        "state": state,
    }


def game(
    game_id: int | str = 1,
    roster: list[dict[str, Any]] | None = None,
    *,
    game_state: str = "IN_PROGRESS",
    hint: str | None = "It lives near water",
    explanation: str | None = "",
    expected: int = 1,
    valid: bool = False,
) -> dict[str, Any]:
    return {
        "id": game_id,
        "species": roster if roster is not None else [species(10), species(11)],
        "gameState": game_state,
        "hint": hint,
        "explanation": explanation,
        "expectedExclusions": expected,
        "validGuess": valid,
    }


@pytest.fixture
def make_species():
    return species


@pytest.fixture
def make_game():
    return game


def make_state(
    session_id: int | str = 1,
    roster: list[tuple[int, str | None, CandidateStatus]] | None = None,
    *,
    phase: Phase = Phase.IN_PROGRESS,
    valid: bool = False,
    expected: int = 1,
) -> SessionState:
    entries = roster if roster is not None else [(10, None, CandidateStatus.AVAILABLE), (11, None, CandidateStatus.AVAILABLE)]
    return SessionState(
        session_id=session_id,
        roster=tuple(
            Candidate(id=cid, display_name=f"species-{cid}", status=status, form=form) for cid, form, status in entries
        ),
        phase=phase,
        hint="hint",
        expected_remaining=expected,
        last_guess_valid=valid,
    )


@pytest.fixture
def state_factory():
    return make_state


class ScriptedTransport:
    """In-memory transport: returns queued results and records every call.

    Results may be :class:`SessionState` (returned) or :class:`Failure`
    (raised as :class:`SessionFailure`).  Setting ``start_gate`` or
    ``exclude_gate`` holds the matching call until the event is set.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.start_results: list[SessionState | Failure] = []
        self.exclude_results: list[SessionState | Failure] = []
        self.start_gate: asyncio.Event | None = None
        self.exclude_gate: asyncio.Event | None = None
        self.closed = False

    async def start_session(self) -> SessionState:
        self.calls.append(("start",))
        if self.start_gate is not None:
            await self.start_gate.wait()
        return self._next(self.start_results)

    async def submit_exclusion(self, session_id, candidate_id, form) -> SessionState:
        self.calls.append(("exclude", session_id, candidate_id, form))
        if self.exclude_gate is not None:
            await self.exclude_gate.wait()
        return self._next(self.exclude_results)

    async def aclose(self) -> None:
        self.closed = True

    def _next(self, queue: list[SessionState | Failure]) -> SessionState:
        result = queue.pop(0)
        if isinstance(result, Failure):
            raise SessionFailure(result)
        return result


@pytest.fixture
def scripted() -> ScriptedTransport:
    return ScriptedTransport()


class FakeGameServer:
    """Scripted stand-in for the remote game server, served through FastAPI.

    ``outcomes`` maps ``(species_id, form)`` to the ``(gameState, validGuess)``
    pair the server reports after that species is excluded; unlisted species
    keep the game in progress with ``validGuess`` false.
    """

    def __init__(
        self,
        roster: list[dict[str, Any]],
        outcomes: dict[tuple[int, str | None], tuple[str, bool]] | None = None,
        *,
        expected: int = 1,
        hint: str = "It lives near water",
    ) -> None:
        from fastapi import FastAPI, HTTPException
        from pydantic import BaseModel, Field

        self.roster = roster
        self.outcomes = outcomes or {}
        self.expected = expected
        self.hint = hint
        self.games: dict[int, dict[str, Any]] = {}
        self.requests: list[dict[str, Any]] = []
        self.fail_next_with: int | None = None

        class _Exclude(BaseModel):
            game_id: int = Field(alias="gameId")
            species_id: int = Field(alias="speciesId")
            form: str | None

        app = FastAPI()

        @app.post("/game/new")
        async def new_game() -> dict[str, Any]:
            self._maybe_fail(HTTPException)
            game_id = len(self.games) + 1
            payload = game(
                game_id,
                [dict(entry) for entry in self.roster],
                hint=self.hint,
                expected=self.expected,
            )
            self.games[game_id] = payload
            return payload

        @app.post("/game/exclude")
        async def exclude(body: dict[str, Any]) -> dict[str, Any]:
            self.requests.append(body)
            self._maybe_fail(HTTPException)
            request = _Exclude.model_validate(body)
            current = self.games.get(request.game_id)
            if current is None:
                raise HTTPException(404, "unknown game")
            if current["gameState"] != "IN_PROGRESS":
                raise HTTPException(409, "game over")
            entries = [dict(entry) for entry in current["species"]]
            target = next(
                (e for e in entries if e["id"] == request.species_id and e["form"] == request.form),
                None,
            )
            if target is None or target["state"] != "AVAILABLE":
                raise HTTPException(409, "not available")
            target["state"] = "EXCLUDED"
            game_state, valid = self.outcomes.get((request.species_id, request.form), ("IN_PROGRESS", False))
            payload = game(
                request.game_id,
                entries,
                game_state=game_state,
                hint=self.hint,
                explanation="" if game_state == "IN_PROGRESS" else "The secret was revealed.",
                expected=max(0, current["expectedExclusions"] - 1),
                valid=valid,
            )
            self.games[request.game_id] = payload
            return payload

        self.app = app

    def _maybe_fail(self, error_type) -> None:
        status, self.fail_next_with = self.fail_next_with, None
        if status is not None:
            raise error_type(status, "scripted failure")

    def client(self):
        import httpx

        return httpx.AsyncClient(transport=httpx.ASGITransport(app=self.app), base_url="http://testserver")


@pytest.fixture
def fake_server_factory():
    pytest.importorskip("fastapi")
    return FakeGameServer
