from __future__ import annotations

import itertools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from ...core.errors import Failure, InvalidStateReason, SessionFailure
from ...core.feedback import Feedback, classify_roster, resolve_transition
from ...core.models import Candidate, CandidateKey, PendingAction, SessionId, SessionState

__all__ = ["SessionController", "SessionView", "Transport"]

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def start_session(self) -> SessionState: ...

    async def submit_exclusion(self, session_id: SessionId, candidate_id: int, form: str | None) -> SessionState: ...

    async def aclose(self) -> None: ...


@dataclass(frozen=True)
class SessionView:
    """Read-only snapshot handed to the presentation layer."""

    state: SessionState | None
    pending: PendingAction | None
    busy: bool
    last_failure: Failure | None
    feedback: dict[CandidateKey, Feedback] = field(default_factory=dict)

    @property
    def has_session(self) -> bool:
        return self.state is not None

    @property
    def is_terminal(self) -> bool:
        return self.state is not None and self.state.is_terminal

    @property
    def error_message(self) -> str | None:
        return self.last_failure.message if self.last_failure else None

    def feedback_for(self, candidate: Candidate) -> Feedback:
        return self.feedback[candidate.key]

    def can_exclude(self, candidate: Candidate) -> bool:
        return (
            not self.busy
            and self.state is not None
            and not self.state.is_terminal
            and candidate.is_available
        )


Listener = Callable[[SessionView], None]


class SessionController:
    """Owns the single current session and gates every action on it.

    At most one request is outstanding per controller.  The ``busy`` guard is
    checked before the first suspension point, so overlapping calls are
    rejected rather than queued.  Responses are applied only if the request
    token they were issued under is still current; abandoning or restarting
    a session therefore drops whatever the earlier request brings back.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._state: SessionState | None = None
        self._pending: PendingAction | None = None
        self._last_failure: Failure | None = None
        self._inflight: int | None = None
        self._tokens = itertools.count(1)
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------ reads
    @property
    def state(self) -> SessionState | None:
        return self._state

    @property
    def pending(self) -> PendingAction | None:
        return self._pending

    @property
    def busy(self) -> bool:
        return self._inflight is not None

    @property
    def last_failure(self) -> Failure | None:
        return self._last_failure

    def view(self) -> SessionView:
        return SessionView(
            state=self._state,
            pending=self._pending,
            busy=self.busy,
            last_failure=self._last_failure,
            feedback=classify_roster(self._state, self._pending),
        )

    def find_candidate(self, candidate_id: int, form: str | None = None) -> Candidate | None:
        if self._state is None:
            return None
        return self._state.find(candidate_id, form)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------ actions
    async def start_session(self) -> SessionState | Failure:
        if self.busy:
            return self._reject(Failure.busy())

        token = self._begin()
        self._pending = None

        result = await self._call(token, self._transport.start_session)
        if token != self._inflight:
            return self._discard(token, None)
        self._inflight = None

        if isinstance(result, Failure):
            self._state = None
            self._last_failure = result
            logger.info("Session start failed", extra={"kind": result.kind.value})
        else:
            self._state = result
            self._last_failure = None
            logger.info("Session started", extra={"session_id": result.session_id, "roster": len(result.roster)})
        self._notify()
        return result

    async def exclude_candidate(self, candidate: Candidate) -> SessionState | Failure:
        if not isinstance(candidate, Candidate):
            raise TypeError(f"expected Candidate, got {type(candidate).__name__}")

        # Busy wins over the state checks: the state they would read is about to be replaced.
        if self.busy:
            return self._reject(Failure.busy())
        state = self._state
        if state is None:
            return self._reject(Failure.invalid_state(InvalidStateReason.NO_ACTIVE_SESSION))
        if state.is_terminal:
            return self._reject(Failure.invalid_state(InvalidStateReason.GAME_ENDED))
        if not candidate.is_available:
            return self._reject(Failure.invalid_state(InvalidStateReason.ALREADY_EXCLUDED))
        # The caller may hold an entry from an older snapshot; the live roster decides.
        current = state.find(candidate.id, candidate.form)
        if current is None:
            return self._reject(Failure.invalid_state(InvalidStateReason.UNKNOWN_CANDIDATE))
        if not current.is_available:
            return self._reject(Failure.invalid_state(InvalidStateReason.ALREADY_EXCLUDED))

        session_id = state.session_id
        token = self._begin()
        self._pending = pending = PendingAction.for_candidate(candidate)

        async def _submit() -> SessionState:
            return await self._transport.submit_exclusion(session_id, candidate.id, candidate.form)

        result = await self._call(token, _submit)
        if token != self._inflight or self._state is None or self._state.session_id != session_id:
            return self._discard(token, session_id)
        self._inflight = None

        if isinstance(result, Failure):
            # The server never saw a successful exclusion; the roster stays as it was.
            self._last_failure = result
            logger.info("Exclusion failed", extra={"kind": result.kind.value, "candidate": candidate.key})
        elif result.session_id != session_id:
            self._last_failure = Failure.protocol(
                f"response for game {result.session_id!r} while game {session_id!r} is active"
            )
            logger.warning("Exclusion response carried a different session id", extra={"session_id": session_id})
            result = self._last_failure
        else:
            outcome = resolve_transition(state, pending, result)
            self._state = result
            self._last_failure = None
            logger.info(
                "Exclusion applied",
                extra={
                    "session_id": session_id,
                    "candidate": candidate.key,
                    "phase": result.phase.value,
                    "feedback": outcome.value if outcome else None,
                },
            )
        self._notify()
        return result

    def abandon(self) -> None:
        """Drop the current session, including any request still in flight."""

        if self._state is not None or self._inflight is not None:
            logger.info("Session abandoned", extra={"session_id": self._state.session_id if self._state else None})
        self._state = None
        self._pending = None
        self._last_failure = None
        self._inflight = None
        self._notify()

    async def aclose(self) -> None:
        self.abandon()
        self._listeners.clear()
        await self._transport.aclose()

    # ------------------------------------------------------------------ helpers
    def _begin(self) -> int:
        token = next(self._tokens)
        self._inflight = token
        self._last_failure = None
        return token

    async def _call(self, token: int, request: Callable[[], Awaitable[SessionState]]) -> SessionState | Failure:
        logger.debug("Request issued", extra={"token": token})
        try:
            self._notify()
            return await request()
        except SessionFailure as exc:
            return exc.failure
        except BaseException:
            # Cancellation or an unexpected error releases the busy guard.
            if token == self._inflight:
                self._inflight = None
            raise

    def _reject(self, failure: Failure) -> Failure:
        logger.debug("Action rejected", extra={"kind": failure.kind.value, "reason": failure.reason})
        self._last_failure = failure
        self._notify()
        return failure

    def _discard(self, token: int, session_id: SessionId | None) -> Failure:
        logger.info("Discarding stale response", extra={"token": token, "session_id": session_id})
        return Failure.invalid_state(InvalidStateReason.SESSION_SUPERSEDED)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.view()
        for listener in list(self._listeners):
            listener(snapshot)
