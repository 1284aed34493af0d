"""Derive presentation feedback for roster entries.

Feedback is a pure function of the current snapshot and the remembered key of
the last exclusion.  Nothing here is stored per candidate, so an unrelated
refresh can never leave a stale colour behind.  The classification is advisory
only; legality checks live in the session controller.
"""

from __future__ import annotations

from enum import Enum

from .models import Candidate, CandidateKey, PendingAction, Phase, SessionState

__all__ = [
    "FEEDBACK_COLORS",
    "Feedback",
    "classify",
    "classify_roster",
    "resolve_transition",
    "status_banner",
]


class Feedback(str, Enum):
    AVAILABLE = "available"
    EXCLUDED = "excluded"
    CORRECT = "correct"
    INCORRECT_BUT_CONTINUING = "incorrect_but_continuing"
    LOST = "lost"

    @property
    def color(self) -> str:
        return FEEDBACK_COLORS[self]

    @property
    def highlighted(self) -> bool:
        """True for the transient classes reserved for the last acted-on entry."""

        return self in _ACTION_FEEDBACK


FEEDBACK_COLORS: dict[Feedback, str] = {
    Feedback.LOST: "#e74c3c",
    Feedback.CORRECT: "#27ae60",
    Feedback.INCORRECT_BUT_CONTINUING: "#f39c12",
    Feedback.EXCLUDED: "#95a5a6",
    Feedback.AVAILABLE: "#3498db",
}

_ACTION_FEEDBACK = frozenset({Feedback.LOST, Feedback.CORRECT, Feedback.INCORRECT_BUT_CONTINUING})


def classify(state: SessionState, pending: PendingAction | None, candidate: Candidate) -> Feedback:
    if pending is not None and pending.matches(candidate):
        # A losing guess is always an incorrect guess, whatever validGuess says.
        if state.phase is Phase.LOST:
            return Feedback.LOST
        if state.last_guess_valid:
            return Feedback.CORRECT
        return Feedback.INCORRECT_BUT_CONTINUING
    if candidate.is_available:
        return Feedback.AVAILABLE
    return Feedback.EXCLUDED


def classify_roster(state: SessionState | None, pending: PendingAction | None) -> dict[CandidateKey, Feedback]:
    """Classify every roster entry, preserving roster order."""

    if state is None:
        return {}
    return {candidate.key: classify(state, pending, candidate) for candidate in state.roster}


def resolve_transition(
    before: SessionState | None,
    pending: PendingAction,
    after: SessionState,
) -> Feedback | None:
    """Classify the acted-on entry after a response.

    Returns ``None`` when the acted-on entry is absent from ``after`` or when
    ``before`` belongs to a different session, since the remembered key then
    does not refer to anything the player can see.
    """

    if before is not None and before.session_id != after.session_id:
        return None
    candidate = after.find(pending.candidate_id, pending.form)
    if candidate is None:
        return None
    return classify(after, pending, candidate)


def status_banner(state: SessionState | None) -> tuple[str, str] | None:
    if state is None:
        return None
    if state.phase is Phase.WON:
        return ("Congratulations!", "You won the game!")
    if state.phase is Phase.LOST:
        return ("Game Over!", "You made an incorrect guess.")
    return None
