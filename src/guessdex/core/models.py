from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "Candidate",
    "CandidateKey",
    "CandidateStatus",
    "PendingAction",
    "Phase",
    "SessionId",
    "SessionState",
]

SessionId = int | str
CandidateKey = tuple[int, str | None]


class CandidateStatus(str, Enum):
    AVAILABLE = "available"
    EXCLUDED = "excluded"


class Phase(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST = "lost"


@dataclass(frozen=True)
class Candidate:
    """One roster entry. The same base id may appear once per form."""

    id: int
    display_name: str
    status: CandidateStatus = CandidateStatus.AVAILABLE
    form: str | None = None
    image_ref: str | None = None

    @property
    def key(self) -> CandidateKey:
        return (self.id, self.form)

    @property
    def is_available(self) -> bool:
        return self.status is CandidateStatus.AVAILABLE


@dataclass(frozen=True)
class PendingAction:
    candidate_id: int
    form: str | None = None

    @classmethod
    def for_candidate(cls, candidate: Candidate) -> PendingAction:
        return cls(candidate_id=candidate.id, form=candidate.form)

    @property
    def key(self) -> CandidateKey:
        return (self.candidate_id, self.form)

    def matches(self, candidate: Candidate) -> bool:
        return self.key == candidate.key


@dataclass(frozen=True)
class SessionState:
    """Server-authoritative snapshot, replaced wholesale on every response."""

    session_id: SessionId
    roster: tuple[Candidate, ...] = field(default_factory=tuple)
    phase: Phase = Phase.IN_PROGRESS
    hint: str = ""
    explanation: str = ""
    expected_remaining: int = 0
    last_guess_valid: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.phase is not Phase.IN_PROGRESS

    def find(self, candidate_id: int, form: str | None = None) -> Candidate | None:
        for candidate in self.roster:
            if candidate.id == candidate_id and candidate.form == form:
                return candidate
        return None

    def available(self) -> tuple[Candidate, ...]:
        return tuple(candidate for candidate in self.roster if candidate.is_available)
