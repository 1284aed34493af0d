from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...core.models import Candidate, CandidateStatus, Phase, SessionState

__all__ = [
    "ExcludeRequest",
    "GamePayload",
    "SpeciesPayload",
]

_PHASES: dict[str, Phase] = {
    "IN_PROGRESS": Phase.IN_PROGRESS,
    "COMPLETED": Phase.WON,
    "FAILED": Phase.LOST,
}

_STATUSES: dict[str, CandidateStatus] = {
    "AVAILABLE": CandidateStatus.AVAILABLE,
    "EXCLUDED": CandidateStatus.EXCLUDED,
}


class _APIModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class SpeciesPayload(_APIModel):
    id: int
    name: str
    image_url: str | None = Field(default=None, alias="imageUrl")
    form: str | None = None
    state: Literal["AVAILABLE", "EXCLUDED"]

    def to_candidate(self) -> Candidate:
        return Candidate(
            id=self.id,
            display_name=self.name,
            status=_STATUSES[self.state],
            form=self.form,
            image_ref=self.image_url,
        )


class GamePayload(_APIModel):
    id: int | str
    species: list[SpeciesPayload]
    game_state: Literal["IN_PROGRESS", "COMPLETED", "FAILED"] = Field(alias="gameState")
    hint: str = ""
    explanation: str = ""
    expected_exclusions: int = Field(default=0, alias="expectedExclusions")
    valid_guess: bool = Field(default=False, alias="validGuess")

    @field_validator("hint", "explanation", mode="before")
    @classmethod
    def _blank_if_null(cls, value: object) -> object:
        return "" if value is None else value

    def to_state(self) -> SessionState:
        return SessionState(
            session_id=self.id,
            roster=tuple(species.to_candidate() for species in self.species),
            phase=_PHASES[self.game_state],
            hint=self.hint,
            explanation=self.explanation,
            expected_remaining=self.expected_exclusions,
            last_guess_valid=self.valid_guess,
        )


class ExcludeRequest(_APIModel):
    game_id: int | str = Field(alias="gameId")
    species_id: int = Field(alias="speciesId")
    form: str | None = None
