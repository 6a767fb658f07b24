from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .ids import ApplicantId, GraderId

ApplicantStatus = Literal[
    "pending",
    "auto_accept",
    "discuss",
    "auto_reject",
    "accepted",
    "rejected",
]
DecisionOutcome = Literal["accept", "reject"]

TERMINAL_STATUSES: frozenset[str] = frozenset({"accepted", "rejected"})
OUTCOME_STATUS: dict[str, ApplicantStatus] = {
    "accept": "accepted",
    "reject": "rejected",
}


class ContactInfo(BaseModel):
    """Contact channels for an applicant."""

    email: str | None = None
    phone_number: str | None = None

    model_config = ConfigDict(extra="forbid")


class Demographics(BaseModel):
    """Self-reported applicant attributes carried into exports."""

    major: str | None = None
    graduation_year: int | None = None
    gender: str | None = None
    pronouns: str | None = None
    spanish_fluent: bool = False
    can_attend_camp: bool = False

    model_config = ConfigDict(extra="forbid")


class Applicant(BaseModel):
    """One applicant of a recruitment cycle."""

    applicant_id: ApplicantId
    anonymous_id: str
    cycle: str
    first_name: str = ""
    last_name: str = ""
    contact: ContactInfo = Field(default_factory=ContactInfo)
    demographics: Demographics = Field(default_factory=Demographics)
    status: ApplicantStatus = "pending"
    total_score: float | None = Field(default=None, ge=0.0, le=5.0)

    model_config = ConfigDict(extra="forbid")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class Decision(BaseModel):
    """Current deliberation outcome for an applicant."""

    applicant_id: ApplicantId
    outcome: DecisionOutcome
    decided_by: GraderId
    decided_at: str | None = None

    model_config = ConfigDict(extra="forbid")
