from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .ids import ApplicantId, AssignmentId, GradeId, GraderId

QuestionType = Literal["written", "interview"]


class WrittenGrade(BaseModel):
    """Written scoring slot: one grader, one question, one applicant."""

    grade_id: GradeId | None = None
    applicant_id: ApplicantId
    grader_id: GraderId
    question_number: int = Field(ge=1)
    score: int | None = Field(default=None, ge=1, le=5)

    model_config = ConfigDict(extra="forbid")

    @property
    def is_scored(self) -> bool:
        return self.score is not None


class InterviewAssignment(BaseModel):
    """A grader assigned to interview an applicant in one round."""

    assignment_id: AssignmentId | None = None
    applicant_id: ApplicantId
    grader_id: GraderId
    round: int = Field(ge=1)

    model_config = ConfigDict(extra="forbid")


class InterviewScore(BaseModel):
    """Sub-section score hanging off an interview assignment."""

    assignment_id: AssignmentId
    sub_section: int = Field(ge=1)
    score: int | None = Field(default=None, ge=1, le=5)

    model_config = ConfigDict(extra="forbid")


class InterviewNote(BaseModel):
    """Free-text notes a grader keeps per interview question."""

    assignment_id: AssignmentId
    question_number: int = Field(ge=1)
    notes: str | None = None

    model_config = ConfigDict(extra="forbid")


class Rubric(BaseModel):
    """Reference text for a written or interview question."""

    rubric_id: str
    question_number: int = Field(ge=1)
    question_type: QuestionType
    round: int | None = None
    text: str
    guideline: str | None = None

    model_config = ConfigDict(extra="forbid")
