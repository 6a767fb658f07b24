"""Pydantic schema definitions for recruitment records."""

from __future__ import annotations

from .applicant import (
    OUTCOME_STATUS,
    TERMINAL_STATUSES,
    Applicant,
    ApplicantStatus,
    ContactInfo,
    Decision,
    DecisionOutcome,
    Demographics,
)
from .grading import (
    InterviewAssignment,
    InterviewNote,
    InterviewScore,
    QuestionType,
    Rubric,
    WrittenGrade,
)
from .ids import ApplicantId, AssignmentId, GradeId, GraderId

__all__ = [
    "Applicant",
    "ApplicantId",
    "ApplicantStatus",
    "AssignmentId",
    "ContactInfo",
    "Decision",
    "DecisionOutcome",
    "Demographics",
    "GradeId",
    "GraderId",
    "InterviewAssignment",
    "InterviewNote",
    "InterviewScore",
    "OUTCOME_STATUS",
    "QuestionType",
    "Rubric",
    "TERMINAL_STATUSES",
    "WrittenGrade",
]
