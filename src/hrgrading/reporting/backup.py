"""Full-record backup of a cycle."""

from __future__ import annotations

import pendulum
import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..schemas import (
    Applicant,
    Decision,
    InterviewAssignment,
    InterviewNote,
    InterviewScore,
    Rubric,
    WrittenGrade,
)
from ..store import RecordStore


class CycleBackup(BaseModel):
    exported_at: str
    cycle: str
    applicants: list[Applicant] = Field(default_factory=list)
    written_grades: list[WrittenGrade] = Field(default_factory=list)
    interview_assignments: list[InterviewAssignment] = Field(default_factory=list)
    interview_scores: list[InterviewScore] = Field(default_factory=list)
    interview_notes: list[InterviewNote] = Field(default_factory=list)
    decisions: list[Decision] = Field(default_factory=list)
    rubrics: list[Rubric] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class BackupBuilder:
    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._logger = structlog.get_logger(__name__)

    def build(self, cycle: str) -> CycleBackup:
        applicants = self._store.list_applicants(cycle)
        applicant_ids = [a.applicant_id for a in applicants]
        assignments = self._store.list_interview_assignments(applicant_ids) if applicant_ids else []
        assignment_ids = [a.assignment_id for a in assignments]

        backup = CycleBackup(
            exported_at=pendulum.now("UTC").to_iso8601_string(),
            cycle=cycle,
            applicants=applicants,
            written_grades=self._store.list_written_grades(applicant_ids) if applicant_ids else [],
            interview_assignments=assignments,
            interview_scores=self._store.list_interview_scores(assignment_ids) if assignment_ids else [],
            interview_notes=self._store.list_interview_notes(assignment_ids) if assignment_ids else [],
            decisions=self._store.list_decisions(applicant_ids) if applicant_ids else [],
            rubrics=self._store.list_rubrics(),
        )
        self._logger.info(
            "backup.built",
            cycle=cycle,
            applicants=len(backup.applicants),
            written_grades=len(backup.written_grades),
            interview_assignments=len(backup.interview_assignments),
        )
        return backup
