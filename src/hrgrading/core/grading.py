"""Grade entry by graders and submission checks."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from ..errors import InputError, NotFoundError
from ..schemas import (
    ApplicantId,
    AssignmentId,
    GradeId,
    GraderId,
    InterviewAssignment,
    InterviewNote,
    InterviewScore,
)
from ..store import RecordStore


@dataclass
class GradeEntryConfig:
    """Score range and interview submission rules."""

    min_score: int = 1
    max_score: int = 5
    sub_sections: tuple[int, ...] = (1, 2)
    min_note_length: int = 50

    def __post_init__(self) -> None:
        self.sub_sections = tuple(self.sub_sections)


class GradeEntry:
    """Write scores and notes on behalf of the grader who owns the slot."""

    def __init__(self, store: RecordStore, *, config: GradeEntryConfig | None = None) -> None:
        self._store = store
        self._config = config or GradeEntryConfig()
        self._logger = structlog.get_logger(__name__)

    def record_written_score(self, grade_id: GradeId, grader_id: GraderId, score: int) -> None:
        self._check_score(score)
        grade = self._store.get_written_grade(grade_id)
        if grade is None:
            raise NotFoundError(f"Grade {grade_id!r} not found.")
        if grade.grader_id != grader_id:
            raise InputError("This grade is assigned to a different grader.")
        self._store.update_written_score(grade_id, score)
        self._logger.info(
            "grading.written_scored",
            grade_id=grade_id,
            applicant_id=grade.applicant_id,
            question=grade.question_number,
        )

    def record_interview_score(
        self,
        assignment_id: AssignmentId,
        grader_id: GraderId,
        sub_section: int,
        score: int,
    ) -> InterviewScore:
        self._check_score(score)
        if sub_section not in self._config.sub_sections:
            raise InputError(
                f"Sub-section must be one of {list(self._config.sub_sections)}, got {sub_section}."
            )
        assignment = self._owned_assignment(assignment_id, grader_id)
        row = self._store.upsert_interview_score(assignment_id, sub_section, score)
        self._logger.info(
            "grading.interview_scored",
            assignment_id=assignment_id,
            applicant_id=assignment.applicant_id,
            sub_section=sub_section,
        )
        return row

    def record_interview_note(
        self,
        assignment_id: AssignmentId,
        grader_id: GraderId,
        question_number: int,
        notes: str | None,
    ) -> InterviewNote:
        if question_number < 1:
            raise InputError("Question number must be at least 1.")
        self._owned_assignment(assignment_id, grader_id)
        return self._store.upsert_interview_note(assignment_id, question_number, notes)

    def check_written_submission(self, applicant_id: ApplicantId, grader_id: GraderId) -> int:
        """Return the number of scored slots once every slot is scored."""
        grades = [
            g for g in self._store.list_written_grades([applicant_id]) if g.grader_id == grader_id
        ]
        if not grades:
            raise NotFoundError("No grades found for this applicant.")
        remaining = sum(1 for g in grades if g.score is None)
        if remaining:
            raise InputError(
                f"Please score all questions before submitting. "
                f"{remaining} question(s) remaining."
            )
        return len(grades)

    def check_interview_submission(self, assignment_id: AssignmentId, grader_id: GraderId) -> None:
        assignment = self._owned_assignment(assignment_id, grader_id)

        scored = {
            s.sub_section
            for s in self._store.list_interview_scores([assignment_id])
            if s.score is not None
        }
        missing = [s for s in self._config.sub_sections if s not in scored]
        if missing:
            raise InputError(
                f"Please score sub-section(s) {', '.join(map(str, missing))} before submitting."
            )

        questions = [
            r.question_number
            for r in self._store.list_rubrics("interview")
            if r.round == assignment.round
        ]
        notes = {
            n.question_number: (n.notes or "").strip()
            for n in self._store.list_interview_notes([assignment_id])
        }
        unnoted = [q for q in questions if q not in notes]
        if unnoted:
            raise InputError(
                f"Please add notes for all {len(questions)} questions before submitting."
            )
        short = [q for q in questions if len(notes[q]) < self._config.min_note_length]
        if short:
            raise InputError(
                f"Notes must be at least {self._config.min_note_length} characters "
                f"for question(s): {', '.join(map(str, short))}"
            )

    def _check_score(self, score: int) -> None:
        low, high = self._config.min_score, self._config.max_score
        if isinstance(score, bool) or not isinstance(score, int) or not low <= score <= high:
            raise InputError(f"Score must be an integer between {low} and {high}.")

    def _owned_assignment(
        self, assignment_id: AssignmentId, grader_id: GraderId
    ) -> InterviewAssignment:
        assignment = self._store.get_interview_assignment(assignment_id)
        if assignment is None:
            raise NotFoundError(f"Assignment {assignment_id!r} not found.")
        if assignment.grader_id != grader_id:
            raise InputError("This assignment belongs to a different grader.")
        return assignment
