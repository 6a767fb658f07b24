"""Record store protocol and failure type."""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence, runtime_checkable

from ..schemas import (
    Applicant,
    ApplicantId,
    ApplicantStatus,
    AssignmentId,
    Decision,
    DecisionOutcome,
    GradeId,
    GraderId,
    InterviewAssignment,
    InterviewNote,
    InterviewScore,
    QuestionType,
    Rubric,
    WrittenGrade,
)


class RecordStoreError(RuntimeError):
    """Raised by a record store when a read or write fails."""


@runtime_checkable
class RecordStore(Protocol):
    """Narrow read/write interface to the recruitment records.

    Implementations own identifier generation and timestamps. Every method
    raises :class:`RecordStoreError` on failure; none of them retries.
    """

    def list_applicants(self, cycle: str) -> list[Applicant]:
        """Return the cycle's applicants ordered by anonymous id."""

    def get_applicant(self, applicant_id: ApplicantId) -> Applicant | None:
        """Return one applicant or None."""

    def list_written_grades(self, applicant_ids: Iterable[ApplicantId]) -> list[WrittenGrade]:
        """Return every written slot of the given applicants."""

    def get_written_grade(self, grade_id: GradeId) -> WrittenGrade | None:
        """Return one written slot or None."""

    def bulk_insert_written_grades(self, rows: Sequence[WrittenGrade]) -> list[WrittenGrade]:
        """Insert written slots, returning them with identifiers."""

    def update_written_score(self, grade_id: GradeId, score: int | None) -> None:
        """Set the score of one written slot."""

    def delete_ungraded_written_grades(self, applicant_id: ApplicantId) -> int:
        """Delete the applicant's unscored written slots and return the count."""

    def list_interview_assignments(
        self, applicant_ids: Iterable[ApplicantId]
    ) -> list[InterviewAssignment]:
        """Return interview assignments of the given applicants."""

    def get_interview_assignment(self, assignment_id: AssignmentId) -> InterviewAssignment | None:
        """Return one interview assignment or None."""

    def insert_interview_assignments(
        self, rows: Sequence[InterviewAssignment]
    ) -> list[InterviewAssignment]:
        """Insert interview assignments, returning them with identifiers."""

    def delete_assignments(
        self,
        applicant_id: ApplicantId,
        round: int,
        assignment_ids: Iterable[AssignmentId],
    ) -> int:
        """Delete the listed assignments of one applicant and round."""

    def list_interview_scores(self, assignment_ids: Iterable[AssignmentId]) -> list[InterviewScore]:
        """Return sub-section scores of the given assignments."""

    def upsert_interview_score(
        self, assignment_id: AssignmentId, sub_section: int, score: int | None
    ) -> InterviewScore:
        """Insert or replace the score of one assignment sub-section."""

    def list_interview_notes(self, assignment_ids: Iterable[AssignmentId]) -> list[InterviewNote]:
        """Return question notes of the given assignments."""

    def upsert_interview_note(
        self, assignment_id: AssignmentId, question_number: int, notes: str | None
    ) -> InterviewNote:
        """Insert or replace the notes of one assignment question."""

    def update_applicant_score(self, applicant_id: ApplicantId, score: float | None) -> None:
        """Persist an applicant's total score."""

    def update_applicant_status(self, applicant_id: ApplicantId, status: ApplicantStatus) -> None:
        """Persist an applicant's status."""

    def bulk_update_applicant_status(
        self, applicant_ids: Sequence[ApplicantId], status: ApplicantStatus
    ) -> int:
        """Persist one status for many applicants."""

    def upsert_decision(
        self, applicant_id: ApplicantId, outcome: DecisionOutcome, actor_id: GraderId
    ) -> Decision:
        """Insert or replace the applicant's current decision atomically."""

    def list_decisions(self, applicant_ids: Iterable[ApplicantId]) -> list[Decision]:
        """Return current decisions of the given applicants."""

    def list_grader_pool(self) -> list[GraderId]:
        """Return grader identifiers in a stable order."""

    def list_rubrics(self, question_type: QuestionType | None = None) -> list[Rubric]:
        """Return rubric reference rows."""

