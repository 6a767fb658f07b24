"""Dictionary-backed record store."""

from __future__ import annotations

import uuid
from typing import Iterable, Sequence

import pendulum

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
from .base import RecordStoreError


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class InMemoryRecordStore:
    """Record store holding every table in process memory.

    Reads hand out copies so a caller's snapshot is never mutated behind its
    back. Seeding helpers (``add_*``) stand in for intake, which lives outside
    the engine.
    """

    def __init__(self) -> None:
        self._applicants: dict[ApplicantId, Applicant] = {}
        self._graders: list[GraderId] = []
        self._written: dict[GradeId, WrittenGrade] = {}
        self._assignments: dict[AssignmentId, InterviewAssignment] = {}
        self._scores: dict[tuple[AssignmentId, int], InterviewScore] = {}
        self._notes: dict[tuple[AssignmentId, int], InterviewNote] = {}
        self._decisions: dict[ApplicantId, Decision] = {}
        self._rubrics: list[Rubric] = []

    # seeding -----------------------------------------------------------

    def add_applicant(self, applicant: Applicant) -> Applicant:
        if applicant.applicant_id in self._applicants:
            raise RecordStoreError(f"Duplicate applicant id: {applicant.applicant_id!r}")
        self._applicants[applicant.applicant_id] = applicant.model_copy()
        return applicant

    def add_grader(self, grader_id: GraderId) -> None:
        if grader_id not in self._graders:
            self._graders.append(grader_id)

    def add_rubric(self, rubric: Rubric) -> None:
        self._rubrics.append(rubric.model_copy())

    def tables(self) -> dict[str, list]:
        """Return copies of every table, keyed by table name."""
        return {
            "applicants": [a.model_copy() for a in self._applicants.values()],
            "graders": list(self._graders),
            "written_grades": [g.model_copy() for g in self._written.values()],
            "interview_assignments": [a.model_copy() for a in self._assignments.values()],
            "interview_scores": [s.model_copy() for s in self._scores.values()],
            "interview_notes": [n.model_copy() for n in self._notes.values()],
            "decisions": [d.model_copy() for d in self._decisions.values()],
            "rubrics": [r.model_copy() for r in self._rubrics],
        }

    @classmethod
    def from_tables(
        cls,
        *,
        applicants: Iterable[Applicant] = (),
        graders: Iterable[GraderId] = (),
        written_grades: Iterable[WrittenGrade] = (),
        interview_assignments: Iterable[InterviewAssignment] = (),
        interview_scores: Iterable[InterviewScore] = (),
        interview_notes: Iterable[InterviewNote] = (),
        decisions: Iterable[Decision] = (),
        rubrics: Iterable[Rubric] = (),
    ) -> "InMemoryRecordStore":
        store = cls()
        for applicant in applicants:
            store.add_applicant(applicant)
        for grader_id in graders:
            store.add_grader(grader_id)
        for rubric in rubrics:
            store.add_rubric(rubric)
        store.bulk_insert_written_grades(list(written_grades))
        store.insert_interview_assignments(list(interview_assignments))
        for score in interview_scores:
            store.upsert_interview_score(score.assignment_id, score.sub_section, score.score)
        for note in interview_notes:
            store.upsert_interview_note(note.assignment_id, note.question_number, note.notes)
        for decision in decisions:
            store._require_applicant(decision.applicant_id)
            store._decisions[decision.applicant_id] = decision.model_copy()
        return store

    # applicants --------------------------------------------------------

    def list_applicants(self, cycle: str) -> list[Applicant]:
        rows = [a for a in self._applicants.values() if a.cycle == cycle]
        rows.sort(key=lambda a: a.anonymous_id)
        return [row.model_copy() for row in rows]

    def get_applicant(self, applicant_id: ApplicantId) -> Applicant | None:
        applicant = self._applicants.get(applicant_id)
        return applicant.model_copy() if applicant else None

    def update_applicant_score(self, applicant_id: ApplicantId, score: float | None) -> None:
        applicant = self._require_applicant(applicant_id)
        self._applicants[applicant_id] = applicant.model_copy(update={"total_score": score})

    def update_applicant_status(self, applicant_id: ApplicantId, status: ApplicantStatus) -> None:
        applicant = self._require_applicant(applicant_id)
        self._applicants[applicant_id] = applicant.model_copy(update={"status": status})

    def bulk_update_applicant_status(
        self, applicant_ids: Sequence[ApplicantId], status: ApplicantStatus
    ) -> int:
        missing = [aid for aid in applicant_ids if aid not in self._applicants]
        if missing:
            raise RecordStoreError(f"Unknown applicant ids: {missing}")
        for applicant_id in applicant_ids:
            self.update_applicant_status(applicant_id, status)
        return len(applicant_ids)

    # written grades ----------------------------------------------------

    def list_written_grades(self, applicant_ids: Iterable[ApplicantId]) -> list[WrittenGrade]:
        wanted = set(applicant_ids)
        return [g.model_copy() for g in self._written.values() if g.applicant_id in wanted]

    def get_written_grade(self, grade_id: GradeId) -> WrittenGrade | None:
        grade = self._written.get(grade_id)
        return grade.model_copy() if grade else None

    def bulk_insert_written_grades(self, rows: Sequence[WrittenGrade]) -> list[WrittenGrade]:
        inserted: list[WrittenGrade] = []
        for row in rows:
            self._require_applicant(row.applicant_id)
            stored = row.model_copy(update={"grade_id": row.grade_id or GradeId(_new_id("wg"))})
            if stored.grade_id in self._written:
                raise RecordStoreError(f"Duplicate grade id: {stored.grade_id!r}")
            inserted.append(stored)
        for stored in inserted:
            self._written[stored.grade_id] = stored
        return [row.model_copy() for row in inserted]

    def update_written_score(self, grade_id: GradeId, score: int | None) -> None:
        grade = self._written.get(grade_id)
        if grade is None:
            raise RecordStoreError(f"Unknown grade id: {grade_id!r}")
        self._written[grade_id] = grade.model_copy(update={"score": score})

    def delete_ungraded_written_grades(self, applicant_id: ApplicantId) -> int:
        doomed = [
            gid
            for gid, grade in self._written.items()
            if grade.applicant_id == applicant_id and grade.score is None
        ]
        for gid in doomed:
            del self._written[gid]
        return len(doomed)

    # interview assignments ---------------------------------------------

    def list_interview_assignments(
        self, applicant_ids: Iterable[ApplicantId]
    ) -> list[InterviewAssignment]:
        wanted = set(applicant_ids)
        return [a.model_copy() for a in self._assignments.values() if a.applicant_id in wanted]

    def get_interview_assignment(self, assignment_id: AssignmentId) -> InterviewAssignment | None:
        assignment = self._assignments.get(assignment_id)
        return assignment.model_copy() if assignment else None

    def insert_interview_assignments(
        self, rows: Sequence[InterviewAssignment]
    ) -> list[InterviewAssignment]:
        inserted: list[InterviewAssignment] = []
        for row in rows:
            self._require_applicant(row.applicant_id)
            assignment_id = row.assignment_id or AssignmentId(_new_id("ia"))
            if assignment_id in self._assignments:
                raise RecordStoreError(f"Duplicate assignment id: {assignment_id!r}")
            inserted.append(row.model_copy(update={"assignment_id": assignment_id}))
        for stored in inserted:
            self._assignments[stored.assignment_id] = stored
        return [row.model_copy() for row in inserted]

    def delete_assignments(
        self,
        applicant_id: ApplicantId,
        round: int,
        assignment_ids: Iterable[AssignmentId],
    ) -> int:
        deleted = 0
        for assignment_id in list(assignment_ids):
            assignment = self._assignments.get(assignment_id)
            if assignment is None:
                continue
            if assignment.applicant_id != applicant_id or assignment.round != round:
                continue
            del self._assignments[assignment_id]
            for key in [k for k in self._scores if k[0] == assignment_id]:
                del self._scores[key]
            for key in [k for k in self._notes if k[0] == assignment_id]:
                del self._notes[key]
            deleted += 1
        return deleted

    # interview scores and notes ----------------------------------------

    def list_interview_scores(self, assignment_ids: Iterable[AssignmentId]) -> list[InterviewScore]:
        wanted = set(assignment_ids)
        return [s.model_copy() for key, s in self._scores.items() if key[0] in wanted]

    def upsert_interview_score(
        self, assignment_id: AssignmentId, sub_section: int, score: int | None
    ) -> InterviewScore:
        self._require_assignment(assignment_id)
        row = InterviewScore(assignment_id=assignment_id, sub_section=sub_section, score=score)
        self._scores[(assignment_id, sub_section)] = row
        return row.model_copy()

    def list_interview_notes(self, assignment_ids: Iterable[AssignmentId]) -> list[InterviewNote]:
        wanted = set(assignment_ids)
        return [n.model_copy() for key, n in self._notes.items() if key[0] in wanted]

    def upsert_interview_note(
        self, assignment_id: AssignmentId, question_number: int, notes: str | None
    ) -> InterviewNote:
        self._require_assignment(assignment_id)
        row = InterviewNote(
            assignment_id=assignment_id, question_number=question_number, notes=notes
        )
        self._notes[(assignment_id, question_number)] = row
        return row.model_copy()

    # decisions, graders, rubrics ---------------------------------------

    def upsert_decision(
        self, applicant_id: ApplicantId, outcome: DecisionOutcome, actor_id: GraderId
    ) -> Decision:
        self._require_applicant(applicant_id)
        decision = Decision(
            applicant_id=applicant_id,
            outcome=outcome,
            decided_by=actor_id,
            decided_at=pendulum.now("UTC").to_iso8601_string(),
        )
        self._decisions[applicant_id] = decision
        return decision.model_copy()

    def list_decisions(self, applicant_ids: Iterable[ApplicantId]) -> list[Decision]:
        wanted = set(applicant_ids)
        return [d.model_copy() for aid, d in self._decisions.items() if aid in wanted]

    def list_grader_pool(self) -> list[GraderId]:
        return list(self._graders)

    def list_rubrics(self, question_type: QuestionType | None = None) -> list[Rubric]:
        rows = [
            r for r in self._rubrics if question_type is None or r.question_type == question_type
        ]
        rows.sort(key=lambda r: (r.question_type, r.round or 0, r.question_number))
        return [row.model_copy() for row in rows]

    # helpers -----------------------------------------------------------

    def _require_applicant(self, applicant_id: ApplicantId) -> Applicant:
        applicant = self._applicants.get(applicant_id)
        if applicant is None:
            raise RecordStoreError(f"Unknown applicant id: {applicant_id!r}")
        return applicant

    def _require_assignment(self, assignment_id: AssignmentId) -> InterviewAssignment:
        assignment = self._assignments.get(assignment_id)
        if assignment is None:
            raise RecordStoreError(f"Unknown assignment id: {assignment_id!r}")
        return assignment
