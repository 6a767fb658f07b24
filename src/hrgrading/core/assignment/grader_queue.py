"""Per-grader view of written and interview work."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

import structlog

from ...errors import NotFoundError
from ...schemas import ApplicantId, AssignmentId, GraderId
from ...store import RecordStore


@dataclass(slots=True)
class WrittenQueueItem:
    applicant_id: ApplicantId
    anonymous_id: str
    scored_count: int
    slot_count: int
    complete: bool


@dataclass(slots=True)
class InterviewQueueItem:
    assignment_id: AssignmentId
    applicant_id: ApplicantId
    anonymous_id: str
    round: int
    scored_sub_sections: list[int]
    note_count: int
    graded: bool


@dataclass(slots=True)
class GraderOverview:
    """Everything one grader owns in a cycle, with completion counts."""

    grader_id: GraderId
    cycle: str
    in_pool: bool
    written: list[WrittenQueueItem] = field(default_factory=list)
    interviews: list[InterviewQueueItem] = field(default_factory=list)
    written_scored: int = 0
    written_slots: int = 0
    interviews_graded: int = 0


class GraderQueue:
    """Build a grader's assignment list for a cycle.

    Written work is grouped per applicant with scored and total slot counts.
    Interview work is listed per assignment; an assignment counts as graded
    once it holds a score or a non-blank note.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._logger = structlog.get_logger(__name__)

    def grader_overview(self, cycle: str, grader_id: GraderId) -> GraderOverview:
        in_pool = grader_id in set(self._store.list_grader_pool())
        applicants = {a.applicant_id: a for a in self._store.list_applicants(cycle)}
        applicant_ids = list(applicants)

        grades = [
            g for g in self._store.list_written_grades(applicant_ids) if g.grader_id == grader_id
        ]
        assignments = [
            a
            for a in self._store.list_interview_assignments(applicant_ids)
            if a.grader_id == grader_id
        ]
        if not in_pool and not grades and not assignments:
            raise NotFoundError(f"Grader {grader_id!r} not found.")

        scored: dict[ApplicantId, int] = defaultdict(int)
        slots: dict[ApplicantId, int] = defaultdict(int)
        for grade in grades:
            slots[grade.applicant_id] += 1
            if grade.score is not None:
                scored[grade.applicant_id] += 1
        written = sorted(
            (
                WrittenQueueItem(
                    applicant_id=applicant_id,
                    anonymous_id=applicants[applicant_id].anonymous_id,
                    scored_count=scored[applicant_id],
                    slot_count=count,
                    complete=scored[applicant_id] == count,
                )
                for applicant_id, count in slots.items()
            ),
            key=lambda item: item.anonymous_id,
        )

        ids = [a.assignment_id for a in assignments]
        sub_scores: dict[AssignmentId, list[int]] = defaultdict(list)
        notes: dict[AssignmentId, int] = defaultdict(int)
        if ids:
            for row in self._store.list_interview_scores(ids):
                if row.score is not None:
                    sub_scores[row.assignment_id].append(row.sub_section)
            for row in self._store.list_interview_notes(ids):
                if (row.notes or "").strip():
                    notes[row.assignment_id] += 1
        interviews = sorted(
            (
                InterviewQueueItem(
                    assignment_id=a.assignment_id,
                    applicant_id=a.applicant_id,
                    anonymous_id=applicants[a.applicant_id].anonymous_id,
                    round=a.round,
                    scored_sub_sections=sorted(sub_scores[a.assignment_id]),
                    note_count=notes[a.assignment_id],
                    graded=bool(sub_scores[a.assignment_id] or notes[a.assignment_id]),
                )
                for a in assignments
            ),
            key=lambda item: (item.anonymous_id, item.round),
        )

        overview = GraderOverview(
            grader_id=grader_id,
            cycle=cycle,
            in_pool=in_pool,
            written=written,
            interviews=interviews,
            written_scored=sum(item.scored_count for item in written),
            written_slots=sum(item.slot_count for item in written),
            interviews_graded=sum(1 for item in interviews if item.graded),
        )
        self._logger.info(
            "assignment.grader_overview",
            cycle=cycle,
            grader_id=grader_id,
            written_applicants=len(written),
            interviews=len(interviews),
        )
        return overview
