"""Interview grading assignment per applicant and round."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from functools import partial
from typing import Sequence

import structlog

from ...errors import ConflictError, InputError, NotFoundError
from ...schemas import ApplicantId, AssignmentId, GraderId, InterviewAssignment
from ...store import RecordStore
from ..batch import BatchResult, WriteBatch
from .balancing import WorkloadTracker, validate_selection


@dataclass
class InterviewAssignmentConfig:
    """Shape of the interview rounds."""

    graders_per_round: int = 2
    rounds: tuple[int, ...] = (1, 2)
    sub_sections: tuple[int, ...] = (1, 2)
    distinct_across_rounds: bool = False

    def __post_init__(self) -> None:
        self.rounds = tuple(self.rounds)
        self.sub_sections = tuple(self.sub_sections)


@dataclass(slots=True)
class InterviewAssignmentReport:
    assigned_applicants: int
    inserted_rows: int
    workload: dict[GraderId, int] = field(default_factory=dict)
    batch: BatchResult = field(default_factory=BatchResult)


@dataclass(slots=True)
class InterviewSaveResult:
    applicant_id: ApplicantId
    round: int
    grader_ids: list[GraderId]
    deleted_rows: int
    inserted_rows: int


@dataclass(slots=True)
class InterviewAssignmentView:
    applicant_id: ApplicantId
    anonymous_id: str
    rounds: dict[int, list[GraderId]]


class InterviewAssignmentScheduler:
    """Assign interviewers to applicants, ``graders_per_round`` per round.

    An assignment counts as graded once it holds a score or a note; graded
    assignments are never deleted.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        config: InterviewAssignmentConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or InterviewAssignmentConfig()
        self._logger = structlog.get_logger(__name__)

    @property
    def config(self) -> InterviewAssignmentConfig:
        return self._config

    def fill_gaps(self, cycle: str) -> InterviewAssignmentReport:
        """Add interviewers wherever a round has fewer than required."""
        applicants = self._store.list_applicants(cycle)
        if not applicants:
            raise InputError(f"No applicants found for cycle {cycle!r}.")
        pool = list(dict.fromkeys(self._store.list_grader_pool()))
        required = self._config.graders_per_round
        if len(pool) < required:
            raise InputError(
                f"Need at least {required} graders. Currently have {len(pool)}."
            )

        existing = self._store.list_interview_assignments([a.applicant_id for a in applicants])
        by_round = self._graders_by_round(existing)
        tracker = WorkloadTracker(pool, Counter(a.grader_id for a in existing))

        batch = WriteBatch("assignment.interview.fill")
        touched: set[ApplicantId] = set()
        inserted = 0
        for applicant in applicants:
            rounds = by_round.setdefault(applicant.applicant_id, {})
            for round_number in self._config.rounds:
                current = rounds.setdefault(round_number, [])
                needed = required - len(set(current))
                if needed <= 0:
                    continue
                exclude = set(current)
                if self._config.distinct_across_rounds:
                    others = {
                        g for r, graders in rounds.items() if r != round_number for g in graders
                    }
                    if len(tracker.available(exclude | others)) >= needed:
                        exclude |= others
                picked = tracker.pick(needed, exclude=exclude)
                rows = [
                    InterviewAssignment(
                        applicant_id=applicant.applicant_id,
                        grader_id=grader_id,
                        round=round_number,
                    )
                    for grader_id in picked
                ]
                key = f"{applicant.applicant_id}/round {round_number}"
                if batch.attempt(key, partial(self._store.insert_interview_assignments, rows)):
                    inserted += len(rows)
                    touched.add(applicant.applicant_id)
                    current.extend(picked)
                else:
                    tracker.release(picked)

        report = InterviewAssignmentReport(
            assigned_applicants=len(touched),
            inserted_rows=inserted,
            workload=tracker.snapshot(),
            batch=batch.result,
        )
        self._logger.info(
            "assignment.interview.fill",
            cycle=cycle,
            applicants=report.assigned_applicants,
            inserted=report.inserted_rows,
            failed=batch.result.failed_count,
        )
        batch.raise_for_failures(report)
        return report

    def save_graders(
        self,
        applicant_id: ApplicantId,
        round_number: int,
        grader_ids: Sequence[str | None],
    ) -> InterviewSaveResult:
        """Replace the interviewers of one applicant and round."""
        if round_number not in self._config.rounds:
            raise InputError(
                f"Round must be one of {list(self._config.rounds)}, got {round_number}."
            )
        current = [
            a
            for a in self._store.list_interview_assignments([applicant_id])
            if a.round == round_number
        ]
        graded = self.graded_assignment_ids([a.assignment_id for a in current])
        selection = validate_selection(
            grader_ids,
            self._config.graders_per_round,
            set(self._store.list_grader_pool())
            | {a.grader_id for a in current if a.assignment_id in graded},
        )
        if self._store.get_applicant(applicant_id) is None:
            raise NotFoundError(f"Applicant {applicant_id!r} not found.")

        locked = sorted(
            {a.grader_id for a in current if a.assignment_id in graded} - set(selection)
        )
        if locked:
            raise ConflictError(
                f"Grader(s) {', '.join(locked)} already graded round {round_number} "
                "for this applicant and cannot be removed."
            )

        keep: dict[GraderId, AssignmentId] = {}
        doomed: list[AssignmentId] = []
        # graded rows first so a duplicated grader keeps the row holding work
        for assignment in sorted(current, key=lambda a: a.assignment_id not in graded):
            if assignment.grader_id in selection and assignment.grader_id not in keep:
                keep[assignment.grader_id] = assignment.assignment_id
            else:
                doomed.append(assignment.assignment_id)
        rows = [
            InterviewAssignment(applicant_id=applicant_id, grader_id=g, round=round_number)
            for g in selection
            if g not in keep
        ]

        outcome: dict[str, int] = {"deleted": 0}
        batch = WriteBatch("assignment.interview.save")

        def replace() -> None:
            if doomed:
                outcome["deleted"] = self._store.delete_assignments(
                    applicant_id, round_number, doomed
                )
            if rows:
                self._store.insert_interview_assignments(rows)

        batch.attempt(applicant_id, replace)
        result = InterviewSaveResult(
            applicant_id=applicant_id,
            round=round_number,
            grader_ids=selection,
            deleted_rows=outcome["deleted"],
            inserted_rows=len(rows) if batch.result.ok else 0,
        )
        batch.raise_for_failures(result)
        self._logger.info(
            "assignment.interview.saved",
            applicant_id=applicant_id,
            round=round_number,
            graders=selection,
            deleted=result.deleted_rows,
            inserted=result.inserted_rows,
        )
        return result

    def graded_assignment_ids(self, assignment_ids: list[AssignmentId]) -> set[AssignmentId]:
        """Assignments holding at least one score or non-empty note."""
        if not assignment_ids:
            return set()
        graded = {
            s.assignment_id
            for s in self._store.list_interview_scores(assignment_ids)
            if s.score is not None
        }
        graded.update(
            n.assignment_id
            for n in self._store.list_interview_notes(assignment_ids)
            if n.notes and n.notes.strip()
        )
        return graded

    def overview(self, cycle: str) -> list[InterviewAssignmentView]:
        applicants = self._store.list_applicants(cycle)
        if not applicants:
            return []
        existing = self._store.list_interview_assignments([a.applicant_id for a in applicants])
        by_round = self._graders_by_round(existing)
        views = []
        for applicant in applicants:
            rounds = by_round.get(applicant.applicant_id, {})
            views.append(
                InterviewAssignmentView(
                    applicant_id=applicant.applicant_id,
                    anonymous_id=applicant.anonymous_id,
                    rounds={r: list(rounds.get(r, [])) for r in self._config.rounds},
                )
            )
        return views

    @staticmethod
    def _graders_by_round(
        rows: list[InterviewAssignment],
    ) -> dict[ApplicantId, dict[int, list[GraderId]]]:
        grouped: dict[ApplicantId, dict[int, list[GraderId]]] = {}
        for row in rows:
            rounds = grouped.setdefault(row.applicant_id, {})
            rounds.setdefault(row.round, []).append(row.grader_id)
        return grouped
