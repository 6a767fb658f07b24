"""Written grading assignment: full assignment, gap filling and manual saves."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from functools import partial
from typing import Sequence

import structlog

from ...errors import ConflictError, InputError, NotFoundError
from ...schemas import Applicant, ApplicantId, GraderId, WrittenGrade
from ...store import RecordStore
from ..batch import BatchResult, WriteBatch
from .balancing import WorkloadTracker, validate_selection


@dataclass
class WrittenAssignmentConfig:
    """Shape of the written round."""

    graders_per_applicant: int = 3
    questions_per_applicant: int = 5
    insert_batch_size: int = 500


@dataclass(slots=True)
class WrittenAssignmentReport:
    """Rows created by one scheduling pass."""

    assigned_applicants: int
    inserted_rows: int
    workload: dict[GraderId, int] = field(default_factory=dict)
    batch: BatchResult = field(default_factory=BatchResult)


@dataclass(slots=True)
class WrittenSaveResult:
    applicant_id: ApplicantId
    grader_ids: list[GraderId]
    deleted_rows: int
    inserted_rows: int


@dataclass(slots=True)
class WrittenAssignmentView:
    """Graders attached to one applicant and how much of the work is scored."""

    applicant_id: ApplicantId
    anonymous_id: str
    grader_ids: list[GraderId]
    graded_count: int
    slot_count: int


class WrittenAssignmentScheduler:
    """Assign graders to written responses.

    Every applicant receives ``graders_per_applicant`` distinct graders, each
    owning one slot per question. Scored slots are never deleted or moved.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        config: WrittenAssignmentConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or WrittenAssignmentConfig()
        self._logger = structlog.get_logger(__name__)

    @property
    def config(self) -> WrittenAssignmentConfig:
        return self._config

    def assign_all(self, cycle: str) -> WrittenAssignmentReport:
        """Create every written slot for a cycle that has none yet."""
        applicants = self._require_applicants(cycle)
        pool = self._require_pool()

        existing = self._store.list_written_grades([a.applicant_id for a in applicants])
        if existing:
            raise ConflictError(
                "Written assignments already exist. Clear them before re-assigning."
            )

        tracker = WorkloadTracker(pool)
        rows: list[WrittenGrade] = []
        for applicant in applicants:
            for grader_id in tracker.pick(self._config.graders_per_applicant):
                rows.extend(self._slots(applicant.applicant_id, grader_id))

        return self._insert(rows, pool, operation="assignment.written.full")

    def fill_gaps(self, cycle: str) -> WrittenAssignmentReport:
        """Top up applicants with missing graders or missing question slots."""
        applicants = self._require_applicants(cycle)
        pool = self._require_pool()

        existing = self._store.list_written_grades([a.applicant_id for a in applicants])
        assigned = self._questions_by_grader(existing)
        workload = Counter(
            grader_id for graders in assigned.values() for grader_id in graders
        )

        tracker = WorkloadTracker(pool, workload)
        rows: list[WrittenGrade] = []
        for applicant in applicants:
            current = assigned.get(applicant.applicant_id, {})
            for grader_id, questions in current.items():
                rows.extend(self._slots(applicant.applicant_id, grader_id, skip=questions))
            needed = self._config.graders_per_applicant - len(current)
            for grader_id in tracker.pick(needed, exclude=current.keys()):
                rows.extend(self._slots(applicant.applicant_id, grader_id))

        return self._insert(rows, pool, existing=existing, operation="assignment.written.fill")

    def save_graders(
        self, applicant_id: ApplicantId, grader_ids: Sequence[str | None]
    ) -> WrittenSaveResult:
        """Replace one applicant's graders, keeping every scored slot.

        A grader who already scored this applicant stays selectable after
        leaving the pool.
        """
        existing = self._store.list_written_grades([applicant_id])
        scored = [g for g in existing if g.score is not None]
        selection = validate_selection(
            grader_ids,
            self._config.graders_per_applicant,
            set(self._store.list_grader_pool()) | {g.grader_id for g in scored},
        )
        if self._store.get_applicant(applicant_id) is None:
            raise NotFoundError(f"Applicant {applicant_id!r} not found.")

        locked = sorted({g.grader_id for g in scored} - set(selection))
        if locked:
            raise ConflictError(
                f"Grader(s) {', '.join(locked)} already scored this applicant "
                "and cannot be removed."
            )

        kept = {(g.grader_id, g.question_number) for g in scored}
        rows = [
            row
            for grader_id in selection
            for row in self._slots(applicant_id, grader_id)
            if (row.grader_id, row.question_number) not in kept
        ]

        outcome: dict[str, int] = {"deleted": 0}
        batch = WriteBatch("assignment.written.save")

        def replace() -> None:
            outcome["deleted"] = self._store.delete_ungraded_written_grades(applicant_id)
            if rows:
                self._store.bulk_insert_written_grades(rows)

        batch.attempt(applicant_id, replace)
        result = WrittenSaveResult(
            applicant_id=applicant_id,
            grader_ids=selection,
            deleted_rows=outcome["deleted"],
            inserted_rows=len(rows) if batch.result.ok else 0,
        )
        batch.raise_for_failures(result)
        self._logger.info(
            "assignment.written.saved",
            applicant_id=applicant_id,
            graders=selection,
            deleted=result.deleted_rows,
            inserted=result.inserted_rows,
        )
        return result

    def clear_ungraded(self, cycle: str) -> int:
        """Delete every unscored written slot of the cycle."""
        applicants = self._store.list_applicants(cycle)
        deleted: dict[str, int] = {}
        batch = WriteBatch("assignment.written.clear")
        for applicant in applicants:

            def clear(applicant_id: ApplicantId = applicant.applicant_id) -> None:
                deleted[applicant_id] = self._store.delete_ungraded_written_grades(applicant_id)

            batch.attempt(applicant.applicant_id, clear)

        total = sum(deleted.values())
        batch.raise_for_failures(total)
        self._logger.info("assignment.written.cleared", cycle=cycle, deleted=total)
        return total

    def overview(self, cycle: str) -> list[WrittenAssignmentView]:
        applicants = self._store.list_applicants(cycle)
        if not applicants:
            return []
        existing = self._store.list_written_grades([a.applicant_id for a in applicants])
        assigned = self._questions_by_grader(existing)
        graded = Counter(g.applicant_id for g in existing if g.score is not None)
        slots = Counter(g.applicant_id for g in existing)
        return [
            WrittenAssignmentView(
                applicant_id=a.applicant_id,
                anonymous_id=a.anonymous_id,
                grader_ids=list(assigned.get(a.applicant_id, {})),
                graded_count=graded.get(a.applicant_id, 0),
                slot_count=slots.get(a.applicant_id, 0),
            )
            for a in applicants
        ]

    def _require_applicants(self, cycle: str) -> list[Applicant]:
        applicants = self._store.list_applicants(cycle)
        if not applicants:
            raise InputError(f"No applicants found for cycle {cycle!r}.")
        return applicants

    def _require_pool(self) -> list[GraderId]:
        pool = list(dict.fromkeys(self._store.list_grader_pool()))
        required = self._config.graders_per_applicant
        if len(pool) < required:
            raise InputError(
                f"Need at least {required} graders. Currently have {len(pool)}."
            )
        return pool

    def _slots(
        self,
        applicant_id: ApplicantId,
        grader_id: GraderId,
        *,
        skip: set[int] | frozenset[int] = frozenset(),
    ) -> list[WrittenGrade]:
        return [
            WrittenGrade(
                applicant_id=applicant_id,
                grader_id=grader_id,
                question_number=question,
            )
            for question in range(1, self._config.questions_per_applicant + 1)
            if question not in skip
        ]

    @staticmethod
    def _questions_by_grader(
        rows: list[WrittenGrade],
    ) -> dict[ApplicantId, dict[GraderId, set[int]]]:
        grouped: dict[ApplicantId, dict[GraderId, set[int]]] = {}
        for row in rows:
            graders = grouped.setdefault(row.applicant_id, {})
            graders.setdefault(row.grader_id, set()).add(row.question_number)
        return grouped

    def _insert(
        self,
        rows: list[WrittenGrade],
        pool: list[GraderId],
        *,
        existing: Sequence[WrittenGrade] = (),
        operation: str,
    ) -> WrittenAssignmentReport:
        batch = WriteBatch(operation)
        size = max(1, self._config.insert_batch_size)
        inserted = 0
        held = {(row.applicant_id, row.grader_id) for row in existing}
        for start in range(0, len(rows), size):
            chunk = rows[start : start + size]
            if batch.attempt(
                f"batch {start // size + 1}",
                partial(self._store.bulk_insert_written_grades, chunk),
            ):
                inserted += len(chunk)
                held.update((row.applicant_id, row.grader_id) for row in chunk)

        # workload reflects rows in the store, not picks whose batch failed
        workload = dict.fromkeys(pool, 0)
        for _, grader_id in held:
            if grader_id in workload:
                workload[grader_id] += 1

        report = WrittenAssignmentReport(
            assigned_applicants=len({row.applicant_id for row in rows}),
            inserted_rows=inserted,
            workload=workload,
            batch=batch.result,
        )
        self._logger.info(
            operation,
            applicants=report.assigned_applicants,
            inserted=report.inserted_rows,
            failed_batches=batch.result.failed_count,
        )
        batch.raise_for_failures(report)
        return report
