"""Caller-facing boundary that turns engine failures into results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Collection, Generic, Sequence, TypeVar

import structlog

from .core import (
    Categorizer,
    DecisionRecorder,
    GradeAggregator,
    GradeEntry,
    GraderQueue,
    InterviewAssignmentScheduler,
    WrittenAssignmentScheduler,
)
from .errors import GradingError, PartialWriteError
from .reporting import BackupBuilder, CycleAnalytics, DeliberationBoard, ExportBuilder
from .schemas import ApplicantId, AssignmentId, GradeId, GraderId
from .store import RecordStoreError

T = TypeVar("T")

UNEXPECTED_ERROR = "An unexpected error occurred."


@dataclass(slots=True)
class ActionResult(Generic[T]):
    """Outcome of one service call; ``error_kind`` mirrors the raised error."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_kind: str | None = None


class GradingService:
    """Run engine operations and never let an exception escape.

    ``GradingError`` keeps its message and kind; a partial write also keeps
    what was committed in ``data``. Store failures report kind ``store``.
    Anything else is logged with its traceback and reported generically.
    """

    def __init__(
        self,
        *,
        aggregator: GradeAggregator,
        categorizer: Categorizer,
        written_scheduler: WrittenAssignmentScheduler,
        interview_scheduler: InterviewAssignmentScheduler,
        grader_queue: GraderQueue,
        decision_recorder: DecisionRecorder,
        grade_entry: GradeEntry,
        export_builder: ExportBuilder,
        deliberation_board: DeliberationBoard,
        analytics: CycleAnalytics,
        backup_builder: BackupBuilder,
    ) -> None:
        self._aggregator = aggregator
        self._categorizer = categorizer
        self._written = written_scheduler
        self._interview = interview_scheduler
        self._grader_queue = grader_queue
        self._decisions = decision_recorder
        self._grade_entry = grade_entry
        self._export = export_builder
        self._deliberation = deliberation_board
        self._analytics = analytics
        self._backup = backup_builder
        self._logger = structlog.get_logger(__name__)

    # scoring ---------------------------------------------------------------

    def recalculate_scores(self, cycle: str) -> ActionResult:
        return self._run("recalculate", self._aggregator.recalculate, cycle)

    def categorize(self, cycle: str) -> ActionResult:
        return self._run("categorize", self._categorizer.categorize, cycle)

    # assignment ------------------------------------------------------------

    def assign_written(self, cycle: str) -> ActionResult:
        return self._run("assign_written", self._written.assign_all, cycle)

    def fill_written(self, cycle: str) -> ActionResult:
        return self._run("fill_written", self._written.fill_gaps, cycle)

    def clear_written(self, cycle: str) -> ActionResult:
        return self._run("clear_written", self._written.clear_ungraded, cycle)

    def set_written_graders(
        self, applicant_id: ApplicantId, grader_ids: Sequence[str | None]
    ) -> ActionResult:
        return self._run("set_written_graders", self._written.save_graders, applicant_id, grader_ids)

    def written_overview(self, cycle: str) -> ActionResult:
        return self._run("written_overview", self._written.overview, cycle)

    def fill_interview(self, cycle: str) -> ActionResult:
        return self._run("fill_interview", self._interview.fill_gaps, cycle)

    def set_interviewers(
        self, applicant_id: ApplicantId, round_number: int, grader_ids: Sequence[str | None]
    ) -> ActionResult:
        return self._run(
            "set_interviewers", self._interview.save_graders, applicant_id, round_number, grader_ids
        )

    def interview_overview(self, cycle: str) -> ActionResult:
        return self._run("interview_overview", self._interview.overview, cycle)

    def grader_overview(self, cycle: str, grader_id: GraderId) -> ActionResult:
        return self._run("grader_overview", self._grader_queue.grader_overview, cycle, grader_id)

    # grade entry -----------------------------------------------------------

    def record_written_score(self, grade_id: GradeId, grader_id: GraderId, score: int) -> ActionResult:
        return self._run(
            "record_written_score", self._grade_entry.record_written_score, grade_id, grader_id, score
        )

    def record_interview_score(
        self, assignment_id: AssignmentId, grader_id: GraderId, sub_section: int, score: int
    ) -> ActionResult:
        return self._run(
            "record_interview_score",
            self._grade_entry.record_interview_score,
            assignment_id,
            grader_id,
            sub_section,
            score,
        )

    def record_interview_note(
        self, assignment_id: AssignmentId, grader_id: GraderId, question_number: int, notes: str | None
    ) -> ActionResult:
        return self._run(
            "record_interview_note",
            self._grade_entry.record_interview_note,
            assignment_id,
            grader_id,
            question_number,
            notes,
        )

    def submit_written(self, applicant_id: ApplicantId, grader_id: GraderId) -> ActionResult:
        return self._run(
            "submit_written", self._grade_entry.check_written_submission, applicant_id, grader_id
        )

    def submit_interview(self, assignment_id: AssignmentId, grader_id: GraderId) -> ActionResult:
        return self._run(
            "submit_interview", self._grade_entry.check_interview_submission, assignment_id, grader_id
        )

    # deliberation ----------------------------------------------------------

    def record_decision(self, applicant_id: ApplicantId, outcome: str, actor_id: GraderId) -> ActionResult:
        return self._run("record_decision", self._decisions.record, applicant_id, outcome, actor_id)

    def deliberation_list(self, cycle: str) -> ActionResult:
        return self._run("deliberation_list", self._deliberation.list_applicants, cycle)

    def deliberation_detail(self, applicant_id: ApplicantId) -> ActionResult:
        return self._run("deliberation_detail", self._deliberation.detail, applicant_id)

    # reporting -------------------------------------------------------------

    def export_rows(self, cycle: str, statuses: Collection[str] | None = None) -> ActionResult:
        return self._run("export", self._export.build_rows, cycle, statuses)

    def analytics(self, cycle: str) -> ActionResult:
        return self._run("analytics", self._analytics.summarize, cycle)

    def backup(self, cycle: str) -> ActionResult:
        return self._run("backup", self._backup.build, cycle)

    def _run(self, operation: str, func: Callable[..., Any], *args: Any) -> ActionResult:
        try:
            data = func(*args)
        except PartialWriteError as exc:
            self._logger.warning(
                "service.partial_write",
                operation=operation,
                error=str(exc),
                failures=exc.failures,
            )
            return ActionResult(False, data=exc.partial, error=str(exc), error_kind=exc.kind)
        except GradingError as exc:
            self._logger.info("service.rejected", operation=operation, kind=exc.kind, error=str(exc))
            return ActionResult(False, error=str(exc), error_kind=exc.kind)
        except RecordStoreError as exc:
            self._logger.error("service.store_failed", operation=operation, error=str(exc))
            return ActionResult(False, error=str(exc), error_kind="store")
        except Exception:  # noqa: BLE001
            self._logger.exception("service.unexpected_error", operation=operation)
            return ActionResult(False, error=UNEXPECTED_ERROR, error_kind="unexpected")
        return ActionResult(True, data=data)
