"""Applicant-level score aggregation."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from functools import partial

import structlog

from ..errors import InputError
from ..schemas import ApplicantId, InterviewAssignment, InterviewScore, WrittenGrade
from ..store import RecordStore
from .batch import BatchResult, WriteBatch
from .scoring import combine_total, mean_or_none


@dataclass
class AggregatorConfig:
    """Expected slot counts used for the completeness signal."""

    written_graders: int = 3
    written_questions: int = 5
    interview_rounds: int = 2
    interview_sub_sections: int = 2

    @property
    def written_slots_expected(self) -> int:
        return self.written_graders * self.written_questions


@dataclass(slots=True)
class ApplicantScore:
    """Averages computed for one applicant."""

    applicant_id: ApplicantId
    anonymous_id: str
    written_avg: float | None
    interview_avg: float | None
    total_score: float | None
    written_grade_count: int
    interview_grade_count: int
    is_complete: bool


@dataclass(slots=True)
class AggregationReport:
    """Outcome of one recalculation pass."""

    scores: list[ApplicantScore]
    calculated_count: int
    incomplete_count: int
    batch: BatchResult = field(default_factory=BatchResult)


class GradeAggregator:
    """Recompute written, interview and total scores from raw grade records."""

    def __init__(self, store: RecordStore, *, config: AggregatorConfig | None = None) -> None:
        self._store = store
        self._config = config or AggregatorConfig()
        self._logger = structlog.get_logger(__name__)

    def recalculate(self, cycle: str) -> AggregationReport:
        applicants = self._store.list_applicants(cycle)
        if not applicants:
            raise InputError(f"No applicants found for cycle {cycle!r}.")

        applicant_ids = [a.applicant_id for a in applicants]
        written = self._store.list_written_grades(applicant_ids)
        assignments = self._store.list_interview_assignments(applicant_ids)
        interview_scores = (
            self._store.list_interview_scores([a.assignment_id for a in assignments])
            if assignments
            else []
        )

        written_by_applicant = self._group_written(written)
        interview_by_applicant = self._group_interview(assignments, interview_scores)
        assignment_counts: dict[ApplicantId, int] = defaultdict(int)
        for assignment in assignments:
            assignment_counts[assignment.applicant_id] += 1

        batch = WriteBatch("aggregation")
        results: list[ApplicantScore] = []
        incomplete = 0
        for applicant in applicants:
            score = self.score_applicant(
                applicant.applicant_id,
                applicant.anonymous_id,
                written_scores=written_by_applicant.get(applicant.applicant_id, []),
                interview_scores=interview_by_applicant.get(applicant.applicant_id, []),
                assignment_count=assignment_counts.get(applicant.applicant_id, 0),
            )
            results.append(score)
            if not score.is_complete:
                incomplete += 1
            batch.attempt(
                applicant.applicant_id,
                partial(self._store.update_applicant_score, applicant.applicant_id, score.total_score),
            )

        report = AggregationReport(
            scores=results,
            calculated_count=len(results),
            incomplete_count=incomplete,
            batch=batch.result,
        )
        self._logger.info(
            "aggregation.completed",
            cycle=cycle,
            calculated=report.calculated_count,
            incomplete=report.incomplete_count,
            failed=batch.result.failed_count,
        )
        batch.raise_for_failures(report)
        return report

    def score_applicant(
        self,
        applicant_id: ApplicantId,
        anonymous_id: str,
        *,
        written_scores: list[int],
        interview_scores: list[int],
        assignment_count: int,
    ) -> ApplicantScore:
        """Average already-scored values for one applicant."""
        written_avg = mean_or_none(written_scores)
        interview_avg = mean_or_none(interview_scores)
        is_complete = (
            len(written_scores) == self._config.written_slots_expected
            and len(interview_scores) == self.expected_interview_scores(assignment_count)
        )
        return ApplicantScore(
            applicant_id=applicant_id,
            anonymous_id=anonymous_id,
            written_avg=written_avg,
            interview_avg=interview_avg,
            total_score=combine_total(written_avg, interview_avg),
            written_grade_count=len(written_scores),
            interview_grade_count=len(interview_scores),
            is_complete=is_complete,
        )

    def expected_interview_scores(self, assignment_count: int) -> int:
        sub_sections = self._config.interview_sub_sections
        floor = self._config.interview_rounds * sub_sections
        return max(assignment_count * sub_sections, floor)

    @staticmethod
    def _group_written(rows: list[WrittenGrade]) -> dict[ApplicantId, list[int]]:
        grouped: dict[ApplicantId, list[int]] = defaultdict(list)
        for row in rows:
            if row.score is not None:
                grouped[row.applicant_id].append(row.score)
        return grouped

    @staticmethod
    def _group_interview(
        assignments: list[InterviewAssignment],
        scores: list[InterviewScore],
    ) -> dict[ApplicantId, list[int]]:
        owner = {a.assignment_id: a.applicant_id for a in assignments}
        grouped: dict[ApplicantId, list[int]] = defaultdict(list)
        for row in scores:
            applicant_id = owner.get(row.assignment_id)
            if applicant_id is None or row.score is None:
                continue
            grouped[applicant_id].append(row.score)
        return grouped
