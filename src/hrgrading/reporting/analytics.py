"""Cycle-level summary figures for the admin dashboard."""

from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable

import structlog

from ..core.scoring import mean_or_none, round_score
from ..schemas import Applicant
from ..store import RecordStore

MAX_CATEGORIES = 8
SCORE_BUCKETS = 5


@dataclass(slots=True)
class Bucket:
    name: str
    count: int


@dataclass(slots=True)
class YesNo:
    yes: int = 0
    no: int = 0


@dataclass(slots=True)
class GradingProgress:
    completed: int = 0
    total: int = 0
    fraction: float | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.fraction = self.completed / self.total if self.total else None


@dataclass(slots=True)
class CycleSummary:
    total_applicants: int
    avg_score: float | None
    status_breakdown: list[Bucket] = field(default_factory=list)
    gender_breakdown: list[Bucket] = field(default_factory=list)
    major_breakdown: list[Bucket] = field(default_factory=list)
    graduation_year_breakdown: list[Bucket] = field(default_factory=list)
    spanish_fluent: YesNo = field(default_factory=YesNo)
    can_attend_camp: YesNo = field(default_factory=YesNo)
    score_distribution: list[Bucket] = field(default_factory=list)
    written_progress: GradingProgress = field(default_factory=GradingProgress)
    interview_progress: GradingProgress = field(default_factory=GradingProgress)


def group_values(values: Iterable[Any], *, limit: int = MAX_CATEGORIES) -> list[Bucket]:
    """Count values, most common first, folding the tail into ``Other``."""
    counts: Counter[str] = Counter()
    for raw in values:
        text = "" if raw is None else str(raw).strip()
        counts[text or "Not specified"] += 1
    ranked = counts.most_common()
    if len(ranked) <= limit:
        return [Bucket(name, count) for name, count in ranked]
    head = ranked[: limit - 1]
    other = sum(count for _, count in ranked[limit - 1 :])
    return [Bucket(name, count) for name, count in head] + [Bucket("Other", other)]


def yes_no(flags: Iterable[bool]) -> YesNo:
    result = YesNo()
    for flag in flags:
        if flag:
            result.yes += 1
        else:
            result.no += 1
    return result


class CycleAnalytics:
    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._logger = structlog.get_logger(__name__)

    def summarize(self, cycle: str) -> CycleSummary:
        applicants = self._store.list_applicants(cycle)
        if not applicants:
            return CycleSummary(total_applicants=0, avg_score=None)

        scores = [a.total_score for a in applicants if a.total_score is not None]
        buckets = [0] * SCORE_BUCKETS
        for score in scores:
            buckets[min(math.floor(score), SCORE_BUCKETS - 1)] += 1

        status_counts = Counter(a.status for a in applicants)
        demographics = [a.demographics for a in applicants]
        summary = CycleSummary(
            total_applicants=len(applicants),
            avg_score=round_score(mean_or_none(scores)),
            status_breakdown=[Bucket(name, count) for name, count in status_counts.items()],
            gender_breakdown=group_values(d.gender for d in demographics),
            major_breakdown=group_values(d.major for d in demographics),
            graduation_year_breakdown=group_values(d.graduation_year for d in demographics),
            spanish_fluent=yes_no(d.spanish_fluent for d in demographics),
            can_attend_camp=yes_no(d.can_attend_camp for d in demographics),
            score_distribution=[
                Bucket(f"{i}-{i + 1}", count) for i, count in enumerate(buckets)
            ],
            written_progress=self._written_progress(applicants),
            interview_progress=self._interview_progress(applicants),
        )
        self._logger.info(
            "analytics.summarized",
            cycle=cycle,
            applicants=summary.total_applicants,
            written_completed=summary.written_progress.completed,
            interview_completed=summary.interview_progress.completed,
        )
        return summary

    def _written_progress(self, applicants: list[Applicant]) -> GradingProgress:
        grades = self._store.list_written_grades([a.applicant_id for a in applicants])
        return GradingProgress(
            completed=sum(1 for g in grades if g.score is not None),
            total=len(grades),
        )

    def _interview_progress(self, applicants: list[Applicant]) -> GradingProgress:
        assignments = self._store.list_interview_assignments([a.applicant_id for a in applicants])
        if not assignments:
            return GradingProgress()
        ids = [a.assignment_id for a in assignments]
        graded = {s.assignment_id for s in self._store.list_interview_scores(ids) if s.score is not None}
        graded.update(
            n.assignment_id for n in self._store.list_interview_notes(ids) if (n.notes or "").strip()
        )
        return GradingProgress(completed=len(graded & set(ids)), total=len(ids))
