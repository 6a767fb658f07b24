"""Flat export rows recomputed from raw grade records."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Collection

import structlog

from ..core.scoring import combine_total, mean_or_none, round_score
from ..schemas import Applicant, ApplicantId, Decision, DecisionOutcome
from ..store import RecordStore


@dataclass
class ExportConfig:
    """Column layout of the export."""

    written_questions: int = 5
    interview_rounds: tuple[int, ...] = (1, 2)
    sub_sections: tuple[int, ...] = (1, 2)

    def __post_init__(self) -> None:
        self.interview_rounds = tuple(self.interview_rounds)
        self.sub_sections = tuple(self.sub_sections)


@dataclass(slots=True)
class ExportRow:
    """One applicant, every figure rounded to two decimals."""

    anonymous_id: str
    first_name: str
    last_name: str
    pronouns: str
    email: str
    phone_number: str
    major: str
    graduation_year: int | None
    gender: str
    spanish_fluent: bool
    can_attend_camp: bool
    written_question_avgs: list[float | None]
    written_avg: float | None
    interview_round_avgs: dict[int, float | None]
    interview_sub_section_avgs: dict[tuple[int, int], float | None]
    interview_avg: float | None
    total_score: float | None
    status: str
    decision: DecisionOutcome | None = None

    def to_record(self) -> dict[str, Any]:
        """Flatten into the column order expected by CSV/JSON formatters."""
        record: dict[str, Any] = {
            "anonymous_id": self.anonymous_id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "pronouns": self.pronouns,
            "email": self.email,
            "phone_number": self.phone_number,
            "major": self.major,
            "graduation_year": self.graduation_year,
            "gender": self.gender,
            "spanish_fluent": self.spanish_fluent,
            "can_attend_camp": self.can_attend_camp,
        }
        for index, value in enumerate(self.written_question_avgs, start=1):
            record[f"written_q{index}_avg"] = value
        record["written_avg"] = self.written_avg
        for round_number, value in self.interview_round_avgs.items():
            record[f"interview_r{round_number}_avg"] = value
            for (r, sub_section), sub_value in self.interview_sub_section_avgs.items():
                if r == round_number:
                    record[f"interview_r{r}_s{sub_section}_avg"] = sub_value
        record["interview_avg"] = self.interview_avg
        record["total_score"] = self.total_score
        record["status"] = self.status
        record["decision"] = self.decision
        return record


class ExportBuilder:
    """Build export rows from raw grades rather than the cached total score.

    Averages use the same rounding rule as the aggregator so the exported
    total always matches a freshly recalculated ``total_score``.
    """

    def __init__(self, store: RecordStore, *, config: ExportConfig | None = None) -> None:
        self._store = store
        self._config = config or ExportConfig()
        self._logger = structlog.get_logger(__name__)

    def build_rows(self, cycle: str, statuses: Collection[str] | None = None) -> list[ExportRow]:
        applicants = self._store.list_applicants(cycle)
        if statuses:
            applicants = [a for a in applicants if a.status in statuses]
        if not applicants:
            return []

        applicant_ids = [a.applicant_id for a in applicants]
        written: dict[ApplicantId, dict[int, list[int]]] = defaultdict(lambda: defaultdict(list))
        for grade in self._store.list_written_grades(applicant_ids):
            if grade.score is not None:
                written[grade.applicant_id][grade.question_number].append(grade.score)

        assignments = self._store.list_interview_assignments(applicant_ids)
        owner = {a.assignment_id: (a.applicant_id, a.round) for a in assignments}
        interview: dict[ApplicantId, dict[tuple[int, int], list[int]]] = defaultdict(
            lambda: defaultdict(list)
        )
        if assignments:
            for score in self._store.list_interview_scores(list(owner)):
                if score.score is None or score.assignment_id not in owner:
                    continue
                applicant_id, round_number = owner[score.assignment_id]
                interview[applicant_id][(round_number, score.sub_section)].append(score.score)

        decisions = self._latest_decisions(self._store.list_decisions(applicant_ids))

        rows = [
            self._build_row(
                applicant,
                written.get(applicant.applicant_id, {}),
                interview.get(applicant.applicant_id, {}),
                decisions.get(applicant.applicant_id),
            )
            for applicant in applicants
        ]
        self._logger.info("export.rows_built", cycle=cycle, count=len(rows), statuses=statuses)
        return rows

    def _build_row(
        self,
        applicant: Applicant,
        written: dict[int, list[int]],
        interview: dict[tuple[int, int], list[int]],
        decision: Decision | None,
    ) -> ExportRow:
        questions = range(1, self._config.written_questions + 1)
        written_all = [s for q in sorted(written) for s in written[q]]
        written_avg = mean_or_none(written_all)

        round_avgs: dict[int, float | None] = {}
        sub_avgs: dict[tuple[int, int], float | None] = {}
        for round_number in self._config.interview_rounds:
            round_scores: list[int] = []
            for sub_section in self._config.sub_sections:
                values = interview.get((round_number, sub_section), [])
                sub_avgs[(round_number, sub_section)] = round_score(mean_or_none(values))
                round_scores.extend(values)
            round_avgs[round_number] = round_score(mean_or_none(round_scores))
        interview_all = [s for values in interview.values() for s in values]
        interview_avg = mean_or_none(interview_all)

        demographics = applicant.demographics
        return ExportRow(
            anonymous_id=applicant.anonymous_id,
            first_name=applicant.first_name,
            last_name=applicant.last_name,
            pronouns=demographics.pronouns or "",
            email=applicant.contact.email or "",
            phone_number=applicant.contact.phone_number or "",
            major=demographics.major or "",
            graduation_year=demographics.graduation_year,
            gender=demographics.gender or "",
            spanish_fluent=demographics.spanish_fluent,
            can_attend_camp=demographics.can_attend_camp,
            written_question_avgs=[round_score(mean_or_none(written.get(q, []))) for q in questions],
            written_avg=round_score(written_avg),
            interview_round_avgs=round_avgs,
            interview_sub_section_avgs=sub_avgs,
            interview_avg=round_score(interview_avg),
            total_score=combine_total(written_avg, interview_avg),
            status=applicant.status,
            decision=decision.outcome if decision else None,
        )

    @staticmethod
    def _latest_decisions(decisions: list[Decision]) -> dict[ApplicantId, Decision]:
        latest: dict[ApplicantId, Decision] = {}
        for decision in sorted(decisions, key=lambda d: d.decided_at or ""):
            latest[decision.applicant_id] = decision
        return latest
