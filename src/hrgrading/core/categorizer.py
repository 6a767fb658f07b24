"""Percentile-based decision tiers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import structlog

from ..errors import InputError, PartialWriteError
from ..schemas import Applicant, ApplicantId, ApplicantStatus
from ..store import RecordStore, RecordStoreError


@dataclass
class CategorizerConfig:
    """Fractions of the ranked list sent to each automatic tier."""

    accept_fraction: float = 0.25
    reject_fraction: float = 0.25

    def __post_init__(self) -> None:
        for name in ("accept_fraction", "reject_fraction"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")


@dataclass(slots=True)
class TierPlan:
    """Ranked applicant ids per tier, in rank order."""

    auto_accept: list[ApplicantId] = field(default_factory=list)
    discuss: list[ApplicantId] = field(default_factory=list)
    auto_reject: list[ApplicantId] = field(default_factory=list)

    def tiers(self) -> list[tuple[ApplicantStatus, list[ApplicantId]]]:
        return [
            ("auto_accept", self.auto_accept),
            ("discuss", self.discuss),
            ("auto_reject", self.auto_reject),
        ]


@dataclass(slots=True)
class CategorizationReport:
    """Tier counts plus applicants left out of the ranking."""

    auto_accept_count: int
    discuss_count: int
    auto_reject_count: int
    skipped_count: int
    terminal_count: int
    applied_tiers: list[str] = field(default_factory=list)


class Categorizer:
    """Rank scored applicants and move them into automatic tiers.

    Applicants already accepted or rejected are never touched. The ranking is
    a stable sort on the stored total score, so re-running with unchanged
    scores yields the same partition.
    """

    def __init__(self, store: RecordStore, *, config: CategorizerConfig | None = None) -> None:
        self._store = store
        self._config = config or CategorizerConfig()
        self._logger = structlog.get_logger(__name__)

    def categorize(self, cycle: str) -> CategorizationReport:
        applicants = self._store.list_applicants(cycle)
        open_applicants = [a for a in applicants if not a.is_terminal]
        eligible = [a for a in open_applicants if a.total_score is not None]
        skipped = len(open_applicants) - len(eligible)
        terminal = len(applicants) - len(open_applicants)

        if not eligible:
            raise InputError(
                "No applicants with calculated scores to categorize. "
                "Run score recalculation first."
            )

        plan = self.plan(eligible)
        report = CategorizationReport(
            auto_accept_count=len(plan.auto_accept),
            discuss_count=len(plan.discuss),
            auto_reject_count=len(plan.auto_reject),
            skipped_count=skipped,
            terminal_count=terminal,
        )

        for status, applicant_ids in plan.tiers():
            if not applicant_ids:
                continue
            try:
                self._store.bulk_update_applicant_status(applicant_ids, status)
            except RecordStoreError as exc:
                self._logger.error(
                    "categorization.tier_failed",
                    cycle=cycle,
                    tier=status,
                    applied=report.applied_tiers,
                    error=str(exc),
                )
                raise PartialWriteError(
                    str(exc),
                    failures={status: str(exc)},
                    partial=report,
                ) from exc
            report.applied_tiers.append(status)

        self._logger.info(
            "categorization.completed",
            cycle=cycle,
            auto_accept=report.auto_accept_count,
            discuss=report.discuss_count,
            auto_reject=report.auto_reject_count,
            skipped=report.skipped_count,
            terminal=report.terminal_count,
        )
        return report

    def plan(self, eligible: list[Applicant]) -> TierPlan:
        """Split scored, non-terminal applicants into tiers without writing."""
        # sorted() is stable with reverse=True: equal scores keep store order
        ranked = sorted(eligible, key=lambda a: a.total_score, reverse=True)
        ids = [a.applicant_id for a in ranked]
        top, bottom_start = self.band_bounds(len(ids))
        return TierPlan(
            auto_accept=ids[:top],
            discuss=ids[top:bottom_start],
            auto_reject=ids[bottom_start:],
        )

    def band_bounds(self, total: int) -> tuple[int, int]:
        """Return ``(top, bottom_start)`` for ``total`` ranked applicants.

        The accept band wins when the two bands would overlap on a tiny list,
        so no applicant lands in both.
        """
        top = math.ceil(total * self._config.accept_fraction)
        bottom_start = total - math.ceil(total * self._config.reject_fraction)
        return top, max(bottom_start, top)
