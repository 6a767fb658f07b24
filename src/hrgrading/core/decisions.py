"""Deliberation decision recording."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from ..errors import InputError, NotFoundError, PartialWriteError
from ..schemas import OUTCOME_STATUS, ApplicantId, ApplicantStatus, Decision, GraderId
from ..store import RecordStore, RecordStoreError


@dataclass(slots=True)
class DecisionResult:
    decision: Decision
    updated_status: ApplicantStatus


class DecisionRecorder:
    """Record the current accept/reject decision for an applicant.

    The decision row is written with one atomic upsert keyed by applicant, so
    re-deciding replaces the previous outcome. The applicant's status follows
    the decision into the terminal set.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store
        self._logger = structlog.get_logger(__name__)

    def record(self, applicant_id: ApplicantId, outcome: str, actor_id: GraderId) -> DecisionResult:
        status = OUTCOME_STATUS.get(outcome)
        if status is None:
            raise InputError(f"Decision must be 'accept' or 'reject', got {outcome!r}.")
        if not actor_id:
            raise InputError("A deciding administrator is required.")
        if self._store.get_applicant(applicant_id) is None:
            raise NotFoundError(f"Applicant {applicant_id!r} not found.")

        decision = self._store.upsert_decision(applicant_id, outcome, actor_id)  # type: ignore[arg-type]
        try:
            self._store.update_applicant_status(applicant_id, status)
        except RecordStoreError as exc:
            raise PartialWriteError(
                str(exc),
                failures={applicant_id: str(exc)},
                partial=decision,
            ) from exc

        self._logger.info(
            "decision.recorded",
            applicant_id=applicant_id,
            outcome=outcome,
            decided_by=actor_id,
            status=status,
        )
        return DecisionResult(decision=decision, updated_status=status)
