"""Greedy least-loaded grader selection."""

from __future__ import annotations

from typing import Collection, Mapping, Sequence

from ...errors import ConflictError, InputError
from ...schemas import GraderId


class WorkloadTracker:
    """Run-local workload counters over a fixed grader pool.

    Counters live only as long as the tracker; nothing is shared between runs
    or kept at module level. Ties on workload fall back to pool order, which
    keeps assignment deterministic for a given input.
    """

    def __init__(
        self,
        pool: Sequence[GraderId],
        initial: Mapping[GraderId, int] | None = None,
    ) -> None:
        self._order = {grader_id: index for index, grader_id in enumerate(dict.fromkeys(pool))}
        self._load: dict[GraderId, int] = {grader_id: 0 for grader_id in self._order}
        for grader_id, count in (initial or {}).items():
            if grader_id in self._load:
                self._load[grader_id] = count

    @property
    def pool_size(self) -> int:
        return len(self._order)

    def available(self, exclude: Collection[GraderId] = ()) -> list[GraderId]:
        """Pool members outside ``exclude``, least loaded first."""
        candidates = [g for g in self._order if g not in exclude]
        return sorted(candidates, key=lambda g: (self._load[g], self._order[g]))

    def pick(self, count: int, *, exclude: Collection[GraderId] = ()) -> list[GraderId]:
        """Select ``count`` least-loaded graders and charge them one unit each.

        Returns fewer than ``count`` graders only when the pool minus
        ``exclude`` is too small.
        """
        if count <= 0:
            return []
        chosen = self.available(exclude)[:count]
        for grader_id in chosen:
            self._load[grader_id] += 1
        return chosen

    def release(self, grader_ids: Collection[GraderId]) -> None:
        """Undo one unit of load per grader, for picks whose write failed."""
        for grader_id in grader_ids:
            if self._load.get(grader_id, 0) > 0:
                self._load[grader_id] -= 1

    def snapshot(self) -> dict[GraderId, int]:
        return dict(self._load)

    def spread(self) -> int:
        """Maximum minus minimum workload across the pool."""
        if not self._load:
            return 0
        return max(self._load.values()) - min(self._load.values())


def validate_selection(
    grader_ids: Sequence[str | None],
    required: int,
    pool: Collection[GraderId],
) -> list[GraderId]:
    """Check a manual grader selection before anything is written.

    Raises :class:`InputError` for a missing, blank or unknown grader and
    :class:`ConflictError` when the same grader is selected twice.
    """
    cleaned = [(g or "").strip() for g in grader_ids]
    if len(cleaned) != required or not all(cleaned):
        raise InputError(f"All {required} graders must be selected.")
    if len(set(cleaned)) != len(cleaned):
        raise ConflictError(f"Must select {required} different graders.")
    unknown = [g for g in cleaned if g not in pool]
    if unknown:
        raise InputError(f"Unknown grader(s): {', '.join(unknown)}.")
    return [GraderId(g) for g in cleaned]
