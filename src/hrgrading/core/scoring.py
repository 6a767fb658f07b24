"""Averaging and rounding rules shared by aggregation and reporting."""

from __future__ import annotations

import math
from typing import Iterable


def round_score(value: float | None) -> float | None:
    """Round to two decimals, halves away from zero on the scaled value.

    Matches ``round(x * 100) / 100`` as stored in the score column: 3.3333
    becomes 3.33 and 3.125 becomes 3.13. Python's built-in ``round`` would
    round the latter to even.
    """
    if value is None:
        return None
    scaled = math.floor(abs(value) * 100 + 0.5)
    return math.copysign(scaled, value) / 100


def mean_or_none(values: Iterable[float | int | None]) -> float | None:
    """Mean of the non-null values, or None when there are none."""
    present = [float(v) for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def combine_total(written_avg: float | None, interview_avg: float | None) -> float | None:
    """Mean of the available component averages, rounded for storage."""
    return round_score(mean_or_none([written_avg, interview_avg]))


__all__ = ["combine_total", "mean_or_none", "round_score"]
