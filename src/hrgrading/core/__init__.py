"""Core grading engine components."""

from __future__ import annotations

# NOTE: keep imports explicit for export clarity.
from .aggregator import AggregationReport, AggregatorConfig, ApplicantScore, GradeAggregator
from .assignment import (
    GraderOverview,
    GraderQueue,
    InterviewAssignmentConfig,
    InterviewAssignmentScheduler,
    WorkloadTracker,
    WrittenAssignmentConfig,
    WrittenAssignmentScheduler,
)
from .batch import BatchResult, WriteBatch
from .categorizer import CategorizationReport, Categorizer, CategorizerConfig, TierPlan
from .decisions import DecisionRecorder, DecisionResult
from .grading import GradeEntry, GradeEntryConfig
from .scoring import combine_total, mean_or_none, round_score

__all__ = [
    "AggregationReport",
    "AggregatorConfig",
    "ApplicantScore",
    "BatchResult",
    "CategorizationReport",
    "Categorizer",
    "CategorizerConfig",
    "DecisionRecorder",
    "DecisionResult",
    "GradeAggregator",
    "GradeEntry",
    "GradeEntryConfig",
    "GraderOverview",
    "GraderQueue",
    "InterviewAssignmentConfig",
    "InterviewAssignmentScheduler",
    "TierPlan",
    "WorkloadTracker",
    "WriteBatch",
    "WrittenAssignmentConfig",
    "WrittenAssignmentScheduler",
    "combine_total",
    "mean_or_none",
    "round_score",
]
