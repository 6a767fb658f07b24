"""Grader assignment schedulers."""

from .balancing import WorkloadTracker, validate_selection
from .grader_queue import GraderOverview, GraderQueue, InterviewQueueItem, WrittenQueueItem
from .interview import (
    InterviewAssignmentConfig,
    InterviewAssignmentReport,
    InterviewAssignmentScheduler,
    InterviewAssignmentView,
    InterviewSaveResult,
)
from .written import (
    WrittenAssignmentConfig,
    WrittenAssignmentReport,
    WrittenAssignmentScheduler,
    WrittenAssignmentView,
    WrittenSaveResult,
)

__all__ = [
    "GraderOverview",
    "GraderQueue",
    "InterviewQueueItem",
    "InterviewAssignmentConfig",
    "InterviewAssignmentReport",
    "InterviewAssignmentScheduler",
    "InterviewAssignmentView",
    "InterviewSaveResult",
    "WorkloadTracker",
    "WrittenAssignmentConfig",
    "WrittenAssignmentReport",
    "WrittenAssignmentScheduler",
    "WrittenAssignmentView",
    "WrittenQueueItem",
    "WrittenSaveResult",
    "validate_selection",
]
