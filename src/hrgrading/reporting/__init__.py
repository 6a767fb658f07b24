"""Read-side builders: export rows, deliberation views, analytics and backups."""

from __future__ import annotations

from .analytics import Bucket, CycleAnalytics, CycleSummary, GradingProgress, YesNo, group_values
from .backup import BackupBuilder, CycleBackup
from .deliberation import (
    DeliberationBoard,
    DeliberationDetail,
    DeliberationEntry,
    InterviewRoundDetail,
    WrittenQuestionDetail,
)
from .export import ExportBuilder, ExportConfig, ExportRow

__all__ = [
    "BackupBuilder",
    "Bucket",
    "CycleAnalytics",
    "CycleBackup",
    "CycleSummary",
    "DeliberationBoard",
    "DeliberationDetail",
    "DeliberationEntry",
    "ExportBuilder",
    "ExportConfig",
    "ExportRow",
    "GradingProgress",
    "InterviewRoundDetail",
    "WrittenQuestionDetail",
    "YesNo",
    "group_values",
]
