"""Dependency injection container for the grading engine."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from dependency_injector import containers, providers

from .core import (
    AggregatorConfig,
    Categorizer,
    CategorizerConfig,
    DecisionRecorder,
    GradeAggregator,
    GradeEntry,
    GradeEntryConfig,
    GraderQueue,
    InterviewAssignmentConfig,
    InterviewAssignmentScheduler,
    WrittenAssignmentConfig,
    WrittenAssignmentScheduler,
)
from .reporting import (
    BackupBuilder,
    CycleAnalytics,
    DeliberationBoard,
    ExportBuilder,
    ExportConfig,
)
from .service import GradingService
from .store import InMemoryRecordStore, RecordStore


class GradingContainer(containers.DeclarativeContainer):
    """Dependency-injector container definition."""

    record_store = providers.Singleton(InMemoryRecordStore)

    aggregator = providers.Singleton(GradeAggregator, store=record_store)
    categorizer = providers.Singleton(Categorizer, store=record_store)
    written_scheduler = providers.Singleton(WrittenAssignmentScheduler, store=record_store)
    interview_scheduler = providers.Singleton(InterviewAssignmentScheduler, store=record_store)
    grader_queue = providers.Singleton(GraderQueue, store=record_store)
    decision_recorder = providers.Singleton(DecisionRecorder, store=record_store)
    grade_entry = providers.Singleton(GradeEntry, store=record_store)

    export_builder = providers.Singleton(ExportBuilder, store=record_store)
    deliberation_board = providers.Singleton(DeliberationBoard, store=record_store)
    analytics = providers.Singleton(CycleAnalytics, store=record_store)
    backup_builder = providers.Singleton(BackupBuilder, store=record_store)

    service = providers.Factory(
        GradingService,
        aggregator=aggregator,
        categorizer=categorizer,
        written_scheduler=written_scheduler,
        interview_scheduler=interview_scheduler,
        grader_queue=grader_queue,
        decision_recorder=decision_recorder,
        grade_entry=grade_entry,
        export_builder=export_builder,
        deliberation_board=deliberation_board,
        analytics=analytics,
        backup_builder=backup_builder,
    )


def create_container(
    *, settings: dict | None = None, store: RecordStore | None = None
) -> GradingContainer:
    """Instantiate container with optional overrides.

    Grader, question, round and sub-section counts are read from the
    ``written`` and ``interview`` sections only. The aggregator, export and
    grade-entry configs are derived from them; an ``aggregator`` or
    ``grading`` value that disagrees raises ``ValueError``.
    """

    container = GradingContainer()

    if store is not None:
        container.record_store.override(providers.Object(store))

    if not settings or not isinstance(settings, dict):
        return container

    written_config = WrittenAssignmentConfig(**settings.get("written", {}))
    interview_config = InterviewAssignmentConfig(**settings.get("interview", {}))

    aggregator_config = AggregatorConfig(
        written_graders=written_config.graders_per_applicant,
        written_questions=written_config.questions_per_applicant,
        interview_rounds=len(interview_config.rounds),
        interview_sub_sections=len(interview_config.sub_sections),
    )
    _check_agrees("aggregator", settings.get("aggregator", {}), asdict(aggregator_config))

    grading_settings = dict(settings.get("grading", {}))
    _check_agrees(
        "grading",
        {k: tuple(v) for k, v in grading_settings.items() if k == "sub_sections"},
        {"sub_sections": interview_config.sub_sections},
    )
    grading_settings["sub_sections"] = interview_config.sub_sections
    grading_config = GradeEntryConfig(**grading_settings)

    export_config = ExportConfig(
        written_questions=written_config.questions_per_applicant,
        interview_rounds=interview_config.rounds,
        sub_sections=interview_config.sub_sections,
    )

    container.aggregator.override(
        providers.Singleton(GradeAggregator, store=container.record_store, config=aggregator_config)
    )
    container.written_scheduler.override(
        providers.Singleton(
            WrittenAssignmentScheduler, store=container.record_store, config=written_config
        )
    )
    container.interview_scheduler.override(
        providers.Singleton(
            InterviewAssignmentScheduler,
            store=container.record_store,
            config=interview_config,
        )
    )
    container.grade_entry.override(
        providers.Singleton(GradeEntry, store=container.record_store, config=grading_config)
    )
    container.export_builder.override(
        providers.Singleton(ExportBuilder, store=container.record_store, config=export_config)
    )

    if "categorizer" in settings:
        categorizer_config = CategorizerConfig(**settings["categorizer"])
        container.categorizer.override(
            providers.Singleton(
                Categorizer, store=container.record_store, config=categorizer_config
            )
        )

    return container


def _check_agrees(section: str, given: dict[str, Any], derived: dict[str, Any]) -> None:
    for key, value in given.items():
        if key not in derived:
            raise ValueError(f"Unknown {section} setting {key!r}.")
        if value != derived[key]:
            raise ValueError(
                f"{section}.{key} is {value!r} but the written/interview settings "
                f"imply {derived[key]!r}."
            )
