from __future__ import annotations

import pytest

from hrgrading.container import create_container
from hrgrading.schemas import Applicant
from hrgrading.schemas.config import AppConfig, load_config
from hrgrading.service import GradingService
from hrgrading.store import InMemoryRecordStore


def test_create_container_with_overrides():
    store = InMemoryRecordStore()
    container = create_container(
        settings={
            "aggregator": {"written_graders": 2, "interview_rounds": 1},
            "categorizer": {"accept_fraction": 0.1, "reject_fraction": 0.2},
            "written": {"graders_per_applicant": 2, "insert_batch_size": 50},
            "interview": {"graders_per_round": 3, "rounds": [1], "distinct_across_rounds": True},
            "grading": {"min_note_length": 20},
        },
        store=store,
    )

    aggregator = container.aggregator()
    categorizer = container.categorizer()
    written = container.written_scheduler()
    interview = container.interview_scheduler()
    grade_entry = container.grade_entry()
    exporter = container.export_builder()

    assert aggregator._config.written_slots_expected == 10
    assert categorizer._config.accept_fraction == 0.1
    assert written.config.graders_per_applicant == 2
    assert written.config.insert_batch_size == 50
    assert interview.config.rounds == (1,)
    assert interview.config.distinct_across_rounds is True
    assert grade_entry._config.min_note_length == 20
    assert exporter._config.interview_rounds == (1,)
    assert container.record_store() is store
    assert aggregator._store is store


def test_container_builds_service_with_defaults():
    container = create_container()
    assert isinstance(container.service(), GradingService)
    assert container.written_scheduler().config.graders_per_applicant == 3


def test_load_config_validation():
    data = {
        "cycle": "2026-fall",
        "categorizer": {"accept_fraction": 0.3},
        "written": {},
    }
    app_config = load_config(data)
    assert isinstance(app_config, AppConfig)
    settings = app_config.to_settings()
    assert settings["categorizer"]["accept_fraction"] == 0.3
    assert settings["cycle"] == "2026-fall"
    assert "written" not in settings


CYCLE = "2026-fall"


def build_seeded_store(graders: int) -> InMemoryRecordStore:
    store = InMemoryRecordStore()
    store.add_applicant(Applicant(applicant_id="A-1", anonymous_id="anon-1", cycle=CYCLE))
    for i in range(1, graders + 1):
        store.add_grader(f"G-{i}")
    return store


def test_written_shape_flows_into_aggregation():
    store = build_seeded_store(4)
    container = create_container(
        settings={
            "written": {"graders_per_applicant": 4},
            "interview": {"graders_per_round": 1, "rounds": [1], "sub_sections": [1]},
        },
        store=store,
    )
    service = container.service()

    assert service.assign_written(CYCLE).success
    assert service.fill_interview(CYCLE).success
    for grade in store.list_written_grades(["A-1"]):
        assert service.record_written_score(grade.grade_id, grade.grader_id, 4).success
    (assignment,) = store.list_interview_assignments(["A-1"])
    assert service.record_interview_score(
        assignment.assignment_id, assignment.grader_id, 1, 5
    ).success

    (score,) = service.recalculate_scores(CYCLE).data.scores
    assert container.aggregator()._config.written_slots_expected == 20
    assert score.written_grade_count == 20
    assert score.is_complete is True


def test_interview_sub_sections_flow_into_grade_entry_and_export():
    store = build_seeded_store(2)
    container = create_container(
        settings={"interview": {"sub_sections": [1, 2, 3]}}, store=store
    )
    service = container.service()

    assert service.fill_interview(CYCLE).success
    assignment = store.list_interview_assignments(["A-1"])[0]
    result = service.record_interview_score(assignment.assignment_id, assignment.grader_id, 3, 4)

    assert result.success is True
    assert container.grade_entry()._config.sub_sections == (1, 2, 3)
    assert container.export_builder()._config.sub_sections == (1, 2, 3)
    assert container.aggregator()._config.interview_sub_sections == 3


def test_conflicting_shape_settings_are_rejected():
    with pytest.raises(ValueError, match="aggregator.written_graders"):
        create_container(
            settings={
                "aggregator": {"written_graders": 3},
                "written": {"graders_per_applicant": 4},
            }
        )
    with pytest.raises(ValueError, match="grading.sub_sections"):
        create_container(
            settings={"interview": {"sub_sections": [1, 2, 3]}, "grading": {"sub_sections": [1, 2]}}
        )
