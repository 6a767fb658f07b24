from __future__ import annotations

from collections import Counter, defaultdict
from typing import Any

import pytest

from hrgrading.core import WrittenAssignmentConfig, WrittenAssignmentScheduler
from hrgrading.errors import ConflictError, InputError, NotFoundError, PartialWriteError
from hrgrading.schemas import Applicant, WrittenGrade
from hrgrading.store import InMemoryRecordStore, RecordStoreError

CYCLE = "2026-fall"


def build_applicant(applicant_id: str, **kwargs: Any) -> Applicant:
    defaults: dict[str, Any] = {
        "applicant_id": applicant_id,
        "anonymous_id": f"anon-{applicant_id}",
        "cycle": CYCLE,
    }
    defaults.update(kwargs)
    return Applicant(**defaults)


def build_slots(applicant_id: str, grader_id: str, questions=range(1, 6), score=None):
    return [
        WrittenGrade(
            applicant_id=applicant_id,
            grader_id=grader_id,
            question_number=question,
            score=score,
        )
        for question in questions
    ]


def build_store(applicant_count: int, grader_count: int, **tables: Any) -> InMemoryRecordStore:
    return InMemoryRecordStore.from_tables(
        applicants=[build_applicant(f"A-{i}") for i in range(1, applicant_count + 1)],
        graders=[f"G-{i}" for i in range(1, grader_count + 1)],
        **tables,
    )


def graders_by_applicant(store: InMemoryRecordStore) -> dict[str, set[str]]:
    grouped: dict[str, set[str]] = defaultdict(set)
    applicant_ids = [a.applicant_id for a in store.list_applicants(CYCLE)]
    for grade in store.list_written_grades(applicant_ids):
        grouped[grade.applicant_id].add(grade.grader_id)
    return grouped


def test_assign_all_gives_every_applicant_three_graders():
    store = build_store(4, 3)
    report = WrittenAssignmentScheduler(store).assign_all(CYCLE)

    assert report.inserted_rows == 60
    assert report.assigned_applicants == 4
    assert report.workload == {"G-1": 4, "G-2": 4, "G-3": 4}
    grouped = graders_by_applicant(store)
    assert all(graders == {"G-1", "G-2", "G-3"} for graders in grouped.values())
    rows = store.list_written_grades(list(grouped))
    per_pair = Counter((g.applicant_id, g.grader_id) for g in rows)
    assert set(per_pair.values()) == {5}


def test_assign_all_balances_workload():
    store = build_store(10, 7)
    report = WrittenAssignmentScheduler(store).assign_all(CYCLE)

    loads = report.workload.values()
    assert max(loads) - min(loads) <= 1
    assert sum(loads) == 30
    assert all(len(graders) == 3 for graders in graders_by_applicant(store).values())


def test_assign_all_refuses_when_rows_exist():
    store = build_store(2, 3, written_grades=build_slots("A-1", "G-1"))
    with pytest.raises(ConflictError) as exc:
        WrittenAssignmentScheduler(store).assign_all(CYCLE)
    assert str(exc.value) == "Written assignments already exist. Clear them before re-assigning."


def test_assign_all_requires_enough_graders():
    store = build_store(2, 2)
    with pytest.raises(InputError) as exc:
        WrittenAssignmentScheduler(store).assign_all(CYCLE)
    assert str(exc.value) == "Need at least 3 graders. Currently have 2."
    assert store.list_written_grades(["A-1", "A-2"]) == []


def test_fill_gaps_tops_up_graders_and_missing_questions():
    store = build_store(
        2,
        4,
        written_grades=(
            build_slots("A-1", "G-1")
            + build_slots("A-2", "G-1")
            + build_slots("A-2", "G-2")
            + build_slots("A-2", "G-3", questions=[1, 2, 4, 5])
        ),
    )
    scheduler = WrittenAssignmentScheduler(store)
    report = scheduler.fill_gaps(CYCLE)

    assert report.inserted_rows == 11
    grouped = graders_by_applicant(store)
    assert grouped["A-1"] == {"G-1", "G-4", "G-2"}
    a2_questions = sorted(
        g.question_number for g in store.list_written_grades(["A-2"]) if g.grader_id == "G-3"
    )
    assert a2_questions == [1, 2, 3, 4, 5]

    again = scheduler.fill_gaps(CYCLE)
    assert again.inserted_rows == 0


def test_save_graders_keeps_scored_slots():
    store = build_store(
        1,
        5,
        written_grades=(
            build_slots("A-1", "G-1", score=4)
            + build_slots("A-1", "G-2")
            + build_slots("A-1", "G-3")
        ),
    )
    result = WrittenAssignmentScheduler(store).save_graders("A-1", ["G-1", "G-4", "G-5"])

    assert result.deleted_rows == 10
    assert result.inserted_rows == 10
    rows = store.list_written_grades(["A-1"])
    assert {g.grader_id for g in rows} == {"G-1", "G-4", "G-5"}
    assert [g.score for g in rows if g.grader_id == "G-1"] == [4] * 5


def test_save_graders_refuses_to_drop_a_grader_with_scores():
    store = build_store(
        1,
        5,
        written_grades=build_slots("A-1", "G-1", questions=[1], score=3)
        + build_slots("A-1", "G-2"),
    )
    with pytest.raises(ConflictError):
        WrittenAssignmentScheduler(store).save_graders("A-1", ["G-2", "G-3", "G-4"])
    assert len(store.list_written_grades(["A-1"])) == 6


def test_save_graders_validates_before_writing():
    store = build_store(1, 3)
    scheduler = WrittenAssignmentScheduler(store)
    with pytest.raises(InputError):
        scheduler.save_graders("A-1", ["G-1", "G-2"])
    with pytest.raises(ConflictError):
        scheduler.save_graders("A-1", ["G-1", "G-1", "G-2"])
    with pytest.raises(NotFoundError):
        scheduler.save_graders("A-404", ["G-1", "G-2", "G-3"])


def test_clear_ungraded_keeps_scored_slots():
    store = build_store(
        2,
        3,
        written_grades=build_slots("A-1", "G-1", score=5) + build_slots("A-2", "G-2"),
    )
    deleted = WrittenAssignmentScheduler(store).clear_ungraded(CYCLE)
    assert deleted == 5
    assert len(store.list_written_grades(["A-1", "A-2"])) == 5


def test_overview_counts_graded_slots():
    store = build_store(
        1,
        3,
        written_grades=build_slots("A-1", "G-1", score=2) + build_slots("A-1", "G-2"),
    )
    [view] = WrittenAssignmentScheduler(store).overview(CYCLE)
    assert view.grader_ids == ["G-1", "G-2"]
    assert (view.graded_count, view.slot_count) == (5, 10)


class FailingInsertStore(InMemoryRecordStore):
    def __init__(self, fail_on_call: int) -> None:
        super().__init__()
        self.fail_on_call = fail_on_call
        self.calls = 0

    def bulk_insert_written_grades(self, rows):
        self.calls += 1
        if self.calls == self.fail_on_call:
            raise RecordStoreError("insert timed out")
        return super().bulk_insert_written_grades(rows)


def test_failed_insert_batch_is_reported_and_others_continue():
    store = FailingInsertStore(fail_on_call=2)
    for i in range(1, 5):
        store.add_applicant(build_applicant(f"A-{i}"))
    for i in range(1, 4):
        store.add_grader(f"G-{i}")
    scheduler = WrittenAssignmentScheduler(
        store, config=WrittenAssignmentConfig(insert_batch_size=15)
    )

    with pytest.raises(PartialWriteError) as exc:
        scheduler.assign_all(CYCLE)

    error = exc.value
    assert error.failures == {"batch 2": "insert timed out"}
    assert error.partial.inserted_rows == 45
    assert len(store.list_written_grades([f"A-{i}" for i in range(1, 5)])) == 45
    assert error.partial.workload == {"G-1": 3, "G-2": 3, "G-3": 3}


def test_save_keeps_scoring_grader_who_left_the_pool():
    store = build_store(1, 3, written_grades=build_slots("A-1", "G-9", score=4))
    scheduler = WrittenAssignmentScheduler(store)

    result = scheduler.save_graders("A-1", ["G-9", "G-1", "G-2"])

    assert result.grader_ids == ["G-9", "G-1", "G-2"]
    assert result.inserted_rows == 10
    assert graders_by_applicant(store)["A-1"] == {"G-1", "G-2", "G-9"}
    with pytest.raises(InputError, match="Unknown grader"):
        scheduler.save_graders("A-1", ["G-9", "G-1", "G-8"])
