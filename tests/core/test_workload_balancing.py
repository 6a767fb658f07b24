from __future__ import annotations

import pytest

from hrgrading.core.assignment import WorkloadTracker, validate_selection
from hrgrading.errors import ConflictError, InputError


def test_pick_prefers_least_loaded_then_pool_order():
    tracker = WorkloadTracker(["G-1", "G-2", "G-3", "G-4"], {"G-1": 2, "G-3": 1})
    assert tracker.pick(2) == ["G-2", "G-4"]
    assert tracker.pick(2) == ["G-2", "G-3"]
    assert tracker.snapshot() == {"G-1": 2, "G-2": 2, "G-3": 2, "G-4": 1}


def test_pick_respects_exclusions_and_pool_size():
    tracker = WorkloadTracker(["G-1", "G-2", "G-3"])
    assert tracker.pick(3, exclude={"G-2"}) == ["G-1", "G-3"]
    assert tracker.pick(0) == []


def test_repeated_picks_keep_spread_within_one():
    tracker = WorkloadTracker([f"G-{i}" for i in range(1, 8)])
    for _ in range(25):
        tracker.pick(3)
    assert tracker.spread() <= 1


def test_initial_counts_for_unknown_graders_are_ignored():
    tracker = WorkloadTracker(["G-1"], {"G-9": 5})
    assert tracker.snapshot() == {"G-1": 0}


def test_validate_selection_accepts_distinct_known_graders():
    assert validate_selection([" G-1", "G-2", "G-3"], 3, {"G-1", "G-2", "G-3"}) == [
        "G-1",
        "G-2",
        "G-3",
    ]


@pytest.mark.parametrize(
    "selection",
    [["G-1", "G-2"], ["G-1", "", "G-2"], ["G-1", None, "G-2"]],
)
def test_validate_selection_requires_every_slot(selection):
    with pytest.raises(InputError) as exc:
        validate_selection(selection, 3, {"G-1", "G-2", "G-3"})
    assert str(exc.value) == "All 3 graders must be selected."


def test_validate_selection_rejects_duplicates():
    with pytest.raises(ConflictError) as exc:
        validate_selection(["G-1", "G-1", "G-2"], 3, {"G-1", "G-2"})
    assert str(exc.value) == "Must select 3 different graders."


def test_validate_selection_rejects_unknown_graders():
    with pytest.raises(InputError):
        validate_selection(["G-1", "G-2", "G-X"], 3, {"G-1", "G-2", "G-3"})


def test_release_returns_failed_picks_to_the_pool():
    tracker = WorkloadTracker(["G-1", "G-2", "G-3"])
    picked = tracker.pick(2)
    tracker.release(picked)

    assert tracker.snapshot() == {"G-1": 0, "G-2": 0, "G-3": 0}
    assert tracker.pick(2) == ["G-1", "G-2"]
    tracker.release(["G-3", "G-9"])
    assert tracker.snapshot() == {"G-1": 1, "G-2": 1, "G-3": 0}
