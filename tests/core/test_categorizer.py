from __future__ import annotations

from typing import Any

import pytest

from hrgrading.core import Categorizer, CategorizerConfig
from hrgrading.errors import InputError, PartialWriteError
from hrgrading.schemas import Applicant
from hrgrading.store import InMemoryRecordStore, RecordStoreError

CYCLE = "2026-fall"


def build_applicant(index: int, **kwargs: Any) -> Applicant:
    defaults: dict[str, Any] = {
        "applicant_id": f"A-{index:02d}",
        "anonymous_id": f"anon-{index:02d}",
        "cycle": CYCLE,
    }
    defaults.update(kwargs)
    return Applicant(**defaults)


def build_store(scores: list[float | None], **overrides: dict[str, Any]) -> InMemoryRecordStore:
    applicants = [
        build_applicant(index, total_score=score, **overrides.get(f"A-{index:02d}", {}))
        for index, score in enumerate(scores, start=1)
    ]
    return InMemoryRecordStore.from_tables(applicants=applicants)


def statuses(store: InMemoryRecordStore) -> dict[str, str]:
    return {a.applicant_id: a.status for a in store.list_applicants(CYCLE)}


def test_categorize_splits_quartiles():
    store = build_store([4.8, 1.2, 3.0, 4.1, 2.2, 3.7, 2.9, 4.5, 1.9, 3.3])
    report = Categorizer(store).categorize(CYCLE)

    assert (report.auto_accept_count, report.discuss_count, report.auto_reject_count) == (3, 4, 3)
    result = statuses(store)
    assert {aid for aid, s in result.items() if s == "auto_accept"} == {"A-01", "A-04", "A-08"}
    assert {aid for aid, s in result.items() if s == "auto_reject"} == {"A-02", "A-05", "A-09"}
    assert report.applied_tiers == ["auto_accept", "discuss", "auto_reject"]


def test_categorize_leaves_terminal_and_unscored_applicants_alone():
    store = build_store(
        [4.0, 3.0, None, 5.0],
        **{"A-04": {"status": "rejected"}},
    )
    report = Categorizer(store).categorize(CYCLE)

    result = statuses(store)
    assert result["A-03"] == "pending"
    assert result["A-04"] == "rejected"
    assert report.skipped_count == 1
    assert report.terminal_count == 1
    assert result["A-01"] == "auto_accept"
    assert result["A-02"] == "auto_reject"


def test_categorize_breaks_ties_by_store_order():
    store = build_store([3.0, 3.0, 3.0, 3.0])
    Categorizer(store).categorize(CYCLE)
    result = statuses(store)
    assert result["A-01"] == "auto_accept"
    assert result["A-04"] == "auto_reject"
    assert result["A-02"] == result["A-03"] == "discuss"


@pytest.mark.parametrize(
    ("count", "expected"),
    [
        (1, (1, 0, 0)),
        (2, (1, 0, 1)),
        (3, (1, 1, 1)),
        (4, (1, 2, 1)),
        (10, (3, 4, 3)),
    ],
)
def test_band_sizes_for_small_lists(count, expected):
    store = build_store([float(5 - i * 0.1) for i in range(count)])
    report = Categorizer(store).categorize(CYCLE)
    assert (report.auto_accept_count, report.discuss_count, report.auto_reject_count) == expected


def test_categorize_is_reproducible():
    store = build_store([4.8, 1.2, 3.0, 4.1, 2.2])
    categorizer = Categorizer(store)
    categorizer.categorize(CYCLE)
    first = statuses(store)
    categorizer.categorize(CYCLE)
    assert statuses(store) == first


def test_categorize_requires_scores():
    store = build_store([None, None])
    with pytest.raises(InputError) as exc:
        Categorizer(store).categorize(CYCLE)
    assert "Run score recalculation first." in str(exc.value)
    assert set(statuses(store).values()) == {"pending"}


def test_config_rejects_fraction_out_of_range():
    with pytest.raises(ValueError):
        CategorizerConfig(accept_fraction=1.5)


class FailingTierStore(InMemoryRecordStore):
    def __init__(self, failing_status: str) -> None:
        super().__init__()
        self.failing_status = failing_status

    def bulk_update_applicant_status(self, applicant_ids, status):
        if status == self.failing_status:
            raise RecordStoreError("connection reset by peer")
        return super().bulk_update_applicant_status(applicant_ids, status)


def test_tier_failure_stops_remaining_tiers():
    store = FailingTierStore("discuss")
    for index, score in enumerate([4.0, 3.0, 2.0, 1.0], start=1):
        store.add_applicant(build_applicant(index, total_score=score))

    with pytest.raises(PartialWriteError) as exc:
        Categorizer(store).categorize(CYCLE)

    error = exc.value
    assert str(error) == "connection reset by peer"
    assert error.failures == {"discuss": "connection reset by peer"}
    assert error.partial.applied_tiers == ["auto_accept"]
    result = statuses(store)
    assert result["A-01"] == "auto_accept"
    assert result["A-04"] == "pending"
