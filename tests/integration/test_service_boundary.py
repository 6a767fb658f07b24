from __future__ import annotations

from hrgrading.container import create_container
from hrgrading.schemas import Applicant
from hrgrading.service import UNEXPECTED_ERROR, GradingService
from hrgrading.store import InMemoryRecordStore, RecordStoreError

CYCLE = "2026-fall"


def build_service(store: InMemoryRecordStore) -> GradingService:
    return create_container(store=store).service()


def seed(store: InMemoryRecordStore, count: int = 2, graders: int = 3) -> InMemoryRecordStore:
    for i in range(1, count + 1):
        store.add_applicant(
            Applicant(applicant_id=f"A-{i}", anonymous_id=f"anon-{i}", cycle=CYCLE, total_score=float(i))
        )
    for i in range(1, graders + 1):
        store.add_grader(f"G-{i}")
    return store


def test_success_carries_data():
    service = build_service(seed(InMemoryRecordStore()))
    result = service.assign_written(CYCLE)
    assert result.success is True
    assert result.data.inserted_rows == 30
    assert result.error is None


def test_grading_errors_keep_message_and_kind():
    service = build_service(seed(InMemoryRecordStore(), graders=2))
    result = service.assign_written(CYCLE)
    assert result.success is False
    assert result.error == "Need at least 3 graders. Currently have 2."
    assert result.error_kind == "input"

    missing = service.deliberation_detail("A-404")
    assert missing.error_kind == "not_found"


class BrokenStatusStore(InMemoryRecordStore):
    def bulk_update_applicant_status(self, applicant_ids, status):
        if status == "auto_reject":
            raise RecordStoreError("write quota exceeded")
        return super().bulk_update_applicant_status(applicant_ids, status)


def test_partial_write_keeps_partial_payload():
    service = build_service(seed(BrokenStatusStore()))
    result = service.categorize(CYCLE)
    assert result.success is False
    assert result.error_kind == "partial_write"
    assert result.error == "write quota exceeded"
    assert result.data.applied_tiers == ["auto_accept"]


class UnreachableStore(InMemoryRecordStore):
    def list_applicants(self, cycle):
        raise RecordStoreError("database unreachable")


class BuggyStore(InMemoryRecordStore):
    def list_applicants(self, cycle):
        raise KeyError("total_score")


def test_store_failures_map_to_store_kind():
    result = build_service(UnreachableStore()).recalculate_scores(CYCLE)
    assert (result.success, result.error_kind) == (False, "store")
    assert result.error == "database unreachable"


def test_unexpected_errors_are_masked():
    result = build_service(BuggyStore()).analytics(CYCLE)
    assert result.success is False
    assert result.error == UNEXPECTED_ERROR
    assert result.error_kind == "unexpected"


def test_end_to_end_grading_flow():
    store = seed(InMemoryRecordStore(), count=1)
    service = build_service(store)
    assert service.assign_written(CYCLE).success
    assert service.fill_interview(CYCLE).success

    for grade in store.list_written_grades(["A-1"]):
        assert service.record_written_score(grade.grade_id, grade.grader_id, 4).success
    for assignment in store.list_interview_assignments(["A-1"]):
        for sub_section in (1, 2):
            assert service.record_interview_score(
                assignment.assignment_id, assignment.grader_id, sub_section, 3
            ).success

    report = service.recalculate_scores(CYCLE).data
    assert report.scores[0].is_complete is True
    assert report.scores[0].total_score == 3.5

    assert service.record_decision("A-1", "accept", "admin").success
    [row] = service.export_rows(CYCLE).data
    assert (row.total_score, row.status, row.decision) == (3.5, "accepted", "accept")


def test_grader_overview_reports_assigned_work():
    store = seed(InMemoryRecordStore())
    service = build_service(store)
    assert service.assign_written(CYCLE).success

    result = service.grader_overview(CYCLE, "G-2")
    assert result.success is True
    assert [item.applicant_id for item in result.data.written] == ["A-1", "A-2"]
    assert (result.data.written_scored, result.data.written_slots) == (0, 10)

    missing = service.grader_overview(CYCLE, "G-404")
    assert (missing.success, missing.error_kind) == (False, "not_found")
