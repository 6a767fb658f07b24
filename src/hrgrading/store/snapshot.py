"""JSON persistence for the in-memory record store."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..schemas import (
    Applicant,
    Decision,
    GraderId,
    InterviewAssignment,
    InterviewNote,
    InterviewScore,
    Rubric,
    WrittenGrade,
)
from .base import RecordStoreError
from .memory import InMemoryRecordStore


class StoreSnapshot(BaseModel):
    """Every table of a record store in one document."""

    applicants: list[Applicant] = Field(default_factory=list)
    graders: list[GraderId] = Field(default_factory=list)
    written_grades: list[WrittenGrade] = Field(default_factory=list)
    interview_assignments: list[InterviewAssignment] = Field(default_factory=list)
    interview_scores: list[InterviewScore] = Field(default_factory=list)
    interview_notes: list[InterviewNote] = Field(default_factory=list)
    decisions: list[Decision] = Field(default_factory=list)
    rubrics: list[Rubric] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def load_snapshot(path: Path) -> InMemoryRecordStore:
    """Build a store from a JSON snapshot file."""
    with path.open("r", encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as exc:
            raise RecordStoreError(f"Invalid store JSON: {exc}") from exc
    try:
        snapshot = StoreSnapshot.model_validate(data)
    except ValidationError as exc:
        raise RecordStoreError(f"Invalid store snapshot: {exc}") from exc
    return InMemoryRecordStore.from_tables(**dict(snapshot))


def save_snapshot(store: InMemoryRecordStore, path: Path) -> None:
    """Write every table of the store to a JSON snapshot file."""
    snapshot = StoreSnapshot(**store.tables())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(snapshot.model_dump(mode="json"), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
