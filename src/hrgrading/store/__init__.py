"""Record store contract consumed by the grading engine."""

from __future__ import annotations

from .base import RecordStore, RecordStoreError
from .memory import InMemoryRecordStore
from .snapshot import StoreSnapshot, load_snapshot, save_snapshot

__all__ = [
    "InMemoryRecordStore",
    "RecordStore",
    "RecordStoreError",
    "StoreSnapshot",
    "load_snapshot",
    "save_snapshot",
]
