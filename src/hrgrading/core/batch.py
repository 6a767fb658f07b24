"""Batch write bookkeeping: commit what succeeds, report what fails."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

import structlog

from ..errors import PartialWriteError
from ..store import RecordStoreError


@dataclass(slots=True)
class BatchResult:
    """Per-entity outcome of a batch of writes."""

    succeeded: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


class WriteBatch:
    """Run writes one entity at a time without stopping on store failures.

    Only :class:`RecordStoreError` is recorded; anything else propagates
    because it signals a bug rather than a failed write.
    """

    def __init__(self, operation: str) -> None:
        self._operation = operation
        self._result = BatchResult()
        self._logger = structlog.get_logger(__name__)

    @property
    def result(self) -> BatchResult:
        return self._result

    def attempt(self, key: str, write: Callable[[], Any]) -> bool:
        try:
            write()
        except RecordStoreError as exc:
            self._result.failed[key] = str(exc)
            self._logger.warning(
                "batch.write_failed",
                operation=self._operation,
                key=key,
                error=str(exc),
            )
            return False
        self._result.succeeded.append(key)
        return True

    def raise_for_failures(self, partial: Any) -> None:
        """Raise :class:`PartialWriteError` carrying ``partial`` if any write failed."""
        if self._result.ok:
            return
        raise PartialWriteError(
            f"{self._operation}: {self._result.failed_count} write(s) failed, "
            f"{self._result.succeeded_count} succeeded",
            failures=dict(self._result.failed),
            partial=partial,
        )


__all__ = ["BatchResult", "WriteBatch"]
