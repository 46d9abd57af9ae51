"""In-memory rejection hook."""

from __future__ import annotations

from cofutures.tracing.models import UnhandledRejection


class RejectionLog:
    """Rejection hook keeping the most recent reports in memory.

    Args:
        max_records: Maximum records kept; oldest are evicted first. None = unbounded.
    """

    def __init__(self, max_records: int | None = None) -> None:
        self._max_records = max_records
        self.records: list[UnhandledRejection] = []

    def __call__(self, record: UnhandledRejection) -> None:
        self.records.append(record)
        if self._max_records is not None and len(self.records) > self._max_records:
            del self.records[0]

    def errors(self) -> list[BaseException]:
        return [record.error for record in self.records]

    def clear(self) -> None:
        self.records.clear()
