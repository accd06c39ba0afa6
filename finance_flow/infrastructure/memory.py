"""In-memory record store for single-session use and tests"""

import copy
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Sequence

from finance_flow.domain.exceptions import StorageError
from finance_flow.domain.store import RecordStore, T


class InMemoryRecordStore(RecordStore[T]):
    """
    Dict-backed store. ``atomic()`` snapshots the records on entry and puts
    the snapshot back if the block raises. Records are copied in and out so
    callers never alias stored state.
    """

    def __init__(self, records: Sequence[T] = ()):
        self._records: Dict[str, T] = {r.id: copy.copy(r) for r in records}

    @contextmanager
    def atomic(self) -> Iterator[None]:
        snapshot = dict(self._records)
        try:
            yield
        except Exception:
            self._records = snapshot
            raise

    def add(self, record: T) -> None:
        if record.id in self._records:
            raise StorageError(f"add {record.id}: duplicate id")
        self._records[record.id] = copy.copy(record)

    def add_many(self, records: Sequence[T]) -> None:
        ids = [r.id for r in records]
        if len(set(ids)) != len(ids) or any(i in self._records for i in ids):
            raise StorageError(f"add_many: duplicate ids in {ids}")
        for record in records:
            self._records[record.id] = copy.copy(record)

    def update(self, record: T) -> None:
        if record.id not in self._records:
            raise StorageError(f"update {record.id}: no such record")
        self._records[record.id] = copy.copy(record)

    def delete(self, record_id: str) -> None:
        self._records.pop(record_id, None)

    def delete_many(self, record_ids: Sequence[str]) -> None:
        for record_id in record_ids:
            self._records.pop(record_id, None)

    def query_all(self) -> List[T]:
        return [copy.copy(r) for r in self._records.values()]

    def get(self, record_id: str) -> Optional[T]:
        record = self._records.get(record_id)
        return copy.copy(record) if record is not None else None
