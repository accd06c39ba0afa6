"""Record store contract consumed by the expense/income managers and the aggregator"""

from abc import ABC, abstractmethod
from typing import ContextManager, Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


class RecordStore(ABC, Generic[T]):
    """
    Per-entity store of records addressed by their string ``id``.

    Mutations are only visible to other sessions once the enclosing
    ``atomic()`` block exits cleanly; any exception inside the block
    discards every change made within it.

    Raises:
        StorageError: the backing store is unreachable or the transaction aborted
    """

    @abstractmethod
    def atomic(self) -> ContextManager[None]:
        """Transaction scope: commit on success, roll back on any exception"""

    @abstractmethod
    def add(self, record: T) -> None:
        """Insert one record"""

    @abstractmethod
    def add_many(self, records: Sequence[T]) -> None:
        """Insert all records or none of them"""

    @abstractmethod
    def update(self, record: T) -> None:
        """Replace the stored record with the same id"""

    @abstractmethod
    def delete(self, record_id: str) -> None:
        """Remove a record; missing ids are ignored"""

    @abstractmethod
    def delete_many(self, record_ids: Sequence[str]) -> None:
        """Remove all listed records or none of them"""

    @abstractmethod
    def query_all(self) -> List[T]:
        """Every stored record"""

    def get(self, record_id: str) -> Optional[T]:
        return next((r for r in self.query_all() if r.id == record_id), None)

    def find_by_group(self, group_id: str) -> List[T]:
        """Members of an installment group (expense stores only)"""
        return [r for r in self.query_all() if getattr(r, "installment_group_id", None) == group_id]
