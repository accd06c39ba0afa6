"""Income lifecycle: plain single-record CRUD"""

from datetime import date
from typing import Callable

from finance_flow.domain.exceptions import NotFoundError
from finance_flow.domain.installments import new_id
from finance_flow.domain.models import INCOME_SOURCE_TYPES, Income, SourceRef
from finance_flow.domain.store import RecordStore
from finance_flow.domain.validation import validate_common


class IncomeManager:
    def __init__(self, store: RecordStore[Income], id_factory: Callable[[], str] = new_id):
        self.store = store
        self.id_factory = id_factory

    def add(self, description: str, amount_cents: int, income_date: date, source: SourceRef) -> Income:
        validate_common("add income", description, amount_cents, source, INCOME_SOURCE_TYPES)
        income = Income(
            id=self.id_factory(),
            description=description,
            amount_cents=amount_cents,
            date=income_date,
            source=source,
        )
        with self.store.atomic():
            self.store.add(income)
        return income

    def update(self, income: Income) -> Income:
        """
        Raises:
            NotFoundError: no income with ``income.id``
        """
        operation = f"update income {income.id}"
        validate_common(operation, income.description, income.amount_cents, income.source, INCOME_SOURCE_TYPES)

        with self.store.atomic():
            if self.store.get(income.id) is None:
                raise NotFoundError(f"{operation}: not found")
            self.store.update(income)
        return income

    def delete(self, income_id: str) -> int:
        with self.store.atomic():
            if self.store.get(income_id) is None:
                return 0
            self.store.delete(income_id)
        return 1
