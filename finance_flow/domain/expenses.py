"""Expense lifecycle: add with installment fan-out, regrouping update, cascading delete"""

from typing import Callable, List, Optional

from finance_flow.domain.exceptions import NotFoundError
from finance_flow.domain.installments import new_id, expand_expense, strip_installment_suffix
from finance_flow.domain.models import EXPENSE_SOURCE_TYPES, Expense, ExpenseInput
from finance_flow.domain.store import RecordStore
from finance_flow.domain.validation import validate_common, validate_installments, validate_method


def validate_expense_input(operation: str, expense_input: ExpenseInput) -> None:
    """
    Reject malformed input before the store is touched.

    Raises:
        ValidationError: empty description, non-positive amount, unknown
            method or source type, installments < 1, or a credit total too
            small to give every installment at least one cent
    """
    validate_common(
        operation,
        expense_input.description,
        expense_input.amount_cents,
        expense_input.source,
        EXPENSE_SOURCE_TYPES,
    )
    validate_method(operation, expense_input.method)
    validate_installments(
        operation,
        expense_input.installments,
        expense_input.amount_cents,
        expense_input.method,
    )


class ExpenseManager:
    """
    Keeps every installment group consistent across add, update and delete.

    Each public operation runs inside a single ``store.atomic()`` block so a
    failure never leaves a partially written or partially deleted group.
    """

    def __init__(self, store: RecordStore[Expense], id_factory: Callable[[], str] = new_id):
        self.store = store
        self.id_factory = id_factory

    def add(self, expense_input: ExpenseInput) -> List[Expense]:
        """Persist an expense, fanning credit purchases out into monthly installments"""
        validate_expense_input("add expense", expense_input)

        with self.store.atomic():
            records = self._create_group(expense_input)

        return records

    def update(self, expense: Expense) -> List[Expense]:
        """
        Replace an expense (and its whole group) with freshly derived records.

        Installment members are never patched in place: the stored group is
        deleted and the edited values are added again, so a changed count,
        amount or method always produces a consistent new group.

        Raises:
            NotFoundError: no expense with ``expense.id``
        """
        with self.store.atomic():
            existing = self.store.get(expense.id)
            if existing is None:
                raise NotFoundError(f"update expense {expense.id}: not found")

            expense_input = self._to_input(expense, grouped=existing.installment_group_id is not None)
            validate_expense_input(f"update expense {expense.id}", expense_input)

            self._delete_group(existing)
            records = self._create_group(expense_input)

        return records

    def delete(self, expense_id: str) -> int:
        """
        Delete an expense; installment members take their whole group with them.

        Returns the number of records removed. Unknown ids remove nothing.
        """
        with self.store.atomic():
            existing = self.store.get(expense_id)
            if existing is None:
                return 0
            removed = self._delete_group(existing)

        return removed

    def group_of(self, expense_id: str) -> Optional[List[Expense]]:
        """All records belonging to the same purchase as ``expense_id``"""
        existing = self.store.get(expense_id)
        if existing is None:
            return None
        if existing.installment_group_id is None:
            return [existing]
        members = self.store.find_by_group(existing.installment_group_id)
        return sorted(members, key=lambda e: e.date)

    def _create_group(self, expense_input: ExpenseInput) -> List[Expense]:
        records = expand_expense(expense_input, id_factory=self.id_factory)
        self.store.add_many(records)
        return records

    def _delete_group(self, existing: Expense) -> int:
        if existing.installment_group_id is None:
            self.store.delete(existing.id)
            return 1

        ids = [m.id for m in self.store.find_by_group(existing.installment_group_id)]
        if existing.id not in ids:
            ids.append(existing.id)
        self.store.delete_many(ids)
        return len(ids)

    @staticmethod
    def _to_input(expense: Expense, grouped: bool) -> ExpenseInput:
        description = strip_installment_suffix(expense.description) if grouped else expense.description
        return ExpenseInput(
            description=description,
            amount_cents=expense.amount_cents,
            date=expense.date,
            method=expense.method,
            source=expense.source,
            installments=expense.installments,
            is_saving=expense.is_saving,
        )
