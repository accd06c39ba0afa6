"""Installment splitting for credit-card purchases"""

import re
import uuid
from typing import Callable, List

from finance_flow.domain.models import Expense, ExpenseInput
from finance_flow.utils.date_utils import add_months

_SUFFIX_RE = re.compile(r"\s*\((\d+)/(\d+)\)$")


def new_id() -> str:
    return str(uuid.uuid4())


def installment_count(expense_input: ExpenseInput) -> int:
    """Installments only apply to credit purchases; anything else is a single payment"""
    if expense_input.method == "credit" and expense_input.installments:
        return expense_input.installments
    return 1


def split_amount(amount_cents: int, num_installments: int) -> List[int]:
    """
    Split a total into equal monthly shares.

    Every share is the floored division; the last installment absorbs the
    remainder so the shares always add back up to the total.

    Example:
        $100.00 / 3 → [$33.33, $33.33, $33.34]
    """
    base_amount = amount_cents // num_installments
    remainder = amount_cents % num_installments
    return [
        base_amount + (remainder if i == num_installments - 1 else 0)
        for i in range(num_installments)
    ]


def strip_installment_suffix(description: str) -> str:
    """Remove a trailing "(k/n)" marker left by a previous split"""
    return _SUFFIX_RE.sub("", description)


def expand_expense(
    expense_input: ExpenseInput,
    id_factory: Callable[[], str] = new_id,
) -> List[Expense]:
    """
    Turn one expense input into the records that represent it.

    A single payment yields one record with no group. A credit purchase in
    n > 1 installments yields n records sharing a fresh group id, the k-th
    dated k calendar months after the purchase (Jan 31 → Feb 29 → Mar 31)
    and labelled "{description} (k+1/n)".
    """
    count = installment_count(expense_input)

    if count <= 1:
        return [
            Expense(
                id=id_factory(),
                description=expense_input.description,
                amount_cents=expense_input.amount_cents,
                date=expense_input.date,
                method=expense_input.method,
                source=expense_input.source,
                is_saving=expense_input.is_saving,
            )
        ]

    group_id = id_factory()
    shares = split_amount(expense_input.amount_cents, count)

    return [
        Expense(
            id=id_factory(),
            description=f"{expense_input.description} ({i + 1}/{count})",
            amount_cents=share,
            date=add_months(expense_input.date, i),
            method=expense_input.method,
            source=expense_input.source,
            installments=count,
            installment_group_id=group_id,
            is_saving=expense_input.is_saving,
        )
        for i, share in enumerate(shares)
    ]
