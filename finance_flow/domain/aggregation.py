"""Period aggregation - monthly and yearly totals for dashboard and reports"""

from datetime import date, datetime
from typing import Iterable, List, Sequence, TypeVar

from finance_flow.domain.models import Expense, Income, MonthlySummary, MonthTotals
from finance_flow.domain.store import RecordStore
from finance_flow.utils.date_utils import in_month, previous_month, to_date

R = TypeVar("R", Income, Expense)


def filter_by_month(records: Iterable[R], year: int, month: int) -> List[R]:
    return [r for r in records if in_month(r.date, year, month)]


def filter_by_range(records: Iterable[R], start: date, end: date) -> List[R]:
    """Records dated within [start, end], both ends inclusive"""
    return [r for r in records if start <= to_date(r.date) <= end]


def _sum(records: Iterable[R]) -> int:
    return sum(r.amount_cents for r in records)


def month_net(incomes: Sequence[Income], expenses: Sequence[Expense], year: int, month: int) -> int:
    """Income minus expenses (savings included) for one calendar month"""
    return _sum(filter_by_month(incomes, year, month)) - _sum(filter_by_month(expenses, year, month))


def total_savings(expenses: Iterable[Expense]) -> int:
    """All-time savings contributions, independent of any selected period"""
    return _sum(e for e in expenses if e.is_saving)


def monthly_summary(
    incomes: Sequence[Income],
    expenses: Sequence[Expense],
    reference_date: date | datetime,
) -> MonthlySummary:
    """
    Totals for the calendar month containing ``reference_date``.

    Carry-over is the previous month's net (income minus expenses) only; it
    does not chain further back. ``balance`` is always
    ``total_income - total_expenses + carry_over``.
    """
    ref = to_date(reference_date)
    year, month = ref.year, ref.month

    total_income = _sum(filter_by_month(incomes, year, month))
    total_expenses = _sum(filter_by_month(expenses, year, month))

    prev_year, prev_month = previous_month(year, month)
    carry_over = month_net(incomes, expenses, prev_year, prev_month)

    return MonthlySummary(
        year=year,
        month=month,
        total_income_cents=total_income,
        total_expenses_cents=total_expenses,
        carry_over_cents=carry_over,
        balance_cents=total_income - total_expenses + carry_over,
        total_savings_cents=total_savings(expenses),
    )


def yearly_series(incomes: Sequence[Income], expenses: Sequence[Expense], year: int) -> List[MonthTotals]:
    """Twelve month-indexed points; savings-flagged expenses are charted separately"""
    series = []
    for month in range(1, 13):
        month_expenses = filter_by_month(expenses, year, month)
        series.append(
            MonthTotals(
                month=month,
                income_cents=_sum(filter_by_month(incomes, year, month)),
                expense_cents=_sum(e for e in month_expenses if not e.is_saving),
                savings_cents=_sum(e for e in month_expenses if e.is_saving),
            )
        )
    return series


def available_years(incomes: Sequence[Income], expenses: Sequence[Expense], today: date | None = None) -> List[int]:
    """Distinct years that have records, newest first; the current year when empty"""
    years = {to_date(r.date).year for r in [*incomes, *expenses]}
    if not years:
        return [(today or date.today()).year]
    return sorted(years, reverse=True)


def savings_target(total_income_cents: int, goal_percent: int) -> int:
    """Amount to set aside this month, floored to the cent"""
    return total_income_cents * goal_percent // 100


class PeriodAggregator:
    """Binds the aggregation functions to injected income and expense stores"""

    def __init__(self, income_store: RecordStore[Income], expense_store: RecordStore[Expense]):
        self.income_store = income_store
        self.expense_store = expense_store

    def monthly_summary(self, reference_date: date | datetime) -> MonthlySummary:
        return monthly_summary(self.income_store.query_all(), self.expense_store.query_all(), reference_date)

    def yearly_series(self, year: int) -> List[MonthTotals]:
        return yearly_series(self.income_store.query_all(), self.expense_store.query_all(), year)

    def total_savings(self) -> int:
        return total_savings(self.expense_store.query_all())

    def available_years(self, today: date | None = None) -> List[int]:
        return available_years(self.income_store.query_all(), self.expense_store.query_all(), today)
