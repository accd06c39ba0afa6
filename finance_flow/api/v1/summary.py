"""GET /v1/summary/* - dashboard totals"""

from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from finance_flow.api.v1.schemas import (
    MonthlySummaryResponse,
    MonthTotalsSchema,
    YearlySeriesResponse,
    YearsResponse,
)
from finance_flow.api.dependencies import get_aggregator
from finance_flow.config import settings
from finance_flow.domain.aggregation import PeriodAggregator, savings_target
from finance_flow.infrastructure.database.session import get_db
from finance_flow.infrastructure.database.repositories import SettingsRepository

router = APIRouter()


@router.get("/summary/monthly", response_model=MonthlySummaryResponse)
def get_monthly_summary(
    reference_date: Optional[date] = Query(None, description="Any day of the month to summarize; defaults to today"),
    aggregator: PeriodAggregator = Depends(get_aggregator),
    db: Session = Depends(get_db),
):
    """
    Income, expenses, previous-month carry-over and balance for one month.

    Returns:
        balance = total_income - total_expenses + carry_over, plus all-time
        savings and this month's savings target
    """
    summary = aggregator.monthly_summary(reference_date or date.today())
    goal = SettingsRepository(db).get_savings_goal(settings.default_savings_goal)

    return MonthlySummaryResponse(
        year=summary.year,
        month=summary.month,
        total_income_cents=summary.total_income_cents,
        total_expenses_cents=summary.total_expenses_cents,
        carry_over_cents=summary.carry_over_cents,
        balance_cents=summary.balance_cents,
        total_savings_cents=summary.total_savings_cents,
        savings_goal_percent=goal,
        savings_target_cents=savings_target(summary.total_income_cents, goal),
    )


@router.get("/summary/yearly", response_model=YearlySeriesResponse)
def get_yearly_series(
    year: Optional[int] = Query(None, ge=1, description="Defaults to the current year"),
    aggregator: PeriodAggregator = Depends(get_aggregator),
):
    """Twelve monthly points of income, non-savings expense and savings"""
    year = year or date.today().year
    series = aggregator.yearly_series(year)
    return YearlySeriesResponse(
        year=year,
        months=[MonthTotalsSchema.model_validate(point) for point in series],
    )


@router.get("/summary/years", response_model=YearsResponse)
def get_available_years(aggregator: PeriodAggregator = Depends(get_aggregator)):
    return YearsResponse(years=aggregator.available_years())
