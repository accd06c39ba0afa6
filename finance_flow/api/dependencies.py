"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from finance_flow.domain.aggregation import PeriodAggregator
from finance_flow.domain.expenses import ExpenseManager
from finance_flow.domain.incomes import IncomeManager
from finance_flow.infrastructure.clients.advisor import AdvisorClient
from finance_flow.infrastructure.database.repositories import (
    ExpenseRepository,
    IncomeRepository,
    ReferenceRepository,
)
from finance_flow.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_expense_manager(db: Session = Depends(get_db)) -> ExpenseManager:
    """Expense manager bound to the request's session"""
    return ExpenseManager(ExpenseRepository(db))


def get_income_manager(db: Session = Depends(get_db)) -> IncomeManager:
    return IncomeManager(IncomeRepository(db))


def get_aggregator(db: Session = Depends(get_db)) -> PeriodAggregator:
    return PeriodAggregator(IncomeRepository(db), ExpenseRepository(db))


def get_reference_repository(db: Session = Depends(get_db)) -> ReferenceRepository:
    return ReferenceRepository(db)


def get_advisor_client() -> AdvisorClient:
    """Provide advice model client instance"""
    return AdvisorClient()
