"""Expense endpoints - add with installment fan-out, regrouping update, cascading delete"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from finance_flow.api.v1.schemas import DeleteResponse, ExpenseCreate, ExpenseSchema
from finance_flow.api.dependencies import get_expense_manager, get_reference_repository, get_request_id
from finance_flow.infrastructure.database.repositories import ReferenceRepository
from finance_flow.domain.aggregation import filter_by_month
from finance_flow.domain.expenses import ExpenseManager
from finance_flow.domain.exceptions import NotFoundError, StorageError, ValidationError
from finance_flow.domain.models import Expense, ExpenseInput, SourceRef
from finance_flow.infrastructure.observability.metrics import expense_records_deleted_counter, record_expense_write
from finance_flow.infrastructure.observability.logging import log_expense_change

router = APIRouter()


def _to_schemas(records: List[Expense]) -> List[ExpenseSchema]:
    return [ExpenseSchema.model_validate(r) for r in records]


@router.post("/expenses", response_model=List[ExpenseSchema], status_code=201)
def create_expense(
    body: ExpenseCreate,
    request: Request,
    manager: ExpenseManager = Depends(get_expense_manager),
    references: ReferenceRepository = Depends(get_reference_repository),
):
    """
    Record an expense.

    A credit purchase with installments > 1 is stored as one record per
    month sharing an installment_group_id; every other expense is stored
    as a single record.
    """
    request_id = get_request_id(request)
    source = SourceRef(type=body.source.type, id=body.source.id)

    try:
        references.require_source("add expense", source)
        records = manager.add(
            ExpenseInput(
                description=body.description,
                amount_cents=body.amount_cents,
                date=body.date,
                method=body.method,
                source=source,
                installments=body.installments,
                is_saving=body.is_saving,
            )
        )
    except ValidationError as e:
        logging.warning(f"Rejected expense: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    record_expense_write(len(records))
    log_expense_change(request_id, "add", records[0].id, len(records), records[0].installment_group_id)
    return _to_schemas(records)


@router.get("/expenses", response_model=List[ExpenseSchema])
def list_expenses(
    year: Optional[int] = Query(None, ge=1),
    month: Optional[int] = Query(None, ge=1, le=12),
    manager: ExpenseManager = Depends(get_expense_manager),
):
    """List expenses ordered by date, optionally restricted to one calendar month"""
    records = manager.store.query_all()
    if month is not None:
        if year is None:
            raise HTTPException(status_code=422, detail="month filter requires year")
        records = filter_by_month(records, year, month)
    elif year is not None:
        records = [r for r in records if r.date.year == year]
    return _to_schemas(sorted(records, key=lambda r: r.date))


@router.get("/expenses/{expense_id}", response_model=ExpenseSchema)
def get_expense(expense_id: str, manager: ExpenseManager = Depends(get_expense_manager)):
    expense = manager.store.get(expense_id)
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return ExpenseSchema.model_validate(expense)


@router.get("/expenses/{expense_id}/group", response_model=List[ExpenseSchema])
def get_expense_group(expense_id: str, manager: ExpenseManager = Depends(get_expense_manager)):
    """Every installment of the purchase the expense belongs to"""
    members = manager.group_of(expense_id)
    if members is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return _to_schemas(members)


@router.put("/expenses/{expense_id}", response_model=List[ExpenseSchema])
def update_expense(
    expense_id: str,
    body: ExpenseCreate,
    request: Request,
    manager: ExpenseManager = Depends(get_expense_manager),
    references: ReferenceRepository = Depends(get_reference_repository),
):
    """
    Edit an expense.

    The stored record and its whole installment group are replaced by the
    records derived from the edited values; the response lists them.

    ``amount_cents`` is the purchase total, not the edited member's share:
    send the sum of GET /v1/expenses/{id}/group to keep the total unchanged.
    ``date`` becomes the date of the first installment.
    """
    request_id = get_request_id(request)
    source = SourceRef(type=body.source.type, id=body.source.id)

    try:
        references.require_source(f"update expense {expense_id}", source)
        previous = manager.group_of(expense_id) or []
        records = manager.update(
            Expense(
                id=expense_id,
                description=body.description,
                amount_cents=body.amount_cents,
                date=body.date,
                method=body.method,
                source=source,
                installments=body.installments,
                is_saving=body.is_saving,
            )
        )
    except NotFoundError as e:
        logging.warning(f"Update of missing expense: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        logging.warning(f"Rejected expense: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    record_expense_write(len(records), removed_count=len(previous))
    log_expense_change(request_id, "update", expense_id, len(records), records[0].installment_group_id)
    return _to_schemas(records)


@router.delete("/expenses/{expense_id}", response_model=DeleteResponse)
def delete_expense(
    expense_id: str,
    request: Request,
    manager: ExpenseManager = Depends(get_expense_manager),
):
    """Delete an expense; installment members take their whole group with them"""
    request_id = get_request_id(request)

    try:
        removed = manager.delete(expense_id)
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    expense_records_deleted_counter.inc(removed)
    log_expense_change(request_id, "delete", expense_id, removed)
    return DeleteResponse(deleted=removed)
