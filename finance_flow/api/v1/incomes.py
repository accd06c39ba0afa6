"""Income endpoints"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from finance_flow.api.v1.schemas import DeleteResponse, IncomeCreate, IncomeSchema
from finance_flow.api.dependencies import get_income_manager, get_reference_repository, get_request_id
from finance_flow.infrastructure.database.repositories import ReferenceRepository
from finance_flow.domain.aggregation import filter_by_month
from finance_flow.domain.incomes import IncomeManager
from finance_flow.domain.exceptions import NotFoundError, StorageError, ValidationError
from finance_flow.domain.models import Income, SourceRef
from finance_flow.infrastructure.observability.metrics import income_records_written_counter

router = APIRouter()


@router.post("/incomes", response_model=IncomeSchema, status_code=201)
def create_income(
    body: IncomeCreate,
    request: Request,
    manager: IncomeManager = Depends(get_income_manager),
    references: ReferenceRepository = Depends(get_reference_repository),
):
    request_id = get_request_id(request)
    source = SourceRef(type=body.source.type, id=body.source.id)

    try:
        references.require_source("add income", source)
        income = manager.add(body.description, body.amount_cents, body.date, source)
    except ValidationError as e:
        logging.warning(f"Rejected income: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    income_records_written_counter.inc()
    logging.info("Income saved", extra={"request_id": request_id, "income_id": income.id})
    return IncomeSchema.model_validate(income)


@router.get("/incomes", response_model=List[IncomeSchema])
def list_incomes(
    year: Optional[int] = Query(None, ge=1),
    month: Optional[int] = Query(None, ge=1, le=12),
    manager: IncomeManager = Depends(get_income_manager),
):
    records = manager.store.query_all()
    if month is not None:
        if year is None:
            raise HTTPException(status_code=422, detail="month filter requires year")
        records = filter_by_month(records, year, month)
    elif year is not None:
        records = [r for r in records if r.date.year == year]
    return [IncomeSchema.model_validate(r) for r in sorted(records, key=lambda r: r.date)]


@router.get("/incomes/{income_id}", response_model=IncomeSchema)
def get_income(income_id: str, manager: IncomeManager = Depends(get_income_manager)):
    income = manager.store.get(income_id)
    if income is None:
        raise HTTPException(status_code=404, detail="Income not found")
    return IncomeSchema.model_validate(income)


@router.put("/incomes/{income_id}", response_model=IncomeSchema)
def update_income(
    income_id: str,
    body: IncomeCreate,
    request: Request,
    manager: IncomeManager = Depends(get_income_manager),
    references: ReferenceRepository = Depends(get_reference_repository),
):
    request_id = get_request_id(request)
    source = SourceRef(type=body.source.type, id=body.source.id)

    try:
        references.require_source(f"update income {income_id}", source)
        income = manager.update(
            Income(
                id=income_id,
                description=body.description,
                amount_cents=body.amount_cents,
                date=body.date,
                source=source,
            )
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationError as e:
        logging.warning(f"Rejected income: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    income_records_written_counter.inc()
    logging.info("Income saved", extra={"request_id": request_id, "income_id": income.id})
    return IncomeSchema.model_validate(income)


@router.delete("/incomes/{income_id}", response_model=DeleteResponse)
def delete_income(
    income_id: str,
    request: Request,
    manager: IncomeManager = Depends(get_income_manager),
):
    request_id = get_request_id(request)

    try:
        removed = manager.delete(income_id)
    except StorageError as e:
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    logging.info("Income deleted", extra={"request_id": request_id, "income_id": income_id, "removed_count": removed})
    return DeleteResponse(deleted=removed)
