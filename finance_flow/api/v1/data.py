"""Bulk data endpoints - JSON snapshot export/import, CSV summary, reset"""

import csv
import io
import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_flow.api.v1.schemas import DataSnapshot
from finance_flow.api.dependencies import get_request_id
from finance_flow.config import settings
from finance_flow.domain.exceptions import ValidationError
from finance_flow.domain.models import Account, Bank, Card, Expense, Income, SourceRef, Wallet
from finance_flow.infrastructure.database.session import get_db
from finance_flow.infrastructure.database.repositories import DataRepository

router = APIRouter()

CSV_HEADERS = ["type", "date", "description", "amount", "source", "method"]


def _format_amount(amount_cents: int) -> str:
    sign = "-" if amount_cents < 0 else ""
    return f"{sign}{abs(amount_cents) // 100}.{abs(amount_cents) % 100:02d}"


def render_csv(incomes, expenses) -> str:
    """Summary CSV: incomes first, then expenses with negated amounts"""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for i in incomes:
        writer.writerow(["income", i.date.isoformat(), i.description, _format_amount(i.amount_cents), i.source.type, "N/A"])
    for e in expenses:
        writer.writerow(
            ["expense", e.date.isoformat(), e.description, _format_amount(-e.amount_cents), e.source.type, e.method]
        )
    return buffer.getvalue()


@router.get("/data/export", response_model=DataSnapshot)
def export_data(db: Session = Depends(get_db)):
    """Full record set as one JSON document"""
    snapshot = DataRepository(db).export_snapshot(settings.default_savings_goal)
    return DataSnapshot.model_validate(snapshot, from_attributes=True)


@router.get("/data/export.csv")
def export_csv(db: Session = Depends(get_db)):
    snapshot = DataRepository(db).export_snapshot(settings.default_savings_goal)
    return Response(
        content=render_csv(snapshot["incomes"], snapshot["expenses"]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="financeflow_summary.csv"'},
    )


@router.post("/data/import", response_model=DataSnapshot)
def import_data(body: DataSnapshot, request: Request, db: Session = Depends(get_db)):
    """Replace every table with the uploaded snapshot in a single transaction"""
    request_id = get_request_id(request)
    repo = DataRepository(db)

    try:
        repo.replace_all(
            banks=[
                Bank(id=b.id, name=b.name, accounts=[Account(**a.model_dump()) for a in b.accounts])
                for b in body.banks
            ],
            cards=[Card(**c.model_dump()) for c in body.cards],
            wallets=[Wallet(**w.model_dump()) for w in body.wallets],
            incomes=[
                Income(
                    id=i.id,
                    description=i.description,
                    amount_cents=i.amount_cents,
                    date=i.date,
                    source=SourceRef(type=i.source.type, id=i.source.id),
                )
                for i in body.incomes
            ],
            expenses=[
                Expense(
                    id=e.id,
                    description=e.description,
                    amount_cents=e.amount_cents,
                    date=e.date,
                    method=e.method,
                    source=SourceRef(type=e.source.type, id=e.source.id),
                    installments=e.installments,
                    installment_group_id=e.installment_group_id,
                    is_saving=e.is_saving,
                )
                for e in body.expenses
            ],
            savings_goal=body.savings_goal,
        )
        db.commit()
    except ValidationError as e:
        db.rollback()
        logging.warning(f"Rejected import: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Import failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail="Snapshot could not be imported")

    logging.info(
        "Data imported",
        extra={"request_id": request_id, "incomes": len(body.incomes), "expenses": len(body.expenses)},
    )
    return DataSnapshot.model_validate(repo.export_snapshot(settings.default_savings_goal), from_attributes=True)


@router.post("/data/reset", status_code=204)
def reset_data(request: Request, db: Session = Depends(get_db)):
    """Wipe every table"""
    request_id = get_request_id(request)

    try:
        DataRepository(db).clear()
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Reset failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Storage unavailable")

    logging.info("Data reset", extra={"request_id": request_id})
    return Response(status_code=204)
