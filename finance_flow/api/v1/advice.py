"""POST /v1/advice - narrative financial advice for a date range"""

import json
import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from finance_flow.api.v1.schemas import AdviceRequest, AdviceResponse, ExpenseSchema, IncomeSchema
from finance_flow.api.dependencies import get_advisor_client, get_aggregator, get_request_id
from finance_flow.domain.aggregation import PeriodAggregator, filter_by_range
from finance_flow.domain.exceptions import AdviceServiceError
from finance_flow.infrastructure.clients.advisor import AdvisorClient, FinancialAdviceInput

router = APIRouter()


@router.post("/advice", response_model=AdviceResponse)
async def create_advice(
    body: AdviceRequest,
    request: Request,
    aggregator: PeriodAggregator = Depends(get_aggregator),
    advisor: AdvisorClient = Depends(get_advisor_client),
):
    """
    Ask the advice model to review the period's incomes and expenses.

    Flow:
    1. Select incomes and expenses dated within [start_date, end_date]
    2. Serialize both sets to JSON for the prompt
    3. Call the advice model and return its markdown
    """
    start_time = time.time()
    request_id = get_request_id(request)

    if body.start_date > body.end_date:
        raise HTTPException(status_code=422, detail="start_date must not be after end_date")

    incomes = filter_by_range(aggregator.income_store.query_all(), body.start_date, body.end_date)
    expenses = filter_by_range(aggregator.expense_store.query_all(), body.start_date, body.end_date)

    advice_input = FinancialAdviceInput(
        start_date=body.start_date.isoformat(),
        end_date=body.end_date.isoformat(),
        income_data=json.dumps([IncomeSchema.model_validate(i).model_dump(mode="json") for i in incomes]),
        expense_data=json.dumps([ExpenseSchema.model_validate(e).model_dump(mode="json") for e in expenses]),
    )

    try:
        output = await advisor.get_advice(advice_input)
    except AdviceServiceError as e:
        logging.error(f"Advice service error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Advice service unavailable")

    logging.info(
        "Advice completed",
        extra={
            "request_id": request_id,
            "incomes": len(incomes),
            "expenses": len(expenses),
            "duration_ms": (time.time() - start_time) * 1000,
        },
    )
    return AdviceResponse(advice=output.advice)
