"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import List, Literal, Optional


class SourceRefSchema(BaseModel):
    """Typed pointer to a bank account, wallet, card or cash"""

    model_config = ConfigDict(from_attributes=True)

    type: Literal["bank", "wallet", "card", "cash"]
    id: str = Field(..., min_length=1)


class IncomeSourceSchema(SourceRefSchema):
    type: Literal["bank", "wallet"]


class ExpenseCreate(BaseModel):
    """Request body for POST /v1/expenses and PUT /v1/expenses/{id}"""

    description: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0, description="Total amount in cents; split across installments")
    date: date
    method: Literal["debit", "credit", "cash", "transfer"]
    source: SourceRefSchema
    installments: Optional[int] = Field(None, ge=1, description="Only applied when method is credit")
    is_saving: bool = False


class ExpenseSchema(BaseModel):
    """Stored expense record"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str
    amount_cents: int
    date: date
    method: Literal["debit", "credit", "cash", "transfer"]
    source: SourceRefSchema
    installments: Optional[int] = None
    installment_group_id: Optional[str] = None
    is_saving: bool = False


class IncomeCreate(BaseModel):
    """Request body for POST /v1/incomes and PUT /v1/incomes/{id}"""

    description: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0)
    date: date
    source: IncomeSourceSchema


class IncomeSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    description: str
    amount_cents: int
    date: date
    source: IncomeSourceSchema


class DeleteResponse(BaseModel):
    deleted: int


class MonthlySummaryResponse(BaseModel):
    """Response for GET /v1/summary/monthly"""

    year: int
    month: int
    total_income_cents: int
    total_expenses_cents: int
    carry_over_cents: int
    balance_cents: int
    total_savings_cents: int
    savings_goal_percent: int
    savings_target_cents: int


class MonthTotalsSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: int
    income_cents: int
    expense_cents: int
    savings_cents: int


class YearlySeriesResponse(BaseModel):
    """Response for GET /v1/summary/yearly"""

    year: int
    months: List[MonthTotalsSchema]


class YearsResponse(BaseModel):
    years: List[int]


class AccountCreate(BaseModel):
    name: str = Field(..., min_length=1)
    cbu: str = ""
    alias: str = ""
    balance_cents: int = 0


class AccountSchema(AccountCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str


class BankCreate(BaseModel):
    name: str = Field(..., min_length=1)


class BankSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    accounts: List[AccountSchema] = []


class CardCreate(BaseModel):
    name: str = Field(..., min_length=1)
    bank_id: str = Field(..., min_length=1)
    last_four_digits: str = Field(..., pattern=r"^\d{4}$")
    closing_day: int = Field(..., ge=1, le=31)
    due_day: int = Field(..., ge=1, le=31)


class CardSchema(CardCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str


class WalletCreate(BaseModel):
    name: str = Field(..., min_length=1)
    balance_cents: int = 0


class WalletSchema(WalletCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str


class SavingsGoalSchema(BaseModel):
    """Percent of monthly income the user aims to save"""

    goal: int = Field(..., ge=0, le=100)


class DataSnapshot(BaseModel):
    """Full record set for JSON import/export"""

    model_config = ConfigDict(from_attributes=True)

    banks: List[BankSchema] = []
    cards: List[CardSchema] = []
    wallets: List[WalletSchema] = []
    incomes: List[IncomeSchema] = []
    expenses: List[ExpenseSchema] = []
    savings_goal: int = Field(10, ge=0, le=100)


class AdviceRequest(BaseModel):
    """Request body for POST /v1/advice"""

    start_date: date
    end_date: date


class AdviceResponse(BaseModel):
    advice: str
