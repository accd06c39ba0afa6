"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

PAYMENT_METHODS = ("debit", "credit", "cash", "transfer")
EXPENSE_SOURCE_TYPES = ("bank", "wallet", "card", "cash")
INCOME_SOURCE_TYPES = ("bank", "wallet")


@dataclass(frozen=True)
class SourceRef:
    """Typed pointer to the instrument that funded or received a transaction"""

    type: str  # "bank" | "wallet" | "card" | "cash"
    id: str


@dataclass
class ExpenseInput:
    """Fields supplied by the user when recording an expense"""

    description: str
    amount_cents: int
    date: date
    method: str
    source: SourceRef
    installments: Optional[int] = None
    is_saving: bool = False


@dataclass
class Expense:
    """Stored expense; installment members carry the per-installment share"""

    id: str
    description: str
    amount_cents: int
    date: date
    method: str
    source: SourceRef
    installments: Optional[int] = None
    installment_group_id: Optional[str] = None
    is_saving: bool = False


@dataclass
class Income:
    """Stored income"""

    id: str
    description: str
    amount_cents: int
    date: date
    source: SourceRef


@dataclass
class Account:
    """Bank account reference data"""

    id: str
    name: str
    cbu: str = ""
    alias: str = ""
    balance_cents: int = 0


@dataclass
class Bank:
    id: str
    name: str
    accounts: List[Account] = field(default_factory=list)


@dataclass
class Card:
    id: str
    name: str
    bank_id: str
    last_four_digits: str
    closing_day: int
    due_day: int


@dataclass
class Wallet:
    id: str
    name: str
    balance_cents: int = 0


@dataclass
class MonthlySummary:
    """Dashboard totals for one calendar month"""

    year: int
    month: int
    total_income_cents: int
    total_expenses_cents: int
    carry_over_cents: int
    balance_cents: int
    total_savings_cents: int


@dataclass
class MonthTotals:
    """Single point of the yearly chart series"""

    month: int
    income_cents: int
    expense_cents: int  # savings-flagged expenses excluded
    savings_cents: int
