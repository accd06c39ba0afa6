"""Data access layer for finance entities"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from finance_flow.domain.exceptions import StorageError, ValidationError
from finance_flow.domain.models import Account, Bank, Card, Expense, Income, SourceRef, Wallet
from finance_flow.domain.store import RecordStore
from finance_flow.infrastructure.database.models import (
    AccountRow,
    BankRow,
    CardRow,
    ExpenseRow,
    IncomeRow,
    SettingRow,
    WalletRow,
)

SAVINGS_GOAL_KEY = "savingsGoal"


class _SqlRecordStore(RecordStore):
    """RecordStore over one ORM table; changes are flushed, ``atomic()`` commits"""

    row_class: Any = None

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def atomic(self) -> Iterator[None]:
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Transaction aborted: {e}") from e
        except Exception:
            self.db.rollback()
            raise

    def _to_row(self, record):
        raise NotImplementedError

    def _to_domain(self, row):
        raise NotImplementedError

    def _apply(self, row, record) -> None:
        raise NotImplementedError

    def add(self, record) -> None:
        self.db.add(self._to_row(record))
        self.db.flush()

    def add_many(self, records: Sequence) -> None:
        self.db.add_all([self._to_row(r) for r in records])
        self.db.flush()

    def update(self, record) -> None:
        row = self.db.get(self.row_class, record.id)
        if row is None:
            raise StorageError(f"update {record.id}: no such record")
        self._apply(row, record)
        self.db.flush()

    def delete(self, record_id: str) -> None:
        self.db.query(self.row_class).filter(self.row_class.id == record_id).delete()

    def delete_many(self, record_ids: Sequence[str]) -> None:
        if not record_ids:
            return
        self.db.query(self.row_class).filter(self.row_class.id.in_(list(record_ids))).delete()

    def query_all(self) -> List:
        rows = self.db.query(self.row_class).order_by(self.row_class.date, self.row_class.id).all()
        return [self._to_domain(r) for r in rows]

    def get(self, record_id: str) -> Optional[Any]:
        row = self.db.get(self.row_class, record_id)
        return self._to_domain(row) if row is not None else None


class ExpenseRepository(_SqlRecordStore):
    """Repository for expenses"""

    row_class = ExpenseRow

    def _to_row(self, record: Expense) -> ExpenseRow:
        row = ExpenseRow(id=record.id)
        self._apply(row, record)
        return row

    def _apply(self, row: ExpenseRow, record: Expense) -> None:
        row.description = record.description
        row.amount_cents = record.amount_cents
        row.date = record.date
        row.method = record.method
        row.source_type = record.source.type
        row.source_id = record.source.id
        row.installments = record.installments
        row.installment_group_id = record.installment_group_id
        row.is_saving = record.is_saving

    def _to_domain(self, row: ExpenseRow) -> Expense:
        return Expense(
            id=row.id,
            description=row.description,
            amount_cents=row.amount_cents,
            date=row.date,
            method=row.method,
            source=SourceRef(type=row.source_type, id=row.source_id),
            installments=row.installments,
            installment_group_id=row.installment_group_id,
            is_saving=bool(row.is_saving),
        )

    def find_by_group(self, group_id: str) -> List[Expense]:
        rows = (
            self.db.query(ExpenseRow)
            .filter(ExpenseRow.installment_group_id == group_id)
            .order_by(ExpenseRow.date)
            .all()
        )
        return [self._to_domain(r) for r in rows]


class IncomeRepository(_SqlRecordStore):
    """Repository for incomes"""

    row_class = IncomeRow

    def _to_row(self, record: Income) -> IncomeRow:
        row = IncomeRow(id=record.id)
        self._apply(row, record)
        return row

    def _apply(self, row: IncomeRow, record: Income) -> None:
        row.description = record.description
        row.amount_cents = record.amount_cents
        row.date = record.date
        row.source_type = record.source.type
        row.source_id = record.source.id

    def _to_domain(self, row: IncomeRow) -> Income:
        return Income(
            id=row.id,
            description=row.description,
            amount_cents=row.amount_cents,
            date=row.date,
            source=SourceRef(type=row.source_type, id=row.source_id),
        )


def _bank_to_domain(row: BankRow) -> Bank:
    return Bank(
        id=row.id,
        name=row.name,
        accounts=[
            Account(id=a.id, name=a.name, cbu=a.cbu, alias=a.alias, balance_cents=a.balance_cents)
            for a in row.accounts
        ],
    )


def _card_to_domain(row: CardRow) -> Card:
    return Card(
        id=row.id,
        name=row.name,
        bank_id=row.bank_id,
        last_four_digits=row.last_four_digits,
        closing_day=row.closing_day,
        due_day=row.due_day,
    )


def _wallet_to_domain(row: WalletRow) -> Wallet:
    return Wallet(id=row.id, name=row.name, balance_cents=row.balance_cents)


class ReferenceRepository:
    """
    Banks, accounts, cards and wallets.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    # Banks and accounts

    def list_banks(self) -> List[Bank]:
        return [_bank_to_domain(r) for r in self.db.query(BankRow).order_by(BankRow.name).all()]

    def get_bank(self, bank_id: str) -> Optional[Bank]:
        row = self.db.get(BankRow, bank_id)
        return _bank_to_domain(row) if row is not None else None

    def save_bank(self, bank: Bank) -> Bank:
        """Insert or rename a bank; accounts are managed separately"""
        row = self.db.get(BankRow, bank.id)
        if row is None:
            row = BankRow(id=bank.id)
            self.db.add(row)
        row.name = bank.name
        self.db.flush()
        return _bank_to_domain(row)

    def delete_bank(self, bank_id: str) -> bool:
        row = self.db.get(BankRow, bank_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True

    def save_account(self, bank_id: str, account: Account) -> Optional[Account]:
        bank_row = self.db.get(BankRow, bank_id)
        if bank_row is None:
            return None
        row = self.db.get(AccountRow, account.id)
        if row is None:
            row = AccountRow(id=account.id)
            bank_row.accounts.append(row)
        elif row.bank_id != bank_id:
            return None
        row.name = account.name
        row.cbu = account.cbu
        row.alias = account.alias
        row.balance_cents = account.balance_cents
        self.db.flush()
        return account

    def delete_account(self, bank_id: str, account_id: str) -> bool:
        row = self.db.get(AccountRow, account_id)
        if row is None or row.bank_id != bank_id:
            return False
        self.db.delete(row)
        self.db.flush()
        return True

    # Cards

    def list_cards(self) -> List[Card]:
        return [_card_to_domain(r) for r in self.db.query(CardRow).order_by(CardRow.name).all()]

    def get_card(self, card_id: str) -> Optional[Card]:
        row = self.db.get(CardRow, card_id)
        return _card_to_domain(row) if row is not None else None

    def save_card(self, card: Card) -> Card:
        row = self.db.get(CardRow, card.id)
        if row is None:
            row = CardRow(id=card.id)
            self.db.add(row)
        row.name = card.name
        row.bank_id = card.bank_id
        row.last_four_digits = card.last_four_digits
        row.closing_day = card.closing_day
        row.due_day = card.due_day
        self.db.flush()
        return _card_to_domain(row)

    def delete_card(self, card_id: str) -> bool:
        return self.db.query(CardRow).filter(CardRow.id == card_id).delete() > 0

    # Wallets

    def list_wallets(self) -> List[Wallet]:
        return [_wallet_to_domain(r) for r in self.db.query(WalletRow).order_by(WalletRow.name).all()]

    def get_wallet(self, wallet_id: str) -> Optional[Wallet]:
        row = self.db.get(WalletRow, wallet_id)
        return _wallet_to_domain(row) if row is not None else None

    def save_wallet(self, wallet: Wallet) -> Wallet:
        row = self.db.get(WalletRow, wallet.id)
        if row is None:
            row = WalletRow(id=wallet.id)
            self.db.add(row)
        row.name = wallet.name
        row.balance_cents = wallet.balance_cents
        self.db.flush()
        return _wallet_to_domain(row)

    def delete_wallet(self, wallet_id: str) -> bool:
        return self.db.query(WalletRow).filter(WalletRow.id == wallet_id).delete() > 0

    # Source resolution

    def source_exists(self, source: SourceRef) -> bool:
        """
        Resolve a tagged source reference against its own lookup table.

        Bank references point at an account id; cash has no table.
        """
        if source.type == "cash":
            return True
        if source.type == "bank":
            return self.db.get(AccountRow, source.id) is not None
        if source.type == "wallet":
            return self.db.get(WalletRow, source.id) is not None
        if source.type == "card":
            return self.db.get(CardRow, source.id) is not None
        return False

    def require_source(self, operation: str, source: SourceRef) -> None:
        """
        Raises:
            ValidationError: the reference does not resolve
        """
        if not self.source_exists(source):
            raise ValidationError(f"{operation}: unknown {source.type} source '{source.id}'")


class SettingsRepository:
    """Key/value settings (savings goal)"""

    def __init__(self, db: Session):
        self.db = db

    def get_savings_goal(self, default: int) -> int:
        row = self.db.get(SettingRow, SAVINGS_GOAL_KEY)
        return int(row.value) if row is not None and row.value is not None else default

    def set_savings_goal(self, goal: int) -> int:
        row = self.db.get(SettingRow, SAVINGS_GOAL_KEY)
        if row is None:
            row = SettingRow(key=SAVINGS_GOAL_KEY)
            self.db.add(row)
        row.value = goal
        self.db.flush()
        return goal


class DataRepository:
    """Whole-database operations: snapshot export, replace-all import, reset"""

    def __init__(self, db: Session):
        self.db = db

    def export_snapshot(self, default_savings_goal: int) -> Dict[str, Any]:
        references = ReferenceRepository(self.db)
        return {
            "banks": references.list_banks(),
            "cards": references.list_cards(),
            "wallets": references.list_wallets(),
            "incomes": IncomeRepository(self.db).query_all(),
            "expenses": ExpenseRepository(self.db).query_all(),
            "savings_goal": SettingsRepository(self.db).get_savings_goal(default_savings_goal),
        }

    def clear(self) -> None:
        for row_class in (AccountRow, BankRow, CardRow, WalletRow, IncomeRow, ExpenseRow, SettingRow):
            self.db.query(row_class).delete()
        self.db.flush()
        self.db.expunge_all()

    def replace_all(
        self,
        banks: Sequence[Bank],
        cards: Sequence[Card],
        wallets: Sequence[Wallet],
        incomes: Sequence[Income],
        expenses: Sequence[Expense],
        savings_goal: int,
    ) -> None:
        """
        Clear every table and load the snapshot; the caller commits or rolls back.

        Raises:
            ValidationError: an account id appears more than once in the snapshot
        """
        self.clear()
        references = ReferenceRepository(self.db)
        seen_accounts = set()
        for bank in banks:
            references.save_bank(bank)
            for account in bank.accounts:
                if account.id in seen_accounts:
                    raise ValidationError(f"import bank {bank.id}: duplicate account id '{account.id}'")
                seen_accounts.add(account.id)
                if references.save_account(bank.id, account) is None:
                    raise ValidationError(f"import bank {bank.id}: account '{account.id}' could not be stored")
        for card in cards:
            references.save_card(card)
        for wallet in wallets:
            references.save_wallet(wallet)
        IncomeRepository(self.db).add_many(incomes)
        ExpenseRepository(self.db).add_many(expenses)
        SettingsRepository(self.db).set_savings_goal(savings_goal)
