"""Pytest fixtures for testing"""

import itertools
import pytest
from datetime import date
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_flow.api.main import create_app
from finance_flow.infrastructure.database.models import AccountRow, Base, BankRow, CardRow, WalletRow
from finance_flow.infrastructure.database.session import get_db
from finance_flow.domain.models import ExpenseInput, SourceRef


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def reference_data(db: Session) -> dict:
    """One bank account, one wallet and one credit card to point sources at"""
    bank = BankRow(id="bank-1", name="Banco Nacion")
    bank.accounts.append(AccountRow(id="account-1", name="Caja de Ahorro", cbu="", alias="", balance_cents=0))
    db.add(bank)
    db.add(WalletRow(id="wallet-1", name="Mercado Pago", balance_cents=0))
    db.add(CardRow(id="card-1", name="Visa", bank_id="bank-1", last_four_digits="4242", closing_day=25, due_day=5))
    db.commit()
    return {"account": "account-1", "wallet": "wallet-1", "card": "card-1"}


@pytest.fixture
def sequential_ids() -> Callable[[], str]:
    """Deterministic id factory: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def card_source() -> SourceRef:
    return SourceRef(type="card", id="card-1")


@pytest.fixture
def credit_purchase(card_source: SourceRef) -> ExpenseInput:
    """$300 laptop on credit in 3 installments"""
    return ExpenseInput(
        description="Laptop",
        amount_cents=30000,
        date=date(2024, 1, 15),
        method="credit",
        source=card_source,
        installments=3,
    )

