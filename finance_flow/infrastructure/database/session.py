"""Database session management"""

import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from finance_flow.config import settings
from finance_flow.infrastructure.database.models import AccountRow, Base, BankRow, SettingRow
from finance_flow.infrastructure.database.repositories import SAVINGS_GOAL_KEY

# SQLite connections are shared across FastAPI's worker threads
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Verify connections before using
    connect_args=connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def seed_defaults(db: Session, savings_goal: int) -> None:
    """Populate an empty database with the savings goal and the savings bank"""
    if db.get(SettingRow, SAVINGS_GOAL_KEY) is not None:
        return

    db.add(SettingRow(key=SAVINGS_GOAL_KEY, value=savings_goal))
    if db.get(BankRow, "bank-ahorros") is None:
        bank = BankRow(id="bank-ahorros", name="Ahorros")
        bank.accounts.append(AccountRow(id="account-ahorros-1", name="Cuenta de Ahorro", cbu="", alias="", balance_cents=0))
        db.add(bank)
    db.commit()
    logging.info("Seeded empty database", extra={"savings_goal": savings_goal})


def init_db() -> None:
    """Create tables and seed defaults on first start"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed_defaults(db, settings.default_savings_goal)
    finally:
        db.close()
