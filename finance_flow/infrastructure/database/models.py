"""SQLAlchemy ORM models for the finance tables"""

from sqlalchemy import Column, String, BigInteger, Boolean, Date, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


class BankRow(Base):
    """Bank holding one or more accounts"""

    __tablename__ = "bank"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)

    accounts = relationship(
        "AccountRow",
        back_populates="bank",
        cascade="all, delete-orphan",
        order_by="AccountRow.name",
    )


class AccountRow(Base):
    """Bank account (static opening balance)"""

    __tablename__ = "account"

    id = Column(String(36), primary_key=True)
    bank_id = Column(String(36), ForeignKey("bank.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)
    cbu = Column(Text, nullable=False, default="")
    alias = Column(Text, nullable=False, default="")
    balance_cents = Column(BigInteger, nullable=False, default=0)

    bank = relationship("BankRow", back_populates="accounts")


class CardRow(Base):
    """Credit card; closing/due are days of the month"""

    __tablename__ = "card"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    bank_id = Column(String(36), nullable=False, index=True)
    last_four_digits = Column(String(4), nullable=False)
    closing_day = Column(Integer, nullable=False)
    due_day = Column(Integer, nullable=False)


class WalletRow(Base):
    """Digital wallet"""

    __tablename__ = "wallet"

    id = Column(String(36), primary_key=True)
    name = Column(Text, nullable=False)
    balance_cents = Column(BigInteger, nullable=False, default=0)


class IncomeRow(Base):
    """Single financial inflow"""

    __tablename__ = "income"

    id = Column(String(36), primary_key=True)
    description = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    date = Column(Date, nullable=False, index=True)
    source_type = Column(Text, nullable=False)
    source_id = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ExpenseRow(Base):
    """Single financial outflow; installment members share installment_group_id"""

    __tablename__ = "expense"

    id = Column(String(36), primary_key=True)
    description = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    date = Column(Date, nullable=False, index=True)
    method = Column(Text, nullable=False)
    source_type = Column(Text, nullable=False)
    source_id = Column(Text, nullable=False)
    installments = Column(Integer, nullable=True)
    installment_group_id = Column(String(36), nullable=True, index=True)
    is_saving = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SettingRow(Base):
    """Key/value user settings"""

    __tablename__ = "setting"

    key = Column(Text, primary_key=True)
    value = Column(JSON, nullable=True)
