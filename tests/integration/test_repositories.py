"""Integration tests for the SQL record stores"""

import pytest
from dataclasses import replace
from datetime import date
from sqlalchemy.orm import Session
from finance_flow.domain.exceptions import StorageError, ValidationError
from finance_flow.domain.expenses import ExpenseManager
from finance_flow.domain.models import Income, SourceRef
from finance_flow.infrastructure.database.repositories import (
    ExpenseRepository,
    IncomeRepository,
    ReferenceRepository,
    SettingsRepository,
)
from finance_flow.infrastructure.database.session import seed_defaults

pytestmark = pytest.mark.integration


def salary(income_id="inc-1") -> Income:
    return Income(
        id=income_id,
        description="Salary",
        amount_cents=100000,
        date=date(2024, 1, 5),
        source=SourceRef(type="bank", id="account-1"),
    )


def test_atomic_commits_on_success(db: Session):
    repo = IncomeRepository(db)

    with repo.atomic():
        repo.add(salary())

    db.expire_all()
    assert [i.id for i in repo.query_all()] == ["inc-1"]


def test_atomic_rolls_back_on_error(db: Session):
    repo = IncomeRepository(db)

    with pytest.raises(RuntimeError):
        with repo.atomic():
            repo.add(salary())
            raise RuntimeError("boom")

    assert repo.query_all() == []


def test_duplicate_id_raises_storage_error(db: Session):
    repo = IncomeRepository(db)
    with repo.atomic():
        repo.add(salary())

    with pytest.raises(StorageError):
        with repo.atomic():
            repo.add(salary())

    assert len(repo.query_all()) == 1


def test_update_missing_record_raises_storage_error(db: Session):
    repo = IncomeRepository(db)

    with pytest.raises(StorageError):
        with repo.atomic():
            repo.update(salary("ghost"))


def test_find_by_group_and_delete_many(db: Session, credit_purchase, sequential_ids):
    repo = ExpenseRepository(db)
    records = ExpenseManager(repo, id_factory=sequential_ids).add(credit_purchase)

    members = repo.find_by_group(records[0].installment_group_id)
    assert [m.id for m in members] == [r.id for r in records]
    assert members[1].source == SourceRef(type="card", id="card-1")

    with repo.atomic():
        repo.delete_many([r.id for r in records])
    assert repo.query_all() == []


def test_manager_update_is_atomic_on_sql_store(db: Session, credit_purchase, sequential_ids):
    """A failing insert after the group delete leaves the old group in place"""
    manager = ExpenseManager(ExpenseRepository(db), id_factory=sequential_ids)
    records = manager.add(credit_purchase)
    cash_purchase = replace(credit_purchase, method="cash", installments=None, source=SourceRef(type="cash", id="cash"))
    cash = manager.add(cash_purchase)[0]

    # Third new installment reuses the cash record's id
    new_ids = iter(["group-x", "new-1", "new-2", cash.id])
    colliding = ExpenseManager(ExpenseRepository(db), id_factory=new_ids.__next__)
    with pytest.raises(StorageError):
        colliding.update(replace(records[0], amount_cents=90000))

    stored = sorted(ExpenseRepository(db).query_all(), key=lambda e: (e.date, e.id))
    assert [e.id for e in stored if e.installment_group_id] == [r.id for r in records]
    assert [e.amount_cents for e in stored if e.installment_group_id] == [10000, 10000, 10000]
    assert cash.id in {e.id for e in stored}


def test_reference_lookup(db: Session, reference_data):
    references = ReferenceRepository(db)

    assert references.source_exists(SourceRef(type="bank", id="account-1"))
    assert references.source_exists(SourceRef(type="wallet", id="wallet-1"))
    assert references.source_exists(SourceRef(type="card", id="card-1"))
    assert references.source_exists(SourceRef(type="cash", id="cash"))
    assert not references.source_exists(SourceRef(type="bank", id="bank-1"))
    with pytest.raises(ValidationError):
        references.require_source("add expense", SourceRef(type="wallet", id="card-1"))


def test_seed_defaults_only_on_empty_database(db: Session):
    seed_defaults(db, 15)
    settings_repo = SettingsRepository(db)
    assert settings_repo.get_savings_goal(10) == 15
    assert ReferenceRepository(db).get_bank("bank-ahorros").accounts[0].id == "account-ahorros-1"

    settings_repo.set_savings_goal(40)
    db.commit()
    seed_defaults(db, 15)
    assert settings_repo.get_savings_goal(10) == 40
