"""Reference data endpoints - banks and their accounts, cards, wallets, savings goal"""

import uuid
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from finance_flow.api.v1.schemas import (
    AccountCreate,
    AccountSchema,
    BankCreate,
    BankSchema,
    CardCreate,
    CardSchema,
    SavingsGoalSchema,
    WalletCreate,
    WalletSchema,
)
from finance_flow.config import settings
from finance_flow.domain.models import Account, Bank, Card, Wallet
from finance_flow.infrastructure.database.session import get_db
from finance_flow.infrastructure.database.repositories import ReferenceRepository, SettingsRepository

router = APIRouter()


def _new_id() -> str:
    return str(uuid.uuid4())


# Banks


@router.get("/banks", response_model=List[BankSchema])
def list_banks(db: Session = Depends(get_db)):
    return [BankSchema.model_validate(b) for b in ReferenceRepository(db).list_banks()]


@router.post("/banks", response_model=BankSchema, status_code=201)
def create_bank(body: BankCreate, db: Session = Depends(get_db)):
    bank = ReferenceRepository(db).save_bank(Bank(id=_new_id(), name=body.name))
    db.commit()
    return BankSchema.model_validate(bank)


@router.put("/banks/{bank_id}", response_model=BankSchema)
def update_bank(bank_id: str, body: BankCreate, db: Session = Depends(get_db)):
    repo = ReferenceRepository(db)
    if repo.get_bank(bank_id) is None:
        raise HTTPException(status_code=404, detail="Bank not found")
    repo.save_bank(Bank(id=bank_id, name=body.name))
    db.commit()
    return BankSchema.model_validate(repo.get_bank(bank_id))


@router.delete("/banks/{bank_id}", status_code=204)
def delete_bank(bank_id: str, db: Session = Depends(get_db)):
    """Delete a bank together with its accounts"""
    ReferenceRepository(db).delete_bank(bank_id)
    db.commit()
    return Response(status_code=204)


@router.post("/banks/{bank_id}/accounts", response_model=AccountSchema, status_code=201)
def create_account(bank_id: str, body: AccountCreate, db: Session = Depends(get_db)):
    account = ReferenceRepository(db).save_account(bank_id, Account(id=_new_id(), **body.model_dump()))
    if account is None:
        raise HTTPException(status_code=404, detail="Bank not found")
    db.commit()
    return AccountSchema.model_validate(account)


@router.put("/banks/{bank_id}/accounts/{account_id}", response_model=AccountSchema)
def update_account(bank_id: str, account_id: str, body: AccountCreate, db: Session = Depends(get_db)):
    repo = ReferenceRepository(db)
    bank = repo.get_bank(bank_id)
    if bank is None or all(a.id != account_id for a in bank.accounts):
        raise HTTPException(status_code=404, detail="Account not found")
    account = repo.save_account(bank_id, Account(id=account_id, **body.model_dump()))
    db.commit()
    return AccountSchema.model_validate(account)


@router.delete("/banks/{bank_id}/accounts/{account_id}", status_code=204)
def delete_account(bank_id: str, account_id: str, db: Session = Depends(get_db)):
    ReferenceRepository(db).delete_account(bank_id, account_id)
    db.commit()
    return Response(status_code=204)


# Cards


@router.get("/cards", response_model=List[CardSchema])
def list_cards(db: Session = Depends(get_db)):
    return [CardSchema.model_validate(c) for c in ReferenceRepository(db).list_cards()]


@router.post("/cards", response_model=CardSchema, status_code=201)
def create_card(body: CardCreate, db: Session = Depends(get_db)):
    repo = ReferenceRepository(db)
    if repo.get_bank(body.bank_id) is None:
        raise HTTPException(status_code=422, detail=f"Unknown bank '{body.bank_id}'")
    card = repo.save_card(Card(id=_new_id(), **body.model_dump()))
    db.commit()
    return CardSchema.model_validate(card)


@router.put("/cards/{card_id}", response_model=CardSchema)
def update_card(card_id: str, body: CardCreate, db: Session = Depends(get_db)):
    repo = ReferenceRepository(db)
    if repo.get_card(card_id) is None:
        raise HTTPException(status_code=404, detail="Card not found")
    card = repo.save_card(Card(id=card_id, **body.model_dump()))
    db.commit()
    return CardSchema.model_validate(card)


@router.delete("/cards/{card_id}", status_code=204)
def delete_card(card_id: str, db: Session = Depends(get_db)):
    ReferenceRepository(db).delete_card(card_id)
    db.commit()
    return Response(status_code=204)


# Wallets


@router.get("/wallets", response_model=List[WalletSchema])
def list_wallets(db: Session = Depends(get_db)):
    return [WalletSchema.model_validate(w) for w in ReferenceRepository(db).list_wallets()]


@router.post("/wallets", response_model=WalletSchema, status_code=201)
def create_wallet(body: WalletCreate, db: Session = Depends(get_db)):
    wallet = ReferenceRepository(db).save_wallet(Wallet(id=_new_id(), **body.model_dump()))
    db.commit()
    return WalletSchema.model_validate(wallet)


@router.put("/wallets/{wallet_id}", response_model=WalletSchema)
def update_wallet(wallet_id: str, body: WalletCreate, db: Session = Depends(get_db)):
    repo = ReferenceRepository(db)
    if repo.get_wallet(wallet_id) is None:
        raise HTTPException(status_code=404, detail="Wallet not found")
    wallet = repo.save_wallet(Wallet(id=wallet_id, **body.model_dump()))
    db.commit()
    return WalletSchema.model_validate(wallet)


@router.delete("/wallets/{wallet_id}", status_code=204)
def delete_wallet(wallet_id: str, db: Session = Depends(get_db)):
    ReferenceRepository(db).delete_wallet(wallet_id)
    db.commit()
    return Response(status_code=204)


# Savings goal


@router.get("/settings/savings-goal", response_model=SavingsGoalSchema)
def get_savings_goal(db: Session = Depends(get_db)):
    return SavingsGoalSchema(goal=SettingsRepository(db).get_savings_goal(settings.default_savings_goal))


@router.put("/settings/savings-goal", response_model=SavingsGoalSchema)
def update_savings_goal(body: SavingsGoalSchema, db: Session = Depends(get_db)):
    goal = SettingsRepository(db).set_savings_goal(body.goal)
    db.commit()
    return SavingsGoalSchema(goal=goal)
