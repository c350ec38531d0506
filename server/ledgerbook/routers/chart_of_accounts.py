from datetime import date
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ledgerbook.accounting.reports import (
    get_account_ledger,
    get_balance_sheet,
    get_ledger_summary,
    get_profit_loss,
    get_trial_balance,
)
from ledgerbook.accounting.service import normal_balance_for_type
from ledgerbook.chart_of_accounts import schemas
from ledgerbook.db import get_db
from ledgerbook.models import Account, JournalLine
from ledgerbook.routers.common import to_http_exception

router = APIRouter(prefix="/api", tags=["chart-of-accounts"])


def _serialize_account(account: Account) -> schemas.ChartAccountResponse:
    parent_summary = None
    if account.parent:
        parent_summary = schemas.AccountParentSummary(id=account.parent.id, name=account.parent.name, code=account.parent.code)
    return schemas.ChartAccountResponse(
        id=account.id,
        code=account.code,
        name=account.name,
        type=account.type,
        normal_balance=account.normal_balance,
        description=account.description,
        is_header=account.is_header,
        is_active=account.is_active,
        parent_account_id=account.parent_id,
        parent_account=parent_summary,
        opening_balance=Decimal(account.opening_balance or 0),
        current_balance=Decimal(account.current_balance or 0),
        created_at=account.created_at,
        updated_at=account.updated_at,
    )


def _get_account(db: Session, account_id: int) -> Account:
    account = db.query(Account).options(selectinload(Account.parent)).filter(Account.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Account not found.")
    return account


@router.get("/accounts", response_model=List[schemas.ChartAccountResponse])
def list_accounts(
    type: Optional[schemas.AccountType] = None,
    active: Optional[bool] = None,
    q: Optional[str] = None,
    db: Session = Depends(get_db),
):
    query = db.query(Account).options(selectinload(Account.parent))
    if type:
        query = query.filter(Account.type == type)
    if active is not None:
        query = query.filter(Account.is_active.is_(active))
    if q:
        like = f"%{q.lower()}%"
        query = query.filter(func.lower(Account.name).like(like) | func.lower(Account.code).like(like))

    accounts = query.order_by(Account.code.asc()).all()
    return [_serialize_account(account) for account in accounts]


@router.post("/accounts", response_model=schemas.ChartAccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(payload: schemas.ChartAccountCreate, db: Session = Depends(get_db)):
    if payload.parent_account_id:
        parent = db.query(Account).filter(Account.id == payload.parent_account_id).first()
        if not parent:
            raise HTTPException(status_code=404, detail="Parent account not found.")
        if parent.type != payload.type:
            raise HTTPException(status_code=400, detail="Parent account must have the same type.")

    account = Account(
        code=payload.code.strip().upper(),
        name=payload.name,
        type=payload.type,
        normal_balance=normal_balance_for_type(payload.type),
        description=payload.description,
        is_header=payload.is_header,
        is_active=payload.is_active,
        parent_id=payload.parent_account_id,
        opening_balance=payload.opening_balance,
        current_balance=payload.opening_balance,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Account code already exists.") from None
    return _serialize_account(_get_account(db, account.id))


@router.get("/accounts/{account_id}", response_model=schemas.ChartAccountResponse)
def get_account(account_id: int, db: Session = Depends(get_db)):
    return _serialize_account(_get_account(db, account_id))


@router.put("/accounts/{account_id}", response_model=schemas.ChartAccountResponse)
@router.patch("/accounts/{account_id}", response_model=schemas.ChartAccountResponse)
def update_account(account_id: int, payload: schemas.ChartAccountUpdate, db: Session = Depends(get_db)):
    account = _get_account(db, account_id)

    data = payload.model_dump(exclude_unset=True)
    if "parent_account_id" in data:
        parent_id = data["parent_account_id"]
        if parent_id == account.id:
            raise HTTPException(status_code=400, detail="An account cannot be its own parent.")
        if parent_id is not None and not db.query(Account).filter(Account.id == parent_id).first():
            raise HTTPException(status_code=404, detail="Parent account not found.")
        account.parent_id = parent_id

    for key in ["name", "description", "is_active"]:
        if key in data:
            setattr(account, key, data[key])

    db.commit()
    return _serialize_account(_get_account(db, account_id))


@router.delete("/accounts/{account_id}", response_model=dict)
def delete_account(account_id: int, db: Session = Depends(get_db)):
    account = _get_account(db, account_id)

    in_use = (
        db.query(JournalLine.id).filter(JournalLine.account_id == account_id).first() is not None
        or db.query(Account.id).filter(Account.parent_id == account_id).first() is not None
    )
    if in_use:
        raise HTTPException(status_code=409, detail="Cannot delete account that is in use. Deactivate it instead.")

    db.delete(account)
    db.commit()
    return {"status": "ok"}


@router.get("/accounts/{account_id}/ledger", response_model=schemas.AccountLedgerResponse)
def account_ledger(
    account_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        return get_account_ledger(db, account_id, start_date, end_date)
    except LookupError as exc:
        raise to_http_exception(exc)


@router.get("/ledger/summary", response_model=List[schemas.LedgerSummaryRow])
def ledger_summary(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    show_zero_balances: bool = Query(False),
    db: Session = Depends(get_db),
):
    return get_ledger_summary(db, start_date, end_date, show_zero_balances)


@router.get("/trial-balance", response_model=schemas.TrialBalanceResponse)
def trial_balance(as_of: Optional[date] = Query(None), db: Session = Depends(get_db)):
    return get_trial_balance(db, as_of)


@router.get("/profit-loss", response_model=schemas.ProfitLossResponse)
def profit_loss(db: Session = Depends(get_db)):
    return get_profit_loss(db)


@router.get("/balance-sheet", response_model=schemas.BalanceSheetResponse)
def balance_sheet(db: Session = Depends(get_db)):
    return get_balance_sheet(db)
