from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from database import get_db
from schemas.ledger_reports import AccountBalance, TrialBalance, AccountStatement
from crud import ledger_reports

router = APIRouter(prefix="/ledger", tags=["Ledger Reports"])


@router.get("/balance/{account_id}", response_model=AccountBalance)
def read_account_balance(account_id: int, currency_id: int, as_of: Optional[date] = None, db: Session = Depends(get_db)):
    return ledger_reports.account_balance(db, account_id, currency_id, as_of=as_of)


@router.get("/trial-balance", response_model=TrialBalance)
def read_trial_balance(currency_id: int, as_of: Optional[date] = None, db: Session = Depends(get_db)):
    return ledger_reports.trial_balance(db, currency_id, as_of=as_of)


@router.get("/statement/{account_id}", response_model=AccountStatement)
def read_account_statement(
    account_id: int,
    currency_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    return ledger_reports.account_statement(db, account_id, currency_id, start_date=start_date, end_date=end_date)
