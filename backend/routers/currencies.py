from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, transaction
from exceptions import NotFoundError
from schemas.currencies import Currency, CurrencyCreate, CurrencyUpdate
from schemas.common import MutationResult
from crud import currencies as crud_currencies
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/currencies", tags=["Currencies"])


@router.get("/", response_model=List[Currency])
def read_currencies(include_inactive: bool = False, db: Session = Depends(get_db)):
    """Active currencies, local currency first."""
    return crud_currencies.list_currencies(db, include_inactive=include_inactive)


@router.get("/{currency_id}", response_model=Currency)
def read_currency(currency_id: int, db: Session = Depends(get_db)):
    db_currency = crud_currencies.get_currency(db, currency_id)
    if db_currency is None:
        raise NotFoundError(f"Currency {currency_id} not found")
    return db_currency


@router.post("/", response_model=MutationResult[Currency], status_code=status.HTTP_201_CREATED)
def create_currency(
    currency: CurrencyCreate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_currency = crud_currencies.create_currency(db, currency, created_by=get_user_identifier(user))
    return MutationResult(message="Currency created", data=Currency.model_validate(db_currency))


@router.patch("/{currency_id}", response_model=MutationResult[Currency])
def update_currency(
    currency_id: int,
    currency_update: CurrencyUpdate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_currency = crud_currencies.update_currency(db, currency_id, currency_update, updated_by=get_user_identifier(user))
    return MutationResult(message="Currency updated", data=Currency.model_validate(db_currency))


@router.delete("/{currency_id}", response_model=MutationResult[Currency])
def deactivate_currency(
    currency_id: int,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_currency = crud_currencies.deactivate_currency(db, currency_id, deleted_by=get_user_identifier(user))
    return MutationResult(message="Currency deactivated", data=Currency.model_validate(db_currency))
