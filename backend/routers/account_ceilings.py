from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, transaction
from exceptions import NotFoundError
from schemas.account_ceilings import AccountCeiling, AccountCeilingCreate, AccountCeilingUpdate
from schemas.common import MutationResult
from crud import account_ceilings as crud_ceilings
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/account-ceilings", tags=["Account Ceilings"])


@router.get("/", response_model=List[AccountCeiling])
def read_ceilings(db: Session = Depends(get_db)):
    return crud_ceilings.list_ceilings(db)


@router.get("/{ceiling_id}", response_model=AccountCeiling)
def read_ceiling(ceiling_id: int, db: Session = Depends(get_db)):
    db_ceiling = crud_ceilings.get_ceiling(db, ceiling_id)
    if db_ceiling is None:
        raise NotFoundError(f"Ceiling {ceiling_id} not found")
    return crud_ceilings.ceiling_to_dict(db_ceiling)


@router.post("/", response_model=MutationResult[AccountCeiling], status_code=status.HTTP_201_CREATED)
def create_ceiling(
    ceiling: AccountCeilingCreate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_ceiling = crud_ceilings.create_ceiling(db, ceiling, created_by=get_user_identifier(user))
        data = AccountCeiling.model_validate(crud_ceilings.ceiling_to_dict(db_ceiling))
    return MutationResult(message="Ceiling created", data=data)


@router.patch("/{ceiling_id}", response_model=MutationResult[AccountCeiling])
def update_ceiling(
    ceiling_id: int,
    ceiling_update: AccountCeilingUpdate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_ceiling = crud_ceilings.update_ceiling(db, ceiling_id, ceiling_update, updated_by=get_user_identifier(user))
        data = AccountCeiling.model_validate(crud_ceilings.ceiling_to_dict(db_ceiling))
    return MutationResult(message="Ceiling updated", data=data)


@router.delete("/{ceiling_id}", response_model=MutationResult[AccountCeiling])
def delete_ceiling(
    ceiling_id: int,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_ceiling = crud_ceilings.delete_ceiling(db, ceiling_id, deleted_by=get_user_identifier(user))
        data = AccountCeiling.model_validate(crud_ceilings.ceiling_to_dict(db_ceiling))
    return MutationResult(message="Ceiling deleted", data=data)
