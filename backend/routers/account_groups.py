from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db, transaction
from exceptions import NotFoundError
from schemas.accounts import AccountGroup, AccountGroupCreate, AccountGroupUpdate
from schemas.common import MutationResult
from crud import account_groups as crud_groups
from utils.auth_utils import get_current_user, get_user_identifier

router = APIRouter(prefix="/account-groups", tags=["Account Groups"])


@router.get("/", response_model=List[AccountGroup])
def read_account_groups(include_inactive: bool = False, db: Session = Depends(get_db)):
    return crud_groups.list_account_groups(db, include_inactive=include_inactive)


@router.get("/{group_id}", response_model=AccountGroup)
def read_account_group(group_id: int, db: Session = Depends(get_db)):
    db_group = crud_groups.get_account_group(db, group_id)
    if db_group is None:
        raise NotFoundError(f"Account group {group_id} not found")
    return db_group


@router.post("/", response_model=MutationResult[AccountGroup], status_code=status.HTTP_201_CREATED)
def create_account_group(
    group: AccountGroupCreate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_group = crud_groups.create_account_group(db, group, created_by=get_user_identifier(user))
    return MutationResult(message="Account group created", data=AccountGroup.model_validate(db_group))


@router.patch("/{group_id}", response_model=MutationResult[AccountGroup])
def update_account_group(
    group_id: int,
    group_update: AccountGroupUpdate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_group = crud_groups.update_account_group(db, group_id, group_update, updated_by=get_user_identifier(user))
    return MutationResult(message="Account group updated", data=AccountGroup.model_validate(db_group))


@router.delete("/{group_id}", response_model=MutationResult[AccountGroup])
def deactivate_account_group(
    group_id: int,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_group = crud_groups.deactivate_account_group(db, group_id, deleted_by=get_user_identifier(user))
    return MutationResult(message="Account group deactivated", data=AccountGroup.model_validate(db_group))
