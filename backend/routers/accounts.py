from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db, transaction
from exceptions import NotFoundError
from models.enums import AccountLevel
from schemas.accounts import Account, AccountCreate, AccountUpdate, AccountNode, AccountTree
from schemas.common import MutationResult
from crud import accounts as crud_accounts
from utils.auth_utils import get_current_user, get_user_identifier
from utils.branching import get_branch_id

router = APIRouter(prefix="/accounts", tags=["Accounts"])
logger = logging.getLogger("accounts")


@router.get("/", response_model=AccountTree)
def read_accounts(include_inactive: bool = False, db: Session = Depends(get_db)):
    """The chart of accounts, both nested and as a flat list."""
    accounts = crud_accounts.list_accounts(db, include_inactive=include_inactive)
    return AccountTree(
        tree=[AccountNode.model_validate(node) for node in crud_accounts.build_account_tree(accounts)],
        flat=[Account.model_validate(account) for account in accounts],
    )


@router.get("/roots", response_model=List[Account])
def read_root_accounts(include_inactive: bool = False, db: Session = Depends(get_db)):
    return crud_accounts.list_root_accounts(db, include_inactive=include_inactive)


@router.get("/by-level", response_model=List[Account])
def read_accounts_by_level(level: AccountLevel = AccountLevel.ROOT, db: Session = Depends(get_db)):
    """Active accounts of one level; roots are offered as parents for banks and cash boxes."""
    return crud_accounts.list_accounts(db, level=level)


@router.get("/{account_id}", response_model=Account)
def read_account(account_id: int, db: Session = Depends(get_db)):
    db_account = crud_accounts.get_account(db, account_id)
    if db_account is None:
        raise NotFoundError(f"Account {account_id} not found")
    return db_account


@router.get("/{account_id}/root", response_model=Account)
def read_account_root(account_id: int, db: Session = Depends(get_db)):
    return crud_accounts.resolve_root(db, account_id)


@router.post("/", response_model=MutationResult[Account], status_code=status.HTTP_201_CREATED)
def create_account(
    account: AccountCreate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
    branch_id: Optional[int] = Depends(get_branch_id),
):
    if account.branch_id is None:
        account = account.model_copy(update={"branch_id": branch_id})
    with transaction(db):
        db_account = crud_accounts.create_account(db, account, created_by=get_user_identifier(user))
    return MutationResult(message="Account created", data=Account.model_validate(db_account))


@router.patch("/{account_id}", response_model=MutationResult[Account])
def update_account(
    account_id: int,
    account_update: AccountUpdate,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_account = crud_accounts.update_account(db, account_id, account_update, updated_by=get_user_identifier(user))
    return MutationResult(message="Account updated", data=Account.model_validate(db_account))


@router.delete("/{account_id}", response_model=MutationResult[Account])
def deactivate_account(
    account_id: int,
    db: Session = Depends(get_db),
    user: Optional[dict] = Depends(get_current_user),
):
    with transaction(db):
        db_account = crud_accounts.deactivate_account(db, account_id, deleted_by=get_user_identifier(user))
    return MutationResult(message="Account deactivated", data=Account.model_validate(db_account))
