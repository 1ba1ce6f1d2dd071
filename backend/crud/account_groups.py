import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from exceptions import ValidationError, NotFoundError, ConflictError
from models.accounts import Account, AccountGroup
from models.account_ceilings import AccountCeiling
from schemas.accounts import AccountGroupCreate, AccountGroupUpdate

logger = logging.getLogger(__name__)


def get_account_group(db: Session, group_id: int) -> Optional[AccountGroup]:
    return db.query(AccountGroup).filter(AccountGroup.id == group_id).first()


def list_account_groups(db: Session, include_inactive: bool = False) -> List[AccountGroup]:
    query = db.query(AccountGroup)
    if not include_inactive:
        query = query.filter(AccountGroup.is_active == True)
    return query.order_by(AccountGroup.code).all()


def create_account_group(db: Session, group: AccountGroupCreate, created_by: Optional[str] = None) -> AccountGroup:
    if not group.code or not group.name_ar:
        raise ValidationError("Group code and name are required", reason="code_and_name_required")
    if db.query(AccountGroup.id).filter(AccountGroup.code == group.code).first() is not None:
        raise ConflictError(f"Account group code {group.code} already exists", reason="duplicate_group_code")

    db_group = AccountGroup(**group.model_dump(), is_active=True, created_by=created_by)
    db.add(db_group)
    db.flush()
    logger.info(f"Account group {db_group.code} created by {created_by}")
    return db_group


def update_account_group(db: Session, group_id: int, group_update: AccountGroupUpdate, updated_by: Optional[str] = None) -> AccountGroup:
    db_group = get_account_group(db, group_id)
    if db_group is None:
        raise NotFoundError(f"Account group {group_id} not found")

    update_data = group_update.model_dump(exclude_unset=True)
    if "name_ar" in update_data and not update_data["name_ar"]:
        raise ValidationError("Group name is required", reason="name_required")
    for key, value in update_data.items():
        setattr(db_group, key, value)
    db_group.updated_by = updated_by
    db.flush()
    return db_group


def deactivate_account_group(db: Session, group_id: int, deleted_by: Optional[str] = None) -> AccountGroup:
    db_group = get_account_group(db, group_id)
    if db_group is None:
        raise NotFoundError(f"Account group {group_id} not found")

    if db.query(Account.id).filter(Account.account_group_id == group_id, Account.is_active == True).first() is not None:
        raise ConflictError(f"Account group {db_group.code} still has active accounts", reason="group_has_accounts")
    if db.query(AccountCeiling.id).filter(
        AccountCeiling.account_group_id == group_id, AccountCeiling.deleted_at.is_(None)
    ).first() is not None:
        raise ConflictError(f"Account group {db_group.code} has a ceiling configured", reason="group_has_ceiling")

    db_group.is_active = False
    db_group.updated_by = deleted_by
    db.flush()
    logger.info(f"Account group {db_group.code} deactivated by {deleted_by}")
    return db_group
