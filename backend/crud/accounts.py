"""
Chart of accounts.

Accounts form a forest. Root accounts declare their nature and get a small
integer code ("1", "2", ...); children inherit nature and financial statement
from their root and get "{parent.code}-{n}". Code allocation is a read-then-write
against existing rows, so it always runs under a lock held until the caller's
transaction ends: the "root_accounts" sequence row for roots, the parent row
for children.
"""

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

import config
from exceptions import ValidationError, IntegrityError, NotFoundError, ConflictError
from models.accounts import Account, AccountGroup
from models.banks import Bank
from models.cash_boxes import CashBox
from models.journal_entries import JournalEntry
from models.enums import AccountLevel, financial_statement_for
from schemas.accounts import AccountCreate, AccountUpdate
from crud.sequences import lock_sequence, ROOT_ACCOUNTS

logger = logging.getLogger(__name__)


def get_account(db: Session, account_id: int) -> Optional[Account]:
    return db.query(Account).filter(Account.id == account_id).first()


def require_account(db: Session, account_id: int, active_only: bool = True, lock: bool = False) -> Account:
    """Load a referenced account or raise IntegrityError."""
    query = db.query(Account).filter(Account.id == account_id)
    if lock:
        query = query.with_for_update()
    account = query.first()
    if account is None:
        raise IntegrityError(f"Account {account_id} does not exist", reason="account_not_found")
    if active_only and not account.is_active:
        raise IntegrityError(f"Account {account.code} is inactive", reason="account_inactive")
    return account


def list_accounts(db: Session, include_inactive: bool = False, level: Optional[AccountLevel] = None) -> List[Account]:
    query = db.query(Account)
    if not include_inactive:
        query = query.filter(Account.is_active == True)
    if level is not None:
        query = query.filter(Account.account_level == level)
    return query.order_by(Account.id).all()


def list_root_accounts(db: Session, include_inactive: bool = False) -> List[Account]:
    return list_accounts(db, include_inactive=include_inactive, level=AccountLevel.ROOT)


def build_account_tree(accounts: List[Account]) -> List[dict]:
    """
    Arrange accounts into nested nodes in a single pass.

    Accounts whose parent is not part of `accounts` (e.g. filtered out as
    inactive) are returned as top-level nodes.
    """
    nodes: Dict[int, dict] = {}
    children_by_parent: Dict[Optional[int], List[dict]] = defaultdict(list)
    for account in accounts:
        node = {
            "id": account.id,
            "code": account.code,
            "name_ar": account.name_ar,
            "name_en": account.name_en,
            "nature": account.nature,
            "financial_statement": account.financial_statement,
            "account_level": account.account_level,
            "parent_id": account.parent_id,
            "account_group_id": account.account_group_id,
            "is_active": account.is_active,
            "branch_id": account.branch_id,
            "created_at": account.created_at,
            "created_by": account.created_by,
            "children": [],
        }
        nodes[account.id] = node
        children_by_parent[account.parent_id].append(node)

    roots = []
    for parent_id, children in children_by_parent.items():
        if parent_id is not None and parent_id in nodes:
            nodes[parent_id]["children"].extend(children)
        else:
            roots.extend(children)
    return roots


def resolve_root(db: Session, account_id: int) -> Account:
    """
    Walk parent links up to the root account.

    The hierarchy is acyclic by construction; the depth cap only guards
    against corrupted rows.
    """
    account = get_account(db, account_id)
    if account is None:
        raise IntegrityError(f"Account {account_id} does not exist", reason="account_not_found")

    for _ in range(config.MAX_ACCOUNT_DEPTH):
        if account.parent_id is None:
            return account
        parent = get_account(db, account.parent_id)
        if parent is None:
            raise IntegrityError(
                f"Account {account.code} references missing parent {account.parent_id}",
                reason="account_parent_missing",
            )
        account = parent

    raise IntegrityError(
        f"Account {account_id} is nested deeper than {config.MAX_ACCOUNT_DEPTH} levels or its ancestry is cyclic",
        reason="account_hierarchy_corrupt",
    )


def _next_root_code(db: Session) -> str:
    lock_sequence(db, ROOT_ACCOUNTS)
    codes = db.query(Account.code).filter(Account.parent_id.is_(None)).all()
    numbers = [int(code) for (code,) in codes if code.isdigit()]
    return str(max(numbers) + 1 if numbers else 1)


def _next_child_code(db: Session, parent: Account) -> str:
    # Inactive children keep their codes, so they are counted too
    sibling_count = db.query(func.count(Account.id)).filter(Account.parent_id == parent.id).scalar() or 0
    return f"{parent.code}-{sibling_count + 1}"


def _require_group(db: Session, group_id: int) -> AccountGroup:
    group = db.query(AccountGroup).filter(AccountGroup.id == group_id).first()
    if group is None or not group.is_active:
        raise IntegrityError(f"Account group {group_id} does not exist or is inactive", reason="account_group_not_found")
    return group


def create_account(db: Session, account: AccountCreate, created_by: Optional[str] = None) -> Account:
    """
    Create a root or child account inside the caller's transaction.

    Raises:
        ValidationError: name missing, level/parent/nature combination invalid, or code too long
        IntegrityError: parent or group missing or inactive
    """
    if not account.name_ar:
        raise ValidationError("Account name is required", reason="name_required")

    if account.parent_id is None:
        if account.account_level == AccountLevel.CHILD:
            raise ValidationError("A child account needs a parent account", reason="parent_required")
        if account.nature is None:
            raise ValidationError("A root account must declare its nature", reason="nature_required")
    else:
        if account.account_level == AccountLevel.ROOT:
            raise ValidationError("A root account cannot have a parent", reason="root_with_parent")
        if account.nature is not None:
            raise ValidationError("Child accounts inherit their nature from the root account", reason="nature_not_allowed")

    if account.account_group_id is not None:
        _require_group(db, account.account_group_id)

    if account.parent_id is None:
        nature = account.nature
        level = AccountLevel.ROOT
        code = _next_root_code(db)
    else:
        parent = require_account(db, account.parent_id, lock=True)
        nature = resolve_root(db, parent.id).nature
        level = AccountLevel.CHILD
        code = _next_child_code(db, parent)
    if len(code) > Account.__table__.c.code.type.length:
        raise ValidationError(f"Account code {code} is too long, the hierarchy is too deep", reason="account_code_too_long")

    db_account = Account(
        code=code,
        name_ar=account.name_ar,
        name_en=account.name_en,
        nature=nature,
        financial_statement=financial_statement_for(nature),
        account_level=level,
        parent_id=account.parent_id,
        account_group_id=account.account_group_id,
        branch_id=account.branch_id,
        is_active=True,
        created_by=created_by,
    )
    db.add(db_account)
    db.flush()
    logger.info(f"Account {db_account.code} '{db_account.name_ar}' ({nature.value}) created by {created_by}")
    return db_account


def update_account(db: Session, account_id: int, account_update: AccountUpdate, updated_by: Optional[str] = None) -> Account:
    db_account = get_account(db, account_id)
    if db_account is None:
        raise NotFoundError(f"Account {account_id} not found")

    update_data = account_update.model_dump(exclude_unset=True)
    if "name_ar" in update_data and not update_data["name_ar"]:
        raise ValidationError("Account name is required", reason="name_required")
    if update_data.get("account_group_id") is not None:
        _require_group(db, update_data["account_group_id"])

    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = updated_by
    db.flush()
    logger.info(f"Account {db_account.code} updated by {updated_by}: {sorted(update_data)}")
    return db_account


def account_has_postings(db: Session, account_id: int) -> bool:
    return db.query(JournalEntry.id).filter(JournalEntry.account_id == account_id).first() is not None


def deactivate_account(db: Session, account_id: int, deleted_by: Optional[str] = None) -> Account:
    """
    Soft-delete an account.

    Raises:
        NotFoundError: no such account
        ConflictError: the account has postings, active children, or backs an active bank / cash box
    """
    db_account = db.query(Account).filter(Account.id == account_id).with_for_update().first()
    if db_account is None:
        raise NotFoundError(f"Account {account_id} not found")
    if not db_account.is_active:
        return db_account

    if account_has_postings(db, account_id):
        raise ConflictError(f"Account {db_account.code} has journal postings", reason="account_has_postings")

    active_child = db.query(Account.id).filter(Account.parent_id == account_id, Account.is_active == True).first()
    if active_child is not None:
        raise ConflictError(f"Account {db_account.code} has active child accounts", reason="account_has_active_children")

    if db.query(Bank.id).filter(Bank.account_id == account_id, Bank.is_active == True).first() is not None:
        raise ConflictError(f"Account {db_account.code} belongs to an active bank", reason="account_linked_to_bank")
    if db.query(CashBox.id).filter(CashBox.account_id == account_id, CashBox.is_active == True).first() is not None:
        raise ConflictError(f"Account {db_account.code} belongs to an active cash box", reason="account_linked_to_cash_box")

    db_account.is_active = False
    db_account.updated_by = deleted_by
    db.flush()
    logger.info(f"Account {db_account.code} deactivated by {deleted_by}")
    return db_account
