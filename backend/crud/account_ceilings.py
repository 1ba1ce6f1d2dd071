"""
Account ceilings.

A ceiling bounds the debit or credit exposure of one account, or of every
account in an account group, in one currency. The check recomputes the balance
from posted entries on every call and takes no lock, so two postings racing
against the same account can both pass and jointly exceed the limit. Limits
are enforced best-effort at posting time.
"""

import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError
from sqlalchemy.orm import Session, joinedload

from exceptions import ValidationError, IntegrityError, NotFoundError, DuplicateCeiling, CeilingExceeded
from models.accounts import Account, AccountGroup
from models.account_ceilings import AccountCeiling
from models.enums import CeilingScope, EntrySide, ExceedAction
from models.audit_mixin import now_local
from schemas.account_ceilings import AccountCeilingCreate, AccountCeilingUpdate, CeilingCheck
from schemas.journal_entries import GroupRef, JournalLine
from crud.currencies import require_currency
from crud.journal_entries import get_account_totals
from utils.money import to_decimal

logger = logging.getLogger(__name__)


def get_ceiling(db: Session, ceiling_id: int) -> Optional[AccountCeiling]:
    return db.query(AccountCeiling).filter(AccountCeiling.id == ceiling_id).first()


def list_ceilings(db: Session) -> List[dict]:
    ceilings = db.query(AccountCeiling).options(
        joinedload(AccountCeiling.account),
        joinedload(AccountCeiling.account_group),
        joinedload(AccountCeiling.currency),
    ).order_by(AccountCeiling.id).all()
    return [ceiling_to_dict(ceiling) for ceiling in ceilings]


def ceiling_to_dict(ceiling: AccountCeiling) -> dict:
    if ceiling.scope == CeilingScope.ACCOUNT:
        target_name = ceiling.account.name_ar if ceiling.account else None
    else:
        target_name = ceiling.account_group.name_ar if ceiling.account_group else None
    return {
        "id": ceiling.id,
        "scope": ceiling.scope,
        "account_id": ceiling.account_id,
        "account_group_id": ceiling.account_group_id,
        "target_name": target_name,
        "currency_id": ceiling.currency_id,
        "currency_code": ceiling.currency.code if ceiling.currency else None,
        "ceiling_amount": ceiling.ceiling_amount,
        "account_nature": ceiling.account_nature,
        "exceed_action": ceiling.exceed_action,
    }


def _lock_target(db: Session, scope: CeilingScope, account_id: Optional[int], account_group_id: Optional[int]):
    """Lock the ceiling's target row so duplicate checks for it are serialised."""
    if scope == CeilingScope.ACCOUNT:
        target = db.query(Account).filter(Account.id == account_id).with_for_update().first()
        if target is None or not target.is_active:
            raise IntegrityError(f"Account {account_id} does not exist or is inactive", reason="account_not_found")
    else:
        target = db.query(AccountGroup).filter(AccountGroup.id == account_group_id).with_for_update().first()
        if target is None or not target.is_active:
            raise IntegrityError(
                f"Account group {account_group_id} does not exist or is inactive", reason="account_group_not_found"
            )
    return target


def _find_live_ceiling(db: Session, scope: CeilingScope, target_id: int, currency_id: int) -> Optional[AccountCeiling]:
    query = db.query(AccountCeiling).filter(
        AccountCeiling.scope == scope,
        AccountCeiling.currency_id == currency_id,
    )
    if scope == CeilingScope.ACCOUNT:
        query = query.filter(AccountCeiling.account_id == target_id)
    else:
        query = query.filter(AccountCeiling.account_group_id == target_id)
    return query.first()


def _flush_unique(db: Session, message: str):
    """Flush inside a savepoint, turning a unique-index hit into DuplicateCeiling."""
    try:
        with db.begin_nested():
            db.flush()
    except SQLAlchemyIntegrityError:
        raise DuplicateCeiling(message)


def create_ceiling(db: Session, ceiling: AccountCeilingCreate, created_by: Optional[str] = None) -> AccountCeiling:
    """
    Insert a ceiling for an account or an account group.

    Raises:
        ValidationError: scope/target mismatch, non-positive amount, missing fields
        IntegrityError: target or currency missing or inactive
        DuplicateCeiling: the target already has a ceiling in that currency
    """
    if ceiling.scope is None or ceiling.currency_id is None or ceiling.account_nature is None:
        raise ValidationError("scope, currency_id and account_nature are required", reason="ceiling_fields_required")
    if ceiling.ceiling_amount is None or ceiling.ceiling_amount <= 0:
        raise ValidationError("Ceiling amount must be positive", reason="invalid_ceiling_amount")

    if ceiling.scope == CeilingScope.ACCOUNT:
        if ceiling.account_id is None or ceiling.account_group_id is not None:
            raise ValidationError("An account ceiling needs account_id and no account_group_id", reason="scope_target_mismatch")
        target_id = ceiling.account_id
    else:
        if ceiling.account_group_id is None or ceiling.account_id is not None:
            raise ValidationError("A group ceiling needs account_group_id and no account_id", reason="scope_target_mismatch")
        target_id = ceiling.account_group_id

    _lock_target(db, ceiling.scope, ceiling.account_id, ceiling.account_group_id)
    require_currency(db, ceiling.currency_id)

    message = f"A {ceiling.scope.value} ceiling for target {target_id} in currency {ceiling.currency_id} already exists"
    if _find_live_ceiling(db, ceiling.scope, target_id, ceiling.currency_id) is not None:
        raise DuplicateCeiling(message)

    db_ceiling = AccountCeiling(**ceiling.model_dump(), created_by=created_by)
    db.add(db_ceiling)
    _flush_unique(db, message)
    logger.info(
        f"Ceiling {db_ceiling.id} created by {created_by}: {ceiling.scope.value} {target_id}, "
        f"{ceiling.account_nature.value} <= {ceiling.ceiling_amount} ({ceiling.exceed_action.value})"
    )
    return db_ceiling


def update_ceiling(db: Session, ceiling_id: int, ceiling_update: AccountCeilingUpdate, updated_by: Optional[str] = None) -> AccountCeiling:
    db_ceiling = get_ceiling(db, ceiling_id)
    if db_ceiling is None:
        raise NotFoundError(f"Ceiling {ceiling_id} not found")

    update_data = {k: v for k, v in ceiling_update.model_dump(exclude_unset=True).items() if v is not None}
    if "ceiling_amount" in update_data and update_data["ceiling_amount"] <= 0:
        raise ValidationError("Ceiling amount must be positive", reason="invalid_ceiling_amount")

    if "currency_id" in update_data and update_data["currency_id"] != db_ceiling.currency_id:
        require_currency(db, update_data["currency_id"])
        target_id = db_ceiling.account_id if db_ceiling.scope == CeilingScope.ACCOUNT else db_ceiling.account_group_id
        _lock_target(db, db_ceiling.scope, db_ceiling.account_id, db_ceiling.account_group_id)
        if _find_live_ceiling(db, db_ceiling.scope, target_id, update_data["currency_id"]) is not None:
            raise DuplicateCeiling(
                f"A {db_ceiling.scope.value} ceiling for target {target_id} in currency {update_data['currency_id']} already exists"
            )

    for key, value in update_data.items():
        setattr(db_ceiling, key, value)
    db_ceiling.updated_by = updated_by
    _flush_unique(db, f"Ceiling {ceiling_id} would duplicate another ceiling")
    logger.info(f"Ceiling {ceiling_id} updated by {updated_by}: {sorted(update_data)}")
    return db_ceiling


def delete_ceiling(db: Session, ceiling_id: int, deleted_by: Optional[str] = None) -> AccountCeiling:
    db_ceiling = get_ceiling(db, ceiling_id)
    if db_ceiling is None:
        raise NotFoundError(f"Ceiling {ceiling_id} not found")

    # Soft-delete
    db_ceiling.deleted_at = now_local()
    db_ceiling.deleted_by = deleted_by
    db.flush()
    logger.info(f"Ceiling {ceiling_id} deleted by {deleted_by}")
    return db_ceiling


def find_applicable_ceiling(db: Session, account: Account, currency_id: int) -> Optional[AccountCeiling]:
    """An account-scoped ceiling wins over one set on the account's group."""
    ceiling = _find_live_ceiling(db, CeilingScope.ACCOUNT, account.id, currency_id)
    if ceiling is None and account.account_group_id is not None:
        ceiling = _find_live_ceiling(db, CeilingScope.GROUP, account.account_group_id, currency_id)
    return ceiling


def check_and_reserve(
    db: Session,
    account_id: int,
    currency_id: int,
    proposed_amount,
    side: EntrySide,
    exclude_ref: Optional[GroupRef] = None,
) -> CeilingCheck:
    """
    Evaluate a prospective posting of `proposed_amount` on `side` against the
    account's ceiling.

    `exclude_ref` leaves a group's current lines out of the balance, for
    amendments that are about to replace them. Nothing is reserved: the result
    only reflects postings visible at read time.

    Raises:
        CeilingExceeded: the limit would be crossed and the ceiling blocks
    """
    proposed_amount = to_decimal(proposed_amount)
    result = CeilingCheck(account_id=account_id, currency_id=currency_id, side=side, proposed_amount=proposed_amount)

    account = db.query(Account).filter(Account.id == account_id).first()
    if account is None:
        raise IntegrityError(f"Account {account_id} does not exist", reason="account_not_found")

    ceiling = find_applicable_ceiling(db, account, currency_id)
    if ceiling is None:
        return result

    total_debit, total_credit = get_account_totals(db, account_id, currency_id, exclude_ref=exclude_ref)
    if ceiling.account_nature == EntrySide.DEBIT:
        balance = total_debit - total_credit
    else:
        balance = total_credit - total_debit

    # Postings on the other side only reduce exposure
    projected = balance + proposed_amount if side == ceiling.account_nature else balance - proposed_amount
    limit = to_decimal(ceiling.ceiling_amount)

    result.ceiling_id = ceiling.id
    result.limit = limit
    result.balance = balance
    result.projected = projected
    result.exceeded = side == ceiling.account_nature and projected > limit
    if not result.exceeded:
        return result

    message = (
        f"Account {account.code} {ceiling.account_nature.value} balance would reach {projected}, "
        f"above its ceiling of {limit}"
    )
    if ceiling.exceed_action == ExceedAction.BLOCK:
        logger.warning(f"Blocked posting: {message}")
        raise CeilingExceeded(message, limit=limit, attempted=proposed_amount, balance=balance, account_id=account_id)
    if ceiling.exceed_action == ExceedAction.WARN:
        logger.warning(f"Ceiling warning: {message}")
        result.warning = True
        result.message = message
    return result


def check_lines(db: Session, lines: List[JournalLine], exclude_ref: Optional[GroupRef] = None) -> List[str]:
    """
    Run the ceiling check for every (account, currency, side) a line set touches.

    Returns the warning messages the caller should surface.
    """
    proposed: Dict[Tuple[int, int, EntrySide], Decimal] = defaultdict(Decimal)
    for line in lines:
        debit = to_decimal(line.debit)
        credit = to_decimal(line.credit)
        if debit > 0:
            proposed[(line.account_id, line.currency_id, EntrySide.DEBIT)] += debit
        if credit > 0:
            proposed[(line.account_id, line.currency_id, EntrySide.CREDIT)] += credit

    warnings = []
    for (account_id, currency_id, side), amount in proposed.items():
        check = check_and_reserve(db, account_id, currency_id, amount, side, exclude_ref=exclude_ref)
        if check.warning:
            warnings.append(check.message)
    return warnings
