"""
Journal posting engine.

This is the only module that writes journal_entries rows. A journal group is
the set of lines sharing one (reference_type, reference_id); post() writes a
whole balanced group or nothing, repost() replaces a group, unpost() removes
one. None of these commit: they run inside the caller's transaction so the
source document and its postings are committed together.
"""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from exceptions import UnbalancedEntry, InvalidLine, ConflictError
from models.journal_entries import JournalEntry
from models.enums import ReferenceType
from schemas.journal_entries import GroupRef, JournalLine
from crud.accounts import require_account
from crud.currencies import require_currency
from utils.money import quantize_amount, to_decimal

logger = logging.getLogger(__name__)

MIN_LINES = 2


def _group_filter(query, ref: GroupRef):
    return query.filter(
        JournalEntry.reference_type == ref.reference_type,
        JournalEntry.reference_id == ref.reference_id,
    )


def get_entries(db: Session, ref: GroupRef) -> List[JournalEntry]:
    return _group_filter(db.query(JournalEntry), ref).order_by(JournalEntry.line_no, JournalEntry.id).all()


def group_exists(db: Session, ref: GroupRef) -> bool:
    return _group_filter(db.query(JournalEntry.id), ref).first() is not None


def validate_lines(db: Session, lines: List[JournalLine]) -> List[JournalLine]:
    """
    Check every posting precondition without touching the store.

    Returns the lines with amounts rounded to each currency's minor unit.

    Raises:
        InvalidLine: fewer than two lines, a line that is not exactly one of
            debit/credit with a positive amount, or a single-account group
        IntegrityError: a line references a missing or inactive account/currency
        UnbalancedEntry: debits and credits differ for some currency
    """
    if len(lines) < MIN_LINES:
        raise InvalidLine(f"A journal group needs at least {MIN_LINES} lines, got {len(lines)}", reason="too_few_lines")

    prepared = []
    totals: Dict[int, List[Decimal]] = defaultdict(lambda: [Decimal(0), Decimal(0)])
    for line_no, line in enumerate(lines, start=1):
        debit = to_decimal(line.debit)
        credit = to_decimal(line.credit)
        if debit < 0 or credit < 0:
            raise InvalidLine(f"Line {line_no}: amounts cannot be negative", reason="negative_amount")
        if (debit != 0) == (credit != 0):
            raise InvalidLine(
                f"Line {line_no}: exactly one of debit or credit must be non-zero", reason="debit_credit_exclusive"
            )

        require_account(db, line.account_id)
        currency = require_currency(db, line.currency_id)

        debit = quantize_amount(debit, currency.decimal_places)
        credit = quantize_amount(credit, currency.decimal_places)
        if debit == 0 and credit == 0:
            raise InvalidLine(
                f"Line {line_no}: amount is below the minor unit of {currency.code}", reason="amount_below_precision"
            )

        totals[currency.id][0] += debit
        totals[currency.id][1] += credit
        prepared.append(line.model_copy(update={"debit": debit, "credit": credit}))

    if len({line.account_id for line in prepared}) < 2:
        raise InvalidLine("A journal group must touch at least two accounts", reason="single_account")

    for currency_id, (total_debit, total_credit) in totals.items():
        if total_debit != total_credit:
            raise UnbalancedEntry(
                f"Debits ({total_debit}) and credits ({total_credit}) differ for currency {currency_id}"
            )
    return prepared


def post(
    db: Session,
    ref: GroupRef,
    lines: List[JournalLine],
    entry_date: date,
    created_by: Optional[str] = None,
    branch_id: Optional[int] = None,
) -> List[JournalEntry]:
    """Write a new balanced journal group. Nothing is written if any check fails."""
    prepared = validate_lines(db, lines)
    if group_exists(db, ref):
        raise ConflictError(f"Journal group {ref} is already posted", reason="group_already_posted")

    entries = []
    for line_no, line in enumerate(prepared, start=1):
        entry = JournalEntry(
            reference_type=ref.reference_type,
            reference_id=ref.reference_id,
            line_no=line_no,
            account_id=line.account_id,
            currency_id=line.currency_id,
            debit=line.debit,
            credit=line.credit,
            entry_date=entry_date,
            cost_center_id=line.cost_center_id,
            notes=line.notes,
            branch_id=branch_id,
            created_by=created_by,
        )
        db.add(entry)
        entries.append(entry)
    db.flush()

    total = sum((line.debit for line in prepared), Decimal(0))
    logger.info(f"Posted journal group {ref}: {len(entries)} lines, total {total}, by {created_by}")
    return entries


def unpost(db: Session, ref: GroupRef) -> int:
    """Delete every line of a group. Returns the number of lines removed (0 if none)."""
    deleted = _group_filter(db.query(JournalEntry), ref).delete(synchronize_session=False)
    db.flush()
    db.expire_all()
    if deleted:
        logger.info(f"Unposted journal group {ref}: {deleted} lines removed")
    return deleted


def repost(
    db: Session,
    ref: GroupRef,
    lines: List[JournalLine],
    entry_date: date,
    updated_by: Optional[str] = None,
    branch_id: Optional[int] = None,
) -> List[JournalEntry]:
    """Replace a group's lines with `lines` as one unit of the caller's transaction."""
    # Validate first so a bad amendment never gets as far as the delete
    validate_lines(db, lines)
    previous = get_entries(db, ref)
    created_by = previous[0].created_by if previous else updated_by
    unpost(db, ref)
    entries = post(db, ref, lines, entry_date, created_by=created_by, branch_id=branch_id)
    for entry in entries:
        entry.updated_by = updated_by
    db.flush()
    return entries


def get_account_totals(
    db: Session,
    account_id: int,
    currency_id: int,
    exclude_ref: Optional[GroupRef] = None,
    as_of: Optional[date] = None,
    before: Optional[date] = None,
) -> Tuple[Decimal, Decimal]:
    """Debit and credit totals of one account in one currency."""
    query = db.query(
        func.coalesce(func.sum(JournalEntry.debit), 0),
        func.coalesce(func.sum(JournalEntry.credit), 0),
    ).filter(
        JournalEntry.account_id == account_id,
        JournalEntry.currency_id == currency_id,
    )
    if exclude_ref is not None:
        query = query.filter(
            ~(
                (JournalEntry.reference_type == exclude_ref.reference_type)
                & (JournalEntry.reference_id == exclude_ref.reference_id)
            )
        )
    if as_of is not None:
        query = query.filter(JournalEntry.entry_date <= as_of)
    if before is not None:
        query = query.filter(JournalEntry.entry_date < before)
    total_debit, total_credit = query.one()
    return to_decimal(total_debit), to_decimal(total_credit)


def list_groups(
    db: Session,
    reference_type: ReferenceType,
    skip: int = 0,
    limit: int = 100,
) -> List[dict]:
    """Journal groups of one reference type, newest reference first, lines nested."""
    reference_ids = [
        reference_id for (reference_id,) in db.query(JournalEntry.reference_id)
        .filter(JournalEntry.reference_type == reference_type)
        .group_by(JournalEntry.reference_id)
        .order_by(JournalEntry.reference_id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    ]
    if not reference_ids:
        return []

    entries = db.query(JournalEntry).filter(
        JournalEntry.reference_type == reference_type,
        JournalEntry.reference_id.in_(reference_ids),
    ).order_by(JournalEntry.reference_id.desc(), JournalEntry.line_no).all()

    by_reference: Dict[int, List[JournalEntry]] = defaultdict(list)
    for entry in entries:
        by_reference[entry.reference_id].append(entry)
    return [
        summarize_group(GroupRef(reference_type=reference_type, reference_id=reference_id), by_reference[reference_id])
        for reference_id in reference_ids
    ]


def summarize_group(ref: GroupRef, entries: List[JournalEntry]) -> dict:
    return {
        "reference_type": ref.reference_type,
        "reference_id": ref.reference_id,
        "entry_date": entries[0].entry_date,
        "total_debit": sum((to_decimal(e.debit) for e in entries), Decimal(0)),
        "total_credit": sum((to_decimal(e.credit) for e in entries), Decimal(0)),
        "lines": entries,
    }
