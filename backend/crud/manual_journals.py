"""
Manual journals: free-form two-line postings with no document row of their own.

The journal group itself is the document. Reference ids are drawn from the
"manual_journal" sequence so they only ever increase.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from database import transaction
from exceptions import ValidationError, NotFoundError
from models.enums import ReferenceType
from schemas.journal_entries import GroupRef, JournalLine, ManualJournalCreate, ManualJournalUpdate
from crud import journal_entries
from crud.account_ceilings import check_lines
from crud.sequences import next_manual_reference
from utils.money import to_decimal

logger = logging.getLogger(__name__)

FIELDS = ("journal_date", "debit_account_id", "credit_account_id", "amount", "currency_id", "cost_center_id", "notes")


def manual_ref(reference_id: int) -> GroupRef:
    return GroupRef(reference_type=ReferenceType.MANUAL, reference_id=reference_id)


def list_manual_journals(db: Session, skip: int = 0, limit: int = 100) -> List[dict]:
    return journal_entries.list_groups(db, ReferenceType.MANUAL, skip=skip, limit=limit)


def get_manual_journal(db: Session, reference_id: int) -> dict:
    ref = manual_ref(reference_id)
    entries = journal_entries.get_entries(db, ref)
    if not entries:
        raise NotFoundError(f"Manual journal {reference_id} not found", reason="journal_not_found")
    return journal_entries.summarize_group(ref, entries)


def _validate(values: dict) -> dict:
    missing = [name for name in ("journal_date", "debit_account_id", "credit_account_id", "amount", "currency_id")
               if values.get(name) is None]
    if missing:
        raise ValidationError(f"Manual journal is missing {', '.join(missing)}", reason="required_fields_missing")
    if values["debit_account_id"] == values["credit_account_id"]:
        raise ValidationError("Debit and credit accounts must differ", reason="same_account")
    amount = to_decimal(values["amount"])
    if amount <= 0:
        raise ValidationError("Amount must be positive", reason="invalid_amount")
    return {**values, "amount": amount}


def _build_lines(values: dict) -> List[JournalLine]:
    line = JournalLine(
        account_id=values["debit_account_id"],
        currency_id=values["currency_id"],
        debit=values["amount"],
        cost_center_id=values.get("cost_center_id"),
        notes=values.get("notes"),
    )
    return [
        line,
        line.model_copy(update={"account_id": values["credit_account_id"], "debit": Decimal(0), "credit": values["amount"]}),
    ]


def _values_from_entries(entries) -> dict:
    debit_line = next(entry for entry in entries if to_decimal(entry.debit) > 0)
    credit_line = next(entry for entry in entries if to_decimal(entry.credit) > 0)
    return {
        "journal_date": debit_line.entry_date,
        "debit_account_id": debit_line.account_id,
        "credit_account_id": credit_line.account_id,
        "amount": to_decimal(debit_line.debit),
        "currency_id": debit_line.currency_id,
        "cost_center_id": debit_line.cost_center_id,
        "notes": debit_line.notes,
    }


def create_manual_journal(
    db: Session,
    journal: ManualJournalCreate,
    created_by: Optional[str] = None,
    branch_id: Optional[int] = None,
) -> Tuple[dict, List[str]]:
    """
    Allocate a reference id and post a balanced debit/credit pair under it.

    Returns the posted group and any ceiling warnings.
    """
    values = _validate(journal.model_dump())
    lines = _build_lines(values)
    with transaction(db):
        ref = manual_ref(next_manual_reference(db))
        warnings = check_lines(db, lines)
        entries = journal_entries.post(
            db, ref, lines, values["journal_date"], created_by=created_by, branch_id=branch_id
        )
        group = journal_entries.summarize_group(ref, entries)
        logger.info(f"Manual journal {ref.reference_id} created by {created_by}: {group['total_debit']}")
    return group, warnings


def update_manual_journal(
    db: Session,
    reference_id: int,
    journal_update: ManualJournalUpdate,
    updated_by: Optional[str] = None,
) -> Tuple[dict, List[str]]:
    """Merge the changed fields into the posted pair and repost it."""
    ref = manual_ref(reference_id)
    update_data = journal_update.model_dump(exclude_unset=True)
    with transaction(db):
        existing = journal_entries.get_entries(db, ref)
        if not existing:
            raise NotFoundError(f"Manual journal {reference_id} not found", reason="journal_not_found")
        branch_id = existing[0].branch_id

        values = _values_from_entries(existing)
        values.update({k: v for k, v in update_data.items() if k in FIELDS})
        values = _validate(values)
        lines = _build_lines(values)

        warnings = check_lines(db, lines, exclude_ref=ref)
        entries = journal_entries.repost(
            db, ref, lines, values["journal_date"], updated_by=updated_by, branch_id=branch_id
        )
        group = journal_entries.summarize_group(ref, entries)
        logger.info(f"Manual journal {reference_id} updated by {updated_by}: {sorted(update_data)}")
    return group, warnings


def delete_manual_journal(db: Session, reference_id: int, deleted_by: Optional[str] = None) -> int:
    with transaction(db):
        removed = journal_entries.unpost(db, manual_ref(reference_id))
        if not removed:
            raise NotFoundError(f"Manual journal {reference_id} not found", reason="journal_not_found")
    logger.info(f"Manual journal {reference_id} deleted by {deleted_by}, {removed} lines removed")
    return removed
