from sqlalchemy import func
from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError
from sqlalchemy.orm import Session
from models.ledger_sequences import LedgerSequence
from models.journal_entries import JournalEntry
from models.enums import ReferenceType

ROOT_ACCOUNTS = "root_accounts"
MANUAL_JOURNAL = "manual_journal"
RECEIPT_VOUCHER_NO = "receipt_voucher_no"
PAYMENT_VOUCHER_NO = "payment_voucher_no"

SEQUENCE_NAMES = (ROOT_ACCOUNTS, MANUAL_JOURNAL, RECEIPT_VOUCHER_NO, PAYMENT_VOUCHER_NO)


def seed_sequences(db: Session):
    for name in SEQUENCE_NAMES:
        if db.get(LedgerSequence, name) is None:
            db.add(LedgerSequence(name=name, last_value=0))
    db.flush()


def lock_sequence(db: Session, name: str) -> LedgerSequence:
    """Row-lock the named sequence for the rest of the caller's transaction."""
    sequence = db.query(LedgerSequence).filter(LedgerSequence.name == name).with_for_update().first()
    if sequence is None:
        # Not seeded yet; another transaction may be creating it at the same time
        try:
            with db.begin_nested():
                db.add(LedgerSequence(name=name, last_value=0))
        except SQLAlchemyIntegrityError:
            pass
        sequence = db.query(LedgerSequence).filter(LedgerSequence.name == name).with_for_update().one()
    return sequence


def next_manual_reference(db: Session) -> int:
    """Allocate the next reference id for a manual journal group."""
    sequence = lock_sequence(db, MANUAL_JOURNAL)
    highest_posted = db.query(func.max(JournalEntry.reference_id)).filter(
        JournalEntry.reference_type == ReferenceType.MANUAL
    ).scalar() or 0
    sequence.last_value = max(sequence.last_value, highest_posted) + 1
    db.flush()
    return sequence.last_value
