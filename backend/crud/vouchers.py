"""
Receipt and payment vouchers.

A voucher moves `amount` between a settlement account (a cash box or a bank
account, depending on the medium) and a counterparty account. A receipt debits
the settlement account, a payment credits it. Each voucher owns exactly one
journal group keyed by (voucher type, voucher id), and every create, update
and delete writes the document and its postings in one transaction.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import BigInteger, cast, func, or_
from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError
from sqlalchemy.orm import Session

from database import transaction
from exceptions import ValidationError, NotFoundError, ConflictError
from models.banks import Bank
from models.cash_boxes import CashBox
from models.enums import EntrySide, ReferenceType, SettlementMedium
from models.audit_mixin import now_local
from models.journal_entries import JournalEntry
from models.vouchers import ReceiptVoucher, PaymentVoucher
from schemas.journal_entries import GroupRef, JournalLine
from schemas.vouchers import VoucherCreate, VoucherUpdate
from crud import journal_entries
from crud.account_ceilings import check_lines
from crud.accounts import require_account
from crud.currencies import require_currency
from crud.sequences import lock_sequence, RECEIPT_VOUCHER_NO, PAYMENT_VOUCHER_NO
from utils.money import quantize_amount, to_decimal

logger = logging.getLogger(__name__)

DOCUMENT_FIELDS = (
    "voucher_date", "settlement_medium", "cash_box_account_id", "bank_account_id", "transfer_no",
    "currency_id", "amount", "account_id", "analytic_account_id", "cost_center_id", "notes",
)


class VoucherOrchestrator:
    """Document lifecycle for one voucher type, kept in lockstep with its journal group."""

    def __init__(self, model, reference_type: ReferenceType, settlement_side: EntrySide, label: str, sequence_name: str):
        self.model = model
        self.sequence_name = sequence_name
        self.reference_type = reference_type
        self.settlement_side = settlement_side
        self.label = label

    def ref(self, voucher_id: int) -> GroupRef:
        return GroupRef(reference_type=self.reference_type, reference_id=voucher_id)

    # Reads

    def get(self, db: Session, voucher_id: int):
        voucher = db.query(self.model).filter(self.model.id == voucher_id).first()
        if voucher is None:
            raise NotFoundError(f"{self.label} {voucher_id} not found", reason="voucher_not_found")
        return voucher

    def get_entries(self, db: Session, voucher_id: int) -> List[JournalEntry]:
        return journal_entries.get_entries(db, self.ref(voucher_id))

    def list(
        self,
        db: Session,
        search: Optional[str] = None,
        on_date: Optional[date] = None,
        all_dates: bool = False,
        skip: int = 0,
        limit: int = 100,
    ):
        """Vouchers of one day (today by default), or of every day with `all_dates`."""
        query = db.query(self.model)
        if not all_dates:
            query = query.filter(self.model.voucher_date == (on_date or now_local().date()))
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                self.model.voucher_no.ilike(pattern),
                self.model.notes.ilike(pattern),
                self.model.transfer_no.ilike(pattern),
            ))
        return query.order_by(self.model.voucher_date.desc(), self.model.id.desc()).offset(skip).limit(limit).all()

    def _highest_voucher_no(self, db: Session) -> int:
        # Only purely numeric numbers take part in auto numbering
        return db.query(func.max(cast(self.model.voucher_no, BigInteger))).filter(
            self.model.voucher_no.regexp_match("^[0-9]+$")
        ).scalar() or 0

    def next_voucher_no(self, db: Session) -> str:
        """Preview of the number the next unnumbered voucher will get."""
        return str(self._highest_voucher_no(db) + 1)

    def allocate_voucher_no(self, db: Session) -> str:
        """Take the next number under the per-type sequence lock, held until the caller commits."""
        lock_sequence(db, self.sequence_name)
        return str(self._highest_voucher_no(db) + 1)

    # Validation

    def _validate(self, db: Session, values: dict) -> dict:
        """Check document fields and referenced rows; returns values with the amount rounded."""
        missing = [name for name in ("voucher_date", "settlement_medium", "currency_id", "amount", "account_id")
                   if values.get(name) is None]
        if missing:
            raise ValidationError(f"{self.label} is missing {', '.join(missing)}", reason="required_fields_missing")

        medium = values["settlement_medium"]
        if medium == SettlementMedium.CASH:
            if values.get("cash_box_account_id") is None:
                raise ValidationError("A cash voucher needs a cash box account", reason="cash_box_required")
            if values.get("bank_account_id") is not None:
                raise ValidationError("A cash voucher cannot carry a bank account", reason="settlement_medium_mismatch")
        else:
            if values.get("bank_account_id") is None:
                raise ValidationError("A bank voucher needs a bank account", reason="bank_account_required")
            if values.get("cash_box_account_id") is not None:
                raise ValidationError("A bank voucher cannot carry a cash box account", reason="settlement_medium_mismatch")

        settlement_id = values["cash_box_account_id"] if medium == SettlementMedium.CASH else values["bank_account_id"]
        if settlement_id == values["account_id"]:
            raise ValidationError("Settlement and counterparty accounts must differ", reason="same_account")

        amount = to_decimal(values["amount"])
        if amount <= 0:
            raise ValidationError("Amount must be positive", reason="invalid_amount")

        require_account(db, settlement_id)
        require_account(db, values["account_id"])
        currency = require_currency(db, values["currency_id"])
        self._check_settlement_registry(db, medium, settlement_id)

        amount = quantize_amount(amount, currency.decimal_places)
        if amount <= 0:
            raise ValidationError(f"Amount is below the minor unit of {currency.code}", reason="invalid_amount")
        return {**values, "amount": amount}

    def _check_settlement_registry(self, db: Session, medium: SettlementMedium, account_id: int):
        """A bank's account cannot settle a cash voucher, nor a cash box's a bank voucher."""
        if medium == SettlementMedium.CASH:
            if db.query(Bank.id).filter(Bank.account_id == account_id).first() is not None:
                raise ValidationError("The selected cash box account belongs to a bank", reason="settlement_medium_mismatch")
        elif db.query(CashBox.id).filter(CashBox.account_id == account_id).first() is not None:
            raise ValidationError("The selected bank account belongs to a cash box", reason="settlement_medium_mismatch")

    def _ensure_voucher_no_free(self, db: Session, voucher_no: str, voucher_id: Optional[int] = None):
        query = db.query(self.model.id).filter(self.model.voucher_no == voucher_no)
        if voucher_id is not None:
            query = query.filter(self.model.id != voucher_id)
        if query.first() is not None:
            raise ConflictError(f"{self.label} number {voucher_no} already exists", reason="duplicate_voucher_no")

    def build_lines(self, voucher) -> List[JournalLine]:
        settlement = JournalLine(
            account_id=voucher.settlement_account_id,
            currency_id=voucher.currency_id,
            cost_center_id=voucher.cost_center_id,
            notes=voucher.notes,
        )
        counterparty = settlement.model_copy(update={"account_id": voucher.account_id})
        if self.settlement_side == EntrySide.DEBIT:
            return [
                settlement.model_copy(update={"debit": voucher.amount}),
                counterparty.model_copy(update={"credit": voucher.amount}),
            ]
        return [
            counterparty.model_copy(update={"debit": voucher.amount}),
            settlement.model_copy(update={"credit": voucher.amount}),
        ]

    # Mutations

    def create(
        self,
        db: Session,
        voucher: VoucherCreate,
        created_by: Optional[str] = None,
        branch_id: Optional[int] = None,
    ) -> Tuple[object, List[str]]:
        """
        Save a voucher and post its journal group in one transaction.

        Returns the voucher and any ceiling warnings.

        Raises:
            ValidationError: required or medium-specific fields missing or inconsistent
            IntegrityError: an account or the currency is missing or inactive
            ConflictError: the voucher number is taken
            CeilingExceeded: a blocking ceiling would be crossed
        """
        with transaction(db):
            values = self._validate(db, voucher.model_dump())
            voucher_no = voucher.voucher_no or self.allocate_voucher_no(db)
            self._ensure_voucher_no_free(db, voucher_no)

            db_voucher = self.model(
                voucher_no=voucher_no,
                branch_id=branch_id,
                created_by=created_by,
                **{name: values[name] for name in DOCUMENT_FIELDS},
            )
            db.add(db_voucher)
            try:
                with db.begin_nested():
                    db.flush()
            except SQLAlchemyIntegrityError:
                raise ConflictError(f"{self.label} number {voucher_no} already exists", reason="duplicate_voucher_no")

            lines = self.build_lines(db_voucher)
            warnings = check_lines(db, lines)
            journal_entries.post(
                db, self.ref(db_voucher.id), lines, db_voucher.voucher_date,
                created_by=created_by, branch_id=branch_id,
            )
            logger.info(
                f"{self.label} {db_voucher.voucher_no} (id {db_voucher.id}) created by {created_by}: "
                f"{db_voucher.settlement_medium.value} {db_voucher.amount}"
            )
        return db_voucher, warnings

    def update(
        self,
        db: Session,
        voucher_id: int,
        voucher_update: VoucherUpdate,
        updated_by: Optional[str] = None,
    ) -> Tuple[object, List[str]]:
        """Amend a voucher and repost its journal group in one transaction."""
        update_data = voucher_update.model_dump(exclude_unset=True)
        with transaction(db):
            db_voucher = self.get(db, voucher_id)
            values = {name: getattr(db_voucher, name) for name in DOCUMENT_FIELDS}
            values.update(update_data)
            # Switching medium drops the account of the old medium unless it was sent again
            if update_data.get("settlement_medium") == SettlementMedium.CASH and "bank_account_id" not in update_data:
                values["bank_account_id"] = None
            if update_data.get("settlement_medium") == SettlementMedium.BANK and "cash_box_account_id" not in update_data:
                values["cash_box_account_id"] = None
            values = self._validate(db, values)

            for name in DOCUMENT_FIELDS:
                setattr(db_voucher, name, values[name])
            db_voucher.updated_by = updated_by
            db.flush()

            ref = self.ref(db_voucher.id)
            lines = self.build_lines(db_voucher)
            warnings = check_lines(db, lines, exclude_ref=ref)
            journal_entries.repost(
                db, ref, lines, db_voucher.voucher_date,
                updated_by=updated_by, branch_id=db_voucher.branch_id,
            )
            logger.info(f"{self.label} {db_voucher.voucher_no} (id {voucher_id}) updated by {updated_by}: {sorted(update_data)}")
        return db_voucher, warnings

    def delete(self, db: Session, voucher_id: int, deleted_by: Optional[str] = None) -> int:
        """Unpost a voucher's journal group and remove the voucher. Returns lines removed."""
        with transaction(db):
            db_voucher = self.get(db, voucher_id)
            voucher_no = db_voucher.voucher_no
            removed = journal_entries.unpost(db, self.ref(voucher_id))
            db.delete(db_voucher)
            db.flush()
        logger.info(f"{self.label} {voucher_no} (id {voucher_id}) deleted by {deleted_by}, {removed} journal lines removed")
        return removed


receipt_vouchers = VoucherOrchestrator(
    ReceiptVoucher, ReferenceType.RECEIPT_VOUCHER, EntrySide.DEBIT, "Receipt voucher", RECEIPT_VOUCHER_NO
)
payment_vouchers = VoucherOrchestrator(
    PaymentVoucher, ReferenceType.PAYMENT_VOUCHER, EntrySide.CREDIT, "Payment voucher", PAYMENT_VOUCHER_NO
)
