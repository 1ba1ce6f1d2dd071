from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from models.enums import SettlementMedium
from schemas.journal_entries import JournalEntry


class VoucherCreate(BaseModel):
    # Required-field checks live in crud.vouchers so they raise ValidationError
    voucher_no: Optional[str] = None
    voucher_date: Optional[date] = None
    settlement_medium: Optional[SettlementMedium] = None
    cash_box_account_id: Optional[int] = None
    bank_account_id: Optional[int] = None
    transfer_no: Optional[str] = None
    currency_id: Optional[int] = None
    amount: Optional[Decimal] = None
    account_id: Optional[int] = None
    analytic_account_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None

    @field_validator('voucher_no', 'transfer_no', mode='before')
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v


class VoucherUpdate(BaseModel):
    voucher_date: Optional[date] = None
    settlement_medium: Optional[SettlementMedium] = None
    cash_box_account_id: Optional[int] = None
    bank_account_id: Optional[int] = None
    transfer_no: Optional[str] = None
    currency_id: Optional[int] = None
    amount: Optional[Decimal] = None
    account_id: Optional[int] = None
    analytic_account_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None


class Voucher(BaseModel):
    id: int
    voucher_no: str
    voucher_date: date
    settlement_medium: SettlementMedium
    cash_box_account_id: Optional[int] = None
    bank_account_id: Optional[int] = None
    transfer_no: Optional[str] = None
    currency_id: int
    amount: Decimal
    account_id: int
    analytic_account_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None
    branch_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VoucherDetail(Voucher):
    entries: List[JournalEntry] = []


class NextVoucherNo(BaseModel):
    voucher_no: str
