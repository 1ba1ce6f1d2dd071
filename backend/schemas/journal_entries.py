from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from models.enums import ReferenceType


class GroupRef(BaseModel):
    """Identifies one journal group: the lines of a single source document."""
    model_config = ConfigDict(frozen=True)

    reference_type: ReferenceType
    reference_id: int

    def __str__(self):
        return f"{self.reference_type.value}#{self.reference_id}"


class JournalLine(BaseModel):
    account_id: int
    currency_id: int
    debit: Decimal = Decimal(0)
    credit: Decimal = Decimal(0)
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None


class JournalEntry(BaseModel):
    id: int
    reference_type: ReferenceType
    reference_id: int
    line_no: int
    account_id: int
    currency_id: int
    debit: Decimal
    credit: Decimal
    entry_date: date
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None
    branch_id: Optional[int] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class JournalGroup(BaseModel):
    reference_type: ReferenceType
    reference_id: int
    entry_date: date
    total_debit: Decimal
    total_credit: Decimal
    lines: List[JournalEntry]


class ManualJournalCreate(BaseModel):
    journal_date: Optional[date] = None
    debit_account_id: Optional[int] = None
    credit_account_id: Optional[int] = None
    amount: Optional[Decimal] = None
    currency_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None


class ManualJournalUpdate(BaseModel):
    journal_date: Optional[date] = None
    debit_account_id: Optional[int] = None
    credit_account_id: Optional[int] = None
    amount: Optional[Decimal] = None
    currency_id: Optional[int] = None
    cost_center_id: Optional[int] = None
    notes: Optional[str] = None
