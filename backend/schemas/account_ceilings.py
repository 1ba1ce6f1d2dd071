from pydantic import BaseModel
from typing import Optional
from decimal import Decimal
from models.enums import CeilingScope, EntrySide, ExceedAction


class AccountCeilingCreate(BaseModel):
    scope: Optional[CeilingScope] = None
    account_id: Optional[int] = None
    account_group_id: Optional[int] = None
    currency_id: Optional[int] = None
    ceiling_amount: Optional[Decimal] = None
    account_nature: Optional[EntrySide] = None
    exceed_action: ExceedAction = ExceedAction.BLOCK


class AccountCeilingUpdate(BaseModel):
    currency_id: Optional[int] = None
    ceiling_amount: Optional[Decimal] = None
    account_nature: Optional[EntrySide] = None
    exceed_action: Optional[ExceedAction] = None


class AccountCeiling(BaseModel):
    id: int
    scope: CeilingScope
    account_id: Optional[int] = None
    account_group_id: Optional[int] = None
    target_name: Optional[str] = None
    currency_id: int
    currency_code: Optional[str] = None
    ceiling_amount: Decimal
    account_nature: EntrySide
    exceed_action: ExceedAction

    class Config:
        from_attributes = True


class CeilingCheck(BaseModel):
    """Outcome of one ceiling evaluation."""
    account_id: int
    currency_id: int
    side: EntrySide
    proposed_amount: Decimal
    ceiling_id: Optional[int] = None
    limit: Optional[Decimal] = None
    balance: Decimal = Decimal(0)
    projected: Decimal = Decimal(0)
    exceeded: bool = False
    warning: bool = False
    message: Optional[str] = None
