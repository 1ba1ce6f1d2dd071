from pydantic import BaseModel
from typing import Optional


class TreasuryGroupCreate(BaseModel):
    code: Optional[str] = None
    name_ar: Optional[str] = None
    name_en: Optional[str] = None


class TreasuryGroupUpdate(BaseModel):
    name_ar: Optional[str] = None
    name_en: Optional[str] = None


class TreasuryGroup(BaseModel):
    id: int
    code: str
    name_ar: str
    name_en: Optional[str] = None

    class Config:
        from_attributes = True


class BankCreate(BaseModel):
    code: Optional[str] = None
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    bank_group_id: Optional[int] = None
    parent_account_id: Optional[int] = None


class BankUpdate(BaseModel):
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    bank_group_id: Optional[int] = None


class Bank(BaseModel):
    id: int
    code: str
    name_ar: str
    name_en: Optional[str] = None
    bank_group_id: int
    account_id: int
    account_code: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


class CashBoxCreate(BaseModel):
    code: Optional[str] = None
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    cash_box_group_id: Optional[int] = None
    parent_account_id: Optional[int] = None


class CashBoxUpdate(BaseModel):
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    cash_box_group_id: Optional[int] = None


class CashBox(BaseModel):
    id: int
    code: str
    name_ar: str
    name_en: Optional[str] = None
    cash_box_group_id: int
    account_id: int
    account_code: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True
