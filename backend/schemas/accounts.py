from pydantic import BaseModel, field_validator
from typing import List, Optional
from datetime import datetime
from models.enums import AccountNature, AccountLevel, FinancialStatement


def _strip(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class AccountCreate(BaseModel):
    # Presence rules (name required, nature only on roots) are checked by crud.accounts
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    parent_id: Optional[int] = None
    nature: Optional[AccountNature] = None
    account_level: Optional[AccountLevel] = None
    account_group_id: Optional[int] = None
    branch_id: Optional[int] = None

    @field_validator('name_ar', 'name_en', mode='before')
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class AccountUpdate(BaseModel):
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    account_group_id: Optional[int] = None

    @field_validator('name_ar', 'name_en', mode='before')
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class Account(BaseModel):
    id: int
    code: str
    name_ar: str
    name_en: Optional[str] = None
    nature: AccountNature
    financial_statement: FinancialStatement
    account_level: AccountLevel
    parent_id: Optional[int] = None
    account_group_id: Optional[int] = None
    is_active: bool
    branch_id: Optional[int] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class AccountNode(Account):
    children: List['AccountNode'] = []


class AccountTree(BaseModel):
    tree: List[AccountNode]
    flat: List[Account]


class AccountGroupCreate(BaseModel):
    code: Optional[str] = None
    name_ar: Optional[str] = None
    name_en: Optional[str] = None

    @field_validator('code', 'name_ar', 'name_en', mode='before')
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class AccountGroupUpdate(BaseModel):
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator('name_ar', 'name_en', mode='before')
    @classmethod
    def strip_text(cls, v):
        return _strip(v)


class AccountGroup(BaseModel):
    id: int
    code: str
    name_ar: str
    name_en: Optional[str] = None
    is_active: bool

    class Config:
        from_attributes = True


AccountNode.model_rebuild()
