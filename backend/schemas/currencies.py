from pydantic import BaseModel, field_validator
from typing import Optional
from decimal import Decimal


class CurrencyCreate(BaseModel):
    code: Optional[str] = None
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    symbol: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    min_rate: Optional[Decimal] = None
    max_rate: Optional[Decimal] = None
    decimal_places: Optional[int] = None
    is_local: bool = False

    @field_validator('code', mode='before')
    @classmethod
    def normalize_code(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v


class CurrencyUpdate(BaseModel):
    code: Optional[str] = None
    name_ar: Optional[str] = None
    name_en: Optional[str] = None
    symbol: Optional[str] = None
    exchange_rate: Optional[Decimal] = None
    min_rate: Optional[Decimal] = None
    max_rate: Optional[Decimal] = None
    decimal_places: Optional[int] = None
    is_local: Optional[bool] = None

    @field_validator('code', mode='before')
    @classmethod
    def normalize_code(cls, v):
        if isinstance(v, str):
            return v.strip().upper() or None
        return v


class Currency(BaseModel):
    id: int
    code: str
    name_ar: str
    name_en: Optional[str] = None
    symbol: Optional[str] = None
    exchange_rate: Decimal
    min_rate: Optional[Decimal] = None
    max_rate: Optional[Decimal] = None
    decimal_places: int
    is_local: bool
    is_active: bool

    class Config:
        from_attributes = True
