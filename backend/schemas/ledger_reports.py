from pydantic import BaseModel
from typing import List, Optional
from datetime import date
from decimal import Decimal
from models.enums import AccountNature, FinancialStatement, ReferenceType


class AccountBalance(BaseModel):
    account_id: int
    currency_id: int
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal  # debit minus credit


class TrialBalanceRow(BaseModel):
    account_id: int
    code: str
    name_ar: str
    nature: AccountNature
    financial_statement: FinancialStatement
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


class TrialBalanceSection(BaseModel):
    financial_statement: FinancialStatement
    rows: List[TrialBalanceRow]
    total_debit: Decimal
    total_credit: Decimal


class TrialBalance(BaseModel):
    currency_id: int
    as_of: Optional[date] = None
    sections: List[TrialBalanceSection]
    total_debit: Decimal
    total_credit: Decimal


class AccountStatementLine(BaseModel):
    entry_id: int
    entry_date: date
    reference_type: ReferenceType
    reference_id: int
    notes: Optional[str] = None
    debit: Decimal
    credit: Decimal
    balance: Decimal


class AccountStatement(BaseModel):
    account_id: int
    currency_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    opening_balance: Decimal
    lines: List[AccountStatementLine]
    closing_balance: Decimal
