import enum


def enum_values(enum_cls):
    """Persist enum values ("asset") rather than member names ("ASSET")."""
    return [member.value for member in enum_cls]


class AccountNature(str, enum.Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"


class FinancialStatement(str, enum.Enum):
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"


class AccountLevel(str, enum.Enum):
    ROOT = "root"
    CHILD = "child"


class CeilingScope(str, enum.Enum):
    ACCOUNT = "account"
    GROUP = "group"


class EntrySide(str, enum.Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class ExceedAction(str, enum.Enum):
    BLOCK = "block"
    WARN = "warn"
    ALLOW = "allow"


class ReferenceType(str, enum.Enum):
    RECEIPT_VOUCHER = "receipt_voucher"
    PAYMENT_VOUCHER = "payment_voucher"
    MANUAL = "manual"


class SettlementMedium(str, enum.Enum):
    CASH = "cash"
    BANK = "bank"


BALANCE_SHEET_NATURES = {AccountNature.ASSET, AccountNature.LIABILITY, AccountNature.EQUITY}


def financial_statement_for(nature: AccountNature) -> FinancialStatement:
    if nature in BALANCE_SHEET_NATURES:
        return FinancialStatement.BALANCE_SHEET
    return FinancialStatement.INCOME_STATEMENT
