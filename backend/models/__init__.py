from models.accounts import Account, AccountGroup
from models.currencies import Currency
from models.account_ceilings import AccountCeiling
from models.journal_entries import JournalEntry
from models.vouchers import ReceiptVoucher, PaymentVoucher
from models.banks import Bank, BankGroup
from models.cash_boxes import CashBox, CashBoxGroup
from models.ledger_sequences import LedgerSequence

__all__ = ['Account', 'AccountCeiling', 'AccountGroup', 'Bank', 'BankGroup', 'CashBox', 'CashBoxGroup', 'Currency', 'JournalEntry', 'LedgerSequence', 'PaymentVoucher', 'ReceiptVoucher',]
