"""Balances, trial balance and account statements"""

from datetime import timedelta
from decimal import Decimal

import pytest

from database import transaction
from exceptions import IntegrityError
from models.enums import FinancialStatement, ReferenceType
from schemas.journal_entries import GroupRef, JournalLine
from crud import journal_entries, ledger_reports
from crud.accounts import deactivate_account


@pytest.fixture
def postings(db, chart, local_currency, today):
    """Two sales on consecutive days, then a collection from the customer"""
    def line(account, debit=0, credit=0):
        return JournalLine(account_id=chart[account].id, currency_id=local_currency.id, debit=debit, credit=credit)

    with transaction(db):
        journal_entries.post(db, GroupRef(reference_type=ReferenceType.MANUAL, reference_id=1),
                             [line("customer", debit=100), line("sales", credit=100)], today - timedelta(days=1))
        journal_entries.post(db, GroupRef(reference_type=ReferenceType.MANUAL, reference_id=2),
                             [line("customer", debit=50), line("sales", credit=50)], today)
        journal_entries.post(db, GroupRef(reference_type=ReferenceType.RECEIPT_VOUCHER, reference_id=1),
                             [line("main_box", debit=120), line("customer", credit=120)], today)


class TestLedgerReports:

    def test_account_balance(self, db, chart, local_currency, postings):
        balance = ledger_reports.account_balance(db, chart["customer"].id, local_currency.id)

        assert balance["total_debit"] == Decimal(150)
        assert balance["total_credit"] == Decimal(120)
        assert balance["balance"] == Decimal(30)

    def test_trial_balance_sections_balance(self, db, local_currency, postings):
        report = ledger_reports.trial_balance(db, local_currency.id)

        assert report["total_debit"] == report["total_credit"] == Decimal(270)
        sections = {s["financial_statement"]: s for s in report["sections"]}
        assert [row["code"] for row in sections[FinancialStatement.BALANCE_SHEET]["rows"]] == ["1-1", "2-1"]
        [sales] = sections[FinancialStatement.INCOME_STATEMENT]["rows"]
        assert sales["balance"] == Decimal(-150)

    def test_statement_running_balance(self, db, chart, local_currency, postings, today):
        statement = ledger_reports.account_statement(db, chart["customer"].id, local_currency.id, start_date=today)

        assert statement["opening_balance"] == Decimal(100)
        assert [line["balance"] for line in statement["lines"]] == [Decimal(150), Decimal(30)]
        assert statement["closing_balance"] == Decimal(30)

    def test_unknown_account(self, db, local_currency):
        with pytest.raises(IntegrityError) as exc_info:
            ledger_reports.account_balance(db, 999, local_currency.id)
        assert exc_info.value.reason == "account_not_found"

    def test_inactive_account_is_still_reportable(self, db, chart, local_currency):
        with transaction(db):
            deactivate_account(db, chart["main_box"].id)

        balance = ledger_reports.account_balance(db, chart["main_box"].id, local_currency.id)
        assert balance["balance"] == Decimal(0)
