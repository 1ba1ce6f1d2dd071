"""Journal engine: post / repost / unpost"""

from decimal import Decimal

import pytest

from database import transaction
from exceptions import InvalidLine, UnbalancedEntry, IntegrityError, ConflictError
from models.enums import ReferenceType
from schemas.currencies import CurrencyCreate
from schemas.journal_entries import GroupRef, JournalLine
from crud import journal_entries
from crud.accounts import deactivate_account
from crud.currencies import create_currency


@pytest.fixture
def ref() -> GroupRef:
    return GroupRef(reference_type=ReferenceType.MANUAL, reference_id=7)


def pair(debit_account, credit_account, currency, value):
    return [
        JournalLine(account_id=debit_account.id, currency_id=currency.id, debit=value),
        JournalLine(account_id=credit_account.id, currency_id=currency.id, credit=value),
    ]


class TestPost:

    def test_balanced_group_is_written(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(
                db, ref, pair(chart["main_box"], chart["sales"], local_currency, "250.50"), today, created_by="tester"
            )

        entries = journal_entries.get_entries(db, ref)
        assert len(entries) == 2
        assert sum(e.debit for e in entries) == sum(e.credit for e in entries) == Decimal("250.50")
        assert [e.line_no for e in entries] == [1, 2]
        assert {e.created_by for e in entries} == {"tester"}
        assert all(e.entry_date == today for e in entries)

    def test_multi_line_group(self, db, chart, local_currency, ref, today):
        lines = [
            JournalLine(account_id=chart["main_box"].id, currency_id=local_currency.id, debit=70),
            JournalLine(account_id=chart["customer"].id, currency_id=local_currency.id, debit=30),
            JournalLine(account_id=chart["sales"].id, currency_id=local_currency.id, credit=100),
        ]
        with transaction(db):
            journal_entries.post(db, ref, lines, today)

        assert len(journal_entries.get_entries(db, ref)) == 3

    def test_amounts_are_rounded_to_the_currency_minor_unit(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, "10.005"), today)

        entries = journal_entries.get_entries(db, ref)
        assert entries[0].debit == Decimal("10.01")
        assert entries[1].credit == Decimal("10.01")

    def test_single_line_is_rejected(self, db, chart, local_currency, ref, today):
        lines = pair(chart["main_box"], chart["sales"], local_currency, 10)[:1]
        with pytest.raises(InvalidLine) as exc_info:
            journal_entries.post(db, ref, lines, today)
        assert exc_info.value.reason == "too_few_lines"

    @pytest.mark.parametrize("debit, credit", [(10, 10), (0, 0), (-5, 0)])
    def test_line_must_carry_exactly_one_positive_side(self, db, chart, local_currency, ref, today, debit, credit):
        lines = [
            JournalLine(account_id=chart["main_box"].id, currency_id=local_currency.id, debit=debit, credit=credit),
            JournalLine(account_id=chart["sales"].id, currency_id=local_currency.id, credit=10),
        ]
        with pytest.raises(InvalidLine):
            journal_entries.post(db, ref, lines, today)
        assert journal_entries.get_entries(db, ref) == []

    def test_unbalanced_group_is_rejected(self, db, chart, local_currency, ref, today):
        lines = [
            JournalLine(account_id=chart["main_box"].id, currency_id=local_currency.id, debit=100),
            JournalLine(account_id=chart["sales"].id, currency_id=local_currency.id, credit=99),
        ]
        with pytest.raises(UnbalancedEntry):
            with transaction(db):
                journal_entries.post(db, ref, lines, today)
        assert journal_entries.get_entries(db, ref) == []

    def test_each_currency_must_balance(self, db, chart, local_currency, ref, today):
        with transaction(db):
            usd = create_currency(db, CurrencyCreate(code="USD", name_ar="دولار", exchange_rate=Decimal("3.75")))
        lines = [
            JournalLine(account_id=chart["main_box"].id, currency_id=local_currency.id, debit=100),
            JournalLine(account_id=chart["sales"].id, currency_id=usd.id, credit=100),
        ]
        with pytest.raises(UnbalancedEntry):
            journal_entries.post(db, ref, lines, today)

    def test_group_must_touch_two_accounts(self, db, chart, local_currency, ref, today):
        with pytest.raises(InvalidLine) as exc_info:
            journal_entries.post(db, ref, pair(chart["sales"], chart["sales"], local_currency, 5), today)
        assert exc_info.value.reason == "single_account"

    def test_inactive_account_is_rejected(self, db, chart, local_currency, ref, today):
        with transaction(db):
            deactivate_account(db, chart["sales"].id)

        with pytest.raises(IntegrityError) as exc_info:
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)
        assert exc_info.value.reason == "account_inactive"

    def test_unknown_currency_is_rejected(self, db, chart, ref, today):
        lines = [
            JournalLine(account_id=chart["main_box"].id, currency_id=99, debit=5),
            JournalLine(account_id=chart["sales"].id, currency_id=99, credit=5),
        ]
        with pytest.raises(IntegrityError) as exc_info:
            journal_entries.post(db, ref, lines, today)
        assert exc_info.value.reason == "currency_not_found"

    def test_posting_twice_to_the_same_group_conflicts(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)

        with pytest.raises(ConflictError) as exc_info:
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)
        assert exc_info.value.reason == "group_already_posted"


class TestUnpost:

    def test_unpost_removes_all_lines(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)

        with transaction(db):
            removed = journal_entries.unpost(db, ref)

        assert removed == 2
        assert journal_entries.get_entries(db, ref) == []

    def test_unpost_twice_is_a_no_op(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)
        with transaction(db):
            journal_entries.unpost(db, ref)

        with transaction(db):
            assert journal_entries.unpost(db, ref) == 0

    def test_other_groups_are_untouched(self, db, chart, local_currency, ref, today):
        other = GroupRef(reference_type=ReferenceType.RECEIPT_VOUCHER, reference_id=ref.reference_id)
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)
            journal_entries.post(db, other, pair(chart["main_box"], chart["sales"], local_currency, 6), today)
        with transaction(db):
            journal_entries.unpost(db, ref)

        assert len(journal_entries.get_entries(db, other)) == 2


class TestRepost:

    def test_repost_replaces_lines(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(
                db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today, created_by="alice"
            )

        new_lines = pair(chart["customer"], chart["sales"], local_currency, 42)
        with transaction(db):
            journal_entries.repost(db, ref, new_lines, today, updated_by="bob")

        entries = journal_entries.get_entries(db, ref)
        assert [(e.account_id, e.debit, e.credit) for e in entries] == [
            (line.account_id, line.debit, line.credit) for line in new_lines
        ]
        assert {e.created_by for e in entries} == {"alice"}
        assert {e.updated_by for e in entries} == {"bob"}

    def test_invalid_repost_keeps_the_old_lines(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)

        bad_lines = [
            JournalLine(account_id=chart["main_box"].id, currency_id=local_currency.id, debit=5),
            JournalLine(account_id=chart["sales"].id, currency_id=local_currency.id, credit=4),
        ]
        with pytest.raises(UnbalancedEntry):
            with transaction(db):
                journal_entries.repost(db, ref, bad_lines, today)

        entries = journal_entries.get_entries(db, ref)
        assert [e.debit for e in entries] == [Decimal(5), Decimal(0)]


class TestAccountTotals:

    def test_totals_can_exclude_a_group(self, db, chart, local_currency, ref, today):
        other = GroupRef(reference_type=ReferenceType.MANUAL, reference_id=8)
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)
            journal_entries.post(db, other, pair(chart["main_box"], chart["sales"], local_currency, 7), today)

        assert journal_entries.get_account_totals(db, chart["main_box"].id, local_currency.id) == (
            Decimal(12), Decimal(0)
        )
        assert journal_entries.get_account_totals(
            db, chart["main_box"].id, local_currency.id, exclude_ref=ref
        ) == (Decimal(7), Decimal(0))

    def test_list_groups_nests_lines(self, db, chart, local_currency, ref, today):
        with transaction(db):
            journal_entries.post(db, ref, pair(chart["main_box"], chart["sales"], local_currency, 5), today)

        groups = journal_entries.list_groups(db, ReferenceType.MANUAL)
        assert len(groups) == 1
        assert groups[0]["reference_id"] == ref.reference_id
        assert groups[0]["total_debit"] == groups[0]["total_credit"] == Decimal(5)
        assert len(groups[0]["lines"]) == 2
