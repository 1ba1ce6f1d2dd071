"""Manual journals"""

from decimal import Decimal

import pytest

from database import transaction
from exceptions import ValidationError, NotFoundError, CeilingExceeded
from models.enums import CeilingScope, EntrySide, ExceedAction
from models.journal_entries import JournalEntry
from schemas.account_ceilings import AccountCeilingCreate
from schemas.journal_entries import ManualJournalCreate, ManualJournalUpdate
from crud import manual_journals
from crud.account_ceilings import create_ceiling


@pytest.fixture
def journal(chart, local_currency, today):
    def _build(**overrides):
        data = dict(
            journal_date=today,
            debit_account_id=chart["customer"].id,
            credit_account_id=chart["sales"].id,
            amount=Decimal("120"),
            currency_id=local_currency.id,
            notes="Opening balance",
        )
        data.update(overrides)
        return ManualJournalCreate(**data)
    return _build


def add_customer_ceiling(db, chart, local_currency, action):
    with transaction(db):
        create_ceiling(db, AccountCeilingCreate(
            scope=CeilingScope.ACCOUNT,
            account_id=chart["customer"].id,
            currency_id=local_currency.id,
            ceiling_amount=1000,
            account_nature=EntrySide.DEBIT,
            exceed_action=action,
        ))


class TestManualJournal:

    def test_create_posts_a_balanced_pair(self, db, chart, journal):
        group, warnings = manual_journals.create_manual_journal(db, journal(), created_by="tester")

        assert warnings == []
        assert group["reference_id"] == 1
        assert group["total_debit"] == group["total_credit"] == Decimal(120)
        assert [line.account_id for line in group["lines"]] == [chart["customer"].id, chart["sales"].id]

    def test_reference_ids_increase_and_are_not_reused(self, db, journal):
        first, _ = manual_journals.create_manual_journal(db, journal())
        second, _ = manual_journals.create_manual_journal(db, journal())
        manual_journals.delete_manual_journal(db, second["reference_id"])
        third, _ = manual_journals.create_manual_journal(db, journal())

        assert (first["reference_id"], second["reference_id"], third["reference_id"]) == (1, 2, 3)

    def test_same_account_on_both_sides(self, db, chart, journal):
        with pytest.raises(ValidationError) as exc_info:
            manual_journals.create_manual_journal(db, journal(credit_account_id=chart["customer"].id))
        assert exc_info.value.reason == "same_account"

    def test_missing_amount(self, db, journal):
        with pytest.raises(ValidationError):
            manual_journals.create_manual_journal(db, journal(amount=None))

    def test_ceiling_block_of_1001_against_1000(self, db, chart, local_currency, journal):
        add_customer_ceiling(db, chart, local_currency, ExceedAction.BLOCK)

        with pytest.raises(CeilingExceeded):
            manual_journals.create_manual_journal(db, journal(amount=Decimal(1001)))
        assert db.query(JournalEntry).count() == 0

    def test_ceiling_allow_of_1001_against_1000(self, db, chart, local_currency, journal):
        add_customer_ceiling(db, chart, local_currency, ExceedAction.ALLOW)

        group, warnings = manual_journals.create_manual_journal(db, journal(amount=Decimal(1001)))
        assert warnings == []
        assert group["total_debit"] == Decimal(1001)

    def test_update_merges_changes(self, db, chart, journal):
        group, _ = manual_journals.create_manual_journal(db, journal())
        updated, _ = manual_journals.update_manual_journal(
            db, group["reference_id"], ManualJournalUpdate(amount=Decimal(80), credit_account_id=chart["main_box"].id)
        )

        assert updated["total_debit"] == Decimal(80)
        assert [line.account_id for line in updated["lines"]] == [chart["customer"].id, chart["main_box"].id]
        assert updated["lines"][0].notes == "Opening balance"

    def test_get_and_list(self, db, journal):
        manual_journals.create_manual_journal(db, journal())
        manual_journals.create_manual_journal(db, journal(amount=Decimal(5)))

        assert manual_journals.get_manual_journal(db, 2)["total_debit"] == Decimal(5)
        assert [g["reference_id"] for g in manual_journals.list_manual_journals(db)] == [2, 1]

    def test_unknown_reference(self, db):
        with pytest.raises(NotFoundError):
            manual_journals.get_manual_journal(db, 9)
        with pytest.raises(NotFoundError):
            manual_journals.update_manual_journal(db, 9, ManualJournalUpdate(amount=Decimal(1)))
        with pytest.raises(NotFoundError):
            manual_journals.delete_manual_journal(db, 9)
