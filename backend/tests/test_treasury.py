"""Banks and cash boxes"""

from decimal import Decimal

import pytest

from database import transaction
from exceptions import ConflictError, ValidationError
from models.enums import AccountNature, SettlementMedium
from schemas.treasury import TreasuryGroupCreate, BankCreate, BankUpdate, CashBoxCreate
from schemas.vouchers import VoucherCreate
from crud.accounts import get_account
from crud.treasury import banks, cash_boxes
from crud.vouchers import receipt_vouchers


@pytest.fixture
def bank(db, make_account):
    banks_root = make_account("Banks", nature=AccountNature.ASSET)
    with transaction(db):
        group = banks.create_group(db, TreasuryGroupCreate(code="LOCAL", name_ar="Local banks"))
        return banks.create(db, BankCreate(
            code="RJHI", name_ar="Rajhi", bank_group_id=group.id, parent_account_id=banks_root.id
        ), created_by="tester")


class TestBanks:

    def test_create_opens_a_child_account(self, db, bank):
        account = get_account(db, bank.account_id)

        assert account.code == "1-1"
        assert account.name_ar == "Rajhi"
        assert account.nature == AccountNature.ASSET
        assert banks.to_dict(bank)["account_code"] == "1-1"

    def test_rename_is_mirrored_on_the_account(self, db, bank):
        with transaction(db):
            banks.update(db, bank.id, BankUpdate(name_ar="Al Rajhi"))

        assert get_account(db, bank.account_id).name_ar == "Al Rajhi"

    def test_delete_deactivates_the_account(self, db, bank):
        account_id = bank.account_id
        with transaction(db):
            banks.delete(db, bank.id)

        assert get_account(db, account_id).is_active is False
        assert banks.list(db) == []

    def test_delete_is_refused_while_the_account_has_postings(self, db, bank, chart, local_currency, today):
        receipt_vouchers.create(db, VoucherCreate(
            voucher_date=today,
            settlement_medium=SettlementMedium.BANK,
            bank_account_id=bank.account_id,
            currency_id=local_currency.id,
            amount=Decimal(10),
            account_id=chart["customer"].id,
        ))

        with pytest.raises(ConflictError):
            with transaction(db):
                banks.delete(db, bank.id)
        assert len(banks.list(db)) == 1

    def test_bank_account_cannot_settle_cash(self, db, bank, chart, local_currency, today):
        with pytest.raises(ValidationError) as exc_info:
            receipt_vouchers.create(db, VoucherCreate(
                voucher_date=today,
                settlement_medium=SettlementMedium.CASH,
                cash_box_account_id=bank.account_id,
                currency_id=local_currency.id,
                amount=Decimal(10),
                account_id=chart["customer"].id,
            ))
        assert exc_info.value.reason == "settlement_medium_mismatch"

    def test_group_with_members_cannot_be_deleted(self, db, bank):
        with pytest.raises(ConflictError):
            banks.delete_group(db, bank.bank_group_id)

    def test_duplicate_code(self, db, bank):
        with pytest.raises(ConflictError):
            banks.create(db, BankCreate(
                code="RJHI", name_ar="Other", bank_group_id=bank.bank_group_id, parent_account_id=1
            ))


class TestCashBoxes:

    def test_create_and_list(self, db, make_account):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        with transaction(db):
            group = cash_boxes.create_group(db, TreasuryGroupCreate(code="MAIN", name_ar="Main"))
            cash_boxes.create(db, CashBoxCreate(
                code="BOX1", name_ar="Front desk", cash_box_group_id=group.id, parent_account_id=cash.id
            ))

        [row] = cash_boxes.list(db)
        assert row["code"] == "BOX1"
        assert row["account_code"] == "1-1"
        assert row["cash_box_group_id"] == group.id

    def test_parent_account_is_required(self, db, engine):
        with transaction(db):
            group = cash_boxes.create_group(db, TreasuryGroupCreate(code="MAIN", name_ar="Main"))
        with pytest.raises(ValidationError):
            cash_boxes.create(db, CashBoxCreate(code="BOX1", name_ar="Front desk", cash_box_group_id=group.id))
