"""Chart of accounts: code allocation, inheritance, hierarchy walks and deactivation"""

import threading

import pytest

from database import SessionLocal, transaction
from exceptions import ValidationError, IntegrityError, ConflictError, NotFoundError
from models.accounts import Account
from models.enums import AccountLevel, AccountNature, FinancialStatement
from schemas.accounts import AccountCreate, AccountUpdate, AccountGroupCreate
from crud import accounts as crud_accounts
from crud.account_groups import create_account_group


class TestCreateAccount:
    """createAccount"""

    def test_first_root_gets_code_one(self, make_account):
        cash = make_account("Cash", nature=AccountNature.ASSET)

        assert cash.code == "1"
        assert cash.account_level == AccountLevel.ROOT
        assert cash.parent_id is None
        assert cash.financial_statement == FinancialStatement.BALANCE_SHEET

    def test_root_codes_increase(self, make_account):
        make_account("Cash", nature=AccountNature.ASSET)
        make_account("Capital", nature=AccountNature.EQUITY)
        sales = make_account("Sales", nature=AccountNature.REVENUE)

        assert sales.code == "3"
        assert sales.financial_statement == FinancialStatement.INCOME_STATEMENT

    def test_child_inherits_nature_and_gets_path_code(self, make_account):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        main_box = make_account("Main Box", parent_id=cash.id)
        drawer = make_account("Drawer", parent_id=main_box.id)

        assert main_box.code == "1-1"
        assert main_box.nature == AccountNature.ASSET
        assert main_box.account_level == AccountLevel.CHILD
        assert drawer.code == "1-1-1"
        assert drawer.financial_statement == FinancialStatement.BALANCE_SHEET

    def test_inactive_children_still_count_for_codes(self, db, make_account):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        first = make_account("First", parent_id=cash.id)
        with transaction(db):
            crud_accounts.deactivate_account(db, first.id)

        second = make_account("Second", parent_id=cash.id)
        assert second.code == "1-2"

    def test_name_is_required(self, db):
        with pytest.raises(ValidationError) as exc_info:
            crud_accounts.create_account(db, AccountCreate(name_ar="  ", nature=AccountNature.ASSET))
        assert exc_info.value.reason == "name_required"

    def test_root_requires_nature(self, db):
        with pytest.raises(ValidationError) as exc_info:
            crud_accounts.create_account(db, AccountCreate(name_ar="Cash"))
        assert exc_info.value.reason == "nature_required"

    def test_child_level_requires_parent(self, db):
        with pytest.raises(ValidationError) as exc_info:
            crud_accounts.create_account(
                db, AccountCreate(name_ar="Box", account_level=AccountLevel.CHILD, nature=AccountNature.ASSET)
            )
        assert exc_info.value.reason == "parent_required"

    def test_child_cannot_declare_nature(self, make_account, db):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        with pytest.raises(ValidationError) as exc_info:
            crud_accounts.create_account(
                db, AccountCreate(name_ar="Box", parent_id=cash.id, nature=AccountNature.EXPENSE)
            )
        assert exc_info.value.reason == "nature_not_allowed"

    def test_root_level_with_parent_is_rejected(self, make_account, db):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        with pytest.raises(ValidationError) as exc_info:
            crud_accounts.create_account(
                db, AccountCreate(name_ar="Box", parent_id=cash.id, account_level=AccountLevel.ROOT)
            )
        assert exc_info.value.reason == "root_with_parent"

    def test_missing_parent_is_an_integrity_error(self, db):
        with pytest.raises(IntegrityError) as exc_info:
            crud_accounts.create_account(db, AccountCreate(name_ar="Orphan", parent_id=999))
        assert exc_info.value.reason == "account_not_found"

    def test_inactive_parent_is_rejected(self, db, make_account):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        with transaction(db):
            crud_accounts.deactivate_account(db, cash.id)

        with pytest.raises(IntegrityError) as exc_info:
            crud_accounts.create_account(db, AccountCreate(name_ar="Box", parent_id=cash.id))
        assert exc_info.value.reason == "account_inactive"

    def test_group_must_exist(self, db):
        with pytest.raises(IntegrityError):
            crud_accounts.create_account(
                db, AccountCreate(name_ar="Cash", nature=AccountNature.ASSET, account_group_id=42)
            )

    def test_code_longer_than_the_column_is_rejected(self, db, make_account, monkeypatch):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        monkeypatch.setattr("crud.accounts._next_child_code", lambda db, parent: "1-" + "9" * 300)

        with pytest.raises(ValidationError) as exc_info:
            crud_accounts.create_account(db, AccountCreate(name_ar="Box", parent_id=cash.id))
        assert exc_info.value.reason == "account_code_too_long"

    def test_concurrent_children_get_distinct_codes(self, db, make_account):
        parent = make_account("Cash", nature=AccountNature.ASSET)
        parent_id = parent.id
        db.commit()

        barrier = threading.Barrier(2)
        codes, errors = [], []

        def worker(name):
            session = SessionLocal()
            try:
                barrier.wait()
                with transaction(session):
                    account = crud_accounts.create_account(session, AccountCreate(name_ar=name, parent_id=parent_id))
                    codes.append(account.code)
            except Exception as exc:
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(name,)) for name in ("Box A", "Box B")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert errors == []
        assert sorted(codes) == ["1-1", "1-2"]

    def test_concurrent_roots_get_distinct_codes(self, engine):
        barrier = threading.Barrier(2)
        codes, errors = [], []

        def worker(name):
            session = SessionLocal()
            try:
                barrier.wait()
                with transaction(session):
                    account = crud_accounts.create_account(
                        session, AccountCreate(name_ar=name, nature=AccountNature.ASSET)
                    )
                    codes.append(account.code)
            except Exception as exc:
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=worker, args=(name,)) for name in ("Cash", "Banks")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert errors == []
        assert sorted(codes) == ["1", "2"]


class TestResolveRoot:
    """resolveRoot"""

    def test_descendants_share_root_classification(self, db, make_account):
        expense = make_account("Expenses", nature=AccountNature.EXPENSE)
        rent = make_account("Rent", parent_id=expense.id)
        office = make_account("Office", parent_id=rent.id)

        for account in (expense, rent, office):
            root = crud_accounts.resolve_root(db, account.id)
            assert root.id == expense.id
            assert root.nature == account.nature
            assert root.financial_statement == account.financial_statement

    def test_missing_account(self, db):
        with pytest.raises(IntegrityError) as exc_info:
            crud_accounts.resolve_root(db, 12345)
        assert exc_info.value.reason == "account_not_found"

    def test_dangling_parent_reference(self, db, make_account):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        box = make_account("Box", parent_id=cash.id)
        with transaction(db):
            db.query(Account).filter(Account.id == box.id).update({"parent_id": 9999})

        with pytest.raises(IntegrityError) as exc_info:
            crud_accounts.resolve_root(db, box.id)
        assert exc_info.value.reason == "account_parent_missing"

    def test_cycle_terminates(self, db, make_account):
        cash = make_account("Cash", nature=AccountNature.ASSET)
        box = make_account("Box", parent_id=cash.id)
        with transaction(db):
            db.query(Account).filter(Account.id == cash.id).update(
                {"parent_id": box.id, "account_level": AccountLevel.CHILD}
            )

        with pytest.raises(IntegrityError) as exc_info:
            crud_accounts.resolve_root(db, box.id)
        assert exc_info.value.reason == "account_hierarchy_corrupt"


class TestAccountTree:

    def test_tree_nests_children_under_parents(self, db, chart):
        tree = crud_accounts.build_account_tree(crud_accounts.list_accounts(db))

        assert [node["code"] for node in tree] == ["1", "2", "3"]
        assert [child["code"] for child in tree[0]["children"]] == ["1-1"]
        assert tree[2]["children"] == []

    def test_roots_only(self, db, chart):
        roots = crud_accounts.list_root_accounts(db)
        assert {account.code for account in roots} == {"1", "2", "3"}

    def test_inactive_accounts_are_hidden_by_default(self, db, chart):
        with transaction(db):
            crud_accounts.deactivate_account(db, chart["sales"].id)

        codes = {account.code for account in crud_accounts.list_accounts(db)}
        assert "3" not in codes
        assert "3" in {account.code for account in crud_accounts.list_accounts(db, include_inactive=True)}


class TestUpdateAccount:

    def test_rename_and_regroup(self, db, chart):
        with transaction(db):
            group = create_account_group(db, AccountGroupCreate(code="CUST", name_ar="Customers"))
        with transaction(db):
            account = crud_accounts.update_account(
                db, chart["customer"].id, AccountUpdate(name_ar="Customer B", account_group_id=group.id)
            )

        assert account.name_ar == "Customer B"
        assert account.account_group_id == group.id
        assert account.code == "2-1"

    def test_unknown_account(self, db):
        with pytest.raises(NotFoundError):
            crud_accounts.update_account(db, 404, AccountUpdate(name_ar="x"))


class TestDeactivateAccount:
    """deactivate"""

    def test_leaf_without_postings(self, db, chart):
        with transaction(db):
            account = crud_accounts.deactivate_account(db, chart["customer"].id, deleted_by="tester")

        assert account.is_active is False
        assert account.updated_by == "tester"

    def test_active_children_block_deactivation(self, db, chart):
        with pytest.raises(ConflictError) as exc_info:
            crud_accounts.deactivate_account(db, chart["cash"].id)
        assert exc_info.value.reason == "account_has_active_children"

    def test_postings_block_deactivation(self, db, chart, local_currency, today):
        from crud import journal_entries
        from models.enums import ReferenceType
        from schemas.journal_entries import GroupRef, JournalLine

        with transaction(db):
            journal_entries.post(
                db,
                GroupRef(reference_type=ReferenceType.MANUAL, reference_id=1),
                [
                    JournalLine(account_id=chart["main_box"].id, currency_id=local_currency.id, debit=100),
                    JournalLine(account_id=chart["sales"].id, currency_id=local_currency.id, credit=100),
                ],
                today,
            )

        with pytest.raises(ConflictError) as exc_info:
            crud_accounts.deactivate_account(db, chart["sales"].id)
        assert exc_info.value.reason == "account_has_postings"

    def test_unknown_account(self, db):
        with pytest.raises(NotFoundError):
            crud_accounts.deactivate_account(db, 404)
