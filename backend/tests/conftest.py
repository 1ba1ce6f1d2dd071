"""
Shared fixtures.

Every test gets its own SQLite file database built with init_engine/init_db,
so tests never see each other's rows.
"""

import os
from datetime import date

import pytest

# Must be set before config is imported anywhere
os.environ.setdefault("LOG_DIR", os.path.join(os.path.dirname(__file__), ".logs"))
os.environ.setdefault("DATABASE_URL", "sqlite:///./ledger_test.db")

from database import init_engine, init_db, dispose_engine, SessionLocal, transaction  # noqa: E402
from models.enums import AccountNature  # noqa: E402
from schemas.accounts import AccountCreate  # noqa: E402
from schemas.currencies import CurrencyCreate  # noqa: E402
from crud.accounts import create_account  # noqa: E402
from crud.currencies import create_currency  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    """Fresh ledger database for one test"""
    engine = init_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db()
    yield engine
    dispose_engine()


@pytest.fixture
def db(engine):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_account(db):
    """Factory creating a committed account"""
    def _make(name, parent_id=None, nature=None, account_group_id=None):
        with transaction(db):
            return create_account(
                db,
                AccountCreate(name_ar=name, parent_id=parent_id, nature=nature, account_group_id=account_group_id),
                created_by="tester",
            )
    return _make


@pytest.fixture
def local_currency(db):
    with transaction(db):
        return create_currency(db, CurrencyCreate(code="sar", name_ar="ريال", is_local=True), created_by="tester")


@pytest.fixture
def chart(make_account):
    """
    A small chart of accounts:

    1     Cash (asset)
    1-1   Main Box
    2     Customers (asset)
    2-1   Customer A
    3     Sales (revenue)
    """
    cash = make_account("Cash", nature=AccountNature.ASSET)
    main_box = make_account("Main Box", parent_id=cash.id)
    customers = make_account("Customers", nature=AccountNature.ASSET)
    customer = make_account("Customer A", parent_id=customers.id)
    sales = make_account("Sales", nature=AccountNature.REVENUE)
    return {
        "cash": cash,
        "main_box": main_box,
        "customers": customers,
        "customer": customer,
        "sales": sales,
    }


@pytest.fixture
def today() -> date:
    return date(2026, 10, 19)