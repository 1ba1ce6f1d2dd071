"""Currencies"""

from decimal import Decimal

import pytest

from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError

from database import transaction
from exceptions import ValidationError, ConflictError
from schemas.currencies import CurrencyCreate, CurrencyUpdate
from models.currencies import Currency
from crud import currencies


def add(db, **fields):
    with transaction(db):
        return currencies.create_currency(db, CurrencyCreate(**fields))


class TestCurrencies:

    def test_local_currency_rate_is_forced_to_one(self, db, engine):
        sar = add(db, code="sar", name_ar="ريال", exchange_rate=Decimal(9), is_local=True)

        assert sar.code == "SAR"
        assert sar.exchange_rate == Decimal(1)
        assert sar.decimal_places == 2

    def test_new_local_currency_demotes_the_old_one(self, db, local_currency):
        usd = add(db, code="USD", name_ar="دولار", is_local=True)

        assert usd.is_local is True
        assert currencies.get_currency(db, local_currency.id).is_local is False
        assert currencies.get_local_currency(db).id == usd.id

    def test_foreign_currency_needs_a_rate(self, db, engine):
        with pytest.raises(ValidationError) as exc_info:
            add(db, code="USD", name_ar="دولار")
        assert exc_info.value.reason == "exchange_rate_required"

    def test_rate_must_be_within_bounds(self, db, engine):
        with pytest.raises(ValidationError) as exc_info:
            add(db, code="USD", name_ar="دولار", exchange_rate=Decimal(4), min_rate=Decimal("3.7"), max_rate=Decimal("3.8"))
        assert exc_info.value.reason == "rate_out_of_bounds"

    def test_duplicate_code(self, db, local_currency):
        with pytest.raises(ConflictError):
            add(db, code="SAR", name_ar="ريال", exchange_rate=Decimal(1))

    def test_update_revalidates_rate(self, db, engine):
        usd = add(db, code="USD", name_ar="دولار", exchange_rate=Decimal("3.75"), max_rate=Decimal(4))
        with pytest.raises(ValidationError):
            with transaction(db):
                currencies.update_currency(db, usd.id, CurrencyUpdate(exchange_rate=Decimal(5)))

        with transaction(db):
            usd = currencies.update_currency(db, usd.id, CurrencyUpdate(exchange_rate=Decimal("3.80")))
        assert usd.exchange_rate == Decimal("3.8")

    def test_local_currency_cannot_be_deactivated(self, db, local_currency):
        with pytest.raises(ConflictError) as exc_info:
            currencies.deactivate_currency(db, local_currency.id)
        assert exc_info.value.reason == "local_currency"

    def test_deactivated_currency_is_hidden(self, db, local_currency):
        usd = add(db, code="USD", name_ar="دولار", exchange_rate=Decimal("3.75"))
        with transaction(db):
            currencies.deactivate_currency(db, usd.id)

        assert [c.code for c in currencies.list_currencies(db)] == ["SAR"]
        assert len(currencies.list_currencies(db, include_inactive=True)) == 2

    def test_store_holds_at_most_one_local_currency(self, db, local_currency):
        with pytest.raises(SQLAlchemyIntegrityError):
            with transaction(db):
                db.add(Currency(code="USD", name_ar="دولار", exchange_rate=1, decimal_places=2, is_local=True))
                db.flush()

        assert db.query(Currency).filter(Currency.is_local == True).count() == 1

    def test_racing_local_currency_is_a_conflict(self, db, local_currency, monkeypatch):
        # Another transaction promoted a currency after our demotion pass ran
        monkeypatch.setattr("crud.currencies._demote_local_currencies", lambda db, keep_id=None: None)

        with pytest.raises(ConflictError) as exc_info:
            add(db, code="USD", name_ar="دولار", is_local=True)
        assert exc_info.value.reason == "local_currency"
        assert currencies.get_local_currency(db).id == local_currency.id

    def test_racing_promotion_is_a_conflict(self, db, local_currency, monkeypatch):
        usd = add(db, code="USD", name_ar="دولار", exchange_rate=Decimal("3.75"))
        monkeypatch.setattr("crud.currencies._demote_local_currencies", lambda db, keep_id=None: None)

        with pytest.raises(ConflictError) as exc_info:
            with transaction(db):
                currencies.update_currency(db, usd.id, CurrencyUpdate(is_local=True))
        assert exc_info.value.reason == "local_currency"
        assert currencies.get_currency(db, usd.id).is_local is False

    def test_promoting_an_existing_currency_demotes_the_local_one(self, db, local_currency):
        usd = add(db, code="USD", name_ar="دولار", exchange_rate=Decimal("3.75"))
        with transaction(db):
            currencies.update_currency(db, usd.id, CurrencyUpdate(is_local=True))

        assert currencies.get_local_currency(db).id == usd.id
        assert currencies.get_currency(db, local_currency.id).is_local is False
