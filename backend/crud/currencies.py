import logging
from decimal import Decimal
from typing import List, Optional
from sqlalchemy.exc import IntegrityError as SQLAlchemyIntegrityError
from sqlalchemy.orm import Session

import config
from exceptions import ValidationError, IntegrityError, NotFoundError, ConflictError
from models.currencies import Currency
from schemas.currencies import CurrencyCreate, CurrencyUpdate

logger = logging.getLogger(__name__)

MAX_DECIMAL_PLACES = 4  # journal amounts are stored with 4 fractional digits


def get_currency(db: Session, currency_id: int) -> Optional[Currency]:
    return db.query(Currency).filter(Currency.id == currency_id).first()


def require_currency(db: Session, currency_id: int, active_only: bool = True) -> Currency:
    """Load a referenced currency or raise IntegrityError."""
    currency = get_currency(db, currency_id)
    if currency is None:
        raise IntegrityError(f"Currency {currency_id} does not exist", reason="currency_not_found")
    if active_only and not currency.is_active:
        raise IntegrityError(f"Currency {currency.code} is inactive", reason="currency_inactive")
    return currency


def get_local_currency(db: Session) -> Optional[Currency]:
    return db.query(Currency).filter(Currency.is_local == True, Currency.is_active == True).first()


def list_currencies(db: Session, include_inactive: bool = False) -> List[Currency]:
    query = db.query(Currency)
    if not include_inactive:
        query = query.filter(Currency.is_active == True)
    return query.order_by(Currency.is_local.desc(), Currency.code).all()


def _validate_rates(code: str, is_local: bool, exchange_rate, min_rate, max_rate, decimal_places) -> Decimal:
    """Check the rate fields and return the effective exchange rate."""
    if decimal_places is not None and not 0 <= decimal_places <= MAX_DECIMAL_PLACES:
        raise ValidationError(
            f"decimal_places must be between 0 and {MAX_DECIMAL_PLACES}", reason="invalid_decimal_places"
        )
    if is_local:
        # The local currency is the unit everything else is quoted in
        return Decimal(1)
    if exchange_rate is None:
        raise ValidationError(f"Currency {code} needs an exchange rate", reason="exchange_rate_required")
    if exchange_rate <= 0:
        raise ValidationError("Exchange rate must be positive", reason="invalid_exchange_rate")
    if min_rate is not None and max_rate is not None and min_rate > max_rate:
        raise ValidationError("min_rate cannot be greater than max_rate", reason="invalid_rate_bounds")
    if min_rate is not None and exchange_rate < min_rate:
        raise ValidationError(f"Exchange rate {exchange_rate} is below min_rate {min_rate}", reason="rate_out_of_bounds")
    if max_rate is not None and exchange_rate > max_rate:
        raise ValidationError(f"Exchange rate {exchange_rate} is above max_rate {max_rate}", reason="rate_out_of_bounds")
    return exchange_rate


def _demote_local_currencies(db: Session, keep_id: Optional[int] = None):
    query = db.query(Currency).filter(Currency.is_local == True).with_for_update()
    for currency in query.all():
        if currency.id != keep_id:
            currency.is_local = False
            logger.info(f"Currency {currency.code} is no longer the local currency")
    # Demotions must reach the store before a promotion, the single-local index checks row by row
    db.flush()


def _ensure_code_free(db: Session, code: str, currency_id: Optional[int] = None):
    query = db.query(Currency.id).filter(Currency.code == code)
    if currency_id is not None:
        query = query.filter(Currency.id != currency_id)
    if query.first() is not None:
        raise ConflictError(f"Currency code {code} already exists", reason="duplicate_currency_code")


def _flush_unique(db: Session, db_currency: Currency):
    """Flush inside a savepoint, turning a unique-index hit into ConflictError."""
    # Read before the flush, a rolled back savepoint expires the row
    code, is_local = db_currency.code, db_currency.is_local
    try:
        with db.begin_nested():
            db.flush()
    except SQLAlchemyIntegrityError:
        if is_local:
            raise ConflictError("Another currency became the local currency at the same time", reason="local_currency")
        raise ConflictError(f"Currency code {code} already exists", reason="duplicate_currency_code")


def create_currency(db: Session, currency: CurrencyCreate, created_by: Optional[str] = None) -> Currency:
    if not currency.code or not currency.name_ar:
        raise ValidationError("Currency code and name are required", reason="code_and_name_required")

    exchange_rate = _validate_rates(
        currency.code, currency.is_local, currency.exchange_rate,
        currency.min_rate, currency.max_rate, currency.decimal_places,
    )
    _ensure_code_free(db, currency.code)
    if currency.is_local:
        _demote_local_currencies(db)

    db_currency = Currency(
        code=currency.code,
        name_ar=currency.name_ar,
        name_en=currency.name_en,
        symbol=currency.symbol,
        exchange_rate=exchange_rate,
        min_rate=currency.min_rate,
        max_rate=currency.max_rate,
        decimal_places=currency.decimal_places if currency.decimal_places is not None else config.DEFAULT_CURRENCY_DECIMALS,
        is_local=currency.is_local,
        is_active=True,
        created_by=created_by,
    )
    db.add(db_currency)
    _flush_unique(db, db_currency)
    logger.info(f"Currency {db_currency.code} created by {created_by} (local={db_currency.is_local}, rate={exchange_rate})")
    return db_currency


def update_currency(db: Session, currency_id: int, currency_update: CurrencyUpdate, updated_by: Optional[str] = None) -> Currency:
    db_currency = get_currency(db, currency_id)
    if db_currency is None:
        raise NotFoundError(f"Currency {currency_id} not found")

    update_data = currency_update.model_dump(exclude_unset=True)
    if "code" in update_data and not update_data["code"]:
        raise ValidationError("Currency code is required", reason="code_and_name_required")
    if "name_ar" in update_data and not update_data["name_ar"]:
        raise ValidationError("Currency name is required", reason="code_and_name_required")

    merged = {
        "code": db_currency.code,
        "is_local": db_currency.is_local,
        "exchange_rate": db_currency.exchange_rate,
        "min_rate": db_currency.min_rate,
        "max_rate": db_currency.max_rate,
        "decimal_places": db_currency.decimal_places,
    }
    merged.update({k: v for k, v in update_data.items() if k in merged})
    # A currency that stops being local has no meaningful rate until one is given
    if db_currency.is_local and not merged["is_local"] and "exchange_rate" not in update_data:
        merged["exchange_rate"] = None

    exchange_rate = _validate_rates(
        merged["code"], merged["is_local"], merged["exchange_rate"],
        merged["min_rate"], merged["max_rate"], merged["decimal_places"],
    )
    if "code" in update_data:
        _ensure_code_free(db, update_data["code"], currency_id)
    if merged["is_local"] and not db_currency.is_local:
        if not db_currency.is_active:
            raise ConflictError("An inactive currency cannot become the local currency", reason="currency_inactive")
        _demote_local_currencies(db, keep_id=currency_id)

    for key, value in update_data.items():
        setattr(db_currency, key, value)
    db_currency.exchange_rate = exchange_rate
    db_currency.updated_by = updated_by
    _flush_unique(db, db_currency)
    logger.info(f"Currency {db_currency.code} updated by {updated_by}: {sorted(update_data)}")
    return db_currency


def deactivate_currency(db: Session, currency_id: int, deleted_by: Optional[str] = None) -> Currency:
    db_currency = get_currency(db, currency_id)
    if db_currency is None:
        raise NotFoundError(f"Currency {currency_id} not found")
    if db_currency.is_local:
        raise ConflictError("The local currency cannot be deactivated", reason="local_currency")

    db_currency.is_active = False
    db_currency.updated_by = deleted_by
    db.flush()
    logger.info(f"Currency {db_currency.code} deactivated by {deleted_by}")
    return db_currency
