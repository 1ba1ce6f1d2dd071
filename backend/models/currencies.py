from sqlalchemy import Column, Integer, String, Boolean, Numeric, Index, text
from database import Base
from models.audit_mixin import TimestampMixin


class Currency(Base, TimestampMixin):
    __tablename__ = "currencies"
    __table_args__ = (
        # At most one local currency
        Index(
            "uq_currencies_single_local",
            "is_local",
            unique=True,
            postgresql_where=text("is_local"),
            sqlite_where=text("is_local"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(10), nullable=False, unique=True, index=True)  # upper-cased ISO-like code
    name_ar = Column(String(100), nullable=False)
    name_en = Column(String(100), nullable=True)
    symbol = Column(String(10), nullable=True)
    exchange_rate = Column(Numeric(18, 6), nullable=False, default=1)  # units of local currency per unit
    min_rate = Column(Numeric(18, 6), nullable=True)
    max_rate = Column(Numeric(18, 6), nullable=True)
    decimal_places = Column(Integer, nullable=False, default=2)
    is_local = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
