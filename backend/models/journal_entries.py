from sqlalchemy import Column, Integer, String, Date, Text, Numeric, ForeignKey, Enum, CheckConstraint, Index
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.enums import ReferenceType, enum_values


class JournalEntry(Base, TimestampMixin):
    """One posting line.

    Lines sharing (reference_type, reference_id) form a journal group, which is
    always balanced. Only crud.journal_entries writes to this table.
    """
    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True, index=True)
    reference_type = Column(Enum(ReferenceType, values_callable=enum_values, name="reference_type"), nullable=False)
    reference_id = Column(Integer, nullable=False)
    line_no = Column(Integer, nullable=False, default=1)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    debit = Column(Numeric(18, 4), CheckConstraint('debit >= 0'), nullable=False, default=0)
    credit = Column(Numeric(18, 4), CheckConstraint('credit >= 0'), nullable=False, default=0)
    entry_date = Column(Date, nullable=False)
    cost_center_id = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    branch_id = Column(Integer, nullable=True)

    account = relationship("Account")
    currency = relationship("Currency")

    __table_args__ = (
        CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)',
            name='check_debit_or_credit_exclusive'
        ),
        Index("ix_journal_entries_reference", "reference_type", "reference_id"),
        Index("ix_journal_entries_account_currency", "account_id", "currency_id"),
    )
