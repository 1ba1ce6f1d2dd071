from sqlalchemy import Column, Integer, String
from database import Base


class LedgerSequence(Base):
    """Named counters that are locked and bumped inside the caller's transaction.

    The "root_accounts" row is only used as a lock; "manual_journal" hands out
    reference ids for manual journal groups.
    """
    __tablename__ = "ledger_sequences"

    name = Column(String(50), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)
