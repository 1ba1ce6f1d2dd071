from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class BankGroup(Base, TimestampMixin):
    __tablename__ = "bank_groups"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True)
    name_ar = Column(String(150), nullable=False)
    name_en = Column(String(150), nullable=True)

    banks = relationship("Bank", back_populates="bank_group")


class Bank(Base, TimestampMixin):
    __tablename__ = "banks"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True)
    name_ar = Column(String(150), nullable=False)
    name_en = Column(String(150), nullable=True)
    bank_group_id = Column(Integer, ForeignKey("bank_groups.id"), nullable=False)
    # Ledger account created for this bank under the chosen parent account
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)

    bank_group = relationship("BankGroup", back_populates="banks")
    account = relationship("Account")
