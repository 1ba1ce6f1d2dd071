from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin


class CashBoxGroup(Base, TimestampMixin):
    __tablename__ = "cash_box_groups"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True)
    name_ar = Column(String(150), nullable=False)
    name_en = Column(String(150), nullable=True)

    cash_boxes = relationship("CashBox", back_populates="cash_box_group")


class CashBox(Base, TimestampMixin):
    __tablename__ = "cash_boxes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True)
    name_ar = Column(String(150), nullable=False)
    name_en = Column(String(150), nullable=True)
    cash_box_group_id = Column(Integer, ForeignKey("cash_box_groups.id"), nullable=False)
    # Ledger account created for this cash box under the chosen parent account
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, unique=True)
    is_active = Column(Boolean, default=True, nullable=False)

    cash_box_group = relationship("CashBoxGroup", back_populates="cash_boxes")
    account = relationship("Account")
