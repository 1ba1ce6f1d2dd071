from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin
from models.enums import AccountNature, FinancialStatement, AccountLevel, enum_values


class AccountGroup(Base, TimestampMixin):
    __tablename__ = "account_groups"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), nullable=False, unique=True)
    name_ar = Column(String(150), nullable=False)
    name_en = Column(String(150), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    accounts = relationship("Account", back_populates="account_group")


class Account(Base, TimestampMixin):
    """A node of the chart of accounts.

    `code` encodes the whole ancestry path: roots get "1", "2", ... and children
    get "{parent.code}-{n}". Nature and financial statement are copied from the
    root ancestor when the account is created.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(255), nullable=False, unique=True, index=True)
    name_ar = Column(String(150), nullable=False)
    name_en = Column(String(150), nullable=True)
    nature = Column(Enum(AccountNature, values_callable=enum_values, name="account_nature"), nullable=False)
    financial_statement = Column(
        Enum(FinancialStatement, values_callable=enum_values, name="financial_statement"), nullable=False
    )
    account_level = Column(Enum(AccountLevel, values_callable=enum_values, name="account_level"), nullable=False)
    parent_id = Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True)
    account_group_id = Column(Integer, ForeignKey("account_groups.id"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    branch_id = Column(Integer, nullable=True)

    parent = relationship("Account", remote_side=[id], back_populates="children")
    children = relationship("Account", back_populates="parent")
    account_group = relationship("AccountGroup", back_populates="accounts")

    __table_args__ = (
        CheckConstraint(
            "(account_level = 'root' AND parent_id IS NULL) OR (account_level = 'child' AND parent_id IS NOT NULL)",
            name="check_account_level_parent",
        ),
    )
