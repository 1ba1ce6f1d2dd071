from sqlalchemy import Column, Integer, Numeric, ForeignKey, Enum, CheckConstraint, Index, text
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import AuditMixin
from models.enums import CeilingScope, EntrySide, ExceedAction, enum_values


class AccountCeiling(Base, AuditMixin):
    __tablename__ = "account_ceilings"

    id = Column(Integer, primary_key=True, index=True)
    scope = Column(Enum(CeilingScope, values_callable=enum_values, name="ceiling_scope"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True, index=True)
    account_group_id = Column(Integer, ForeignKey("account_groups.id"), nullable=True, index=True)
    currency_id = Column(Integer, ForeignKey("currencies.id"), nullable=False)
    ceiling_amount = Column(Numeric(18, 4), nullable=False)
    # Which side of postings the ceiling bounds
    account_nature = Column(Enum(EntrySide, values_callable=enum_values, name="entry_side"), nullable=False)
    exceed_action = Column(
        Enum(ExceedAction, values_callable=enum_values, name="exceed_action"),
        nullable=False,
        default=ExceedAction.BLOCK,
    )

    account = relationship("Account")
    account_group = relationship("AccountGroup")
    currency = relationship("Currency")

    __table_args__ = (
        CheckConstraint("ceiling_amount > 0", name="check_ceiling_amount_positive"),
        CheckConstraint(
            "(scope = 'account' AND account_id IS NOT NULL AND account_group_id IS NULL) OR "
            "(scope = 'group' AND account_group_id IS NOT NULL AND account_id IS NULL)",
            name="check_ceiling_scope_target",
        ),
        # One live ceiling per target and currency; soft-deleted rows do not count
        Index(
            "uq_account_ceiling_account_currency",
            "account_id",
            "currency_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND account_id IS NOT NULL"),
            sqlite_where=text("deleted_at IS NULL AND account_id IS NOT NULL"),
        ),
        Index(
            "uq_account_ceiling_group_currency",
            "account_group_id",
            "currency_id",
            unique=True,
            postgresql_where=text("deleted_at IS NULL AND account_group_id IS NOT NULL"),
            sqlite_where=text("deleted_at IS NULL AND account_group_id IS NOT NULL"),
        ),
    )
