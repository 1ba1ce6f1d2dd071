from sqlalchemy import Column, Integer, String, Date, Text, Numeric, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import declared_attr
from database import Base
from models.audit_mixin import TimestampMixin
from models.enums import SettlementMedium, enum_values


class VoucherMixin:
    """Columns shared by receipt and payment vouchers."""
    id = Column(Integer, primary_key=True, index=True)
    voucher_no = Column(String(50), nullable=False, unique=True, index=True)
    voucher_date = Column(Date, nullable=False, index=True)
    settlement_medium = Column(
        Enum(SettlementMedium, values_callable=enum_values, name="settlement_medium"), nullable=False
    )
    transfer_no = Column(String(100), nullable=True)
    amount = Column(Numeric(18, 4), nullable=False)
    analytic_account_id = Column(Integer, nullable=True)
    cost_center_id = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    branch_id = Column(Integer, nullable=True)

    @declared_attr
    def cash_box_account_id(cls):
        return Column(Integer, ForeignKey("accounts.id"), nullable=True)

    @declared_attr
    def bank_account_id(cls):
        return Column(Integer, ForeignKey("accounts.id"), nullable=True)

    @declared_attr
    def account_id(cls):
        # counterparty
        return Column(Integer, ForeignKey("accounts.id"), nullable=False)

    @declared_attr
    def currency_id(cls):
        return Column(Integer, ForeignKey("currencies.id"), nullable=False)

    @property
    def settlement_account_id(self):
        if self.settlement_medium == SettlementMedium.CASH:
            return self.cash_box_account_id
        return self.bank_account_id


_MEDIUM_CHECK = (
    "(settlement_medium = 'cash' AND cash_box_account_id IS NOT NULL AND bank_account_id IS NULL) OR "
    "(settlement_medium = 'bank' AND bank_account_id IS NOT NULL AND cash_box_account_id IS NULL)"
)


class ReceiptVoucher(Base, VoucherMixin, TimestampMixin):
    __tablename__ = "receipt_vouchers"

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_receipt_amount_positive"),
        CheckConstraint(_MEDIUM_CHECK, name="check_receipt_settlement_medium"),
    )


class PaymentVoucher(Base, VoucherMixin, TimestampMixin):
    __tablename__ = "payment_vouchers"

    __table_args__ = (
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        CheckConstraint(_MEDIUM_CHECK, name="check_payment_settlement_medium"),
    )
