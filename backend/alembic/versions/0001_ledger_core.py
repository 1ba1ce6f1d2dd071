"""ledger core tables

Revision ID: 0001_ledger_core
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0001_ledger_core'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

account_nature = sa.Enum('asset', 'liability', 'equity', 'revenue', 'expense', name='account_nature')
financial_statement = sa.Enum('balance_sheet', 'income_statement', name='financial_statement')
account_level = sa.Enum('root', 'child', name='account_level')
ceiling_scope = sa.Enum('account', 'group', name='ceiling_scope')
entry_side = sa.Enum('debit', 'credit', name='entry_side')
exceed_action = sa.Enum('block', 'warn', 'allow', name='exceed_action')
reference_type = sa.Enum('receipt_voucher', 'payment_voucher', 'manual', name='reference_type')
settlement_medium = sa.Enum('cash', 'bank', name='settlement_medium')

MEDIUM_CHECK = (
    "(settlement_medium = 'cash' AND cash_box_account_id IS NOT NULL AND bank_account_id IS NULL) OR "
    "(settlement_medium = 'bank' AND bank_account_id IS NOT NULL AND cash_box_account_id IS NULL)"
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def _group_table(name: str):
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('name_ar', sa.String(length=150), nullable=False),
        sa.Column('name_en', sa.String(length=150), nullable=True),
        *_timestamps(),
    )
    op.create_index(f'ix_{name}_id', name, ['id'])


def _voucher_table(name: str, prefix: str):
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('voucher_no', sa.String(length=50), nullable=False),
        sa.Column('voucher_date', sa.Date(), nullable=False),
        sa.Column('settlement_medium', settlement_medium, nullable=False),
        sa.Column('cash_box_account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('bank_account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('transfer_no', sa.String(length=100), nullable=True),
        sa.Column('currency_id', sa.Integer(), sa.ForeignKey('currencies.id'), nullable=False),
        sa.Column('amount', sa.Numeric(18, 4), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('analytic_account_id', sa.Integer(), nullable=True),
        sa.Column('cost_center_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('branch_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('amount > 0', name=f'check_{prefix}_amount_positive'),
        sa.CheckConstraint(MEDIUM_CHECK, name=f'check_{prefix}_settlement_medium'),
    )
    op.create_index(f'ix_{name}_id', name, ['id'])
    op.create_index(f'ix_{name}_voucher_no', name, ['voucher_no'], unique=True)
    op.create_index(f'ix_{name}_voucher_date', name, ['voucher_date'])


def upgrade() -> None:
    """Create the ledger tables and seed the sequence rows."""
    op.create_table(
        'account_groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('name_ar', sa.String(length=150), nullable=False),
        sa.Column('name_en', sa.String(length=150), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_account_groups_id', 'account_groups', ['id'])

    op.create_table(
        'accounts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=255), nullable=False),
        sa.Column('name_ar', sa.String(length=150), nullable=False),
        sa.Column('name_en', sa.String(length=150), nullable=True),
        sa.Column('nature', account_nature, nullable=False),
        sa.Column('financial_statement', financial_statement, nullable=False),
        sa.Column('account_level', account_level, nullable=False),
        sa.Column('parent_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('account_group_id', sa.Integer(), sa.ForeignKey('account_groups.id'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('branch_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "(account_level = 'root' AND parent_id IS NULL) OR (account_level = 'child' AND parent_id IS NOT NULL)",
            name='check_account_level_parent',
        ),
    )
    op.create_index('ix_accounts_id', 'accounts', ['id'])
    op.create_index('ix_accounts_code', 'accounts', ['code'], unique=True)
    op.create_index('ix_accounts_parent_id', 'accounts', ['parent_id'])
    op.create_index('ix_accounts_account_group_id', 'accounts', ['account_group_id'])

    op.create_table(
        'currencies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=10), nullable=False),
        sa.Column('name_ar', sa.String(length=100), nullable=False),
        sa.Column('name_en', sa.String(length=100), nullable=True),
        sa.Column('symbol', sa.String(length=10), nullable=True),
        sa.Column('exchange_rate', sa.Numeric(18, 6), nullable=False),
        sa.Column('min_rate', sa.Numeric(18, 6), nullable=True),
        sa.Column('max_rate', sa.Numeric(18, 6), nullable=True),
        sa.Column('decimal_places', sa.Integer(), nullable=False),
        sa.Column('is_local', sa.Boolean(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_currencies_id', 'currencies', ['id'])
    op.create_index('ix_currencies_code', 'currencies', ['code'], unique=True)
    op.create_index(
        'uq_currencies_single_local', 'currencies', ['is_local'], unique=True,
        postgresql_where=sa.text('is_local'),
        sqlite_where=sa.text('is_local'),
    )

    op.create_table(
        'account_ceilings',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('scope', ceiling_scope, nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=True),
        sa.Column('account_group_id', sa.Integer(), sa.ForeignKey('account_groups.id'), nullable=True),
        sa.Column('currency_id', sa.Integer(), sa.ForeignKey('currencies.id'), nullable=False),
        sa.Column('ceiling_amount', sa.Numeric(18, 4), nullable=False),
        sa.Column('account_nature', entry_side, nullable=False),
        sa.Column('exceed_action', exceed_action, nullable=False),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
        sa.CheckConstraint('ceiling_amount > 0', name='check_ceiling_amount_positive'),
        sa.CheckConstraint(
            "(scope = 'account' AND account_id IS NOT NULL AND account_group_id IS NULL) OR "
            "(scope = 'group' AND account_group_id IS NOT NULL AND account_id IS NULL)",
            name='check_ceiling_scope_target',
        ),
    )
    op.create_index('ix_account_ceilings_id', 'account_ceilings', ['id'])
    op.create_index('ix_account_ceilings_account_id', 'account_ceilings', ['account_id'])
    op.create_index('ix_account_ceilings_account_group_id', 'account_ceilings', ['account_group_id'])
    op.create_index(
        'uq_account_ceiling_account_currency', 'account_ceilings', ['account_id', 'currency_id'], unique=True,
        postgresql_where=sa.text('deleted_at IS NULL AND account_id IS NOT NULL'),
        sqlite_where=sa.text('deleted_at IS NULL AND account_id IS NOT NULL'),
    )
    op.create_index(
        'uq_account_ceiling_group_currency', 'account_ceilings', ['account_group_id', 'currency_id'], unique=True,
        postgresql_where=sa.text('deleted_at IS NULL AND account_group_id IS NOT NULL'),
        sqlite_where=sa.text('deleted_at IS NULL AND account_group_id IS NOT NULL'),
    )

    op.create_table(
        'journal_entries',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('reference_type', reference_type, nullable=False),
        sa.Column('reference_id', sa.Integer(), nullable=False),
        sa.Column('line_no', sa.Integer(), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False),
        sa.Column('currency_id', sa.Integer(), sa.ForeignKey('currencies.id'), nullable=False),
        sa.Column('debit', sa.Numeric(18, 4), sa.CheckConstraint('debit >= 0'), nullable=False),
        sa.Column('credit', sa.Numeric(18, 4), sa.CheckConstraint('credit >= 0'), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('cost_center_id', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('branch_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            '(debit > 0 AND credit = 0) OR (debit = 0 AND credit > 0)',
            name='check_debit_or_credit_exclusive',
        ),
    )
    op.create_index('ix_journal_entries_id', 'journal_entries', ['id'])
    op.create_index('ix_journal_entries_account_id', 'journal_entries', ['account_id'])
    op.create_index('ix_journal_entries_reference', 'journal_entries', ['reference_type', 'reference_id'])
    op.create_index('ix_journal_entries_account_currency', 'journal_entries', ['account_id', 'currency_id'])

    _voucher_table('receipt_vouchers', 'receipt')
    _voucher_table('payment_vouchers', 'payment')

    _group_table('bank_groups')
    op.create_table(
        'banks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('name_ar', sa.String(length=150), nullable=False),
        sa.Column('name_en', sa.String(length=150), nullable=True),
        sa.Column('bank_group_id', sa.Integer(), sa.ForeignKey('bank_groups.id'), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_banks_id', 'banks', ['id'])

    _group_table('cash_box_groups')
    op.create_table(
        'cash_boxes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('code', sa.String(length=20), nullable=False, unique=True),
        sa.Column('name_ar', sa.String(length=150), nullable=False),
        sa.Column('name_en', sa.String(length=150), nullable=True),
        sa.Column('cash_box_group_id', sa.Integer(), sa.ForeignKey('cash_box_groups.id'), nullable=False),
        sa.Column('account_id', sa.Integer(), sa.ForeignKey('accounts.id'), nullable=False, unique=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_cash_boxes_id', 'cash_boxes', ['id'])

    ledger_sequences = op.create_table(
        'ledger_sequences',
        sa.Column('name', sa.String(length=50), primary_key=True),
        sa.Column('last_value', sa.Integer(), nullable=False),
    )
    op.bulk_insert(ledger_sequences, [
        {'name': 'root_accounts', 'last_value': 0},
        {'name': 'manual_journal', 'last_value': 0},
        {'name': 'receipt_voucher_no', 'last_value': 0},
        {'name': 'payment_voucher_no', 'last_value': 0},
    ])


def downgrade() -> None:
    """Drop every ledger table and enum type."""
    for table in (
        'ledger_sequences', 'cash_boxes', 'cash_box_groups', 'banks', 'bank_groups',
        'payment_vouchers', 'receipt_vouchers', 'journal_entries', 'account_ceilings',
        'currencies', 'accounts', 'account_groups',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for enum in (
        settlement_medium, reference_type, exceed_action, entry_side,
        ceiling_scope, account_level, financial_statement, account_nature,
    ):
        enum.drop(bind, checkfirst=True)
