"""Create ledger schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-17

Tables du grand livre:
- user_roles: rattachement sous-utilisateur -> proprietaire du livre
- chart_accounts_template: plan comptable modele (global)
- chart_accounts: plan comptable par tenant
- accounting_settings: comptes par defaut du tenant
- journal_entries / journal_entry_lines: ecritures en partie double
- financial_statements: etats figes (ajout seul)
"""
from alembic import op
import sqlalchemy as sa


revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


ACCOUNT_TYPE = sa.Enum(
    'asset', 'liability', 'equity', 'income', 'cost', 'expense', name='account_type'
)
NORMAL_BALANCE = sa.Enum('debit', 'credit', name='normal_balance')
JOURNAL_ENTRY_STATUS = sa.Enum('draft', 'posted', 'reversed', name='journal_entry_status')
CASH_FLOW_CATEGORY = sa.Enum('operating', 'investing', 'financing', name='cash_flow_category')
STATEMENT_TYPE = sa.Enum(
    'balance_sheet', 'income_statement', 'cash_flow', 'trial_balance', name='statement_type'
)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _money(name, nullable=False):
    if nullable:
        return sa.Column(name, sa.Numeric(18, 2), nullable=True)
    return sa.Column(name, sa.Numeric(18, 2), server_default='0', nullable=False)


def upgrade() -> None:
    """Create ledger tables."""

    # ========================================
    # 1. RATTACHEMENT UTILISATEURS
    # ========================================
    op.create_table(
        'user_roles',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('user_id', sa.BigInteger(), nullable=False),
        sa.Column('role', sa.Text(), nullable=True),
        sa.Column('owner_user_id', sa.BigInteger(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_user_roles_user_id', 'user_roles', ['user_id'])
    op.create_index('ix_user_roles_user_created', 'user_roles', ['user_id', 'created_at'])

    # ========================================
    # 2. PLAN COMPTABLE
    # ========================================
    op.create_table(
        'chart_accounts_template',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('code', sa.Text(), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', sa.Text(), nullable=False),
        sa.Column('normal_balance', sa.Text(), nullable=True),
        sa.Column('level', sa.Integer(), server_default='1', nullable=False),
        sa.Column('parent_code', sa.Text(), nullable=True),
        sa.Column('allow_posting', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_bank_account', sa.Boolean(), server_default='false', nullable=False),
    )

    op.create_table(
        'chart_accounts',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('tenant_id', sa.BigInteger(), nullable=False),
        sa.Column('code', sa.Text(), nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('type', ACCOUNT_TYPE, nullable=False),
        sa.Column('normal_balance', NORMAL_BALANCE, nullable=False),
        sa.Column('level', sa.Integer(), server_default='1', nullable=False),
        sa.Column(
            'parent_id', sa.BigInteger(),
            sa.ForeignKey('chart_accounts.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('allow_posting', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('is_bank_account', sa.Boolean(), server_default='false', nullable=False),
        _money('balance'),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'code', name='uq_chart_accounts_tenant_code'),
    )
    op.create_index('ix_chart_accounts_tenant_id', 'chart_accounts', ['tenant_id'])
    op.create_index('ix_chart_accounts_parent_id', 'chart_accounts', ['parent_id'])
    op.create_index('ix_chart_accounts_tenant_type', 'chart_accounts', ['tenant_id', 'type'])

    # Une ligne par tenant; les comptes references ne peuvent pas etre supprimes
    op.create_table(
        'accounting_settings',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('tenant_id', sa.BigInteger(), nullable=False, unique=True),
        *[
            sa.Column(
                column, sa.BigInteger(),
                sa.ForeignKey('chart_accounts.id', ondelete='RESTRICT'), nullable=True
            )
            for column in (
                'ap_account_id',
                'ar_account_id',
                'sales_account_id',
                'sales_tax_account_id',
                'ap_bank_account_id',
            )
        ],
        sa.Column('chart_accounts_seeded', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
    )

    # ========================================
    # 3. ECRITURES
    # ========================================
    op.create_table(
        'journal_entries',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('tenant_id', sa.BigInteger(), nullable=False),
        sa.Column('entry_number', sa.Text(), nullable=False),
        sa.Column('entry_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), server_default='', nullable=False),
        sa.Column('reference', sa.Text(), nullable=True),
        sa.Column('status', JOURNAL_ENTRY_STATUS, server_default='posted', nullable=False),
        _money('total_debit'),
        _money('total_credit'),
        sa.Column('cash_flow_category', CASH_FLOW_CATEGORY, nullable=True),
        sa.Column('idempotency_key', sa.Text(), nullable=True),
        sa.Column(
            'reversal_of_id', sa.BigInteger(),
            sa.ForeignKey('journal_entries.id', ondelete='RESTRICT'), nullable=True
        ),
        *_timestamps(),
        sa.UniqueConstraint('tenant_id', 'idempotency_key', name='uq_journal_entries_tenant_idempotency'),
    )
    op.create_index('ix_journal_entries_tenant_id', 'journal_entries', ['tenant_id'])
    op.create_index('ix_journal_entries_tenant_date', 'journal_entries', ['tenant_id', 'entry_date'])
    op.create_index('ix_journal_entries_status', 'journal_entries', ['status'])

    op.create_table(
        'journal_entry_lines',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column(
            'journal_entry_id', sa.BigInteger(),
            sa.ForeignKey('journal_entries.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column(
            'account_id', sa.BigInteger(),
            sa.ForeignKey('chart_accounts.id', ondelete='RESTRICT'), nullable=False
        ),
        sa.Column('description', sa.Text(), nullable=True),
        _money('debit_amount'),
        _money('credit_amount'),
        sa.Column('line_number', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('debit_amount >= 0 AND credit_amount >= 0', name='ck_journal_entry_lines_positive'),
    )
    op.create_index('ix_journal_entry_lines_journal_entry_id', 'journal_entry_lines', ['journal_entry_id'])
    op.create_index('ix_journal_entry_lines_account_id', 'journal_entry_lines', ['account_id'])
    op.create_index(
        'ix_journal_entry_lines_entry_line', 'journal_entry_lines', ['journal_entry_id', 'line_number']
    )

    # ========================================
    # 4. ETATS FIGES
    # ========================================
    op.create_table(
        'financial_statements',
        sa.Column('id', sa.BigInteger(), primary_key=True),
        sa.Column('tenant_id', sa.BigInteger(), nullable=False),
        sa.Column('type', STATEMENT_TYPE, nullable=False),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('period', sa.Text(), nullable=False),
        sa.Column('from_date', sa.Date(), nullable=False),
        sa.Column('to_date', sa.Date(), nullable=False),
        sa.Column('status', sa.Text(), server_default='final', nullable=False),
        _money('total_assets', nullable=True),
        _money('total_liabilities', nullable=True),
        _money('total_equity', nullable=True),
        _money('total_revenue', nullable=True),
        _money('total_costs', nullable=True),
        _money('total_expenses', nullable=True),
        _money('net_income', nullable=True),
        _money('operating_cash_flow', nullable=True),
        _money('investing_cash_flow', nullable=True),
        _money('financing_cash_flow', nullable=True),
        _money('net_cash_flow', nullable=True),
        _money('total_debits', nullable=True),
        _money('total_credits', nullable=True),
        sa.Column('is_balanced', sa.Boolean(), nullable=True),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_financial_statements_tenant_id', 'financial_statements', ['tenant_id'])
    op.create_index('ix_financial_statements_tenant_period', 'financial_statements', ['tenant_id', 'period'])


def downgrade() -> None:
    """Drop ledger tables."""

    # Drop tables in reverse order (dependencies first)
    tables = [
        'financial_statements',
        'journal_entry_lines',
        'journal_entries',
        'accounting_settings',
        'chart_accounts',
        'chart_accounts_template',
        'user_roles',
    ]
    for table in tables:
        op.drop_table(table)

    bind = op.get_bind()
    for enum_type in (STATEMENT_TYPE, CASH_FLOW_CATEGORY, JOURNAL_ENTRY_STATUS, NORMAL_BALANCE, ACCOUNT_TYPE):
        enum_type.drop(bind, checkfirst=True)
