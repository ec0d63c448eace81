"""Member deactivation and payroll periods

Revision ID: 002_members_payroll
Revises: 001_initial
Create Date: 2026-10-17

Adds company_memberships.is_active, the payroll_periods and payroll_entries
tables, and turns cash_collections.payroll_period_id into a foreign key.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002_members_payroll'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        'company_memberships',
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )

    op.execute("CREATE TYPE payrollperiodstatus AS ENUM ('pending', 'approved', 'paid')")
    status_enum = postgresql.ENUM(name='payrollperiodstatus', create_type=False)

    op.create_table(
        'payroll_periods',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('period_name', sa.String(100), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('status', status_enum, nullable=False, server_default='pending'),
        sa.Column('total_hours', sa.Numeric(10, 2), server_default='0'),
        sa.Column('total_gross', sa.Numeric(12, 2), server_default='0'),
        sa.Column('total_deductions', sa.Numeric(12, 2), server_default='0'),
        sa.Column('total_net', sa.Numeric(12, 2), server_default='0'),
        sa.Column('approved_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('pay_date', sa.Date(), nullable=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('end_date >= start_date', name='ck_payroll_period_dates'),
    )

    op.create_table(
        'payroll_entries',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('period_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('payroll_periods.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('cleaner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('jobs_counted', sa.Integer(), server_default='0'),
        sa.Column('regular_hours', sa.Numeric(8, 2), server_default='0'),
        sa.Column('overtime_hours', sa.Numeric(8, 2), server_default='0'),
        sa.Column('hourly_rate', sa.Numeric(10, 2), nullable=False),
        sa.Column('overtime_multiplier', sa.Numeric(4, 2), server_default='1.5'),
        sa.Column('regular_pay', sa.Numeric(10, 2), server_default='0'),
        sa.Column('overtime_pay', sa.Numeric(10, 2), server_default='0'),
        sa.Column('gross_pay', sa.Numeric(10, 2), server_default='0'),
        sa.Column('cpp_deduction', sa.Numeric(10, 2), server_default='0'),
        sa.Column('ei_deduction', sa.Numeric(10, 2), server_default='0'),
        sa.Column('tax_deduction', sa.Numeric(10, 2), server_default='0'),
        sa.Column('cash_deduction', sa.Numeric(10, 2), server_default='0'),
        sa.Column('net_pay', sa.Numeric(10, 2), server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('period_id', 'cleaner_id', name='uq_payroll_entry_cleaner'),
    )

    op.create_index('ix_cash_collections_payroll_period_id', 'cash_collections', ['payroll_period_id'])
    op.create_foreign_key(
        'fk_cash_collections_payroll_period_id',
        'cash_collections', 'payroll_periods',
        ['payroll_period_id'], ['id'],
        ondelete='SET NULL',
    )


def downgrade() -> None:
    op.drop_constraint('fk_cash_collections_payroll_period_id', 'cash_collections', type_='foreignkey')
    op.drop_index('ix_cash_collections_payroll_period_id', table_name='cash_collections')
    op.drop_table('payroll_entries')
    op.drop_table('payroll_periods')
    op.execute('DROP TYPE IF EXISTS payrollperiodstatus')
    op.drop_column('company_memberships', 'is_active')
