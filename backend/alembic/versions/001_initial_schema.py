"""Initial CleanSuite schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17

Companies and configuration, clients, estimates, jobs, receipts, cash
collections, invoices, notifications and the activity log. Money is
NUMERIC(10, 2); estimate totals are whole dollars.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ENUMS = {
    'companyrole': ('admin', 'manager', 'cleaner'),
    'province': ('ON', 'QC', 'BC', 'AB', 'MB', 'SK', 'NS', 'NB', 'NL', 'PE', 'NT', 'YT', 'NU'),
    'clientstatus': ('active', 'inactive'),
    'servicetype': ('standard', 'deep', 'moveOut', 'commercial'),
    'frequency': ('oneTime', 'monthly', 'biweekly', 'weekly'),
    'extrakind': ('pets', 'children', 'green_cleaning', 'fridge', 'oven', 'cabinets', 'windows'),
    'estimatestatus': ('draft', 'sent', 'accepted', 'rejected'),
    'jobstatus': ('scheduled', 'in_progress', 'completed', 'cancelled'),
    'paymentmethod': ('e_transfer', 'cash'),
    'paymentreceiver': ('cleaner', 'company'),
    'cashhandling': ('kept_by_cleaner', 'delivered_to_office'),
    'compensationstatus': ('pending', 'approved', 'disputed', 'settled'),
    'invoicestatus': ('draft', 'sent', 'paid', 'cancelled'),
    'invoicegenerationmode': ('manual', 'automatic'),
    'notificationtype': ('job', 'invoice', 'payroll', 'financial', 'system'),
    'notificationseverity': ('info', 'warning', 'critical'),
    'activityaction': (
        'user_created', 'user_updated', 'user_deleted',
        'client_created', 'client_updated', 'client_deleted', 'client_inactivated',
        'location_created', 'location_updated',
        'job_created', 'job_updated', 'job_started', 'job_completed', 'job_cancelled',
        'invoice_created', 'invoice_sent', 'invoice_paid', 'invoice_cancelled', 'invoice_updated',
        'payment_registered', 'payment_confirmed', 'payment_rejected',
        'payroll_created', 'payroll_approved', 'payroll_paid',
        'settings_updated', 'login', 'logout',
        'company_created', 'company_updated',
        'estimate_created', 'estimate_updated', 'estimate_deleted',
        'estimate_sent', 'estimate_accepted', 'estimate_rejected',
        'cash_kept_by_cleaner', 'cash_delivered_to_office',
        'cash_approved', 'cash_disputed', 'cash_compensation_settled',
        'job_overdue_alert',
    ),
}


def enum(name: str) -> postgresql.ENUM:
    """Reference a type created by the raw SQL below."""
    return postgresql.ENUM(name=name, create_type=False)


def upgrade() -> None:
    # === ENUMS ===
    for name, values in ENUMS.items():
        labels = ", ".join(f"'{v}'" for v in values)
        op.execute(f"CREATE TYPE {name} AS ENUM ({labels})")

    # === USERS ===
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('firebase_uid', sa.String(128), unique=True, nullable=False, index=True),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === COMPANIES ===
    op.create_table(
        'companies',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('trade_name', sa.String(255), nullable=False),
        sa.Column('legal_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('province', enum('province'), server_default='ON'),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('business_number', sa.String(50), nullable=True),
        sa.Column('gst_hst_number', sa.String(50), nullable=True),
        sa.Column('timezone', sa.String(50), server_default='America/Toronto'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'company_memberships',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('role', enum('companyrole'), nullable=False),
        sa.Column('hourly_wage', sa.Numeric(10, 2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # === COMPANY CONFIGURATION ===
    op.create_table(
        'company_estimate_config',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('default_hourly_rate', sa.Numeric(10, 2), nullable=True),
        sa.Column('tax_rate', sa.Numeric(5, 2), nullable=True),
        sa.Column('invoice_generation_mode', enum('invoicegenerationmode'), nullable=False, server_default='manual'),
        sa.Column('auto_generate_cash_receipt', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'company_extra_fees',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('kind', enum('extrakind'), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('company_id', 'kind', name='uq_company_extra_fee_kind'),
    )

    op.create_table(
        'checklist_items',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('display_order', sa.Integer(), server_default='0'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'company_branding',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('logo_url', sa.String(1000), nullable=True),
        sa.Column('primary_color', sa.String(20), server_default='#1a3d2e'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === CLIENTS ===
    op.create_table(
        'clients',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', enum('clientstatus'), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'client_locations',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('city', sa.String(100), nullable=True),
        sa.Column('province', sa.String(10), nullable=True),
        sa.Column('postal_code', sa.String(20), nullable=True),
        sa.Column('access_instructions', sa.Text(), nullable=True),
        sa.Column('alarm_code', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === ESTIMATES ===
    op.create_table(
        'estimates',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('client_name', sa.String(255), nullable=False),
        sa.Column('client_email', sa.String(255), nullable=True),
        sa.Column('client_phone', sa.String(50), nullable=True),
        sa.Column('square_footage', sa.Integer(), nullable=False),
        sa.Column('bedrooms', sa.Integer(), server_default='0'),
        sa.Column('bathrooms', sa.Integer(), server_default='0'),
        sa.Column('living_areas', sa.Integer(), server_default='0'),
        sa.Column('has_kitchen', sa.Boolean(), server_default=sa.true()),
        sa.Column('service_type', enum('servicetype'), nullable=False),
        sa.Column('frequency', enum('frequency'), nullable=False),
        sa.Column('include_pets', sa.Boolean(), server_default=sa.false()),
        sa.Column('include_children', sa.Boolean(), server_default=sa.false()),
        sa.Column('include_green', sa.Boolean(), server_default=sa.false()),
        sa.Column('include_fridge', sa.Boolean(), server_default=sa.false()),
        sa.Column('include_oven', sa.Boolean(), server_default=sa.false()),
        sa.Column('include_cabinets', sa.Boolean(), server_default=sa.false()),
        sa.Column('include_windows', sa.Boolean(), server_default=sa.false()),
        # Rate and fee schedule as of creation
        sa.Column('hourly_rate', sa.Numeric(10, 2), nullable=False),
        sa.Column('fee_snapshot', postgresql.JSONB(), nullable=False, server_default='{}'),
        sa.Column('total_amount', sa.Integer(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', enum('estimatestatus'), nullable=False, server_default='draft', index=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('decided_at', sa.DateTime(), nullable=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === JOBS ===
    op.create_table(
        'jobs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('location_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('client_locations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('cleaner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('estimate_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('estimates.id', ondelete='SET NULL'), nullable=True),
        sa.Column('job_type', sa.String(50), server_default='standard'),
        sa.Column('scheduled_date', sa.Date(), nullable=False, index=True),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('duration_minutes', sa.Integer(), nullable=True),
        sa.Column('status', enum('jobstatus'), nullable=False, server_default='scheduled', index=True),
        sa.Column('checklist', postgresql.JSONB(), nullable=True),
        sa.Column('before_photos', postgresql.JSONB(), nullable=True),
        sa.Column('after_photos', postgresql.JSONB(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_method', enum('paymentmethod'), nullable=True),
        sa.Column('payment_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('payment_received_by', enum('paymentreceiver'), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('payment_reference', sa.String(100), nullable=True),
        sa.Column('payment_notes', sa.Text(), nullable=True),
        sa.Column('started_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === PAYMENTS ===
    op.create_table(
        'payment_receipts',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('job_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cleaner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('receipt_number', sa.String(50), unique=True, nullable=False),
        sa.Column('payment_method', enum('paymentmethod'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), server_default='0'),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('service_description', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'cash_collections',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('job_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('jobs.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cleaner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('service_date', sa.Date(), nullable=False),
        sa.Column('cash_handling', enum('cashhandling'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('compensation_status', enum('compensationstatus'), nullable=False, server_default='pending', index=True),
        sa.Column('approved_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('approved_at', sa.DateTime(), nullable=True),
        sa.Column('disputed_by', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('disputed_at', sa.DateTime(), nullable=True),
        sa.Column('dispute_reason', sa.Text(), nullable=True),
        sa.Column('settled_at', sa.DateTime(), nullable=True),
        sa.Column('payroll_period_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('handled_by_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )

    # === INVOICES ===
    op.create_table(
        'invoices',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('client_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('clients.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('job_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('jobs.id', ondelete='SET NULL'), nullable=True),
        sa.Column('cleaner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('location_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('client_locations.id', ondelete='SET NULL'), nullable=True),
        sa.Column('invoice_number', sa.String(50), unique=True, nullable=False),
        sa.Column('service_date', sa.Date(), nullable=True),
        sa.Column('service_duration', sa.String(20), nullable=True),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', enum('invoicestatus'), nullable=False, server_default='draft', index=True),
        sa.Column('due_date', sa.Date(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('payment_method', enum('paymentmethod'), nullable=True),
        sa.Column('payment_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('payment_date', sa.Date(), nullable=True),
        sa.Column('payment_reference', sa.String(100), nullable=True),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        # One invoice per job
        sa.UniqueConstraint('company_id', 'job_id', name='uq_invoices_company_job'),
    )

    # === NOTIFICATIONS ===
    op.create_table(
        'notifications',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('recipient_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=True, index=True),
        sa.Column('role_target', enum('companyrole'), nullable=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', enum('notificationtype'), nullable=False),
        sa.Column('severity', enum('notificationseverity'), nullable=False, server_default='info'),
        sa.Column('metadata', postgresql.JSONB(), nullable=True),
        sa.Column('is_read', sa.Boolean(), server_default=sa.false()),
        sa.Column('read_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    # === ACTIVITY LOG (append-only) ===
    op.create_table(
        'activity_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('company_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('performed_by_user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True),
        sa.Column('performer_name', sa.String(255), nullable=True),
        sa.Column('action', enum('activityaction'), nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('entity_type', sa.String(50), nullable=True),
        sa.Column('entity_id', sa.String(64), nullable=True),
        sa.Column('entity_name', sa.String(255), nullable=True),
        sa.Column('details', postgresql.JSONB(), nullable=True),
        sa.Column('source', sa.String(20), server_default='api'),
        sa.Column('created_at', sa.DateTime(), nullable=False, index=True),
    )


def downgrade() -> None:
    op.drop_table('activity_logs')
    op.drop_table('notifications')
    op.drop_table('invoices')
    op.drop_table('cash_collections')
    op.drop_table('payment_receipts')
    op.drop_table('jobs')
    op.drop_table('estimates')
    op.drop_table('client_locations')
    op.drop_table('clients')
    op.drop_table('company_branding')
    op.drop_table('checklist_items')
    op.drop_table('company_extra_fees')
    op.drop_table('company_estimate_config')
    op.drop_table('company_memberships')
    op.drop_table('companies')
    op.drop_table('users')

    # Drop enums
    for name in reversed(list(ENUMS)):
        op.execute(f'DROP TYPE IF EXISTS {name}')
