"""baseline booking schema

Revision ID: 20261001000000
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261001000000'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'businesses',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )

    op.create_table(
        'services',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('business_id', sa.String(length=36), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('description', sa.String(length=1000), nullable=True),
        sa.Column('duration', sa.Integer(), nullable=False),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index('idx_services_business_active', 'services', ['business_id', 'is_active'])

    op.create_table(
        'weekly_availability',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('business_id', sa.String(length=36), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint('business_id', 'day_of_week', name='uq_weekly_availability_business_day'),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='check_day_of_week_range'),
        sa.CheckConstraint('start_time < end_time', name='check_weekly_time_range'),
    )

    op.create_table(
        'availability_exceptions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('business_id', sa.String(length=36), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('start_time', sa.Time(), nullable=True),
        sa.Column('end_time', sa.Time(), nullable=True),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.UniqueConstraint('business_id', 'date', name='uq_availability_exception_business_date'),
    )

    op.create_table(
        'appointments',
        sa.Column('id', sa.String(length=36), primary_key=True),
        sa.Column('business_id', sa.String(length=36), sa.ForeignKey('businesses.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', sa.String(length=36), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('service_price', sa.Integer(), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=False),
        sa.Column('customer_email', sa.String(length=255), nullable=False),
        sa.Column('customer_phone', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.String(length=1000), nullable=True),
        sa.Column('confirmation_number', sa.String(length=8), nullable=False, unique=True),
        sa.Column('cancelled_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), nullable=False),
    )
    op.create_index(
        'idx_appointments_business_date_status',
        'appointments',
        ['business_id', 'appointment_date', 'status'],
    )

    # One row per claimed minute; the unique constraint rejects overlapping active appointments
    op.create_table(
        'appointment_slot_claims',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('business_id', sa.String(length=36), nullable=False),
        sa.Column('appointment_date', sa.Date(), nullable=False),
        sa.Column('minute', sa.Integer(), nullable=False),
        sa.Column('appointment_id', sa.String(length=36), sa.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False),
        sa.UniqueConstraint('business_id', 'appointment_date', 'minute', name='uq_slot_claim_business_date_minute'),
    )
    op.create_index('ix_appointment_slot_claims_appointment_id', 'appointment_slot_claims', ['appointment_id'])


def downgrade() -> None:
    op.drop_index('ix_appointment_slot_claims_appointment_id', table_name='appointment_slot_claims')
    op.drop_table('appointment_slot_claims')
    op.drop_index('idx_appointments_business_date_status', table_name='appointments')
    op.drop_table('appointments')
    op.drop_table('availability_exceptions')
    op.drop_table('weekly_availability')
    op.drop_index('idx_services_business_active', table_name='services')
    op.drop_table('services')
    op.drop_table('businesses')
