"""create booking tables

Revision ID: 6b2f0c1d9a47
Revises:
Create Date: 2026-10-12 14:05:31.482917

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '6b2f0c1d9a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    # 1. Service catalog
    op.create_table(
        'services',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('description', sa.Text, nullable=True),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('base_price', sa.Integer, nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
    )
    op.create_index('ix_services_is_active', 'services', ['is_active'])

    # 2. Staff, eligibility and price overrides
    op.create_table(
        'staff',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('is_active', sa.Boolean, server_default=sa.text('true'), nullable=True),
        sa.Column('calendar_version', sa.Integer, server_default=sa.text('0'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
    )

    op.create_table(
        'staff_services',
        sa.Column('staff_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table(
        'staff_service_pricing',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('staff_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id', ondelete='CASCADE'), nullable=False),
        sa.Column('custom_price', sa.Integer, nullable=False),
        sa.UniqueConstraint('staff_id', 'service_id', name='uq_staff_service_pricing'),
    )

    # 3. Weekly rules, date overrides and blocks
    op.create_table(
        'staff_availability',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('staff_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer, nullable=False),
        sa.Column('start_time', sa.Time, nullable=False),
        sa.Column('end_time', sa.Time, nullable=False),
        sa.Column('override_date', sa.Date, nullable=True),
        sa.Column('reason', sa.String, nullable=True),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_staff_availability_day'),
    )
    op.create_index('ix_staff_availability_staff_id', 'staff_availability', ['staff_id'])
    op.create_index(
        'uq_staff_availability_weekly', 'staff_availability', ['staff_id', 'day_of_week'],
        unique=True, postgresql_where=sa.text('override_date IS NULL')
    )
    op.create_index(
        'uq_staff_availability_override', 'staff_availability', ['staff_id', 'override_date'],
        unique=True, postgresql_where=sa.text('override_date IS NOT NULL')
    )

    op.create_table(
        'schedule_blocks',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('availability_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff_availability.id', ondelete='CASCADE'), nullable=False),
        sa.Column('block_start_time', sa.Time, nullable=False),
        sa.Column('block_end_time', sa.Time, nullable=False),
        sa.Column('block_type', sa.String(20), server_default='break', nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('is_recurring', sa.Boolean, server_default=sa.text('true'), nullable=True),
    )
    op.create_index('ix_schedule_blocks_availability_id', 'schedule_blocks', ['availability_id'])

    # 4. Bookings
    op.create_table(
        'bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('staff_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff.id'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('slot_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('slot_end_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('customer_name', sa.String, nullable=False),
        sa.Column('customer_phone', sa.String, nullable=False),
        sa.Column('customer_email', sa.String, nullable=True),
        sa.Column('customer_id', sa.String, nullable=True),
        sa.Column('final_price', sa.Integer, nullable=False),
        sa.Column('status', sa.String(20), server_default='confirmed', nullable=False),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('slot_end_datetime > slot_datetime', name='ck_bookings_interval'),
    )
    op.create_index(
        'uq_bookings_staff_slot_active', 'bookings', ['staff_id', 'slot_datetime'],
        unique=True, postgresql_where=sa.text("status <> 'cancelled'")
    )
    op.create_index('idx_bookings_staff_window', 'bookings', ['staff_id', 'slot_datetime', 'slot_end_datetime'])

    # 5. Checkout holds
    op.create_table(
        'booking_holds',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('session_id', sa.String(128), nullable=False),
        sa.Column('staff_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('staff.id'), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('services.id'), nullable=False),
        sa.Column('slot_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('slot_end_datetime', sa.DateTime(timezone=True), nullable=False),
        sa.Column('duration_minutes', sa.Integer, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.UniqueConstraint('staff_id', 'slot_datetime', name='uq_booking_holds_staff_slot'),
    )
    op.create_index('ix_booking_holds_session_id', 'booking_holds', ['session_id'])
    op.create_index('ix_booking_holds_expires_at', 'booking_holds', ['expires_at'])
    op.create_index('idx_booking_holds_staff_window', 'booking_holds', ['staff_id', 'slot_datetime', 'slot_end_datetime'])

    # 6. Hold analytics (no foreign keys, outlives the hold rows)
    op.create_table(
        'hold_analytics',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('hold_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('session_id', sa.String(128), nullable=False),
        sa.Column('staff_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('service_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('held_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expired_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('converted', sa.Boolean, server_default=sa.text('false'), nullable=False),
    )
    op.create_index('ix_hold_analytics_hold_id', 'hold_analytics', ['hold_id'])
    op.create_index('ix_hold_analytics_session_id', 'hold_analytics', ['session_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('hold_analytics')
    op.drop_table('booking_holds')
    op.drop_index('idx_bookings_staff_window', table_name='bookings')
    op.drop_index('uq_bookings_staff_slot_active', table_name='bookings')
    op.drop_table('bookings')
    op.drop_table('schedule_blocks')
    op.drop_table('staff_availability')
    op.drop_table('staff_service_pricing')
    op.drop_table('staff_services')
    op.drop_table('staff')
    op.drop_table('services')
