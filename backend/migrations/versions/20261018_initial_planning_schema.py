"""Initial planning schema: schedules, shifts, work sessions, session notes, availabilities

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

This migration adds:
1. Schedule (one per business unit and week)
2. Shift (employee window inside a schedule)
3. WorkSession (recorded time, one per shift)
4. SessionNote (one per work session)
5. Availability (employee availability windows)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. SCHEDULES TABLE
    # ==========================================================================
    op.create_table('schedules',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('business_unit_id', sa.String(length=64), nullable=False),
        sa.Column('week_start', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='DRAFT'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('business_unit_id', 'week_start', name='uq_schedules_business_unit_week'),
    )
    op.create_index('ix_schedules_business_unit_id', 'schedules', ['business_unit_id'])
    op.create_index('ix_schedules_business_unit_status', 'schedules', ['business_unit_id', 'status'])

    # ==========================================================================
    # 2. SHIFTS TABLE
    # ==========================================================================
    op.create_table('shifts',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('schedule_id', sa.String(length=36), nullable=False),
        sa.Column('employee_id', sa.String(length=64), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('position', sa.String(length=64), nullable=True),
        sa.Column('employee_first_name', sa.String(length=120), nullable=True),
        sa.Column('employee_last_name', sa.String(length=120), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['schedule_id'], ['schedules.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('end_time > start_time', name='ck_shifts_end_after_start'),
    )
    op.create_index('ix_shifts_schedule_id', 'shifts', ['schedule_id'])
    op.create_index('ix_shifts_employee_id', 'shifts', ['employee_id'])
    op.create_index('ix_shifts_employee_window', 'shifts', ['employee_id', 'start_time', 'end_time'])

    # ==========================================================================
    # 3. WORK SESSIONS TABLE
    # ==========================================================================
    op.create_table('work_sessions',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('shift_id', sa.String(length=36), nullable=False),
        sa.Column('clock_in_time', sa.DateTime(), nullable=True),
        sa.Column('clock_out_time', sa.DateTime(), nullable=True),
        sa.Column('total_minutes', sa.Integer(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='CREATED'),
        sa.Column('confirmed', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('confirmed_by', sa.String(length=64), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(), nullable=True),
        sa.Column('modified_by', sa.String(length=64), nullable=True),
        sa.Column('original_clock_in_time', sa.DateTime(), nullable=True),
        sa.Column('original_clock_out_time', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['shift_id'], ['shifts.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shift_id', name='uq_work_sessions_shift'),
    )
    op.create_index('ix_work_sessions_user_id', 'work_sessions', ['user_id'])
    op.create_index('ix_work_sessions_confirmed', 'work_sessions', ['confirmed'])
    op.create_index('ix_work_sessions_user_clock_in', 'work_sessions', ['user_id', 'clock_in_time'])

    # ==========================================================================
    # 4. SESSION NOTES TABLE
    # ==========================================================================
    op.create_table('session_notes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('work_session_id', sa.String(length=36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['work_session_id'], ['work_sessions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('work_session_id', name='uq_session_notes_work_session'),
    )

    # ==========================================================================
    # 5. AVAILABILITIES TABLE
    # ==========================================================================
    op.create_table('availabilities',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('employee_id', sa.String(length=64), nullable=False),
        sa.Column('business_unit_id', sa.String(length=64), nullable=True),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        sa.Column('end_time', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_availabilities_employee_id', 'availabilities', ['employee_id'])
    op.create_index(
        'ix_availabilities_business_unit_window', 'availabilities',
        ['business_unit_id', 'start_time', 'end_time'],
    )


def downgrade():
    op.drop_index('ix_availabilities_business_unit_window', table_name='availabilities')
    op.drop_index('ix_availabilities_employee_id', table_name='availabilities')
    op.drop_table('availabilities')

    op.drop_table('session_notes')

    op.drop_index('ix_work_sessions_user_clock_in', table_name='work_sessions')
    op.drop_index('ix_work_sessions_confirmed', table_name='work_sessions')
    op.drop_index('ix_work_sessions_user_id', table_name='work_sessions')
    op.drop_table('work_sessions')

    op.drop_index('ix_shifts_employee_window', table_name='shifts')
    op.drop_index('ix_shifts_employee_id', table_name='shifts')
    op.drop_index('ix_shifts_schedule_id', table_name='shifts')
    op.drop_table('shifts')

    op.drop_index('ix_schedules_business_unit_status', table_name='schedules')
    op.drop_index('ix_schedules_business_unit_id', table_name='schedules')
    op.drop_table('schedules')
