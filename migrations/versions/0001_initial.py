"""initial tables

Revision ID: 0001
Revises:
Create Date: 2025-09-05

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None

WEEK = [
    (1, 'Monday', 'Mon'),
    (2, 'Tuesday', 'Tue'),
    (3, 'Wednesday', 'Wed'),
    (4, 'Thursday', 'Thu'),
    (5, 'Friday', 'Fri'),
    (6, 'Saturday', 'Sat'),
    (7, 'Sunday', 'Sun'),
]


def upgrade():
    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(16), nullable=False, server_default='STUDENT'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    op.create_table('student_profile',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True),
        sa.Column('student_id', sa.String(32), nullable=False),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=False),
        sa.Column('email_address', sa.String(255), nullable=True),
        sa.Column('address', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(32), nullable=True),
        sa.Column('program', sa.String(255), nullable=True),
        sa.Column('year_level', sa.Integer(), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
    )
    op.create_index('ix_student_profile_student_id', 'student_profile', ['student_id'], unique=True)
    op.create_index('ix_student_profile_program', 'student_profile', ['program'])
    op.create_index('ix_student_profile_year_level', 'student_profile', ['year_level'])

    op.create_table('unit',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('unit_code', sa.String(32), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('credits', sa.Integer(), nullable=False, server_default='0'),
    )
    op.create_index('ix_unit_unit_code', 'unit', ['unit_code'], unique=True)

    op.create_table('semester',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('academic_year', sa.Integer(), nullable=False),
        sa.Column('semester_number', sa.Integer(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=False),
        sa.Column('enrollment_start', sa.DateTime(), nullable=False),
        sa.Column('enrollment_end', sa.DateTime(), nullable=False),
        sa.UniqueConstraint('academic_year', 'semester_number', name='uq_semester_year_number'),
    )

    day = op.create_table('day',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(16), nullable=False, unique=True),
        sa.Column('short_name', sa.String(8), nullable=False, unique=True),
        sa.Column('day_order', sa.Integer(), nullable=False, unique=True),
    )

    op.create_table('time_slot',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.UniqueConstraint('start_time', 'end_time', name='uq_timeslot_range'),
    )
    op.create_index('ix_timeslot_start', 'time_slot', ['start_time'])

    op.create_table('availability',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('day_id', sa.Integer(), sa.ForeignKey('day.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('time_slot_id', sa.Integer(), sa.ForeignKey('time_slot.id', ondelete='RESTRICT'), nullable=False),
        sa.UniqueConstraint('day_id', 'time_slot_id', name='uq_availability_day_slot'),
    )

    op.create_table('enrollment',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('student_profile_id', sa.Integer(), sa.ForeignKey('student_profile.id', ondelete='CASCADE'), nullable=False),
        sa.Column('unit_id', sa.Integer(), sa.ForeignKey('unit.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('semester_id', sa.Integer(), sa.ForeignKey('semester.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('status', sa.String(16), nullable=False, server_default='PENDING'),
        sa.Column('enrolled_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('student_profile_id', 'unit_id', 'semester_id', name='uq_enrollment_student_unit_semester'),
    )
    op.create_index('ix_enrollment_student_profile_id', 'enrollment', ['student_profile_id'])
    op.create_index('ix_enrollment_unit_id', 'enrollment', ['unit_id'])
    op.create_index('ix_enrollment_semester_id', 'enrollment', ['semester_id'])
    op.create_index('ix_enrollment_enrolled_at', 'enrollment', ['enrolled_at'])

    op.create_table('enrollment_availabilities',
        sa.Column('enrollment_id', sa.Integer(), sa.ForeignKey('enrollment.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('availability_id', sa.Integer(), sa.ForeignKey('availability.id', ondelete='CASCADE'), primary_key=True),
    )

    op.create_table('notification',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('type', sa.String(16), nullable=False, server_default='GENERAL'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_notification_is_active', 'notification', ['is_active'])

    op.create_table('password_reset',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('otp', sa.String(6), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index('ix_password_reset_user_id', 'password_reset', ['user_id'])

    op.create_table('audit_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.String(64), nullable=False),
        sa.Column('entity_type', sa.String(64), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('old_values', sa.Text(), nullable=True),
        sa.Column('new_values', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.bulk_insert(day, [
        {'id': order, 'name': name, 'short_name': short, 'day_order': order}
        for order, name, short in WEEK
    ])


def downgrade():
    for table in (
        'audit_log', 'password_reset', 'notification', 'enrollment_availabilities',
        'enrollment', 'availability', 'time_slot', 'day', 'semester', 'unit',
        'student_profile', 'users',
    ):
        op.drop_table(table)
