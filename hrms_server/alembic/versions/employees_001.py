"""Create employees table

Revision ID: employees_001
Revises:
Create Date: 2025-06-02 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'employees_001'
down_revision = None
branch_labels = None
depends_on = None


def _text(name, length, default=""):
    return sa.Column(name, sa.String(length=length), nullable=False, server_default=default)


def upgrade() -> None:
    op.create_table('employees',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('employee_id', sa.String(length=50), nullable=False),
        sa.Column('employee_name', sa.String(length=150), nullable=False),
        _text('employee_code', 50),
        sa.Column('email', sa.String(length=150), nullable=False),
        _text('gender', 20),
        _text('department_id', 50, "0"),
        _text('designation', 100),
        sa.Column('doj', sa.Date(), nullable=True),
        sa.Column('dor', sa.Date(), nullable=True),
        sa.Column('doc', sa.Date(), nullable=True),
        _text('employment_type', 30, "Permanent"),
        _text('employee_status', 30, "Working"),
        _text('account_status', 20, "Active"),
        _text('employee_code_in_device', 50, "NA"),
        sa.Column('master_device_id', sa.Integer(), nullable=False, server_default="0"),
        sa.Column('record_status', sa.Integer(), nullable=False, server_default="1"),
        _text('work_place', 100),
        _text('extension_no', 20),
        _text('team', 100),
        sa.Column('shift_time', sa.JSON(), nullable=False),
        _text('manager_id', 50),
        _text('team_lead_id', 50),
        _text('working_days', 5, "5"),
        _text('max_regularization', 5, "2"),
        _text('max_short_leave', 5, "1"),
        _text('role', 30, "Employee"),
        sa.Column('is_probation', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_notice', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_working', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_inhouse', sa.Boolean(), nullable=False, server_default=sa.true()),
        _text('father_name', 150),
        _text('mother_name', 150),
        _text('residential_address', 500),
        _text('permanent_address', 500),
        _text('contact_no', 30),
        sa.Column('dob', sa.Date(), nullable=True),
        _text('place_of_birth', 100),
        _text('blood_group', 10),
        _text('aadhaar_number', 20),
        _text('pancard_no', 20),
        _text('employee_photo', 500),
        _text('marital_status', 20),
        _text('nationality', 50),
        _text('overall_experience', 50),
        _text('qualifications', 500),
        _text('emergency_contact', 100),
        sa.Column('login_password', sa.String(length=255), nullable=False),
        _text('otp', 10),
        sa.Column('otp_expiry', sa.DateTime(), nullable=True),
        sa.Column('is_otp_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('leave_balance', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_employees_employee_id', 'employees', ['employee_id'], unique=True)
    op.create_index('ix_employees_email', 'employees', ['email'], unique=True)
    op.create_index('ix_employees_department_id', 'employees', ['department_id'], unique=False)
    op.create_index('ix_employees_employee_status', 'employees', ['employee_status'], unique=False)
    op.create_index('ix_employees_manager_id', 'employees', ['manager_id'], unique=False)
    op.create_index('ix_employees_team_lead_id', 'employees', ['team_lead_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_employees_team_lead_id', table_name='employees')
    op.drop_index('ix_employees_manager_id', table_name='employees')
    op.drop_index('ix_employees_employee_status', table_name='employees')
    op.drop_index('ix_employees_department_id', table_name='employees')
    op.drop_index('ix_employees_email', table_name='employees')
    op.drop_index('ix_employees_employee_id', table_name='employees')
    op.drop_table('employees')
