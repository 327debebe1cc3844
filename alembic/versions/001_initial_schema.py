"""Initial schema for the business contact manager

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-10-14

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create companies table
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.Text(), nullable=False, comment='Company name'),
        sa.Column('contact', sa.Text(), nullable=False, comment='Contact person'),
        sa.Column('email', sa.Text(), nullable=False, comment='Contact email address'),
        sa.Column('phone', sa.Text(), nullable=False, comment='Contact phone number'),
        sa.Column('industry', sa.Text(), nullable=False, comment='Industry or sector'),
        sa.Column('location', sa.Text(), nullable=False, comment='City, region or address'),
        sa.Column('employees', sa.Integer(), nullable=False, comment='Number of employees'),
        sa.Column('revenue', sa.Text(), nullable=False, comment='Free-text revenue figure, e.g. $25M'),
        sa.Column('status', sa.String(length=50), nullable=False,
                  comment='Relationship status label: Active, Pending, Inactive, New'),
        sa.Column('lastContact', sa.Text(), nullable=False, comment='Date of last contact (YYYY-MM-DD)'),
        sa.CheckConstraint('employees >= 0', name='companies_employees_check'),
        sa.PrimaryKeyConstraint('id'),
        comment='Business contacts managed by the application',
        sqlite_autoincrement=True
    )

    # Create indexes on companies table
    op.create_index('idx_companies_name', 'companies', ['name'])
    op.create_index('idx_companies_email', 'companies', ['email'])

    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.Text(), nullable=False, comment='Unique login name'),
        sa.Column('password', sa.Text(), nullable=False, comment='Opaque password value'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username'),
        comment='Application accounts',
        sqlite_autoincrement=True
    )


def downgrade() -> None:
    # Drop users table
    op.drop_table('users')

    # Drop companies table and indexes
    op.drop_index('idx_companies_email', table_name='companies')
    op.drop_index('idx_companies_name', table_name='companies')
    op.drop_table('companies')
