"""initial document collections

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates one table per back-office collection. Every table has the same
shape:
- id: opaque string document id
- data: JSON document body (never contains `id`)
- version_id: compare-and-swap counter, bumped by every write
- created_at / updated_at
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'a1b2c3d4e5f6'
down_revision = None
branch_labels = None
depends_on = None


COLLECTION_TABLES = [
    'managers',
    'users',
    'representatives',
    'orders',
    'temp_orders',
    'transactions',
    'conversations',
    'notifications',
    'settings',
    'expenses',
    'deposits',
    'external_debts',
    'creditors',
    'manual_labels',
    'instant_sales',
]


def upgrade():
    """
    Create every collection table.

    WHY one table per collection: queries filter inside a single collection
    and the collection name maps 1:1 onto a table, so no discriminator
    column is needed.
    """
    for table_name in COLLECTION_TABLES:
        op.create_table(
            table_name,
            sa.Column('id', sa.String(length=64), nullable=False),
            sa.Column('data', sa.JSON(), nullable=False),
            sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.text('CURRENT_TIMESTAMP')),
            sa.PrimaryKeyConstraint('id'),
        )
        op.create_index(f'ix_{table_name}_created_at', table_name, ['created_at'])


def downgrade():
    for table_name in reversed(COLLECTION_TABLES):
        op.drop_index(f'ix_{table_name}_created_at', table_name=table_name)
        op.drop_table(table_name)
