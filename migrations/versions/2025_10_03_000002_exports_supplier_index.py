"""add supplier lookup index on exports

Revision ID: 000002_exports_supplier_index
Revises: 000001_init
Create Date: 2025-10-03
"""

from alembic import op


revision = '000002_exports_supplier_index'
down_revision = '000001_init'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_index(
        'ix_supplier_price_exports_supplier_created_at',
        'supplier_price_exports',
        ['supplier_id', 'created_at'],
    )


def downgrade() -> None:
    op.drop_index('ix_supplier_price_exports_supplier_created_at', table_name='supplier_price_exports')
