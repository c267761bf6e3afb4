"""initial cafe schema

Revision ID: c0f1e2d3a4b5
Revises:
Create Date: 2025-01-06 00:00:00.000000

Creates the back-office schema:
- staff: staff members, rates in cents, bcrypt PIN hash
- time_logs: append-only clockIn/clockOut events
- items / inventory_batches: stock items and their dated batches
- payrolls: generated pay periods
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'c0f1e2d3a4b5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # staff
    # ============================================================================
    op.create_table(
        'staff',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('position', sa.String(length=32), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('daily_rate_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('allowances_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Active'),
        sa.Column('pin_hash', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_staff_status', 'staff', ['status'])

    # ============================================================================
    # time_logs: immutable clock events; hours only on clockOut
    # ============================================================================
    op.create_table(
        'time_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        # clockIn | clockOut
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('hours_worked', sa.Float(), nullable=True),
        sa.Column('is_overtime', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('photo_path', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['staff_id'], ['staff.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('hours_worked IS NULL OR hours_worked >= 0',
                           name='ck_time_logs_hours_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_time_logs_staff_id', 'time_logs', ['staff_id'])
    op.create_index('ix_time_logs_staff_timestamp', 'time_logs', ['staff_id', 'timestamp'])

    # ============================================================================
    # items: version_id is the optimistic lock for stock mutations
    # ============================================================================
    op.create_table(
        'items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=32), nullable=False),
        sa.Column('unit', sa.String(length=16), nullable=False),
        sa.Column('cost_cents', sa.Integer(), nullable=False),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('vendor', sa.String(length=255), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Out of Stock'),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('cost_cents >= 0', name='ck_items_cost_non_negative'),
        sa.CheckConstraint('price_cents >= 0', name='ck_items_price_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_items_status', 'items', ['status'])
    op.create_index('ix_items_category_name', 'items', ['category', 'name'])

    op.create_table(
        'inventory_batches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Numeric(precision=12, scale=3), nullable=False),
        sa.Column('expiration_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('added_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['item_id'], ['items.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity >= 0', name='ck_inventory_batches_quantity_non_negative'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_inventory_batches_item_id', 'inventory_batches', ['item_id'])
    op.create_index('ix_inventory_batches_item_expiration', 'inventory_batches',
                    ['item_id', 'expiration_date'])

    # ============================================================================
    # payrolls: one row per staff member and period start
    # ============================================================================
    op.create_table(
        'payrolls',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('staff_id', sa.Integer(), nullable=False),
        sa.Column('period_start', sa.DateTime(timezone=True), nullable=False),
        sa.Column('period_end', sa.DateTime(timezone=True), nullable=False),
        sa.Column('total_hours', sa.Float(), nullable=False, server_default='0'),
        sa.Column('regular_hours', sa.Float(), nullable=False, server_default='0'),
        sa.Column('overtime_hours', sa.Float(), nullable=False, server_default='0'),
        sa.Column('basic_pay_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('overtime_pay_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('allowances_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('late_deduction_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('absence_deduction_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('net_pay_cents', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['staff_id'], ['staff.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('staff_id', 'period_start', name='uq_payrolls_staff_period'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_payrolls_staff_id', 'payrolls', ['staff_id'])
    op.create_index('ix_payrolls_staff_period', 'payrolls', ['staff_id', 'period_start'])


def downgrade():
    op.drop_table('payrolls')
    op.drop_table('inventory_batches')
    op.drop_table('items')
    op.drop_table('time_logs')
    op.drop_table('staff')
