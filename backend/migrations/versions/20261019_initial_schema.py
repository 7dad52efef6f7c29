"""Initial boutique schema

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

Creates:
1. Shops and business settings
2. Stock groups with color variants, size quantities and wholesale tiers
3. Transactions, transaction items, refunds, refund items, id sequences
4. Saved carts
5. Expenses with categories and spending menus
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade():
    # ==========================================================================
    # 1. SHOPS & SETTINGS
    # ==========================================================================
    op.create_table('shops',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('manager', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='active'),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_shops_name'),
        sqlite_autoincrement=True,
    )

    op.create_table('business_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('business_name', sa.String(length=255), nullable=False),
        sa.Column('short_name', sa.String(length=64), nullable=False),
        sa.Column('default_currency', sa.String(length=8), nullable=False, server_default='THB'),
        sa.Column('tax_rate', sa.Numeric(6, 3), nullable=False, server_default='7'),
        sa.Column('currency_rate', sa.Numeric(18, 6), nullable=False, server_default='0'),
        sa.Column('current_branch', sa.String(length=128), nullable=True),
        sa.Column('invoice_footer_message', sa.Text(), nullable=True),
        sa.Column('gs1_company_prefix', sa.String(length=11), nullable=False, server_default='8901234'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )

    # ==========================================================================
    # 2. CATALOG
    # ==========================================================================
    op.create_table('stock_groups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('group_name', sa.String(length=255), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('original_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('category', sa.String(length=128), nullable=True),
        sa.Column('shop', sa.String(length=128), nullable=True),
        sa.Column('release_date', sa.Date(), nullable=True),
        sa.Column('is_colorless', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('group_image', sa.String(length=1024), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('stock_groups', schema=None) as batch_op:
        batch_op.create_index('ix_stock_groups_shop', ['shop'], unique=False)
        batch_op.create_index('ix_stock_groups_shop_name', ['shop', 'group_name'], unique=False)

    op.create_table('color_variants',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('stock_group_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('color', sa.String(length=64), nullable=False),
        sa.Column('color_code', sa.String(length=16), nullable=True),
        sa.Column('barcode', sa.String(length=64), nullable=True),
        sa.Column('image', sa.String(length=1024), nullable=True),
        sa.ForeignKeyConstraint(['stock_group_id'], ['stock_groups.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('color_variants', schema=None) as batch_op:
        batch_op.create_index('ix_color_variants_stock_group_id', ['stock_group_id'], unique=False)
        batch_op.create_index('ix_color_variants_barcode', ['barcode'], unique=False)

    op.create_table('size_quantities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('color_variant_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('size', sa.String(length=32), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.CheckConstraint('quantity >= 0', name='ck_size_quantities_quantity_nonneg'),
        sa.ForeignKeyConstraint(['color_variant_id'], ['color_variants.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('color_variant_id', 'size', name='uq_size_quantities_variant_size'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('size_quantities', schema=None) as batch_op:
        batch_op.create_index('ix_size_quantities_color_variant_id', ['color_variant_id'], unique=False)

    op.create_table('wholesale_tiers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('stock_group_id', sa.Integer(), nullable=False),
        sa.Column('min_quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.ForeignKeyConstraint(['stock_group_id'], ['stock_groups.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('wholesale_tiers', schema=None) as batch_op:
        batch_op.create_index('ix_wholesale_tiers_stock_group_id', ['stock_group_id'], unique=False)

    # ==========================================================================
    # 3. SALES
    # ==========================================================================
    op.create_table('transactions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=24), nullable=False, server_default='completed'),
        sa.Column('payment_method', sa.String(length=16), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('discount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('selling_currency', sa.String(length=8), nullable=False),
        sa.Column('exchange_rate', sa.Numeric(18, 6), nullable=False, server_default='1'),
        sa.Column('selling_total', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('amount_paid', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('change', sa.Numeric(14, 2), nullable=False, server_default='0'),
        sa.Column('shop_id', sa.Integer(), nullable=True),
        sa.Column('branch_name', sa.String(length=128), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_reason', sa.String(length=255), nullable=True),
        sa.Column('cancelled_by', sa.String(length=128), nullable=True),
        sa.ForeignKeyConstraint(['shop_id'], ['shops.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_id', name='uq_transactions_transaction_id'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('transactions', schema=None) as batch_op:
        batch_op.create_index('ix_transactions_status', ['status'], unique=False)
        batch_op.create_index('ix_transactions_shop_id', ['shop_id'], unique=False)
        batch_op.create_index('ix_transactions_timestamp', ['timestamp'], unique=False)
        batch_op.create_index('ix_transactions_status_timestamp', ['status', 'timestamp'], unique=False)

    op.create_table('transaction_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('stock_id', sa.Integer(), nullable=True),
        sa.Column('group_name', sa.String(length=255), nullable=False),
        sa.Column('selected_color', sa.String(length=64), nullable=False),
        sa.Column('selected_size', sa.String(length=32), nullable=False),
        sa.Column('color_code', sa.String(length=16), nullable=True),
        sa.Column('shop', sa.String(length=128), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('original_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('discounted_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('group_discount', sa.Numeric(6, 3), nullable=True),
        sa.Column('variant_discount', sa.Numeric(6, 3), nullable=True),
        sa.Column('is_wholesale_pricing', sa.Boolean(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('transaction_id', 'position', name='uq_transaction_items_position'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('transaction_items', schema=None) as batch_op:
        batch_op.create_index('ix_transaction_items_transaction_id', ['transaction_id'], unique=False)
        batch_op.create_index('ix_transaction_items_stock_id', ['stock_id'], unique=False)

    op.create_table('refunds',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('refund_id', sa.String(length=48), nullable=False),
        sa.Column('transaction_id', sa.Integer(), nullable=False),
        sa.Column('items_subtotal', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('cart_discount_refund', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('tax_refund', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('processed_by', sa.String(length=128), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='completed'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['transaction_id'], ['transactions.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('refund_id', name='uq_refunds_refund_id'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('refunds', schema=None) as batch_op:
        batch_op.create_index('ix_refunds_transaction_id', ['transaction_id'], unique=False)

    op.create_table('refund_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('refund_id', sa.Integer(), nullable=False),
        sa.Column('item_id', sa.Integer(), nullable=True),
        sa.Column('item_index', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.ForeignKeyConstraint(['refund_id'], ['refunds.id']),
        sa.ForeignKeyConstraint(['item_id'], ['transaction_items.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('refund_items', schema=None) as batch_op:
        batch_op.create_index('ix_refund_items_refund_id', ['refund_id'], unique=False)

    op.create_table('transaction_sequences',
        sa.Column('name', sa.String(length=32), nullable=False),
        sa.Column('next_value', sa.Integer(), nullable=False, server_default='1'),
        sa.PrimaryKeyConstraint('name'),
    )

    op.create_table('saved_carts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=128), nullable=False),
        sa.Column('payload', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', name='uq_saved_carts_user'),
        sqlite_autoincrement=True,
    )

    # ==========================================================================
    # 4. EXPENSES
    # ==========================================================================
    op.create_table('expense_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_expense_categories_name'),
        sqlite_autoincrement=True,
    )

    op.create_table('spending_menus',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name', name='uq_spending_menus_name'),
        sqlite_autoincrement=True,
    )

    op.create_table('expenses',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('currency', sa.String(length=8), nullable=False),
        sa.Column('amount', sa.Numeric(14, 2), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=True),
        sa.Column('category_name', sa.String(length=128), nullable=True),
        sa.Column('spending_menu_id', sa.Integer(), nullable=True),
        sa.Column('spending_menu_name', sa.String(length=128), nullable=True),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('image_url', sa.String(length=1024), nullable=True),
        sa.Column('created_by', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['expense_categories.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['spending_menu_id'], ['spending_menus.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table('expenses', schema=None) as batch_op:
        batch_op.create_index('ix_expenses_date', ['date'], unique=False)
        batch_op.create_index('ix_expenses_currency_date', ['currency', 'date'], unique=False)


def downgrade():
    with op.batch_alter_table('expenses', schema=None) as batch_op:
        batch_op.drop_index('ix_expenses_currency_date')
        batch_op.drop_index('ix_expenses_date')
    op.drop_table('expenses')
    op.drop_table('spending_menus')
    op.drop_table('expense_categories')
    op.drop_table('saved_carts')
    op.drop_table('transaction_sequences')
    op.drop_table('refund_items')
    op.drop_table('refunds')
    op.drop_table('transaction_items')
    op.drop_table('transactions')
    op.drop_table('wholesale_tiers')
    op.drop_table('size_quantities')
    op.drop_table('color_variants')
    op.drop_table('stock_groups')
    op.drop_table('business_settings')
    op.drop_table('shops')
