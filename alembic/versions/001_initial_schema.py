"""Initial schema - tracked products, forwarded orders, shop sessions and settings

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'tracked_products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('shop', sa.String(), nullable=False),
        sa.Column('itscope_sku', sa.String(), nullable=False),
        sa.Column('itscope_product_id', sa.String(), nullable=True),
        sa.Column('shopify_product_id', sa.String(), nullable=True),
        sa.Column('shopify_variant_id', sa.String(), nullable=True),
        sa.Column('shopify_inventory_item_id', sa.String(), nullable=True),
        sa.Column('distributor_id', sa.String(), nullable=False),
        sa.Column('distributor_name', sa.String(), nullable=True),
        sa.Column('product_category', sa.String(), nullable=False, server_default='Laptop'),
        sa.Column('shipping_mode', sa.String(), nullable=False, server_default='warehouse'),
        sa.Column('project_id', sa.String(), nullable=True),
        sa.Column('import_price', sa.Float(), nullable=True),
        sa.Column('last_price', sa.Float(), nullable=True),
        sa.Column('last_stock', sa.Integer(), nullable=True),
        sa.Column('last_stock_sync', sa.DateTime(timezone=True), nullable=True),
        sa.Column('price_alert', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop', 'itscope_sku', name='uq_tracked_products_shop_sku'),
    )
    op.create_index('ix_tracked_products_id', 'tracked_products', ['id'])
    op.create_index('ix_tracked_products_shopify_product_id', 'tracked_products', ['shopify_product_id'])
    op.create_index('ix_tracked_products_shop_active', 'tracked_products', ['shop', 'active'])

    op.create_table(
        'itscope_orders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.Column('shop', sa.String(), nullable=False),
        sa.Column('shopify_order_id', sa.String(), nullable=False),
        sa.Column('shopify_order_number', sa.String(), nullable=True),
        sa.Column('distributor_id', sa.String(), nullable=False),
        sa.Column('itscope_own_order_id', sa.String(length=18), nullable=False),
        sa.Column('itscope_deal_id', sa.String(), nullable=True),
        sa.Column('status', sa.String(), nullable=False, server_default='pending'),
        sa.Column('error_message', sa.String(), nullable=True),
        sa.Column('tracking_number', sa.String(), nullable=True),
        sa.Column('serial_numbers', sa.JSON(), nullable=True),
        sa.Column('dropship', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_status_check', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop', 'shopify_order_id', 'distributor_id', name='uq_itscope_orders_claim'),
    )
    op.create_index('ix_itscope_orders_id', 'itscope_orders', ['id'])
    op.create_index('ix_itscope_orders_shop', 'itscope_orders', ['shop'])
    op.create_index('ix_itscope_orders_status', 'itscope_orders', ['status'])

    op.create_table(
        'shop_sessions',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('shop', sa.String(), nullable=False),
        sa.Column('state', sa.String(), nullable=True),
        sa.Column('is_online', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('scope', sa.String(), nullable=True),
        sa.Column('expires', sa.DateTime(timezone=True), nullable=True),
        sa.Column('access_token', sa.String(), nullable=False, server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_shop_sessions_shop', 'shop_sessions', ['shop'])

    op.create_table(
        'shop_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('shop', sa.String(), nullable=False),
        sa.Column('location_id', sa.String(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('shop'),
    )
    op.create_index('ix_shop_settings_id', 'shop_settings', ['id'])


def downgrade() -> None:
    op.drop_index('ix_shop_settings_id', table_name='shop_settings')
    op.drop_table('shop_settings')
    op.drop_index('ix_shop_sessions_shop', table_name='shop_sessions')
    op.drop_table('shop_sessions')
    op.drop_index('ix_itscope_orders_status', table_name='itscope_orders')
    op.drop_index('ix_itscope_orders_shop', table_name='itscope_orders')
    op.drop_index('ix_itscope_orders_id', table_name='itscope_orders')
    op.drop_table('itscope_orders')
    op.drop_index('ix_tracked_products_shop_active', table_name='tracked_products')
    op.drop_index('ix_tracked_products_shopify_product_id', table_name='tracked_products')
    op.drop_index('ix_tracked_products_id', table_name='tracked_products')
    op.drop_table('tracked_products')
