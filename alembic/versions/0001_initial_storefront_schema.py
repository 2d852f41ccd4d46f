"""initial storefront schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '0001_initial'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

product_status_enum = postgresql.ENUM(
    'active', 'inactive', 'out_of_stock', name='product_status_enum', create_type=False
)
order_status_enum = postgresql.ENUM(
    'pending', 'processing', 'shipped', 'delivered', 'cancelled', 'cancellation_requested',
    name='order_status_enum', create_type=False,
)
payment_status_enum = postgresql.ENUM(
    'pending', 'completed', 'failed', 'refunded', name='payment_status_enum', create_type=False
)
refund_status_enum = postgresql.ENUM(
    'pending', 'processed', name='refund_status_enum', create_type=False
)
checkout_session_status_enum = postgresql.ENUM(
    'pending', 'completed', 'failed', name='checkout_session_status_enum', create_type=False
)

ENUMS = (
    product_status_enum,
    order_status_enum,
    payment_status_enum,
    refund_status_enum,
    checkout_session_status_enum,
)


def _timestamps(updated: bool = True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), nullable=False)]
    if updated:
        columns.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False))
    return columns


def upgrade() -> None:
    """Upgrade schema - Create storefront tables."""
    bind = op.get_bind()
    for enum in ENUMS:
        enum.create(bind, checkfirst=True)

    # Catalog
    op.create_table(
        'categories',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_categories'),
        sa.UniqueConstraint('slug', name='uq_categories_slug'),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('category_id', sa.Uuid(), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(12, 2), nullable=False),
        sa.Column('compare_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('stock_quantity', sa.Integer(), server_default='0', nullable=False),
        sa.Column('status', product_status_enum, server_default='active', nullable=False),
        sa.Column('is_featured', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
        sa.CheckConstraint('price >= 0', name='ck_products_non_negative_price'),
        sa.CheckConstraint('stock_quantity >= 0', name='ck_products_non_negative_stock'),
        sa.CheckConstraint(
            'compare_price IS NULL OR compare_price > price',
            name='ck_products_compare_price_above_price',
        ),
        sa.ForeignKeyConstraint(
            ['category_id'], ['categories.id'],
            name='fk_products_category_id_categories', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_products'),
        sa.UniqueConstraint('slug', name='uq_products_slug'),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
    )

    op.create_table(
        'product_images',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('image_url', sa.String(length=1000), nullable=False),
        sa.Column('storage_path', sa.String(length=500), nullable=True),
        sa.Column('alt_text', sa.String(length=255), nullable=True),
        sa.Column('is_primary', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_product_images_product_id_products', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_product_images'),
    )
    op.create_index('ix_product_images_product_id', 'product_images', ['product_id'])

    op.create_table(
        'product_tags',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('background_color', sa.String(length=20), server_default='#3B82F6', nullable=False),
        sa.Column('text_color', sa.String(length=20), server_default='#FFFFFF', nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default='0', nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_product_tags'),
        sa.UniqueConstraint('name', name='uq_product_tags_name'),
    )

    op.create_table(
        'product_tag_assignments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('tag_id', sa.Uuid(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_product_tag_assignments_product_id_products', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['tag_id'], ['product_tags.id'],
            name='fk_product_tag_assignments_tag_id_product_tags', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_product_tag_assignments'),
        sa.UniqueConstraint('product_id', 'tag_id', name='unique_product_tag'),
    )

    # Cart & wishlist
    op.create_table(
        'cart_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('quantity > 0', name='ck_cart_items_positive_quantity'),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_cart_items_product_id_products', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_cart_items'),
        sa.UniqueConstraint('customer_id', 'product_id', name='unique_cart_product'),
    )
    op.create_index('ix_cart_items_customer_id', 'cart_items', ['customer_id'])

    op.create_table(
        'wishlist_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.String(length=255), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=False),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_wishlist_items_product_id_products', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_wishlist_items'),
        sa.UniqueConstraint('customer_id', 'product_id', name='unique_wishlist_product'),
    )
    op.create_index('ix_wishlist_items_customer_id', 'wishlist_items', ['customer_id'])

    # Orders
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_number', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('shipping_amount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('discount_amount', sa.Numeric(12, 2), server_default='0', nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), server_default='INR', nullable=False),
        sa.Column('status', order_status_enum, server_default='pending', nullable=False),
        sa.Column('payment_status', payment_status_enum, server_default='pending', nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=True),
        sa.Column('card_last_four', sa.String(length=4), nullable=True),
        sa.Column('shipping_address', postgresql.JSONB(), nullable=True),
        sa.Column('billing_address', postgresql.JSONB(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('cancellation_requested', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('cancellation_request_reason', sa.Text(), nullable=True),
        sa.Column('cancellation_requested_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column('cancellation_fee', sa.Numeric(12, 2), nullable=True),
        sa.Column('refund_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('admin_response', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
        sa.UniqueConstraint('order_number', name='uq_orders_order_number'),
    )
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_status_created_at', 'orders', ['status', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('product_id', sa.Uuid(), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False),
        sa.Column('product_sku', sa.String(length=100), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(12, 2), nullable=False),
        *_timestamps(updated=False),
        sa.CheckConstraint('quantity > 0', name='ck_order_items_positive_item_quantity'),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_order_items_order_id_orders', ondelete='CASCADE',
        ),
        sa.ForeignKeyConstraint(
            ['product_id'], ['products.id'],
            name='fk_order_items_product_id_products', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order_items'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])

    op.create_table(
        'order_status_history',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('old_status', sa.String(length=50), nullable=True),
        sa.Column('new_status', sa.String(length=50), nullable=False),
        sa.Column('changed_by', sa.String(length=255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_order_status_history_order_id_orders', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_order_status_history'),
    )
    op.create_index('ix_order_status_history_order_id', 'order_status_history', ['order_id'])

    op.create_table(
        'refunds',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False),
        sa.Column('refund_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('cancellation_fee', sa.Numeric(12, 2), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('status', refund_status_enum, server_default='processed', nullable=False),
        sa.Column('processed_by', sa.String(length=255), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_refunds_order_id_orders', ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_refunds'),
    )
    op.create_index('ix_refunds_order_id', 'refunds', ['order_id'])

    op.create_table(
        'checkout_sessions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.String(length=255), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=True),
        sa.Column('session_id', sa.String(length=100), nullable=False),
        sa.Column('payment_method', sa.String(length=50), nullable=False),
        sa.Column('card_last_four', sa.String(length=4), nullable=True),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), server_default='INR', nullable=False),
        sa.Column('status', checkout_session_status_enum, server_default='pending', nullable=False),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.ForeignKeyConstraint(
            ['order_id'], ['orders.id'],
            name='fk_checkout_sessions_order_id_orders', ondelete='SET NULL',
        ),
        sa.PrimaryKeyConstraint('id', name='pk_checkout_sessions'),
        sa.UniqueConstraint('session_id', name='uq_checkout_sessions_session_id'),
    )
    op.create_index('ix_checkout_sessions_customer_id', 'checkout_sessions', ['customer_id'])

    # Accounts
    op.create_table(
        'customer_profiles',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=True),
        sa.Column('last_name', sa.String(length=100), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=True),
        sa.Column('phone_verified', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_customer_profiles'),
    )

    op.create_table(
        'phone_auth',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('phone_number', sa.String(length=20), nullable=False),
        sa.Column('country_code', sa.String(length=5), nullable=False),
        sa.Column('otp_hash', sa.String(length=64), nullable=True),
        sa.Column('otp_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_verified', sa.Boolean(), server_default='false', nullable=False),
        sa.Column('user_id', sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_phone_auth'),
        sa.UniqueConstraint('phone_number', name='uq_phone_auth_phone_number'),
    )

    op.create_table(
        'admin_users',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default='true', nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_admin_users'),
        sa.UniqueConstraint('email', name='uq_admin_users_email'),
    )

    op.create_table(
        'contact_submissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=50), nullable=False),
        sa.Column('subject', sa.String(length=500), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), server_default='false', nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id', name='pk_contact_submissions'),
    )
    op.create_index('ix_contact_submissions_is_read', 'contact_submissions', ['is_read'])


def downgrade() -> None:
    """Downgrade schema - Drop storefront tables."""
    op.drop_index('ix_contact_submissions_is_read', table_name='contact_submissions')
    op.drop_table('contact_submissions')
    op.drop_table('admin_users')
    op.drop_table('phone_auth')
    op.drop_table('customer_profiles')
    op.drop_index('ix_checkout_sessions_customer_id', table_name='checkout_sessions')
    op.drop_table('checkout_sessions')
    op.drop_index('ix_refunds_order_id', table_name='refunds')
    op.drop_table('refunds')
    op.drop_index('ix_order_status_history_order_id', table_name='order_status_history')
    op.drop_table('order_status_history')
    op.drop_index('ix_order_items_order_id', table_name='order_items')
    op.drop_table('order_items')
    op.drop_index('ix_orders_status_created_at', table_name='orders')
    op.drop_index('ix_orders_customer_id', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_wishlist_items_customer_id', table_name='wishlist_items')
    op.drop_table('wishlist_items')
    op.drop_index('ix_cart_items_customer_id', table_name='cart_items')
    op.drop_table('cart_items')
    op.drop_table('product_tag_assignments')
    op.drop_table('product_tags')
    op.drop_index('ix_product_images_product_id', table_name='product_images')
    op.drop_table('product_images')
    op.drop_table('products')
    op.drop_table('categories')

    bind = op.get_bind()
    for enum in reversed(ENUMS):
        enum.drop(bind, checkfirst=True)
