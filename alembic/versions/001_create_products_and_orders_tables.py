"""create products and orders tables

Revision ID: 001
Revises: 
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create products table
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('price', sa.Integer(), nullable=False),
        sa.Column('original_price', sa.Integer()),
        sa.Column('category', sa.String(20), nullable=False),
        sa.Column('image_url', sa.String(255)),
        sa.Column('features', sa.Text()),  # JSON array of strings
        sa.Column('rating', sa.Numeric(3, 2), nullable=False, server_default='5.00'),
        sa.Column('reviews_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('price > 0', name='positive_price'),
        sa.CheckConstraint('original_price IS NULL OR original_price >= 0', name='non_negative_original_price'),
        sa.CheckConstraint('rating >= 0 AND rating <= 5', name='rating_range'),
        sa.CheckConstraint('reviews_count >= 0', name='non_negative_reviews_count'),
        sa.CheckConstraint("category IN ('bucket', 'balon', 'pernikahan')", name='category_valid'),
    )
    op.create_index('idx_products_category_active', 'products', ['category', 'is_active'])

    # Create orders table; RESTRICT keeps ordered products from being deleted
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('customer_name', sa.String(100), nullable=False),
        sa.Column('customer_phone', sa.String(20), nullable=False),
        sa.Column('customer_email', sa.String(100)),
        sa.Column('customer_address', sa.Text()),
        sa.Column('order_type', sa.String(10), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id', ondelete='RESTRICT')),
        sa.Column('custom_description', sa.Text()),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('total_price', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('notes', sa.Text()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint('quantity >= 1', name='positive_quantity'),
        sa.CheckConstraint("order_type IN ('standard', 'custom')", name='order_type_valid'),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'processing', 'completed', 'cancelled')",
            name='order_status_valid'
        ),
    )
    op.create_index('idx_orders_product', 'orders', ['product_id'])
    op.create_index('idx_orders_status', 'orders', ['status'])


def downgrade() -> None:
    op.drop_index('idx_orders_status', table_name='orders')
    op.drop_index('idx_orders_product', table_name='orders')
    op.drop_table('orders')
    op.drop_index('idx_products_category_active', table_name='products')
    op.drop_table('products')
