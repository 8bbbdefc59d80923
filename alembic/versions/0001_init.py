"""initial commerce ops schema

Revision ID: 0001_init
Revises:
Create Date: 2026-10-18

"""
from alembic import op
import sqlalchemy as sa

revision = '0001_init'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'products',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('sku', sa.String(50), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('product_type', sa.String(20), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer, nullable=False),
        sa.Column('weight', sa.Numeric(8, 2), nullable=True),
        sa.Column('dimensions', sa.String(50), nullable=True),
        sa.Column('active', sa.Boolean, nullable=False),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime, server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_products_sku', 'products', ['sku'], unique=True)

    op.create_table(
        'product_variants',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=False),
        sa.Column('sku', sa.String(50), nullable=False, unique=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('options', sa.JSON, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('stock', sa.Integer, nullable=False),
    )
    op.create_index('ix_product_variants_product_id', 'product_variants', ['product_id'])

    op.create_table(
        'product_links',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('physical_product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=False, unique=True),
        sa.Column('digital_product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=False, unique=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=False),
        sa.Column('variant_id', sa.Integer, sa.ForeignKey('product_variants.id'), nullable=True),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('reason', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_stock_movements_product_id', 'stock_movements', ['product_id'])

    op.create_table(
        'inventory_alerts',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=False),
        sa.Column('type', sa.String(20), nullable=False),
        sa.Column('threshold', sa.Integer, nullable=False),
        sa.Column('is_resolved', sa.Boolean, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('resolved_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_inventory_alerts_product_id', 'inventory_alerts', ['product_id'])

    op.create_table(
        'addresses',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('full_name', sa.String(200), nullable=False),
        sa.Column('company', sa.String(200), nullable=True),
        sa.Column('address1', sa.String(500), nullable=False),
        sa.Column('address2', sa.String(500), nullable=True),
        sa.Column('city', sa.String(100), nullable=False),
        sa.Column('state', sa.String(100), nullable=False),
        sa.Column('zip_code', sa.String(20), nullable=False),
        sa.Column('country', sa.String(100), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
    )

    op.create_table(
        'orders',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_number', sa.String(50), nullable=False),
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_phone', sa.String(50), nullable=True),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax', sa.Numeric(10, 2), nullable=False),
        sa.Column('shipping', sa.Numeric(10, 2), nullable=False),
        sa.Column('discount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('payment_status', sa.String(30), nullable=False),
        sa.Column('stripe_payment_id', sa.String(100), nullable=True),
        sa.Column('refund_id', sa.String(100), nullable=True),
        sa.Column('refunded_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('tracking_number', sa.String(100), nullable=True),
        sa.Column('carrier', sa.String(100), nullable=True),
        sa.Column('admin_notes', sa.Text, nullable=True),
        sa.Column('shipping_address_id', sa.Integer, sa.ForeignKey('addresses.id'), nullable=True),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_orders_order_number', 'orders', ['order_number'], unique=True)
    op.create_index('ix_orders_stripe_payment_id', 'orders', ['stripe_payment_id'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('product_id', sa.Integer, sa.ForeignKey('products.id'), nullable=True),
        sa.Column('variant_id', sa.Integer, sa.ForeignKey('product_variants.id'), nullable=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('sku', sa.String(50), nullable=True),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
    )

    op.create_table(
        'shipping_labels',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('carrier', sa.String(100), nullable=False),
        sa.Column('service', sa.String(200), nullable=True),
        sa.Column('tracking_number', sa.String(100), nullable=False),
        sa.Column('tracking_url', sa.String(500), nullable=True),
        sa.Column('label_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('insurance_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_cost', sa.Numeric(10, 2), nullable=False),
        sa.Column('weight', sa.Numeric(8, 2), nullable=True),
        sa.Column('label_url', sa.String(500), nullable=True),
        sa.Column('provider_label_id', sa.String(100), nullable=True),
        sa.Column('provider_shipment_id', sa.String(100), nullable=True),
        sa.Column('provider_refund_status', sa.String(30), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('from_address', sa.JSON, nullable=False),
        sa.Column('to_address', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('voided_at', sa.DateTime, nullable=True),
    )
    op.create_index('ix_shipping_labels_order_id', 'shipping_labels', ['order_id'])

    op.create_table(
        'service_inquiries',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('inquiry_number', sa.String(50), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('company', sa.String(200), nullable=True),
        sa.Column('website', sa.String(500), nullable=True),
        sa.Column('service_type', sa.String(30), nullable=False),
        sa.Column('budget', sa.String(100), nullable=True),
        sa.Column('timeline', sa.String(100), nullable=True),
        sa.Column('description', sa.Text, nullable=False),
        sa.Column('attachments', sa.JSON, nullable=True),
        sa.Column('status', sa.String(30), nullable=False),
        sa.Column('assigned_to', sa.String(200), nullable=True),
        sa.Column('estimated_cost', sa.Numeric(10, 2), nullable=True),
        sa.Column('proposal_url', sa.String(500), nullable=True),
        sa.Column('admin_notes', sa.Text, nullable=True),
        sa.Column('version', sa.Integer, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_service_inquiries_inquiry_number', 'service_inquiries', ['inquiry_number'], unique=True)

    op.create_table(
        'inquiry_messages',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('inquiry_id', sa.Integer, sa.ForeignKey('service_inquiries.id'), nullable=False),
        sa.Column('message', sa.Text, nullable=False),
        sa.Column('is_from_admin', sa.Boolean, nullable=False),
        sa.Column('sender_name', sa.String(200), nullable=True),
        sa.Column('sender_email', sa.String(255), nullable=True),
        sa.Column('is_quote', sa.Boolean, nullable=False),
        sa.Column('quote_amount', sa.Numeric(10, 2), nullable=True),
        sa.Column('quote_monthly', sa.Numeric(10, 2), nullable=True),
        sa.Column('quote_valid_days', sa.Integer, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_inquiry_messages_inquiry_id', 'inquiry_messages', ['inquiry_id'])

    op.create_table(
        'invoices',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('invoice_number', sa.String(50), nullable=False),
        sa.Column(
            'inquiry_id', sa.Integer,
            sa.ForeignKey('service_inquiries.id', ondelete='SET NULL'), nullable=True,
        ),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=True),
        sa.Column('customer_name', sa.String(200), nullable=False),
        sa.Column('customer_email', sa.String(255), nullable=False),
        sa.Column('customer_company', sa.String(200), nullable=True),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_rate', sa.Numeric(5, 2), nullable=True),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('due_date', sa.DateTime, nullable=True),
        sa.Column('sent_at', sa.DateTime, nullable=True),
        sa.Column('viewed_at', sa.DateTime, nullable=True),
        sa.Column('paid_at', sa.DateTime, nullable=True),
        sa.Column('stripe_payment_link', sa.String(500), nullable=True),
        sa.Column('notes', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime, nullable=False),
    )
    op.create_index('ix_invoices_invoice_number', 'invoices', ['invoice_number'], unique=True)

    op.create_table(
        'invoice_items',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('invoice_id', sa.Integer, sa.ForeignKey('invoices.id'), nullable=False),
        sa.Column('description', sa.String(500), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total', sa.Numeric(10, 2), nullable=False),
    )

    op.create_table(
        'idempotency_records',
        sa.Column('id', sa.Integer, primary_key=True),
        sa.Column('operation', sa.String(50), nullable=False),
        sa.Column('key', sa.String(255), nullable=False),
        sa.Column('order_id', sa.Integer, sa.ForeignKey('orders.id'), nullable=False),
        sa.Column('response', sa.JSON, nullable=False),
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.UniqueConstraint('operation', 'key', name='uq_idempotency_operation_key'),
    )


def downgrade() -> None:
    op.drop_table('idempotency_records')
    op.drop_table('invoice_items')
    op.drop_index('ix_invoices_invoice_number', table_name='invoices')
    op.drop_table('invoices')
    op.drop_index('ix_inquiry_messages_inquiry_id', table_name='inquiry_messages')
    op.drop_table('inquiry_messages')
    op.drop_index('ix_service_inquiries_inquiry_number', table_name='service_inquiries')
    op.drop_table('service_inquiries')
    op.drop_index('ix_shipping_labels_order_id', table_name='shipping_labels')
    op.drop_table('shipping_labels')
    op.drop_table('order_items')
    op.drop_index('ix_orders_stripe_payment_id', table_name='orders')
    op.drop_index('ix_orders_order_number', table_name='orders')
    op.drop_table('orders')
    op.drop_table('addresses')
    op.drop_index('ix_inventory_alerts_product_id', table_name='inventory_alerts')
    op.drop_table('inventory_alerts')
    op.drop_index('ix_stock_movements_product_id', table_name='stock_movements')
    op.drop_table('stock_movements')
    op.drop_table('product_links')
    op.drop_index('ix_product_variants_product_id', table_name='product_variants')
    op.drop_table('product_variants')
    op.drop_index('ix_products_sku', table_name='products')
    op.drop_table('products')
