from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, ForeignKey, Numeric, DateTime, Integer, Boolean, Text, JSON, UniqueConstraint, func
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .enums import (
    OrderStatus,
    PaymentStatus,
    InquiryStatus,
    InvoiceStatus,
    LabelStatus,
    ProductType,
)


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(primary_key=True)
    sku: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    product_type: Mapped[str] = mapped_column(String(20), default=ProductType.PHYSICAL.value)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    stock: Mapped[int] = mapped_column(Integer, default=0)
    # Shipping attributes: weight in pounds, dimensions as "LxWxH" inches
    weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(8, 2), nullable=True)
    dimensions: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
    variants: Mapped[list["ProductVariant"]] = relationship(
        "ProductVariant", back_populates="product", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}


class ProductVariant(Base):
    __tablename__ = "product_variants"
    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    sku: Mapped[str] = mapped_column(String(50), unique=True)
    name: Mapped[str] = mapped_column(String(200))
    # Option combination, e.g. {"color": "Black", "size": "L"}
    options: Mapped[dict] = mapped_column(JSON, default=dict)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    stock: Mapped[int] = mapped_column(Integer, default=0)
    product: Mapped[Product] = relationship("Product", back_populates="variants")


class ProductLink(Base):
    """One row per physical/digital twin pair; each product appears at most once."""

    __tablename__ = "product_links"
    id: Mapped[int] = mapped_column(primary_key=True)
    physical_product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), unique=True)
    digital_product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), unique=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class StockMovement(Base):
    __tablename__ = "stock_movements"
    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    variant_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_variants.id"), nullable=True)
    type: Mapped[str] = mapped_column(String(20))
    # Signed: positive for stock in, negative for stock out
    quantity: Mapped[int] = mapped_column(Integer)
    reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)


class InventoryAlert(Base):
    __tablename__ = "inventory_alerts"
    id: Mapped[int] = mapped_column(primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    type: Mapped[str] = mapped_column(String(20))
    threshold: Mapped[int] = mapped_column(Integer)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class Address(Base):
    __tablename__ = "addresses"
    id: Mapped[int] = mapped_column(primary_key=True)
    full_name: Mapped[str] = mapped_column(String(200))
    company: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    address1: Mapped[str] = mapped_column(String(500))
    address2: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    city: Mapped[str] = mapped_column(String(100))
    state: Mapped[str] = mapped_column(String(100))
    zip_code: Mapped[str] = mapped_column(String(20))
    country: Mapped[str] = mapped_column(String(100), default="US")
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    # Customer snapshot data (captured at order creation time)
    customer_name: Mapped[str] = mapped_column(String(200))
    customer_email: Mapped[str] = mapped_column(String(255))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    shipping: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    discount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(String(30), default=OrderStatus.PENDING.value)
    payment_status: Mapped[str] = mapped_column(String(30), default=PaymentStatus.PENDING.value)
    stripe_payment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    refund_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    refunded_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    tracking_number: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    carrier: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    shipping_address_id: Mapped[Optional[int]] = mapped_column(ForeignKey("addresses.id"), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    items: Mapped[list["OrderItem"]] = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")
    shipping_address: Mapped[Optional[Address]] = relationship("Address")
    labels: Mapped[list["ShippingLabel"]] = relationship(
        "ShippingLabel", back_populates="order", order_by="ShippingLabel.id"
    )

    __mapper_args__ = {"version_id_col": version}


class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"))
    product_id: Mapped[Optional[int]] = mapped_column(ForeignKey("products.id"), nullable=True)
    variant_id: Mapped[Optional[int]] = mapped_column(ForeignKey("product_variants.id"), nullable=True)
    # Product snapshot data (captured at order creation time)
    name: Mapped[str] = mapped_column(String(200))
    sku: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    quantity: Mapped[int]
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    order: Mapped[Order] = relationship("Order", back_populates="items")
    product: Mapped[Optional[Product]] = relationship("Product")


class ShippingLabel(Base):
    __tablename__ = "shipping_labels"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    carrier: Mapped[str] = mapped_column(String(100))
    service: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    tracking_number: Mapped[str] = mapped_column(String(100))
    tracking_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    label_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    insurance_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    weight: Mapped[Optional[Decimal]] = mapped_column(Numeric(8, 2), nullable=True)
    label_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    provider_label_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    provider_shipment_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    provider_refund_status: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=LabelStatus.PURCHASED.value)
    from_address: Mapped[dict] = mapped_column(JSON, default=dict)
    to_address: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    voided_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    order: Mapped[Order] = relationship("Order", back_populates="labels")


class ServiceInquiry(Base):
    __tablename__ = "service_inquiries"
    id: Mapped[int] = mapped_column(primary_key=True)
    inquiry_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255))
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    company: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    service_type: Mapped[str] = mapped_column(String(30))
    budget: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    timeline: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[str] = mapped_column(Text)
    # Structured project requirements, {"projectDetails": {...}}
    attachments: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    status: Mapped[str] = mapped_column(String(30), default=InquiryStatus.NEW.value)
    assigned_to: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    proposal_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    admin_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    messages: Mapped[list["InquiryMessage"]] = relationship(
        "InquiryMessage",
        back_populates="inquiry",
        cascade="all, delete-orphan",
        order_by="InquiryMessage.created_at",
    )
    invoices: Mapped[list["Invoice"]] = relationship("Invoice", back_populates="inquiry")

    __mapper_args__ = {"version_id_col": version}


class InquiryMessage(Base):
    __tablename__ = "inquiry_messages"
    id: Mapped[int] = mapped_column(primary_key=True)
    inquiry_id: Mapped[int] = mapped_column(ForeignKey("service_inquiries.id"), index=True)
    message: Mapped[str] = mapped_column(Text)
    is_from_admin: Mapped[bool] = mapped_column(Boolean, default=False)
    sender_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    sender_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_quote: Mapped[bool] = mapped_column(Boolean, default=False)
    quote_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    quote_monthly: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    quote_valid_days: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    inquiry: Mapped[ServiceInquiry] = relationship("ServiceInquiry", back_populates="messages")


class Invoice(Base):
    __tablename__ = "invoices"
    id: Mapped[int] = mapped_column(primary_key=True)
    invoice_number: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    inquiry_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("service_inquiries.id", ondelete="SET NULL"), nullable=True
    )
    order_id: Mapped[Optional[int]] = mapped_column(ForeignKey("orders.id"), nullable=True)
    customer_name: Mapped[str] = mapped_column(String(200))
    customer_email: Mapped[str] = mapped_column(String(255))
    customer_company: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    tax_rate: Mapped[Optional[Decimal]] = mapped_column(Numeric(5, 2), nullable=True)
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0)
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    status: Mapped[str] = mapped_column(String(20), default=InvoiceStatus.DRAFT.value)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    sent_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    viewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    stripe_payment_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    items: Mapped[list["InvoiceItem"]] = relationship(
        "InvoiceItem", back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.id"
    )
    inquiry: Mapped[Optional[ServiceInquiry]] = relationship("ServiceInquiry", back_populates="invoices")


class InvoiceItem(Base):
    __tablename__ = "invoice_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    invoice_id: Mapped[int] = mapped_column(ForeignKey("invoices.id"))
    description: Mapped[str] = mapped_column(String(500))
    quantity: Mapped[int]
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    invoice: Mapped[Invoice] = relationship("Invoice", back_populates="items")


class IdempotencyRecord(Base):
    """Stored outcome of a non-idempotent provider call, keyed by the caller's key."""

    __tablename__ = "idempotency_records"
    __table_args__ = (UniqueConstraint("operation", "key", name="uq_idempotency_operation_key"),)
    id: Mapped[int] = mapped_column(primary_key=True)
    operation: Mapped[str] = mapped_column(String(50))
    key: Mapped[str] = mapped_column(String(255))
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"))
    response: Mapped[dict] = mapped_column(JSON)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
