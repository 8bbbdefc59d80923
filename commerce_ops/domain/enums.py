"""Closed value sets used across orders, inquiries, invoices and inventory.

Statuses are stored as plain strings in the database (``String(30)``), so
every enum here subclasses ``str`` and compares equal to its stored value.
"""

from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class InquiryStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    PROPOSAL_SENT = "PROPOSAL_SENT"
    NEGOTIATING = "NEGOTIATING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"
    COMPLETED = "COMPLETED"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    VIEWED = "VIEWED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    OVERDUE = "OVERDUE"


class InventoryAlertType(str, Enum):
    LOW_STOCK = "LOW_STOCK"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    OVERSTOCK = "OVERSTOCK"


class StockMovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUSTMENT = "ADJUSTMENT"


class AdjustmentMode(str, Enum):
    SET = "set"
    ADD = "add"
    SUBTRACT = "subtract"


class RefundReason(str, Enum):
    REQUESTED_BY_CUSTOMER = "requested_by_customer"
    DUPLICATE = "duplicate"
    FRAUDULENT = "fraudulent"


class LabelStatus(str, Enum):
    PURCHASED = "PURCHASED"
    VOIDED = "VOIDED"


class ProductType(str, Enum):
    PHYSICAL = "PHYSICAL"
    DIGITAL = "DIGITAL"


class ServiceType(str, Enum):
    WEB_DEVELOPMENT = "WEB_DEVELOPMENT"
    APP_DEVELOPMENT = "APP_DEVELOPMENT"
    AI_SOLUTIONS = "AI_SOLUTIONS"
    CONSULTATION = "CONSULTATION"
    OTHER = "OTHER"


# Allowed transitions, consulted only when ENFORCE_STATUS_TRANSITIONS is on.
# CANCELLED and REFUNDED are reachable from every non-terminal order status.
_ORDER_ESCAPES = {OrderStatus.CANCELLED, OrderStatus.REFUNDED}

ORDER_TRANSITIONS: dict[OrderStatus, set[OrderStatus]] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.PAID} | _ORDER_ESCAPES,
    OrderStatus.PROCESSING: {OrderStatus.PAID, OrderStatus.SHIPPED} | _ORDER_ESCAPES,
    OrderStatus.PAID: {OrderStatus.SHIPPED} | _ORDER_ESCAPES,
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED} | _ORDER_ESCAPES,
    OrderStatus.DELIVERED: set(_ORDER_ESCAPES),
    OrderStatus.CANCELLED: set(),
    OrderStatus.REFUNDED: set(),
}

PAYMENT_TRANSITIONS: dict[PaymentStatus, set[PaymentStatus]] = {
    PaymentStatus.PENDING: {PaymentStatus.PROCESSING, PaymentStatus.SUCCEEDED, PaymentStatus.FAILED},
    PaymentStatus.PROCESSING: {PaymentStatus.SUCCEEDED, PaymentStatus.FAILED},
    PaymentStatus.SUCCEEDED: {PaymentStatus.REFUNDED},
    PaymentStatus.FAILED: set(),
    PaymentStatus.REFUNDED: set(),
}

INQUIRY_TRANSITIONS: dict[InquiryStatus, set[InquiryStatus]] = {
    InquiryStatus.NEW: {InquiryStatus.CONTACTED, InquiryStatus.PROPOSAL_SENT, InquiryStatus.DECLINED},
    InquiryStatus.CONTACTED: {InquiryStatus.PROPOSAL_SENT, InquiryStatus.DECLINED},
    InquiryStatus.PROPOSAL_SENT: {InquiryStatus.NEGOTIATING, InquiryStatus.ACCEPTED, InquiryStatus.DECLINED},
    InquiryStatus.NEGOTIATING: {InquiryStatus.PROPOSAL_SENT, InquiryStatus.ACCEPTED, InquiryStatus.DECLINED},
    InquiryStatus.ACCEPTED: {InquiryStatus.COMPLETED, InquiryStatus.DECLINED},
    InquiryStatus.COMPLETED: {InquiryStatus.DECLINED},
    InquiryStatus.DECLINED: set(),
}

# Invoices only ever move forward; this table is always enforced.
INVOICE_TRANSITIONS: dict[InvoiceStatus, set[InvoiceStatus]] = {
    InvoiceStatus.DRAFT: {InvoiceStatus.SENT, InvoiceStatus.CANCELLED},
    InvoiceStatus.SENT: {InvoiceStatus.VIEWED, InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED},
    InvoiceStatus.VIEWED: {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED},
    InvoiceStatus.OVERDUE: {InvoiceStatus.PAID, InvoiceStatus.CANCELLED},
    InvoiceStatus.PAID: set(),
    InvoiceStatus.CANCELLED: set(),
}
