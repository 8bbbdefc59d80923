from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from commerce_ops.domain.enums import OrderStatus, PaymentStatus, RefundReason


class AddressIn(BaseModel):
    full_name: str
    company: Optional[str] = None
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    zip_code: str
    country: str = "US"
    phone: Optional[str] = None


class AddressRead(AddressIn):
    id: int

    class Config:
        from_attributes = True


class OrderItemCreate(BaseModel):
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    name: Optional[str] = None
    sku: Optional[str] = None
    quantity: int = Field(gt=0)
    price: float = Field(ge=0)


class OrderCreate(BaseModel):
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    items: list[OrderItemCreate] = Field(min_length=1)
    tax: float = Field(default=0, ge=0)
    shipping: float = Field(default=0, ge=0)
    discount: float = Field(default=0, ge=0)
    shipping_address: Optional[AddressIn] = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    stripe_payment_id: Optional[str] = None


class OrderUpdate(BaseModel):
    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    admin_notes: Optional[str] = None
    # Optimistic concurrency: when given, must match the stored version
    version: Optional[int] = None


class OrderItemRead(BaseModel):
    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    name: str
    sku: Optional[str] = None
    quantity: int
    price: float
    total: float

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    id: int
    order_number: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    subtotal: float
    tax: float
    shipping: float
    discount: float
    total: float
    status: str
    payment_status: str
    stripe_payment_id: Optional[str] = None
    refund_id: Optional[str] = None
    refunded_amount: Optional[float] = None
    tracking_number: Optional[str] = None
    carrier: Optional[str] = None
    admin_notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    items: list[OrderItemRead]
    shipping_address: Optional[AddressRead] = None

    class Config:
        from_attributes = True


class OrderList(BaseModel):
    orders: list[OrderRead]
    total: int
    page: int
    limit: int


class RefundRequest(BaseModel):
    amount: Optional[float] = None
    reason: RefundReason = RefundReason.REQUESTED_BY_CUSTOMER


class RefundResult(BaseModel):
    refund_id: Optional[str] = None
    amount: float
    order: OrderRead


class Parcel(BaseModel):
    length: float = Field(gt=0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    distance_unit: str = "in"
    weight: float = Field(gt=0)
    mass_unit: str = "oz"


class RatesRequest(BaseModel):
    parcel: Optional[Parcel] = None


class RateQuote(BaseModel):
    rate_id: str
    carrier: Optional[str] = None
    service: Optional[str] = None
    price: float
    currency: str = "USD"
    estimated_days: Optional[int] = None
    duration_terms: Optional[str] = None


class RatesResponse(BaseModel):
    shipment_id: str
    rates: list[RateQuote]
    parcel: Parcel
    from_address: dict
    to_address: dict


class LabelPurchaseRequest(BaseModel):
    shipment_id: str = Field(min_length=1)
    rate_id: str = Field(min_length=1)
    from_address: Optional[dict] = None
    to_address: Optional[dict] = None
    parcel: Optional[Parcel] = None


class ShippingLabelRead(BaseModel):
    id: int
    order_id: int
    carrier: str
    service: Optional[str] = None
    tracking_number: str
    tracking_url: Optional[str] = None
    label_cost: float
    total_cost: float
    label_url: Optional[str] = None
    provider_refund_status: Optional[str] = None
    status: str
    created_at: datetime
    voided_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LabelPurchaseResult(BaseModel):
    label: ShippingLabelRead
    tracking_number: str
    tracking_url: Optional[str] = None
    label_url: Optional[str] = None


class LabelLookup(BaseModel):
    label: Optional[ShippingLabelRead] = None
