from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional

from commerce_ops.domain.enums import InvoiceStatus


class InvoiceItemCreate(BaseModel):
    description: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)
    unit_price: float = Field(ge=0)


class InvoiceCreate(BaseModel):
    inquiry_id: Optional[int] = None
    order_id: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_company: Optional[str] = None
    items: list[InvoiceItemCreate] = Field(min_length=1)
    tax_rate: Optional[float] = Field(default=None, ge=0, le=100)
    tax_amount: Optional[float] = Field(default=None, ge=0)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _one_tax_input(self):
        if self.tax_rate is not None and self.tax_amount is not None:
            raise ValueError("Provide either tax_rate or tax_amount, not both")
        return self


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceItemRead(BaseModel):
    id: int
    description: str
    quantity: int
    unit_price: float
    total: float

    class Config:
        from_attributes = True


class InvoiceRead(BaseModel):
    id: int
    invoice_number: str
    inquiry_id: Optional[int] = None
    order_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_company: Optional[str] = None
    subtotal: float
    tax_rate: Optional[float] = None
    tax_amount: float
    total: float
    status: str
    due_date: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    viewed_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    stripe_payment_link: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    items: list[InvoiceItemRead]

    class Config:
        from_attributes = True


class PublicInvoiceItem(BaseModel):
    description: str
    quantity: int
    unit_price: float
    total: float

    class Config:
        from_attributes = True


class PublicInvoice(BaseModel):
    invoice_number: str
    customer_name: str
    customer_email: str
    customer_company: Optional[str] = None
    items: list[PublicInvoiceItem]
    subtotal: float
    tax_amount: float
    total: float
    status: str
    due_date: Optional[datetime] = None
    stripe_payment_link: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentLinkResult(BaseModel):
    payment_link: str
