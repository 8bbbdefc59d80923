from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, Any

from commerce_ops.domain.enums import InquiryStatus, ServiceType


class ProjectDetails(BaseModel):
    services: list[str] = []
    package: Optional[str] = None
    project_name: Optional[str] = Field(default=None, alias="projectName")
    pages: Optional[str] = None
    screens: Optional[str] = None
    features: list[str] = []
    has_design: Optional[str] = Field(default=None, alias="hasDesign")

    class Config:
        populate_by_name = True
        extra = "allow"


class ServiceInquiryCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    service_type: ServiceType = ServiceType.OTHER
    budget: Optional[str] = None
    timeline: Optional[str] = None
    description: str = Field(min_length=1)
    project_details: Optional[ProjectDetails] = None


class ContactInquiryCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    subject: str = Field(min_length=1)
    message: str = Field(min_length=1)


class InquiryUpdate(BaseModel):
    status: Optional[InquiryStatus] = None
    assigned_to: Optional[str] = None
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    proposal_url: Optional[str] = None
    admin_notes: Optional[str] = None
    version: Optional[int] = None


class InquiryRead(BaseModel):
    id: int
    inquiry_number: str
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    website: Optional[str] = None
    service_type: str
    budget: Optional[str] = None
    timeline: Optional[str] = None
    description: str
    attachments: Optional[dict[str, Any]] = None
    status: str
    assigned_to: Optional[str] = None
    estimated_cost: Optional[float] = None
    proposal_url: Optional[str] = None
    admin_notes: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InquiryList(BaseModel):
    inquiries: list[InquiryRead]
    total: int
    page: int
    limit: int


class InquirySubmitted(BaseModel):
    id: int
    inquiry_number: str

    class Config:
        from_attributes = True


class QuoteSuggestion(BaseModel):
    amount: float
    monthly: float
    breakdown: list[dict[str, Any]]


class QuoteRequest(BaseModel):
    amount: Optional[float] = Field(default=None, gt=0)
    monthly: Optional[float] = Field(default=None, gt=0)
    notes: Optional[str] = None
    valid_days: int = Field(default=14, gt=0, le=365)


class ReplyRequest(BaseModel):
    message: str = Field(min_length=1)
    from_admin: bool = True
    subject: Optional[str] = None
    sender_name: Optional[str] = None


class MessageRead(BaseModel):
    id: str
    message: str
    is_from_admin: bool
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    is_quote: bool = False
    quote_amount: Optional[float] = None
    quote_monthly: Optional[float] = None
    created_at: datetime


class Thread(BaseModel):
    inquiry_id: int
    inquiry_type: str
    messages: list[MessageRead]
