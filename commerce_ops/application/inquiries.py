"""Service-inquiry lifecycle: intake, triage, quotes and the reply thread."""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.core_settings import Settings, get_settings
from commerce_ops.domain.enums import InquiryStatus, ServiceType, INQUIRY_TRANSITIONS
from commerce_ops.domain.models import InquiryMessage, ServiceInquiry
from .errors import NotFound, PreconditionFailed, ValidationFailed, check_version
from .money import money
from .numbering import inquiry_number, is_contact_inquiry
from .quotes import suggest_quote
from .schemas.inquiries import (
    ContactInquiryCreate,
    InquiryUpdate,
    QuoteRequest,
    ReplyRequest,
    ServiceInquiryCreate,
)

logger = get_logger(__name__)

# Statuses that a sent quote moves forward to PROPOSAL_SENT
QUOTE_ADVANCES_FROM = {InquiryStatus.NEW.value, InquiryStatus.CONTACTED.value}


def message_view(m: InquiryMessage) -> dict:
    return {
        "id": str(m.id),
        "message": m.message,
        "is_from_admin": m.is_from_admin,
        "sender_name": m.sender_name,
        "sender_email": m.sender_email,
        "is_quote": m.is_quote,
        "quote_amount": float(m.quote_amount) if m.quote_amount is not None else None,
        "quote_monthly": float(m.quote_monthly) if m.quote_monthly is not None else None,
        "created_at": m.created_at,
    }


def quote_email(inquiry: ServiceInquiry, request: QuoteRequest) -> str:
    expires = (datetime.utcnow() + timedelta(days=request.valid_days)).strftime("%B %d, %Y")
    lines = [
        f"Hello {inquiry.name}!",
        "",
        "Thank you for your interest in working with us. Based on your project requirements, "
        "we've prepared the following quote for you:",
        "",
        f"Reference: {inquiry.inquiry_number}",
    ]
    if request.amount:
        lines.append(f"Project Total: ${money(request.amount):,.2f}")
    if request.monthly:
        lines.append(f"Monthly Fee: ${money(request.monthly):,.2f}/month")
    if request.notes:
        lines += ["", "Additional Details:", request.notes]
    lines += ["", f"Quote Valid Until: {expires}", "", "Ready to move forward? Simply reply to this email."]
    return "\n".join(lines)


class InquiryService:
    def __init__(self, db: Session, mailer=None, settings: Optional[Settings] = None):
        self.db = db
        self.mailer = mailer
        self.settings = settings or get_settings()

    def _unique_number(self, **kwargs) -> str:
        while True:
            number = inquiry_number(**kwargs)
            if not self.db.query(ServiceInquiry).filter(ServiceInquiry.inquiry_number == number).first():
                return number

    def submit_service(self, data: ServiceInquiryCreate) -> ServiceInquiry:
        attachments = None
        if data.project_details is not None:
            attachments = {"projectDetails": data.project_details.model_dump(by_alias=True, exclude_none=True)}
        inquiry = ServiceInquiry(
            inquiry_number=self._unique_number(service_type=data.service_type),
            name=data.name,
            email=data.email,
            phone=data.phone,
            company=data.company,
            website=data.website,
            service_type=data.service_type.value,
            budget=data.budget,
            timeline=data.timeline,
            description=data.description,
            attachments=attachments,
            status=InquiryStatus.NEW.value,
        )
        return self._save_new(inquiry)

    def submit_contact(self, data: ContactInquiryCreate) -> ServiceInquiry:
        inquiry = ServiceInquiry(
            inquiry_number=self._unique_number(contact=True),
            name=data.name,
            email=data.email,
            phone=data.phone,
            service_type=ServiceType.OTHER.value,
            description=data.message,
            attachments={"subject": data.subject},
            status=InquiryStatus.NEW.value,
        )
        return self._save_new(inquiry)

    def _save_new(self, inquiry: ServiceInquiry) -> ServiceInquiry:
        self.db.add(inquiry)
        self.db.commit()
        self.db.refresh(inquiry)
        logger.info(
            f"Inquiry received: {inquiry.inquiry_number}",
            extra={"extra_fields": {"inquiry_id": inquiry.id, "service_type": inquiry.service_type}},
        )
        return inquiry

    def get(self, inquiry_id: int) -> ServiceInquiry:
        inquiry = self.db.query(ServiceInquiry).filter(ServiceInquiry.id == inquiry_id).first()
        if not inquiry:
            raise NotFound("Inquiry", inquiry_id)
        return inquiry

    def list(
        self,
        status: Optional[str] = None,
        service_type: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ):
        query = self.db.query(ServiceInquiry)
        if status:
            query = query.filter(ServiceInquiry.status == status)
        if service_type:
            query = query.filter(ServiceInquiry.service_type == service_type)
        if search:
            like = f"%{search}%"
            query = query.filter(
                or_(
                    ServiceInquiry.inquiry_number.ilike(like),
                    ServiceInquiry.name.ilike(like),
                    ServiceInquiry.email.ilike(like),
                    ServiceInquiry.company.ilike(like),
                )
            )
        total = query.count()
        inquiries = (
            query.order_by(ServiceInquiry.created_at.desc(), ServiceInquiry.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return inquiries, total

    def _set_status(self, inquiry: ServiceInquiry, new: InquiryStatus):
        new = InquiryStatus(new)
        if (
            self.settings.ENFORCE_STATUS_TRANSITIONS
            and inquiry.status != new.value
            and new not in INQUIRY_TRANSITIONS.get(InquiryStatus(inquiry.status), set())
        ):
            raise ValidationFailed(f"Cannot change status from {inquiry.status} to {new.value}", field="status")
        inquiry.status = new.value

    def update(self, inquiry_id: int, patch: InquiryUpdate) -> ServiceInquiry:
        inquiry = self.get(inquiry_id)
        check_version("Inquiry", inquiry.version, patch.version)
        changes = patch.model_dump(exclude_unset=True, exclude={"version"})
        old_status = inquiry.status
        if changes.get("status") is not None:
            self._set_status(inquiry, changes.pop("status"))
        changes.pop("status", None)
        for field, value in changes.items():
            setattr(inquiry, field, value)
        self.db.commit()
        self.db.refresh(inquiry)
        logger.info(
            f"Inquiry updated: {inquiry.inquiry_number}",
            extra={"extra_fields": {"inquiry_id": inquiry.id, "old_status": old_status, "new_status": inquiry.status}},
        )
        return inquiry

    def decline(self, inquiry_id: int) -> ServiceInquiry:
        inquiry = self.get(inquiry_id)
        if inquiry.status != InquiryStatus.DECLINED.value:
            inquiry.status = InquiryStatus.DECLINED.value
            self.db.commit()
            self.db.refresh(inquiry)
            logger.info(f"Inquiry declined: {inquiry.inquiry_number}", extra={"extra_fields": {"inquiry_id": inquiry.id}})
        return inquiry

    def delete(self, inquiry_id: int) -> None:
        inquiry = self.get(inquiry_id)
        number = inquiry.inquiry_number
        self.db.delete(inquiry)
        self.db.commit()
        logger.info(f"Inquiry deleted: {number}", extra={"extra_fields": {"inquiry_id": inquiry_id}})

    def suggested_quote(self, inquiry_id: int) -> dict:
        inquiry = self.get(inquiry_id)
        details = (inquiry.attachments or {}).get("projectDetails")
        return suggest_quote(details)

    def _mail(self, to: str, subject: str, text: str):
        if self.mailer is None:
            raise PreconditionFailed("Email provider not configured. Please add RESEND_API_KEY to your environment.")
        return self.mailer.send(to=to, subject=subject, text=text)

    def send_quote(self, inquiry_id: int, request: QuoteRequest) -> InquiryMessage:
        inquiry = self.get(inquiry_id)
        if not request.amount and not request.monthly:
            raise ValidationFailed("At least one quote amount is required", field="amount")

        # The email goes out first; nothing is stored if it fails
        self._mail(inquiry.email, f"Your Project Quote - {inquiry.inquiry_number}", quote_email(inquiry, request))

        parts = []
        if request.amount:
            parts.append(f"${money(request.amount):,.2f} one-time")
        if request.monthly:
            parts.append(f"${money(request.monthly):,.2f}/month")
        body = f"Quote sent: {' + '.join(parts)} (valid {request.valid_days} days)"
        if request.notes:
            body += f"\n\n{request.notes}"
        message = InquiryMessage(
            inquiry_id=inquiry.id,
            message=body,
            is_from_admin=True,
            sender_name=self.settings.MAIL_SENDER_NAME,
            sender_email=self.settings.MAIL_FROM,
            is_quote=True,
            quote_amount=money(request.amount) if request.amount else None,
            quote_monthly=money(request.monthly) if request.monthly else None,
            quote_valid_days=request.valid_days,
        )
        self.db.add(message)
        inquiry.estimated_cost = money(request.amount or request.monthly)
        if inquiry.status in QUOTE_ADVANCES_FROM:
            inquiry.status = InquiryStatus.PROPOSAL_SENT.value
        self.db.commit()
        self.db.refresh(message)
        logger.info(
            f"Quote sent for {inquiry.inquiry_number}",
            extra={"extra_fields": {"inquiry_id": inquiry.id, "amount": request.amount, "monthly": request.monthly}},
        )
        return message

    def reply(self, inquiry_id: int, request: ReplyRequest) -> InquiryMessage:
        inquiry = self.get(inquiry_id)
        if request.from_admin:
            subject = request.subject or f"Re: {inquiry.inquiry_number}"
            self._mail(inquiry.email, subject, f"{request.message}\n\nReference: {inquiry.inquiry_number}")
            sender_name = request.sender_name or self.settings.MAIL_SENDER_NAME
            sender_email = self.settings.MAIL_FROM
        else:
            sender_name = request.sender_name or inquiry.name
            sender_email = inquiry.email
        message = InquiryMessage(
            inquiry_id=inquiry.id,
            message=request.message,
            is_from_admin=request.from_admin,
            sender_name=sender_name,
            sender_email=sender_email,
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def thread(self, inquiry_id: int) -> dict:
        """The conversation, led by the inquiry's own description as a synthetic first message."""
        inquiry = self.get(inquiry_id)
        initial = {
            "id": "initial",
            "message": inquiry.description,
            "is_from_admin": False,
            "sender_name": inquiry.name,
            "sender_email": inquiry.email,
            "is_quote": False,
            "created_at": inquiry.created_at,
        }
        stored = (
            self.db.query(InquiryMessage)
            .filter(InquiryMessage.inquiry_id == inquiry.id)
            .order_by(InquiryMessage.created_at, InquiryMessage.id)
            .all()
        )
        messages = [initial] + [message_view(m) for m in stored]
        return {
            "inquiry_id": inquiry.id,
            "inquiry_type": "contact" if is_contact_inquiry(inquiry.inquiry_number) else "service",
            "messages": messages,
        }
