"""Invoices for inquiries and orders.

An invoice is created in DRAFT and only ever moves forward through
``INVOICE_TRANSITIONS``; resending refreshes ``sent_at`` without moving it back.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.domain.enums import InvoiceStatus, INVOICE_TRANSITIONS
from commerce_ops.domain.models import Invoice, InvoiceItem, Order, ServiceInquiry
from .errors import NotFound, PreconditionFailed, ValidationFailed
from .money import money
from .numbering import create_numbered
from .schemas.invoices import InvoiceCreate

logger = get_logger(__name__)

CLOSED = {InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value}


def invoice_email(invoice: Invoice, payment_link: Optional[str]) -> str:
    lines = [f"Hello {invoice.customer_name},", "", f"Invoice {invoice.invoice_number}", ""]
    for item in invoice.items:
        lines.append(f"  {item.description} x{item.quantity}: ${money(item.total):,.2f}")
    lines += [
        "",
        f"Subtotal: ${money(invoice.subtotal):,.2f}",
        f"Tax: ${money(invoice.tax_amount):,.2f}",
        f"Total: ${money(invoice.total):,.2f}",
    ]
    if invoice.due_date:
        lines.append(f"Due: {invoice.due_date.strftime('%B %d, %Y')}")
    if payment_link:
        lines += ["", f"Pay online: {payment_link}"]
    if invoice.notes:
        lines += ["", invoice.notes]
    return "\n".join(lines)


class InvoiceService:
    def __init__(self, db: Session, payments=None, mailer=None):
        self.db = db
        self.payments = payments
        self.mailer = mailer

    def get(self, invoice_id: int) -> Invoice:
        invoice = self.db.query(Invoice).filter(Invoice.id == invoice_id).first()
        if not invoice:
            raise NotFound("Invoice", invoice_id)
        return invoice

    def list(self, status: Optional[str] = None, inquiry_id: Optional[int] = None):
        query = self.db.query(Invoice)
        if status:
            query = query.filter(Invoice.status == status)
        if inquiry_id is not None:
            query = query.filter(Invoice.inquiry_id == inquiry_id)
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()

    def create(self, data: InvoiceCreate) -> Invoice:
        name, email, company = data.customer_name, data.customer_email, data.customer_company
        if data.inquiry_id is not None:
            inquiry = self.db.query(ServiceInquiry).filter(ServiceInquiry.id == data.inquiry_id).first()
            if not inquiry:
                raise NotFound("Inquiry", data.inquiry_id)
            name = name or inquiry.name
            email = email or inquiry.email
            company = company or inquiry.company
        if data.order_id is not None:
            order = self.db.query(Order).filter(Order.id == data.order_id).first()
            if not order:
                raise NotFound("Order", data.order_id)
            name = name or order.customer_name
            email = email or order.customer_email
        if not name:
            raise ValidationFailed("Customer name is required", field="customer_name")
        if not email:
            raise ValidationFailed("Customer email is required", field="customer_email")

        items = [
            InvoiceItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=money(item.unit_price),
                total=money(money(item.unit_price) * item.quantity),
            )
            for item in data.items
        ]
        subtotal = money(sum((item.total for item in items), money(0)))
        if data.tax_rate is not None:
            tax_amount = money(subtotal * money(data.tax_rate) / 100)
        else:
            tax_amount = money(data.tax_amount)

        invoice = Invoice(
            inquiry_id=data.inquiry_id,
            order_id=data.order_id,
            customer_name=name,
            customer_email=email,
            customer_company=company,
            subtotal=subtotal,
            tax_rate=money(data.tax_rate) if data.tax_rate is not None else None,
            tax_amount=tax_amount,
            total=money(subtotal + tax_amount),
            status=InvoiceStatus.DRAFT.value,
            due_date=data.due_date,
            notes=data.notes,
            items=items,
        )

        def insert(number: str) -> Invoice:
            invoice.invoice_number = number
            self.db.add(invoice)
            self.db.commit()
            return invoice

        create_numbered(self.db, Invoice.invoice_number, "INV", insert)
        self.db.refresh(invoice)
        logger.info(
            f"Invoice created: {invoice.invoice_number}",
            extra={"extra_fields": {"invoice_id": invoice.id, "total": str(invoice.total)}},
        )
        return invoice

    def _ensure_payment_link(self, invoice: Invoice) -> str:
        if invoice.stripe_payment_link:
            return invoice.stripe_payment_link
        if self.payments is None:
            raise PreconditionFailed("Stripe is not configured. Please add STRIPE_SECRET_KEY to your environment.")
        invoice.stripe_payment_link = self.payments.create_payment_link(
            invoice.id,
            invoice.invoice_number,
            [
                {"description": item.description, "quantity": item.quantity, "unit_price": item.unit_price}
                for item in invoice.items
            ],
        )
        return invoice.stripe_payment_link

    def create_payment_link(self, invoice_id: int) -> str:
        invoice = self.get(invoice_id)
        if invoice.status in CLOSED:
            raise PreconditionFailed(f"Invoice is {invoice.status.lower()}; no payment link can be created")
        try:
            link = self._ensure_payment_link(invoice)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return link

    def send(self, invoice_id: int) -> Invoice:
        invoice = self.get(invoice_id)
        if invoice.status == InvoiceStatus.PAID.value:
            raise PreconditionFailed("Invoice has already been paid")
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise PreconditionFailed("Invoice has been cancelled")
        if self.mailer is None:
            raise PreconditionFailed("Email provider not configured. Please add RESEND_API_KEY to your environment.")

        # Committed before mailing; a failed send keeps the link
        link = self.create_payment_link(invoice.id)
        try:
            self.mailer.send(
                to=invoice.customer_email,
                subject=f"Invoice {invoice.invoice_number}",
                text=invoice_email(invoice, link),
            )
            first_send = invoice.status == InvoiceStatus.DRAFT.value
            if first_send:
                invoice.status = InvoiceStatus.SENT.value
            invoice.sent_at = datetime.utcnow()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(invoice)
        logger.info(
            f"Invoice {'sent' if first_send else 'resent'}: {invoice.invoice_number}",
            extra={"extra_fields": {"invoice_id": invoice.id, "status": invoice.status}},
        )
        return invoice

    def update_status(self, invoice_id: int, status: InvoiceStatus) -> Invoice:
        invoice = self.get(invoice_id)
        new = InvoiceStatus(status)
        if invoice.status == new.value:
            return invoice
        if new not in INVOICE_TRANSITIONS[InvoiceStatus(invoice.status)]:
            raise ValidationFailed(f"Cannot change invoice status from {invoice.status} to {new.value}", field="status")
        old_status = invoice.status
        self._move(invoice, new)
        self.db.commit()
        self.db.refresh(invoice)
        logger.info(
            f"Invoice status changed: {invoice.invoice_number}",
            extra={"extra_fields": {"invoice_id": invoice.id, "old_status": old_status, "new_status": new.value}},
        )
        return invoice

    @staticmethod
    def _move(invoice: Invoice, new: InvoiceStatus):
        now = datetime.utcnow()
        invoice.status = new.value
        if new == InvoiceStatus.PAID:
            invoice.paid_at = now
        elif new == InvoiceStatus.SENT and not invoice.sent_at:
            invoice.sent_at = now
        elif new == InvoiceStatus.VIEWED and not invoice.viewed_at:
            invoice.viewed_at = now

    def public_view(self, invoice_number: str) -> Invoice:
        """Customer-facing lookup; the first view stamps viewed_at and moves SENT to VIEWED."""
        invoice = self.db.query(Invoice).filter(Invoice.invoice_number == invoice_number).first()
        if not invoice:
            raise NotFound("Invoice", invoice_number)
        if not invoice.viewed_at:
            invoice.viewed_at = datetime.utcnow()
            if invoice.status == InvoiceStatus.SENT.value:
                invoice.status = InvoiceStatus.VIEWED.value
            self.db.commit()
            self.db.refresh(invoice)
        return invoice

    def apply_payment_event(self, event: dict) -> Optional[Invoice]:
        """Mark an invoice PAID when a checkout for its payment link completes."""
        if event.get("type") != "checkout.session.completed":
            return None
        metadata = ((event.get("data") or {}).get("object") or {}).get("metadata") or {}
        number = metadata.get("invoiceNumber")
        if not number:
            return None
        invoice = self.db.query(Invoice).filter(Invoice.invoice_number == number).first()
        if not invoice or InvoiceStatus.PAID not in INVOICE_TRANSITIONS[InvoiceStatus(invoice.status)]:
            return None
        self._move(invoice, InvoiceStatus.PAID)
        self.db.commit()
        logger.info(f"Invoice paid: {invoice.invoice_number}", extra={"extra_fields": {"invoice_id": invoice.id}})
        return invoice
