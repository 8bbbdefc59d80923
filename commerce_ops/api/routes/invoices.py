from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commerce_ops.api.auth import require_admin
from commerce_ops.api.deps import get_mailer, get_payment_gateway
from commerce_ops.application.invoices import InvoiceService
from commerce_ops.application.schemas.invoices import (
    InvoiceCreate,
    InvoiceRead,
    InvoiceStatusUpdate,
    PaymentLinkResult,
    PublicInvoice,
)
from commerce_ops.infrastructure.db import get_db

router = APIRouter(prefix="/invoices", tags=["invoices"], dependencies=[Depends(require_admin)])
public_router = APIRouter(prefix="/public/invoices", tags=["invoices"])


@router.get("/", response_model=list[InvoiceRead])
def list_invoices(status: Optional[str] = None, inquiry_id: Optional[int] = None, db: Session = Depends(get_db)):
    return InvoiceService(db).list(status, inquiry_id)


@router.post("/", response_model=InvoiceRead, status_code=201)
def create_invoice(payload: InvoiceCreate, db: Session = Depends(get_db)):
    return InvoiceService(db).create(payload)


@router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    return InvoiceService(db).get(invoice_id)


@router.post("/{invoice_id}/send", response_model=InvoiceRead)
def send_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    payments=Depends(get_payment_gateway),
    mailer=Depends(get_mailer),
):
    return InvoiceService(db, payments=payments, mailer=mailer).send(invoice_id)


@router.post("/{invoice_id}/payment-link", response_model=PaymentLinkResult)
def create_payment_link(invoice_id: int, db: Session = Depends(get_db), payments=Depends(get_payment_gateway)):
    return {"payment_link": InvoiceService(db, payments=payments).create_payment_link(invoice_id)}


@router.put("/{invoice_id}/status", response_model=InvoiceRead)
def update_invoice_status(invoice_id: int, payload: InvoiceStatusUpdate, db: Session = Depends(get_db)):
    return InvoiceService(db).update_status(invoice_id, payload.status)


@public_router.get("/{invoice_number}", response_model=PublicInvoice)
def view_invoice(invoice_number: str, db: Session = Depends(get_db)):
    return InvoiceService(db).public_view(invoice_number)
