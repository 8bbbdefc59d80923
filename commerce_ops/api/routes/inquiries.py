from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from commerce_ops.api.auth import require_admin
from commerce_ops.api.deps import get_mailer
from commerce_ops.application.inquiries import InquiryService, message_view
from commerce_ops.application.schemas.inquiries import (
    ContactInquiryCreate,
    InquiryList,
    InquiryRead,
    InquirySubmitted,
    InquiryUpdate,
    MessageRead,
    QuoteRequest,
    QuoteSuggestion,
    ReplyRequest,
    ServiceInquiryCreate,
    Thread,
)
from commerce_ops.infrastructure.db import get_db

public_router = APIRouter(prefix="/inquiries", tags=["inquiries"])
router = APIRouter(prefix="/inquiries", tags=["inquiries"], dependencies=[Depends(require_admin)])


@public_router.post("/", response_model=InquirySubmitted, status_code=201)
def submit_inquiry(payload: ServiceInquiryCreate, db: Session = Depends(get_db)):
    return InquiryService(db).submit_service(payload)


@public_router.post("/contact", response_model=InquirySubmitted, status_code=201)
def submit_contact(payload: ContactInquiryCreate, db: Session = Depends(get_db)):
    return InquiryService(db).submit_contact(payload)


@router.get("/", response_model=InquiryList)
def list_inquiries(
    status: Optional[str] = None,
    service_type: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    inquiries, total = InquiryService(db).list(status, service_type, search, page, limit)
    return {"inquiries": inquiries, "total": total, "page": page, "limit": limit}


@router.get("/{inquiry_id}", response_model=InquiryRead)
def get_inquiry(inquiry_id: int, db: Session = Depends(get_db)):
    return InquiryService(db).get(inquiry_id)


@router.put("/{inquiry_id}", response_model=InquiryRead)
def update_inquiry(inquiry_id: int, payload: InquiryUpdate, db: Session = Depends(get_db)):
    return InquiryService(db).update(inquiry_id, payload)


@router.delete("/{inquiry_id}", status_code=204)
def delete_inquiry(inquiry_id: int, db: Session = Depends(get_db)):
    InquiryService(db).delete(inquiry_id)
    return Response(status_code=204)


@router.post("/{inquiry_id}/decline", response_model=InquiryRead)
def decline_inquiry(inquiry_id: int, db: Session = Depends(get_db)):
    return InquiryService(db).decline(inquiry_id)


@router.get("/{inquiry_id}/suggested-quote", response_model=QuoteSuggestion)
def suggested_quote(inquiry_id: int, db: Session = Depends(get_db)):
    return InquiryService(db).suggested_quote(inquiry_id)


@router.post("/{inquiry_id}/quote", response_model=MessageRead, status_code=201)
def send_quote(inquiry_id: int, payload: QuoteRequest, db: Session = Depends(get_db), mailer=Depends(get_mailer)):
    return message_view(InquiryService(db, mailer=mailer).send_quote(inquiry_id, payload))


@router.get("/{inquiry_id}/messages", response_model=Thread)
def get_thread(inquiry_id: int, db: Session = Depends(get_db)):
    return InquiryService(db).thread(inquiry_id)


@router.post("/{inquiry_id}/messages", response_model=MessageRead, status_code=201)
def reply(inquiry_id: int, payload: ReplyRequest, db: Session = Depends(get_db), mailer=Depends(get_mailer)):
    return message_view(InquiryService(db, mailer=mailer).reply(inquiry_id, payload))
