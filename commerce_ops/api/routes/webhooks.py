from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.api.deps import get_payment_gateway
from commerce_ops.application.invoices import InvoiceService
from commerce_ops.application.orders import OrderService
from commerce_ops.infrastructure.db import get_db

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None, alias="Stripe-Signature"),
    db: Session = Depends(get_db),
    payments=Depends(get_payment_gateway),
):
    payload = await request.body()
    event = payments.construct_event(payload, stripe_signature)
    logger.info(
        f"Stripe webhook received: {event.get('type')}",
        extra={"extra_fields": {"event_id": event.get("id")}},
    )
    order = OrderService(db).apply_payment_event(event)
    invoice = InvoiceService(db).apply_payment_event(event)
    return {
        "received": True,
        "order_id": order.id if order else None,
        "invoice_id": invoice.id if invoice else None,
    }
