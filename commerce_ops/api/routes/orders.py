from typing import Optional

from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.orm import Session

from commerce_ops.api.auth import require_admin
from commerce_ops.api.deps import get_payment_gateway, get_quote_cache, get_shipping_provider
from commerce_ops.application.orders import OrderService
from commerce_ops.application.schemas.orders import (
    LabelLookup,
    LabelPurchaseRequest,
    LabelPurchaseResult,
    OrderCreate,
    OrderList,
    OrderRead,
    OrderUpdate,
    RatesRequest,
    RatesResponse,
    RefundRequest,
    RefundResult,
    ShippingLabelRead,
)
from commerce_ops.application.shipping import ShippingService
from commerce_ops.core_settings import get_settings
from commerce_ops.infrastructure.db import get_db

router = APIRouter(prefix="/orders", tags=["orders"], dependencies=[Depends(require_admin)])


def shipping_service(
    db: Session = Depends(get_db),
    provider=Depends(get_shipping_provider),
    quotes=Depends(get_quote_cache),
) -> ShippingService:
    return ShippingService(db, provider, quotes, get_settings().ship_from_address)


@router.get("/", response_model=OrderList)
def list_orders(
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    orders, total = OrderService(db).list(status, payment_status, search, page, limit)
    return {"orders": orders, "total": total, "page": page, "limit": limit}


@router.post("/", response_model=OrderRead, status_code=201)
def create_order(payload: OrderCreate, db: Session = Depends(get_db)):
    return OrderService(db).create(payload)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return OrderService(db).get(order_id)


@router.put("/{order_id}", response_model=OrderRead)
def update_order(order_id: int, payload: OrderUpdate, db: Session = Depends(get_db)):
    return OrderService(db).update(order_id, payload)


@router.post("/{order_id}/refund", response_model=RefundResult)
def refund_order(
    order_id: int,
    payload: RefundRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    payments=Depends(get_payment_gateway),
):
    return OrderService(db, payments=payments).refund(order_id, payload, idempotency_key)


@router.post("/{order_id}/shipping/rates", response_model=RatesResponse)
def shipping_rates(
    order_id: int,
    payload: Optional[RatesRequest] = None,
    service: ShippingService = Depends(shipping_service),
):
    parcel = payload.parcel.model_dump() if payload and payload.parcel else None
    return service.request_rates(order_id, parcel)


@router.get("/{order_id}/shipping/label", response_model=LabelLookup)
def get_label(order_id: int, service: ShippingService = Depends(shipping_service)):
    return {"label": service.active_label(order_id)}


@router.post("/{order_id}/shipping/label", response_model=LabelPurchaseResult)
def purchase_label(
    order_id: int,
    payload: LabelPurchaseRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    service: ShippingService = Depends(shipping_service),
):
    return service.purchase_label(
        order_id,
        payload.shipment_id,
        payload.rate_id,
        from_address=payload.from_address,
        to_address=payload.to_address,
        parcel=payload.parcel.model_dump() if payload.parcel else None,
        idempotency_key=idempotency_key,
    )


@router.delete("/{order_id}/shipping/label", response_model=ShippingLabelRead)
def void_label(order_id: int, service: ShippingService = Depends(shipping_service)):
    return service.void_label(order_id)
