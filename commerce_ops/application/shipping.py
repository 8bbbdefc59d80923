"""Shipping rates, label purchase and label void for orders."""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.domain.enums import LabelStatus, OrderStatus
from commerce_ops.domain.models import Address, Order, ShippingLabel
from .errors import ConflictError, NotFound, PreconditionFailed, StaleShipmentError
from .idempotency import IdempotencyStore
from .money import money

logger = get_logger(__name__)

LABEL_OPERATION = "label_purchase"
DEFAULT_WEIGHT_LB = 0.5
DEFAULT_DIMENSIONS = (6.0, 4.0, 2.0)


def parse_dimensions(value: Optional[str]) -> tuple[float, float, float]:
    """Parse an "LxWxH" inch string; anything malformed falls back to 6x4x2."""
    if not value:
        return DEFAULT_DIMENSIONS
    try:
        dims = tuple(float(part.strip()) for part in value.lower().split("x"))
    except ValueError:
        return DEFAULT_DIMENSIONS
    if len(dims) != 3:
        return DEFAULT_DIMENSIONS
    return dims


def build_parcel(order: Order) -> dict:
    """Box the order's items: widest footprint, stacked heights, total weight in ounces."""
    length = width = height = weight_oz = 0.0
    for item in order.items:
        product = item.product
        weight_lb = float(product.weight) if product is not None and product.weight else DEFAULT_WEIGHT_LB
        l, w, h = parse_dimensions(product.dimensions if product is not None else None)
        length = max(length, l)
        width = max(width, w)
        height += h * item.quantity
        weight_oz += weight_lb * 16 * item.quantity
    if not order.items:
        length, width, height = DEFAULT_DIMENSIONS
        weight_oz = DEFAULT_WEIGHT_LB * 16
    return {
        "length": round(length, 2),
        "width": round(width, 2),
        "height": round(height, 2),
        "distance_unit": "in",
        "weight": round(weight_oz, 2),
        "mass_unit": "oz",
    }


def destination(address: Address) -> dict:
    return {
        "name": address.full_name,
        "company": address.company,
        "street1": address.address1,
        "street2": address.address2,
        "city": address.city,
        "state": address.state,
        "zip": address.zip_code,
        "country": address.country or "US",
        "phone": address.phone,
    }


class ShippingService:
    def __init__(self, db: Session, provider, quotes, ship_from: Optional[dict]):
        self.db = db
        self.provider = provider
        self.quotes = quotes
        self.ship_from = ship_from

    def _order(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFound("Order", order_id)
        return order

    def active_label(self, order_id: int) -> Optional[ShippingLabel]:
        self._order(order_id)
        return (
            self.db.query(ShippingLabel)
            .filter(ShippingLabel.order_id == order_id, ShippingLabel.status != LabelStatus.VOIDED.value)
            .order_by(ShippingLabel.created_at.desc(), ShippingLabel.id.desc())
            .first()
        )

    def request_rates(self, order_id: int, parcel: Optional[dict] = None) -> dict:
        order = self._order(order_id)
        if not order.shipping_address:
            raise PreconditionFailed("Order has no shipping address")
        if not self.ship_from:
            raise PreconditionFailed(
                "Business address not configured. Please set the SHIP_FROM_* ship-from address settings."
            )
        to_address = destination(order.shipping_address)
        parcel = parcel or build_parcel(order)

        shipment = self.provider.get_rates(self.ship_from, to_address, parcel)
        self.quotes.remember(shipment["shipment_id"], order.id)
        logger.info(
            f"Shipping rates requested for {order.order_number}",
            extra={"extra_fields": {"order_id": order.id, "shipment_id": shipment["shipment_id"],
                                    "rate_count": len(shipment["rates"])}},
        )
        return {
            "shipment_id": shipment["shipment_id"],
            "rates": shipment["rates"],
            "parcel": parcel,
            "from_address": self.ship_from,
            "to_address": to_address,
        }

    def purchase_label(
        self,
        order_id: int,
        shipment_id: str,
        rate_id: str,
        from_address: Optional[dict] = None,
        to_address: Optional[dict] = None,
        parcel: Optional[dict] = None,
        idempotency_key: Optional[str] = None,
    ) -> dict:
        order = self._order(order_id)
        store = IdempotencyStore(self.db)
        previous = store.lookup(LABEL_OPERATION, idempotency_key, order.id)
        if previous is not None:
            label = self.db.get(ShippingLabel, previous["label_id"])
            logger.info(
                "Label purchase replayed from idempotency key",
                extra={"extra_fields": {"order_id": order.id, "label_id": previous["label_id"]}},
            )
            return self._result(label)

        if not order.shipping_address and not to_address:
            raise PreconditionFailed("Order has no shipping address")
        if self.active_label(order_id):
            raise ConflictError("A shipping label already exists for this order. Void it first to create a new one.")
        if not self.quotes.is_current(shipment_id, order.id):
            raise StaleShipmentError(shipment_id)

        purchased = self.provider.purchase_label(shipment_id, rate_id, idempotency_key=idempotency_key)

        try:
            cost = money(purchased["rate"])
            label = ShippingLabel(
                order_id=order.id,
                carrier=purchased.get("carrier") or "",
                service=purchased.get("service"),
                tracking_number=purchased.get("tracking_number") or "",
                tracking_url=purchased.get("tracking_url"),
                label_cost=cost,
                insurance_cost=money(0),
                total_cost=cost,
                weight=money((parcel or {}).get("weight", 0)),
                label_url=purchased.get("label_url"),
                provider_label_id=purchased.get("id"),
                provider_shipment_id=purchased.get("shipment_id") or shipment_id,
                status=LabelStatus.PURCHASED.value,
                from_address=from_address or self.ship_from or {},
                to_address=to_address or destination(order.shipping_address),
            )
            self.db.add(label)
            order.tracking_number = label.tracking_number
            order.carrier = label.carrier
            if order.status in (OrderStatus.PROCESSING.value, OrderStatus.PAID.value):
                order.status = OrderStatus.SHIPPED.value
            self.db.flush()
            store.record(LABEL_OPERATION, idempotency_key, order.id, {"label_id": label.id})
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(
                "Label purchased at the provider but could not be recorded",
                extra={"extra_fields": {"order_id": order_id, "transaction_id": purchased.get("id")}},
                exc_info=True,
            )
            raise
        self.quotes.forget(shipment_id)

        logger.info(
            f"Shipping label purchased for {order.order_number}",
            extra={"extra_fields": {"order_id": order.id, "label_id": label.id,
                                    "tracking_number": label.tracking_number, "cost": str(cost)}},
        )
        return self._result(label)

    def void_label(self, order_id: int) -> ShippingLabel:
        order = self._order(order_id)
        label = self.active_label(order_id)
        if not label:
            raise NotFound("Active label", order_id)
        refund_status = None
        if label.provider_label_id:
            # Transport or HTTP failures propagate and leave the label untouched
            refund = self.provider.void_label(label.provider_label_id)
            refund_status = refund.get("status")

        label.status = LabelStatus.VOIDED.value
        label.provider_refund_status = refund_status
        label.voided_at = datetime.utcnow()
        order.tracking_number = None
        order.carrier = None
        self.db.commit()
        logger.info(
            f"Shipping label voided for {order.order_number}",
            extra={"extra_fields": {"order_id": order.id, "label_id": label.id, "refund_status": refund_status}},
        )
        return label

    @staticmethod
    def _result(label: ShippingLabel) -> dict:
        return {
            "label": label,
            "tracking_number": label.tracking_number,
            "tracking_url": label.tracking_url,
            "label_url": label.label_url,
        }
