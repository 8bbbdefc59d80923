"""Order lifecycle controller: creation, status edits, refunds and payment webhooks.

Status writes are permissive by default so admins can correct anything by
hand; ``ENFORCE_STATUS_TRANSITIONS`` switches on the allowed-transitions
tables in ``commerce_ops.domain.enums``. Every external call happens before
the single commit, so a provider failure leaves the order untouched.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.core_settings import Settings, get_settings
from commerce_ops.domain.enums import (
    AdjustmentMode,
    OrderStatus,
    PaymentStatus,
    ProductType,
    ORDER_TRANSITIONS,
    PAYMENT_TRANSITIONS,
)
from commerce_ops.domain.models import Address, Order, OrderItem, Product, ProductVariant
from .errors import NotFound, PreconditionFailed, ValidationFailed, check_version
from .idempotency import IdempotencyStore
from .inventory import InventoryService
from .money import money
from .numbering import create_numbered
from .schemas.orders import OrderCreate, OrderUpdate, RefundRequest

logger = get_logger(__name__)

REFUND_OPERATION = "refund"

# A completed checkout settles any attempt still open, including one whose earlier intent failed
PAYABLE_STATUSES = (PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value, PaymentStatus.FAILED.value)


def order_total(subtotal, discount, shipping, tax):
    return money(money(subtotal) - money(discount) + money(shipping) + money(tax))


def append_note(existing: Optional[str], note: str) -> str:
    stamped = f"[{datetime.utcnow().isoformat(timespec='milliseconds')}Z] {note}"
    return f"{existing}\n\n{stamped}" if existing else stamped


class OrderService:
    def __init__(self, db: Session, payments=None, settings: Optional[Settings] = None):
        self.db = db
        self.payments = payments
        self.settings = settings or get_settings()

    def get(self, order_id: int) -> Order:
        order = self.db.query(Order).filter(Order.id == order_id).first()
        if not order:
            raise NotFound("Order", order_id)
        return order

    def list(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ):
        query = self.db.query(Order)
        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        if search:
            like = f"%{search}%"
            query = query.filter(
                or_(
                    Order.order_number.ilike(like),
                    Order.customer_name.ilike(like),
                    Order.customer_email.ilike(like),
                )
            )
        total = query.count()
        orders = (
            query.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * limit).limit(limit).all()
        )
        return orders, total

    def create(self, data: OrderCreate) -> Order:
        """Create an order numbered ORD-YYYY-NNNNN and take its physical items out of stock."""
        return create_numbered(self.db, Order.order_number, "ORD", lambda number: self._insert(data, number))

    def _insert(self, data: OrderCreate, order_number: str) -> Order:
        inventory = InventoryService(self.db, threshold=self.settings.LOW_STOCK_THRESHOLD)
        try:
            lines = []
            for item in data.items:
                product = None
                variant = None
                if item.variant_id is not None:
                    variant = self.db.query(ProductVariant).filter(ProductVariant.id == item.variant_id).first()
                    if not variant:
                        raise NotFound("Variant", item.variant_id)
                    product = variant.product
                elif item.product_id is not None:
                    product = self.db.query(Product).filter(Product.id == item.product_id).first()
                    if not product:
                        raise NotFound("Product", item.product_id)
                name = item.name or (variant.name if variant else None) or (product.name if product else None)
                if not name:
                    raise ValidationFailed("Each item needs a product reference or a name", field="items")
                price = money(item.price)
                lines.append(
                    OrderItem(
                        product_id=product.id if product else None,
                        variant_id=variant.id if variant else None,
                        name=name,
                        sku=item.sku or (variant.sku if variant else None) or (product.sku if product else None),
                        quantity=item.quantity,
                        price=price,
                        total=money(price * item.quantity),
                    )
                )

            subtotal = money(sum((line.total for line in lines), money(0)))
            order = Order(
                order_number=order_number,
                # Customer snapshot, copied as-is at purchase time
                customer_name=data.customer_name,
                customer_email=data.customer_email,
                customer_phone=data.customer_phone,
                subtotal=subtotal,
                tax=money(data.tax),
                shipping=money(data.shipping),
                discount=money(data.discount),
                total=order_total(subtotal, data.discount, data.shipping, data.tax),
                status=data.status.value,
                payment_status=data.payment_status.value,
                stripe_payment_id=data.stripe_payment_id,
                items=lines,
            )
            if data.shipping_address:
                order.shipping_address = Address(**data.shipping_address.model_dump())
            self.db.add(order)
            self.db.flush()

            for line in lines:
                if line.product_id is None:
                    continue
                product = self.db.get(Product, line.product_id)
                if product.product_type != ProductType.PHYSICAL.value:
                    continue
                inventory.apply(
                    line.product_id,
                    AdjustmentMode.SUBTRACT,
                    line.quantity,
                    reason=f"Order {order_number}",
                    variant_id=line.variant_id,
                )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(order)
        logger.info(
            f"Order created: {order.order_number}",
            extra={"extra_fields": {"order_id": order.id, "total": str(order.total)}},
        )
        return order

    def _check_transition(self, table: dict, enum_cls, current: str, new: str, field: str):
        if not self.settings.ENFORCE_STATUS_TRANSITIONS or current == new:
            return
        if enum_cls(new) not in table.get(enum_cls(current), set()):
            raise ValidationFailed(f"Cannot change {field} from {current} to {new}", field=field)

    def update(self, order_id: int, patch: OrderUpdate) -> Order:
        order = self.get(order_id)
        check_version("Order", order.version, patch.version)
        changes = patch.model_dump(exclude_unset=True, exclude={"version"})

        if "payment_status" in changes and changes["payment_status"] is not None:
            new_payment = PaymentStatus(changes["payment_status"])
            if new_payment == PaymentStatus.REFUNDED and order.payment_status != PaymentStatus.REFUNDED.value:
                raise ValidationFailed("Use the refund operation to mark a payment as refunded", field="payment_status")
            self._check_transition(
                PAYMENT_TRANSITIONS, PaymentStatus, order.payment_status, new_payment.value, "payment_status"
            )
            changes["payment_status"] = new_payment.value
        if "status" in changes and changes["status"] is not None:
            new_status = OrderStatus(changes["status"])
            self._check_transition(ORDER_TRANSITIONS, OrderStatus, order.status, new_status.value, "status")
            changes["status"] = new_status.value

        old_status = order.status
        for field, value in changes.items():
            if field in ("status", "payment_status") and value is None:
                continue
            setattr(order, field, value)
        self.db.commit()
        self.db.refresh(order)

        logger.info(
            f"Order updated: {order.order_number}",
            extra={
                "extra_fields": {
                    "order_id": order.id,
                    "old_status": old_status,
                    "new_status": order.status,
                    "fields": sorted(changes),
                }
            },
        )
        return order

    def refund(self, order_id: int, request: RefundRequest, idempotency_key: Optional[str] = None) -> dict:
        order = self.get(order_id)
        store = IdempotencyStore(self.db)
        previous = store.lookup(REFUND_OPERATION, idempotency_key, order.id)
        if previous is not None:
            logger.info(
                "Refund replayed from idempotency key",
                extra={"extra_fields": {"order_id": order.id, "refund_id": previous.get("refund_id")}},
            )
            return {"refund_id": previous.get("refund_id"), "amount": previous["amount"], "order": order}

        if not order.stripe_payment_id:
            raise PreconditionFailed("No payment ID found for this order")
        if order.payment_status == PaymentStatus.REFUNDED.value:
            raise PreconditionFailed("Order has already been refunded")
        if order.payment_status != PaymentStatus.SUCCEEDED.value:
            raise PreconditionFailed("Can only refund orders with successful payments")

        total = money(order.total)
        amount = total if request.amount is None else money(request.amount)
        if amount <= 0:
            raise ValidationFailed("Refund amount must be greater than 0", field="amount")
        if amount > total:
            raise ValidationFailed("Refund amount cannot exceed order total", field="amount")
        if self.payments is None:
            raise PreconditionFailed("Stripe is not configured. Please add STRIPE_SECRET_KEY to your environment.")

        refund = self.payments.refund(
            order.stripe_payment_id, amount, request.reason.value, idempotency_key=idempotency_key
        )

        try:
            order.payment_status = PaymentStatus.REFUNDED.value
            if amount >= total:
                order.status = OrderStatus.REFUNDED.value
            order.refund_id = refund.get("id")
            order.refunded_amount = amount
            order.admin_notes = append_note(
                order.admin_notes, f"Refund processed: ${amount:.2f} ({request.reason.value})"
            )
            store.record(
                REFUND_OPERATION, idempotency_key, order.id, {"refund_id": order.refund_id, "amount": float(amount)}
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(
                "Refund succeeded at the gateway but could not be recorded",
                extra={"extra_fields": {"order_id": order_id, "refund_id": refund.get("id")}},
                exc_info=True,
            )
            raise
        self.db.refresh(order)

        logger.info(
            f"Refund processed for {order.order_number}",
            extra={"extra_fields": {"order_id": order.id, "amount": str(amount), "refund_id": order.refund_id}},
        )
        return {"refund_id": order.refund_id, "amount": float(amount), "order": order}

    def apply_payment_event(self, event: dict) -> Optional[Order]:
        """Apply a Stripe webhook event to the order it concerns. Unknown events are ignored."""
        event_type = event.get("type")
        obj = (event.get("data") or {}).get("object") or {}

        if event_type == "checkout.session.completed":
            metadata = obj.get("metadata") or {}
            order = self._find_by_reference(metadata.get("orderId"), metadata.get("orderNumber"))
            if not order:
                return None
            if order.payment_status in PAYABLE_STATUSES:
                order.payment_status = PaymentStatus.SUCCEEDED.value
                if order.status == OrderStatus.PENDING.value:
                    order.status = OrderStatus.PAID.value
                if obj.get("payment_intent"):
                    order.stripe_payment_id = obj["payment_intent"]
        elif event_type in ("payment_intent.succeeded", "payment_intent.payment_failed"):
            intent_id = obj.get("id")
            order = self.db.query(Order).filter(Order.stripe_payment_id == intent_id).first() if intent_id else None
            if not order:
                return None
            if event_type == "payment_intent.succeeded":
                if order.payment_status in (PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value):
                    order.payment_status = PaymentStatus.SUCCEEDED.value
                    if order.status == OrderStatus.PENDING.value:
                        order.status = OrderStatus.PAID.value
            elif order.payment_status in (PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value):
                order.payment_status = PaymentStatus.FAILED.value
        else:
            logger.debug(f"Ignoring webhook event {event_type}")
            return None

        self.db.commit()
        logger.info(
            f"Payment event applied: {event_type}",
            extra={
                "extra_fields": {
                    "order_id": order.id,
                    "status": order.status,
                    "payment_status": order.payment_status,
                }
            },
        )
        return order

    def _find_by_reference(self, order_id, order_number) -> Optional[Order]:
        if order_id is not None and str(order_id).isdigit():
            order = self.db.query(Order).filter(Order.id == int(order_id)).first()
            if order:
                return order
        if order_number:
            return self.db.query(Order).filter(Order.order_number == order_number).first()
        return None
