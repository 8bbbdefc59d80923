"""Inventory adjustment engine.

Stock changes run as a locked read-modify-write inside the caller's
transaction, append an immutable ``StockMovement`` and raise threshold
alerts. Alerts are only ever resolved by an explicit admin action.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.core_settings import get_settings
from commerce_ops.domain.enums import AdjustmentMode, InventoryAlertType, StockMovementType
from commerce_ops.domain.models import InventoryAlert, Product, ProductVariant, StockMovement
from .errors import NotFound, ValidationFailed

logger = get_logger(__name__)


def compute_adjustment(current: int, mode: AdjustmentMode, quantity: int) -> tuple[int, StockMovementType, int]:
    """Return ``(new_stock, movement_type, signed_movement_quantity)``."""
    if quantity < 0:
        raise ValidationFailed("Quantity must be zero or greater", field="quantity")
    mode = AdjustmentMode(mode)
    if mode == AdjustmentMode.SET:
        return quantity, StockMovementType.ADJUSTMENT, quantity - current
    if mode == AdjustmentMode.ADD:
        return current + quantity, StockMovementType.IN, quantity
    # Subtract never drives stock below zero
    return max(0, current - quantity), StockMovementType.OUT, -min(quantity, current)


def crossed_thresholds(previous: int, new: int, threshold: int) -> list[InventoryAlertType]:
    """Alert types raised by moving stock from ``previous`` to ``new``."""
    if new == 0:
        return [InventoryAlertType.OUT_OF_STOCK] if previous != 0 else []
    was_low = 0 < previous <= threshold
    if new <= threshold and not was_low:
        return [InventoryAlertType.LOW_STOCK]
    return []


class InventoryService:
    def __init__(self, db: Session, threshold: Optional[int] = None):
        self.db = db
        self.threshold = threshold if threshold is not None else get_settings().LOW_STOCK_THRESHOLD

    def _lock_product(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).with_for_update().first()
        if not product:
            raise NotFound("Product", product_id)
        return product

    def _lock_variant(self, variant_id: int) -> ProductVariant:
        variant = self.db.query(ProductVariant).filter(ProductVariant.id == variant_id).with_for_update().first()
        if not variant:
            raise NotFound("Variant", variant_id)
        return variant

    def _raise_alerts(self, product_id: int, previous: int, new: int) -> list[InventoryAlert]:
        raised = []
        for alert_type in crossed_thresholds(previous, new, self.threshold):
            open_alert = (
                self.db.query(InventoryAlert)
                .filter(
                    InventoryAlert.product_id == product_id,
                    InventoryAlert.type == alert_type.value,
                    InventoryAlert.is_resolved.is_(False),
                )
                .first()
            )
            if open_alert:
                continue
            alert = InventoryAlert(
                product_id=product_id,
                type=alert_type.value,
                threshold=0 if alert_type == InventoryAlertType.OUT_OF_STOCK else self.threshold,
                is_resolved=False,
            )
            self.db.add(alert)
            raised.append(alert)
            logger.info(
                f"Inventory alert raised: {alert_type.value}",
                extra={"extra_fields": {"product_id": product_id, "stock": new}},
            )
        return raised

    def apply(
        self,
        product_id: int,
        mode: AdjustmentMode,
        quantity: int,
        reason: Optional[str] = None,
        variant_id: Optional[int] = None,
    ) -> dict:
        """Mutate stock without committing, so callers can fold it into a larger transaction."""
        if variant_id is not None:
            target = self._lock_variant(variant_id)
            product_id = target.product_id
        else:
            target = self._lock_product(product_id)

        previous = target.stock
        new_stock, movement_type, delta = compute_adjustment(previous, mode, quantity)
        target.stock = new_stock

        movement = StockMovement(
            product_id=product_id,
            variant_id=variant_id,
            type=movement_type.value,
            quantity=delta,
            reason=reason or None,
        )
        self.db.add(movement)
        # Variant stock is tracked independently; alerts follow the product level only
        alerts = [] if variant_id is not None else self._raise_alerts(product_id, previous, new_stock)
        self.db.flush()

        logger.info(
            "Stock adjusted",
            extra={
                "extra_fields": {
                    "product_id": product_id,
                    "variant_id": variant_id,
                    "mode": AdjustmentMode(mode).value,
                    "previous_stock": previous,
                    "new_stock": new_stock,
                }
            },
        )
        return {
            "product_id": product_id,
            "variant_id": variant_id,
            "previous_stock": previous,
            "new_stock": new_stock,
            "movement": movement,
            "alerts_raised": alerts,
        }

    def adjust_stock(self, product_id: int, mode: AdjustmentMode, quantity: int, reason: Optional[str] = None) -> dict:
        try:
            result = self.apply(product_id, mode, quantity, reason)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result

    def adjust_variant_stock(
        self, variant_id: int, mode: AdjustmentMode, quantity: int, reason: Optional[str] = None
    ) -> dict:
        try:
            result = self.apply(None, mode, quantity, reason, variant_id=variant_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return result

    def list_alerts(self, include_resolved: bool = True):
        query = self.db.query(InventoryAlert)
        if not include_resolved:
            query = query.filter(InventoryAlert.is_resolved.is_(False))
        # Unresolved first, newest first
        return query.order_by(
            InventoryAlert.is_resolved.asc(), InventoryAlert.created_at.desc(), InventoryAlert.id.desc()
        ).all()

    def resolve_alert(self, alert_id: int) -> InventoryAlert:
        alert = self.db.query(InventoryAlert).filter(InventoryAlert.id == alert_id).first()
        if not alert:
            raise NotFound("Alert", alert_id)
        if not alert.is_resolved:
            alert.is_resolved = True
            alert.resolved_at = datetime.utcnow()
            self.db.commit()
            logger.info("Inventory alert resolved", extra={"extra_fields": {"alert_id": alert_id}})
        return alert

    def list_movements(self, product_id: Optional[int] = None, limit: int = 50):
        query = self.db.query(StockMovement)
        if product_id is not None:
            query = query.filter(StockMovement.product_id == product_id)
        return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit).all()

    def overview(self) -> list[dict]:
        products = self.db.query(Product).order_by(Product.name).all()
        open_counts = {}
        for alert in self.db.query(InventoryAlert).filter(InventoryAlert.is_resolved.is_(False)).all():
            open_counts[alert.product_id] = open_counts.get(alert.product_id, 0) + 1
        return [
            {
                "product_id": p.id,
                "sku": p.sku,
                "name": p.name,
                "stock": p.stock,
                "low_stock": 0 < p.stock <= self.threshold,
                "out_of_stock": p.stock == 0,
                "open_alerts": open_counts.get(p.id, 0),
            }
            for p in products
        ]
