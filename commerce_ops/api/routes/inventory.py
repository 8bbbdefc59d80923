from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from commerce_ops.api.auth import require_admin
from commerce_ops.application.inventory import InventoryService
from commerce_ops.application.schemas.inventory import (
    AdjustmentResult,
    InventoryAlertRead,
    InventoryItem,
    StockAdjustment,
    StockMovementRead,
)
from commerce_ops.infrastructure.db import get_db

router = APIRouter(prefix="/inventory", tags=["inventory"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=list[InventoryItem])
def inventory_overview(db: Session = Depends(get_db)):
    return InventoryService(db).overview()


@router.get("/alerts", response_model=list[InventoryAlertRead])
def list_alerts(include_resolved: bool = True, db: Session = Depends(get_db)):
    return InventoryService(db).list_alerts(include_resolved)


@router.post("/alerts/{alert_id}/resolve", response_model=InventoryAlertRead)
def resolve_alert(alert_id: int, db: Session = Depends(get_db)):
    return InventoryService(db).resolve_alert(alert_id)


@router.get("/movements", response_model=list[StockMovementRead])
def list_movements(
    product_id: Optional[int] = None,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return InventoryService(db).list_movements(product_id, limit)


@router.post("/variants/{variant_id}/adjust", response_model=AdjustmentResult)
def adjust_variant_stock(variant_id: int, payload: StockAdjustment, db: Session = Depends(get_db)):
    return InventoryService(db).adjust_variant_stock(variant_id, payload.type, payload.quantity, payload.reason)


@router.post("/{product_id}/adjust", response_model=AdjustmentResult)
def adjust_stock(product_id: int, payload: StockAdjustment, db: Session = Depends(get_db)):
    return InventoryService(db).adjust_stock(product_id, payload.type, payload.quantity, payload.reason)
