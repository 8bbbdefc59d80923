from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from commerce_ops.domain.enums import AdjustmentMode, ProductType


class ProductCreate(BaseModel):
    sku: Optional[str] = None
    name: str = Field(min_length=1)
    product_type: ProductType = ProductType.PHYSICAL
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[str] = None
    active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    dimensions: Optional[str] = None
    active: Optional[bool] = None
    version: Optional[int] = None


class VariantCreate(BaseModel):
    sku: Optional[str] = None
    name: str = Field(min_length=1)
    options: dict[str, str] = {}
    price: float = Field(ge=0)
    stock: int = Field(default=0, ge=0)


class VariantRead(BaseModel):
    id: int
    product_id: int
    sku: str
    name: str
    options: dict
    price: float
    stock: int

    class Config:
        from_attributes = True


class ProductRead(BaseModel):
    id: int
    sku: str
    name: str
    product_type: str
    price: float
    stock: int
    weight: Optional[float] = None
    dimensions: Optional[str] = None
    active: bool
    version: int
    linked_product_id: Optional[int] = None
    variants: list[VariantRead] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LinkRequest(BaseModel):
    linked_product_id: int


class StockAdjustment(BaseModel):
    type: AdjustmentMode
    quantity: int = Field(ge=0)
    reason: Optional[str] = None


class StockMovementRead(BaseModel):
    id: int
    product_id: int
    variant_id: Optional[int] = None
    type: str
    quantity: int
    reason: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class InventoryAlertRead(BaseModel):
    id: int
    product_id: int
    type: str
    threshold: int
    is_resolved: bool
    created_at: datetime
    resolved_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AdjustmentResult(BaseModel):
    product_id: int
    variant_id: Optional[int] = None
    previous_stock: int
    new_stock: int
    movement: StockMovementRead
    alerts_raised: list[InventoryAlertRead]


class InventoryItem(BaseModel):
    product_id: int
    sku: str
    name: str
    stock: int
    low_stock: bool
    out_of_stock: bool
    open_alerts: int
