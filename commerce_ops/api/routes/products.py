from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from commerce_ops.api.auth import require_admin
from commerce_ops.application.products import ProductService
from commerce_ops.application.schemas.inventory import (
    LinkRequest,
    ProductCreate,
    ProductRead,
    ProductUpdate,
    VariantCreate,
    VariantRead,
)
from commerce_ops.infrastructure.db import get_db

router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(require_admin)])


@router.get("/", response_model=list[ProductRead])
def list_products(product_type: Optional[str] = None, active: Optional[bool] = None, db: Session = Depends(get_db)):
    service = ProductService(db)
    return [service.snapshot(p) for p in service.list(product_type, active)]


@router.post("/", response_model=ProductRead, status_code=201)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    service = ProductService(db)
    return service.snapshot(service.create(payload))


@router.get("/{product_id}", response_model=ProductRead)
def get_product(product_id: int, db: Session = Depends(get_db)):
    service = ProductService(db)
    return service.snapshot(service.get(product_id))


@router.put("/{product_id}", response_model=ProductRead)
def update_product(product_id: int, payload: ProductUpdate, db: Session = Depends(get_db)):
    service = ProductService(db)
    return service.snapshot(service.update(product_id, payload))


@router.get("/{product_id}/variants", response_model=list[VariantRead])
def list_variants(product_id: int, db: Session = Depends(get_db)):
    return ProductService(db).list_variants(product_id)


@router.post("/{product_id}/variants", response_model=VariantRead, status_code=201)
def create_variant(product_id: int, payload: VariantCreate, db: Session = Depends(get_db)):
    return ProductService(db).add_variant(product_id, payload)


@router.post("/{product_id}/link", response_model=ProductRead)
def link_product(product_id: int, payload: LinkRequest, db: Session = Depends(get_db)):
    service = ProductService(db)
    return service.snapshot(service.link(product_id, payload.linked_product_id))


@router.delete("/{product_id}/link", response_model=ProductRead)
def unlink_product(product_id: int, db: Session = Depends(get_db)):
    service = ProductService(db)
    return service.snapshot(service.unlink(product_id))
