from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from shared.core import get_logger
from commerce_ops.domain.enums import ProductType
from commerce_ops.domain.models import Product, ProductLink, ProductVariant
from .errors import ConflictError, NotFound, ValidationFailed, check_version
from .schemas.inventory import ProductCreate, ProductRead, ProductUpdate, VariantCreate

logger = get_logger(__name__)


class ProductService:
    def __init__(self, db: Session):
        self.db = db

    def _generate_sku(self) -> str:
        """Next sequential SKU in format SKU####."""
        latest = self.db.query(Product).filter(Product.sku.like("SKU%")).order_by(Product.sku.desc()).first()
        next_num = 1
        if latest and latest.sku:
            try:
                next_num = int(latest.sku.replace("SKU", "")) + 1
            except ValueError:
                next_num = self.db.query(Product).count() + 1
        return f"SKU{next_num:04d}"

    def _link_for(self, product_id: int) -> Optional[ProductLink]:
        return (
            self.db.query(ProductLink)
            .filter(or_(ProductLink.physical_product_id == product_id, ProductLink.digital_product_id == product_id))
            .first()
        )

    def linked_product_id(self, product_id: int) -> Optional[int]:
        link = self._link_for(product_id)
        if not link:
            return None
        return link.digital_product_id if link.physical_product_id == product_id else link.physical_product_id

    def snapshot(self, product: Product) -> ProductRead:
        read = ProductRead.model_validate(product)
        return read.model_copy(update={"linked_product_id": self.linked_product_id(product.id)})

    def get(self, product_id: int) -> Product:
        product = self.db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFound("Product", product_id)
        return product

    def list(self, product_type: Optional[str] = None, active: Optional[bool] = None):
        query = self.db.query(Product)
        if product_type:
            query = query.filter(Product.product_type == product_type)
        if active is not None:
            query = query.filter(Product.active.is_(active))
        return query.order_by(Product.id).all()

    def create(self, data: ProductCreate) -> Product:
        values = data.model_dump()
        if not values.get("sku"):
            values["sku"] = self._generate_sku()
        elif self.db.query(Product).filter(Product.sku == values["sku"]).first():
            raise ConflictError(f"SKU {values['sku']} is already in use")
        values["product_type"] = ProductType(values["product_type"]).value
        product = Product(**values)
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        logger.info("Product created", extra={"extra_fields": {"product_id": product.id, "sku": product.sku}})
        return product

    def update(self, product_id: int, data: ProductUpdate) -> Product:
        product = self.get(product_id)
        check_version("Product", product.version, data.version)
        # Stock is only changed through the inventory engine
        for field, value in data.model_dump(exclude_unset=True, exclude={"version"}).items():
            setattr(product, field, value)
        self.db.commit()
        self.db.refresh(product)
        return product

    def list_variants(self, product_id: int):
        self.get(product_id)
        return (
            self.db.query(ProductVariant)
            .filter(ProductVariant.product_id == product_id)
            .order_by(ProductVariant.id)
            .all()
        )

    def add_variant(self, product_id: int, data: VariantCreate) -> ProductVariant:
        product = self.get(product_id)
        sku = data.sku or f"{product.sku}-{len(product.variants) + 1}"
        if self.db.query(ProductVariant).filter(ProductVariant.sku == sku).first():
            raise ConflictError(f"SKU {sku} is already in use")
        variant = ProductVariant(
            sku=sku,
            name=data.name,
            options=dict(data.options),
            price=data.price,
            stock=data.stock,
        )
        product.variants.append(variant)
        self.db.commit()
        self.db.refresh(variant)
        return variant

    def link(self, product_id: int, other_id: int) -> Product:
        """Pair a PHYSICAL product with its DIGITAL twin."""
        if product_id == other_id:
            raise ValidationFailed("A product cannot be linked to itself", field="linked_product_id")
        product = self.get(product_id)
        other = self.get(other_id)
        if product.product_type == other.product_type:
            raise ValidationFailed(
                "Linked products must be one PHYSICAL and one DIGITAL product", field="linked_product_id"
            )
        for p in (product, other):
            if self._link_for(p.id):
                raise ConflictError(f"Product {p.id} is already linked. Unlink it first.")

        physical, digital = (product, other) if product.product_type == ProductType.PHYSICAL.value else (other, product)
        self.db.add(ProductLink(physical_product_id=physical.id, digital_product_id=digital.id))
        self.db.commit()
        logger.info(
            "Products linked",
            extra={"extra_fields": {"physical_product_id": physical.id, "digital_product_id": digital.id}},
        )
        return product

    def unlink(self, product_id: int) -> Product:
        product = self.get(product_id)
        link = self._link_for(product_id)
        if not link:
            raise NotFound("Product link", product_id)
        self.db.delete(link)
        self.db.commit()
        logger.info("Products unlinked", extra={"extra_fields": {"product_id": product_id}})
        return product
