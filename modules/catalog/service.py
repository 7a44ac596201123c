"""
Catalog Module - Service Layer
================================
Product listing (filter / search / sort), product detail with similar
items, and admin product maintenance.
"""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, DuplicateError, ProductInUseError
from modules.catalog.models import Product
from modules.catalog.schemas import ProductCreate, ProductUpdate
from modules.cart.models import CartItem
from modules.order.models import OrderItem

logger = logging.getLogger("marketplace.catalog")

SORT_OPTIONS = {
    "price_asc": (Product.price.asc(),),
    "price_desc": (Product.price.desc(),),
    "rating": (Product.rating.desc(),),
}
DEFAULT_SORT = (Product.name.asc(),)

SIMILAR_LIMIT = 4


class ProductService:

    # ==========================================
    # Public queries
    # ==========================================

    def list_products(
        self,
        db: Session,
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> List[Product]:
        """
        category: exact match; None or "all" disables the filter.
        search: case-insensitive substring over name or description.
        sort: price_asc | price_desc | rating (desc); anything else sorts by name.
        """
        q = db.query(Product)

        if category and category != "all":
            q = q.filter(Product.category == category)

        search = (search or "").strip()
        if search:
            pattern = f"%{search}%"
            q = q.filter(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))

        order = SORT_OPTIONS.get(sort or "", DEFAULT_SORT)
        return q.order_by(*order, Product.id).all()

    def list_categories(self, db: Session) -> List[str]:
        rows = db.query(Product.category).distinct().order_by(Product.category).all()
        return [c for (c,) in rows]

    def get_product(self, db: Session, product_id: str) -> Optional[Product]:
        return db.query(Product).filter(Product.id == product_id).first()

    def get_similar(self, db: Session, product: Product, limit: int = SIMILAR_LIMIT) -> List[Product]:
        return (
            db.query(Product)
            .filter(Product.category == product.category, Product.id != product.id)
            .order_by(Product.rating.desc(), Product.name)
            .limit(limit)
            .all()
        )

    # ==========================================
    # Admin
    # ==========================================

    def list_all(self, db: Session) -> List[Product]:
        return db.query(Product).order_by(Product.name.asc()).all()

    def create_product(self, db: Session, data: ProductCreate) -> Product:
        name = data.name.strip()
        category = data.category.strip()
        if not name or not category:
            raise ValueError("Name, price and category are required")

        self._ensure_unique_name(db, name, category)

        product = Product(
            name=name,
            price=data.price,
            category=category,
            description=data.description,
            image=data.image,
            rating=data.rating,
            reviews=data.reviews,
            stock=data.stock,
        )
        product.specifications = data.specifications
        db.add(product)
        db.flush()
        logger.info(f"Product created: {product.name} ({product.id})")
        return product

    def update_product(self, db: Session, product_id: str, data: ProductUpdate) -> Product:
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            raise ValueError("No fields to update")

        product = self.get_product(db, product_id)
        if not product:
            raise NotFoundError("Product not found")

        for field, value in changes.items():
            if value is None and field != "specifications":
                raise ValueError(f"Field '{field}' cannot be null")

        new_name = changes.get("name", product.name).strip()
        new_category = changes.get("category", product.category).strip()
        if (new_name, new_category) != (product.name, product.category):
            self._ensure_unique_name(db, new_name, new_category, exclude_id=product.id)

        for field, value in changes.items():
            if field == "specifications":
                product.specifications = value or {}
            elif field in ("name", "category"):
                setattr(product, field, value.strip())
            else:
                setattr(product, field, value)

        db.flush()
        logger.info(f"Product updated: {product.id} fields={sorted(changes)}")
        return product

    def delete_product(self, db: Session, product_id: str):
        product = self.get_product(db, product_id)
        if not product:
            raise NotFoundError("Product not found")

        in_orders = db.query(OrderItem.id).filter(OrderItem.product_id == product_id).first()
        if in_orders:
            raise ProductInUseError("Product is referenced by existing orders and cannot be deleted")

        removed = db.query(CartItem).filter(CartItem.product_id == product_id).delete(
            synchronize_session=False
        )
        db.delete(product)
        db.flush()
        logger.info(f"Product deleted: {product_id} (removed from {removed} carts)")

    # ==========================================
    # Private helpers
    # ==========================================

    def _ensure_unique_name(self, db: Session, name: str, category: str, exclude_id: str = None):
        q = db.query(Product.id).filter(Product.name == name, Product.category == category)
        if exclude_id:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise DuplicateError(f"Product '{name}' already exists in '{category}'")


# Singleton
product_service = ProductService()
