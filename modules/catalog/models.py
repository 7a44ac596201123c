"""
Catalog Module - Models
========================
Product with stock and an opaque specifications map (JSON text column).
"""

import json

from sqlalchemy import Column, String, BigInteger, Integer, Float, Text, CheckConstraint

from config.database import Base
from common.helpers import new_id


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String, nullable=False, index=True)
    price = Column(BigInteger, nullable=False)                  # minor currency units
    category = Column(String, nullable=False, index=True)
    description = Column(Text, nullable=True, default="")
    image = Column(String, nullable=True, default="")
    rating = Column(Float, nullable=False, default=0)
    reviews = Column(Integer, nullable=False, default=0)        # review count
    stock = Column(Integer, nullable=False, default=0)

    _specifications = Column("specifications", Text, nullable=True)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_product_stock"),
        CheckConstraint("price >= 0", name="ck_product_price"),
    )

    @property
    def specifications(self) -> dict:
        if not self._specifications:
            return {}
        try:
            return json.loads(self._specifications)
        except (json.JSONDecodeError, TypeError):
            return {}

    @specifications.setter
    def specifications(self, value: dict):
        self._specifications = json.dumps(value, ensure_ascii=False) if value else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "description": self.description or "",
            "image": self.image or "",
            "rating": self.rating,
            "reviews": self.reviews,
            "stock": self.stock,
            "specifications": self.specifications,
        }

    def __repr__(self):
        return f"<Product {self.name} ({self.stock} in stock)>"
