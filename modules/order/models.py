"""
Order Module - Models
======================
Order with a frozen copy of every line (name, price, image) at order time.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, BigInteger, Text,
    ForeignKey, DateTime, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import new_id


class OrderStatus(str, enum.Enum):
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @classmethod
    def values(cls) -> list:
        return [s.value for s in cls]


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    order_number = Column(String(40), unique=True, nullable=False)
    total = Column(BigInteger, nullable=False)
    status = Column(String(20), default=OrderStatus.PROCESSING.value, nullable=False, index=True)

    # Contact snapshot
    customer_name = Column(String, nullable=False)
    customer_phone = Column(String, nullable=False)
    customer_address = Column(Text, nullable=False)
    customer_comment = Column(Text, nullable=True, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan",
                         order_by="OrderItem.id")

    @property
    def items_summary(self) -> str:
        return ", ".join(f"{it.name} (x{it.quantity})" for it in self.items)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "order_number": self.order_number,
            "total": self.total,
            "status": self.status,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_address": self.customer_address,
            "customer_comment": self.customer_comment or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "items": [it.to_dict() for it in self.items],
            "items_summary": self.items_summary,
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)

    # Snapshot at time of purchase
    price = Column(BigInteger, nullable=False)
    name = Column(String, nullable=False)
    image = Column(String, nullable=True)

    order = relationship("Order", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_order_item_qty"),
    )

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "price": self.price,
            "name": self.name,
            "image": self.image or "",
        }
