"""
Order Module - Service Layer
===============================
Checkout and order commit, order history and admin status changes.

create_order is the only place that writes orders. It owns its transaction:
the order row, the frozen line items, the conditional stock decrements and
the cart clear are committed together or not at all.
"""

import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from common.exceptions import (
    NotFoundError, InsufficientStockError,
    EmptyCartError, TransactionFailedError,
)
from common.helpers import new_id, generate_order_number
from modules.cart.models import CartItem
from modules.cart.service import cart_service, CartIdentity
from modules.catalog.models import Product
from modules.order.models import Order, OrderItem, OrderStatus
from modules.user.models import User
from modules.user.schemas import UserProfileUpdate
from modules.user.service import user_service

logger = logging.getLogger("marketplace.order")

PROFILE_FIELDS = ("name", "phone", "address")


class OrderService:

    # ==========================================
    # Checkout
    # ==========================================

    def checkout(self, db: Session, user: User, fields: dict) -> Order:
        """
        Turn the user's cart into an order.

        fields keys (all optional): name, phone, address, comment.
        Missing contact fields fall back to the user's profile; contact
        fields that differ from the profile are stored back on the user.
        Raises EmptyCartError before anything is written.
        """
        cart = cart_service.get_cart(db, CartIdentity(user_id=user.id))
        if not cart["items"]:
            raise EmptyCartError()

        fields = {k: (v or "").strip() for k, v in fields.items() if v is not None}
        customer = {
            "name": fields.get("name") or user.name or "",
            "phone": fields.get("phone") or user.phone or "",
            "address": fields.get("address") or user.address or "",
            "comment": fields.get("comment", ""),
        }
        profile = {f: getattr(user, f) or "" for f in PROFILE_FIELDS}

        order = self.create_order(db, user.id, cart["items"], cart["total"], customer)

        changed = {
            f: fields[f] for f in PROFILE_FIELDS
            if fields.get(f) and fields[f] != profile[f]
        }
        if changed:
            user_service.update_profile(db, user, UserProfileUpdate(**changed))
            logger.info(f"Profile of {user.id} updated from checkout: {sorted(changed)}")

        return order

    def create_order(self, db: Session, user_id: str, items: List[dict], total: int, customer: dict) -> Order:
        """
        Persist an order atomically.

        items: cart lines ({productId, quantity, price, name, image}).
        customer: {name, phone, address, comment}.

        Stock is decremented with `stock = stock - qty WHERE stock >= qty`;
        a line that matches no row aborts the order with InsufficientStockError.
        Storage errors are raised as TransactionFailedError.
        """
        if not items:
            raise EmptyCartError()

        try:
            order = Order(
                id=new_id(),
                order_number=generate_order_number(),
                user_id=user_id,
                total=total,
                status=OrderStatus.PROCESSING.value,
                customer_name=customer.get("name", ""),
                customer_phone=customer.get("phone", ""),
                customer_address=customer.get("address", ""),
                customer_comment=customer.get("comment", ""),
            )
            db.add(order)
            db.flush()

            for it in items:
                db.add(OrderItem(
                    order_id=order.id,
                    product_id=it["productId"],
                    quantity=it["quantity"],
                    price=it["price"],
                    name=it["name"],
                    image=it.get("image", ""),
                ))

                updated = (
                    db.query(Product)
                    .filter(Product.id == it["productId"], Product.stock >= it["quantity"])
                    .update({Product.stock: Product.stock - it["quantity"]}, synchronize_session=False)
                )
                if updated == 0:
                    raise InsufficientStockError(it["name"])

            db.query(CartItem).filter(CartItem.user_id == user_id).delete(synchronize_session=False)
            db.commit()

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Order commit failed for user {user_id}: {e}")
            raise TransactionFailedError() from e
        except Exception:
            # Domain errors and malformed lines alike leave nothing behind
            db.rollback()
            raise

        logger.info(f"Order {order.order_number} created: user={user_id} total={total} lines={len(items)}")
        return order

    # ==========================================
    # Query
    # ==========================================

    def get_user_orders(self, db: Session, user_id: str) -> List[Order]:
        return (
            db.query(Order)
            .options(selectinload(Order.items))
            .filter(Order.user_id == user_id)
            .order_by(desc(Order.created_at), desc(Order.order_number))
            .all()
        )

    def get_order_by_id(self, db: Session, order_id: str) -> Optional[Order]:
        return db.query(Order).filter(Order.id == order_id).first()

    def list_all_orders(self, db: Session, status: str = None) -> List[dict]:
        """All orders, newest first, each with the ordering user's email and name."""
        q = (
            db.query(Order, User.email, User.name)
            .join(User, User.id == Order.user_id)
            .options(selectinload(Order.items))
            .order_by(desc(Order.created_at), desc(Order.order_number))
        )
        if status:
            q = q.filter(Order.status == status)

        result = []
        for order, email, name in q.all():
            row = order.to_dict()
            row["user_email"] = email
            row["user_name"] = name
            result.append(row)
        return result

    # ==========================================
    # Admin
    # ==========================================

    def update_status(self, db: Session, order_id: str, status: str) -> Order:
        if status not in OrderStatus.values():
            raise ValueError(f"Invalid status: {status}")

        order = self.get_order_by_id(db, order_id)
        if not order:
            raise NotFoundError("Order not found")

        old = order.status
        order.status = status
        db.flush()
        logger.info(f"Order {order.order_number} status {old} -> {status}")
        return order


# Singleton
order_service = OrderService()
