"""
Cart Module - Service Layer
==============================
Cart resolution by identity (user id or guest session id), item mutations,
guest-to-user merge on login, and stale guest cart cleanup.

Every query and mutation scopes rows through `owner_filter`, so the resolver
and the mutators can never disagree on which rows form a cart.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from common.exceptions import NotFoundError, InsufficientStockError, IdentityRequiredError
from common.helpers import now_utc
from modules.cart.models import CartItem
from modules.catalog.models import Product

logger = logging.getLogger("marketplace.cart")

# Dialects with INSERT .. ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@dataclass(frozen=True)
class CartIdentity:
    """Who owns a cart: an authenticated user wins over a guest session."""
    user_id: Optional[str] = None
    session_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.user_id and not self.session_id

    @property
    def owner_key(self) -> Optional[str]:
        return self.user_id or self.session_id


def owner_filter(identity: CartIdentity):
    """SQL predicate selecting the identity's cart rows, or None without an identity."""
    if identity.user_id:
        return CartItem.user_id == identity.user_id
    if identity.session_id:
        return and_(CartItem.session_id == identity.session_id, CartItem.user_id.is_(None))
    return None


class CartService:

    # ==========================================
    # Query
    # ==========================================

    def get_cart(self, db: Session, identity: CartIdentity) -> dict:
        """
        Resolve the identity's cart with live product data.
        Returns: {"items": [...], "total": int}; an anonymous identity gets an empty cart.
        """
        clause = owner_filter(identity)
        if clause is None:
            return {"items": [], "total": 0}

        rows = (
            db.query(
                CartItem.product_id, CartItem.quantity,
                Product.price, Product.name, Product.image, Product.stock,
            )
            .join(Product, Product.id == CartItem.product_id)
            .filter(clause)
            .order_by(CartItem.id)
            .all()
        )

        items = [
            {
                "productId": r.product_id,
                "quantity": r.quantity,
                "price": r.price,
                "name": r.name,
                "image": r.image or "",
                "stock": r.stock,
            }
            for r in rows
        ]
        total = sum(it["price"] * it["quantity"] for it in items)
        return {"items": items, "total": total}

    # ==========================================
    # Commands
    # ==========================================

    def add_item(self, db: Session, identity: CartIdentity, product_id: str, quantity: int = 1) -> dict:
        """
        Add `quantity` of a product, incrementing an existing row.
        Stock is checked against the requested quantity only.
        """
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")

        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFoundError("Product not found")
        if product.stock < quantity:
            raise InsufficientStockError(product.name)
        if identity.is_empty:
            raise IdentityRequiredError()

        self._upsert_item(db, identity, product_id, quantity)
        db.flush()
        logger.info(f"Cart add: owner={identity.owner_key} product={product_id} qty={quantity}")
        return self.get_cart(db, identity)

    def update_item(self, db: Session, identity: CartIdentity, product_id: str, quantity: int) -> dict:
        """Set a row's quantity directly; quantity <= 0 removes the row."""
        clause = owner_filter(identity)
        if clause is None:
            raise IdentityRequiredError()

        q = db.query(CartItem).filter(clause, CartItem.product_id == product_id)
        if quantity <= 0:
            q.delete(synchronize_session=False)
        else:
            q.update(
                {CartItem.quantity: quantity, CartItem.updated_at: now_utc()},
                synchronize_session=False,
            )
        db.flush()
        return self.get_cart(db, identity)

    def remove_item(self, db: Session, identity: CartIdentity, product_id: str) -> dict:
        """Delete a row. Removing an absent product is a no-op."""
        clause = owner_filter(identity)
        if clause is None:
            raise IdentityRequiredError()

        db.query(CartItem).filter(clause, CartItem.product_id == product_id).delete(
            synchronize_session=False
        )
        db.flush()
        return self.get_cart(db, identity)

    def clear_cart(self, db: Session, identity: CartIdentity) -> int:
        """Remove all rows of the identity. Returns number of rows deleted."""
        clause = owner_filter(identity)
        if clause is None:
            raise IdentityRequiredError()

        deleted = db.query(CartItem).filter(clause).delete(synchronize_session=False)
        db.flush()
        return deleted

    def merge_guest_cart(self, db: Session, session_id: Optional[str], user_id: str) -> int:
        """
        Hand a guest cart over to a user after login/registration.

        Rows the user already has for the same product absorb the guest
        quantity (quantities are summed); all other guest rows are
        reassigned in one bulk update. Returns number of guest rows merged.
        """
        if not session_id or not user_id:
            return 0

        guest = owner_filter(CartIdentity(session_id=session_id))
        touched = now_utc()
        owned_ids = [
            pid for (pid,) in db.query(CartItem.product_id).filter(CartItem.user_id == user_id).all()
        ]

        collisions = []
        if owned_ids:
            collisions = (
                db.query(CartItem.product_id, CartItem.quantity)
                .filter(guest, CartItem.product_id.in_(owned_ids))
                .all()
            )
        for product_id, qty in collisions:
            db.query(CartItem).filter(
                CartItem.user_id == user_id,
                CartItem.product_id == product_id,
            ).update(
                {CartItem.quantity: CartItem.quantity + qty, CartItem.updated_at: touched},
                synchronize_session=False,
            )
        if collisions:
            db.query(CartItem).filter(
                guest, CartItem.product_id.in_([c.product_id for c in collisions]),
            ).delete(synchronize_session=False)

        moved = db.query(CartItem).filter(guest).update(
            {CartItem.user_id: user_id, CartItem.session_id: None, CartItem.updated_at: touched},
            synchronize_session=False,
        )
        db.flush()

        merged = moved + len(collisions)
        if merged:
            logger.info(f"Guest cart {session_id} merged into user {user_id} ({moved} moved, {len(collisions)} summed)")
        return merged

    def purge_stale_guest_carts(self, db: Session, older_than: datetime) -> int:
        """Delete guest rows untouched since `older_than`. Returns number deleted."""
        deleted = db.query(CartItem).filter(
            CartItem.user_id.is_(None),
            CartItem.updated_at < older_than,
        ).delete(synchronize_session=False)
        db.flush()
        return deleted

    # ==========================================
    # Private helpers
    # ==========================================

    def _upsert_item(self, db: Session, identity: CartIdentity, product_id: str, quantity: int):
        values = {
            "user_id": identity.user_id or None,
            "session_id": None if identity.user_id else identity.session_id,
            "product_id": product_id,
            "quantity": quantity,
            "updated_at": now_utc(),
        }
        conflict_cols = ["user_id", "product_id"] if identity.user_id else ["session_id", "product_id"]

        make_insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if make_insert is not None:
            stmt = make_insert(CartItem.__table__).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=conflict_cols,
                set_={
                    "quantity": CartItem.__table__.c.quantity + stmt.excluded.quantity,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            db.execute(stmt)
            return

        item = (
            db.query(CartItem)
            .filter(owner_filter(identity), CartItem.product_id == product_id)
            .with_for_update()
            .first()
        )
        if item:
            item.quantity += quantity
            item.updated_at = values["updated_at"]
        else:
            db.add(CartItem(**values))


# Singleton
cart_service = CartService()
