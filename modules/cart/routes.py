"""
Cart Routes
=============
JSON cart API for guests (session cookie) and logged-in users.

Endpoints:
  GET    /api/cart                       - Resolved cart
  POST   /api/cart/add                   - Add product (repeat inside the de-dup window -> 429)
  PUT    /api/cart/update/{product_id}   - Set quantity (<= 0 removes)
  DELETE /api/cart/remove/{product_id}   - Remove product
  DELETE /api/cart                       - Clear cart
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import ThrottledError
from common.security import add_to_cart_guard
from modules.auth.deps import get_cart_identity
from modules.cart.service import cart_service, CartIdentity

router = APIRouter(prefix="/api/cart", tags=["cart"])


# ==========================================
# Schemas
# ==========================================

class AddToCartRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_id: str = Field(..., alias="productId", min_length=1)
    quantity: int = Field(1, ge=1)


class UpdateCartRequest(BaseModel):
    quantity: int


# ==========================================
# Endpoints
# ==========================================

@router.get("")
async def get_cart(
    db: Session = Depends(get_db),
    identity: CartIdentity = Depends(get_cart_identity),
):
    return {"success": True, "cart": cart_service.get_cart(db, identity)}


@router.post("/add")
async def add_to_cart(
    body: AddToCartRequest,
    db: Session = Depends(get_db),
    identity: CartIdentity = Depends(get_cart_identity),
):
    key = add_to_cart_guard.make_key(identity.owner_key, body.product_id)
    if not add_to_cart_guard.allow(key):
        raise ThrottledError()

    cart = cart_service.add_item(db, identity, body.product_id, body.quantity)
    db.commit()
    return {"success": True, "cart": cart}


@router.put("/update/{product_id}")
async def update_cart_item(
    product_id: str,
    body: UpdateCartRequest,
    db: Session = Depends(get_db),
    identity: CartIdentity = Depends(get_cart_identity),
):
    cart = cart_service.update_item(db, identity, product_id, body.quantity)
    db.commit()
    return {"success": True, "cart": cart}


@router.delete("/remove/{product_id}")
async def remove_cart_item(
    product_id: str,
    db: Session = Depends(get_db),
    identity: CartIdentity = Depends(get_cart_identity),
):
    cart = cart_service.remove_item(db, identity, product_id)
    db.commit()
    return {"success": True, "cart": cart}


@router.delete("")
async def clear_cart(
    db: Session = Depends(get_db),
    identity: CartIdentity = Depends(get_cart_identity),
):
    cart_service.clear_cart(db, identity)
    db.commit()
    return {"success": True, "cart": cart_service.get_cart(db, identity)}
