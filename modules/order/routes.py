"""
Order Routes
==============
Checkout and order history for the logged-in user.

Endpoints:
  POST /api/orders/create   - Place an order from the current cart
  GET  /api/orders/my       - Own orders, newest first
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login
from modules.order.models import Order
from modules.order.service import order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


class CheckoutRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    comment: Optional[str] = None


def _order_payload(order: Order) -> dict:
    return {
        "id": order.id,
        "orderNumber": order.order_number,
        "userId": order.user_id,
        "items": [it.to_dict() for it in order.items],
        "total": order.total,
        "status": order.status,
        "customerName": order.customer_name,
        "customerPhone": order.customer_phone,
        "customerAddress": order.customer_address,
        "customerComment": order.customer_comment or "",
    }


@router.post("/create")
async def create_order(
    body: CheckoutRequest,
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    order = order_service.checkout(db, me, body.model_dump())
    db.commit()
    return {
        "success": True,
        "order": _order_payload(order),
        "message": "Order created successfully",
    }


@router.get("/my")
async def my_orders(
    db: Session = Depends(get_db),
    me=Depends(require_login),
):
    orders = order_service.get_user_orders(db, me.id)
    return {"success": True, "orders": [o.to_dict() for o in orders]}
