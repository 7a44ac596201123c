"""
Order Module - Admin Routes
=============================
Order list and status changes (admin only).
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_admin
from modules.order.models import OrderStatus
from modules.order.service import order_service

router = APIRouter(prefix="/api/admin/orders", tags=["admin-orders"])


class StatusUpdate(BaseModel):
    status: OrderStatus


@router.get("")
async def admin_list_orders(
    status: str = None,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    return {"success": True, "orders": order_service.list_all_orders(db, status=status)}


@router.put("/{order_id}/status")
async def admin_update_order_status(
    order_id: str,
    body: StatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    order = order_service.update_status(db, order_id, body.status.value)
    db.commit()
    return {"success": True, "order": order.to_dict(), "message": "Order status updated"}
