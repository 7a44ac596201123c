"""
Admin Module - Routes
=======================
Users and roles, dashboard stats, and the request audit log viewer.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from config.database import get_db
from modules.admin.dashboard_service import dashboard_service
from modules.auth.deps import require_admin
from modules.user.schemas import RoleUpdate
from modules.user.service import user_service

router = APIRouter(prefix="/api/admin", tags=["admin"])


# ==========================================
# Users
# ==========================================

@router.get("/users")
async def admin_list_users(db: Session = Depends(get_db), user=Depends(require_admin)):
    return {"success": True, "users": [u.to_dict() for u in user_service.list_users(db)]}


@router.put("/users/{user_id}/role")
async def admin_set_role(
    user_id: str,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    target = user_service.set_role(db, user, user_id, body.role)
    db.commit()
    return {"success": True, "user": target.to_dict(), "message": "User role updated"}


# ==========================================
# Stats
# ==========================================

@router.get("/stats")
async def admin_stats(db: Session = Depends(get_db), user=Depends(require_admin)):
    return {"success": True, "stats": dashboard_service.get_overview_stats(db)}


# ==========================================
# Request Logs
# ==========================================

@router.get("/logs")
async def admin_logs(
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    logs = dashboard_service.get_request_logs(db, limit=limit)
    return {"success": True, "logs": [entry.to_dict() for entry in logs]}


@router.delete("/logs")
async def admin_clear_logs(db: Session = Depends(get_db), user=Depends(require_admin)):
    deleted = dashboard_service.clear_request_logs(db)
    db.commit()
    return {"success": True, "deleted": deleted, "message": "Logs cleared"}
