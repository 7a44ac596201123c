"""
Admin Dashboard Service
=========================
Aggregated statistics and the request audit log viewer.
"""

import logging
from datetime import datetime
from typing import Dict, Any, List

from sqlalchemy.orm import Session
from sqlalchemy import func as sa_func

from modules.admin.models import RequestLog
from modules.catalog.models import Product
from modules.order.models import Order, OrderStatus
from modules.user.models import User

logger = logging.getLogger("marketplace.admin")


class DashboardService:

    def get_overview_stats(self, db: Session) -> Dict[str, Any]:
        """Key business metrics. Revenue counts every order regardless of status."""
        total_revenue = db.query(sa_func.coalesce(sa_func.sum(Order.total), 0)).scalar()
        return {
            "total_users": db.query(User).count(),
            "total_products": db.query(Product).count(),
            "total_orders": db.query(Order).count(),
            "total_revenue": int(total_revenue or 0),
            "pending_orders": db.query(Order).filter(
                Order.status == OrderStatus.PROCESSING.value,
            ).count(),
        }

    # ==========================================
    # Request logs
    # ==========================================

    def get_request_logs(self, db: Session, limit: int = 100) -> List[RequestLog]:
        """Newest first."""
        return (
            db.query(RequestLog)
            .order_by(RequestLog.created_at.desc(), RequestLog.id.desc())
            .limit(limit)
            .all()
        )

    def clear_request_logs(self, db: Session) -> int:
        deleted = db.query(RequestLog).delete(synchronize_session=False)
        db.flush()
        logger.info(f"Request logs cleared ({deleted} rows)")
        return deleted

    def purge_request_logs(self, db: Session, older_than: datetime) -> int:
        deleted = db.query(RequestLog).filter(
            RequestLog.created_at < older_than,
        ).delete(synchronize_session=False)
        db.flush()
        return deleted


# Singleton
dashboard_service = DashboardService()
