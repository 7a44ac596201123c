"""
Admin Module - Models
======================
RequestLog: HTTP request audit trail
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.sql import func
from config.database import Base


# ==========================================
# Request Audit Log
# ==========================================

class RequestLog(Base):
    __tablename__ = "request_logs"

    id = Column(Integer, primary_key=True)
    method = Column(String(10), nullable=False)                  # GET, POST, PUT, DELETE
    path = Column(String(500), nullable=False)                   # URL path (no query string)
    query_string = Column(Text, nullable=True)                   # query parameters
    status_code = Column(Integer, nullable=False)                # HTTP response status
    ip_address = Column(String(45), nullable=True)               # IPv4 / IPv6
    user_agent = Column(String(500), nullable=True)              # Browser / client info
    user_type = Column(String(20), nullable=False, default="anonymous")  # admin/user/anonymous
    user_id = Column(String(36), nullable=True)                  # user PK (if authenticated)
    user_display = Column(String(200), nullable=True)            # email (quick display)
    body_preview = Column(Text, nullable=True)                   # request body (truncated, sensitive masked)
    response_time_ms = Column(Integer, nullable=True)            # response duration (ms)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_reqlog_created", "created_at"),
        Index("ix_reqlog_path", "path"),
        Index("ix_reqlog_user_type", "user_type"),
    )

    def to_line(self) -> str:
        """One-line rendering used by the admin log viewer."""
        ts = self.created_at.isoformat() if self.created_at else "-"
        who = self.user_display or self.user_type
        return f"[{ts}] {self.method} {self.path} - {self.status_code} ({self.response_time_ms}ms) {who}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "method": self.method,
            "path": self.path,
            "query_string": self.query_string,
            "status_code": self.status_code,
            "ip_address": self.ip_address,
            "user_type": self.user_type,
            "user_id": self.user_id,
            "user_display": self.user_display,
            "body_preview": self.body_preview,
            "response_time_ms": self.response_time_ms,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "line": self.to_line(),
        }
