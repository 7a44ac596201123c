"""
Marketplace - Shared Helpers
=============================
Pure utility functions with NO database or module dependencies.
"""

import secrets
import uuid
from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Primary key for users, products and orders."""
    return str(uuid.uuid4())


def generate_order_number() -> str:
    """
    Human-readable order token: ORD-<epoch ms>-<4 hex>.
    Time-derived; the suffix only makes same-millisecond clashes unlikely.
    """
    millis = int(now_utc().timestamp() * 1000)
    return f"ORD-{millis}-{secrets.token_hex(2).upper()}"


def get_real_ip(request) -> Optional[str]:
    """Extract real client IP from request (handles X-Forwarded-For proxy header)."""
    x_forwarded = request.headers.get("X-Forwarded-For")
    if x_forwarded:
        return x_forwarded.split(",")[0].strip()
    return request.client.host if request.client else None
