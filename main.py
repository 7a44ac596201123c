"""
Marketplace API - Application Entry Point
===========================================
FastAPI app initialization, error mapping, middleware, scheduler and
router registration.
"""

import json
import logging
import re
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
from apscheduler.schedulers.background import BackgroundScheduler

from config import settings
from config import database
from config.database import Base, engine
from common.exceptions import MarketplaceError
from common.helpers import now_utc, get_real_ip

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("marketplace")
scheduler_logger = logging.getLogger("marketplace.scheduler")


# ==========================================
# Import ALL models so Alembic/Base can see them
# ==========================================
from modules.user.models import User  # noqa: F401
from modules.catalog.models import Product  # noqa: F401
from modules.cart.models import CartItem  # noqa: F401
from modules.order.models import Order, OrderItem  # noqa: F401
from modules.admin.models import RequestLog  # noqa: F401

# ==========================================
# Import routers
# ==========================================
from modules.auth.routes import router as auth_router
from modules.catalog.routes import router as catalog_router
from modules.catalog.admin_routes import router as catalog_admin_router
from modules.cart.routes import router as cart_router
from modules.order.routes import router as order_router
from modules.order.admin_routes import router as order_admin_router
from modules.admin.routes import router as admin_router


# ==========================================
# Background Scheduler: cleanup jobs
# ==========================================
def _cleanup_old_request_logs():
    """Background job: delete request logs older than the retention window."""
    from modules.admin.dashboard_service import dashboard_service

    db = database.SessionLocal()
    try:
        cutoff = now_utc() - timedelta(days=settings.REQUEST_LOG_RETENTION_DAYS)
        deleted = dashboard_service.purge_request_logs(db, cutoff)
        db.commit()
        if deleted:
            scheduler_logger.info(f"Deleted {deleted} old request logs (>{settings.REQUEST_LOG_RETENTION_DAYS} days)")
    except SQLAlchemyError as e:
        db.rollback()
        scheduler_logger.error(f"Log cleanup error: {e}")
    finally:
        db.close()


def _cleanup_stale_guest_carts():
    """Background job: delete guest cart rows older than the guest cart TTL."""
    from modules.cart.service import cart_service

    db = database.SessionLocal()
    try:
        cutoff = now_utc() - timedelta(days=settings.GUEST_CART_TTL_DAYS)
        deleted = cart_service.purge_stale_guest_carts(db, cutoff)
        db.commit()
        if deleted:
            scheduler_logger.info(f"Deleted {deleted} stale guest cart rows")
    except SQLAlchemyError as e:
        db.rollback()
        scheduler_logger.error(f"Guest cart cleanup error: {e}")
    finally:
        db.close()


scheduler = BackgroundScheduler()


@asynccontextmanager
async def lifespan(app):
    # Auto-create any missing tables (safe for existing tables)
    Base.metadata.create_all(bind=engine)

    if settings.SCHEDULER_ENABLED:
        scheduler.add_job(_cleanup_old_request_logs, 'interval', hours=6, id='log_cleanup')
        scheduler.add_job(_cleanup_stale_guest_carts, 'interval', hours=1, id='guest_cart_cleanup')
        scheduler.start()
        scheduler_logger.info("Background scheduler started (logs: 6h, guest carts: 1h)")
    yield
    if scheduler.running:
        scheduler.shutdown()
        scheduler_logger.info("Background scheduler stopped")


# ==========================================
# Create App
# ==========================================
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
    lifespan=lifespan,
)


# ==========================================
# Exception handlers: {"success": false, "error": ...}
# ==========================================
def _error(message, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=status_code)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return _error(exc.message, exc.status_code)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return _error(str(exc), 400)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(exc.detail, exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return _error(message, 400)


# ==========================================
# Middleware: Request Audit Log
# ==========================================
_SKIP_PATHS = ("/health", "/ping", "/favicon.ico")
_SENSITIVE_FIELDS = ("password", "token", "secret")
_SENSITIVE_KEYS = re.compile(
    r'(password|token|secret)=[^&]*',
    re.IGNORECASE,
)


def _identify_user(request: Request):
    """Identify user from the JWT cookie. Returns (user_type, user_id, user_display)."""
    from common.security import decode_token

    token = request.cookies.get(settings.AUTH_COOKIE)
    if not token:
        return "anonymous", None, None

    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        return "anonymous", None, None

    user_id = payload["sub"]
    db = database.SessionLocal()
    try:
        user = db.query(User).filter(User.id == user_id).first()
        if user:
            return user.role, user.id, user.email
    except SQLAlchemyError as e:
        logger.warning(f"Request log user lookup failed: {e}")
    finally:
        db.close()
    return "anonymous", None, None


def _mask_value(value):
    if isinstance(value, dict):
        return {
            k: "***" if any(s in k.lower() for s in _SENSITIVE_FIELDS) else _mask_value(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [_mask_value(v) for v in value]
    return value


def _mask_body(raw: bytes, content_type: str) -> Optional[str]:
    """Parse request body, mask sensitive fields, truncate."""
    if not raw:
        return None

    ct = (content_type or "").lower()

    if "multipart/form-data" in ct:
        return "[multipart/form-data]"

    text = raw[:10_000].decode("utf-8", errors="replace")

    if "application/json" in ct:
        try:
            text = json.dumps(_mask_value(json.loads(text)), ensure_ascii=False)
        except ValueError:
            text = "[invalid json]"
    else:
        text = _SENSITIVE_KEYS.sub(lambda m: m.group(0).split("=")[0] + "=***", text)

    return text[:2000] if text else None


@app.middleware("http")
async def request_logger(request: Request, call_next):
    """Log every HTTP request to the database for audit purposes."""
    path = request.url.path

    # Skip noisy paths
    if any(path.startswith(p) for p in _SKIP_PATHS):
        return await call_next(request)

    start = time.time()

    body_preview = None
    if request.method in ("POST", "PUT", "PATCH"):
        raw = await request.body()
        body_preview = _mask_body(raw, request.headers.get("content-type"))

    response = await call_next(request)

    elapsed_ms = int((time.time() - start) * 1000)
    user_type, user_id, user_display = _identify_user(request)

    log_db = database.SessionLocal()
    try:
        log_db.add(RequestLog(
            method=request.method,
            path=path[:500],
            query_string=str(request.url.query)[:2000] if request.url.query else None,
            status_code=response.status_code,
            ip_address=get_real_ip(request),
            user_agent=(request.headers.get("user-agent") or "")[:500],
            user_type=user_type,
            user_id=user_id,
            user_display=user_display,
            body_preview=body_preview,
            response_time_ms=elapsed_ms,
        ))
        log_db.commit()
    except SQLAlchemyError as e:
        # Audit failures must not fail the request itself
        log_db.rollback()
        logger.warning(f"Request log write failed for {request.method} {path}: {e}")
    finally:
        log_db.close()

    return response


# ==========================================
# Register Routers
# ==========================================
app.include_router(auth_router)
app.include_router(catalog_router)
app.include_router(catalog_admin_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(order_admin_router)
app.include_router(admin_router)


# ==========================================
# Health check & index
# ==========================================
@app.get("/health")
async def health():
    checks = {"api": "ok", "database": "connected"}
    status_code = 200
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {e}")
        checks["database"] = "error"
        status_code = 503

    return JSONResponse({
        "status": "healthy" if status_code == 200 else "unhealthy",
        "timestamp": now_utc().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "checks": checks,
    }, status_code=status_code)


@app.get("/ping")
async def ping():
    return {"status": "pong", "timestamp": now_utc().isoformat(), "server": settings.APP_NAME}


@app.get("/")
async def index():
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "products": "/api/products",
            "cart": "/api/cart",
            "orders": "/api/orders",
            "admin": "/api/admin/",
            "health": "/health",
            "ping": "/ping",
        },
    }
