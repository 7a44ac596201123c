"""
Marketplace - Centralized Configuration
========================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
import sys
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketplace.db")


# ==========================================
# 🔐 Security
# ==========================================
SECRET_KEY = os.getenv("SECRET_KEY")

if not SECRET_KEY:
    print("[ERROR] Critical: SECRET_KEY missing in .env")
    sys.exit(1)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))  # 1 day

AUTH_COOKIE = "auth_token"
SESSION_COOKIE = "session_id"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"
COOKIE_SAMESITE = os.getenv("COOKIE_SAMESITE", "lax")


# ==========================================
# 🛒 Cart
# ==========================================
# Repeated "add" for the same identity+product inside this window is rejected
ADD_TO_CART_DEDUP_SECONDS = float(os.getenv("ADD_TO_CART_DEDUP_SECONDS", "1"))
ADD_TO_CART_DEDUP_CAPACITY = int(os.getenv("ADD_TO_CART_DEDUP_CAPACITY", "10000"))

# Guest carts untouched for this long are purged by the scheduler
GUEST_CART_TTL_DAYS = int(os.getenv("GUEST_CART_TTL_DAYS", "30"))


# ==========================================
# 🔧 App
# ==========================================
APP_NAME = "Marketplace API"
APP_VERSION = "1.0.0"

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"
REQUEST_LOG_RETENTION_DAYS = int(os.getenv("REQUEST_LOG_RETENTION_DAYS", "30"))
