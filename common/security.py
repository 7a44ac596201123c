"""
Marketplace - Security Utilities
==================================
JWT tokens, password hashing, guest session ids, cookie settings,
and the add-to-cart double-submit guard.
"""

import logging
import secrets
import threading
import time
from collections import OrderedDict
from datetime import timedelta
from typing import Callable, Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from config.settings import (
    SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES,
    COOKIE_SECURE, COOKIE_SAMESITE,
    ADD_TO_CART_DEDUP_SECONDS, ADD_TO_CART_DEDUP_CAPACITY,
)
from common.helpers import now_utc

logger = logging.getLogger("marketplace.security")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


# ==========================================
# Passwords
# ==========================================

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


# ==========================================
# JWT Tokens
# ==========================================

def create_token(data: dict) -> str:
    """Create a signed auth token; `sub` carries the user id."""
    to_encode = data.copy()
    to_encode["exp"] = now_utc() + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode a JWT token. Returns payload or None."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


# ==========================================
# Guest Sessions & Cookies
# ==========================================

def new_session_id() -> str:
    """Opaque id that keys an anonymous visitor's cart."""
    return secrets.token_urlsafe(24)


def get_cookie_kwargs() -> dict:
    """Standard cookie settings for auth and session cookies."""
    return dict(
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


# ==========================================
# Add-to-cart double-submit guard
# ==========================================

class AddToCartGuard:
    """
    In-memory, per-process map of recent "add" submissions.

    Keys are identity+product. A key seen again inside `window` seconds is
    rejected. Entries expire after the window and the map never holds more
    than `capacity` keys (oldest evicted first). Advisory only: the cart
    itself stays correct without it.
    """

    def __init__(
        self,
        window: float = ADD_TO_CART_DEDUP_SECONDS,
        capacity: int = ADD_TO_CART_DEDUP_CAPACITY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self.capacity = capacity
        self._clock = clock
        self._seen: "OrderedDict[str, float]" = OrderedDict()
        self._lock = threading.Lock()

    @staticmethod
    def make_key(owner: str, product_id: str) -> str:
        return f"{owner}_{product_id}"

    def allow(self, key: str) -> bool:
        """Record the submission. Returns False if it repeats within the window."""
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            if key in self._seen:
                logger.info(f"Repeated add-to-cart ignored: {key}")
                return False
            self._seen[key] = now
            while len(self._seen) > self.capacity:
                self._seen.popitem(last=False)
            return True

    def clear(self):
        with self._lock:
            self._seen.clear()

    def __len__(self):
        return len(self._seen)

    def _evict_expired(self, now: float):
        # Insertion order is time order, so expired keys sit at the front
        while self._seen:
            key, seen_at = next(iter(self._seen.items()))
            if now - seen_at < self.window:
                break
            self._seen.popitem(last=False)


# Singleton
add_to_cart_guard = AddToCartGuard()
