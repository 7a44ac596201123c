"""
Shared fixtures: in-memory SQLite, fresh tables per test, service-level
session and an HTTP client.
"""

import os

os.environ["SECRET_KEY"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"

import pytest
from fastapi.testclient import TestClient

from config.database import Base, engine, SessionLocal
from common.security import add_to_cart_guard, hash_password
from main import app
from modules.catalog.models import Product
from modules.user.models import User, UserRole


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    add_to_cart_guard.clear()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def make_product(db):
    def _make(name="Widget", price=100, stock=10, category="General", **extra):
        specs = extra.pop("specifications", None)
        product = Product(name=name, price=price, stock=stock, category=category, **extra)
        if specs:
            product.specifications = specs
        db.add(product)
        db.commit()
        return product
    return _make


@pytest.fixture
def make_user(db):
    def _make(email="user@example.com", password="secret123", name="Test User",
              role=UserRole.USER.value, **extra):
        user = User(email=email, password_hash=hash_password(password), name=name, role=role, **extra)
        db.add(user)
        db.commit()
        return user
    return _make


@pytest.fixture
def login(client):
    def _login(email, password):
        r = client.post("/api/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        return r
    return _login
