"""
Marketplace - Database Seeder
===============================
Seeds demo users and products. Each group is only seeded into an empty
table, so running it twice is harmless.

Usage:
    python scripts/seed.py          # Seed missing data
    python scripts/seed.py --reset  # Drop all tables, recreate and reseed

Seeded:
  1. Users: two customers + one admin
  2. Products: five catalog items across three categories
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.orm import Session

from config.database import SessionLocal, Base, engine
from common.security import hash_password
from modules.user.models import User, UserRole
from modules.catalog.models import Product
from modules.cart.models import CartItem  # noqa: F401
from modules.order.models import Order, OrderItem  # noqa: F401
from modules.admin.models import RequestLog  # noqa: F401


USERS = [
    {
        "email": "user@example.com", "password": "password123", "name": "Ivan Petrov",
        "phone": "+7 (999) 123-45-67", "address": "Moscow, Primernaya st. 1",
        "role": UserRole.USER.value,
    },
    {
        "email": "test@test.com", "password": "test123", "name": "Test Testov",
        "phone": "+7 (999) 987-65-43", "address": "Saint Petersburg, Nevsky pr. 10",
        "role": UserRole.USER.value,
    },
    {
        "email": "admin@admin.kz", "password": "admin123", "name": "Administrator",
        "phone": "+7 (777) 777-77-77", "address": "Admin address",
        "role": UserRole.ADMIN.value,
    },
]

PRODUCTS = [
    {
        "name": "Apple MacBook Air M2",
        "price": 129999,
        "category": "Electronics",
        "description": "13.6-inch Liquid Retina display, Apple M2 chip, 8 GB unified memory, 256 GB SSD.",
        "image": "https://images.unsplash.com/photo-1517336714731-489689fd1ca8?w=400&h=300&fit=crop",
        "rating": 4.8, "reviews": 156, "stock": 15,
        "specifications": {"CPU": "Apple M2", "Memory": "8 GB", "SSD": "256 GB",
                           "Display": "13.6'' Liquid Retina", "Weight": "1.24 kg"},
    },
    {
        "name": "Samsung Galaxy S23",
        "price": 89999,
        "category": "Electronics",
        "description": "6.1-inch Dynamic AMOLED 2X, Snapdragon 8 Gen 2, 8 GB RAM, 256 GB storage.",
        "image": "https://images.unsplash.com/photo-1511707171634-5f897ff02aa9?w=400&h=300&fit=crop",
        "rating": 4.6, "reviews": 89, "stock": 32,
        "specifications": {"Display": "6.1'' Dynamic AMOLED", "CPU": "Snapdragon 8 Gen 2",
                           "RAM": "8 GB", "Storage": "256 GB", "Battery": "3900 mAh"},
    },
    {
        "name": "Sony WH-1000XM5 Headphones",
        "price": 34999,
        "category": "Electronics",
        "description": "Wireless headphones with active noise cancelling and up to 30 hours of battery life.",
        "image": "https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=400&h=300&fit=crop",
        "rating": 4.9, "reviews": 214, "stock": 47,
        "specifications": {"Type": "Over-ear", "Noise cancelling": "Active",
                           "Battery life": "30 hours", "Weight": "250 g", "Bluetooth": "5.2"},
    },
    {
        "name": "Nike Air Max 270",
        "price": 12999,
        "category": "Clothing & Shoes",
        "description": "Men's sneakers with a Max Air 270 unit for all-day comfort.",
        "image": "https://images.unsplash.com/photo-1542291026-7eec264c27ff?w=400&h=300&fit=crop",
        "rating": 4.4, "reviews": 312, "stock": 0,
        "specifications": {"Upper": "Mesh and synthetic leather", "Sole": "Rubber",
                           "Color": "Black/White", "Sizes": "38-47"},
    },
    {
        "name": "Clean Code by Robert Martin",
        "price": 2499,
        "category": "Books",
        "description": "A handbook of agile software craftsmanship.",
        "image": "https://images.unsplash.com/photo-1544716278-ca5e3f4abd8c?w=400&h=300&fit=crop",
        "rating": 4.7, "reviews": 89, "stock": 23,
        "specifications": {"Author": "Robert Martin", "Pages": "464", "Year": "2008"},
    },
]


def seed(db: Session) -> dict:
    """Insert demo data into empty tables. Returns counts of inserted rows."""
    created = {"users": 0, "products": 0}

    if db.query(User).count() == 0:
        for data in USERS:
            fields = {k: v for k, v in data.items() if k != "password"}
            db.add(User(password_hash=hash_password(data["password"]), **fields))
            created["users"] += 1

    if db.query(Product).count() == 0:
        for data in PRODUCTS:
            fields = {k: v for k, v in data.items() if k != "specifications"}
            product = Product(**fields)
            product.specifications = data["specifications"]
            db.add(product)
            created["products"] += 1

    db.commit()
    return created


def reset_and_seed():
    print("Dropping all tables...")
    Base.metadata.drop_all(bind=engine)
    main()


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        created = seed(db)
    finally:
        db.close()
    print(f"Seeded {created['users']} users and {created['products']} products.")
    if created["users"]:
        print("  Admin login: admin@admin.kz / admin123")


if __name__ == "__main__":
    if "--reset" in sys.argv:
        confirm = input("This will DROP all tables. Type 'yes': ")
        if confirm.strip().lower() != "yes":
            print("Aborted.")
            sys.exit(0)
        reset_and_seed()
    else:
        main()
