"""
Marketplace - Database Initialization
=======================================
Creates the marketplace schema (users, products, cart_items, orders,
order_items, request_logs) and reports row counts per table.

Usage:
    python scripts/init_db.py           # Create missing tables
    python scripts/init_db.py --check   # Only verify the schema, exit 1 if incomplete
    python scripts/init_db.py --drop    # Drop and recreate (asks for confirmation)
    python scripts/init_db.py --drop --yes
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, inspect, select
from sqlalchemy.engine import Engine

from config.database import Base, engine
from modules.user.models import User  # noqa: F401
from modules.catalog.models import Product  # noqa: F401
from modules.cart.models import CartItem  # noqa: F401
from modules.order.models import Order, OrderItem  # noqa: F401
from modules.admin.models import RequestLog  # noqa: F401


def missing_tables(bind: Engine = engine) -> list:
    existing = set(inspect(bind).get_table_names())
    return [t.name for t in Base.metadata.sorted_tables if t.name not in existing]


def table_counts(bind: Engine = engine) -> dict:
    """Row count of every marketplace table, in dependency order."""
    with bind.connect() as conn:
        return {
            t.name: conn.execute(select(func.count()).select_from(t)).scalar()
            for t in Base.metadata.sorted_tables
        }


def init_db(bind: Engine = engine, drop_first: bool = False) -> dict:
    """Create the schema (optionally from scratch). Returns table row counts."""
    if drop_first:
        Base.metadata.drop_all(bind=bind)
    Base.metadata.create_all(bind=bind)
    return table_counts(bind)


def main(argv) -> int:
    if "--check" in argv:
        missing = missing_tables()
        if missing:
            print(f"Missing tables: {', '.join(missing)}")
            return 1
        print("Schema complete.")
        return 0

    drop = "--drop" in argv
    if drop and "--yes" not in argv:
        confirm = input("This will DROP all marketplace tables. Type 'yes': ")
        if confirm.strip().lower() != "yes":
            print("Aborted.")
            return 0

    counts = init_db(drop_first=drop)
    print(f"Tables in database ({len(counts)}):")
    for name, rows in counts.items():
        print(f"  - {name}: {rows} rows")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
