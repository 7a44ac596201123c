"""
Catalog Routes
================
Public product listing and product detail.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import NotFoundError
from modules.catalog.service import product_service

router = APIRouter(prefix="/api/products", tags=["catalog"])


@router.get("")
async def list_products(
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    db: Session = Depends(get_db),
):
    products = product_service.list_products(db, category=category, search=search, sort=sort)
    return {
        "success": True,
        "products": [p.to_dict() for p in products],
        "total": len(products),
        "categories": product_service.list_categories(db),
    }


@router.get("/{product_id}")
async def product_detail(product_id: str, db: Session = Depends(get_db)):
    product = product_service.get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")

    similar = product_service.get_similar(db, product)
    return {
        "success": True,
        "product": product.to_dict(),
        "similarProducts": [p.to_dict() for p in similar],
    }
