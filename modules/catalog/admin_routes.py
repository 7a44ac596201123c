"""
Catalog Module - Admin Routes
===============================
Product CRUD for admins.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import NotFoundError
from modules.auth.deps import require_admin
from modules.catalog.schemas import ProductCreate, ProductUpdate
from modules.catalog.service import product_service

router = APIRouter(prefix="/api/admin/products", tags=["catalog-admin"])


@router.get("/all")
async def admin_list_products(db: Session = Depends(get_db), user=Depends(require_admin)):
    return {"success": True, "products": [p.to_dict() for p in product_service.list_all(db)]}


@router.get("/{product_id}")
async def admin_get_product(product_id: str, db: Session = Depends(get_db), user=Depends(require_admin)):
    product = product_service.get_product(db, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return {"success": True, "product": product.to_dict()}


@router.post("")
async def admin_create_product(
    body: ProductCreate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    product = product_service.create_product(db, body)
    db.commit()
    return {
        "success": True,
        "productId": product.id,
        "product": product.to_dict(),
        "message": "Product created",
    }


@router.put("/{product_id}")
async def admin_update_product(
    product_id: str,
    body: ProductUpdate,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    product = product_service.update_product(db, product_id, body)
    db.commit()
    return {"success": True, "product": product.to_dict(), "message": "Product updated"}


@router.delete("/{product_id}")
async def admin_delete_product(
    product_id: str,
    db: Session = Depends(get_db),
    user=Depends(require_admin),
):
    product_service.delete_product(db, product_id)
    db.commit()
    return {"success": True, "message": "Product deleted"}
