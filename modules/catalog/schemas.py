"""
Catalog Module - Schemas
=========================
Admin product records. ProductUpdate is the allow-list of mutable product
attributes: unknown keys are dropped, and only fields present in the
payload are written.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    price: int = Field(..., ge=0)
    category: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    image: str = ""
    rating: float = Field(0, ge=0, le=5)
    reviews: int = Field(0, ge=0)
    stock: int = Field(0, ge=0)
    specifications: dict = Field(default_factory=dict)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    price: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    reviews: Optional[int] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    specifications: Optional[dict] = None
