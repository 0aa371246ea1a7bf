from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, Field
from pymongo.database import Database

import catalog
from auth import require_admin
from database import get_db
from schemas import Document

router = APIRouter(prefix="/products", tags=["products"])


# Field limits (lengths, price range, originalPrice > price) are checked by
# schemas.Product when the document is built.

class ProductIn(Document):
    title: str
    description: str
    images: List[str] = []
    collection: str = Field(..., validation_alias=AliasChoices("collection", "collectionId"))
    price: float
    original_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    is_on_sale: bool = False
    sizes: List[str] = []
    colors: List[str] = []
    stock: int = 999
    is_active: bool = True


class ProductUpdate(Document):
    title: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    collection: Optional[str] = Field(None, validation_alias=AliasChoices("collection", "collectionId"))
    price: Optional[float] = None
    original_price: Optional[float] = None
    discount_percentage: Optional[float] = None
    is_on_sale: Optional[bool] = None
    sizes: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    stock: Optional[int] = None
    is_active: Optional[bool] = None


@router.get("")
def list_products(collection: Optional[str] = None, minPrice: Optional[float] = None,
                  maxPrice: Optional[float] = None, sort: Optional[str] = None,
                  db: Database = Depends(get_db)):
    products = catalog.list_products(db, collection=collection, min_price=minPrice,
                                     max_price=maxPrice, sort=sort)
    return {"success": True, "count": len(products), "data": products}


@router.get("/{product_id}")
def get_product(product_id: str, db: Database = Depends(get_db)):
    return {"success": True, "data": catalog.get_product(db, product_id)}


@router.post("", status_code=201)
def create_product(data: ProductIn, db: Database = Depends(get_db),
                   admin: Dict[str, Any] = Depends(require_admin)):
    product = catalog.create_product(db, data.model_dump(by_alias=True))
    return {"success": True, "data": product}


@router.put("/{product_id}")
def update_product(product_id: str, data: ProductUpdate, db: Database = Depends(get_db),
                   admin: Dict[str, Any] = Depends(require_admin)):
    changes = data.model_dump(by_alias=True, exclude_unset=True)
    return {"success": True, "data": catalog.update_product(db, product_id, changes)}


@router.delete("/{product_id}")
def delete_product(product_id: str, db: Database = Depends(get_db),
                   admin: Dict[str, Any] = Depends(require_admin)):
    catalog.delete_product(db, product_id)
    return {"success": True, "message": "Product deleted successfully"}
