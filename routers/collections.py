from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import Field, field_validator
from pymongo.database import Database

import catalog
from auth import require_admin
from database import get_db
from schemas import Collection, Document, not_null

router = APIRouter(prefix="/collections", tags=["collections"])


class CollectionIn(Document):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)


class CollectionUpdate(Document):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

    reject_null = field_validator("name", "is_active")(not_null)


@router.get("")
def list_collections(db: Database = Depends(get_db)):
    collections = catalog.list_collections(db)
    return {"success": True, "count": len(collections), "data": collections}


@router.get("/{collection_id}")
def get_collection(collection_id: str, db: Database = Depends(get_db)):
    return {"success": True, "data": catalog.get_collection(db, collection_id)}


@router.post("", status_code=201)
def create_collection(data: CollectionIn, db: Database = Depends(get_db),
                      admin: Dict[str, Any] = Depends(require_admin)):
    collection = catalog.create_collection(db, Collection(**data.model_dump()))
    return {"success": True, "data": collection}


@router.put("/{collection_id}")
def update_collection(collection_id: str, data: CollectionUpdate, db: Database = Depends(get_db),
                      admin: Dict[str, Any] = Depends(require_admin)):
    changes = data.model_dump(by_alias=True, exclude_unset=True)
    return {"success": True, "data": catalog.update_collection(db, collection_id, changes)}


@router.delete("/{collection_id}")
def delete_collection(collection_id: str, db: Database = Depends(get_db),
                      admin: Dict[str, Any] = Depends(require_admin)):
    catalog.delete_collection(db, collection_id)
    return {"success": True, "message": "Collection deleted successfully"}
