"""
MongoDB access

A single client is created from DATABASE_URL / DATABASE_NAME when both are set.
Routes receive the database through the ``get_db`` dependency so it can be
swapped out (tests use an in-memory database).
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

import config
from errors import DatabaseUnavailable, ValidationError

client: Optional[MongoClient] = None
db: Optional[Database] = None

if config.DATABASE_URL and config.DATABASE_NAME:
    client = MongoClient(config.DATABASE_URL)
    db = client[config.DATABASE_NAME]


def get_db() -> Database:
    if db is None:
        raise DatabaseUnavailable()
    return db


def now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_indexes(database: Database) -> None:
    database["collection"].create_index([("name", ASCENDING)])
    database["collection"].create_index([("isActive", ASCENDING)])
    database["product"].create_index([("collection", ASCENDING)])
    database["product"].create_index([("isActive", ASCENDING)])
    database["product"].create_index([("price", ASCENDING)])
    database["product"].create_index([("createdAt", DESCENDING)])
    database["order"].create_index([("status", ASCENDING)])
    database["order"].create_index([("createdAt", DESCENDING)])
    database["order"].create_index([("phone", ASCENDING)])
    database["analytics"].create_index([("date", ASCENDING)], unique=True)
    database["admin"].create_index([("email", ASCENDING)], unique=True)


def to_object_id(value: Union[str, ObjectId], label: str = "record") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {label} ID")
    return ObjectId(value)


def exact_name_pattern(name: str) -> Dict[str, str]:
    """Case-insensitive whole-string match, with the name taken literally."""
    return {"$regex": f"^{re.escape(name)}$", "$options": "i"}


def serialize_doc(doc: Any) -> Any:
    if doc is None:
        return doc
    if isinstance(doc, ObjectId):
        return str(doc)
    if isinstance(doc, list):
        return [serialize_doc(v) for v in doc]
    if isinstance(doc, dict):
        out = {}
        for k, v in doc.items():
            if k == "_id":
                out["id"] = serialize_doc(v)
            else:
                out[k] = serialize_doc(v)
        return out
    return doc


def create_document(database: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> ObjectId:
    """Insert a document, stamping createdAt/updatedAt, and return its id."""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(by_alias=True)
    else:
        data_dict = dict(data)
    stamp = now()
    data_dict.setdefault("createdAt", stamp)
    data_dict["updatedAt"] = stamp
    result = database[collection_name].insert_one(data_dict)
    return result.inserted_id


def get_documents(database: Database, collection_name: str, filter_dict: Optional[Dict[str, Any]] = None,
                  sort: Optional[List[tuple]] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)
