"""Collections and products."""

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.database import Database

from database import create_document, exact_name_pattern, get_documents, now, serialize_doc, to_object_id
from errors import CollectionNotEmpty, NotFound, ValidationError
from schemas import Collection, Product, field_errors

logger = structlog.get_logger(__name__)

PRODUCT_SORTS = {
    "price-asc": [("price", 1)],
    "price-desc": [("price", -1)],
    "popular": [("salesCount", -1)],
}
NEWEST_FIRST = [("createdAt", -1)]


# Collections

def _ensure_unique_name(db: Database, name: str, exclude_id=None) -> None:
    query: Dict[str, Any] = {"name": exact_name_pattern(name)}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if db["collection"].find_one(query):
        raise ValidationError.for_field("name", "Collection with this name already exists")


def list_collections(db: Database) -> List[Dict[str, Any]]:
    return serialize_doc(get_documents(db, "collection", {"isActive": True}, sort=NEWEST_FIRST))


def get_collection(db: Database, collection_id: Any) -> Dict[str, Any]:
    collection = db["collection"].find_one({"_id": to_object_id(collection_id, "collection")})
    if not collection or not collection.get("isActive", True):
        raise NotFound("Collection not found")
    return serialize_doc(collection)


def create_collection(db: Database, data: Collection) -> Dict[str, Any]:
    _ensure_unique_name(db, data.name)
    collection_id = create_document(db, "collection", data)
    logger.info("Collection created", collection_id=str(collection_id), name=data.name)
    return serialize_doc(db["collection"].find_one({"_id": collection_id}))


def update_collection(db: Database, collection_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    oid = to_object_id(collection_id, "collection")
    if not db["collection"].find_one({"_id": oid}):
        raise NotFound("Collection not found")
    if "name" in changes:
        _ensure_unique_name(db, changes["name"], exclude_id=oid)

    changes["updatedAt"] = now()
    updated = db["collection"].find_one_and_update(
        {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
    )
    return serialize_doc(updated)


def delete_collection(db: Database, collection_id: Any) -> None:
    oid = to_object_id(collection_id, "collection")
    if not db["collection"].find_one({"_id": oid}):
        raise NotFound("Collection not found")

    products_count = db["product"].count_documents({"collection": oid})
    if products_count > 0:
        raise CollectionNotEmpty(products_count)

    db["collection"].delete_one({"_id": oid})
    logger.info("Collection deleted", collection_id=str(oid))


# Products

def _with_collection(db: Database, products: List[Dict[str, Any]], fields=("name",)) -> List[Dict[str, Any]]:
    collection_ids = list({p["collection"] for p in products if p.get("collection")})
    projection = {field: 1 for field in fields}
    collections = {c["_id"]: c for c in db["collection"].find({"_id": {"$in": collection_ids}}, projection)}
    for product in products:
        owner = collections.get(product.get("collection"))
        product["collection"] = serialize_doc(owner) if owner else None
    return [serialize_doc(p) for p in products]


def _require_collection(db: Database, collection_id: Any):
    try:
        oid = to_object_id(collection_id, "collection")
    except ValidationError:
        raise ValidationError.for_field("collection", "Invalid collection ID")
    if not db["collection"].find_one({"_id": oid}):
        raise ValidationError.for_field("collection", "Invalid collection ID")
    return oid


def _validated_product(fields: Dict[str, Any]) -> Product:
    try:
        return Product.model_validate(fields)
    except PydanticValidationError as exc:
        raise ValidationError(errors=field_errors(exc))


def list_products(db: Database, collection: Optional[str] = None, min_price: Optional[float] = None,
                  max_price: Optional[float] = None, sort: Optional[str] = None) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {"isActive": True}
    if collection:
        query["collection"] = to_object_id(collection, "collection")

    price_filter: Dict[str, Any] = {}
    if min_price is not None:
        price_filter["$gte"] = float(min_price)
    if max_price is not None:
        price_filter["$lte"] = float(max_price)
    if price_filter:
        query["price"] = price_filter

    products = get_documents(db, "product", query, sort=PRODUCT_SORTS.get(sort, NEWEST_FIRST))
    return _with_collection(db, products)


def get_product(db: Database, product_id: Any) -> Dict[str, Any]:
    product = db["product"].find_one({"_id": to_object_id(product_id, "product")})
    if not product or not product.get("isActive", True):
        raise NotFound("Product not found")
    return _with_collection(db, [product], fields=("name", "description"))[0]


def create_product(db: Database, fields: Dict[str, Any]) -> Dict[str, Any]:
    fields = dict(fields)
    fields["collection"] = _require_collection(db, fields.get("collection"))
    product = _validated_product(fields)

    product_id = create_document(db, "product", product)
    logger.info("Product created", product_id=str(product_id), title=product.title)
    return _with_collection(db, [db["product"].find_one({"_id": product_id})])[0]


def update_product(db: Database, product_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    oid = to_object_id(product_id, "product")
    existing = db["product"].find_one({"_id": oid})
    if not existing:
        raise NotFound("Product not found")
    if not changes:
        raise ValidationError("No fields to update")

    changes = dict(changes)
    if "collection" in changes and str(changes["collection"]) != str(existing.get("collection")):
        changes["collection"] = _require_collection(db, changes["collection"])
    elif "collection" in changes:
        changes["collection"] = existing["collection"]

    # validate the merged document so cross-field rules (originalPrice > price) hold
    merged = _validated_product({**existing, **changes}).model_dump(by_alias=True)
    update = {key: merged[key] for key in changes if key in merged}
    update["updatedAt"] = now()

    updated = db["product"].find_one_and_update(
        {"_id": oid}, {"$set": update}, return_document=ReturnDocument.AFTER
    )
    return _with_collection(db, [updated])[0]


def delete_product(db: Database, product_id: Any) -> None:
    oid = to_object_id(product_id, "product")
    result = db["product"].delete_one({"_id": oid})
    if result.deleted_count == 0:
        raise NotFound("Product not found")
    logger.info("Product deleted", product_id=str(oid))
