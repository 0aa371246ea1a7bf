"""Order placement, pricing and order lifecycle.

Checkout turns a cart into an order priced from the live catalog. Stock for
every line is taken with a guarded atomic decrement and the order insert
follows; if any step fails, decrements already applied are put back so the
catalog never loses stock without a matching order.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

import structlog
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

import stats
from database import create_document, now, serialize_doc, to_object_id
from errors import (
    EmptyOrder,
    InsufficientStock,
    InvalidStatusTransition,
    NotFound,
    ProductUnavailable,
    TotalMismatch,
    ValidationError,
)
from schemas import Order, OrderIn, OrderItem, OrderStatus
from shipping import shipping_cost_for

logger = structlog.get_logger(__name__)

TOTAL_TOLERANCE = 0.01
MIN_QUANTITY = 1
MAX_QUANTITY = 100

# Forward moves of the order lifecycle; cancellation is allowed from any
# status that has a forward move.
NEXT_STATUS = {
    OrderStatus.PENDING.value: OrderStatus.CONFIRMED.value,
    OrderStatus.CONFIRMED.value: OrderStatus.SHIPPED.value,
    OrderStatus.SHIPPED.value: OrderStatus.DELIVERED.value,
}
TERMINAL_STATUSES = {OrderStatus.DELIVERED.value, OrderStatus.CANCELLED.value}

INVARIANT_FIELDS = {"items", "shippingCost", "total"}


def _run_now(func: Callable, *args: Any) -> None:
    func(*args)


def items_subtotal(items: Iterable[Dict[str, Any]]) -> float:
    return sum(item["priceAtPurchase"] * item["quantity"] for item in items)


def check_order_total(order: Dict[str, Any]) -> None:
    """Reject an order whose total is not its items plus shipping."""
    expected = items_subtotal(order.get("items", [])) + order.get("shippingCost", 0)
    total = order.get("total", 0)
    if abs(total - expected) > TOTAL_TOLERANCE:
        raise TotalMismatch(total, expected)


def can_transition(current: str, requested: str) -> bool:
    if current == requested:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if requested == OrderStatus.CANCELLED.value:
        return True
    return NEXT_STATUS.get(current) == requested


def _price_lines(db: Database, payload: OrderIn) -> Tuple[List[OrderItem], float, Dict[ObjectId, str]]:
    lines = []
    subtotal = 0.0
    requested: Dict[ObjectId, int] = {}
    titles: Dict[ObjectId, str] = {}

    for item in payload.items:
        product_id = to_object_id(item.product_id, "product")
        product = db["product"].find_one({"_id": product_id})
        if not product or not product.get("isActive", True):
            raise ProductUnavailable(item.product_id)

        # a product repeated across lines draws on the same stock
        requested[product_id] = requested.get(product_id, 0) + item.quantity
        if product.get("stock", 0) < requested[product_id]:
            raise InsufficientStock(product["title"])

        price = float(product["price"])
        subtotal += price * item.quantity
        titles[product_id] = product["title"]
        lines.append(OrderItem(
            product=product_id,
            quantity=item.quantity,
            size=item.size,
            color=item.color,
            price_at_purchase=price,
        ))

    return lines, subtotal, titles


def _take_stock(db: Database, line: OrderItem) -> bool:
    taken = db["product"].find_one_and_update(
        {"_id": line.product, "stock": {"$gte": line.quantity}},
        {"$inc": {"stock": -line.quantity, "salesCount": line.quantity}, "$set": {"updatedAt": now()}},
        return_document=ReturnDocument.AFTER,
    )
    return taken is not None


def _release_stock(db: Database, lines: List[OrderItem]) -> None:
    for line in lines:
        db["product"].update_one(
            {"_id": line.product},
            {"$inc": {"stock": line.quantity, "salesCount": -line.quantity}},
        )


def _record_order_stats(db: Database, order_id: ObjectId, total: float) -> None:
    try:
        stats.record_order(db, total)
    except Exception:
        logger.exception("Error updating analytics", order_id=str(order_id))


def place_order(
    db: Database,
    payload: OrderIn,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    schedule: Optional[Callable[..., None]] = None,
) -> Dict[str, Any]:
    """Validate, price and persist an order; return it with products expanded.

    ``schedule`` receives the analytics update (``schedule(func, *args)``);
    FastAPI's ``BackgroundTasks.add_task`` fits. By default it runs inline.
    """
    shipping_cost = shipping_cost_for(payload.governorate)

    if not payload.items:
        raise EmptyOrder()

    for index, item in enumerate(payload.items):
        if not MIN_QUANTITY <= item.quantity <= MAX_QUANTITY:
            raise ValidationError.for_field(f"items.{index}.quantity", "Quantity must be between 1 and 100")

    lines, subtotal, titles = _price_lines(db, payload)
    total = subtotal + shipping_cost

    order = Order(
        customer_name=payload.customer_name,
        phone=payload.phone,
        address=payload.address,
        governorate=payload.governorate,
        items=lines,
        payment_method=payload.payment_method,
        shipping_cost=shipping_cost,
        total=total,
        notes=payload.notes,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    document = order.model_dump(by_alias=True)
    check_order_total(document)

    taken: List[OrderItem] = []
    try:
        for line in lines:
            if not _take_stock(db, line):
                raise InsufficientStock(titles[line.product])
            taken.append(line)
        order_id = create_document(db, "order", document)
    except Exception:
        _release_stock(db, taken)
        logger.warning("Checkout rolled back", restored_lines=len(taken))
        raise

    logger.info("Order placed", order_id=str(order_id), items=len(lines), total=total)
    (schedule or _run_now)(_record_order_stats, db, order_id, total)

    return get_order(db, order_id)


def populate_items(db: Database, orders: List[Dict[str, Any]], fields: Iterable[str] = ("title", "images")) -> List[Dict[str, Any]]:
    """Replace each item's product id with ``{id, <fields>}``; ``None`` when deleted."""
    product_ids = {item["product"] for order in orders for item in order.get("items", [])}
    projection = {field: 1 for field in fields}
    products = {p["_id"]: p for p in db["product"].find({"_id": {"$in": list(product_ids)}}, projection)}
    for order in orders:
        for item in order.get("items", []):
            product = products.get(item["product"])
            item["product"] = serialize_doc(product) if product else None
    return orders


def _load_order(db: Database, order_id: Any) -> Dict[str, Any]:
    order = db["order"].find_one({"_id": to_object_id(order_id, "order")})
    if not order:
        raise NotFound("Order not found")
    return order


def get_order(db: Database, order_id: Any, fields: Iterable[str] = ("title", "images")) -> Dict[str, Any]:
    order = _load_order(db, order_id)
    populate_items(db, [order], fields)
    return serialize_doc(order)


def list_orders(db: Database, status: Optional[str] = None, start_date=None, end_date=None) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {}
    if status:
        query["status"] = status
    if start_date or end_date:
        query["createdAt"] = {}
        if start_date:
            query["createdAt"]["$gte"] = start_date
        if end_date:
            query["createdAt"]["$lte"] = end_date

    orders = list(db["order"].find(query).sort("createdAt", -1))
    populate_items(db, orders)
    return [serialize_doc(order) for order in orders]


def update_status(db: Database, order_id: Any, status: str, strict: bool = True) -> Dict[str, Any]:
    order = _load_order(db, order_id)
    current = order.get("status", OrderStatus.PENDING.value)
    if strict and not can_transition(current, status):
        raise InvalidStatusTransition(current, status)

    db["order"].update_one({"_id": order["_id"]}, {"$set": {"status": status, "updatedAt": now()}})
    logger.info("Order status changed", order_id=str(order["_id"]), previous=current, status=status)
    return get_order(db, order["_id"])


def update_order(db: Database, order_id: Any, changes: Dict[str, Any]) -> Dict[str, Any]:
    """Apply admin edits; totals are re-checked when pricing fields change."""
    order = _load_order(db, order_id)
    if not changes:
        raise ValidationError("No fields to update")

    if INVARIANT_FIELDS & changes.keys():
        check_order_total({**order, **changes})

    changes["updatedAt"] = now()
    db["order"].update_one({"_id": order["_id"]}, {"$set": changes})
    return get_order(db, order["_id"])


def delete_order(db: Database, order_id: Any) -> None:
    order = _load_order(db, order_id)
    db["order"].delete_one({"_id": order["_id"]})
    logger.info("Order deleted", order_id=str(order["_id"]))
