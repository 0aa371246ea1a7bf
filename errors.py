"""Domain errors raised by the store services.

Every error carries the HTTP status and the message rendered by the exception
handlers in ``main.py`` as ``{"success": false, "message": ...}``.
"""

from typing import Any, Dict, List, Optional


class StoreError(Exception):
    status_code = 500
    message = "Server error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(StoreError):
    status_code = 400
    message = "Validation failed"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors=[{"field": field, "message": message}])


class InvalidRegion(StoreError):
    status_code = 400
    message = "Invalid governorate"

    def __init__(self, governorate: Any = None):
        self.governorate = governorate
        super().__init__()


class EmptyOrder(StoreError):
    status_code = 400
    message = "Order must contain at least one item"


class ProductUnavailable(StoreError):
    status_code = 400

    def __init__(self, product_id: Any):
        self.product_id = str(product_id)
        super().__init__(f"Product {self.product_id} not found or unavailable")


class InsufficientStock(StoreError):
    status_code = 400

    def __init__(self, title: str):
        self.title = title
        super().__init__(f"Insufficient stock for {title}")


class TotalMismatch(StoreError):
    status_code = 400
    message = "Total price mismatch"

    def __init__(self, total: float, expected: float):
        self.total = total
        self.expected = expected
        super().__init__()


class InvalidStatusTransition(StoreError):
    status_code = 400

    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}")


class CollectionNotEmpty(StoreError):
    status_code = 400

    def __init__(self, products_count: int):
        self.products_count = products_count
        super().__init__(
            f"Cannot delete collection with {products_count} product(s). Please delete products first."
        )


class NotFound(StoreError):
    status_code = 404
    message = "Not found"


class Unauthorized(StoreError):
    status_code = 401
    message = "Not authorized to access this route"


class Forbidden(StoreError):
    status_code = 403
    message = "You do not have permission to perform this action"


class ServerError(StoreError):
    status_code = 500
    message = "Server error"


class DatabaseUnavailable(ServerError):
    status_code = 503
    message = "Database not available"
