# catalog/utils/exceptions.py
from typing import Any, Dict, List, Optional


class ShopError(Exception):
    """Base error for the catalog core.

    Carries everything the route layer needs to build a 4xx/5xx response:
    a human readable message, a machine readable code, the HTTP status and
    optional details.
    """

    error_code = "SHOP_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Render as a JSON response body"""
        body = {
            "success": False,
            "error": {
                "code": self.error_code,
                "message": self.message,
            }
        }
        if self.details:
            body["error"]["details"] = self.details
        return body

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code})"


class ValidationError(ShopError):
    """A field violates a schema constraint"""

    error_code = "VALIDATION_ERROR"
    status_code = 400

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        errors: List[Dict[str, Any]] = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        if errors:
            first = errors[0]
            message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
        else:
            message = "Invalid input"
        return cls(message, {"errors": errors})


class ProductNotFoundError(ShopError):
    """The product identifier does not resolve to a record"""

    error_code = "PRODUCT_NOT_FOUND"
    status_code = 404

    def __init__(self, product_id: int, details: Optional[Dict[str, Any]] = None):
        self.product_id = product_id
        super().__init__(f"No product found with id {product_id}", details or {"product_id": product_id})


class InsufficientStockError(ShopError):
    """A decrement would drive stock negative"""

    error_code = "INSUFFICIENT_STOCK"
    status_code = 409

    @classmethod
    def for_product(cls, product_id: int, requested: int, available: int) -> "InsufficientStockError":
        return cls(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            {"items": [{"product_id": product_id, "requested": requested, "available": available}]}
        )


class StorageTransactionError(ShopError):
    """The atomic commit failed and everything was rolled back"""

    error_code = "STORAGE_ERROR"
    status_code = 503


class StorageTimeoutError(StorageTransactionError):
    """The transaction ran past the configured timeout"""

    error_code = "STORAGE_TIMEOUT"
    status_code = 504
