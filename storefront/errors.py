# storefront/errors.py
from typing import Any, Dict, List, Optional


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message}


class ValidationError(StorefrontError):
    """Malformed input. ``errors`` carries one entry per offending field."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "errors": self.errors}


class NotFound(StorefrontError):
    status_code = 404


class EmptyCart(StorefrontError):
    status_code = 400

    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class ProductNotFound(StorefrontError):
    status_code = 400

    def __init__(self, product_id: int):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class ServiceUnavailable(StorefrontError):
    status_code = 503


class UpstreamError(StorefrontError):
    status_code = 502
