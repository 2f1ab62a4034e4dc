"""Typed failures raised by the storefront consistency core.

Every failure carries a stable ``code`` and the HTTP status the API layer
answers with. Stock failures carry the exact shortfall so the UI can offer a
corrected quantity instead of a generic error.
"""

from typing import Any


class StorefrontError(Exception):
    """Base class for all storefront failures."""

    code = "STOREFRONT_ERROR"
    http_status = 400

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, **self.detail}

    def to_response(self) -> dict:
        """REST error envelope."""
        return {"error": self.to_dict()}


class NotFound(StorefrontError):
    code = "NOT_FOUND"
    http_status = 404

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} {identifier} not found", kind=kind, id=str(identifier))
        self.kind = kind
        self.identifier = str(identifier)


class Unauthenticated(StorefrontError):
    code = "UNAUTHENTICATED"
    http_status = 401

    def __init__(self, message: str = "Sign in required") -> None:
        super().__init__(message)


class InvalidQuantity(StorefrontError):
    code = "INVALID_QUANTITY"
    http_status = 422

    def __init__(self, quantity: int, message: str | None = None) -> None:
        super().__init__(message or f"Quantity must be at least 1, got {quantity}", quantity=quantity)
        self.quantity = quantity


class StockExceeded(StorefrontError):
    """Advisory bound violated before checkout."""

    code = "STOCK_EXCEEDED"
    http_status = 409

    def __init__(self, item_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Only {available} left for item {item_id}, {requested} requested",
            item_id=str(item_id),
            requested=requested,
            available=available,
        )
        self.item_id = str(item_id)
        self.requested = requested
        self.available = available


class InsufficientStock(StorefrontError):
    """Authoritative shortfall found while reserving stock at checkout."""

    code = "INSUFFICIENT_STOCK"
    http_status = 409

    def __init__(self, item_id: str, requested: int, available: int) -> None:
        super().__init__(
            f"Insufficient stock for item {item_id}: {available} available, {requested} requested",
            item_id=str(item_id),
            requested=requested,
            available=available,
        )
        self.item_id = str(item_id)
        self.requested = requested
        self.available = available


class EmptyCart(StorefrontError):
    code = "EMPTY_CART"
    http_status = 422

    def __init__(self, owner_id: str) -> None:
        super().__init__("Cannot check out an empty cart", owner_id=str(owner_id))


class ConflictingUpdate(StorefrontError):
    code = "CONFLICTING_UPDATE"
    http_status = 409

    def __init__(self, key: str, expected_version: int | None = None, actual_version: int | None = None) -> None:
        super().__init__(
            f"{key} was modified concurrently",
            key=key,
            expected_version=expected_version,
            actual_version=actual_version,
        )
        self.key = key
        self.expected_version = expected_version
        self.actual_version = actual_version


class InvalidStatusTransition(StorefrontError):
    code = "INVALID_STATUS_TRANSITION"
    http_status = 422

    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Cannot move order {order_id} from {current} to {target}",
            order_id=str(order_id),
            current=current,
            target=target,
        )
        self.current = current
        self.target = target


class CheckoutTimedOut(StorefrontError):
    code = "CHECKOUT_TIMED_OUT"
    http_status = 503

    def __init__(self, owner_id: str, window_seconds: float) -> None:
        super().__init__(
            f"Checkout did not complete within {window_seconds:g}s",
            owner_id=str(owner_id),
            window_seconds=window_seconds,
        )


class LockTimeout(StorefrontError):
    code = "LOCK_TIMEOUT"
    http_status = 503

    def __init__(self, key: str, timeout: float) -> None:
        super().__init__(f"Timed out after {timeout:g}s waiting for {key}", key=key, timeout=timeout)
        self.key = key
