from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlaceOrderError(Exception):
    message: str

    def __str__(self) -> str:  # pragma: no cover
        return self.message


@dataclass(frozen=True)
class ValidationError(PlaceOrderError):
    pass


@dataclass(frozen=True)
class NoItems(ValidationError):
    pass


@dataclass(frozen=True)
class InvalidQuantity(ValidationError):
    index: int

    def __str__(self) -> str:  # pragma: no cover
        return f"invalid_quantity: line_items[{self.index}] ({self.message})"


@dataclass(frozen=True)
class NotFound(PlaceOrderError):
    pass


@dataclass(frozen=True)
class ProductNotFound(NotFound):
    product_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"product_not_found: {self.product_id} ({self.message})"


@dataclass(frozen=True)
class OrderNotFound(NotFound):
    order_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"order_not_found: {self.order_id} ({self.message})"


@dataclass(frozen=True)
class InsufficientStock(PlaceOrderError):
    product_id: str
    available: int
    requested: int

    def __str__(self) -> str:  # pragma: no cover
        return (
            f"insufficient_stock: product={self.product_id} "
            f"available={self.available} requested={self.requested} ({self.message})"
        )


@dataclass(frozen=True)
class StockConflict(PlaceOrderError):
    """Optimistic version check lost against a concurrent writer."""

    product_id: str

    def __str__(self) -> str:  # pragma: no cover
        return f"stock_conflict: {self.product_id} ({self.message})"


@dataclass(frozen=True)
class DuplicateProductName(PlaceOrderError):
    name: str

    def __str__(self) -> str:  # pragma: no cover
        return f"duplicate_product_name: {self.name} ({self.message})"


@dataclass(frozen=True)
class PersistenceError(PlaceOrderError):
    pass


@dataclass(frozen=True)
class StoreUnavailable(PersistenceError):
    """Transient: timeout or lost connection. Safe to retry the same request."""


@dataclass(frozen=True)
class StockInconsistency(PersistenceError):
    """
    A rollback could not be completed. The listed decrements were applied and
    not restored; they need out-of-band reconciliation.
    """

    unrestored: tuple[tuple[str, int], ...]

    def __str__(self) -> str:  # pragma: no cover
        pending = ", ".join(f"{pid}:{qty}" for pid, qty in self.unrestored)
        return f"stock_inconsistency: [{pending}] ({self.message})"


@dataclass(frozen=True)
class Unauthorized(PlaceOrderError):
    reason: str  # missing | invalid | expired

    def __str__(self) -> str:  # pragma: no cover
        return f"unauthorized: {self.reason} ({self.message})"
