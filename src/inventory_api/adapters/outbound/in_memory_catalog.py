from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Sequence

from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import (
    DuplicateProductName,
    InsufficientStock,
    PlaceOrderError,
    ProductNotFound,
    StockConflict,
    StoreUnavailable,
)
from inventory_api.core.domain.model.order import ProductId
from inventory_api.core.domain.model.product import Product
from inventory_api.core.ports.outbound.catalog import ProductCatalog


class _LockTimeout(Exception):
    pass


@dataclass
class InMemoryCatalog(ProductCatalog):
    """
    Process-local catalog.

    Stock mutations are serialized per product id; orders touching disjoint
    products never wait on each other. Membership and name changes go through
    ``_index_lock``, always taken before a product lock.
    """

    lock_timeout_seconds: float = 5.0
    _products: Dict[ProductId, Product] = field(default_factory=dict)
    _locks: Dict[ProductId, threading.Lock] = field(default_factory=dict)
    _index_lock: threading.Lock = field(default_factory=threading.Lock)

    @classmethod
    def seeded(
        cls, products: Iterable[Product], lock_timeout_seconds: float = 5.0
    ) -> "InMemoryCatalog":
        catalog = cls(lock_timeout_seconds=lock_timeout_seconds)
        for p in products:
            catalog._products[p.product_id] = p
        return catalog

    # ---- reads -------------------------------------------------------------

    def get(self, product_id: ProductId) -> Result[Product, PlaceOrderError]:
        product = self._products.get(product_id)
        if product is None:
            return Failure(_not_found(product_id))
        return Success(product)

    def find_by_name(self, name: str) -> Result[Product | None, PlaceOrderError]:
        for p in list(self._products.values()):
            if p.name == name:
                return Success(p)
        return Success(None)

    def list(self) -> Result[Sequence[Product], PlaceOrderError]:
        return Success(tuple(sorted(self._products.values(), key=lambda p: p.name)))

    # ---- registry changes --------------------------------------------------

    def add(self, product: Product) -> Result[Product, PlaceOrderError]:
        try:
            with self._acquire(self._index_lock):
                if self._name_taken(product.name, exclude=None):
                    return Failure(
                        DuplicateProductName(
                            message="product name already registered", name=product.name
                        )
                    )
                self._products[product.product_id] = product
                return Success(product)
        except _LockTimeout:
            return Failure(_timeout("add"))

    def replace(
        self, product: Product, expected_version: int
    ) -> Result[Product, PlaceOrderError]:
        pid = product.product_id
        try:
            with self._acquire(self._index_lock), self._acquire(self._lock_for(pid)):
                current = self._products.get(pid)
                if current is None:
                    return Failure(_not_found(pid))
                if current.version != expected_version:
                    return Failure(
                        StockConflict(
                            message=f"expected version {expected_version}, found {current.version}",
                            product_id=str(pid.value),
                        )
                    )
                if self._name_taken(product.name, exclude=pid):
                    return Failure(
                        DuplicateProductName(
                            message="product name already registered", name=product.name
                        )
                    )
                self._products[pid] = product
                return Success(product)
        except _LockTimeout:
            return Failure(_timeout("replace"))

    def remove(self, product_id: ProductId) -> Result[Product, PlaceOrderError]:
        try:
            with self._acquire(self._index_lock), self._acquire(self._lock_for(product_id)):
                product = self._products.pop(product_id, None)
                self._locks.pop(product_id, None)
                if product is None:
                    return Failure(_not_found(product_id))
                return Success(product)
        except _LockTimeout:
            return Failure(_timeout("remove"))

    # ---- stock -------------------------------------------------------------

    def decrement_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[int, PlaceOrderError]:
        try:
            with self._acquire(self._lock_for(product_id)):
                current = self._products.get(product_id)
                if current is None:
                    return Failure(_not_found(product_id))
                if amount > current.stock_quantity:
                    return Failure(
                        InsufficientStock(
                            message="stock changed before commit",
                            product_id=str(product_id.value),
                            available=current.stock_quantity,
                            requested=amount,
                        )
                    )
                updated = current.with_stock(current.stock_quantity - amount)
                self._products[product_id] = updated
                return Success(updated.stock_quantity)
        except _LockTimeout:
            return Failure(_timeout("decrement_stock"))

    def restore_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[int, PlaceOrderError]:
        try:
            with self._acquire(self._lock_for(product_id)):
                current = self._products.get(product_id)
                if current is None:
                    return Failure(_not_found(product_id))
                updated = current.with_stock(current.stock_quantity + amount)
                self._products[product_id] = updated
                return Success(updated.stock_quantity)
        except _LockTimeout:
            return Failure(_timeout("restore_stock"))

    # ---- internals ---------------------------------------------------------

    def _lock_for(self, product_id: ProductId) -> threading.Lock:
        return self._locks.setdefault(product_id, threading.Lock())

    @contextmanager
    def _acquire(self, lock: threading.Lock) -> Iterator[None]:
        if not lock.acquire(timeout=self.lock_timeout_seconds):
            raise _LockTimeout()
        try:
            yield
        finally:
            lock.release()

    def _name_taken(self, name: str, exclude: ProductId | None) -> bool:
        return any(
            p.name == name and p.product_id != exclude for p in self._products.values()
        )


def _not_found(product_id: ProductId) -> ProductNotFound:
    return ProductNotFound(message="product not found", product_id=str(product_id.value))


def _timeout(operation: str) -> StoreUnavailable:
    return StoreUnavailable(message=f"catalog {operation} timed out")
