from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import ProductId
from inventory_api.core.domain.model.product import Product


class ProductCatalog(Protocol):
    """
    Stock is only ever reduced through ``decrement_stock``, which must be an
    atomic conditional update: decrement by N only if current >= N, otherwise
    fail without touching the record.
    """

    def get(self, product_id: ProductId) -> Result[Product, PlaceOrderError]: ...

    def find_by_name(self, name: str) -> Result[Product | None, PlaceOrderError]: ...

    def list(self) -> Result[Sequence[Product], PlaceOrderError]: ...

    def add(self, product: Product) -> Result[Product, PlaceOrderError]: ...

    def replace(
        self, product: Product, expected_version: int
    ) -> Result[Product, PlaceOrderError]: ...

    def remove(self, product_id: ProductId) -> Result[Product, PlaceOrderError]: ...

    def decrement_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[int, PlaceOrderError]: ...

    def restore_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[int, PlaceOrderError]: ...
