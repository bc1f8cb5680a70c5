from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, Sequence

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.product import Product


@dataclass(frozen=True)
class RegisterProductCommand:
    name: str
    unit_price: Decimal
    stock_quantity: int


@dataclass(frozen=True)
class UpdateProductCommand:
    """None means "keep the current value"."""

    product_id: str
    name: str | None = None
    unit_price: Decimal | None = None
    stock_quantity: int | None = None


class ManageCatalogUseCase(Protocol):
    def register_product(
        self, command: RegisterProductCommand
    ) -> Result[Product, PlaceOrderError]: ...

    def update_product(
        self, command: UpdateProductCommand
    ) -> Result[Product, PlaceOrderError]: ...

    def remove_product(self, product_id: str) -> Result[Product, PlaceOrderError]: ...

    def get_product(self, product_id: str) -> Result[Product, PlaceOrderError]: ...

    def list_products(self) -> Result[Sequence[Product], PlaceOrderError]: ...
