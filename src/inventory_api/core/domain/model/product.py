from __future__ import annotations

from dataclasses import dataclass, replace

from inventory_api.core.domain.model.order import Money, ProductId


@dataclass(frozen=True)
class Product:
    """
    Catalog record. ``version`` is bumped on every mutation and is the
    compare-and-swap predicate for writers that read before they write.
    """

    product_id: ProductId
    name: str
    unit_price: Money
    stock_quantity: int
    version: int = 1

    def with_stock(self, stock_quantity: int) -> "Product":
        return replace(self, stock_quantity=stock_quantity, version=self.version + 1)

    def revised(
        self,
        name: str | None = None,
        unit_price: Money | None = None,
        stock_quantity: int | None = None,
    ) -> "Product":
        return replace(
            self,
            name=self.name if name is None else name,
            unit_price=self.unit_price if unit_price is None else unit_price,
            stock_quantity=(
                self.stock_quantity if stock_quantity is None else stock_quantity
            ),
            version=self.version + 1,
        )
