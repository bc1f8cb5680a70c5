from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Sequence, Union

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import Money, OrderId, PrincipalId, ProductId
from inventory_api.core.domain.model.product import Product


@dataclass(frozen=True)
class GetOrderQuery:
    principal_id: str
    order_id: str  # UUID string


@dataclass(frozen=True)
class ResolvedLine:
    product: Product
    quantity: int
    subtotal: Money


@dataclass(frozen=True)
class UnresolvedLine:
    """The referenced product no longer exists in the catalog."""

    product_id: ProductId
    quantity: int


OrderLineView = Union[ResolvedLine, UnresolvedLine]


@dataclass(frozen=True)
class OrderView:
    order_id: OrderId
    principal_id: PrincipalId
    placed_at: datetime
    lines: Sequence[OrderLineView]
    # Sum over resolved lines only. A lower bound whenever a line is unresolved.
    total: Money
    total_is_lower_bound: bool


class GetOrderUseCase(Protocol):
    def get_order(self, query: GetOrderQuery) -> Result[OrderView, PlaceOrderError]: ...
