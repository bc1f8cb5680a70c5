from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import Order


@dataclass(frozen=True)
class PlaceOrderLine:
    product_id: str
    quantity: Any  # raw client value; the service decides whether it is a positive int


@dataclass(frozen=True)
class PlaceOrderCommand:
    principal_id: str
    lines: Sequence[PlaceOrderLine]


class PlaceOrderUseCase(Protocol):
    def place_order(self, command: PlaceOrderCommand) -> Result[Order, PlaceOrderError]: ...
