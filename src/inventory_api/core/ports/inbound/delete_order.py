from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import OrderId


@dataclass(frozen=True)
class DeleteOrderCommand:
    principal_id: str
    order_id: str  # UUID string


class DeleteOrderUseCase(Protocol):
    def delete_order(self, command: DeleteOrderCommand) -> Result[OrderId, PlaceOrderError]: ...
