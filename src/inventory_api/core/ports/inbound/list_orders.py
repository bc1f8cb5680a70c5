from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.ports.inbound.get_order import OrderView


@dataclass(frozen=True)
class ListOrdersQuery:
    principal_id: str


class ListOrdersUseCase(Protocol):
    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], PlaceOrderError]: ...
