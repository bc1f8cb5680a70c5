from __future__ import annotations

from typing import Protocol, Sequence

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import Order, OrderId, PrincipalId


class OrderRepository(Protocol):
    def save(self, order: Order) -> Result[OrderId, PlaceOrderError]: ...

    def get(self, order_id: OrderId) -> Result[Order, PlaceOrderError]: ...

    def list_for(self, principal_id: PrincipalId) -> Result[Sequence[Order], PlaceOrderError]: ...

    def delete(self, order_id: OrderId) -> Result[OrderId, PlaceOrderError]: ...
