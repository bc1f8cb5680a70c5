from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import PlaceOrderError, ValidationError
from inventory_api.core.domain.model.order import Order, PrincipalId
from inventory_api.core.domain.service.order_expansion import expand_order
from inventory_api.core.ports.inbound.get_order import OrderView
from inventory_api.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
)
from inventory_api.core.ports.outbound.catalog import ProductCatalog
from inventory_api.core.ports.outbound.orders import OrderRepository


@dataclass(frozen=True)
class ListOrdersDeps:
    orders: OrderRepository
    catalog: ProductCatalog


@dataclass(frozen=True)
class ListOrdersService(ListOrdersUseCase):
    deps: ListOrdersDeps

    def list_orders(
        self, query: ListOrdersQuery
    ) -> Result[Sequence[OrderView], PlaceOrderError]:
        if not query.principal_id.strip():
            return Failure(ValidationError(message="principal_id is required"))

        return self.deps.orders.list_for(PrincipalId(query.principal_id)).bind(
            self._expand_all
        )

    def _expand_all(
        self, orders: Sequence[Order]
    ) -> Result[Sequence[OrderView], PlaceOrderError]:
        views: list[OrderView] = []
        for o in sorted(orders, key=lambda o: o.placed_at, reverse=True):
            expanded = expand_order(self.deps.catalog, o)
            if isinstance(expanded, Failure):
                return expanded
            views.append(expanded.unwrap())
        return Success(tuple(views))
