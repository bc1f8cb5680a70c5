from __future__ import annotations

from dataclasses import dataclass

from returns.result import Failure, Result

from inventory_api.core.domain.model.errors import OrderNotFound, PlaceOrderError
from inventory_api.core.domain.model.order import Order, OrderId, PrincipalId, parse_uuid
from inventory_api.core.domain.service.order_expansion import expand_order
from inventory_api.core.ports.inbound.get_order import (
    GetOrderQuery,
    GetOrderUseCase,
    OrderView,
)
from inventory_api.core.ports.outbound.catalog import ProductCatalog
from inventory_api.core.ports.outbound.orders import OrderRepository


@dataclass(frozen=True)
class GetOrderDeps:
    orders: OrderRepository
    catalog: ProductCatalog


@dataclass(frozen=True)
class GetOrderService(GetOrderUseCase):
    deps: GetOrderDeps

    def get_order(self, query: GetOrderQuery) -> Result[OrderView, PlaceOrderError]:
        return find_owned_order(
            self.deps.orders, PrincipalId(query.principal_id), query.order_id
        ).bind(lambda order: expand_order(self.deps.catalog, order))


def find_owned_order(
    orders: OrderRepository, principal_id: PrincipalId, raw_order_id: str
) -> Result[Order, PlaceOrderError]:
    """Malformed, missing and foreign orders are indistinguishable to the caller."""
    not_found = OrderNotFound(message="order not found", order_id=raw_order_id)

    oid = parse_uuid(raw_order_id)
    if oid is None:
        return Failure(not_found)

    got = orders.get(OrderId(oid))
    if isinstance(got, Failure):
        if isinstance(got.failure(), OrderNotFound):
            return Failure(not_found)
        return got

    if got.unwrap().principal_id != principal_id:
        return Failure(not_found)
    return got
