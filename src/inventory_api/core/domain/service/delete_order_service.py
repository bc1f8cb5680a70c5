from __future__ import annotations

from dataclasses import dataclass

import structlog
from returns.result import Result, Success

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import OrderId, PrincipalId
from inventory_api.core.domain.service.get_order_service import find_owned_order
from inventory_api.core.ports.inbound.delete_order import (
    DeleteOrderCommand,
    DeleteOrderUseCase,
)
from inventory_api.core.ports.outbound.orders import OrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DeleteOrderDeps:
    orders: OrderRepository


@dataclass(frozen=True)
class DeleteOrderService(DeleteOrderUseCase):
    # Removes the record only. Stock consumed by the order is not returned.
    deps: DeleteOrderDeps

    def delete_order(self, command: DeleteOrderCommand) -> Result[OrderId, PlaceOrderError]:
        result = find_owned_order(
            self.deps.orders, PrincipalId(command.principal_id), command.order_id
        ).bind(lambda order: self.deps.orders.delete(order.order_id))

        if isinstance(result, Success):
            logger.info(
                "Order deleted",
                order_id=str(result.unwrap().value),
                principal_id=command.principal_id,
            )
        return result
