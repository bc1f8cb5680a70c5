from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog
from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import (
    PlaceOrderError,
    ProductNotFound,
    StockInconsistency,
)
from inventory_api.core.domain.model.order import Order, ProductId
from inventory_api.core.ports.outbound.catalog import ProductCatalog
from inventory_api.core.ports.outbound.commit import OrderCommitter
from inventory_api.core.ports.outbound.orders import OrderRepository

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CompensatingOrderCommitter(OrderCommitter):
    """
    Commit for stores without multi-record transactions.

    Decrements are applied one line at a time, in submitted order, through the
    catalog's conditional ``decrement_stock``. The first failure (or a failed
    order insert) restores everything applied so far, in reverse. Once started,
    a commit always runs to the end of its rollback.
    """

    catalog: ProductCatalog
    orders: OrderRepository

    def commit(self, order: Order) -> Result[Order, PlaceOrderError]:
        applied: list[tuple[ProductId, int]] = []

        for item in order.items:
            dec = self.catalog.decrement_stock(item.product_id, item.quantity)
            if isinstance(dec, Failure):
                return self._rollback(order, applied, dec.failure())
            applied.append((item.product_id, item.quantity))

        saved = self.orders.save(order)
        if isinstance(saved, Failure):
            return self._rollback(order, applied, saved.failure())

        return Success(order)

    def _rollback(
        self,
        order: Order,
        applied: Sequence[tuple[ProductId, int]],
        cause: PlaceOrderError,
    ) -> Result[Order, PlaceOrderError]:
        unrestored: list[tuple[str, int]] = []
        for product_id, quantity in reversed(applied):
            restored = self.catalog.restore_stock(product_id, quantity)
            # a product removed meanwhile has no stock left to restore
            if isinstance(restored, Failure) and not isinstance(
                restored.failure(), ProductNotFound
            ):
                unrestored.append((str(product_id.value), quantity))

        if unrestored:
            logger.error(
                "Stock rollback incomplete; manual reconciliation required",
                order_id=str(order.order_id.value),
                cause=str(cause),
                unrestored=unrestored,
            )
            return Failure(
                StockInconsistency(
                    message=f"rollback failed after: {cause}",
                    unrestored=tuple(unrestored),
                )
            )

        if applied:
            logger.warning(
                "Order commit rolled back",
                order_id=str(order.order_id.value),
                cause=type(cause).__name__,
                restored=len(applied),
            )
        return Failure(cause)
