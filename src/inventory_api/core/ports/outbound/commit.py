from __future__ import annotations

from typing import Protocol

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import Order


class OrderCommitter(Protocol):
    """
    Applies every stock decrement of ``order`` and stores the order as one
    unit. On failure no stock has changed and no order exists, unless the
    failure is ``StockInconsistency``.
    """

    def commit(self, order: Order) -> Result[Order, PlaceOrderError]: ...
