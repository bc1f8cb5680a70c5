from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Dict, Sequence

from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import (
    OrderNotFound,
    PersistenceError,
    PlaceOrderError,
    StoreUnavailable,
)
from inventory_api.core.domain.model.order import Order, OrderId, PrincipalId
from inventory_api.core.ports.outbound.orders import OrderRepository


@dataclass
class InMemoryOrderRepository(OrderRepository):
    lock_timeout_seconds: float = 5.0
    _store: Dict[str, Order] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def save(self, order: Order) -> Result[OrderId, PlaceOrderError]:
        key = str(order.order_id.value)
        if not self._lock.acquire(timeout=self.lock_timeout_seconds):
            return Failure(_timeout("save"))
        try:
            if key in self._store:
                return Failure(PersistenceError(message="order_id already exists"))
            self._store[key] = order
        finally:
            self._lock.release()
        return Success(order.order_id)

    def get(self, order_id: OrderId) -> Result[Order, PlaceOrderError]:
        key = str(order_id.value)
        order = self._store.get(key)
        if order is None:
            return Failure(OrderNotFound(message="order not found", order_id=key))
        return Success(order)

    def list_for(self, principal_id: PrincipalId) -> Result[Sequence[Order], PlaceOrderError]:
        orders = [o for o in list(self._store.values()) if o.principal_id == principal_id]
        return Success(tuple(orders))

    def delete(self, order_id: OrderId) -> Result[OrderId, PlaceOrderError]:
        key = str(order_id.value)
        if not self._lock.acquire(timeout=self.lock_timeout_seconds):
            return Failure(_timeout("delete"))
        try:
            if self._store.pop(key, None) is None:
                return Failure(OrderNotFound(message="order not found", order_id=key))
        finally:
            self._lock.release()
        return Success(order_id)


def _timeout(operation: str) -> StoreUnavailable:
    return StoreUnavailable(message=f"orders {operation} timed out")
