from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import structlog
from returns.result import Failure, Result, Success
from sqlalchemy import exc, text
from sqlalchemy.engine import Connection, Engine

from inventory_api.adapters.outbound.sql_catalog import TRANSIENT_ERRORS, decrement_in
from inventory_api.adapters.outbound.sql_schema import order_from_rows
from inventory_api.core.domain.model.errors import (
    OrderNotFound,
    PersistenceError,
    PlaceOrderError,
    StoreUnavailable,
)
from inventory_api.core.domain.model.order import Order, OrderId, PrincipalId
from inventory_api.core.ports.outbound.commit import OrderCommitter
from inventory_api.core.ports.outbound.orders import OrderRepository

logger = structlog.get_logger(__name__)


class _Abort(Exception):
    """Raised inside a transaction block to roll it back with a domain error."""

    def __init__(self, error: PlaceOrderError) -> None:
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class SqlOrderRepository(OrderRepository):
    engine: Engine

    def save(self, order: Order) -> Result[OrderId, PlaceOrderError]:
        try:
            with self.engine.begin() as conn:
                _insert_order(conn, order)
        except exc.IntegrityError:
            return Failure(PersistenceError(message="order_id already exists"))
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("save", e))
        return Success(order.order_id)

    def get(self, order_id: OrderId) -> Result[Order, PlaceOrderError]:
        key = str(order_id.value)
        try:
            with self.engine.connect() as conn:
                head = conn.execute(
                    text("SELECT id, principal_id, placed_at FROM orders WHERE id = :id"),
                    {"id": key},
                ).fetchone()
                if head is None:
                    return Failure(OrderNotFound(message="order not found", order_id=key))
                lines = _select_lines(conn, [key]).get(key, [])
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("get", e))
        return Success(order_from_rows(head, lines))

    def list_for(self, principal_id: PrincipalId) -> Result[Sequence[Order], PlaceOrderError]:
        try:
            with self.engine.connect() as conn:
                heads = conn.execute(
                    text("""
                        SELECT id, principal_id, placed_at FROM orders
                        WHERE principal_id = :principal_id
                        ORDER BY placed_at DESC
                    """),
                    {"principal_id": principal_id.value},
                ).fetchall()
                lines = _select_lines(conn, [h.id for h in heads])
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("list_for", e))
        return Success(tuple(order_from_rows(h, lines.get(h.id, [])) for h in heads))

    def delete(self, order_id: OrderId) -> Result[OrderId, PlaceOrderError]:
        key = str(order_id.value)
        try:
            with self.engine.begin() as conn:
                conn.execute(text("DELETE FROM order_lines WHERE order_id = :id"), {"id": key})
                deleted = conn.execute(
                    text("DELETE FROM orders WHERE id = :id"), {"id": key}
                ).rowcount
                if deleted == 0:
                    raise _Abort(OrderNotFound(message="order not found", order_id=key))
        except _Abort as abort:
            return Failure(abort.error)
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("delete", e))
        return Success(order_id)


@dataclass(frozen=True)
class SqlOrderCommitter(OrderCommitter):
    """
    All stock decrements and the order insert in one database transaction.
    Any failure rolls the whole unit back, so no compensation is needed.
    """

    engine: Engine

    def commit(self, order: Order) -> Result[Order, PlaceOrderError]:
        try:
            with self.engine.begin() as conn:
                for item in order.items:
                    dec = decrement_in(conn, item.product_id, item.quantity)
                    if isinstance(dec, Failure):
                        raise _Abort(dec.failure())
                _insert_order(conn, order)
        except _Abort as abort:
            logger.info(
                "Order transaction rolled back",
                order_id=str(order.order_id.value),
                cause=type(abort.error).__name__,
            )
            return Failure(abort.error)
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("commit", e))
        return Success(order)


def _insert_order(conn: Connection, order: Order) -> None:
    key = str(order.order_id.value)
    conn.execute(
        text(
            "INSERT INTO orders (id, principal_id, placed_at) "
            "VALUES (:id, :principal_id, :placed_at)"
        ),
        {
            "id": key,
            "principal_id": order.principal_id.value,
            "placed_at": order.placed_at.isoformat(),
        },
    )
    conn.execute(
        text(
            "INSERT INTO order_lines (order_id, position, product_id, quantity) "
            "VALUES (:order_id, :position, :product_id, :quantity)"
        ),
        [
            {
                "order_id": key,
                "position": i,
                "product_id": str(item.product_id.value),
                "quantity": item.quantity,
            }
            for i, item in enumerate(order.items)
        ],
    )


def _select_lines(conn: Connection, order_ids: Sequence[str]) -> dict[str, list]:
    if not order_ids:
        return {}
    params = {f"id{i}": oid for i, oid in enumerate(order_ids)}
    placeholders = ", ".join(f":{name}" for name in params)
    rows = conn.execute(
        text(
            "SELECT order_id, position, product_id, quantity FROM order_lines "
            f"WHERE order_id IN ({placeholders})"
        ),
        params,
    ).fetchall()
    grouped: dict[str, list] = {}
    for r in rows:
        grouped.setdefault(r.order_id, []).append(r)
    return grouped


def _unavailable(operation: str, err: Exception) -> StoreUnavailable:
    return StoreUnavailable(message=f"orders {operation} failed: {type(err).__name__}")
