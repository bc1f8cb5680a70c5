"""
Relational layout shared by the SQL catalog and order adapters.

Order lines keep a plain ``product_id`` column without a foreign key: removing
a product must never cascade into (or be blocked by) the orders that
reference it.
"""

from __future__ import annotations

import math
from datetime import datetime
from decimal import Decimal
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Column,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
)
from sqlalchemy.engine import Engine, Row, make_url

from inventory_api.core.domain.model.order import (
    LineItem,
    Money,
    Order,
    OrderId,
    PrincipalId,
    ProductId,
)
from inventory_api.core.domain.model.product import Product

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("unit_price", String(32), nullable=False),
    Column("currency", String(3), nullable=False),
    Column("stock_quantity", Integer, nullable=False),
    Column("version", Integer, nullable=False),
    CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
)

orders = Table(
    "orders",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("principal_id", String(255), nullable=False, index=True),
    Column("placed_at", String(40), nullable=False),
)

order_lines = Table(
    "order_lines",
    metadata,
    Column("order_id", String(36), primary_key=True),
    Column("position", Integer, primary_key=True),
    Column("product_id", String(36), nullable=False),
    Column("quantity", Integer, nullable=False),
)


def create_store_engine(database_url: str, timeout_seconds: float) -> Engine:
    """
    Every store call gives up after about ``timeout_seconds``: waiting for a
    pooled connection, for a row lock, or for a running statement. The driver
    reports those as ``OperationalError``, which the adapters map to
    ``StoreUnavailable``.
    """
    url = make_url(database_url)
    connect_args = store_connect_args(url.get_backend_name(), timeout_seconds)
    if url.get_backend_name() == "sqlite":
        return create_engine(url, connect_args=connect_args)
    return create_engine(
        url,
        connect_args=connect_args,
        pool_timeout=timeout_seconds,
        pool_pre_ping=True,
    )


def store_connect_args(backend: str, timeout_seconds: float) -> dict[str, Any]:
    """Driver arguments bounding lock waits and statement time for ``backend``."""
    if backend == "sqlite":
        return {"timeout": timeout_seconds}
    if backend == "postgresql":
        ms = max(1, int(timeout_seconds * 1000))
        return {"options": f"-c statement_timeout={ms} -c lock_timeout={ms}"}
    if backend in ("mysql", "mariadb"):
        seconds = max(1, math.ceil(timeout_seconds))
        return {
            "connect_timeout": seconds,
            "read_timeout": seconds,
            "write_timeout": seconds,
            "init_command": f"SET SESSION innodb_lock_wait_timeout = {seconds}",
        }
    return {}


def init_schema(engine: Engine) -> None:
    metadata.create_all(engine)


# ---- row mapping ------------------------------------------------------------


def product_params(p: Product) -> dict[str, Any]:
    return {
        "id": str(p.product_id.value),
        "name": p.name,
        "unit_price": str(p.unit_price.amount),
        "currency": p.unit_price.currency,
        "stock_quantity": p.stock_quantity,
        "version": p.version,
    }


def product_from_row(row: Row) -> Product:
    return Product(
        product_id=ProductId(UUID(row.id)),
        name=row.name,
        unit_price=Money(Decimal(row.unit_price), row.currency),
        stock_quantity=row.stock_quantity,
        version=row.version,
    )


def order_from_rows(head: Row, lines: Sequence[Row]) -> Order:
    return Order(
        order_id=OrderId(UUID(head.id)),
        principal_id=PrincipalId(head.principal_id),
        items=tuple(
            LineItem(product_id=ProductId(UUID(ln.product_id)), quantity=ln.quantity)
            for ln in sorted(lines, key=lambda r: r.position)
        ),
        placed_at=datetime.fromisoformat(head.placed_at),
    )
