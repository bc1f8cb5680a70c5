from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from returns.result import Failure, Result, Success
from sqlalchemy import exc, text
from sqlalchemy.engine import Connection, Engine

from inventory_api.adapters.outbound.sql_schema import product_from_row, product_params
from inventory_api.core.domain.model.errors import (
    DuplicateProductName,
    InsufficientStock,
    PlaceOrderError,
    ProductNotFound,
    StockConflict,
    StoreUnavailable,
)
from inventory_api.core.domain.model.order import ProductId
from inventory_api.core.domain.model.product import Product
from inventory_api.core.ports.outbound.catalog import ProductCatalog

# transient driver failures, including the statement and lock timeouts set up
# by create_store_engine; anything else is a bug and propagates
TRANSIENT_ERRORS = (exc.OperationalError, exc.TimeoutError)

_SELECT_PRODUCT = text(
    "SELECT id, name, unit_price, currency, stock_quantity, version "
    "FROM products WHERE id = :id"
)

DECREMENT_STOCK = text("""
    UPDATE products
    SET stock_quantity = stock_quantity - :qty, version = version + 1
    WHERE id = :id AND stock_quantity >= :qty
""")


@dataclass(frozen=True)
class SqlCatalog(ProductCatalog):
    engine: Engine

    def get(self, product_id: ProductId) -> Result[Product, PlaceOrderError]:
        try:
            with self.engine.connect() as conn:
                return _get(conn, product_id)
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("get", e))

    def find_by_name(self, name: str) -> Result[Product | None, PlaceOrderError]:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(
                    text(
                        "SELECT id, name, unit_price, currency, stock_quantity, version "
                        "FROM products WHERE name = :name"
                    ),
                    {"name": name},
                ).fetchone()
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("find_by_name", e))
        return Success(product_from_row(row) if row else None)

    def list(self) -> Result[Sequence[Product], PlaceOrderError]:
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    text(
                        "SELECT id, name, unit_price, currency, stock_quantity, version "
                        "FROM products ORDER BY name"
                    )
                ).fetchall()
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("list", e))
        return Success(tuple(product_from_row(r) for r in rows))

    def add(self, product: Product) -> Result[Product, PlaceOrderError]:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text("""
                        INSERT INTO products
                            (id, name, unit_price, currency, stock_quantity, version)
                        VALUES
                            (:id, :name, :unit_price, :currency, :stock_quantity, :version)
                    """),
                    product_params(product),
                )
        except exc.IntegrityError:
            return Failure(
                DuplicateProductName(
                    message="product name already registered", name=product.name
                )
            )
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("add", e))
        return Success(product)

    def replace(
        self, product: Product, expected_version: int
    ) -> Result[Product, PlaceOrderError]:
        params = product_params(product)
        params["expected_version"] = expected_version
        try:
            with self.engine.begin() as conn:
                updated = conn.execute(
                    text("""
                        UPDATE products
                        SET name = :name, unit_price = :unit_price, currency = :currency,
                            stock_quantity = :stock_quantity, version = :version
                        WHERE id = :id AND version = :expected_version
                    """),
                    params,
                ).rowcount
                if updated == 0:
                    current = _get(conn, product.product_id)
                    if isinstance(current, Failure):
                        return current
                    return Failure(
                        StockConflict(
                            message=(
                                f"expected version {expected_version}, "
                                f"found {current.unwrap().version}"
                            ),
                            product_id=params["id"],
                        )
                    )
        except exc.IntegrityError:
            return Failure(
                DuplicateProductName(
                    message="product name already registered", name=product.name
                )
            )
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("replace", e))
        return Success(product)

    def remove(self, product_id: ProductId) -> Result[Product, PlaceOrderError]:
        try:
            with self.engine.begin() as conn:
                current = _get(conn, product_id)
                if isinstance(current, Success):
                    conn.execute(
                        text("DELETE FROM products WHERE id = :id"),
                        {"id": str(product_id.value)},
                    )
                return current
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("remove", e))

    def decrement_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[int, PlaceOrderError]:
        try:
            with self.engine.begin() as conn:
                return decrement_in(conn, product_id, amount)
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("decrement_stock", e))

    def restore_stock(
        self, product_id: ProductId, amount: int
    ) -> Result[int, PlaceOrderError]:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text("""
                        UPDATE products
                        SET stock_quantity = stock_quantity + :qty, version = version + 1
                        WHERE id = :id
                    """),
                    {"id": str(product_id.value), "qty": amount},
                )
                return _get(conn, product_id).map(lambda p: p.stock_quantity)
        except TRANSIENT_ERRORS as e:
            return Failure(_unavailable("restore_stock", e))


def decrement_in(
    conn: Connection, product_id: ProductId, amount: int
) -> Result[int, PlaceOrderError]:
    """
    Conditional decrement inside the caller's transaction: a single UPDATE whose
    WHERE clause is the stock check, so concurrent writers cannot both pass it.
    """
    updated = conn.execute(
        DECREMENT_STOCK, {"id": str(product_id.value), "qty": amount}
    ).rowcount
    current = _get(conn, product_id)
    if isinstance(current, Failure):
        return current
    product = current.unwrap()
    if updated == 0:
        return Failure(
            InsufficientStock(
                message="stock changed before commit",
                product_id=str(product_id.value),
                available=product.stock_quantity,
                requested=amount,
            )
        )
    return Success(product.stock_quantity)


def _get(conn: Connection, product_id: ProductId) -> Result[Product, PlaceOrderError]:
    row = conn.execute(_SELECT_PRODUCT, {"id": str(product_id.value)}).fetchone()
    if row is None:
        return Failure(
            ProductNotFound(message="product not found", product_id=str(product_id.value))
        )
    return Success(product_from_row(row))


def _unavailable(operation: str, err: Exception) -> StoreUnavailable:
    return StoreUnavailable(message=f"catalog {operation} failed: {type(err).__name__}")
