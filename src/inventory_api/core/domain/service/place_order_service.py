from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Tuple

import structlog
from returns.pipeline import flow
from returns.pointfree import bind
from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import (
    InsufficientStock,
    InvalidQuantity,
    NoItems,
    PlaceOrderError,
    ProductNotFound,
    ValidationError,
)
from inventory_api.core.domain.model.order import (
    LineItem,
    Order,
    OrderId,
    PrincipalId,
    ProductId,
    now_utc,
    parse_uuid,
)
from inventory_api.core.domain.model.product import Product
from inventory_api.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderUseCase,
)
from inventory_api.core.ports.outbound.catalog import ProductCatalog
from inventory_api.core.ports.outbound.commit import OrderCommitter

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PlaceOrderDeps:
    catalog: ProductCatalog
    committer: OrderCommitter


@dataclass(frozen=True)
class PlaceOrderService(PlaceOrderUseCase):
    """
    Validate-all, then commit-all-or-nothing.

    The stock check below is advisory: it gives the caller a precise
    rejection without touching state. The committer re-checks atomically per
    product, so a concurrent order that wins the race still surfaces here as
    ``InsufficientStock`` and never as negative stock.
    """

    deps: PlaceOrderDeps

    def place_order(self, command: PlaceOrderCommand) -> Result[Order, PlaceOrderError]:
        result = flow(
            command,
            _validate_command,
            bind(self._check_catalog),
            bind(_build_order),
            bind(self.deps.committer.commit),
        )

        if isinstance(result, Success):
            order = result.unwrap()
            logger.info(
                "Order placed",
                order_id=str(order.order_id.value),
                principal_id=order.principal_id.value,
                line_count=len(order.items),
            )
        else:
            err = result.failure()
            logger.info(
                "Order rejected",
                principal_id=command.principal_id,
                error=type(err).__name__,
                detail=str(err),
            )
        return result

    def _check_catalog(
        self, cmd: PlaceOrderCommand
    ) -> Result[PlaceOrderCommand, PlaceOrderError]:
        products: list[Product] = []
        for ln in cmd.lines:
            pid = parse_uuid(ln.product_id)
            if pid is None:
                return Failure(
                    ProductNotFound(message="product not found", product_id=ln.product_id)
                )
            got = self.deps.catalog.get(ProductId(pid))
            if isinstance(got, Failure):
                return got
            products.append(got.unwrap())

        # repeated lines for one product compete for the same stock
        requested: dict[ProductId, int] = {}
        for ln, product in zip(cmd.lines, products):
            requested[product.product_id] = requested.get(product.product_id, 0) + ln.quantity
            if requested[product.product_id] > product.stock_quantity:
                return Failure(
                    InsufficientStock(
                        message="requested quantity exceeds stock",
                        product_id=str(product.product_id.value),
                        available=product.stock_quantity,
                        requested=requested[product.product_id],
                    )
                )
        return Success(cmd)


# ---- pure helpers ----------------------------------------------------------


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate_command(
    cmd: PlaceOrderCommand,
) -> Result[PlaceOrderCommand, PlaceOrderError]:
    if not cmd.principal_id.strip():
        return Failure(ValidationError("principal_id is required"))
    if not cmd.lines:
        return Failure(NoItems("at least one line item is required"))

    for i, ln in enumerate(cmd.lines):
        if not _is_positive_int(ln.quantity):
            return Failure(
                InvalidQuantity(
                    message=f"line_items[{i}].quantity must be a positive integer",
                    index=i,
                )
            )

    return Success(cmd)


def _build_order(cmd: PlaceOrderCommand) -> Result[Order, PlaceOrderError]:
    # ids were parsed successfully in _check_catalog
    items: Tuple[LineItem, ...] = tuple(
        LineItem(product_id=ProductId(parse_uuid(ln.product_id)), quantity=ln.quantity)
        for ln in cmd.lines
    )
    return Success(
        Order(
            order_id=OrderId.new(),
            principal_id=PrincipalId(cmd.principal_id),
            items=items,
            placed_at=now_utc(),
        )
    )
