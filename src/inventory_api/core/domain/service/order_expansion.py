from __future__ import annotations

from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import PlaceOrderError, ProductNotFound
from inventory_api.core.domain.model.order import DEFAULT_CURRENCY, Order, fold_money
from inventory_api.core.ports.inbound.get_order import (
    OrderLineView,
    OrderView,
    ResolvedLine,
    UnresolvedLine,
)
from inventory_api.core.ports.outbound.catalog import ProductCatalog


def expand_order(
    catalog: ProductCatalog, order: Order
) -> Result[OrderView, PlaceOrderError]:
    """
    Join each line item to the current catalog.

    A product that no longer exists becomes an ``UnresolvedLine``; only
    storage errors fail the read. ``total`` skips unresolved lines, so it is a
    lower bound of the order's value whenever ``total_is_lower_bound`` is set.
    """
    lines: list[OrderLineView] = []
    for item in order.items:
        got = catalog.get(item.product_id)
        if isinstance(got, Success):
            product = got.unwrap()
            lines.append(
                ResolvedLine(
                    product=product,
                    quantity=item.quantity,
                    subtotal=product.unit_price * item.quantity,
                )
            )
            continue

        err = got.failure()
        if not isinstance(err, ProductNotFound):
            return Failure(err)
        lines.append(UnresolvedLine(product_id=item.product_id, quantity=item.quantity))

    resolved = [ln for ln in lines if isinstance(ln, ResolvedLine)]
    currency = resolved[0].subtotal.currency if resolved else DEFAULT_CURRENCY
    return Success(
        OrderView(
            order_id=order.order_id,
            principal_id=order.principal_id,
            placed_at=order.placed_at,
            lines=tuple(lines),
            total=fold_money((ln.subtotal for ln in resolved), currency=currency),
            total_is_lower_bound=len(resolved) != len(lines),
        )
    )
