"""Tests for PlaceOrderService: validation order, stock checks, commit."""

from uuid import uuid4

import pytest
from returns.result import Failure, Success

from inventory_api.core.domain.model.errors import (
    InsufficientStock,
    InvalidQuantity,
    NoItems,
    ProductNotFound,
    ValidationError,
)
from inventory_api.core.domain.model.order import PrincipalId
from inventory_api.core.ports.inbound.place_order import PlaceOrderCommand, PlaceOrderLine


def _cmd(*lines, principal="user-1"):
    return PlaceOrderCommand(
        principal_id=principal,
        lines=tuple(PlaceOrderLine(product_id=str(pid), quantity=q) for pid, q in lines),
    )


def _pid(product):
    return product.product_id.value


class TestScenario:
    def test_second_order_exceeding_remaining_stock_is_rejected(
        self, usecases, add_product, stock_of
    ):
        p = add_product(stock_quantity=5)

        first = usecases.place_order.place_order(_cmd((_pid(p), 3)))
        assert isinstance(first, Success)
        assert stock_of(p) == 2

        second = usecases.place_order.place_order(_cmd((_pid(p), 3)))
        assert isinstance(second, Failure)
        err = second.failure()
        assert isinstance(err, InsufficientStock)
        assert err.available == 2
        assert err.requested == 3
        assert err.product_id == str(_pid(p))
        assert stock_of(p) == 2

    def test_empty_order_creates_nothing(self, usecases, orders):
        result = usecases.place_order.place_order(_cmd())
        assert isinstance(result.failure(), NoItems)
        assert orders.list_for(PrincipalId("user-1")).unwrap() == ()

    def test_unknown_product_touches_nothing(self, usecases, orders, add_product, stock_of):
        p = add_product(stock_quantity=5)
        missing = uuid4()

        result = usecases.place_order.place_order(_cmd((_pid(p), 1), (missing, 1)))

        err = result.failure()
        assert isinstance(err, ProductNotFound)
        assert err.product_id == str(missing)
        assert stock_of(p) == 5
        assert orders.list_for(PrincipalId("user-1")).unwrap() == ()


class TestValidation:
    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "2", None, True])
    def test_non_positive_or_non_integer_quantity(self, usecases, add_product, quantity):
        p = add_product()
        result = usecases.place_order.place_order(_cmd((_pid(p), quantity)))
        err = result.failure()
        assert isinstance(err, InvalidQuantity)
        assert err.index == 0

    def test_quantity_rule_is_checked_before_product_existence(self, usecases, add_product):
        p = add_product()
        result = usecases.place_order.place_order(_cmd((uuid4(), 1), (_pid(p), 0)))
        err = result.failure()
        assert isinstance(err, InvalidQuantity)
        assert err.index == 1

    def test_existence_is_checked_before_stock(self, usecases, add_product):
        p = add_product(stock_quantity=1)
        missing = uuid4()
        result = usecases.place_order.place_order(_cmd((_pid(p), 50), (missing, 1)))
        assert isinstance(result.failure(), ProductNotFound)

    def test_malformed_product_id_is_not_found(self, usecases):
        result = usecases.place_order.place_order(
            PlaceOrderCommand(
                principal_id="user-1",
                lines=(PlaceOrderLine(product_id="not-a-uuid", quantity=1),),
            )
        )
        err = result.failure()
        assert isinstance(err, ProductNotFound)
        assert err.product_id == "not-a-uuid"

    def test_blank_principal_is_refused(self, usecases, add_product):
        p = add_product()
        result = usecases.place_order.place_order(_cmd((_pid(p), 1), principal="  "))
        assert isinstance(result.failure(), ValidationError)


class TestStock:
    def test_one_short_line_rejects_whole_order(self, usecases, add_product, stock_of):
        a = add_product(name="A", stock_quantity=10)
        b = add_product(name="B", stock_quantity=1)

        result = usecases.place_order.place_order(_cmd((_pid(a), 4), (_pid(b), 2)))

        err = result.failure()
        assert isinstance(err, InsufficientStock)
        assert err.product_id == str(_pid(b))
        assert stock_of(a) == 10
        assert stock_of(b) == 1

    def test_repeated_lines_compete_for_the_same_stock(self, usecases, add_product, stock_of):
        p = add_product(stock_quantity=5)

        result = usecases.place_order.place_order(_cmd((_pid(p), 3), (_pid(p), 3)))

        err = result.failure()
        assert isinstance(err, InsufficientStock)
        assert (err.available, err.requested) == (5, 6)
        assert stock_of(p) == 5

    def test_exact_stock_can_be_ordered(self, usecases, add_product, stock_of):
        p = add_product(stock_quantity=4)
        assert isinstance(usecases.place_order.place_order(_cmd((_pid(p), 4))), Success)
        assert stock_of(p) == 0

    def test_success_decrements_every_line(self, usecases, add_product, stock_of):
        a = add_product(name="A", stock_quantity=10)
        b = add_product(name="B", stock_quantity=7)

        result = usecases.place_order.place_order(_cmd((_pid(a), 4), (_pid(b), 7)))

        assert isinstance(result, Success)
        assert stock_of(a) == 6
        assert stock_of(b) == 0


class TestCreatedOrder:
    def test_order_fields(self, usecases, orders, add_product):
        a = add_product(name="A")
        b = add_product(name="B")

        order = usecases.place_order.place_order(
            _cmd((_pid(b), 2), (_pid(a), 1), principal="user-42")
        ).unwrap()

        assert order.principal_id == PrincipalId("user-42")
        assert [(it.product_id, it.quantity) for it in order.items] == [
            (b.product_id, 2),
            (a.product_id, 1),
        ]
        assert order.placed_at.tzinfo is not None
        assert orders.get(order.order_id).unwrap() == order
