from returns.result import Success

from inventory_api.adapters.outbound.in_memory_catalog import InMemoryCatalog
from inventory_api.adapters.outbound.in_memory_orders import InMemoryOrderRepository
from inventory_api.core.domain.model.errors import (
    DuplicateProductName,
    InsufficientStock,
    OrderNotFound,
    PersistenceError,
    ProductNotFound,
    StockConflict,
    StoreUnavailable,
)
from inventory_api.core.domain.model.order import (
    LineItem,
    Money,
    Order,
    OrderId,
    PrincipalId,
    ProductId,
    now_utc,
)
from inventory_api.core.domain.model.product import Product


def _product(name="Cabo", stock_quantity=4):
    return Product(
        product_id=ProductId.new(),
        name=name,
        unit_price=Money.of("5.00"),
        stock_quantity=stock_quantity,
    )


def test_decrement_to_exactly_zero():
    p = _product(stock_quantity=4)
    catalog = InMemoryCatalog.seeded([p])

    assert catalog.decrement_stock(p.product_id, 4) == Success(0)
    assert catalog.get(p.product_id).unwrap().version == p.version + 1


def test_insufficient_decrement_changes_nothing():
    p = _product(stock_quantity=4)
    catalog = InMemoryCatalog.seeded([p])

    err = catalog.decrement_stock(p.product_id, 5).failure()

    assert isinstance(err, InsufficientStock)
    assert (err.available, err.requested) == (4, 5)
    assert catalog.get(p.product_id).unwrap() == p


def test_unknown_product():
    catalog = InMemoryCatalog()
    missing = ProductId.new()
    assert isinstance(catalog.get(missing).failure(), ProductNotFound)
    assert isinstance(catalog.decrement_stock(missing, 1).failure(), ProductNotFound)
    assert isinstance(catalog.restore_stock(missing, 1).failure(), ProductNotFound)


def test_restore_adds_back():
    p = _product(stock_quantity=4)
    catalog = InMemoryCatalog.seeded([p])
    catalog.decrement_stock(p.product_id, 3).unwrap()
    assert catalog.restore_stock(p.product_id, 3) == Success(4)


def test_duplicate_name_on_add():
    catalog = InMemoryCatalog.seeded([_product(name="Cabo")])
    assert isinstance(catalog.add(_product(name="Cabo")).failure(), DuplicateProductName)


def test_replace_checks_version():
    p = _product()
    catalog = InMemoryCatalog.seeded([p])
    catalog.decrement_stock(p.product_id, 1).unwrap()

    stale = p.revised(name="Cabo USB")
    err = catalog.replace(stale, expected_version=p.version).failure()

    assert isinstance(err, StockConflict)
    assert catalog.get(p.product_id).unwrap().name == "Cabo"


def test_held_product_lock_times_out():
    p = _product()
    catalog = InMemoryCatalog.seeded([p], lock_timeout_seconds=0.05)
    lock = catalog._lock_for(p.product_id)

    lock.acquire()
    try:
        result = catalog.decrement_stock(p.product_id, 1)
    finally:
        lock.release()

    assert isinstance(result.failure(), StoreUnavailable)
    assert catalog.get(p.product_id).unwrap().stock_quantity == p.stock_quantity


def test_other_products_are_not_blocked_by_a_held_lock():
    a, b = _product(name="A"), _product(name="B")
    catalog = InMemoryCatalog.seeded([a, b], lock_timeout_seconds=0.05)
    lock = catalog._lock_for(a.product_id)

    lock.acquire()
    try:
        result = catalog.decrement_stock(b.product_id, 1)
    finally:
        lock.release()

    assert result == Success(b.stock_quantity - 1)


class TestInMemoryOrders:
    def _order(self, principal="user-1"):
        return Order(
            order_id=OrderId.new(),
            principal_id=PrincipalId(principal),
            items=(LineItem(ProductId.new(), 1),),
            placed_at=now_utc(),
        )

    def test_save_get_delete(self):
        repo = InMemoryOrderRepository()
        order = self._order()

        assert repo.save(order) == Success(order.order_id)
        assert repo.get(order.order_id) == Success(order)
        assert repo.delete(order.order_id) == Success(order.order_id)
        assert isinstance(repo.get(order.order_id).failure(), OrderNotFound)
        assert isinstance(repo.delete(order.order_id).failure(), OrderNotFound)

    def test_duplicate_save(self):
        repo = InMemoryOrderRepository()
        order = self._order()
        repo.save(order).unwrap()
        assert isinstance(repo.save(order).failure(), PersistenceError)

    def test_list_for_filters_by_principal(self):
        repo = InMemoryOrderRepository()
        mine, theirs = self._order("user-1"), self._order("user-2")
        repo.save(mine).unwrap()
        repo.save(theirs).unwrap()

        assert repo.list_for(PrincipalId("user-1")) == Success((mine,))

    def test_held_lock_times_out(self):
        repo = InMemoryOrderRepository(lock_timeout_seconds=0.05)
        order = self._order()

        repo._lock.acquire()
        try:
            saved = repo.save(order)
            deleted = repo.delete(order.order_id)
        finally:
            repo._lock.release()

        assert isinstance(saved.failure(), StoreUnavailable)
        assert isinstance(deleted.failure(), StoreUnavailable)
        assert isinstance(repo.get(order.order_id).failure(), OrderNotFound)
