from datetime import datetime, timedelta, timezone
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

from inventory_api.adapters.outbound.in_memory_catalog import InMemoryCatalog
from inventory_api.adapters.outbound.in_memory_orders import InMemoryOrderRepository
from inventory_api.adapters.outbound.jwt_principal import JwtPrincipalResolver
from inventory_api.bootstrap import build_app, wire_usecases
from inventory_api.core.domain.model.order import Money, ProductId
from inventory_api.core.domain.model.product import Product
from inventory_api.core.domain.service.compensating_commit import (
    CompensatingOrderCommitter,
)

JWT_SECRET = "test-secret-0123456789abcdef-0123456789abcdef"


def pytest_collection_modifyitems(config, items):
    """Mark tests by the directory they live in."""
    for item in items:
        test_path = str(Path(item.fspath))
        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/adapters/" in test_path:
            item.add_marker(pytest.mark.adapters)
        elif "/web/" in test_path:
            item.add_marker(pytest.mark.web)


@pytest.fixture()
def catalog():
    return InMemoryCatalog(lock_timeout_seconds=1.0)


@pytest.fixture()
def orders():
    return InMemoryOrderRepository(lock_timeout_seconds=1.0)


@pytest.fixture()
def principals():
    return JwtPrincipalResolver(secret=JWT_SECRET)


@pytest.fixture()
def usecases(catalog, orders, principals):
    return wire_usecases(
        catalog=catalog,
        orders=orders,
        committer=CompensatingOrderCommitter(catalog=catalog, orders=orders),
        principals=principals,
    )


@pytest.fixture()
def add_product(catalog):
    """Put a product straight into the catalog and return it."""

    def _add(name="Teclado", unit_price="10.00", stock_quantity=5):
        product = Product(
            product_id=ProductId.new(),
            name=name,
            unit_price=Money.of(unit_price),
            stock_quantity=stock_quantity,
        )
        catalog.add(product).unwrap()
        return product

    return _add


@pytest.fixture()
def stock_of(catalog):
    def _stock(product):
        return catalog.get(product.product_id).unwrap().stock_quantity

    return _stock


@pytest.fixture()
def make_token():
    def _token(principal="user-1", expires_in=timedelta(hours=2), **claims):
        payload = {"id": principal, **claims}
        if expires_in is not None:
            payload["exp"] = datetime.now(timezone.utc) + expires_in
        return jwt.encode(payload, JWT_SECRET, algorithm="HS256")

    return _token


@pytest.fixture()
def auth_header(make_token):
    def _header(principal="user-1"):
        return {"Authorization": f"Bearer {make_token(principal)}"}

    return _header


@pytest.fixture()
def client(usecases):
    return TestClient(build_app(usecases))
