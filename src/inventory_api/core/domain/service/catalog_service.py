from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Sequence

import structlog
from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import (
    DuplicateProductName,
    PlaceOrderError,
    ProductNotFound,
    StockConflict,
    ValidationError,
)
from inventory_api.core.domain.model.order import Money, ProductId, parse_uuid
from inventory_api.core.domain.model.product import Product
from inventory_api.core.ports.inbound.manage_catalog import (
    ManageCatalogUseCase,
    RegisterProductCommand,
    UpdateProductCommand,
)
from inventory_api.core.ports.outbound.catalog import ProductCatalog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CatalogDeps:
    catalog: ProductCatalog
    update_max_retries: int = 3


@dataclass(frozen=True)
class CatalogService(ManageCatalogUseCase):
    deps: CatalogDeps

    def register_product(
        self, command: RegisterProductCommand
    ) -> Result[Product, PlaceOrderError]:
        v = _validate_registration(command)
        if isinstance(v, Failure):
            return v

        name = command.name.strip()
        existing = self.deps.catalog.find_by_name(name)
        if isinstance(existing, Failure):
            return existing
        if existing.unwrap() is not None:
            return Failure(
                DuplicateProductName(message="product name already registered", name=name)
            )

        product = Product(
            product_id=ProductId.new(),
            name=name,
            unit_price=Money.of(command.unit_price),
            stock_quantity=command.stock_quantity,
        )
        result = self.deps.catalog.add(product)
        if isinstance(result, Success):
            logger.info(
                "Product registered",
                product_id=str(product.product_id.value),
                name=name,
                stock_quantity=product.stock_quantity,
            )
        return result

    def update_product(
        self, command: UpdateProductCommand
    ) -> Result[Product, PlaceOrderError]:
        pid = _parse_product_id(command.product_id)
        if isinstance(pid, Failure):
            return pid
        v = _validate_update(command)
        if isinstance(v, Failure):
            return v

        name = command.name.strip() if command.name is not None else None
        price = Money.of(command.unit_price) if command.unit_price is not None else None

        # stock may move under us (orders); re-read and retry on a lost CAS
        attempts = max(1, self.deps.update_max_retries)
        last: Result[Product, PlaceOrderError] = Failure(
            StockConflict(message="concurrent update", product_id=command.product_id)
        )
        for _ in range(attempts):
            got = self.deps.catalog.get(pid.unwrap())
            if isinstance(got, Failure):
                return got
            current = got.unwrap()

            if name is not None and name != current.name:
                clash = self.deps.catalog.find_by_name(name)
                if isinstance(clash, Failure):
                    return clash
                if clash.unwrap() is not None:
                    return Failure(
                        DuplicateProductName(
                            message="product name already registered", name=name
                        )
                    )

            revised = current.revised(
                name=name, unit_price=price, stock_quantity=command.stock_quantity
            )
            last = self.deps.catalog.replace(revised, expected_version=current.version)
            if not (isinstance(last, Failure) and isinstance(last.failure(), StockConflict)):
                break

        if isinstance(last, Success):
            logger.info("Product updated", product_id=command.product_id)
        return last

    def remove_product(self, product_id: str) -> Result[Product, PlaceOrderError]:
        # orders referencing the product are left untouched
        result = _parse_product_id(product_id).bind(self.deps.catalog.remove)
        if isinstance(result, Success):
            logger.info("Product removed", product_id=product_id)
        return result

    def get_product(self, product_id: str) -> Result[Product, PlaceOrderError]:
        return _parse_product_id(product_id).bind(self.deps.catalog.get)

    def list_products(self) -> Result[Sequence[Product], PlaceOrderError]:
        return self.deps.catalog.list()


# ---- pure helpers ----------------------------------------------------------


def _parse_product_id(raw: str) -> Result[ProductId, PlaceOrderError]:
    pid = parse_uuid(raw)
    if pid is None:
        return Failure(ProductNotFound(message="product not found", product_id=raw))
    return Success(ProductId(pid))


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _price_error(value: object) -> str | None:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return "unit_price must be a decimal number"
    if not price.is_finite() or price < 0:
        return "unit_price must be >= 0"
    return None


def _validate_registration(
    cmd: RegisterProductCommand,
) -> Result[RegisterProductCommand, PlaceOrderError]:
    if not cmd.name or not cmd.name.strip():
        return Failure(ValidationError("name is required"))
    price_err = _price_error(cmd.unit_price)
    if price_err:
        return Failure(ValidationError(price_err))
    if not _is_int(cmd.stock_quantity) or cmd.stock_quantity <= 0:
        return Failure(ValidationError("stock_quantity must be a positive integer"))
    return Success(cmd)


def _validate_update(
    cmd: UpdateProductCommand,
) -> Result[UpdateProductCommand, PlaceOrderError]:
    if cmd.name is not None and not cmd.name.strip():
        return Failure(ValidationError("name must be non-empty when provided"))
    if cmd.unit_price is not None:
        price_err = _price_error(cmd.unit_price)
        if price_err:
            return Failure(ValidationError(price_err))
    if cmd.stock_quantity is not None and (
        not _is_int(cmd.stock_quantity) or cmd.stock_quantity < 0
    ):
        return Failure(ValidationError("stock_quantity must be an integer >= 0"))
    return Success(cmd)
