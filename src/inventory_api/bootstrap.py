from __future__ import annotations

from dataclasses import dataclass

import structlog
from fastapi import FastAPI

from inventory_api.adapters.inbound.web.fastapi_app import create_app
from inventory_api.adapters.outbound.in_memory_catalog import InMemoryCatalog
from inventory_api.adapters.outbound.in_memory_orders import InMemoryOrderRepository
from inventory_api.adapters.outbound.jwt_principal import JwtPrincipalResolver
from inventory_api.adapters.outbound.sql_catalog import SqlCatalog
from inventory_api.adapters.outbound.sql_orders import SqlOrderCommitter, SqlOrderRepository
from inventory_api.adapters.outbound.sql_schema import create_store_engine, init_schema
from inventory_api.config import Settings
from inventory_api.core.domain.service.catalog_service import CatalogDeps, CatalogService
from inventory_api.core.domain.service.compensating_commit import (
    CompensatingOrderCommitter,
)
from inventory_api.core.domain.service.delete_order_service import (
    DeleteOrderDeps,
    DeleteOrderService,
)
from inventory_api.core.domain.service.get_order_service import (
    GetOrderDeps,
    GetOrderService,
)
from inventory_api.core.domain.service.list_orders_service import (
    ListOrdersDeps,
    ListOrdersService,
)
from inventory_api.core.domain.service.place_order_service import (
    PlaceOrderDeps,
    PlaceOrderService,
)
from inventory_api.core.ports.outbound.catalog import ProductCatalog
from inventory_api.core.ports.outbound.commit import OrderCommitter
from inventory_api.core.ports.outbound.orders import OrderRepository
from inventory_api.core.ports.outbound.principal import PrincipalResolver
from inventory_api.logs import configure_logging

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UseCases:
    place_order: PlaceOrderService
    get_order: GetOrderService
    list_orders: ListOrdersService
    delete_order: DeleteOrderService
    catalog: CatalogService
    principals: PrincipalResolver


def wire_usecases(
    catalog: ProductCatalog,
    orders: OrderRepository,
    committer: OrderCommitter,
    principals: PrincipalResolver,
    update_max_retries: int = 3,
) -> UseCases:
    return UseCases(
        place_order=PlaceOrderService(PlaceOrderDeps(catalog=catalog, committer=committer)),
        get_order=GetOrderService(GetOrderDeps(orders=orders, catalog=catalog)),
        list_orders=ListOrdersService(ListOrdersDeps(orders=orders, catalog=catalog)),
        delete_order=DeleteOrderService(DeleteOrderDeps(orders=orders)),
        catalog=CatalogService(
            CatalogDeps(catalog=catalog, update_max_retries=update_max_retries)
        ),
        principals=principals,
    )


def build_usecases(settings: Settings) -> UseCases:
    principals = JwtPrincipalResolver(
        secret=settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        principal_claim=settings.jwt_principal_claim,
    )

    if settings.database_url:
        engine = create_store_engine(settings.database_url, settings.store_timeout_seconds)
        init_schema(engine)
        logger.info("Using SQL store", dialect=engine.dialect.name)
        return wire_usecases(
            catalog=SqlCatalog(engine),
            orders=SqlOrderRepository(engine),
            committer=SqlOrderCommitter(engine),
            principals=principals,
            update_max_retries=settings.update_max_retries,
        )

    logger.info("Using in-memory store")
    catalog = InMemoryCatalog(lock_timeout_seconds=settings.store_timeout_seconds)
    orders = InMemoryOrderRepository(lock_timeout_seconds=settings.store_timeout_seconds)
    return wire_usecases(
        catalog=catalog,
        orders=orders,
        committer=CompensatingOrderCommitter(catalog=catalog, orders=orders),
        principals=principals,
        update_max_retries=settings.update_max_retries,
    )


def build_app(usecases: UseCases) -> FastAPI:
    return create_app(
        usecases.place_order,
        usecases.get_order,
        usecases.list_orders,
        usecases.delete_order,
        usecases.catalog,
        usecases.principals,
    )


def create_asgi_app() -> FastAPI:
    settings = Settings.from_env()
    configure_logging(settings.log_level, json_output=settings.log_json)
    return build_app(build_usecases(settings))
