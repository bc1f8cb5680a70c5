from __future__ import annotations

from dataclasses import fields
from decimal import Decimal
from typing import Any, Awaitable, Callable, Sequence

import structlog
from fastapi import Depends, FastAPI, Header, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field
from returns.result import Success

from inventory_api.core.domain.model.errors import (
    DuplicateProductName,
    InsufficientStock,
    NotFound,
    PersistenceError,
    PlaceOrderError,
    StockConflict,
    StockInconsistency,
    StoreUnavailable,
    Unauthorized,
    ValidationError,
)
from inventory_api.core.domain.model.order import Money, Order, PrincipalId
from inventory_api.core.domain.model.product import Product
from inventory_api.core.ports.inbound.delete_order import (
    DeleteOrderCommand,
    DeleteOrderUseCase,
)
from inventory_api.core.ports.inbound.get_order import (
    GetOrderQuery,
    GetOrderUseCase,
    OrderView,
    ResolvedLine,
    UnresolvedLine,
)
from inventory_api.core.ports.inbound.list_orders import (
    ListOrdersQuery,
    ListOrdersUseCase,
)
from inventory_api.core.ports.inbound.manage_catalog import (
    ManageCatalogUseCase,
    RegisterProductCommand,
    UpdateProductCommand,
)
from inventory_api.core.ports.inbound.place_order import (
    PlaceOrderCommand,
    PlaceOrderLine,
    PlaceOrderUseCase,
)
from inventory_api.core.ports.outbound.principal import PrincipalResolver
from inventory_api.logs import bind_request_context, clear_request_context

logger = structlog.get_logger(__name__)

# ---- HTTP DTOs (adapter layer) ---------------------------------------------


class LineItemIn(BaseModel):
    product_id: str = Field(
        validation_alias=AliasChoices("product_id", "productId"),
        examples=["0b6e4f1c-2f0a-4a57-9d3e-6f1f3b1b8d11"],
    )
    # raw JSON value: the service owns the positive-integer rule
    quantity: Any = Field(examples=[2])


class PlaceOrderRequest(BaseModel):
    line_items: list[LineItemIn] = Field(
        validation_alias=AliasChoices("line_items", "lineItems")
    )


class RegisterProductRequest(BaseModel):
    name: str = Field(examples=["Teclado"])
    unit_price: Decimal = Field(examples=["149.90"])
    stock_quantity: int = Field(examples=[10])


class UpdateProductRequest(BaseModel):
    name: str | None = None
    unit_price: Decimal | None = None
    stock_quantity: int | None = None


class ProductOut(BaseModel):
    product_id: str
    name: str
    unit_price: str
    currency: str
    stock_quantity: int
    version: int


class ProductListResponse(BaseModel):
    items: list[ProductOut]


class OrderLineOut(BaseModel):
    product_id: str
    quantity: int
    resolved: bool
    product: ProductOut | None = None
    subtotal: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    principal_id: str
    placed_at: str
    line_items: list[OrderLineOut]
    total: str
    currency: str
    total_is_lower_bound: bool


class OrderListResponse(BaseModel):
    items: list[OrderResponse]


class DeletedOrderResponse(BaseModel):
    order_id: str


class ErrorResponse(BaseModel):
    type: str
    message: str
    details: dict[str, Any] | list[dict[str, Any]] | None = None


# ---- mapping helpers -------------------------------------------------------


def _map_error_to_http(err: PlaceOrderError) -> tuple[int, ErrorResponse]:
    extra = {f.name: getattr(err, f.name) for f in fields(err) if f.name != "message"}
    body = ErrorResponse(type=type(err).__name__, message=str(err), details=extra or None)

    if isinstance(err, Unauthorized):
        return 401, body

    if isinstance(err, ValidationError):
        return 400, body

    if isinstance(err, NotFound):
        return 404, body

    if isinstance(err, (InsufficientStock, DuplicateProductName)):
        return 400, body

    if isinstance(err, StockConflict):
        return 409, body

    if isinstance(err, StoreUnavailable):
        return 503, body

    if isinstance(err, (StockInconsistency, PersistenceError)):
        return 500, body

    return 500, body


def _product_out(p: Product) -> ProductOut:
    return ProductOut(
        product_id=str(p.product_id.value),
        name=p.name,
        unit_price=str(p.unit_price.amount),
        currency=p.unit_price.currency,
        stock_quantity=p.stock_quantity,
        version=p.version,
    )


def _order_out(view: OrderView) -> OrderResponse:
    lines: list[OrderLineOut] = []
    for ln in view.lines:
        if isinstance(ln, ResolvedLine):
            lines.append(
                OrderLineOut(
                    product_id=str(ln.product.product_id.value),
                    quantity=ln.quantity,
                    resolved=True,
                    product=_product_out(ln.product),
                    subtotal=str(ln.subtotal.amount),
                )
            )
        else:
            lines.append(
                OrderLineOut(
                    product_id=str(ln.product_id.value),
                    quantity=ln.quantity,
                    resolved=False,
                )
            )
    return OrderResponse(
        order_id=str(view.order_id.value),
        principal_id=view.principal_id.value,
        placed_at=view.placed_at.isoformat(),
        line_items=lines,
        total=str(view.total.amount),
        currency=view.total.currency,
        total_is_lower_bound=view.total_is_lower_bound,
    )


def _unexpanded_view(order: Order) -> OrderView:
    return OrderView(
        order_id=order.order_id,
        principal_id=order.principal_id,
        placed_at=order.placed_at,
        lines=tuple(
            UnresolvedLine(product_id=it.product_id, quantity=it.quantity)
            for it in order.items
        ),
        total=Money.of(0),
        total_is_lower_bound=True,
    )


def _principal_dependency(
    principals: PrincipalResolver,
) -> Callable[..., Awaitable[PrincipalId]]:
    # async: runs in the request's own context, so the binding reaches the
    # sync endpoint's worker thread
    async def current_principal(
        authorization: str | None = Header(None, alias="Authorization"),
    ) -> PrincipalId:
        result = principals.resolve(authorization)
        if isinstance(result, Success):
            principal = result.unwrap()
            bind_request_context(principal_id=principal.value)
            return principal
        raise result.failure()

    return current_principal


_ERRORS: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


def create_app(
    place_order_uc: PlaceOrderUseCase,
    get_order_uc: GetOrderUseCase,
    list_orders_uc: ListOrdersUseCase,
    delete_order_uc: DeleteOrderUseCase,
    catalog_uc: ManageCatalogUseCase,
    principals: PrincipalResolver,
) -> FastAPI:
    app = FastAPI(title="inventory_api")
    current_principal = _principal_dependency(principals)

    # --- logging context -----------------------------------------------------

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        clear_request_context()
        bind_request_context(method=request.method, path=request.url.path)
        return await call_next(request)

    # --- exception handlers --------------------------------------------------

    @app.exception_handler(PlaceOrderError)
    async def handle_domain_error(_: Request, exc: PlaceOrderError) -> JSONResponse:
        status, body = _map_error_to_http(exc)
        if status >= 500:
            logger.error("Request failed", error=type(exc).__name__, detail=str(exc))
        return JSONResponse(status_code=status, content=body.model_dump(mode="json"))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        _: Request, exc: RequestValidationError
    ) -> JSONResponse:
        body = ErrorResponse(
            type="RequestValidationError",
            message="invalid request",
            details=[_jsonable_error(e) for e in exc.errors()],
        )
        return JSONResponse(status_code=400, content=body.model_dump(mode="json"))

    @app.exception_handler(Exception)
    async def handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", error=type(exc).__name__)
        body = ErrorResponse(type=type(exc).__name__, message="internal server error")
        return JSONResponse(status_code=500, content=body.model_dump())

    # --- routes --------------------------------------------------------------

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    # orders

    @app.post(
        "/orders",
        response_model=OrderResponse,
        status_code=201,
        responses=_ERRORS,
    )
    def place_order(
        req: PlaceOrderRequest,
        response: Response,
        principal: PrincipalId = Depends(current_principal),
    ) -> Any:
        cmd = PlaceOrderCommand(
            principal_id=principal.value,
            lines=tuple(
                PlaceOrderLine(product_id=ln.product_id, quantity=ln.quantity)
                for ln in req.line_items
            ),
        )
        placed = place_order_uc.place_order(cmd)
        if not isinstance(placed, Success):
            raise placed.failure()

        order = placed.unwrap()
        order_id = str(order.order_id.value)
        response.headers["Location"] = f"/orders/{order_id}"

        # the order is committed from here on: a failed read-back must not
        # turn into an error response the client would retry
        result = get_order_uc.get_order(
            GetOrderQuery(principal_id=principal.value, order_id=order_id)
        )
        if isinstance(result, Success):
            return _order_out(result.unwrap())

        logger.warning(
            "Order read-back failed; returning unexpanded order",
            order_id=order_id,
            error=type(result.failure()).__name__,
        )
        return _order_out(_unexpanded_view(order))

    @app.get("/orders", response_model=OrderListResponse, responses=_ERRORS)
    def list_orders(principal: PrincipalId = Depends(current_principal)) -> Any:
        result = list_orders_uc.list_orders(ListOrdersQuery(principal_id=principal.value))
        if isinstance(result, Success):
            return OrderListResponse(items=[_order_out(v) for v in result.unwrap()])

        raise result.failure()

    @app.get("/orders/{order_id}", response_model=OrderResponse, responses=_ERRORS)
    def get_order(
        order_id: str, principal: PrincipalId = Depends(current_principal)
    ) -> Any:
        result = get_order_uc.get_order(
            GetOrderQuery(principal_id=principal.value, order_id=order_id)
        )
        if isinstance(result, Success):
            return _order_out(result.unwrap())

        raise result.failure()

    @app.delete(
        "/orders/{order_id}", response_model=DeletedOrderResponse, responses=_ERRORS
    )
    def delete_order(
        order_id: str, principal: PrincipalId = Depends(current_principal)
    ) -> Any:
        result = delete_order_uc.delete_order(
            DeleteOrderCommand(principal_id=principal.value, order_id=order_id)
        )
        if isinstance(result, Success):
            return DeletedOrderResponse(order_id=str(result.unwrap().value))

        raise result.failure()

    # products

    @app.post(
        "/products", response_model=ProductOut, status_code=201, responses=_ERRORS
    )
    def register_product(
        req: RegisterProductRequest,
        response: Response,
        _principal: PrincipalId = Depends(current_principal),
    ) -> Any:
        result = catalog_uc.register_product(
            RegisterProductCommand(
                name=req.name,
                unit_price=req.unit_price,
                stock_quantity=req.stock_quantity,
            )
        )
        if isinstance(result, Success):
            product = result.unwrap()
            response.headers["Location"] = f"/products/{product.product_id.value}"
            return _product_out(product)

        raise result.failure()

    @app.get("/products", response_model=ProductListResponse, responses=_ERRORS)
    def list_products(_principal: PrincipalId = Depends(current_principal)) -> Any:
        result = catalog_uc.list_products()
        if isinstance(result, Success):
            return ProductListResponse(items=_products_out(result.unwrap()))

        raise result.failure()

    @app.get("/products/{product_id}", response_model=ProductOut, responses=_ERRORS)
    def get_product(
        product_id: str, _principal: PrincipalId = Depends(current_principal)
    ) -> Any:
        result = catalog_uc.get_product(product_id)
        if isinstance(result, Success):
            return _product_out(result.unwrap())

        raise result.failure()

    @app.put(
        "/products/{product_id}",
        response_model=ProductOut,
        responses={**_ERRORS, 409: {"model": ErrorResponse}},
    )
    def update_product(
        product_id: str,
        req: UpdateProductRequest,
        _principal: PrincipalId = Depends(current_principal),
    ) -> Any:
        result = catalog_uc.update_product(
            UpdateProductCommand(
                product_id=product_id,
                name=req.name,
                unit_price=req.unit_price,
                stock_quantity=req.stock_quantity,
            )
        )
        if isinstance(result, Success):
            return _product_out(result.unwrap())

        raise result.failure()

    @app.delete("/products/{product_id}", response_model=ProductOut, responses=_ERRORS)
    def remove_product(
        product_id: str, _principal: PrincipalId = Depends(current_principal)
    ) -> Any:
        result = catalog_uc.remove_product(product_id)
        if isinstance(result, Success):
            return _product_out(result.unwrap())

        raise result.failure()

    return app


def _products_out(products: Sequence[Product]) -> list[ProductOut]:
    return [_product_out(p) for p in products]


def _jsonable_error(err: dict[str, Any]) -> dict[str, Any]:
    # pydantic puts the raw exception object under ctx for some error types
    return {k: v for k, v in err.items() if k != "ctx"}
