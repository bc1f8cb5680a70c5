from __future__ import annotations

from typing import Protocol

from returns.result import Result

from inventory_api.core.domain.model.errors import PlaceOrderError
from inventory_api.core.domain.model.order import PrincipalId


class PrincipalResolver(Protocol):
    """Failure is always ``Unauthorized`` with reason missing | invalid | expired."""

    def resolve(self, authorization: str | None) -> Result[PrincipalId, PlaceOrderError]: ...
