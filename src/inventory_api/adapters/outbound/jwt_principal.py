from __future__ import annotations

from dataclasses import dataclass

import jwt
from returns.result import Failure, Result, Success

from inventory_api.core.domain.model.errors import PlaceOrderError, Unauthorized
from inventory_api.core.domain.model.order import PrincipalId
from inventory_api.core.ports.outbound.principal import PrincipalResolver


@dataclass(frozen=True)
class JwtPrincipalResolver(PrincipalResolver):
    """
    Verifies ``Authorization: Bearer <jwt>`` and reads the principal from a
    single claim. Tokens are issued elsewhere; nothing here signs them.
    """

    secret: str
    algorithm: str = "HS256"
    principal_claim: str = "id"

    def resolve(self, authorization: str | None) -> Result[PrincipalId, PlaceOrderError]:
        token = _bearer_token(authorization)
        if token is None:
            return Failure(Unauthorized(message="bearer token not found", reason="missing"))

        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            return Failure(Unauthorized(message="token expired", reason="expired"))
        except jwt.InvalidTokenError:
            return Failure(Unauthorized(message="token invalid", reason="invalid"))

        principal = claims.get(self.principal_claim)
        if principal is None or not str(principal).strip():
            return Failure(
                Unauthorized(
                    message=f"token has no '{self.principal_claim}' claim", reason="invalid"
                )
            )
        return Success(PrincipalId(str(principal)))


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
