"""Environment-backed settings. Every variable carries the ``INVENTORY_API_`` prefix."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

ENV_PREFIX = "INVENTORY_API_"

_TRUE = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_principal_claim: str = "id"
    database_url: str | None = None  # None -> in-memory stores
    store_timeout_seconds: float = 5.0
    update_max_retries: int = 3
    log_level: str = "INFO"
    log_json: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        values = {
            key[len(ENV_PREFIX):].lower(): value
            for key, value in env.items()
            if key.startswith(ENV_PREFIX)
        }

        secret = values.get("jwt_secret", "").strip()
        if not secret:
            raise ConfigError(f"{ENV_PREFIX}JWT_SECRET is required")

        try:
            return cls(
                jwt_secret=secret,
                jwt_algorithm=values.get("jwt_algorithm", cls.jwt_algorithm),
                jwt_principal_claim=values.get(
                    "jwt_principal_claim", cls.jwt_principal_claim
                ),
                database_url=values.get("database_url") or None,
                store_timeout_seconds=float(
                    values.get("store_timeout_seconds", cls.store_timeout_seconds)
                ),
                update_max_retries=int(
                    values.get("update_max_retries", cls.update_max_retries)
                ),
                log_level=values.get("log_level", cls.log_level).upper(),
                log_json=values.get("log_json", "false").strip().lower() in _TRUE,
                host=values.get("host", cls.host),
                port=int(values.get("port", cls.port)),
            )
        except ValueError as e:
            raise ConfigError(f"invalid setting: {e}") from e
