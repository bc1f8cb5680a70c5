from __future__ import annotations

import uvicorn

from inventory_api.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(
        "inventory_api.bootstrap:create_asgi_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
