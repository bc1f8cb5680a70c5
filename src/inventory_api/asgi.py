from __future__ import annotations

from inventory_api.bootstrap import create_asgi_app

app = create_asgi_app()
