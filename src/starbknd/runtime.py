"""
Router glue

One `BkndRuntime` per example app: it builds the runtime app on first use,
caches it for the life of the process and provides the passthrough routes
the FastHTML app mounts.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from starlette.requests import Request
from starlette.routing import BaseRoute, Mount, Route
from starlette.staticfiles import StaticFiles
from starlette.types import Receive, Scope, Send

from .api import Api
from .app import STATIC_DIR, App, create_runtime_app
from .config import BkndConfig

logger = logging.getLogger(__name__)


class BkndFetch:
    """ASGI endpoint forwarding the untouched request to the runtime app."""

    def __init__(self, runtime: "BkndRuntime"):
        self.runtime = runtime

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.runtime.fetch(scope, receive, send)


class BkndRuntime:
    def __init__(self, config: BkndConfig, context: Optional[Dict[str, Any]] = None):
        self.config = config
        self.context = dict(context or {})
        self._app: Optional[App] = None
        self._lock = asyncio.Lock()

    async def get_app(self) -> App:
        if self._app is None:
            async with self._lock:
                if self._app is None:
                    self._app = await create_runtime_app(self.config, self.context)
        return self._app

    async def fetch(self, scope: Scope, receive: Receive, send: Send) -> None:
        app = await self.get_app()
        await app.fetch(scope, receive, send)

    async def get_api(self, request: Request, verify: bool = False) -> Api:
        app = await self.get_app()
        api = app.get_api(request.headers)
        if verify:
            await api.verify_auth()
        return api

    def routes(self) -> List[BaseRoute]:
        uploads = Path(self.config.config.media.storage_path)
        admin = self.config.admin_options.admin_basepath.rstrip("/") or "/admin"
        fetch = BkndFetch(self)
        return [
            Mount("/assets", app=StaticFiles(directory=STATIC_DIR), name="bknd_assets"),
            Mount("/uploads", app=StaticFiles(directory=uploads, check_dir=False), name="bknd_uploads"),
            Route("/api/{path:path}", fetch),
            Route(admin, fetch, methods=["GET"]),
            Route(admin + "/{path:path}", fetch, methods=["GET"]),
        ]

    def mount(self, app) -> None:
        """Put the passthrough routes ahead of the app's own routes."""
        app.router.routes[0:0] = self.routes()

    def close(self) -> None:
        if self._app is not None:
            self._app.close()
            self._app = None
            logger.info("Runtime app closed")
