"""
Runtime Application

`create_runtime_app` turns a `BkndConfig` into a built `App`:

1. create the SQLAlchemy engine
2. resolve the schema (plugins first, then indices) and sync it
3. seed tables that were created by this sync
4. write the generated files when not in production
5. build the ASGI server that `App.fetch` dispatches to
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic_core import to_jsonable_python
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import FileResponse, HTMLResponse, JSONResponse
from starlette.routing import Mount, Route
from starlette.types import Receive, Scope, Send

from . import admin
from .api import Api
from .auth import Guard
from .config import BkndConfig
from .data import DEFAULT_LIMIT, DataApi, DataStore
from .errors import BkndError, DataValidationError, SchemaError
from .media import MediaApi
from .schema import Schema, SyncResult, build_schema, sync_schema
from .writer import write_generated_files

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


class SeedContext:
    """Passed to the `seed` callback; `ctx.em.mutator("posts").insert_many([...])`."""

    def __init__(self, app: "App"):
        self.app = app
        self.em = DataStore(app.data)


def _json(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(to_jsonable_python(payload), status_code=status_code)


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise DataValidationError(f'Query parameter "{name}" must be an integer') from None


def _json_param(request: Request, name: str) -> Any:
    raw = request.query_params.get(name)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        raise DataValidationError(f'Query parameter "{name}" must be JSON') from None


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise DataValidationError("Request body must be JSON") from None


class App:
    def __init__(self, config: BkndConfig, context: Optional[Dict[str, Any]] = None):
        self.config = config
        self.context = dict(context or {})
        self.plugins = list(config.options.plugins)
        self.guard = Guard(config.config.auth)
        self.media = MediaApi(config.config.media, Path(config.config.media.storage_path))
        self.engine: Optional[Engine] = None
        self.schema: Optional[Schema] = None
        self.data: Optional[DataApi] = None
        self.server: Optional[Starlette] = None

    @property
    def built(self) -> bool:
        return self.server is not None

    @property
    def admin_basepath(self) -> str:
        return self.config.admin_options.admin_basepath.rstrip("/") or "/admin"

    def _create_engine(self) -> Engine:
        connection = self.config.connection
        if connection.in_memory:
            return create_engine(connection.sqlalchemy_url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
        return create_engine(connection.sqlalchemy_url, connect_args={"check_same_thread": False})

    def _resolve_schema(self) -> Schema:
        data = self.config.config.data
        try:
            return build_schema(data, self.plugins)
        except SchemaError as e:
            # serve the entities without their indices
            logger.error(f"Failed to build schema, continuing without indices: {e}")
            return build_schema(data.model_copy(update={"indices": {}}), self.plugins)

    async def sync(self) -> SyncResult:
        options = self.config.sync_schema
        drop = options.drop and not self.config.is_production
        return await run_in_threadpool(sync_schema, self.engine, self.schema, options.force, drop)

    async def build(self) -> "App":
        logger.info(f"Building app on {self.config.connection.url}")
        self.engine = self._create_engine()
        self.schema = self._resolve_schema()
        self.data = DataApi(self.engine, self.schema, self.plugins)
        if self.config.config.media.enabled:
            self.media.root.mkdir(parents=True, exist_ok=True)

        try:
            result = await self.sync()
        except (SchemaError, SQLAlchemyError) as e:
            logger.error(f"Schema sync failed: {e}")
            result = SyncResult()

        seed = self.config.options.seed
        if seed is not None and result.created:
            logger.info(f"Seeding {', '.join(sorted(result.created))}")
            await seed(SeedContext(self))

        if not self.config.is_production:
            await write_generated_files(self.config, self.schema)

        self.server = self._build_server()
        logger.info(f"App ready with entities: {', '.join(self.schema.tables) or 'none'}")
        return self

    def get_api(self, headers=None) -> Api:
        if not self.built:
            raise RuntimeError("App is not built, call build() first")
        return Api(self, headers)

    async def fetch(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point for everything under /api and the admin basepath."""
        if not self.built:
            raise RuntimeError("App is not built, call build() first")
        await self.server(scope, receive, send)

    __call__ = fetch

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()

    # server ---------------------------------------------------------------- #
    def _build_server(self) -> Starlette:
        api_routes = [
            Route("/system/ping", self._system_ping, methods=["GET"]),
            Route("/system/config", self._system_config, methods=["GET"]),
            Route("/system/schema", self._system_schema, methods=["GET"]),
            Route("/system/sync", self._system_sync, methods=["POST"]),
            Route("/data/entity/{entity}", self._entity_list, methods=["GET"]),
            Route("/data/entity/{entity}", self._entity_create, methods=["POST"]),
            Route("/data/entity/{entity}/count", self._entity_count, methods=["GET"]),
            Route("/data/entity/{entity}/{id:int}", self._entity_read, methods=["GET"]),
            Route("/data/entity/{entity}/{id:int}", self._entity_update, methods=["PATCH"]),
            Route("/data/entity/{entity}/{id:int}", self._entity_delete, methods=["DELETE"]),
            Route("/media/files", self._media_list, methods=["GET"]),
            Route("/media/upload/{name}", self._media_upload, methods=["POST"]),
            Route("/media/file/{name}", self._media_read, methods=["GET"]),
            Route("/media/file/{name}", self._media_delete, methods=["DELETE"]),
        ]
        admin_routes = [
            Route("/", self._admin_index, methods=["GET"]),
            Route("/data/{entity}", self._admin_entity, methods=["GET"]),
        ]
        return Starlette(
            routes=[Mount("/api", routes=api_routes), Mount(self.admin_basepath, routes=admin_routes)],
            exception_handlers={BkndError: self._error_response},
        )

    async def _error_response(self, request: Request, exc: BkndError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    async def _system_ping(self, request: Request):
        return _json(await self.get_api(request.headers).system.ping())

    async def _system_config(self, request: Request):
        return _json(await self.get_api(request.headers).system.config())

    async def _system_schema(self, request: Request):
        return _json(await self.get_api(request.headers).system.schema())

    async def _system_sync(self, request: Request):
        return _json(await self.get_api(request.headers).system.sync())

    async def _entity_list(self, request: Request):
        api = self.get_api(request.headers)
        fields = request.query_params.get("select")
        result = await api.data.read_many(
            request.path_params["entity"],
            where=_json_param(request, "where"),
            sort=request.query_params.get("sort"),
            limit=_int_param(request, "limit", DEFAULT_LIMIT),
            offset=_int_param(request, "offset", 0),
            select=fields.split(",") if fields else None,
        )
        return _json({"data": result.data, "meta": result.meta})

    async def _entity_count(self, request: Request):
        api = self.get_api(request.headers)
        count = await api.data.count(request.path_params["entity"], where=_json_param(request, "where"))
        return _json({"count": count})

    async def _entity_create(self, request: Request):
        api = self.get_api(request.headers)
        result = await api.data.create_one(request.path_params["entity"], await _json_body(request))
        return _json({"data": result.data}, status_code=201)

    async def _entity_read(self, request: Request):
        api = self.get_api(request.headers)
        result = await api.data.read_one(request.path_params["entity"], request.path_params["id"])
        return _json({"data": result.data})

    async def _entity_update(self, request: Request):
        api = self.get_api(request.headers)
        result = await api.data.update_one(
            request.path_params["entity"], request.path_params["id"], await _json_body(request)
        )
        return _json({"data": result.data})

    async def _entity_delete(self, request: Request):
        api = self.get_api(request.headers)
        result = await api.data.delete_one(request.path_params["entity"], request.path_params["id"])
        return _json({"data": result.data})

    async def _media_list(self, request: Request):
        return _json({"data": await self.get_api(request.headers).media.list_files()})

    async def _media_upload(self, request: Request):
        api = self.get_api(request.headers)
        declared = request.headers.get("content-length")
        result = await api.media.upload_stream(
            request.path_params["name"],
            request.stream(),
            declared_size=int(declared) if declared and declared.isdigit() else None,
        )
        return _json({"data": result}, status_code=201)

    async def _media_read(self, request: Request):
        path = await self.get_api(request.headers).media.read(request.path_params["name"])
        return FileResponse(path)

    async def _media_delete(self, request: Request):
        await self.get_api(request.headers).media.delete(request.path_params["name"])
        return _json({"data": {"name": request.path_params["name"]}})

    async def _admin_index(self, request: Request):
        counts = {name: await self.data.count(name) for name in self.schema.tables}
        return HTMLResponse(admin.render_overview(counts, self.config.admin_options))

    async def _admin_entity(self, request: Request):
        entity = request.path_params["entity"]
        fields = ["id", *self.schema.fields(entity)]
        result = await self.data.read_many(entity, sort="-id", limit=50)
        return HTMLResponse(admin.render_entity(entity, fields, result, self.config.admin_options))


async def create_runtime_app(config: BkndConfig, context: Optional[Dict[str, Any]] = None) -> App:
    """Build the runtime app from its declarative config."""
    return await App(config, context).build()
