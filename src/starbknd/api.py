"""Request-bound API facade handed to route handlers."""

from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from .auth import DATA_DATABASE_SYNC, SYSTEM_ACCESS_API, Guard
from .writer import config_snapshot

if TYPE_CHECKING:
    from .app import App


class SystemApi:
    def __init__(self, app: "App", guard: Guard, role: Optional[str] = None):
        self.app = app
        self.guard = guard
        self.role = role

    async def ping(self) -> Dict[str, Any]:
        return {"pong": True}

    async def config(self) -> Dict[str, Any]:
        self.guard.check(SYSTEM_ACCESS_API, self.role)
        return config_snapshot(self.app.config, self.app.schema)

    async def schema(self) -> Dict[str, Any]:
        self.guard.check(SYSTEM_ACCESS_API, self.role)
        return {
            name: {field_name: field_spec.model_dump(mode="json") for field_name, field_spec in spec.fields.items()}
            for name, spec in self.app.schema.data.entities.items()
        }

    async def sync(self) -> Dict[str, Any]:
        self.guard.check(DATA_DATABASE_SYNC, self.role)
        result = await self.app.sync()
        return {"statements": result.statements, "created": sorted(result.created)}


class Api:
    """
    Everything a handler needs, bound to the caller's headers.

    Requests are never authenticated, so the guard always sees the default role.
    """

    def __init__(self, app: "App", headers: Optional[Mapping[str, str]] = None):
        self.app = app
        self.headers = dict(headers or {})
        self.role: Optional[str] = None
        self.user = None
        self.verified = False
        self.data = app.data.with_guard(app.guard, self.role)
        self.media = app.media.with_guard(app.guard, self.role)
        self.system = SystemApi(app, app.guard, self.role)

    async def verify_auth(self) -> Dict[str, Any]:
        self.verified = True
        return {"user": self.user, "role": self.role or self.app.guard.default_role()}
