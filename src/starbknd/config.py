"""
Declarative Configuration

Builders and pydantic models describing a starbknd application: the data
schema, auth and media settings, plugins, seeding and the files written
while the app is being built.

```python
config = code(
    connection=sqlite("file:data.db"),
    config={
        "data": em({"posts": entity("posts", {"content": text().required()})}).to_json(),
    },
)
```
"""

import os
import secrets
import string
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FieldType = Literal["text", "boolean", "number", "date"]


class FieldConfig(BaseModel):
    required: bool = False
    default_value: Any = None
    label: Optional[str] = None


class FieldSpec(BaseModel):
    """A single entity field. Builders return copies so specs can be shared."""
    type: FieldType
    config: FieldConfig = Field(default_factory=FieldConfig)

    def required(self) -> "FieldSpec":
        return self.model_copy(update={"config": self.config.model_copy(update={"required": True})})

    def default(self, value: Any) -> "FieldSpec":
        return self.model_copy(update={"config": self.config.model_copy(update={"default_value": value})})


def text() -> FieldSpec:
    return FieldSpec(type="text")


def boolean() -> FieldSpec:
    return FieldSpec(type="boolean")


def number() -> FieldSpec:
    return FieldSpec(type="number")


def date() -> FieldSpec:
    return FieldSpec(type="date")


class EntitySpec(BaseModel):
    name: str
    type: str = "regular"
    fields: Dict[str, FieldSpec] = Field(default_factory=dict)


def entity(name: str, fields: Dict[str, FieldSpec]) -> EntitySpec:
    return EntitySpec(name=name, fields=dict(fields))


class IndexSpec(BaseModel):
    entity: str
    fields: List[str]
    unique: bool = False


class DataConfig(BaseModel):
    entities: Dict[str, EntitySpec] = Field(default_factory=dict)
    indices: Dict[str, IndexSpec] = Field(default_factory=dict)


class IndexBuilder:
    """Returned by `index(entity)`; `.on(fields)` registers the index."""

    def __init__(self, manager: "EntityManager", entity_spec: EntitySpec):
        self._manager = manager
        self._entity = entity_spec

    def on(self, fields: List[str], unique: bool = False) -> "IndexBuilder":
        name = f"idx_{self._entity.name}_{'_'.join(fields)}"
        self._manager.indices[name] = IndexSpec(entity=self._entity.name, fields=list(fields), unique=unique)
        return self


class EntityManager:
    """
    Collects entity specs and indices.

    `indices` is called as `indices(index, entities)`, e.g.
    `lambda index, e: index(e["posts"]).on(["created_at"])`. Index fields are
    only checked when the schema is built, after plugins added their fields.
    """

    def __init__(self, entities: Dict[str, EntitySpec], indices: Optional[Callable] = None):
        self.entities = dict(entities)
        self.indices: Dict[str, IndexSpec] = {}
        if indices is not None:
            indices(self.index, self.entities)

    def index(self, entity_spec: EntitySpec) -> IndexBuilder:
        return IndexBuilder(self, entity_spec)

    def to_json(self) -> Dict[str, Any]:
        return DataConfig(entities=self.entities, indices=self.indices).model_dump(mode="json")


def em(entities: Dict[str, EntitySpec], indices: Optional[Callable] = None) -> EntityManager:
    return EntityManager(entities, indices)


class JwtConfig(BaseModel):
    issuer: str = "starbknd"
    secret: str = ""
    alg: str = "HS256"


class GuardConfig(BaseModel):
    enabled: bool = False


class RoleConfig(BaseModel):
    permissions: List[str] = Field(default_factory=list)
    is_default: bool = False
    implicit_allow: bool = False


class AuthConfig(BaseModel):
    enabled: bool = False
    allow_register: bool = True
    jwt: JwtConfig = Field(default_factory=JwtConfig)
    guard: GuardConfig = Field(default_factory=GuardConfig)
    roles: Dict[str, RoleConfig] = Field(default_factory=dict)


class MediaConfig(BaseModel):
    enabled: bool = False
    storage_path: str = "uploads"
    body_max_size: Optional[int] = None


class AppConfig(BaseModel):
    data: DataConfig = Field(default_factory=DataConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)


class ConnectionConfig(BaseModel):
    url: str

    @property
    def sqlalchemy_url(self) -> str:
        path = self.url.removeprefix("file:")
        if path in ("", ":memory:"):
            return "sqlite://"
        return f"sqlite:///{path}"

    @property
    def in_memory(self) -> bool:
        return self.sqlalchemy_url == "sqlite://"


def sqlite(url: str) -> ConnectionConfig:
    return ConnectionConfig(url=url)


class SyncSchemaOptions(BaseModel):
    force: bool = False
    drop: bool = False


class AdminOptions(BaseModel):
    admin_basepath: str = "/admin"
    logo_return_path: str = "/"


class Options(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    plugins: List[Any] = Field(default_factory=list)
    seed: Optional[Callable[..., Awaitable[None]]] = None


class BkndConfig(BaseModel):
    """Complete configuration handed to `create_runtime_app`."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    mode: Literal["code"] = "code"
    connection: ConnectionConfig = Field(default_factory=lambda: sqlite("file:data.db"))
    config: AppConfig = Field(default_factory=AppConfig)
    options: Options = Field(default_factory=Options)
    writer: Optional[Callable[[str, str], Any]] = None
    types_file_path: Optional[str] = None
    config_file_path: Optional[str] = None
    env_file_path: Optional[str] = None
    is_production: bool = Field(default_factory=lambda: os.environ.get("PROD") == "true")
    sync_schema: SyncSchemaOptions = Field(default_factory=SyncSchemaOptions)
    admin_options: AdminOptions = Field(default_factory=AdminOptions)


def code(**kwargs) -> BkndConfig:
    """Build a code-mode config; the schema lives in the config, not in the database."""
    return BkndConfig(mode="code", **kwargs)


def secure_random_string(length: int = 64) -> str:
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))
