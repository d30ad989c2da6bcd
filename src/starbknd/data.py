"""
Data API

Typed CRUD over the configured schema. Payloads are validated with pydantic
models generated from the entity fields; queries run through SQLAlchemy core
in Starlette's threadpool so the async callers never block the event loop.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, create_model
from sqlalchemy import Table, and_, func, select, true
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from .auth import (
    DATA_ENTITY_CREATE,
    DATA_ENTITY_DELETE,
    DATA_ENTITY_READ,
    DATA_ENTITY_UPDATE,
    Guard,
)
from .errors import DatabaseError, DataValidationError, RecordNotFoundError
from .schema import Schema

logger = logging.getLogger(__name__)

PY_TYPES = {
    "text": str,
    "boolean": bool,
    "number": float,
    "date": datetime,
}

DEFAULT_LIMIT = 10

Where = Optional[Dict[str, Any]]
Sort = Optional[Union[str, Dict[str, str]]]


@dataclass
class DataResponse:
    data: Any
    meta: Dict[str, Any] = field(default_factory=dict)


def _errors_message(exc: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in e['loc'])}: {e['msg']}" for e in exc.errors())


def _compare(column, op: str, value: Any):
    if op == "$eq":
        return column.is_(None) if value is None else column == value
    if op == "$ne":
        return column.is_not(None) if value is None else column != value
    if op == "$gt":
        return column > value
    if op == "$gte":
        return column >= value
    if op == "$lt":
        return column < value
    if op == "$lte":
        return column <= value
    if op in ("$in", "$nin"):
        if not isinstance(value, (list, tuple)):
            raise DataValidationError(f'Operator "{op}" expects a list')
        return column.in_(value) if op == "$in" else column.not_in(value)
    if op == "$like":
        return column.like(str(value).replace("*", "%"))
    if op == "$isnull":
        return column.is_(None) if value else column.is_not(None)
    raise DataValidationError(f'Unknown operator "{op}"')


class DataApi:
    def __init__(self, engine: Engine, schema: Schema, plugins: Sequence = (),
                 guard: Optional[Guard] = None, role: Optional[str] = None):
        self.engine = engine
        self.schema = schema
        self.plugins = list(plugins)
        self.guard = guard
        self.role = role
        self._models: Dict[tuple, Type[BaseModel]] = {}

    def with_guard(self, guard: Optional[Guard], role: Optional[str] = None) -> "DataApi":
        bound = DataApi(self.engine, self.schema, self.plugins, guard, role)
        bound._models = self._models
        return bound

    def _check(self, permission: str) -> None:
        if self.guard is not None:
            self.guard.check(permission, self.role)

    async def _run(self, func, *args):
        try:
            return await run_in_threadpool(func, *args)
        except SQLAlchemyError as e:
            logger.error(f"Query failed in {func.__name__}: {e}")
            raise DatabaseError("Database error") from e

    # payloads ------------------------------------------------------------ #
    def _payload_model(self, entity: str, partial: bool) -> Type[BaseModel]:
        key = (entity, partial)
        if key not in self._models:
            definitions = {}
            for name, spec in self.schema.fields(entity).items():
                py_type = PY_TYPES[spec.type]
                required = spec.config.required and spec.config.default_value is None
                if partial:
                    definitions[name] = (py_type if spec.config.required else Optional[py_type], None)
                elif required:
                    definitions[name] = (py_type, ...)
                else:
                    definitions[name] = (Optional[py_type], spec.config.default_value)
            suffix = "Update" if partial else "Create"
            self._models[key] = create_model(
                f"{entity.title()}{suffix}",
                __config__=ConfigDict(extra="forbid"),
                **definitions,
            )
        return self._models[key]

    def _validate(self, entity: str, payload: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
        if not isinstance(payload, dict):
            raise DataValidationError("Payload must be an object")
        model = self._payload_model(entity, partial)
        try:
            return model.model_validate(payload).model_dump(exclude_unset=partial)
        except ValidationError as exc:
            raise DataValidationError(_errors_message(exc)) from None

    # queries ------------------------------------------------------------- #
    def _where(self, table: Table, where: Where):
        clauses = []
        for key, condition in (where or {}).items():
            if key not in table.c:
                raise DataValidationError(f'Unknown field "{key}" on entity "{table.name}"')
            column = table.c[key]
            if isinstance(condition, dict):
                clauses.extend(_compare(column, op, value) for op, value in condition.items())
            else:
                clauses.append(_compare(column, "$eq", condition))
        return and_(*clauses) if clauses else true()

    def _order_by(self, table: Table, sort: Sort):
        if sort is None:
            by, direction = "id", "asc"
        elif isinstance(sort, str):
            by = sort.lstrip("-")
            direction = "desc" if sort.startswith("-") else "asc"
        else:
            by, direction = sort.get("by", "id"), sort.get("dir", "asc")
        if by not in table.c:
            raise DataValidationError(f'Unknown sort field "{by}" on entity "{table.name}"')
        if direction not in ("asc", "desc"):
            raise DataValidationError(f'Unknown sort direction "{direction}"')
        column = table.c[by]
        return column.desc() if direction == "desc" else column.asc()

    def _columns(self, table: Table, fields: Optional[List[str]]):
        if not fields:
            return list(table.c)
        unknown = [f for f in fields if f not in table.c]
        if unknown:
            raise DataValidationError(f'Unknown field "{unknown[0]}" on entity "{table.name}"')
        return [table.c.id] + [table.c[f] for f in fields if f != "id"]

    def _fetch_one(self, conn: Connection, table: Table, record_id: int) -> Dict[str, Any]:
        row = conn.execute(select(table).where(table.c.id == record_id)).first()
        if row is None:
            raise RecordNotFoundError(table.name, record_id)
        return dict(row._mapping)

    # sync implementations ------------------------------------------------ #
    def _read_many(self, entity, where, sort, limit, offset, fields) -> DataResponse:
        table = self.schema.table(entity)
        clause = self._where(table, where)
        query = select(*self._columns(table, fields)).where(clause).order_by(self._order_by(table, sort))
        if limit is not None:
            query = query.limit(limit)
        if offset:
            query = query.offset(offset)
        with self.engine.connect() as conn:
            rows = [dict(r._mapping) for r in conn.execute(query)]
            total = conn.execute(select(func.count()).select_from(table).where(clause)).scalar_one()
        meta = {"total": total, "count": len(rows), "limit": limit, "offset": offset}
        return DataResponse(data=rows, meta=meta)

    def _read_one(self, entity, record_id) -> DataResponse:
        table = self.schema.table(entity)
        with self.engine.connect() as conn:
            return DataResponse(data=self._fetch_one(conn, table, record_id))

    def _count(self, entity, where) -> int:
        table = self.schema.table(entity)
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(table).where(self._where(table, where))).scalar_one()

    def _insert(self, conn: Connection, entity: str, table: Table, payload: Dict[str, Any]) -> Dict[str, Any]:
        values = self._validate(entity, payload)
        for plugin in self.plugins:
            values = plugin.before_insert(entity, values)
        result = conn.execute(table.insert().values(**values))
        return self._fetch_one(conn, table, result.inserted_primary_key[0])

    def _create_one(self, entity, payload) -> DataResponse:
        table = self.schema.table(entity)
        with self.engine.begin() as conn:
            return DataResponse(data=self._insert(conn, entity, table, payload))

    def _create_many(self, entity, rows) -> DataResponse:
        table = self.schema.table(entity)
        with self.engine.begin() as conn:
            created = [self._insert(conn, entity, table, row) for row in rows]
        return DataResponse(data=created, meta={"count": len(created)})

    def _update_one(self, entity, record_id, payload) -> DataResponse:
        table = self.schema.table(entity)
        values = self._validate(entity, payload, partial=True)
        for plugin in self.plugins:
            values = plugin.before_update(entity, values)
        with self.engine.begin() as conn:
            self._fetch_one(conn, table, record_id)
            if values:
                conn.execute(table.update().where(table.c.id == record_id).values(**values))
            return DataResponse(data=self._fetch_one(conn, table, record_id))

    def _delete_one(self, entity, record_id) -> DataResponse:
        table = self.schema.table(entity)
        with self.engine.begin() as conn:
            record = self._fetch_one(conn, table, record_id)
            conn.execute(table.delete().where(table.c.id == record_id))
        return DataResponse(data=record)

    # public API ---------------------------------------------------------- #
    async def read_many(self, entity: str, where: Where = None, sort: Sort = None,
                        limit: Optional[int] = DEFAULT_LIMIT, offset: int = 0,
                        select: Optional[List[str]] = None) -> DataResponse:
        self._check(DATA_ENTITY_READ)
        return await self._run(self._read_many, entity, where, sort, limit, offset, select)

    async def read_one(self, entity: str, record_id: int) -> DataResponse:
        self._check(DATA_ENTITY_READ)
        return await self._run(self._read_one, entity, record_id)

    async def count(self, entity: str, where: Where = None) -> int:
        self._check(DATA_ENTITY_READ)
        return await self._run(self._count, entity, where)

    async def exists(self, entity: str, where: Where) -> bool:
        return await self.count(entity, where) > 0

    async def create_one(self, entity: str, data: Dict[str, Any]) -> DataResponse:
        self._check(DATA_ENTITY_CREATE)
        response = await self._run(self._create_one, entity, data)
        logger.debug(f"Created {entity}:{response.data['id']}")
        return response

    async def create_many(self, entity: str, rows: List[Dict[str, Any]]) -> DataResponse:
        self._check(DATA_ENTITY_CREATE)
        return await self._run(self._create_many, entity, rows)

    async def update_one(self, entity: str, record_id: int, data: Dict[str, Any]) -> DataResponse:
        self._check(DATA_ENTITY_UPDATE)
        return await self._run(self._update_one, entity, record_id, data)

    async def delete_one(self, entity: str, record_id: int) -> DataResponse:
        self._check(DATA_ENTITY_DELETE)
        response = await self._run(self._delete_one, entity, record_id)
        logger.debug(f"Deleted {entity}:{record_id}")
        return response


class Mutator:
    """Unguarded writes used while seeding."""

    def __init__(self, data: DataApi, entity: str):
        self.data = data
        self.entity = entity

    async def insert_one(self, values: Dict[str, Any]) -> Dict[str, Any]:
        return (await self.data.create_one(self.entity, values)).data

    async def insert_many(self, rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return (await self.data.create_many(self.entity, rows)).data


class DataStore:
    """`ctx.em` inside seed callbacks."""

    def __init__(self, data: DataApi):
        self.data = data

    def mutator(self, entity: str) -> Mutator:
        self.data.schema.table(entity)
        return Mutator(self.data, entity)
