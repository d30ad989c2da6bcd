"""
Schema building and synchronization

Turns the declarative data config into SQLAlchemy tables and brings an
existing database in line with it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Set

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, MetaData, Table, Text, inspect, literal
from sqlalchemy.engine import Engine

from .config import DataConfig, FieldSpec
from .errors import SchemaError, UnknownEntityError

logger = logging.getLogger(__name__)

COLUMN_TYPES = {
    "text": Text,
    "boolean": Boolean,
    "number": Float,
    "date": DateTime,
}


@dataclass
class Schema:
    """Resolved schema: the data config after plugins plus its tables."""
    data: DataConfig
    metadata: MetaData
    tables: Dict[str, Table]

    def table(self, entity: str) -> Table:
        try:
            return self.tables[entity]
        except KeyError:
            raise UnknownEntityError(entity) from None

    def fields(self, entity: str) -> Dict[str, FieldSpec]:
        if entity not in self.data.entities:
            raise UnknownEntityError(entity)
        return self.data.entities[entity].fields


@dataclass
class SyncResult:
    statements: List[str] = field(default_factory=list)
    created: Set[str] = field(default_factory=set)


def _column(name: str, spec: FieldSpec) -> Column:
    column_type = COLUMN_TYPES[spec.type]
    return Column(
        name,
        column_type(),
        nullable=not spec.config.required,
        default=spec.config.default_value,
    )


def build_schema(data: DataConfig, plugins: Iterable = ()) -> Schema:
    """Apply plugins, then build one table per entity and the declared indices."""
    for plugin in plugins:
        data = plugin.extend_schema(data)

    metadata = MetaData()
    tables: Dict[str, Table] = {}
    for name, spec in data.entities.items():
        columns = [Column("id", Integer, primary_key=True, autoincrement=True)]
        for field_name, field_spec in spec.fields.items():
            if field_name == "id":
                raise SchemaError(f'Field "id" is reserved on entity "{name}"')
            columns.append(_column(field_name, field_spec))
        tables[name] = Table(name, metadata, *columns)

    for index_name, index in data.indices.items():
        table = tables.get(index.entity)
        if table is None:
            raise SchemaError(f'Entity "{index.entity}" not found for index "{index_name}"')
        for field_name in index.fields:
            if field_name not in table.c:
                raise SchemaError(f'Field "{field_name}" not found on entity "{index.entity}"')
        Index(index_name, *(table.c[f] for f in index.fields), unique=index.unique)

    return Schema(data=data, metadata=metadata, tables=tables)


def _add_column_ddl(table_name: str, column: Column, dialect) -> str:
    ddl = f'ALTER TABLE "{table_name}" ADD COLUMN "{column.name}" {column.type.compile(dialect=dialect)}'
    if column.default is not None and column.default.arg is not None:
        value = literal(column.default.arg, column.type).compile(dialect=dialect, compile_kwargs={"literal_binds": True})
        ddl += f" DEFAULT {value}"
        # NOT NULL needs a default for the rows already there
        if not column.nullable:
            ddl += " NOT NULL"
    return ddl


def sync_schema(engine: Engine, schema: Schema, force: bool = False, drop: bool = False) -> SyncResult:
    """
    Create missing tables, columns and indices.

    With both `force` and `drop` set, indices, columns and tables that are no
    longer part of the schema are dropped as well. Stale indices go first
    since SQLite refuses to drop a column an index still covers.
    """
    result = SyncResult()
    destructive = force and drop

    with engine.begin() as conn:
        inspector = inspect(conn)
        existing = set(inspector.get_table_names())

        for name, table in schema.tables.items():
            if name not in existing:
                table.create(conn)
                result.created.add(name)
                result.statements.append(f"create table {name}")
                continue

            columns = {c["name"] for c in inspector.get_columns(name)}
            for column in table.columns:
                if column.name not in columns:
                    ddl = _add_column_ddl(name, column, conn.dialect)
                    conn.exec_driver_sql(ddl)
                    result.statements.append(ddl)

            indexes = {i["name"] for i in inspector.get_indexes(name)}
            if destructive:
                wanted = {index.name for index in table.indexes}
                for index_name in sorted(indexes - wanted):
                    conn.exec_driver_sql(f'DROP INDEX "{index_name}"')
                    result.statements.append(f"drop index {index_name}")
                indexes &= wanted

                for column_name in sorted(columns - set(table.c.keys())):
                    ddl = f'ALTER TABLE "{name}" DROP COLUMN "{column_name}"'
                    conn.exec_driver_sql(ddl)
                    result.statements.append(ddl)

            for index in table.indexes:
                if index.name not in indexes:
                    index.create(conn)
                    result.statements.append(f"create index {index.name}")

        if destructive:
            for name in sorted(existing - set(schema.tables)):
                if name.startswith("sqlite_"):
                    continue
                conn.exec_driver_sql(f'DROP TABLE "{name}"')
                result.statements.append(f"drop table {name}")

    for statement in result.statements:
        logger.info(f"Schema sync: {statement}")
    return result
