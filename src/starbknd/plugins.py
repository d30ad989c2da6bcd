"""
Schema plugins

A plugin can extend the data config before tables are built and adjust the
values written on insert and update.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from .config import DataConfig, date


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Plugin:
    """Base plugin. Subclasses override the hooks they need."""
    name: str = "plugin"

    def extend_schema(self, data: DataConfig) -> DataConfig:
        return data

    def before_insert(self, entity: str, values: Dict[str, Any]) -> Dict[str, Any]:
        return values

    def before_update(self, entity: str, values: Dict[str, Any]) -> Dict[str, Any]:
        return values


class TimestampsPlugin(Plugin):
    name = "timestamps"

    def __init__(self, entities: List[str], set_updated_on_create: bool = True):
        self.entities = list(entities)
        self.set_updated_on_create = set_updated_on_create

    def extend_schema(self, data: DataConfig) -> DataConfig:
        data = data.model_copy(deep=True)
        for name in self.entities:
            spec = data.entities.get(name)
            if spec is None:
                continue
            spec.fields.setdefault("created_at", date())
            spec.fields.setdefault("updated_at", date())
        return data

    def before_insert(self, entity: str, values: Dict[str, Any]) -> Dict[str, Any]:
        if entity not in self.entities:
            return values
        now = utc_now()
        values = dict(values)
        if values.get("created_at") is None:
            values["created_at"] = now
        if self.set_updated_on_create and values.get("updated_at") is None:
            values["updated_at"] = now
        return values

    def before_update(self, entity: str, values: Dict[str, Any]) -> Dict[str, Any]:
        if entity not in self.entities:
            return values
        return {**values, "updated_at": utc_now()}


def timestamps(entities: List[str], set_updated_on_create: bool = True) -> TimestampsPlugin:
    return TimestampsPlugin(entities, set_updated_on_create=set_updated_on_create)
