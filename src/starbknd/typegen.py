"""Render a Python module of TypedDicts describing the schema."""

from .config import DataConfig

TYPE_NAMES = {
    "text": "str",
    "boolean": "bool",
    "number": "float",
    "date": "datetime",
}


def _class_name(entity: str) -> str:
    return "".join(part.capitalize() for part in entity.replace("-", "_").split("_"))


def render_types(data: DataConfig) -> str:
    lines = [
        "# Generated by starbknd. Do not edit.",
        "from datetime import datetime",
        "from typing import TypedDict",
        "",
    ]
    for name, spec in data.entities.items():
        lines += ["", f"class {_class_name(name)}(TypedDict):", "    id: int"]
        for field_name, field_spec in spec.fields.items():
            type_name = TYPE_NAMES[field_spec.type]
            if not field_spec.config.required:
                type_name = f"{type_name} | None"
            lines.append(f"    {field_name}: {type_name}")
        lines.append("")
    lines += ["", "class DB(TypedDict):"]
    if not data.entities:
        lines.append("    pass")
    for name in data.entities:
        lines.append(f"    {name}: {_class_name(name)}")
    return "\n".join(lines) + "\n"
