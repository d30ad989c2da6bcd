"""
Generated files

While not in production the app writes the type module, a JSON snapshot of
the config and the `.env` secrets through the configured writer.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .config import BkndConfig
from .schema import Schema
from .typegen import render_types

logger = logging.getLogger(__name__)

SECRET_MASK = "********"


def file_writer(path: str, content: str) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


def extract_secrets(config: BkndConfig) -> Dict[str, str]:
    secrets = {}
    if config.config.auth.jwt.secret:
        secrets["AUTH_JWT_SECRET"] = config.config.auth.jwt.secret
    return secrets


def config_snapshot(config: BkndConfig, schema: Schema = None) -> Dict[str, Any]:
    """The app config as JSON with secrets masked."""
    snapshot = config.config.model_dump(mode="json")
    if schema is not None:
        snapshot["data"] = schema.data.model_dump(mode="json")
    if snapshot["auth"]["jwt"]["secret"]:
        snapshot["auth"]["jwt"]["secret"] = SECRET_MASK
    return snapshot


async def write_generated_files(config: BkndConfig, schema: Schema) -> list:
    writer = config.writer or file_writer
    outputs = []
    if config.types_file_path:
        outputs.append((config.types_file_path, render_types(schema.data)))
    if config.config_file_path:
        outputs.append((config.config_file_path, json.dumps(config_snapshot(config, schema), indent=2) + "\n"))
    if config.env_file_path:
        lines = [f"{key}={value}" for key, value in extract_secrets(config).items()]
        outputs.append((config.env_file_path, "\n".join(lines) + "\n"))

    for path, content in outputs:
        result = writer(path, content)
        if hasattr(result, "__await__"):
            await result
        logger.info(f"Wrote {path}")
    return [path for path, _ in outputs]
