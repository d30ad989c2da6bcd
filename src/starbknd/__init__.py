"""
starbknd - a headless backend runtime for FastHTML apps

Declare a schema with `code(...)`, build it with `create_runtime_app` (or lazily
through `BkndRuntime`) and mount the runtime routes next to your pages.
"""

from .api import Api
from .app import App, create_runtime_app
from .auth import Guard
from .config import (
    AdminOptions,
    AuthConfig,
    BkndConfig,
    MediaConfig,
    Options,
    SyncSchemaOptions,
    boolean,
    code,
    date,
    em,
    entity,
    number,
    secure_random_string,
    sqlite,
    text,
)
from .data import DataApi, DataResponse
from .errors import (
    BkndError,
    DatabaseError,
    DataValidationError,
    MediaError,
    PayloadTooLargeError,
    PermissionDeniedError,
    RecordNotFoundError,
    SchemaError,
    UnknownEntityError,
)
from .plugins import Plugin, timestamps
from .runtime import BkndRuntime
from .writer import file_writer

__all__ = [
    # Config
    'code',
    'sqlite',
    'em',
    'entity',
    'text',
    'boolean',
    'number',
    'date',
    'secure_random_string',
    'BkndConfig',
    'AuthConfig',
    'MediaConfig',
    'Options',
    'SyncSchemaOptions',
    'AdminOptions',
    'Plugin',
    'timestamps',
    'file_writer',

    # Runtime
    'App',
    'Api',
    'DataApi',
    'DataResponse',
    'Guard',
    'BkndRuntime',
    'create_runtime_app',

    # Errors
    'BkndError',
    'DatabaseError',
    'SchemaError',
    'UnknownEntityError',
    'RecordNotFoundError',
    'DataValidationError',
    'PermissionDeniedError',
    'PayloadTooLargeError',
    'MediaError',
]
