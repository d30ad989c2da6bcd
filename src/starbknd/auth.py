"""
Permission guard

Only the permission lookup lives here. Requests are not authenticated, so
every caller acts as the default role.
"""

from typing import Optional

from .config import AuthConfig, RoleConfig
from .errors import PermissionDeniedError

SYSTEM_ACCESS_API = "system.access.api"
SYSTEM_ACCESS_ADMIN = "system.access.admin"
DATA_DATABASE_SYNC = "data.database.sync"
DATA_ENTITY_CREATE = "data.entity.create"
DATA_ENTITY_READ = "data.entity.read"
DATA_ENTITY_UPDATE = "data.entity.update"
DATA_ENTITY_DELETE = "data.entity.delete"
MEDIA_FILE_UPLOAD = "media.file.upload"
MEDIA_FILE_READ = "media.file.read"
MEDIA_FILE_LIST = "media.file.list"
MEDIA_FILE_DELETE = "media.file.delete"

ALL_PERMISSIONS = [
    SYSTEM_ACCESS_API,
    SYSTEM_ACCESS_ADMIN,
    DATA_DATABASE_SYNC,
    DATA_ENTITY_CREATE,
    DATA_ENTITY_READ,
    DATA_ENTITY_UPDATE,
    DATA_ENTITY_DELETE,
    MEDIA_FILE_UPLOAD,
    MEDIA_FILE_READ,
    MEDIA_FILE_LIST,
    MEDIA_FILE_DELETE,
]


class Guard:
    def __init__(self, config: AuthConfig):
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.enabled and self.config.guard.enabled

    def default_role(self) -> Optional[str]:
        for name, role in self.config.roles.items():
            if role.is_default:
                return name
        return None

    def _role(self, name: Optional[str]) -> Optional[RoleConfig]:
        name = name or self.default_role()
        if name is None:
            return None
        return self.config.roles.get(name)

    def granted(self, permission: str, role: Optional[str] = None) -> bool:
        if not self.enabled:
            return True
        resolved = self._role(role)
        if resolved is None:
            return False
        return resolved.implicit_allow or permission in resolved.permissions

    def check(self, permission: str, role: Optional[str] = None) -> None:
        if not self.granted(permission, role):
            raise PermissionDeniedError(permission)
