"""
Local media storage

Files live flat in the configured storage directory, which the router serves
under `/uploads/*`.
"""

import logging
from pathlib import Path
from typing import Any, AsyncIterable, Dict, List, Optional

from starlette.concurrency import run_in_threadpool

from .auth import MEDIA_FILE_DELETE, MEDIA_FILE_LIST, MEDIA_FILE_READ, MEDIA_FILE_UPLOAD, Guard
from .config import MediaConfig
from .errors import DataValidationError, MediaError, PayloadTooLargeError

logger = logging.getLogger(__name__)


class MediaApi:
    def __init__(self, config: MediaConfig, root: Path, guard: Optional[Guard] = None, role: Optional[str] = None):
        self.config = config
        self.root = root
        self.guard = guard
        self.role = role

    def _check(self, permission: str) -> None:
        if not self.config.enabled:
            raise MediaError("Media is not enabled")
        if self.guard is not None:
            self.guard.check(permission, self.role)

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or Path(name).name != name or "\\" in name:
            raise DataValidationError(f'Invalid file name "{name}"')
        return self.root / name

    def _list(self) -> List[Dict[str, Any]]:
        if not self.root.exists():
            return []
        return [
            {"name": p.name, "size": p.stat().st_size}
            for p in sorted(self.root.iterdir())
            if p.is_file()
        ]

    async def list_files(self) -> List[Dict[str, Any]]:
        self._check(MEDIA_FILE_LIST)
        return await run_in_threadpool(self._list)

    def _check_size(self, size: int) -> None:
        limit = self.config.body_max_size
        if limit is not None and size > limit:
            raise PayloadTooLargeError(f"Upload exceeds {limit} bytes")

    async def upload(self, name: str, data: bytes) -> Dict[str, Any]:
        self._check(MEDIA_FILE_UPLOAD)
        path = self._path(name)
        self._check_size(len(data))
        self.root.mkdir(parents=True, exist_ok=True)
        await run_in_threadpool(path.write_bytes, data)
        logger.info(f"Uploaded {name} ({len(data)} bytes)")
        return {"name": name, "size": len(data)}

    async def read(self, name: str) -> Path:
        self._check(MEDIA_FILE_READ)
        path = self._path(name)
        if not path.is_file():
            raise MediaError(f'File "{name}" not found')
        return path

    async def delete(self, name: str) -> None:
        self._check(MEDIA_FILE_DELETE)
        path = self._path(name)
        if not path.is_file():
            raise MediaError(f'File "{name}" not found')
        await run_in_threadpool(path.unlink)
        logger.info(f"Deleted {name}")

    def with_guard(self, guard: Optional[Guard], role: Optional[str] = None) -> "MediaApi":
        return MediaApi(self.config, self.root, guard, role)

    async def upload_stream(self, name: str, chunks: AsyncIterable[bytes],
                            declared_size: Optional[int] = None) -> Dict[str, Any]:
        """
        Upload from a request body stream.

        A declared size over the limit is refused before anything is read,
        otherwise reading stops as soon as the limit is passed.
        """
        self._check(MEDIA_FILE_UPLOAD)
        self._path(name)
        if declared_size is not None:
            self._check_size(declared_size)
        data = bytearray()
        async for chunk in chunks:
            data.extend(chunk)
            self._check_size(len(data))
        return await self.upload(name, bytes(data))
