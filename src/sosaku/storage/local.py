# SPDX-License-Identifier: MIT
"""Local filesystem storage backend.

Artifacts of each kind go to the directory ``get_path`` resolves for it
(``IMAGE_PATH``, ``VIDEO_PATH``, ``AUDIO_PATH``, ``MEDIA_PATH`` or the
unified ``SOSAKU_OUTPUT_PATH`` root).
"""

from __future__ import annotations

import logging
import pathlib
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiofiles

from ..config import get_path
from ..security import check_not_symlink, validate_safe_path
from .protocol import FileInfo, PathType

logger = logging.getLogger("sosaku")


class LocalStorageBackend:
    """Writes artifacts to local output directories.

    Args:
        path_overrides: Directory per path type, bypassing the environment
            (used by tests).
    """

    def __init__(self, path_overrides: dict[str, pathlib.Path] | None = None) -> None:
        self._overrides = dict(path_overrides or {})

    def directory(self, path_type: PathType) -> pathlib.Path:
        return self._overrides.get(path_type) or get_path(path_type)

    def _target(self, path_type: PathType, filename: str, *, existing: bool = False) -> pathlib.Path:
        """Confine *filename* to its directory; the symlink check runs before resolution."""
        directory = self.directory(path_type)
        check_not_symlink(directory / filename, f"{path_type} file")
        return validate_safe_path(directory, filename, allow_create=not existing)

    async def write(self, path_type: PathType, filename: str, data: bytes) -> str:
        target = self._target(path_type, filename)
        async with aiofiles.open(target, "wb") as f:
            await f.write(data)
        logger.debug("Wrote %d bytes to %s", len(data), target)
        return str(target)

    async def write_stream(self, path_type: PathType, filename: str, chunks: AsyncIterator[bytes]) -> str:
        target = self._target(path_type, filename)
        written = 0
        async with aiofiles.open(target, "wb") as f:
            async for chunk in chunks:
                await f.write(chunk)
                written += len(chunk)
        logger.debug("Streamed %d bytes to %s", written, target)
        return str(target)

    async def stat(self, path_type: PathType, filename: str) -> FileInfo:
        target = self._target(path_type, filename)
        try:
            st = target.stat()
        except OSError as e:
            raise FileNotFoundError(f"Cannot stat file: {e}") from e
        return FileInfo(name=target.name, size_bytes=st.st_size, modified_timestamp=st.st_mtime)

    @asynccontextmanager
    async def local_path(self, path_type: PathType, filename: str):
        yield self._target(path_type, filename, existing=True)

    @asynccontextmanager
    async def output_file(self, path_type: PathType, filename: str):
        target = self._target(path_type, filename)
        target.parent.mkdir(parents=True, exist_ok=True)
        yield target

    def display_path(self, path_type: PathType, filename: str) -> str:
        return str(self._target(path_type, filename))
