# SPDX-License-Identifier: MIT
"""File system operations for generated artifacts.

Writes decoded or downloaded results through the configured
:class:`StorageBackend` and describes them as :class:`GeneratedFile` records.
"""

import base64
import pathlib
from typing import Any

import aiofiles
import anyio
from PIL import Image
from pydub import AudioSegment  # type: ignore[import-untyped]

from ..config import logger
from ..storage import get_storage
from ..storage.protocol import PathType, StorageBackend
from ..types import GeneratedFile
from ..utils import format_file_size, generate_filename, get_mime_type
from ..vertex import VertexClient


class ArtifactRepository:
    """Repository for writing and describing generated files.

    Args:
        storage: Storage backend to use.  Defaults to ``get_storage()``.
    """

    def __init__(self, storage: StorageBackend | None = None):
        self._storage = storage or get_storage()

    @property
    def storage(self) -> StorageBackend:
        return self._storage

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    async def save_bytes(
        self,
        path_type: PathType,
        prefix: str,
        extension: str,
        data: bytes,
        metadata: dict[str, Any] | None = None,
    ) -> GeneratedFile:
        """Write raw bytes under a generated filename."""
        filename = generate_filename(prefix, extension)
        await self._storage.write(path_type, filename, data)
        return await self.describe(path_type, filename, metadata)

    async def save_base64(
        self,
        path_type: PathType,
        prefix: str,
        extension: str,
        encoded: str,
        metadata: dict[str, Any] | None = None,
    ) -> GeneratedFile:
        """Decode a base64 payload (``bytesBase64Encoded`` / ``audioContent``) and write it."""
        # Decode in thread pool (CPU-bound for large videos)
        data = await anyio.to_thread.run_sync(base64.b64decode, encoded)
        return await self.save_bytes(path_type, prefix, extension, data, metadata)

    async def save_download(
        self,
        client: VertexClient,
        uri: str,
        path_type: PathType,
        prefix: str,
        extension: str,
        metadata: dict[str, Any] | None = None,
    ) -> GeneratedFile:
        """Stream a result URI to storage. The returned ``url`` is the source URI."""
        filename = generate_filename(prefix, extension)
        async with client.stream_download(uri) as chunks:
            await self._storage.write_stream(path_type, filename, chunks)
        return await self.describe(path_type, filename, metadata, url=uri)

    # ------------------------------------------------------------------
    # Describing
    # ------------------------------------------------------------------

    async def describe(
        self,
        path_type: PathType,
        filename: str,
        metadata: dict[str, Any] | None = None,
        url: str | None = None,
    ) -> GeneratedFile:
        """Build a GeneratedFile for a file already in storage."""
        info = await self._storage.stat(path_type, filename)
        display_path = self._storage.display_path(path_type, filename)
        logger.info("Saved %s (%s)", filename, format_file_size(info.size_bytes))
        return GeneratedFile(
            path=display_path,
            url=url or pathlib.Path(display_path).as_uri(),
            size=info.size_bytes,
            mime_type=get_mime_type(filename),
            metadata=metadata or {},
        )

    @staticmethod
    def describe_path(path: pathlib.Path, metadata: dict[str, Any] | None = None) -> GeneratedFile:
        """Build a GeneratedFile for a file at an explicit location."""
        try:
            size = path.stat().st_size
        except OSError as e:
            raise FileNotFoundError(f"Failed to get file info for {path}: {e}") from e
        logger.info("Saved %s (%s)", path.name, format_file_size(size))
        return GeneratedFile(
            path=str(path),
            url=path.resolve().as_uri(),
            size=size,
            mime_type=get_mime_type(path),
            metadata=metadata or {},
        )

    # ------------------------------------------------------------------
    # Probing
    # ------------------------------------------------------------------

    async def image_dimensions(self, path_type: PathType, filename: str) -> tuple[int, int] | None:
        """Read (width, height) with Pillow, or None if the file is not a readable image."""

        def _open(path: pathlib.Path) -> tuple[int, int]:
            with Image.open(path) as img:
                return img.size

        async with self._storage.local_path(path_type, filename) as local:
            try:
                return await anyio.to_thread.run_sync(_open, local)
            except OSError as e:
                logger.debug("Could not read image dimensions for %s: %s", filename, e)
                return None

    async def audio_duration(self, path_type: PathType, filename: str) -> float | None:
        """Duration in seconds via pydub, or None when the audio cannot be decoded."""
        async with self._storage.local_path(path_type, filename) as local:
            try:
                audio = await anyio.to_thread.run_sync(lambda: AudioSegment.from_file(str(local)))
            except Exception as e:  # pydub surfaces decoder failures as assorted exception types
                logger.debug("Could not probe duration for %s: %s", filename, e)
                return None
        return round(len(audio) / 1000.0, 2)


async def read_input_base64(path: pathlib.Path) -> str:
    """Read a caller-supplied input file and base64-encode it for a request body."""
    async with aiofiles.open(path, "rb") as f:
        data = await f.read()
    return await anyio.to_thread.run_sync(lambda: base64.b64encode(data).decode("ascii"))
