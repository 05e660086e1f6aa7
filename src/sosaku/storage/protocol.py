# SPDX-License-Identifier: MIT
"""Storage backend protocol for generated artifacts.

Every tool writes through a backend keyed by artifact kind, so image,
video, audio and processed-media outputs each land in their own directory.
"""

from __future__ import annotations

import pathlib
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Literal, Protocol, runtime_checkable

PathType = Literal["image", "video", "audio", "media"]
"""Artifact kind; selects the output directory."""


@dataclass(frozen=True)
class FileInfo:
    name: str
    size_bytes: int
    modified_timestamp: float


@runtime_checkable
class StorageBackend(Protocol):
    """Where generated artifacts are written.

    Filenames are relative to the directory of their *path_type*; backends
    reject names that escape it.
    """

    async def write(self, path_type: PathType, filename: str, data: bytes) -> str:
        """Write a decoded payload. Returns the display path."""
        ...

    async def write_stream(self, path_type: PathType, filename: str, chunks: AsyncIterator[bytes]) -> str:
        """Write a downloaded result chunk by chunk. Returns the display path."""
        ...

    async def stat(self, path_type: PathType, filename: str) -> FileInfo:
        """Raises FileNotFoundError if the artifact is missing."""
        ...

    def local_path(self, path_type: PathType, filename: str) -> AbstractAsyncContextManager[pathlib.Path]:
        """Yield a local path to an existing artifact (for Pillow and pydub probes)."""
        ...

    def output_file(self, path_type: PathType, filename: str) -> AbstractAsyncContextManager[pathlib.Path]:
        """Yield a local path that an external process (ffmpeg) writes the artifact to."""
        ...

    def display_path(self, path_type: PathType, filename: str) -> str:
        """Path reported in tool results."""
        ...
