# SPDX-License-Identifier: MIT
"""Storage for generated images, videos, audio and processed media.

Usage::

    from sosaku.storage import get_storage

    await get_storage().write("audio", "chirp_2026.mp3", audio_bytes)
"""

from .factory import get_storage
from .local import LocalStorageBackend
from .protocol import FileInfo, PathType, StorageBackend

__all__ = ["FileInfo", "LocalStorageBackend", "PathType", "StorageBackend", "get_storage"]
