# SPDX-License-Identifier: MIT
"""Selects the storage backend from ``STORAGE_BACKEND``."""

from __future__ import annotations

import os
from functools import lru_cache

from .local import LocalStorageBackend
from .protocol import StorageBackend

BACKENDS = {"local": LocalStorageBackend}


@lru_cache(maxsize=1)
def get_storage() -> StorageBackend:
    """Return the configured backend, created once per process.

    Raises:
        RuntimeError: If ``STORAGE_BACKEND`` names an unknown backend
    """
    name = (os.getenv("STORAGE_BACKEND") or "local").strip().lower()
    try:
        backend = BACKENDS[name]
    except KeyError:
        raise RuntimeError(f"Unknown STORAGE_BACKEND: {name!r}. Supported: {', '.join(BACKENDS)}") from None
    return backend()
