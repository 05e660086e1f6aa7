# SPDX-License-Identifier: MIT
"""Infrastructure layer: artifact persistence on top of the storage backend."""

from .file_system import ArtifactRepository, read_input_base64

__all__ = ["ArtifactRepository", "read_input_base64"]
