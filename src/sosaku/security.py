# SPDX-License-Identifier: MIT
"""Path validation helpers.

Output filenames are confined to their configured directory. Input files
(images to edit, videos to restyle, media to process) may live anywhere the
caller can name, but must be regular files.
"""

import pathlib

from .config import get_output_root


def check_not_symlink(path: pathlib.Path, description: str) -> None:
    """Reject symbolic links.

    Non-existent paths pass (there is nothing to follow yet).

    Raises:
        ValueError: If *path* is a symlink
    """
    if path.is_symlink():
        raise ValueError(f"{description} cannot be a symbolic link: {path.name}")


def validate_safe_path(base_path: pathlib.Path, filename: str, allow_create: bool = False) -> pathlib.Path:
    """Resolve *filename* under *base_path*, blocking traversal outside of it.

    Args:
        base_path: Directory the file must stay within
        filename: Relative filename supplied by the caller
        allow_create: Permit paths that do not exist yet (output files)

    Returns:
        Resolved absolute path

    Raises:
        ValueError: On path traversal, or when the file is missing and allow_create is False
    """
    base = base_path.resolve()
    candidate = (base / filename).resolve()
    try:
        candidate.relative_to(base)
    except ValueError as e:
        raise ValueError(f"Invalid filename: path traversal detected in '{filename}'") from e

    if not allow_create and not candidate.exists():
        raise ValueError(f"File not found: {filename}")

    return candidate


def resolve_input_file(path_str: str, description: str = "Input file") -> pathlib.Path:
    """Resolve a caller-supplied input path.

    Absolute paths (and ``~``) are used as given; relative paths resolve
    against the output root so files produced by earlier calls can be named
    by their relative location.

    Raises:
        ValueError: If the path is empty, missing, or not a regular file
    """
    if not path_str or not path_str.strip():
        raise ValueError(f"{description} path is required")

    path = pathlib.Path(path_str.strip()).expanduser()
    if not path.is_absolute():
        path = get_output_root() / path

    if not path.exists():
        raise ValueError(f"{description} not found: {path_str}")
    if not path.is_file():
        raise ValueError(f"{description} is not a file: {path_str}")
    return path.resolve()
