# SPDX-License-Identifier: MIT
"""Small helpers shared across tools: filenames, sizes, MIME types, text chunking."""

import mimetypes
import pathlib
import random
import re
import string
from datetime import UTC, datetime

_BASE36 = string.digits + string.ascii_lowercase

MIME_TYPES: dict[str, str] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".mp4": "video/mp4",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".webm": "video/webm",
    ".mp3": "audio/mpeg",
    ".wav": "audio/wav",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
}

EXTENSIONS_BY_MIME: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "video/mp4": "mp4",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
}


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def generate_filename(prefix: str, extension: str) -> str:
    """Generate a unique filename: ``{prefix}_{timestamp}_{random}.{extension}``.

    The timestamp is ISO-8601 with ``:`` and ``.`` replaced by ``-`` so the
    name is portable across filesystems.
    """
    stamp = re.sub(r"[:.]", "-", utc_timestamp())
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"{prefix}_{stamp}_{suffix}.{extension.lstrip('.')}"


def format_file_size(size_bytes: int) -> str:
    """Convert a byte count to a human-readable string (e.g. ``1.5 KB``)."""
    if size_bytes <= 0:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size_bytes)
    exponent = 0
    while value >= 1024 and exponent < len(units) - 1:
        value /= 1024
        exponent += 1
    return f"{round(value, 2):g} {units[exponent]}"


def get_mime_type(filename: str | pathlib.Path) -> str:
    """Guess a MIME type from the file extension."""
    ext = pathlib.Path(filename).suffix.lower()
    if ext in MIME_TYPES:
        return MIME_TYPES[ext]
    mime, _ = mimetypes.guess_type(str(filename))
    return mime or "application/octet-stream"


def extension_for_mime(mime_type: str | None, default: str) -> str:
    if not mime_type:
        return default
    return EXTENSIONS_BY_MIME.get(mime_type.lower(), default)


def preview(text: str, limit: int = 100) -> str:
    """Truncate text for log lines."""
    return text if len(text) <= limit else f"{text[:limit]}..."


# ==================== TEXT CHUNKING ====================

_SENTENCE_RE = re.compile(r"[^.!?。！？]+[.!?。！？]*")


def _hard_split(sentence: str, max_chunk_size: int) -> list[str]:
    """Split an oversize sentence on whitespace, then by characters as a last resort."""
    pieces: list[str] = []
    current = ""
    for word in sentence.split():
        while len(word) > max_chunk_size:
            if current:
                pieces.append(current)
                current = ""
            pieces.append(word[:max_chunk_size])
            word = word[max_chunk_size:]
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_chunk_size:
            current = candidate
        else:
            pieces.append(current)
            current = word
    if current:
        pieces.append(current)
    return pieces


def split_text_into_chunks(text: str, max_chunk_size: int = 4000) -> list[str]:
    """Split text into chunks of at most *max_chunk_size* characters.

    Chunks break on sentence terminators (``. ! ? 。 ！ ？``). Sentences
    without a terminator get a trailing period. A single sentence longer
    than the limit is split on whitespace.
    """
    if max_chunk_size <= 0:
        raise ValueError("max_chunk_size must be positive")

    chunks: list[str] = []
    current = ""

    for match in _SENTENCE_RE.finditer(text):
        sentence = match.group(0).strip()
        if not sentence or not sentence.rstrip(".!?。！？").strip():
            continue
        if sentence[-1] not in ".!?。！？":
            sentence += "."

        pieces = [sentence] if len(sentence) <= max_chunk_size else _hard_split(sentence, max_chunk_size)
        for piece in pieces:
            candidate = f"{current} {piece}" if current else piece
            if len(candidate) <= max_chunk_size:
                current = candidate
            else:
                if current:
                    chunks.append(current)
                current = piece

    if current:
        chunks.append(current)
    return chunks
