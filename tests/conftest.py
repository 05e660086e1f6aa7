# SPDX-License-Identifier: MIT
"""Shared pytest fixtures for sosaku tests."""

import base64
import io
import os
import pathlib
from contextlib import asynccontextmanager

import pytest
from PIL import Image

from sosaku.config import get_google_config, get_path
from sosaku.storage import get_storage
from sosaku.vertex.auth import load_credentials


@pytest.fixture(autouse=True)
def clear_caches():
    """Clear cached configuration so each test sees its own environment."""
    for cached in (get_path, get_google_config, get_storage, load_credentials):
        cached.cache_clear()
    yield
    for cached in (get_path, get_google_config, get_storage, load_credentials):
        cached.cache_clear()


@pytest.fixture
def output_root(mocker, tmp_path: pathlib.Path) -> pathlib.Path:
    """Point the unified output root at a temporary directory."""
    root = tmp_path / "output"
    root.mkdir()
    for var in ("IMAGE_PATH", "VIDEO_PATH", "AUDIO_PATH", "MEDIA_PATH"):
        mocker.patch.dict(os.environ, {var: ""})
    mocker.patch.dict(os.environ, {"SOSAKU_OUTPUT_PATH": str(root)})
    return root


@pytest.fixture
def google_env(mocker):
    """API key and project credentials for the Google config."""
    mocker.patch.dict(
        os.environ,
        {
            "GOOGLE_AI_API_KEY": "test-api-key",
            "GOOGLE_CLOUD_PROJECT_ID": "test-project",
            "GOOGLE_CLOUD_LOCATION": "us-central1",
        },
    )


@pytest.fixture
def fast_polling(mocker):
    """Poll immediately so long-running operation tests finish quickly."""
    mocker.patch.dict(
        os.environ,
        {
            "SOSAKU_VIDEO_POLL_INTERVAL": "0",
            "SOSAKU_MUSIC_POLL_INTERVAL": "0",
        },
    )


@pytest.fixture
def png_bytes() -> bytes:
    """A real 64x32 PNG, so Pillow can read its dimensions."""
    buffer = io.BytesIO()
    Image.new("RGB", (64, 32), color=(255, 0, 0)).save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def png_base64(png_bytes: bytes) -> str:
    return base64.b64encode(png_bytes).decode("ascii")


@pytest.fixture
def sample_image(output_root: pathlib.Path) -> pathlib.Path:
    """A 200x100 PNG under the output root."""
    img_path = output_root / "input.png"
    Image.new("RGB", (200, 100), color=(0, 255, 0)).save(img_path, "PNG")
    return img_path


@pytest.fixture
def sample_media(output_root: pathlib.Path) -> pathlib.Path:
    """Placeholder media file (content is irrelevant when ffmpeg is mocked)."""
    media_path = output_root / "clip.mp4"
    media_path.write_bytes(b"fake mp4 data")
    return media_path


# ==================== Google client mocks ====================


@pytest.fixture
def mock_vertex_client(mocker):
    """A VertexClient stand-in usable as ``async with get_vertex_client() as client``."""
    client = mocker.MagicMock()
    client.__aenter__ = mocker.AsyncMock(return_value=client)
    client.__aexit__ = mocker.AsyncMock(return_value=None)
    client.predict = mocker.AsyncMock()
    client.get_operation = mocker.AsyncMock()
    client.synthesize_speech = mocker.AsyncMock()

    downloads: list[str] = []

    @asynccontextmanager
    async def stream_download(uri: str):
        downloads.append(uri)

        async def chunks():
            yield b"chunk1"
            yield b"chunk2"

        yield chunks()

    client.stream_download = stream_download
    client.downloads = downloads
    return client


@pytest.fixture
def patch_vertex(mocker, mock_vertex_client):
    """Patch ``get_vertex_client`` in a tool module, e.g. ``patch_vertex("video")``."""

    def _patch(module: str):
        mocker.patch(f"sosaku.tools.{module}.get_vertex_client", return_value=mock_vertex_client)
        return mock_vertex_client

    return _patch
