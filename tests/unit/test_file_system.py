# SPDX-License-Identifier: MIT
"""Unit tests for the artifact repository."""

import base64
import pathlib

import pytest

from sosaku.infrastructure import ArtifactRepository, read_input_base64
from sosaku.storage.local import LocalStorageBackend


@pytest.fixture
def repo(tmp_path: pathlib.Path) -> ArtifactRepository:
    overrides = {}
    for kind in ("image", "video", "audio", "media"):
        overrides[kind] = tmp_path / kind
        overrides[kind].mkdir()
    return ArtifactRepository(LocalStorageBackend(path_overrides=overrides))


@pytest.mark.unit
async def test_save_base64_describes_file(repo, tmp_path):
    saved = await repo.save_base64("audio", "chirp", "mp3", base64.b64encode(b"ID3audio").decode(), {"voice": "male"})

    path = pathlib.Path(saved.path)
    assert path.parent == (tmp_path / "audio").resolve()
    assert path.name.startswith("chirp_")
    assert path.read_bytes() == b"ID3audio"
    assert saved.size == 8
    assert saved.mime_type == "audio/mpeg"
    assert saved.url == path.as_uri()
    assert saved.metadata == {"voice": "male"}


@pytest.mark.unit
async def test_save_download_streams_and_keeps_source_url(repo, mock_vertex_client):
    saved = await repo.save_download(mock_vertex_client, "gs://bucket/out.mp4", "video", "veo", "mp4")

    assert pathlib.Path(saved.path).read_bytes() == b"chunk1chunk2"
    assert saved.url == "gs://bucket/out.mp4"
    assert saved.mime_type == "video/mp4"
    assert mock_vertex_client.downloads == ["gs://bucket/out.mp4"]


@pytest.mark.unit
async def test_image_dimensions(repo, png_bytes):
    saved = await repo.save_bytes("image", "imagen", "png", png_bytes)

    assert await repo.image_dimensions("image", pathlib.Path(saved.path).name) == (64, 32)


@pytest.mark.unit
async def test_image_dimensions_unreadable(repo):
    saved = await repo.save_bytes("image", "imagen", "png", b"not an image")

    assert await repo.image_dimensions("image", pathlib.Path(saved.path).name) is None


@pytest.mark.unit
async def test_audio_duration_undecodable(repo, mocker):
    mocker.patch("sosaku.infrastructure.file_system.AudioSegment.from_file", side_effect=OSError("no decoder"))
    saved = await repo.save_bytes("audio", "chirp", "mp3", b"garbage")

    assert await repo.audio_duration("audio", pathlib.Path(saved.path).name) is None


@pytest.mark.unit
async def test_audio_duration(repo, mocker):
    segment = mocker.MagicMock()
    segment.__len__.return_value = 2500
    mocker.patch("sosaku.infrastructure.file_system.AudioSegment.from_file", return_value=segment)
    saved = await repo.save_bytes("audio", "chirp", "mp3", b"ID3")

    assert await repo.audio_duration("audio", pathlib.Path(saved.path).name) == 2.5


@pytest.mark.unit
def test_describe_path(tmp_path):
    target = tmp_path / "merged.mp4"
    target.write_bytes(b"x" * 10)

    described = ArtifactRepository.describe_path(target, {"operation": "merge"})

    assert described.path == str(target)
    assert described.size == 10
    assert described.mime_type == "video/mp4"


@pytest.mark.unit
async def test_read_input_base64(tmp_path):
    source = tmp_path / "in.png"
    source.write_bytes(b"\x89PNG")

    assert await read_input_base64(source) == base64.b64encode(b"\x89PNG").decode()
