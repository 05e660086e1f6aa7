# SPDX-License-Identifier: MIT
"""Integration tests for Lyria music tools with a mocked Vertex client."""

import base64
import pathlib

import pytest

from sosaku.exceptions import GenerationError
from sosaku.tools.music import continue_music, generate_multipart_music, generate_music, style_inspired_music
from sosaku.types import MusicPart

MUSIC_B64 = base64.b64encode(b"ID3fake-music").decode()


@pytest.fixture
def client(patch_vertex, google_env, output_root, fast_polling):
    return patch_vertex("music")


@pytest.fixture
def seed_audio(output_root: pathlib.Path) -> pathlib.Path:
    path = output_root / "seed.mp3"
    path.write_bytes(b"ID3seed")
    return path


@pytest.mark.integration
async def test_generate_music_body_and_file(client, output_root):
    client.predict.return_value = {"predictions": [{"bytesBase64Encoded": MUSIC_B64}]}

    result = await generate_music(
        "upbeat synthwave", genre="electronic", mood="energetic", tempo="fast", duration=45, key="A", scale="minor"
    )

    model, body = client.predict.call_args.args
    assert model == "lyria-001"
    assert body["instances"] == [
        {
            "prompt": "upbeat synthwave",
            "genre": "electronic",
            "mood": "energetic",
            "tempo": 140,
            "duration": 45,
            "key": "A",
            "scale": "minor",
        }
    ]
    assert body["parameters"]["language"] == "en"
    assert "safetySettings" in body["parameters"]

    saved = result.files[0]
    path = pathlib.Path(saved.path)
    assert path.parent == (output_root / "audio").resolve()
    assert path.name.startswith("lyria_") and path.suffix == ".mp3"
    assert saved.metadata["tempo"] == "fast"
    assert saved.metadata["duration"] == 45
    assert result.request["tempo"] == "fast"


@pytest.mark.integration
async def test_generate_music_polls_and_downloads(client):
    client.predict.return_value = {"name": "operations/music-1"}
    client.get_operation.side_effect = [
        {"done": False},
        {"done": True, "response": {"predictions": [{"audioUri": "https://cdn.example.com/song.mp3", "tempo": 96}]}},
    ]

    result = await generate_music("lofi beat")

    saved = result.files[0]
    assert pathlib.Path(saved.path).read_bytes() == b"chunk1chunk2"
    assert saved.url == "https://cdn.example.com/song.mp3"
    assert saved.metadata["tempo"] == 96
    assert saved.metadata["duration"] == 30
    assert client.get_operation.call_count == 2


@pytest.mark.integration
async def test_generate_music_operation_error(client):
    client.predict.return_value = {"name": "operations/music-1"}
    client.get_operation.return_value = {"done": True, "error": "quota"}

    with pytest.raises(GenerationError, match="^Music generation failed: quota$"):
        await generate_music("anything")


@pytest.mark.integration
async def test_generate_music_without_audio(client):
    client.predict.return_value = {"predictions": [{"genre": "jazz"}]}

    with pytest.raises(GenerationError, match="^No audio data in generation result$"):
        await generate_music("silence")


@pytest.mark.integration
@pytest.mark.parametrize(
    ("kwargs", "message"),
    [
        ({"prompt": ""}, "Prompt is required"),
        ({"prompt": "ok", "duration": 5}, "Duration must be between 10 and 300 seconds"),
        ({"prompt": "ok", "genre": "polka"}, "Genre must be one of"),
        ({"prompt": "ok", "tempo": 250}, r"Tempo \(BPM\) must be between 60 and 200"),
        ({"prompt": "ok", "key": "H"}, "Key must be one of"),
    ],
)
async def test_generate_music_validation(client, kwargs, message):
    with pytest.raises(GenerationError, match=f"Lyria music generation failed: {message}"):
        await generate_music(**kwargs)

    client.predict.assert_not_called()


@pytest.mark.integration
async def test_style_inspired_music(client, seed_audio):
    client.predict.return_value = {"predictions": [{"bytesBase64Encoded": MUSIC_B64}]}

    result = await style_inspired_music("seed.mp3", "same vibe, more brass", genre="jazz", mood="happy")

    model, body = client.predict.call_args.args
    instance = body["instances"][0]
    assert model == "lyria-style-001"
    assert instance["referenceAudio"]["bytesBase64Encoded"] == base64.b64encode(b"ID3seed").decode()
    assert instance["targetGenre"] == "jazz"
    assert instance["targetMood"] == "happy"
    assert result.metadata.operation == "style_inspired"


@pytest.mark.integration
async def test_continue_music(client, seed_audio):
    client.predict.return_value = {"predictions": [{"bytesBase64Encoded": MUSIC_B64}]}

    result = await continue_music(str(seed_audio), "build to a climax", duration=60)

    model, body = client.predict.call_args.args
    instance = body["instances"][0]
    assert model == "lyria-continue-001"
    assert instance["seedAudio"]["bytesBase64Encoded"] == base64.b64encode(b"ID3seed").decode()
    assert instance["continuationDuration"] == 60
    assert result.metadata.operation == "continuation"


@pytest.mark.integration
async def test_continue_music_missing_seed(client):
    with pytest.raises(GenerationError, match="Lyria music continuation failed: Seed audio not found: nope.mp3"):
        await continue_music("nope.mp3", "more")


@pytest.mark.integration
async def test_generate_multipart_music(client, mocker):
    no_sleep = mocker.patch("sosaku.tools.music.anyio.sleep", new_callable=mocker.AsyncMock)
    client.predict.return_value = {"predictions": [{"bytesBase64Encoded": MUSIC_B64}]}
    parts = [
        MusicPart(prompt="quiet intro", duration=20, mood="calm"),
        MusicPart(prompt="loud chorus", duration=40, instruments=["drums", "guitar"]),
    ]

    result = await generate_multipart_music(parts, genre="rock", key="E")

    instances = [call.args[1]["instances"][0] for call in client.predict.call_args_list]
    assert instances[0] == {"prompt": "quiet intro", "genre": "rock", "mood": "calm", "duration": 20, "key": "E"}
    assert instances[1] == {
        "prompt": "loud chorus",
        "genre": "rock",
        "duration": 40,
        "instruments": ["drums", "guitar"],
        "key": "E",
    }
    assert result.metadata.parts == 2
    assert result.metadata.total_files == 2
    assert result.request == {"prompt": "Multi-part composition with 2 parts", "genre": "rock", "key": "E"}
    no_sleep.assert_awaited_once_with(2.0)


@pytest.mark.integration
async def test_generate_multipart_music_requires_parts(client):
    with pytest.raises(GenerationError, match="At least one part is required"):
        await generate_multipart_music([])
