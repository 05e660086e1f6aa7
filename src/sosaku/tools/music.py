# SPDX-License-Identifier: MIT
"""Music generation tools using Lyria on Vertex AI.

This module handles music operations:
- Generating music from a prompt with genre, mood, tempo and key hints
- Generating music inspired by a reference recording
- Continuing an existing piece
- Composing several parts in sequence
"""

from typing import Any, Literal

import anyio

from ..config import get_poll_settings, logger
from ..exceptions import GenerationError, wrap_error
from ..infrastructure import ArtifactRepository, read_input_base64
from ..security import resolve_input_file
from ..types import GeneratedFile, GenerationResult, MusicPart
from ..utils import format_file_size, preview
from ..vertex import SAFETY_SETTINGS, VertexClient, await_prediction, get_vertex_client

GENERATE_MODEL = "lyria-001"
STYLE_MODEL = "lyria-style-001"
CONTINUE_MODEL = "lyria-continue-001"

MAX_PROMPT_LENGTH = 1000
PART_DELAY_SECONDS = 2.0

Genre = Literal["pop", "rock", "classical", "jazz", "electronic", "ambient", "hip-hop", "country"]
Mood = Literal["happy", "sad", "energetic", "calm", "mysterious", "dramatic", "romantic"]
NamedTempo = Literal["slow", "medium", "fast"]
Key = Literal["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
Scale = Literal["major", "minor", "pentatonic", "blues"]

GENRES = ("pop", "rock", "classical", "jazz", "electronic", "ambient", "hip-hop", "country")
MOODS = ("happy", "sad", "energetic", "calm", "mysterious", "dramatic", "romantic")
KEYS = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")
SCALES = ("major", "minor", "pentatonic", "blues")
TEMPOS: dict[str, int] = {"slow": 80, "medium": 120, "fast": 140}


# ==================== HELPER FUNCTIONS ====================


def _check_choice(name: str, value: str | None, allowed: tuple[str, ...]) -> None:
    if value is not None and value not in allowed:
        raise ValueError(f"{name} must be one of: {', '.join(allowed)}")


def _validate_prompt(prompt: str) -> None:
    if not prompt:
        raise ValueError("Prompt is required for music generation")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValueError(f"Prompt must be {MAX_PROMPT_LENGTH} characters or less")


def _validate_duration(duration: int | None) -> None:
    if duration is not None and not 10 <= duration <= 300:
        raise ValueError("Duration must be between 10 and 300 seconds")


def resolve_tempo(tempo: str | int | None) -> int | None:
    """Map a named tempo to BPM, or validate an explicit BPM (60-200)."""
    if tempo is None:
        return None
    if isinstance(tempo, str):
        if tempo not in TEMPOS:
            raise ValueError(f"Tempo must be one of: {', '.join(TEMPOS)}, or a BPM between 60 and 200")
        return TEMPOS[tempo]
    if not 60 <= tempo <= 200:
        raise ValueError("Tempo (BPM) must be between 60 and 200")
    return tempo


async def _run_generation(
    client: VertexClient,
    model: str,
    body: dict[str, Any],
    request: dict[str, Any],
    operation: str | None = None,
) -> GenerationResult:
    """Start a generation, wait for its prediction, and save the audio."""
    response = await client.predict(model, body)
    prediction = await await_prediction(client, response, get_poll_settings("music"), "Music generation")

    metadata = {
        k: v
        for k, v in {
            "prompt": request.get("prompt"),
            "genre": prediction.get("genre") or request.get("genre"),
            "mood": prediction.get("mood") or request.get("mood"),
            "duration": prediction.get("duration") or request.get("duration") or 30,
            "tempo": prediction.get("tempo") or request.get("tempo"),
            "key": prediction.get("key") or request.get("key"),
            "scale": prediction.get("scale") or request.get("scale"),
            "instruments": prediction.get("instruments") or request.get("instruments"),
        }.items()
        if v is not None
    }

    repo = ArtifactRepository()
    if prediction.get("bytesBase64Encoded"):
        music = await repo.save_base64("audio", "lyria", "mp3", prediction["bytesBase64Encoded"], metadata)
        logger.info("Music saved: %s", music.path)
    elif prediction.get("audioUri"):
        uri = prediction["audioUri"]
        music = await repo.save_download(client, uri, "audio", "lyria", "mp3", {**metadata, "downloaded_from": uri})
        logger.info("Music downloaded: %s", music.path)
    else:
        raise GenerationError("No audio data in generation result")

    result = GenerationResult.from_files(model, [music], request, operation=operation)
    logger.info("Successfully generated %d music file(s)", result.metadata.total_files)
    logger.info("Total size: %s", format_file_size(result.metadata.total_size))
    return result


# ==================== PUBLIC API ====================


async def generate_music(
    prompt: str,
    genre: Genre | None = None,
    mood: Mood | None = None,
    tempo: NamedTempo | int | None = None,
    duration: int | None = None,
    instruments: list[str] | None = None,
    key: Key | None = None,
    scale: Scale | None = None,
) -> GenerationResult:
    """Generate music from a prompt with Lyria.

    Blocks until the long-running operation finishes (8 minutes at most by
    default, polled every 20 seconds).

    Args:
        prompt: Description of the piece, at most 1000 characters
        genre: Musical genre
        mood: Overall mood
        tempo: slow (80), medium (120), fast (140) or a BPM between 60 and 200
        duration: Length in seconds (10-300)
        instruments: Instruments to feature
        key: Tonal center
        scale: major, minor, pentatonic or blues

    Returns:
        GenerationResult with the saved MP3

    Raises:
        GenerationError: On validation failure, API error or missing result
        GenerationTimeoutError: If the operation does not finish in time
    """
    try:
        _validate_prompt(prompt)
        _validate_duration(duration)
        _check_choice("Genre", genre, GENRES)
        _check_choice("Mood", mood, MOODS)
        _check_choice("Key", key, KEYS)
        _check_choice("Scale", scale, SCALES)
        bpm = resolve_tempo(tempo)

        instance: dict[str, Any] = {"prompt": prompt}
        for field, value in (
            ("genre", genre),
            ("mood", mood),
            ("tempo", bpm),
            ("duration", duration),
            ("instruments", instruments),
            ("key", key),
            ("scale", scale),
        ):
            if value:
                instance[field] = value

        body = {
            "instances": [instance],
            "parameters": {"language": "en", "safetySettings": SAFETY_SETTINGS},
        }

        logger.info("Generating music with Lyria")
        logger.info('Prompt: "%s"', preview(prompt))
        logger.info("Genre: %s, mood: %s, duration: %ss", genre or "auto", mood or "auto", duration or 30)

        request = {
            "prompt": prompt,
            "genre": genre,
            "mood": mood,
            "tempo": tempo,
            "duration": duration,
            "instruments": instruments,
            "key": key,
            "scale": scale,
        }
        async with get_vertex_client() as client:
            return await _run_generation(client, GENERATE_MODEL, body, request)
    except Exception as e:
        raise wrap_error(e, "Lyria music generation") from e


async def style_inspired_music(
    reference_audio_path: str,
    prompt: str,
    genre: Genre | None = None,
    mood: Mood | None = None,
    duration: int | None = None,
) -> GenerationResult:
    """Generate new music inspired by the style of a reference recording."""
    try:
        _validate_prompt(prompt)
        _validate_duration(duration)
        _check_choice("Genre", genre, GENRES)
        _check_choice("Mood", mood, MOODS)

        reference = resolve_input_file(reference_audio_path, "Reference audio")
        instance: dict[str, Any] = {
            "prompt": prompt,
            "referenceAudio": {"bytesBase64Encoded": await read_input_base64(reference)},
        }
        if genre:
            instance["targetGenre"] = genre
        if mood:
            instance["targetMood"] = mood
        if duration:
            instance["duration"] = duration

        body = {"instances": [instance], "parameters": {"language": "en"}}

        logger.info("Generating style-inspired music")
        logger.info('Prompt: "%s"', preview(prompt))
        logger.info("Reference: %s", reference.name)

        request = {
            "reference_audio_path": reference_audio_path,
            "prompt": prompt,
            "genre": genre,
            "mood": mood,
            "duration": duration,
        }
        async with get_vertex_client() as client:
            return await _run_generation(client, STYLE_MODEL, body, request, operation="style_inspired")
    except Exception as e:
        raise wrap_error(e, "Lyria style-inspired generation") from e


async def continue_music(seed_audio_path: str, continuation_prompt: str, duration: int = 30) -> GenerationResult:
    """Extend an existing piece of music by *duration* seconds."""
    try:
        _validate_prompt(continuation_prompt)
        _validate_duration(duration)

        seed = resolve_input_file(seed_audio_path, "Seed audio")
        body = {
            "instances": [
                {
                    "prompt": continuation_prompt,
                    "seedAudio": {"bytesBase64Encoded": await read_input_base64(seed)},
                    "continuationDuration": duration,
                }
            ]
        }

        logger.info("Continuing music generation from %s for %d seconds", seed.name, duration)
        logger.info('Continuation prompt: "%s"', preview(continuation_prompt))

        request = {"prompt": continuation_prompt, "seed_audio_path": seed_audio_path, "duration": duration}
        async with get_vertex_client() as client:
            return await _run_generation(client, CONTINUE_MODEL, body, request, operation="continuation")
    except Exception as e:
        raise wrap_error(e, "Lyria music continuation") from e


async def generate_multipart_music(
    parts: list[MusicPart],
    genre: Genre | None = None,
    key: Key | None = None,
) -> GenerationResult:
    """Generate each part in order, pausing two seconds between parts.

    ``genre`` and ``key`` apply to every part; prompt, duration, instruments
    and mood come from each part.
    """
    try:
        if not parts:
            raise ValueError("At least one part is required for multi-part music")

        logger.info("Generating multi-part music with %d parts", len(parts))

        files: list[GeneratedFile] = []
        for index, part in enumerate(parts):
            logger.info('Generating part %d/%d: "%s"', index + 1, len(parts), preview(part.prompt, 50))
            part_result = await generate_music(
                part.prompt,
                genre=genre,
                mood=part.mood,  # type: ignore[arg-type]
                duration=part.duration,
                instruments=part.instruments,
                key=key,
            )
            files.extend(part_result.files)

            if index < len(parts) - 1:
                await anyio.sleep(PART_DELAY_SECONDS)

        result = GenerationResult.from_files(
            GENERATE_MODEL,
            files,
            {"prompt": f"Multi-part composition with {len(parts)} parts", "genre": genre, "key": key},
            parts=len(parts),
        )
        logger.info("Successfully generated %d music parts", result.metadata.total_files)
        logger.info("Total size: %s", format_file_size(result.metadata.total_size))
        return result
    except Exception as e:
        raise wrap_error(e, "Lyria multi-part music generation") from e
