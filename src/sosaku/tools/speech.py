# SPDX-License-Identifier: MIT
"""Speech generation tools using Chirp 3 HD voices on Cloud Text-to-Speech.

This module handles speech operations:
- Synthesizing a single utterance (up to 5000 characters)
- Synthesizing long-form text chunk by chunk
"""

import pathlib
from typing import Any, Literal
from xml.sax.saxutils import escape

import anyio

from ..config import logger
from ..exceptions import GenerationError, wrap_error
from ..infrastructure import ArtifactRepository
from ..types import GeneratedFile, GenerationResult
from ..utils import format_file_size, preview, split_text_into_chunks
from ..vertex import get_vertex_client

MODEL = "chirp-3-hd"

MAX_PROMPT_LENGTH = 5000
MAX_CHUNK_SIZE = 4000
CHUNK_DELAY_SECONDS = 1.0
SAMPLE_RATE_HERTZ = 24000

Voice = Literal["male", "female", "child", "elderly"]
Language = Literal["en", "ja", "es", "fr", "de", "it", "pt", "ru", "ko", "zh"]
Emotion = Literal["neutral", "happy", "sad", "excited", "calm", "angry"]
Speed = Literal["slow", "normal", "fast"]
Pitch = Literal["low", "normal", "high"]

LANGUAGE_CODES: dict[str, str] = {
    "en": "en-US",
    "ja": "ja-JP",
    "es": "es-ES",
    "fr": "fr-FR",
    "de": "de-DE",
    "it": "it-IT",
    "pt": "pt-BR",
    "ru": "ru-RU",
    "ko": "ko-KR",
    "zh": "zh-CN",
}

# Languages without a table use the English voices
VOICE_NAMES: dict[str, dict[str, str]] = {
    "en": {
        "male": "en-US-Journey-D",
        "female": "en-US-Journey-F",
        "child": "en-US-Wavenet-A",
        "elderly": "en-US-News-N",
    },
    "ja": {
        "male": "ja-JP-Neural2-C",
        "female": "ja-JP-Neural2-B",
        "child": "ja-JP-Wavenet-A",
        "elderly": "ja-JP-Wavenet-D",
    },
}

SSML_GENDERS: dict[str, str] = {"male": "MALE", "female": "FEMALE", "child": "FEMALE", "elderly": "MALE"}
SPEAKING_RATES: dict[str, float] = {"slow": 0.75, "normal": 1.0, "fast": 1.25}
PITCHES: dict[str, float] = {"low": -2.0, "normal": 0.0, "high": 2.0}

# (rate, pitch, volume, emphasis level)
EMOTION_PROSODY: dict[str, tuple[str, str, str, str]] = {
    "happy": ("105%", "+2st", "medium", "moderate"),
    "sad": ("85%", "-2st", "soft", "reduced"),
    "excited": ("115%", "+3st", "loud", "strong"),
    "calm": ("90%", "-1st", "soft", "reduced"),
    "angry": ("110%", "+1st", "x-loud", "strong"),
}


# ==================== HELPER FUNCTIONS ====================


def _validate_request(prompt: str, voice: str, language: str, emotion: str, speed: str, pitch: str) -> None:
    if not prompt:
        raise ValueError("Text prompt is required for speech generation")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValueError(f"Text must be {MAX_PROMPT_LENGTH} characters or less")
    for name, value, allowed in (
        ("Voice", voice, SSML_GENDERS),
        ("Language", language, LANGUAGE_CODES),
        ("Emotion", emotion, ("neutral", *EMOTION_PROSODY)),
        ("Speed", speed, SPEAKING_RATES),
        ("Pitch", pitch, PITCHES),
    ):
        if value not in allowed:
            raise ValueError(f"{name} must be one of: {', '.join(allowed)}")


def select_voice(language: str, voice: str) -> str:
    """Pick a voice name for a language, falling back to the English table."""
    voices = VOICE_NAMES.get(language, VOICE_NAMES["en"])
    return voices.get(voice, voices["female"])


def build_ssml(text: str, emotion: str) -> str:
    """Wrap text in SSML prosody and emphasis reflecting *emotion*."""
    rate, pitch, volume, level = EMOTION_PROSODY[emotion]
    return (
        f'<speak><prosody rate="{rate}" pitch="{pitch}" volume="{volume}">'
        f'<emphasis level="{level}">{escape(text)}</emphasis>'
        "</prosody></speak>"
    )


def build_synthesis_request(
    prompt: str,
    voice: str = "female",
    language: str = "en",
    emotion: str = "neutral",
    speed: str = "normal",
    pitch: str = "normal",
) -> dict[str, Any]:
    """Build a ``text:synthesize`` request body."""
    synthesis_input = {"text": prompt} if emotion == "neutral" else {"ssml": build_ssml(prompt, emotion)}
    return {
        "input": synthesis_input,
        "voice": {
            "languageCode": LANGUAGE_CODES[language],
            "name": select_voice(language, voice),
            "ssmlGender": SSML_GENDERS[voice],
        },
        "audioConfig": {
            "audioEncoding": "MP3",
            "speakingRate": SPEAKING_RATES[speed],
            "pitch": PITCHES[pitch],
            "effectsProfileId": ["headphone-class-device"],
            "sampleRateHertz": SAMPLE_RATE_HERTZ,
        },
    }


def _log_totals(result: GenerationResult) -> None:
    logger.info("Successfully generated %d audio file(s)", result.metadata.total_files)
    logger.info("Total size: %s", format_file_size(result.metadata.total_size))


# ==================== PUBLIC API ====================


async def generate_speech(
    prompt: str,
    voice: Voice = "female",
    language: Language = "en",
    emotion: Emotion = "neutral",
    speed: Speed = "normal",
    pitch: Pitch = "normal",
) -> GenerationResult:
    """Synthesize speech and save it as an MP3.

    Args:
        prompt: Text to speak, at most 5000 characters
        voice: male, female, child or elderly
        language: Two-letter language code
        emotion: neutral keeps plain text; anything else is rendered via SSML prosody
        speed: slow (0.75x), normal or fast (1.25x)
        pitch: low (-2 st), normal or high (+2 st)

    Returns:
        GenerationResult with a single MP3 file

    Raises:
        GenerationError: On validation failure, API error or empty audio
    """
    try:
        _validate_request(prompt, voice, language, emotion, speed, pitch)
        body = build_synthesis_request(prompt, voice, language, emotion, speed, pitch)

        logger.info("Generating speech with Chirp 3 HD")
        logger.info('Text: "%s"', preview(prompt))
        logger.info("Voice: %s (%s), emotion: %s", voice, language, emotion)

        async with get_vertex_client() as client:
            response = await client.synthesize_speech(body)

        audio_content = response.get("audioContent")
        if not audio_content:
            raise GenerationError("No audio content in response")

        repo = ArtifactRepository()
        audio = await repo.save_base64(
            "audio",
            "chirp",
            "mp3",
            audio_content,
            {
                "text": prompt,
                "voice": voice,
                "language": language,
                "emotion": emotion,
                "speed": speed,
                "pitch": pitch,
                "sample_rate": SAMPLE_RATE_HERTZ,
                "audio_encoding": "MP3",
            },
        )
        duration = await repo.audio_duration("audio", pathlib.Path(audio.path).name)
        if duration is not None:
            audio.metadata["duration"] = duration
        logger.info("Audio saved: %s", audio.path)

        result = GenerationResult.from_files(
            MODEL,
            [audio],
            {
                "prompt": prompt,
                "voice": voice,
                "language": language,
                "emotion": emotion,
                "speed": speed,
                "pitch": pitch,
            },
        )
        _log_totals(result)
        return result
    except Exception as e:
        raise wrap_error(e, "Chirp speech generation") from e


async def generate_long_speech(
    text: str,
    voice: Voice = "female",
    language: Language = "en",
    emotion: Emotion = "neutral",
) -> GenerationResult:
    """Synthesize long text as a sequence of MP3 files, one per chunk.

    The text is split on sentence boundaries into chunks of at most 4000
    characters. Chunks are synthesized in order with a one second pause
    between requests.
    """
    try:
        if not text or not text.strip():
            raise ValueError("Text is required for long-form speech generation")

        chunks = split_text_into_chunks(text, MAX_CHUNK_SIZE)
        if not chunks:
            raise ValueError("Text contains no sentences to speak")
        logger.info("Splitting long text into %d chunks", len(chunks))

        files: list[GeneratedFile] = []
        for index, chunk in enumerate(chunks):
            logger.info("Processing chunk %d/%d", index + 1, len(chunks))
            chunk_result = await generate_speech(chunk, voice=voice, language=language, emotion=emotion)
            files.extend(chunk_result.files)

            if index < len(chunks) - 1:
                await anyio.sleep(CHUNK_DELAY_SECONDS)

        result = GenerationResult.from_files(
            MODEL,
            files,
            {"prompt": text, "voice": voice, "language": language, "emotion": emotion},
            chunks=len(chunks),
        )
        _log_totals(result)
        return result
    except Exception as e:
        raise wrap_error(e, "Chirp long-form speech generation") from e
