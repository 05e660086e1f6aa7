# SPDX-License-Identifier: MIT
"""sosaku MCP server - FastMCP server for Google generative media and ffmpeg processing.

This module initializes the FastMCP server and registers all tools.
Business logic is organized into submodules under tools/.
"""

import signal
import sys

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from .config import SETUP_INSTRUCTIONS, get_google_config, logger
from .descriptions import (
    BATCH_PROCESS_MEDIA,
    CONTINUE_MUSIC,
    EDIT_IMAGE,
    GENERATE_IMAGE,
    GENERATE_LONG_SPEECH,
    GENERATE_MULTIPART_MUSIC,
    GENERATE_MUSIC,
    GENERATE_SPEECH,
    GENERATE_VIDEO,
    GET_SYSTEM_INFO,
    PROCESS_MEDIA,
    STYLE_INSPIRED_MUSIC,
    STYLE_TRANSFER_VIDEO,
    UPSCALE_IMAGE,
)
from .features import get_available_features
from .tools import image, media, music, speech, video
from .types import MediaOperation, MediaOptions, MediaRequest, MusicPart

mcp = FastMCP("sosaku")


# ==================== IMAGE TOOLS ====================
@mcp.tool(description=GENERATE_IMAGE)
async def generate_image(
    prompt: str,
    width: int | None = None,
    height: int | None = None,
    num_images: int = 1,
    style: str | None = None,
    negative_prompt: str | None = None,
    guidance_scale: float | None = None,
    seed: int | None = None,
    steps: int | None = None,
    language: str = "en",
):
    return await image.generate_image(
        prompt, width, height, num_images, style, negative_prompt, guidance_scale, seed, steps, language
    )


@mcp.tool(description=EDIT_IMAGE)
async def edit_image(
    image_path: str,
    prompt: str,
    mask_path: str | None = None,
    guidance_scale: float | None = None,
    seed: int | None = None,
    num_images: int = 1,
    language: str = "en",
):
    return await image.edit_image(image_path, prompt, mask_path, guidance_scale, seed, num_images, language)


@mcp.tool(description=UPSCALE_IMAGE)
async def upscale_image(image_path: str, scale_factor: image.ScaleFactor = 2):
    return await image.upscale_image(image_path, scale_factor)


# ==================== VIDEO TOOLS ====================
@mcp.tool(description=GENERATE_VIDEO)
async def generate_video(
    prompt: str,
    duration: int | None = None,
    resolution: video.Resolution | None = None,
    fps: video.FrameRate | None = None,
    style: str | None = None,
    camera_movement: str | None = None,
    aspect_ratio: str | None = None,
    language: str = "en",
):
    return await video.generate_video(prompt, duration, resolution, fps, style, camera_movement, aspect_ratio, language)


@mcp.tool(description=STYLE_TRANSFER_VIDEO)
async def style_transfer_video(
    video_path: str,
    style_prompt: str,
    style: str | None = None,
    duration: int | None = None,
    language: str = "en",
):
    return await video.style_transfer_video(video_path, style_prompt, style, duration, language)


# ==================== SPEECH TOOLS ====================
@mcp.tool(description=GENERATE_SPEECH)
async def generate_speech(
    prompt: str,
    voice: speech.Voice = "female",
    language: speech.Language = "en",
    emotion: speech.Emotion = "neutral",
    speed: speech.Speed = "normal",
    pitch: speech.Pitch = "normal",
):
    return await speech.generate_speech(prompt, voice, language, emotion, speed, pitch)


@mcp.tool(description=GENERATE_LONG_SPEECH)
async def generate_long_speech(
    text: str,
    voice: speech.Voice = "female",
    language: speech.Language = "en",
    emotion: speech.Emotion = "neutral",
):
    return await speech.generate_long_speech(text, voice, language, emotion)


# ==================== MUSIC TOOLS ====================
@mcp.tool(description=GENERATE_MUSIC)
async def generate_music(
    prompt: str,
    genre: music.Genre | None = None,
    mood: music.Mood | None = None,
    tempo: music.NamedTempo | int | None = None,
    duration: int | None = None,
    instruments: list[str] | None = None,
    key: music.Key | None = None,
    scale: music.Scale | None = None,
):
    return await music.generate_music(prompt, genre, mood, tempo, duration, instruments, key, scale)


@mcp.tool(description=STYLE_INSPIRED_MUSIC)
async def style_inspired_music(
    reference_audio_path: str,
    prompt: str,
    genre: music.Genre | None = None,
    mood: music.Mood | None = None,
    duration: int | None = None,
):
    return await music.style_inspired_music(reference_audio_path, prompt, genre, mood, duration)


@mcp.tool(description=CONTINUE_MUSIC)
async def continue_music(seed_audio_path: str, continuation_prompt: str, duration: int = 30):
    return await music.continue_music(seed_audio_path, continuation_prompt, duration)


@mcp.tool(description=GENERATE_MULTIPART_MUSIC)
async def generate_multipart_music(
    parts: list[MusicPart],
    genre: music.Genre | None = None,
    key: music.Key | None = None,
):
    return await music.generate_multipart_music(parts, genre, key)


# ==================== MEDIA TOOLS ====================
@mcp.tool(description=PROCESS_MEDIA)
async def process_media(
    operation: MediaOperation,
    input_files: list[str],
    output_path: str | None = None,
    options: MediaOptions | None = None,
):
    return await media.process_media(operation, input_files, output_path, options)


@mcp.tool(description=BATCH_PROCESS_MEDIA)
async def batch_process_media(operations: list[MediaRequest]):
    return await media.batch_process_media(operations)


@mcp.tool(description=GET_SYSTEM_INFO)
async def get_system_info():
    return await media.get_system_info()


# ==================== SERVER ENTRYPOINT ====================
def _handle_sigterm(signum, frame):
    logger.info("Shutting down server...")
    sys.exit(0)


def main():
    """Run the MCP server over stdio.

    Loads ``.env``, checks that an API key or project id is configured, logs
    the configuration, and serves until interrupted.
    """
    load_dotenv()  # Load environment variables at runtime

    config = get_google_config()
    if not config.is_configured:
        print(f"Error: {SETUP_INSTRUCTIONS}", file=sys.stderr)
        sys.exit(1)

    logger.info("Starting sosaku MCP server over stdio")
    logger.info("Project: %s", config.project_id or "not set")
    logger.info("Location: %s", config.location)
    logger.info("API key: %s", "set" if config.api_key else "not set")
    logger.info("Credentials file: %s", config.credentials_path or "application default")
    get_available_features()

    signal.signal(signal.SIGTERM, _handle_sigterm)
    try:
        mcp.run()
    except KeyboardInterrupt:
        logger.info("Shutting down server...")
        sys.exit(0)
    except Exception:
        logger.exception("Server failed")
        sys.exit(1)


if __name__ == "__main__":
    main()
