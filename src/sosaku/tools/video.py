# SPDX-License-Identifier: MIT
"""Video generation tools using Veo on Vertex AI.

This module handles video operations:
- Starting a text-to-video generation and waiting for it to finish
- Restyling an existing video (video-to-video)
- Saving the result, inline bytes or a downloadable URI, as an MP4
"""

from typing import Any, Literal

from ..config import get_poll_settings, logger
from ..exceptions import GenerationError, wrap_error
from ..infrastructure import ArtifactRepository, read_input_base64
from ..security import resolve_input_file
from ..types import GenerationResult
from ..utils import format_file_size, preview
from ..vertex import VertexClient, await_prediction, get_vertex_client

GENERATE_MODEL = "veo-001"
STYLE_MODEL = "veo-style-001"

MAX_PROMPT_LENGTH = 2000

Resolution = Literal["720p", "1080p", "4K"]
FrameRate = Literal[24, 30, 60]

RESOLUTIONS: dict[str, dict[str, int]] = {
    "720p": {"width": 1280, "height": 720},
    "1080p": {"width": 1920, "height": 1080},
    "4K": {"width": 3840, "height": 2160},
}


# ==================== HELPER FUNCTIONS ====================


def _validate_request(prompt: str, duration: int | None, resolution: str | None, fps: int | None) -> None:
    if not prompt:
        raise ValueError("Prompt is required for video generation")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValueError(f"Prompt must be {MAX_PROMPT_LENGTH} characters or less")
    if duration is not None and not 2 <= duration <= 120:
        raise ValueError("Duration must be between 2 and 120 seconds")
    if resolution is not None and resolution not in RESOLUTIONS:
        raise ValueError(f"Resolution must be one of: {', '.join(RESOLUTIONS)}")
    if fps is not None and fps not in (24, 30, 60):
        raise ValueError("FPS must be one of: 24, 30, 60")


async def _run_generation(
    client: VertexClient,
    model: str,
    body: dict[str, Any],
    request: dict[str, Any],
    operation: str | None = None,
) -> GenerationResult:
    """Start a generation, wait for its prediction, and save the video."""
    response = await client.predict(model, body)
    prediction = await await_prediction(client, response, get_poll_settings("video"), "Video generation")

    repo = ArtifactRepository()
    metadata = {
        k: v
        for k, v in {
            "prompt": request.get("prompt"),
            "duration": prediction.get("duration") or request.get("duration") or 5,
            "resolution": request.get("resolution") or "1080p",
            "fps": request.get("fps") or 30,
            "style": request.get("style"),
            "camera_movement": request.get("camera_movement"),
            "aspect_ratio": request.get("aspect_ratio"),
        }.items()
        if v is not None
    }

    if prediction.get("bytesBase64Encoded"):
        video = await repo.save_base64("video", "veo", "mp4", prediction["bytesBase64Encoded"], metadata)
        logger.info("Video saved: %s", video.path)
    elif prediction.get("videoUri"):
        uri = prediction["videoUri"]
        video = await repo.save_download(client, uri, "video", "veo", "mp4", {**metadata, "downloaded_from": uri})
        logger.info("Video downloaded: %s", video.path)
    else:
        raise GenerationError("No video data in generation result")

    result = GenerationResult.from_files(model, [video], request, operation=operation)
    logger.info("Successfully generated %d video(s)", result.metadata.total_files)
    logger.info("Total size: %s", format_file_size(result.metadata.total_size))
    return result


# ==================== PUBLIC API ====================


async def generate_video(
    prompt: str,
    duration: int | None = None,
    resolution: Resolution | None = None,
    fps: FrameRate | None = None,
    style: str | None = None,
    camera_movement: str | None = None,
    aspect_ratio: str | None = None,
    language: str = "en",
) -> GenerationResult:
    """Generate a video from a text prompt with Veo.

    Blocks until the long-running operation finishes (10 minutes at most by
    default, polled every 30 seconds).

    Args:
        prompt: Text description, at most 2000 characters
        duration: Length in seconds (2-120)
        resolution: 720p, 1080p or 4K
        fps: 24, 30 or 60
        style: Optional visual style
        camera_movement: Optional camera direction, e.g. "slow pan left"
        aspect_ratio: Optional aspect ratio, e.g. "16:9"
        language: Prompt language code

    Returns:
        GenerationResult with the saved MP4

    Raises:
        GenerationError: On validation failure, API error or missing result
        GenerationTimeoutError: If the operation does not finish in time
    """
    try:
        _validate_request(prompt, duration, resolution, fps)

        instance: dict[str, Any] = {"prompt": prompt}
        if duration:
            instance["duration"] = duration
        if resolution:
            instance["resolution"] = RESOLUTIONS[resolution]
        if fps:
            instance["frameRate"] = fps
        if style:
            instance["style"] = style
        if camera_movement:
            instance["cameraMovement"] = camera_movement
        if aspect_ratio:
            instance["aspectRatio"] = aspect_ratio

        body = {"instances": [instance], "parameters": {"language": language}}

        logger.info("Generating video with Veo")
        logger.info('Prompt: "%s"', preview(prompt))
        logger.info("Duration: %s seconds, resolution: %s", duration or 5, resolution or "1080p")

        request = {
            "prompt": prompt,
            "duration": duration,
            "resolution": resolution,
            "fps": fps,
            "style": style,
            "camera_movement": camera_movement,
            "aspect_ratio": aspect_ratio,
            "language": language,
        }
        async with get_vertex_client() as client:
            return await _run_generation(client, GENERATE_MODEL, body, request)
    except Exception as e:
        raise wrap_error(e, "Veo video generation") from e


async def style_transfer_video(
    video_path: str,
    style_prompt: str,
    style: str | None = None,
    duration: int | None = None,
    language: str = "en",
) -> GenerationResult:
    """Apply a style to an existing video with Veo.

    Args:
        video_path: Source video (absolute, or relative to the output root)
        style_prompt: Description of the target look
        style: Optional named target style
        duration: Maximum output length in seconds
        language: Prompt language code
    """
    try:
        if not style_prompt:
            raise ValueError("Style prompt is required for video style transfer")
        if len(style_prompt) > MAX_PROMPT_LENGTH:
            raise ValueError(f"Prompt must be {MAX_PROMPT_LENGTH} characters or less")

        source = resolve_input_file(video_path, "Video")
        instance: dict[str, Any] = {
            "prompt": style_prompt,
            "video": {"bytesBase64Encoded": await read_input_base64(source)},
        }
        if style:
            instance["targetStyle"] = style
        if duration:
            instance["maxDuration"] = duration

        body = {"instances": [instance], "parameters": {"language": language}}

        logger.info("Applying style transfer to %s", source.name)
        logger.info('Style prompt: "%s"', preview(style_prompt))

        request = {
            "video_path": video_path,
            "prompt": style_prompt,
            "style": style,
            "duration": duration,
            "language": language,
        }
        async with get_vertex_client() as client:
            return await _run_generation(client, STYLE_MODEL, body, request, operation="style_transfer")
    except Exception as e:
        raise wrap_error(e, "Veo video style transfer") from e
