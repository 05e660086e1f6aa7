# SPDX-License-Identifier: MIT
"""Image generation tools using Imagen on Vertex AI.

This module handles image operations:
- Generating images from a text prompt
- Editing an existing image (optionally masked)
- Upscaling an existing image
"""

import pathlib
from typing import Any, Literal

from ..config import logger
from ..exceptions import GenerationError, wrap_error
from ..infrastructure import ArtifactRepository, read_input_base64
from ..security import resolve_input_file
from ..types import GeneratedFile, GenerationResult
from ..utils import extension_for_mime, format_file_size, preview
from ..vertex import SAFETY_SETTINGS, get_vertex_client

GENERATE_MODEL = "imagen-3.0-generate-001"
EDIT_MODEL = "imagen-3.0-edit-001"
UPSCALE_MODEL = "imagen-3.0-upscale-001"

MAX_PROMPT_LENGTH = 1000
DEFAULT_DIMENSION = 1024

ScaleFactor = Literal[2, 4, 8]


# ==================== HELPER FUNCTIONS ====================


def _validate_generate_request(
    prompt: str,
    width: int | None,
    height: int | None,
    num_images: int,
    guidance_scale: float | None,
) -> None:
    if not prompt:
        raise ValueError("Prompt is required for image generation")
    if len(prompt) > MAX_PROMPT_LENGTH:
        raise ValueError(f"Prompt must be {MAX_PROMPT_LENGTH} characters or less")
    if width is not None and not 64 <= width <= 2048:
        raise ValueError("Width must be between 64 and 2048 pixels")
    if height is not None and not 64 <= height <= 2048:
        raise ValueError("Height must be between 64 and 2048 pixels")
    _validate_common(num_images, guidance_scale)


def _validate_common(num_images: int, guidance_scale: float | None) -> None:
    if not 1 <= num_images <= 8:
        raise ValueError("Number of images must be between 1 and 8")
    if guidance_scale is not None and not 1 <= guidance_scale <= 20:
        raise ValueError("Guidance scale must be between 1 and 20")


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop unset optional fields from a request instance."""
    return {k: v for k, v in values.items() if v is not None}


async def _save_predictions(
    repo: ArtifactRepository,
    predictions: list[dict[str, Any]],
    prefix: str,
    base_metadata: dict[str, Any],
    fallback_size: tuple[int | None, int | None] = (None, None),
) -> list[GeneratedFile]:
    """Write every prediction carrying image bytes and attach its dimensions."""
    files: list[GeneratedFile] = []
    for index, prediction in enumerate(predictions, start=1):
        encoded = prediction.get("bytesBase64Encoded")
        if not encoded:
            continue

        extension = extension_for_mime(prediction.get("mimeType"), "png")
        saved = await repo.save_base64("image", prefix, extension, encoded, dict(base_metadata))

        # Prefer the written file, then what the API reported, then what was asked for
        dimensions = await repo.image_dimensions("image", pathlib.Path(saved.path).name)
        width, height = dimensions or (
            prediction.get("width") or fallback_size[0] or DEFAULT_DIMENSION,
            prediction.get("height") or fallback_size[1] or DEFAULT_DIMENSION,
        )
        saved.metadata.update(width=width, height=height)
        if prediction.get("seed") is not None:
            saved.metadata["seed"] = prediction["seed"]

        logger.info("Image %d saved: %s", index, saved.path)
        files.append(saved)

    if not files:
        raise GenerationError("No image data in response")
    return files


def _log_totals(result: GenerationResult, verb: str) -> None:
    logger.info("Successfully %s %d image(s)", verb, result.metadata.total_files)
    logger.info("Total size: %s", format_file_size(result.metadata.total_size))


# ==================== PUBLIC API ====================


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
) -> GenerationResult:
    """Generate images from a text prompt with Imagen.

    Args:
        prompt: Text description, at most 1000 characters
        width: Image width in pixels (64-2048)
        height: Image height in pixels (64-2048)
        num_images: Number of images to generate (1-8)
        style: Optional style hint
        negative_prompt: What to keep out of the image
        guidance_scale: Prompt adherence (1-20)
        seed: Seed for reproducible output
        steps: Number of sampling steps
        language: Prompt language code

    Returns:
        GenerationResult with one file per generated image

    Raises:
        GenerationError: If validation, the API call, or saving fails
    """
    try:
        _validate_generate_request(prompt, width, height, num_images, guidance_scale)

        instance = _compact(
            {
                "prompt": prompt,
                "negative_prompt": negative_prompt,
                "width": width,
                "height": height,
                "guidance_scale": guidance_scale,
                "seed": seed,
                "steps": steps,
                "style": style,
            }
        )
        body = {
            "instances": [instance],
            "parameters": {
                "sampleCount": num_images,
                "language": language,
                "safetySettings": SAFETY_SETTINGS,
            },
        }

        logger.info("Generating %d image(s) with Imagen", num_images)
        logger.info('Prompt: "%s"', preview(prompt))

        async with get_vertex_client() as client:
            response = await client.predict(GENERATE_MODEL, body)

        files = await _save_predictions(
            ArtifactRepository(),
            response.get("predictions") or [],
            "imagen",
            _compact(
                {"prompt": prompt, "guidance_scale": guidance_scale, "seed": seed, "steps": steps, "style": style}
            ),
            fallback_size=(width, height),
        )

        result = GenerationResult.from_files(
            GENERATE_MODEL,
            files,
            {
                "prompt": prompt,
                "width": width,
                "height": height,
                "num_images": num_images,
                "style": style,
                "negative_prompt": negative_prompt,
                "guidance_scale": guidance_scale,
                "seed": seed,
                "steps": steps,
                "language": language,
            },
        )
        _log_totals(result, "generated")
        return result
    except Exception as e:
        raise wrap_error(e, "Imagen image generation") from e


async def edit_image(
    image_path: str,
    prompt: str,
    mask_path: str | None = None,
    guidance_scale: float | None = None,
    seed: int | None = None,
    num_images: int = 1,
    language: str = "en",
) -> GenerationResult:
    """Edit an existing image guided by a prompt, optionally restricted to a mask.

    Args:
        image_path: Image to edit (absolute, or relative to the output root)
        prompt: Description of the edit
        mask_path: Optional mask image; edits apply where the mask is set
        guidance_scale: Prompt adherence (1-20)
        seed: Seed for reproducible output
        num_images: Number of variants (1-8)
        language: Prompt language code
    """
    try:
        if not prompt:
            raise ValueError("Prompt is required for image editing")
        if len(prompt) > MAX_PROMPT_LENGTH:
            raise ValueError(f"Prompt must be {MAX_PROMPT_LENGTH} characters or less")
        _validate_common(num_images, guidance_scale)

        source = resolve_input_file(image_path, "Image")
        instance: dict[str, Any] = {
            "prompt": prompt,
            "image": {"bytesBase64Encoded": await read_input_base64(source)},
        }
        mask = None
        if mask_path:
            mask = resolve_input_file(mask_path, "Mask")
            instance["mask"] = {"bytesBase64Encoded": await read_input_base64(mask)}
        instance.update(_compact({"guidance_scale": guidance_scale, "seed": seed}))

        body = {
            "instances": [instance],
            "parameters": {"sampleCount": num_images, "language": language},
        }

        logger.info("Editing image %s with Imagen", source.name)
        logger.info('Edit prompt: "%s"', preview(prompt))

        async with get_vertex_client() as client:
            response = await client.predict(EDIT_MODEL, body)

        files = await _save_predictions(
            ArtifactRepository(),
            response.get("predictions") or [],
            "imagen_edit",
            _compact(
                {
                    "prompt": prompt,
                    "original_image": str(source),
                    "mask_image": str(mask) if mask else None,
                    "guidance_scale": guidance_scale,
                }
            ),
        )

        result = GenerationResult.from_files(
            EDIT_MODEL,
            files,
            {
                "image_path": image_path,
                "prompt": prompt,
                "mask_path": mask_path,
                "guidance_scale": guidance_scale,
                "seed": seed,
                "num_images": num_images,
                "language": language,
            },
            operation="edit",
        )
        _log_totals(result, "edited")
        return result
    except Exception as e:
        raise wrap_error(e, "Imagen image editing") from e


async def upscale_image(image_path: str, scale_factor: int = 2) -> GenerationResult:
    """Upscale an existing image by 2x, 4x or 8x."""
    try:
        if scale_factor not in (2, 4, 8):
            raise ValueError("Scale factor must be one of: 2, 4, 8")

        source = resolve_input_file(image_path, "Image")
        body = {
            "instances": [
                {
                    "image": {"bytesBase64Encoded": await read_input_base64(source)},
                    "scaleFactor": scale_factor,
                }
            ]
        }

        logger.info("Upscaling image %s by %dx with Imagen", source.name, scale_factor)

        async with get_vertex_client() as client:
            response = await client.predict(UPSCALE_MODEL, body)

        files = await _save_predictions(
            ArtifactRepository(),
            response.get("predictions") or [],
            "imagen_upscale",
            {"original_image": str(source), "scale_factor": scale_factor},
        )

        result = GenerationResult.from_files(
            UPSCALE_MODEL,
            files,
            {"image_path": image_path, "scale_factor": scale_factor, "prompt": f"Upscale {scale_factor}x"},
            operation="upscale",
        )
        _log_totals(result, "upscaled")
        return result
    except Exception as e:
        raise wrap_error(e, "Imagen image upscaling") from e
