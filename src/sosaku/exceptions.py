# SPDX-License-Identifier: MIT
"""Exceptions raised by sosaku tools."""

import httpx

from .config import logger


class GenerationError(RuntimeError):
    """A generation or media-processing operation failed."""


class GenerationTimeoutError(GenerationError):
    """A long-running operation did not finish within its maximum wait."""


class MediaToolError(GenerationError):
    """The ffmpeg command line tool exited with an error."""


def _api_error_message(response: httpx.Response) -> str:
    """Extract ``error.message`` from a Google API error body, else the reason phrase."""
    try:
        payload = response.json()
    except (ValueError, httpx.ResponseNotRead):
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return response.reason_phrase or "Unknown error"


def wrap_error(error: BaseException, operation: str) -> GenerationError:
    """Convert any error raised by an operation into a GenerationError.

    HTTP errors are distinguished only as "has a response" vs "network-level"
    vs "other". Errors that are already GenerationErrors pass through unchanged
    so nested operations do not stack prefixes.

    Args:
        error: The original exception
        operation: Human-readable operation label, e.g. "Imagen image generation"

    Returns:
        GenerationError carrying the original message (caller raises it)
    """
    if isinstance(error, GenerationError):
        return error

    logger.error("Error in %s: %s", operation, error)

    if isinstance(error, httpx.HTTPStatusError):
        message = _api_error_message(error.response)
        return GenerationError(f"{operation} failed: {message} (Status: {error.response.status_code})")
    if isinstance(error, httpx.RequestError):
        return GenerationError(f"{operation} failed: Network error - {error}")
    return GenerationError(f"{operation} failed: {error}")
