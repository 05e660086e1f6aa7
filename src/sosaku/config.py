# SPDX-License-Identifier: MIT
"""Configuration management for sosaku MCP server.

This module handles:
- Google credential configuration (API key, project, location)
- Environment variable validation
- Output path configuration with security checks
- Polling and HTTP tunables
- Logging setup
"""

import logging
import os
import pathlib
import sys
from functools import lru_cache
from typing import Literal

from pydantic import BaseModel

# ---------- Logging configuration ----------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,  # Log to stderr to avoid interfering with stdio MCP transport
)
logger = logging.getLogger("sosaku")

DEFAULT_LOCATION = "us-central1"
DEFAULT_VERTEX_ENDPOINT = "https://aiplatform.googleapis.com/v1"
TEXT_TO_SPEECH_ENDPOINT = "https://texttospeech.googleapis.com/v1"

SETUP_INSTRUCTIONS = """Either GOOGLE_AI_API_KEY or GOOGLE_CLOUD_PROJECT_ID must be set

Setup instructions:
1. For API Key authentication:
   export GOOGLE_AI_API_KEY="your-api-key"

2. For Service Account authentication:
   export GOOGLE_CLOUD_PROJECT_ID="your-project-id"
   export GOOGLE_APPLICATION_CREDENTIALS="/path/to/service-account.json"

3. For gcloud CLI authentication:
   gcloud auth application-default login
   export GOOGLE_CLOUD_PROJECT_ID="your-project-id"
"""


# ---------- Google credentials ----------
class GoogleAIConfig(BaseModel, frozen=True):
    """Credentials and endpoint settings for Google generative APIs."""

    api_key: str | None = None
    project_id: str | None = None
    location: str = DEFAULT_LOCATION
    credentials_path: str | None = None
    vertex_endpoint: str = DEFAULT_VERTEX_ENDPOINT

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key or self.project_id)


def _first_env(*names: str) -> str | None:
    for name in names:
        value = os.getenv(name)
        if value and value.strip():
            return value.strip()
    return None


@lru_cache(maxsize=1)
def get_google_config() -> GoogleAIConfig:
    """Build the Google configuration from environment variables.

    Environment:
        GOOGLE_AI_API_KEY / GOOGLE_API_KEY        API key (x-goog-api-key header)
        GOOGLE_CLOUD_PROJECT_ID / GOOGLE_CLOUD_PROJECT / GCLOUD_PROJECT
        GOOGLE_CLOUD_LOCATION                     Region (default: us-central1)
        GOOGLE_APPLICATION_CREDENTIALS            Service account or ADC file
        VERTEX_API_ENDPOINT                       Vertex AI base URL override

    Returns:
        Frozen GoogleAIConfig
    """
    return GoogleAIConfig(
        api_key=_first_env("GOOGLE_AI_API_KEY", "GOOGLE_API_KEY"),
        project_id=_first_env("GOOGLE_CLOUD_PROJECT_ID", "GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT"),
        location=_first_env("GOOGLE_CLOUD_LOCATION") or DEFAULT_LOCATION,
        credentials_path=_first_env("GOOGLE_APPLICATION_CREDENTIALS"),
        vertex_endpoint=(_first_env("VERTEX_API_ENDPOINT") or DEFAULT_VERTEX_ENDPOINT).rstrip("/"),
    )


def require_google_config() -> GoogleAIConfig:
    """Return the Google configuration, failing if no credential source is set.

    Raises:
        RuntimeError: If neither an API key nor a project id is configured
    """
    config = get_google_config()
    if not config.is_configured:
        raise RuntimeError(SETUP_INSTRUCTIONS)
    return config


# ---------- Tunables ----------
def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from e
    if value < 0:
        raise RuntimeError(f"{name} must be non-negative, got {value}")
    return value


class PollSettings(BaseModel, frozen=True):
    """Maximum wait and fixed interval for a long-running operation, in seconds."""

    max_wait: float
    interval: float


def get_poll_settings(kind: Literal["video", "music"]) -> PollSettings:
    """Polling limits for video (10 min / 30 s) and music (8 min / 20 s) jobs."""
    if kind == "video":
        return PollSettings(
            max_wait=_float_env("SOSAKU_VIDEO_POLL_TIMEOUT", 10 * 60),
            interval=_float_env("SOSAKU_VIDEO_POLL_INTERVAL", 30),
        )
    return PollSettings(
        max_wait=_float_env("SOSAKU_MUSIC_POLL_TIMEOUT", 8 * 60),
        interval=_float_env("SOSAKU_MUSIC_POLL_INTERVAL", 20),
    )


def get_http_timeout() -> float:
    return _float_env("SOSAKU_HTTP_TIMEOUT", 300.0)


def get_ffmpeg_binary() -> str:
    return os.getenv("FFMPEG_BINARY", "ffmpeg").strip() or "ffmpeg"


# ---------- Path configuration (runtime) ----------

PathKind = Literal["image", "video", "audio", "media"]

# Mapping from path_type to (individual env var, subdirectory under SOSAKU_OUTPUT_PATH)
_OUTPUT_SUBDIRS: dict[str, tuple[str, str]] = {
    "image": ("IMAGE_PATH", "images"),
    "video": ("VIDEO_PATH", "videos"),
    "audio": ("AUDIO_PATH", "audio"),
    "media": ("MEDIA_PATH", "processed"),
}

_ERROR_NAMES: dict[str, str] = {
    "image": "Image output directory",
    "video": "Video output directory",
    "audio": "Audio output directory",
    "media": "Processed media directory",
}


def get_output_root() -> pathlib.Path:
    """Unified output root: SOSAKU_OUTPUT_PATH, or ./output when unset."""
    unified = os.getenv("SOSAKU_OUTPUT_PATH")
    if unified and unified.strip():
        return pathlib.Path(unified.strip()).expanduser()
    return pathlib.Path.cwd() / "output"


def _resolve_output_path(path_type: PathKind) -> tuple[str, str, bool]:
    """Resolve path string from individual env var or the unified output root.

    Priority: individual env var > SOSAKU_OUTPUT_PATH/{subdir} > ./output/{subdir}.

    Returns:
        (path_str, env_var_name_for_errors, using_unified) tuple
    """
    env_var, subdir = _OUTPUT_SUBDIRS[path_type]

    individual = os.getenv(env_var)
    if individual and individual.strip():
        return individual.strip(), env_var, False

    return os.path.join(str(get_output_root()), subdir), "SOSAKU_OUTPUT_PATH", True


@lru_cache(maxsize=4)
def get_path(path_type: PathKind) -> pathlib.Path:
    """Get and validate a configured output path from environment.

    Supports two configuration modes:
    1. Individual env vars: IMAGE_PATH, VIDEO_PATH, AUDIO_PATH, MEDIA_PATH (take precedence)
    2. Unified root: SOSAKU_OUTPUT_PATH, default ./output (auto-creates images/, videos/,
       audio/, processed/ subdirs)

    Security: Rejects symlinks in environment variable paths to prevent directory traversal.

    Args:
        path_type: One of "image", "video", "audio" or "media"

    Returns:
        Validated absolute path

    Raises:
        RuntimeError: If the path is malformed, doesn't exist, isn't a directory, or is a symlink
    """
    error_name = _ERROR_NAMES[path_type]
    path_str, env_var, using_unified = _resolve_output_path(path_type)

    try:
        path = pathlib.Path(path_str).expanduser().resolve()
    except (ValueError, OSError) as e:
        raise RuntimeError(f"Invalid {error_name} path '{path_str}': {e}") from e

    # Check the original path before resolution to catch symlinks
    original_path = pathlib.Path(path_str).expanduser()
    try:
        if original_path.exists() and original_path.is_symlink():
            raise RuntimeError(f"{error_name} cannot be a symbolic link: {path_str}")
    except PermissionError as e:
        raise RuntimeError(f"Cannot validate {error_name}: permission denied for {path_str}") from e

    if using_unified and not path.exists():
        try:
            path.mkdir(parents=True, exist_ok=True)
            logger.info("Auto-created directory: %s", path)
        except OSError as e:
            raise RuntimeError(f"Failed to auto-create {error_name} at {path}: {e}") from e

    if not path.exists():
        raise RuntimeError(f"{env_var}: {error_name} does not exist: {path}")
    if not path.is_dir():
        raise RuntimeError(f"{env_var}: {error_name} is not a directory: {path}")

    return path
