# SPDX-License-Identifier: MIT
"""Request and result models returned by sosaku tools."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from .utils import utc_timestamp

MediaOperation = Literal["merge", "extract_audio", "add_subtitles", "trim", "resize", "convert"]
MediaFormat = Literal["mp4", "avi", "mov", "webm", "mp3", "wav", "flac"]


class GeneratedFile(BaseModel):
    """A file written by a generation or processing operation."""

    path: str
    url: str
    size: int = Field(ge=0)
    mime_type: str
    metadata: dict[str, Any] = Field(default_factory=dict)


class GenerationMetadata(BaseModel):
    model: str
    timestamp: str
    total_files: int
    total_size: int
    operation: str | None = None
    chunks: int | None = None
    parts: int | None = None


class GenerationResult(BaseModel):
    """Result of an image, video, speech or music generation."""

    success: bool = True
    files: list[GeneratedFile]
    request: dict[str, Any]
    metadata: GenerationMetadata

    @classmethod
    def from_files(
        cls,
        model: str,
        files: list[GeneratedFile],
        request: dict[str, Any],
        *,
        operation: str | None = None,
        chunks: int | None = None,
        parts: int | None = None,
    ) -> "GenerationResult":
        """Assemble a result, totalling file sizes. ``None`` request values are dropped."""
        return cls(
            files=files,
            request={k: v for k, v in request.items() if v is not None},
            metadata=GenerationMetadata(
                model=model,
                timestamp=utc_timestamp(),
                total_files=len(files),
                total_size=sum(f.size for f in files),
                operation=operation,
                chunks=chunks,
                parts=parts,
            ),
        )


class MusicPart(BaseModel):
    """One section of a multi-part composition."""

    prompt: str
    duration: int
    instruments: list[str] | None = None
    mood: str | None = None


# ==================== MEDIA PROCESSING ====================


class MediaOptions(BaseModel):
    """Operation-specific options for media processing."""

    start_time: str | None = Field(default=None, description="Trim start (HH:MM:SS)")
    end_time: str | None = Field(default=None, description="Trim end (HH:MM:SS), used when duration is unset")
    duration: str | None = Field(default=None, description="Trim duration (HH:MM:SS)")
    width: int | None = Field(default=None, gt=0, description="Target width")
    height: int | None = Field(default=None, gt=0, description="Target height")
    maintain_aspect_ratio: bool = Field(default=False, description="Keep source aspect ratio when resizing")
    format: MediaFormat | None = Field(default=None, description="Target format for convert")


class MediaRequest(BaseModel):
    """A single media-processing request."""

    operation: MediaOperation
    input_files: list[str]
    output_path: str | None = None
    options: MediaOptions = Field(default_factory=MediaOptions)


class MediaProcessingMetadata(BaseModel):
    operation: str
    timestamp: str
    input_count: int
    output_count: int


class MediaProcessingResult(BaseModel):
    success: bool = True
    output_files: list[GeneratedFile] = Field(default_factory=list)
    request: MediaRequest
    metadata: MediaProcessingMetadata
    error: str | None = None


class BatchResult(BaseModel):
    results: list[MediaProcessingResult]
    total: int
    succeeded: int
    failed: int
    summary: str


class SystemInfo(BaseModel):
    ffmpeg_version: str
    supported_formats: list[str]
    available_codecs: list[str]
    features: dict[str, bool] = Field(default_factory=dict)
