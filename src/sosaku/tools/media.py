# SPDX-License-Identifier: MIT
"""Audio/video processing tools backed by the ffmpeg command line tool.

Command lines are assembled with ffmpeg-python and executed with
``anyio.run_process``. Every command overwrites its output (``-y``).

Operations:
- merge: concatenate inputs with the concat demuxer (stream copy)
- extract_audio: MP3 at 192k per input
- add_subtitles: burn a subtitle file into a video
- trim: cut a time range per input (stream copy)
- resize: scale video per input
- convert: re-encode per input to a target container
"""

import pathlib
import re
import shlex
import subprocess
import tempfile
from collections.abc import Callable
from typing import Any

import aiofiles
import anyio
import ffmpeg  # type: ignore[import-untyped]

from ..config import get_ffmpeg_binary, get_path, logger
from ..exceptions import GenerationError, MediaToolError, wrap_error
from ..features import get_available_features
from ..infrastructure import ArtifactRepository
from ..security import check_not_symlink, resolve_input_file
from ..types import (
    BatchResult,
    GeneratedFile,
    MediaOperation,
    MediaOptions,
    MediaProcessingMetadata,
    MediaProcessingResult,
    MediaRequest,
    SystemInfo,
)
from ..utils import format_file_size, generate_filename, utc_timestamp

OPERATIONS: tuple[str, ...] = ("merge", "extract_audio", "add_subtitles", "trim", "resize", "convert")

BATCH_DELAY_SECONDS = 1.0
SYSTEM_INFO_LIMIT = 20
STDERR_TAIL_LINES = 10

DEFAULT_START_TIME = "00:00:00"
DEFAULT_TRIM_DURATION = "00:00:30"
DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
DEFAULT_FORMAT = "mp4"


# ==================== COMMAND BUILDERS ====================


FILTER_OPTION_SPECIALS = "\\:'"
FILTERGRAPH_SPECIALS = "\\'[],;"


def _backslash_escape(text: str, specials: str) -> str:
    return "".join(f"\\{ch}" if ch in specials else ch for ch in text)


def _escape_filter_path(path: pathlib.Path | str) -> str:
    """Escape a path as a filter option value, then for the enclosing filtergraph."""
    return _backslash_escape(_backslash_escape(str(path), FILTER_OPTION_SPECIALS), FILTERGRAPH_SPECIALS)


def _concat_list(paths: list[pathlib.Path]) -> str:
    """Body of a concat demuxer list file, one ``file '...'`` line per input."""
    lines = []
    for path in paths:
        quoted = str(path).replace("'", "'\\''")
        lines.append(f"file '{quoted}'")
    return "\n".join(lines) + "\n"


def merge_command(list_file: pathlib.Path, output: pathlib.Path) -> list[str]:
    stream = ffmpeg.input(str(list_file), format="concat", safe=0).output(str(output), c="copy")
    return ffmpeg.compile(stream, cmd=get_ffmpeg_binary(), overwrite_output=True)


def extract_audio_command(source: pathlib.Path, output: pathlib.Path) -> list[str]:
    stream = ffmpeg.input(str(source)).output(str(output), vn=None, acodec="mp3", ab="192k")
    return ffmpeg.compile(stream, cmd=get_ffmpeg_binary(), overwrite_output=True)


def subtitles_command(video: pathlib.Path, subtitles: pathlib.Path, output: pathlib.Path) -> list[str]:
    stream = ffmpeg.input(str(video)).output(str(output), vf=f"subtitles={_escape_filter_path(subtitles)}")
    return ffmpeg.compile(stream, cmd=get_ffmpeg_binary(), overwrite_output=True)


def trim_command(source: pathlib.Path, output: pathlib.Path, options: MediaOptions) -> list[str]:
    """``-ss start -t duration``; ``end_time`` becomes ``-to`` when no duration is given."""
    cut: dict[str, Any] = {"ss": options.start_time or DEFAULT_START_TIME}
    if options.duration:
        cut["t"] = options.duration
    elif options.end_time:
        cut["to"] = options.end_time
    else:
        cut["t"] = DEFAULT_TRIM_DURATION
    stream = ffmpeg.input(str(source)).output(str(output), c="copy", **cut)
    return ffmpeg.compile(stream, cmd=get_ffmpeg_binary(), overwrite_output=True)


def resize_command(source: pathlib.Path, output: pathlib.Path, options: MediaOptions) -> list[str]:
    width = options.width or DEFAULT_WIDTH
    # -2 keeps the source ratio while rounding to an even height
    height = -2 if options.maintain_aspect_ratio else (options.height or DEFAULT_HEIGHT)
    stream = ffmpeg.input(str(source)).output(str(output), vf=f"scale={width}:{height}")
    return ffmpeg.compile(stream, cmd=get_ffmpeg_binary(), overwrite_output=True)


def convert_command(source: pathlib.Path, output: pathlib.Path) -> list[str]:
    stream = ffmpeg.input(str(source)).output(str(output))
    return ffmpeg.compile(stream, cmd=get_ffmpeg_binary(), overwrite_output=True)


async def run_ffmpeg(argv: list[str]) -> None:
    """Run an ffmpeg command line.

    Raises:
        MediaToolError: If ffmpeg is missing or exits non-zero (message carries the stderr tail)
    """
    logger.info("Executing: %s", shlex.join(argv))
    try:
        await anyio.run_process(argv)
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or b"").decode("utf-8", errors="replace").strip().splitlines()
        tail = "\n".join(stderr[-STDERR_TAIL_LINES:])
        raise MediaToolError(f"ffmpeg exited with status {e.returncode}: {tail}") from e
    except FileNotFoundError as e:
        raise MediaToolError(f"ffmpeg not found: {argv[0]}") from e


# ==================== OUTPUT HELPERS ====================


def _explicit_output(output_path: str) -> pathlib.Path:
    """Resolve a caller-chosen output path; relative paths land in the media directory."""
    path = pathlib.Path(output_path).expanduser()
    if not path.is_absolute():
        path = get_path("media") / path
    check_not_symlink(path, "Output file")
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


async def _run_to_storage(
    repo: ArtifactRepository,
    prefix: str,
    extension: str,
    build: Callable[[pathlib.Path], list[str]],
    metadata: dict[str, Any],
) -> GeneratedFile:
    """Run ``build(output_path)`` into a fresh file in the media directory."""
    filename = generate_filename(prefix, extension)
    async with repo.storage.output_file("media", filename) as output:
        await run_ffmpeg(build(output))
    return await repo.describe("media", filename, metadata)


async def _run_to_target(
    repo: ArtifactRepository,
    output_path: str | None,
    prefix: str,
    extension: str,
    build: Callable[[pathlib.Path], list[str]],
    metadata: dict[str, Any],
) -> GeneratedFile:
    """Single-output operations honour ``output_path`` when one is given."""
    if not output_path:
        return await _run_to_storage(repo, prefix, extension, build, metadata)
    target = _explicit_output(output_path)
    await run_ffmpeg(build(target))
    return repo.describe_path(target, metadata)


# ==================== OPERATIONS ====================


async def _merge(repo: ArtifactRepository, inputs: list[pathlib.Path], output_path: str | None) -> list[GeneratedFile]:
    metadata = {"operation": "merge", "input_files": [str(p) for p in inputs], "method": "concat"}
    with tempfile.TemporaryDirectory(prefix="sosaku_merge_") as tmp:
        list_file = pathlib.Path(tmp) / "merge_list.txt"
        async with aiofiles.open(list_file, "w", encoding="utf-8") as f:
            await f.write(_concat_list(inputs))
        merged = await _run_to_target(
            repo, output_path, "merged", "mp4", lambda out: merge_command(list_file, out), metadata
        )
    logger.info("Files merged successfully: %s (%s)", merged.path, format_file_size(merged.size))
    return [merged]


async def _extract_audio(repo: ArtifactRepository, inputs: list[pathlib.Path]) -> list[GeneratedFile]:
    outputs = []
    for index, source in enumerate(inputs, start=1):
        logger.info("Extracting audio from %s", source.name)
        extracted = await _run_to_storage(
            repo,
            f"audio_extract_{index}",
            "mp3",
            lambda out, source=source: extract_audio_command(source, out),
            {"operation": "extract_audio", "source_file": str(source), "format": "mp3", "bitrate": "192k"},
        )
        outputs.append(extracted)
    return outputs


async def _add_subtitles(
    repo: ArtifactRepository, inputs: list[pathlib.Path], output_path: str | None
) -> list[GeneratedFile]:
    if len(inputs) != 2:
        raise ValueError("Add subtitles requires exactly 2 input files: video and subtitle file")
    video, subtitles = inputs
    logger.info("Adding subtitles %s to %s", subtitles.name, video.name)
    subtitled = await _run_to_target(
        repo,
        output_path,
        "subtitled",
        "mp4",
        lambda out: subtitles_command(video, subtitles, out),
        {"operation": "add_subtitles", "video_file": str(video), "subtitle_file": str(subtitles)},
    )
    return [subtitled]


async def _trim(repo: ArtifactRepository, inputs: list[pathlib.Path], options: MediaOptions) -> list[GeneratedFile]:
    outputs = []
    for index, source in enumerate(inputs, start=1):
        logger.info("Trimming %s", source.name)
        extension = source.suffix.lstrip(".") or DEFAULT_FORMAT
        metadata = {
            "operation": "trim",
            "source_file": str(source),
            "start_time": options.start_time or DEFAULT_START_TIME,
        }
        if options.duration or not options.end_time:
            metadata["duration"] = options.duration or DEFAULT_TRIM_DURATION
        else:
            metadata["end_time"] = options.end_time
        trimmed = await _run_to_storage(
            repo,
            f"trimmed_{index}",
            extension,
            lambda out, source=source: trim_command(source, out, options),
            metadata,
        )
        outputs.append(trimmed)
    return outputs


async def _resize(repo: ArtifactRepository, inputs: list[pathlib.Path], options: MediaOptions) -> list[GeneratedFile]:
    outputs = []
    for index, source in enumerate(inputs, start=1):
        logger.info("Resizing %s", source.name)
        resized = await _run_to_storage(
            repo,
            f"resized_{index}",
            "mp4",
            lambda out, source=source: resize_command(source, out, options),
            {
                "operation": "resize",
                "source_file": str(source),
                "width": options.width or DEFAULT_WIDTH,
                "height": None if options.maintain_aspect_ratio else (options.height or DEFAULT_HEIGHT),
                "maintain_aspect_ratio": options.maintain_aspect_ratio,
            },
        )
        outputs.append(resized)
    return outputs


async def _convert(repo: ArtifactRepository, inputs: list[pathlib.Path], options: MediaOptions) -> list[GeneratedFile]:
    target_format = options.format or DEFAULT_FORMAT
    outputs = []
    for index, source in enumerate(inputs, start=1):
        logger.info("Converting %s to %s", source.name, target_format)
        converted = await _run_to_storage(
            repo,
            f"converted_{index}",
            target_format,
            lambda out, source=source: convert_command(source, out),
            {
                "operation": "convert",
                "source_file": str(source),
                "source_format": source.suffix.lstrip("."),
                "target_format": target_format,
            },
        )
        outputs.append(converted)
    return outputs


# ==================== PUBLIC API ====================


async def process_media(
    operation: MediaOperation,
    input_files: list[str],
    output_path: str | None = None,
    options: MediaOptions | None = None,
) -> MediaProcessingResult:
    """Run one media-processing operation with ffmpeg.

    Args:
        operation: merge, extract_audio, add_subtitles, trim, resize or convert
        input_files: Input paths (absolute, or relative to the output root)
        output_path: Destination for merge and add_subtitles; ignored by per-input operations
        options: Operation-specific options (trim range, size, target format)

    Returns:
        MediaProcessingResult listing the written files

    Raises:
        GenerationError: On invalid input or ffmpeg failure
    """
    options = options or MediaOptions()
    try:
        if operation not in OPERATIONS:
            raise ValueError(f"Operation must be one of: {', '.join(OPERATIONS)}")
        if not input_files:
            raise ValueError("At least one input file is required")
        request = MediaRequest(operation=operation, input_files=input_files, output_path=output_path, options=options)
        inputs = [resolve_input_file(path) for path in input_files]

        logger.info("Processing %s operation", operation)
        logger.info("Input files: %d file(s)", len(inputs))

        repo = ArtifactRepository()
        if operation == "merge":
            outputs = await _merge(repo, inputs, output_path)
        elif operation == "extract_audio":
            outputs = await _extract_audio(repo, inputs)
        elif operation == "add_subtitles":
            outputs = await _add_subtitles(repo, inputs, output_path)
        elif operation == "trim":
            outputs = await _trim(repo, inputs, options)
        elif operation == "resize":
            outputs = await _resize(repo, inputs, options)
        else:
            outputs = await _convert(repo, inputs, options)

        return MediaProcessingResult(
            output_files=outputs,
            request=request,
            metadata=MediaProcessingMetadata(
                operation=operation,
                timestamp=utc_timestamp(),
                input_count=len(inputs),
                output_count=len(outputs),
            ),
        )
    except Exception as e:
        raise wrap_error(e, "Media processing") from e


async def batch_process_media(operations: list[MediaRequest]) -> BatchResult:
    """Run media operations one after another, one second apart.

    A failing operation is recorded with ``success=False`` and its error
    message; the remaining operations still run.
    """
    logger.info("Starting batch processing of %d operations", len(operations))
    results: list[MediaProcessingResult] = []

    for index, item in enumerate(operations, start=1):
        logger.info("Processing operation %d/%d: %s", index, len(operations), item.operation)
        try:
            result = await process_media(item.operation, item.input_files, item.output_path, item.options)
        except GenerationError as e:
            logger.error("Operation %d failed: %s", index, e)
            result = MediaProcessingResult(
                success=False,
                request=item,
                metadata=MediaProcessingMetadata(
                    operation=item.operation,
                    timestamp=utc_timestamp(),
                    input_count=len(item.input_files),
                    output_count=0,
                ),
                error=str(e),
            )
        else:
            logger.info("Operation %d completed successfully", index)
        results.append(result)

        if index < len(operations):
            await anyio.sleep(BATCH_DELAY_SECONDS)

    succeeded = sum(1 for r in results if r.success)
    summary = f"Batch processing completed: {succeeded}/{len(operations)} operations successful"
    logger.info(summary)
    return BatchResult(
        results=results,
        total=len(operations),
        succeeded=succeeded,
        failed=len(operations) - succeeded,
        summary=summary,
    )


# ==================== SYSTEM INFO ====================


def _table_rows(output: str) -> list[list[str]]:
    """Split the rows below the dashed separator of ``-formats`` / ``-codecs`` output."""
    rows: list[list[str]] = []
    in_table = False
    for line in output.splitlines():
        stripped = line.strip()
        if not in_table:
            in_table = bool(stripped) and set(stripped) == {"-"}
            continue
        parts = stripped.split()
        if len(parts) >= 2:
            rows.append(parts)
    return rows


def parse_formats(output: str, limit: int = SYSTEM_INFO_LIMIT) -> list[str]:
    """Muxable formats from ``ffmpeg -formats`` (flag column contains ``E``)."""
    return [parts[1] for parts in _table_rows(output) if "E" in parts[0]][:limit]


def parse_codecs(output: str, limit: int = SYSTEM_INFO_LIMIT) -> list[str]:
    """Encodable audio and video codecs from ``ffmpeg -codecs`` (flags like ``DEV.LS``)."""
    codecs = []
    for parts in _table_rows(output):
        flags = parts[0]
        if len(flags) >= 3 and flags[1] == "E" and flags[2] in ("V", "A"):
            codecs.append(parts[1])
    return codecs[:limit]


def parse_version(output: str) -> str:
    match = re.search(r"ffmpeg version (\S+)", output)
    return match.group(1) if match else "unknown"


async def _ffmpeg_stdout(*args: str) -> str:
    result = await anyio.run_process([get_ffmpeg_binary(), "-hide_banner", *args])
    return result.stdout.decode("utf-8", errors="replace")


async def get_system_info() -> SystemInfo:
    """Report the ffmpeg version with up to 20 muxable formats and encodable codecs.

    A missing or broken ffmpeg yields ``not installed`` with empty lists.
    """
    features = get_available_features()
    try:
        version_output = await anyio.run_process([get_ffmpeg_binary(), "-version"])
        version = parse_version(version_output.stdout.decode("utf-8", errors="replace"))
        formats = parse_formats(await _ffmpeg_stdout("-formats"))
        codecs = parse_codecs(await _ffmpeg_stdout("-codecs"))
    except (OSError, subprocess.CalledProcessError) as e:
        logger.warning("Could not get system info: %s", e)
        return SystemInfo(ffmpeg_version="not installed", supported_formats=[], available_codecs=[], features=features)

    return SystemInfo(ffmpeg_version=version, supported_formats=formats, available_codecs=codecs, features=features)
