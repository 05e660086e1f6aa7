# SPDX-License-Identifier: MIT
"""Detection of the external capabilities sosaku tools rely on.

Media processing shells out to ffmpeg. Audio durations are probed by pydub,
which needs ffprobe. Image dimensions are read by Pillow, whose JPEG and
WebP decoders are optional at build time.
"""

import shutil

from PIL import features as pil_features
from pydub.utils import get_prober_name  # type: ignore[import-untyped]

from .config import get_ffmpeg_binary, logger

IMAGE_DECODERS = ("jpg", "webp")


def check_ffmpeg_available() -> bool:
    """True if FFMPEG_BINARY (default ``ffmpeg``) resolves to an executable."""
    binary = get_ffmpeg_binary()
    if shutil.which(binary):
        logger.info("ffmpeg detected - media processing tools available")
        return True
    logger.warning(f"ffmpeg not found ({binary}) - media processing tools will fail")
    return False


def check_audio_available() -> bool:
    """True if pydub can find a prober for audio durations."""
    prober = get_prober_name()
    if shutil.which(prober):
        return True
    logger.info(f"{prober} not found - audio durations will be omitted")
    return False


def check_image_available() -> bool:
    """True if Pillow can decode every format Imagen may return."""
    missing = [name for name in IMAGE_DECODERS if not pil_features.check(name)]
    if missing:
        logger.info(f"Pillow lacks {', '.join(missing)} support - dimensions fall back to API values")
        return False
    return True


def get_available_features() -> dict[str, bool]:
    """Map of capability name to availability, logged at startup and reported by get_system_info."""
    return {
        "ffmpeg": check_ffmpeg_available(),
        "image": check_image_available(),
        "audio": check_audio_available(),
    }
