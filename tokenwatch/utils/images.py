"""Image utility helpers for preparing the alert banner for Telegram."""

import io
import logging
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)


def resize_image(image_path: Path, scale: float = 0.5) -> io.BytesIO:
    """
    Resize an image by a scale factor, preserving its aspect ratio.

    Args:
        image_path: Path to the source image file.
        scale: Scale factor (0.5 = half size).

    Returns:
        BytesIO buffer containing the resized PNG image, ready for Telegram.
    """
    try:
        with Image.open(image_path) as img:
            original_width, original_height = img.size
            new_size = (max(1, int(original_width * scale)), max(1, int(original_height * scale)))
            img = img.resize(new_size, Image.Resampling.LANCZOS)

            buffer = io.BytesIO()
            img.save(buffer, format="PNG", optimize=True)
            buffer.seek(0)

            logger.debug(
                "Resized banner from %dx%d to %dx%d",
                original_width,
                original_height,
                img.size[0],
                img.size[1],
            )
            return buffer
    except Exception:
        logger.exception("Failed to resize image %s", image_path)
        raise


def load_banner(image_path: Path, scale: float = 1.0) -> io.BytesIO:
    """
    Load the alert banner, downscaling it when ``scale`` is below 1.

    Returns:
        BytesIO buffer with the banner bytes, positioned at the start.
    """
    if scale >= 1:
        return io.BytesIO(Path(image_path).read_bytes())
    return resize_image(Path(image_path), scale=scale)
