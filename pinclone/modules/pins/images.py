"""Image inspection for uploaded pin files."""

import io
import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


def read_dimensions(image_data: bytes) -> Optional[Tuple[int, int]]:
    """Pixel (width, height) of an encoded image, None when it is not a readable image."""
    try:
        with Image.open(io.BytesIO(image_data)) as img:
            return img.width, img.height
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Could not read image dimensions: %s", e)
        return None


def file_extension(filename: Optional[str], default: str = "jpg") -> str:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    return default
