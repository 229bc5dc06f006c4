"""Brightness/contrast correction and JPEG encoding of captured frames."""
import io
import logging
from functools import lru_cache

from PIL import Image, ImageOps

from shared.utils import decode_image, fit_within
from ..errors import EnhancementFailed

logger = logging.getLogger(__name__)

DEFAULT_BRIGHTNESS = 1.1
DEFAULT_CONTRAST = 1.05
DEFAULT_JPEG_QUALITY = 90
MID_GRAY = 128


@lru_cache(maxsize=16)
def channel_table(brightness, contrast):
    """Lookup table for v' = clamp((v * brightness - 128) * contrast + 128)."""
    table = []
    for value in range(256):
        adjusted = (value * brightness - MID_GRAY) * contrast + MID_GRAY
        table.append(max(0, min(255, int(round(adjusted)))))
    return tuple(table)


def enhance_frame(image, brightness=DEFAULT_BRIGHTNESS, contrast=DEFAULT_CONTRAST):
    """Apply the brightness multiplier and contrast pivot to R, G and B.

    The alpha band, when present, is passed through unchanged and the output
    has the same size as the input.

    Raises:
        EnhancementFailed: When the image bands cannot be processed.
    """
    try:
        if image.mode not in ('RGB', 'RGBA'):
            image = image.convert('RGBA')
        table = list(channel_table(brightness, contrast)) * 3
        if image.mode == 'RGBA':
            table += list(range(256))
        return image.point(table)
    except (OSError, ValueError, TypeError) as e:
        raise EnhancementFailed(f"Could not enhance {image.mode} frame: {e}") from e


def encode_jpeg(image, quality=DEFAULT_JPEG_QUALITY):
    """Encode an image as JPEG bytes; alpha is dropped."""
    if not 1 <= quality <= 95:
        raise ValueError(f"JPEG quality must be between 1 and 95, got {quality}")
    if image.mode != 'RGB':
        image = image.convert('RGB')
    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=quality, optimize=True)
    return buffer.getvalue()


def enhance_and_encode(image, settings=None):
    """Enhance a frame and encode it; enhancement is best effort.

    Args:
        image: Captured PIL image
        settings: Optional ConfigManager providing enhance_brightness,
            enhance_contrast and jpeg_quality

    Returns:
        bytes: JPEG payload
    """
    brightness = settings.get('enhance_brightness', DEFAULT_BRIGHTNESS) if settings is not None else DEFAULT_BRIGHTNESS
    contrast = settings.get('enhance_contrast', DEFAULT_CONTRAST) if settings is not None else DEFAULT_CONTRAST
    quality = settings.get('jpeg_quality', DEFAULT_JPEG_QUALITY) if settings is not None else DEFAULT_JPEG_QUALITY

    try:
        image = enhance_frame(image, brightness, contrast)
    except EnhancementFailed as e:
        logger.warning(f"Using unmodified frame: {e}")
    return encode_jpeg(image, quality)


def load_image_file(image_data, max_dimension=None):
    """Decode a user-chosen image file for the upload-file path.

    Applies the EXIF orientation and clamps the longest side to max_dimension.

    Raises:
        CorruptedImageError: When the data is not a decodable image.
    """
    image = ImageOps.exif_transpose(decode_image(image_data)).convert('RGBA')
    if max_dimension:
        size = fit_within(image.width, image.height, max_dimension)
        if size != image.size:
            image = image.resize(size, Image.Resampling.LANCZOS)
    return image
