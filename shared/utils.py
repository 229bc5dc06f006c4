"""Shared utility functions for the agency survey application.

This module contains utility functions used across both backend and field
client components: decimal parsing for the painting dimensions form, area
calculation, storage path construction, hashing and image decoding.
"""

import hashlib
import io
import logging
import math
import re
import unicodedata
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation, localcontext
from functools import lru_cache, wraps
from PIL import Image, UnidentifiedImageError
from shared.enums import PhotoType

logger = logging.getLogger(__name__)


class CorruptedImageError(Exception):
    """Raised when image data is corrupted and cannot be processed."""
    pass


def handle_image_errors(func):
    """Decorator to handle image decoding errors consistently.

    Converts Pillow decoding exceptions to CorruptedImageError and logs them.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except UnidentifiedImageError as e:
            logger.error(f"Corrupted or unsupported image format: {e}")
            raise CorruptedImageError(f"Corrupted or unsupported image format: {e}") from e
        except (OSError, ValueError) as e:
            logger.error(f"Error processing image: {e}")
            raise CorruptedImageError(f"Error processing image: {e}") from e

    return wrapper


# Photo hash algorithm constant - always SHA256
PHOTO_HASH_ALGO = 'sha256'

AREA_QUANTUM = Decimal('0.01')
OBJECT_NAME_PATTERN = re.compile(
    r'^(?P<survey>\d+)/(?P<environment>\d+)/(?P<photo_type>[a-z_]+)(?:/(?P<slug>[a-z0-9_]+))?/(?P<timestamp>\d+)\.jpg$'
)


def compute_photo_hash(image_data):
    """Compute the SHA256 hex digest of image bytes for integrity checks."""
    if not isinstance(image_data, (bytes, bytearray)):
        raise TypeError(f"compute_photo_hash expected bytes, got {type(image_data).__name__}")
    return hashlib.new(PHOTO_HASH_ALGO, image_data).hexdigest()


def parse_decimal(value):
    """Parse a user-typed decimal that may use a comma separator.

    "3,5" and "3.5" both give 3.5. Empty, invalid and non-finite input
    gives None; this function never raises.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None
    text = value.strip().replace(',', '.')
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def calculate_area(width, height):
    """Area of a painted surface, rounded half-up to two decimals.

    Args:
        width: Width as number or user-typed string ("3,5")
        height: Height as number or user-typed string

    Returns:
        float or None: None when either side cannot be parsed
    """
    numeric_width = parse_decimal(width)
    numeric_height = parse_decimal(height)
    if numeric_width is None or numeric_height is None:
        return None
    with localcontext() as ctx:
        ctx.prec = 1000
        try:
            product = Decimal(str(numeric_width)) * Decimal(str(numeric_height))
            area = float(product.quantize(AREA_QUANTUM, rounding=ROUND_HALF_UP))
        except InvalidOperation:
            return None
    return area if math.isfinite(area) else None


def format_area(area):
    """Format an area for display and storage: 9.8 -> "9,80", None -> "0"."""
    if area is None:
        return "0"
    return f"{area:.2f}".replace('.', ',')


def strip_accents(text):
    """Remove combining accents after NFD normalization."""
    decomposed = unicodedata.normalize('NFD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def slugify_item_label(label):
    """Normalize a service/item label into a storage path segment.

    Lowercase, accent-stripped, every non-alphanumeric character to "_".
    "19.37 - SUBSTITUIÇÃO" -> "19_37___substituicao"
    """
    return re.sub(r'[^a-z0-9]', '_', strip_accents(label.lower()))


def build_object_name(survey_id, environment_id, photo_type, timestamp_ms, service_item=None):
    """Build the storage key of a photo.

    Layout: {survey}/{environment}/{photo_type}[/{item-slug}]/{timestamp}.jpg
    The item slug segment is only used for service/item photos.
    """
    photo_type = PhotoType(photo_type)
    parts = [str(int(survey_id)), str(int(environment_id)), photo_type.value]
    if photo_type is PhotoType.SERVICOS_ITENS and service_item:
        parts.append(slugify_item_label(service_item))
    parts.append(f"{int(timestamp_ms)}.jpg")
    return '/'.join(parts)


def parse_object_name(object_name):
    """Split a storage key into its components.

    Returns:
        dict or None: survey_id, environment_id, photo_type, slug, timestamp_ms;
            None when the name does not follow the storage layout
    """
    match = OBJECT_NAME_PATTERN.match(object_name or '')
    if not match:
        return None
    try:
        photo_type = PhotoType(match.group('photo_type'))
    except ValueError:
        return None
    return {
        'survey_id': int(match.group('survey')),
        'environment_id': int(match.group('environment')),
        'photo_type': photo_type,
        'slug': match.group('slug'),
        'timestamp_ms': int(match.group('timestamp')),
    }


@lru_cache(maxsize=128)
def fit_within(original_width, original_height, max_dimension):
    """Calculate dimensions clamped to max_dimension, keeping aspect ratio.

    Args:
        original_width (int): Original image width
        original_height (int): Original image height
        max_dimension (int): Maximum size of the longest side

    Returns:
        tuple: (width, height)
    """
    if original_width <= max_dimension and original_height <= max_dimension:
        return (original_width, original_height)

    ratio = min(max_dimension / original_width, max_dimension / original_height)
    new_width = max(1, int(original_width * ratio))
    new_height = max(1, int(original_height * ratio))

    return (new_width, new_height)


@handle_image_errors
def decode_image(image_data):
    """Decode image bytes into a fully loaded Pillow image.

    Raises:
        CorruptedImageError: When the data is not a decodable image.
    """
    img = Image.open(io.BytesIO(image_data))
    img.load()
    return img
