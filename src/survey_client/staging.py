"""In-progress photo held across the capture wizard steps."""
from dataclasses import dataclass
from typing import Optional
import logging
import time
import uuid

from pydantic import ValidationError as PydanticValidationError

from shared.enums import PhotoType
from shared.schemas import PaintingDimensions
from shared.service_items import is_painting_item
from shared.utils import calculate_area, compute_photo_hash, format_area
from shared.validation import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StagedPhoto:
    """A confirmed photo bundle, ready for submission."""
    client_uid: str
    captured_at: int
    image_bytes: bytes
    photo_type: PhotoType
    service_item: Optional[str] = None
    dimensions: Optional[PaintingDimensions] = None
    observation: Optional[str] = None

    @property
    def size_bytes(self):
        return len(self.image_bytes)

    @property
    def hash_value(self):
        return compute_photo_hash(self.image_bytes)


class StagingStore:
    """Holds exactly one in-progress photo.

    Every setter overwrites its slot. Nothing is visible to the submit
    gateway until ``confirm()`` returns a StagedPhoto.
    """

    SLOTS = ('image', 'photo_type', 'service_item', 'dimensions', 'observation',
             'client_uid', 'captured_at')

    def __init__(self):
        self.clear()

    def set_image(self, image_bytes):
        """Store encoded image bytes under a fresh client uid and capture time."""
        if not image_bytes:
            raise ValidationError("Image data is empty")
        self.image = bytes(image_bytes)
        self.client_uid = uuid.uuid4().hex
        self.captured_at = int(time.time() * 1000)

    def discard_image(self):
        self.image = None
        self.client_uid = None
        self.captured_at = None

    def set_classification(self, photo_type):
        self.photo_type = PhotoType(photo_type)

    def set_service_item(self, label):
        self.service_item = label.strip() if label else None

    def set_dimensions(self, dimensions):
        self.dimensions = dimensions

    def set_observation(self, text):
        self.observation = text.strip() if text and text.strip() else None

    @property
    def is_empty(self):
        return all(getattr(self, slot) is None for slot in self.SLOTS)

    def snapshot(self):
        """Read every slot at once."""
        return {slot: getattr(self, slot) for slot in self.SLOTS}

    def confirm(self):
        """Freeze the current slots into a StagedPhoto.

        Raises:
            ValidationError: When a slot is missing or the dimensions do not
                match the classification.
        """
        if self.image is None:
            raise ValidationError("No image captured")
        if self.photo_type is None:
            raise ValidationError("Photo type is required")

        if self.photo_type is PhotoType.SERVICOS_ITENS:
            if not self.service_item:
                raise ValidationError("Service item is required for servicos_itens photos")
        elif self.service_item:
            raise ValidationError("Service item is only allowed for servicos_itens photos")

        painting = self.photo_type is PhotoType.SERVICOS_ITENS and is_painting_item(self.service_item)
        if painting and self.dimensions is None:
            raise ValidationError("Painting dimensions are required")
        if not painting and self.dimensions is not None:
            raise ValidationError("Dimensions are only allowed for painting service items")

        return StagedPhoto(
            client_uid=self.client_uid,
            captured_at=self.captured_at,
            image_bytes=self.image,
            photo_type=self.photo_type,
            service_item=self.service_item,
            dimensions=self.dimensions,
            observation=self.observation,
        )

    def clear(self):
        """Empty every slot."""
        for slot in self.SLOTS:
            setattr(self, slot, None)


class DimensionsForm:
    """Width/height entry for painting items, accepting comma decimals."""

    def __init__(self, width='', height=''):
        self.width = width
        self.height = height

    def calculate(self):
        """Formatted area ("9,80"), or None while either side is invalid."""
        area = calculate_area(self.width, self.height)
        return format_area(area) if area is not None else None

    @property
    def display_area(self):
        return self.calculate() or format_area(None)

    def confirm(self):
        """Validate the entries and return PaintingDimensions.

        Raises:
            ValidationError: For missing, unparseable or non-positive values.
        """
        try:
            return PaintingDimensions(width=self.width, height=self.height)
        except PydanticValidationError as e:
            messages = '; '.join(err['msg'] for err in e.errors())
            raise ValidationError(f"Invalid dimensions: {messages}") from e
