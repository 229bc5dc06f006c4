"""Pydantic schemas for validation and serialization."""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from shared.enums import PhotoType, UserRole
from shared.service_items import is_painting_item
from shared.utils import parse_decimal, calculate_area, format_area, parse_object_name
from shared.validation import validate_string_length, sanitize_html


class UserRegister(BaseModel):
    username: str = Field(..., min_length=3, max_length=80)
    email: str = Field(..., min_length=3, max_length=120)
    password: str = Field(..., min_length=6, max_length=200)

    @field_validator('username', 'email')
    @classmethod
    def strip_text(cls, v):
        return v.strip()


class UserLogin(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: UserRole

    model_config = ConfigDict(use_enum_values=True, from_attributes=True)


class SurveyBase(BaseModel):
    agency_name: str = Field(..., min_length=1, max_length=200)
    prefix: str = Field(..., min_length=1, max_length=50)
    manager_name: str = Field(..., min_length=1, max_length=200)
    registration: str = Field(..., min_length=1, max_length=50)
    street: Optional[str] = Field(default="", max_length=200)
    number: Optional[str] = Field(default="", max_length=20)
    neighborhood: Optional[str] = Field(default="", max_length=100)
    city: Optional[str] = Field(default="", max_length=100)
    state: Optional[str] = Field(default="", max_length=2)
    cep: Optional[str] = Field(default="", max_length=9)

    @field_validator('agency_name', 'prefix', 'manager_name', 'registration')
    @classmethod
    def validate_required_text(cls, v, info):
        return sanitize_html(validate_string_length(v, info.field_name, 1, 200))

    @field_validator('street', 'number', 'neighborhood', 'city', 'state', 'cep')
    @classmethod
    def sanitize_address(cls, v):
        if v:
            return sanitize_html(v.strip())
        return v or ""


class SurveyCreate(SurveyBase):
    pass


class SurveyResponseSchema(SurveyBase):
    id: int
    user_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EnvironmentCreate(BaseModel):
    survey_id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1, max_length=200)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return sanitize_html(validate_string_length(v, 'name', 1, 200))


class EnvironmentResponse(BaseModel):
    id: int
    survey_id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


# Longest wall or floor side a surveyor can plausibly measure, in metres
MAX_DIMENSION_METRES = 10000


class PaintingDimensions(BaseModel):
    """Painted surface dimensions in metres.

    Width and height keep the text the surveyor typed ("3,5"); area is always
    derived from them and any caller-supplied area is replaced.
    """
    width: str
    height: str
    area: str = "0"

    @field_validator('width', 'height', mode='before')
    @classmethod
    def coerce_text(cls, v):
        if v is None:
            raise ValueError('dimension is required')
        return str(v).strip()

    @model_validator(mode='after')
    def derive_area(self):
        for name in ('width', 'height'):
            value = parse_decimal(getattr(self, name))
            if value is None:
                raise ValueError(f'{name} must be a number')
            if value <= 0:
                raise ValueError(f'{name} must be greater than zero')
            if value > MAX_DIMENSION_METRES:
                raise ValueError(f'{name} must be at most {MAX_DIMENSION_METRES} metres')
        self.area = format_area(calculate_area(self.width, self.height))
        return self


class PhotoCreate(BaseModel):
    environment_id: int = Field(..., gt=0)
    client_uid: str = Field(..., min_length=8, max_length=64, pattern=r'^[A-Za-z0-9_-]+$')
    image_url: str = Field(..., min_length=1, max_length=1000)
    object_name: str = Field(..., min_length=1, max_length=500)
    observation: Optional[str] = Field(default=None, max_length=5000)
    photo_type: PhotoType
    service_item: Optional[str] = Field(default=None, max_length=300)
    painting_dimensions: Optional[PaintingDimensions] = None
    size_bytes: int = Field(default=0, ge=0)
    hash_value: str = Field(default="", max_length=64)

    @field_validator('observation')
    @classmethod
    def sanitize_observation(cls, v):
        if v is None:
            return None
        v = v.strip()
        return sanitize_html(v) if v else None

    @field_validator('service_item')
    @classmethod
    def strip_service_item(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @field_validator('hash_value')
    @classmethod
    def validate_hash(cls, v):
        if v and len(v) != 64:
            raise ValueError("Hash value must be exactly 64 characters")
        return v

    @model_validator(mode='after')
    def check_classification_payload(self):
        if self.service_item and self.photo_type != PhotoType.SERVICOS_ITENS:
            raise ValueError('service_item is only allowed for servicos_itens photos')

        painting = self.photo_type == PhotoType.SERVICOS_ITENS and is_painting_item(self.service_item)
        if painting and self.painting_dimensions is None:
            raise ValueError('painting_dimensions are required for painting service items')
        if not painting and self.painting_dimensions is not None:
            raise ValueError('painting_dimensions are only allowed for painting service items')

        parsed = parse_object_name(self.object_name)
        if parsed is None:
            raise ValueError('object_name does not follow the storage layout')
        if parsed['environment_id'] != self.environment_id or parsed['photo_type'] != self.photo_type:
            raise ValueError('object_name does not match environment_id and photo_type')
        return self

    model_config = ConfigDict(use_enum_values=True)


class PhotoResponse(BaseModel):
    id: int
    environment_id: int
    client_uid: str
    image_url: str
    object_name: str
    observation: Optional[str] = None
    photo_type: PhotoType
    service_item: Optional[str] = None
    painting_dimensions: Optional[dict] = None
    size_bytes: int = 0
    hash_value: str = ""
    created_at: datetime

    model_config = ConfigDict(use_enum_values=True, from_attributes=True)


class UploadResponse(BaseModel):
    object_name: str
    url: str
    size_bytes: int
    hash_value: str


class OrphanSweepReport(BaseModel):
    scanned: int = 0
    referenced: int = 0
    skipped_recent: int = 0
    skipped_unrecognized: int = 0
    deleted: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
