from datetime import datetime
from zoneinfo import ZoneInfo
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, text, Enum, JSON
from sqlalchemy.orm import relationship, declarative_base
from shared.enums import PhotoType, UserRole

Base = declarative_base()

# Field teams work in Brasilia time; stored datetimes are naive in SQLite
APP_TIMEZONE = ZoneInfo('America/Sao_Paulo')


def now():
    """Return current datetime in application timezone (timezone-aware).

    Note: When stored in SQLite, timezone info is stripped (SQLite limitation).
    """
    return datetime.now(APP_TIMEZONE)


def _enum_values(enum_class):
    # Persist enum values ('vista_ampla'), not member names ('VISTA_AMPLA')
    return [member.value for member in enum_class]


class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, nullable=False)
    username = Column(String(80), unique=True, nullable=False)
    email = Column(String(120), nullable=False, server_default="")
    password_hash = Column(String(256), nullable=False)
    role = Column(Enum(UserRole, values_callable=_enum_values), default=UserRole.SURVEYOR, nullable=False, server_default=text("'surveyor'"))
    created_at = Column(DateTime, default=now)
    surveys = relationship('Survey', backref='owner', lazy='select', cascade="all, delete-orphan")


class AuthToken(Base):
    __tablename__ = 'auth_tokens'
    token = Column(String(100), primary_key=True, nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = Column(DateTime, default=now)
    user = relationship('User')


class Survey(Base):
    __tablename__ = 'surveys'
    id = Column(Integer, primary_key=True, nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    agency_name = Column(String(200), nullable=False)
    prefix = Column(String(50), nullable=False)
    manager_name = Column(String(200), nullable=False)
    registration = Column(String(50), nullable=False)
    street = Column(String(200), server_default="")
    number = Column(String(20), server_default="")
    neighborhood = Column(String(100), server_default="")
    city = Column(String(100), server_default="")
    state = Column(String(2), server_default="")
    cep = Column(String(9), server_default="")
    created_at = Column(DateTime, default=now, nullable=False)
    environments = relationship(
        'Environment', backref='survey', lazy='select',
        cascade="all, delete-orphan", order_by='Environment.id'
    )

Index('idx_survey_user_id', Survey.user_id)


class Environment(Base):
    __tablename__ = 'environments'
    id = Column(Integer, primary_key=True, nullable=False)
    survey_id = Column(Integer, ForeignKey('surveys.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=now)
    photos = relationship(
        'Photo', backref='environment', lazy='select',
        cascade="all, delete-orphan", order_by='Photo.id'
    )

Index('idx_environment_survey_id', Environment.survey_id)


class Photo(Base):
    __tablename__ = 'photos'
    id = Column(Integer, primary_key=True, nullable=False)
    environment_id = Column(Integer, ForeignKey('environments.id', ondelete='CASCADE'), nullable=False)
    client_uid = Column(String(64), unique=True, nullable=False)
    image_url = Column(String(1000), nullable=False)
    object_name = Column(String(500), nullable=False)
    observation = Column(Text, nullable=True)
    photo_type = Column(Enum(PhotoType, values_callable=_enum_values), nullable=False)
    service_item = Column(String(300), nullable=True)
    # {"width": "2", "height": "3", "area": "6,00"}, only for painting items
    painting_dimensions = Column(JSON, nullable=True)
    size_bytes = Column(Integer, server_default="0")
    hash_value = Column(String(64), server_default="")
    created_at = Column(DateTime, default=now, nullable=False)

Index('idx_photo_environment_id', Photo.environment_id)
Index('idx_photo_object_name', Photo.object_name)
Index('idx_photo_type', Photo.photo_type)
