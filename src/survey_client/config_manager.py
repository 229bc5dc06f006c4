"""Configuration Manager for the survey client."""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigManager(BaseSettings):
    """Manages client configuration settings using Pydantic BaseSettings."""

    # API settings
    api_timeout: float = 5.0
    api_base_url: str = 'http://localhost:5000'
    api_retry_attempts: int = 3
    upload_timeout: float = 60.0

    # Camera settings
    camera_facing: str = 'environment'
    camera_max_dimension: int = 1920  # longest side of a captured frame, pixels
    camera_resolution_width: int = 1280
    camera_resolution_height: int = 720

    # Image processing settings
    enhance_brightness: float = Field(default=1.1, gt=0)
    enhance_contrast: float = Field(default=1.05, gt=0)
    jpeg_quality: int = Field(default=90, ge=1, le=95)
    max_upload_bytes: int = 10 * 1024 * 1024

    model_config = SettingsConfigDict(env_prefix='SURVEY_', case_sensitive=False)

    @property
    def resolution_hint(self):
        return (self.camera_resolution_width, self.camera_resolution_height)

    def get(self, key, default=None):
        """Get a configuration value."""
        return getattr(self, key, default)

    def set(self, key, value):
        """Set a configuration value."""
        setattr(self, key, value)

    def get_all(self):
        """Get all configuration values as dictionary."""
        return self.model_dump()
