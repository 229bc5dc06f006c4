"""Tests for configuration manager."""
import pytest
from pydantic import ValidationError
from src.survey_client.config_manager import ConfigManager


class TestConfigManager:
    """Test configuration manager."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        config = ConfigManager()
        assert config.get('api_timeout') == 5.0
        assert config.get('enhance_brightness') == 1.1
        assert config.get('enhance_contrast') == 1.05
        assert config.get('jpeg_quality') == 90
        assert config.resolution_hint == (1280, 720)

    def test_environment_override(self, monkeypatch):
        """Test that environment variables override defaults."""
        monkeypatch.setenv('SURVEY_API_BASE_URL', 'https://survey.example.com')
        monkeypatch.setenv('SURVEY_JPEG_QUALITY', '85')
        monkeypatch.setenv('SURVEY_CAMERA_RESOLUTION_WIDTH', '1920')

        config = ConfigManager()
        assert config.get('api_base_url') == 'https://survey.example.com'
        assert config.get('jpeg_quality') == 85
        assert config.resolution_hint == (1920, 720)

    def test_out_of_range_quality_rejected(self, monkeypatch):
        monkeypatch.setenv('SURVEY_JPEG_QUALITY', '150')
        with pytest.raises(ValidationError):
            ConfigManager()

    def test_get_with_default(self):
        """Test get method with default values."""
        config = ConfigManager()
        assert config.get('nonexistent_key', 'default') == 'default'
        assert config.get('api_timeout', 'ignored') == 5.0

    def test_set_value(self):
        """Test setting configuration values."""
        config = ConfigManager()
        config.set('camera_max_dimension', 1024)
        assert config.get('camera_max_dimension') == 1024

    def test_get_all(self):
        values = ConfigManager().get_all()
        assert values['camera_facing'] == 'environment'
        assert 'max_upload_bytes' in values
