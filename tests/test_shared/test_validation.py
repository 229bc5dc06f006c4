"""Tests for shared validation utilities."""
import pytest
from shared.validation import Validator, ValidationError, sanitize_html
from shared.enums import PhotoType


class TestValidator:
    """Test validation utilities."""

    def test_validate_required_success(self):
        """Test successful required field validation."""
        assert Validator.validate_required("test", "test_field") == "test"
        assert Validator.validate_required(123, "test_field") == 123

    def test_validate_required_failure(self):
        """Test required field validation failures."""
        with pytest.raises(ValidationError, match="test_field is required"):
            Validator.validate_required("", "test_field")

        with pytest.raises(ValidationError, match="test_field is required"):
            Validator.validate_required(None, "test_field")

        with pytest.raises(ValidationError, match="test_field is required"):
            Validator.validate_required("   ", "test_field")

    def test_validate_string_length_success(self):
        """Test successful string length validation."""
        assert Validator.validate_string_length("test", "field", 1, 10) == "test"
        assert Validator.validate_string_length("  test  ", "field", 1, 10) == "test"

    def test_validate_string_length_failure(self):
        """Test string length validation failures."""
        with pytest.raises(ValidationError, match="field must be at least 5 characters"):
            Validator.validate_string_length("test", "field", 5, 10)

        with pytest.raises(ValidationError, match="field must be no more than 3 characters"):
            Validator.validate_string_length("testing", "field", 1, 3)

        with pytest.raises(ValidationError, match="field must be a string"):
            Validator.validate_string_length(42, "field", 1, 3)

    def test_validate_choice(self):
        choices = [t.value for t in PhotoType]
        assert Validator.validate_choice("detalhes", "photo_type", choices) == "detalhes"
        with pytest.raises(ValidationError, match="photo_type must be one of"):
            Validator.validate_choice("panorama", "photo_type", choices)

    def test_sanitize_html(self):
        """Scripts are stripped, plain text passes through."""
        assert sanitize_html("Parede com infiltração") == "Parede com infiltração"
        cleaned = sanitize_html("<script>alert(1)</script><strong>Teto</strong>")
        assert "<script>" not in cleaned
        assert "<strong>Teto</strong>" in cleaned
        assert sanitize_html("") == ""
        assert sanitize_html(None) is None
