"""Unit tests for upload and prompt validation."""

import pytest

from flexphoto.core.validation import (
    INVALID_TYPE_MESSAGE,
    ValidationError,
    validate_file_count,
    validate_image_file,
    validate_scene_prompt,
)

LIMIT = 1000


class TestValidateImageFile:
    """Tests for validate_image_file."""

    @pytest.mark.parametrize(
        "filename,content_type",
        [
            ("photo.jpg", "image/jpeg"),
            ("photo.JPEG", "image/jpeg"),
            ("photo.png", "image/png"),
            ("photo.webp", "image/webp"),
        ],
    )
    def test_accepts_allowed_types(self, filename, content_type):
        assert validate_image_file(filename, content_type, 10, LIMIT) is None

    @pytest.mark.parametrize(
        "filename", ["photo.gif", "photo.bmp", "photo.heic", "photo", "notes.txt"]
    )
    def test_rejects_extension_even_with_image_content_type(self, filename):
        """A disallowed extension fails regardless of the declared type."""
        error = validate_image_file(filename, "image/jpeg", 10, LIMIT)
        assert isinstance(error, ValidationError)
        assert str(error) == INVALID_TYPE_MESSAGE

    def test_rejects_disallowed_content_type(self):
        error = validate_image_file("photo.png", "application/pdf", 10, LIMIT)
        assert str(error) == INVALID_TYPE_MESSAGE

    def test_rejects_missing_content_type(self):
        assert validate_image_file("photo.png", None, 10, LIMIT) is not None

    def test_rejects_missing_filename(self):
        assert validate_image_file(None, "image/png", 10, LIMIT) is not None

    def test_rejects_oversized_file(self):
        error = validate_image_file("photo.png", "image/png", LIMIT + 1, LIMIT)
        assert error is not None
        assert "too large" in str(error)

    def test_accepts_file_at_limit(self):
        assert validate_image_file("photo.png", "image/png", LIMIT, LIMIT) is None

    def test_rejects_empty_file(self):
        assert "empty" in str(validate_image_file("photo.png", "image/png", 0, LIMIT))

    def test_returns_instead_of_raising(self):
        """Validation reports problems as a value."""
        result = validate_image_file("bad.exe", "application/x-msdownload", 10, LIMIT)
        assert isinstance(result, ValidationError)


class TestValidateFileCount:
    def test_exact_count_ok(self):
        assert validate_file_count(2, 2) is None

    @pytest.mark.parametrize("count", [0, 1, 3])
    def test_wrong_count_message(self, count):
        assert str(validate_file_count(count, 2)) == "Please upload exactly 2 photos"


class TestValidateScenePrompt:
    def test_prompt_ok(self):
        assert validate_scene_prompt("Dancing in the rain") is None

    @pytest.mark.parametrize("prompt", [None, "", "   \n\t"])
    def test_blank_prompt_rejected(self, prompt):
        error = validate_scene_prompt(prompt)
        assert error is not None
        assert "prompt" in str(error)
