"""Validation utilities for uploaded photos and user prompts.

The checks in this module are pure: they look only at the values passed in
and return a :class:`ValidationError` describing the first problem found, or
``None`` when the input is acceptable.  Route handlers run them before any
file is written or any provider call is made.
"""

import re
from pathlib import PurePath

ALLOWED_EXTENSIONS: tuple[str, ...] = (".jpeg", ".jpg", ".png", ".webp")

# Searched in the declared content type, so ``image/jpeg`` passes.
_ALLOWED_TYPES = re.compile(r"jpeg|jpg|png|webp")

INVALID_TYPE_MESSAGE = "Only image files (jpeg, jpg, png, webp) are allowed"


class ValidationError(Exception):
    """User-friendly validation error.

    The message is intended to be returned directly to the client.
    """

    pass


def validate_image_file(
    filename: str | None,
    content_type: str | None,
    size: int,
    max_bytes: int,
) -> ValidationError | None:
    """Check one uploaded file against the type allow-list and size limit.

    Both the extension of *filename* and the declared *content_type* must
    name an allowed image type; a correct content type does not rescue a
    disallowed extension.

    Args:
        filename: Original filename supplied by the client.
        content_type: Declared MIME type of the part.
        size: Number of bytes received.
        max_bytes: Largest accepted size.

    Returns:
        The error to report, or ``None`` if the file is acceptable.
    """
    extension = PurePath(filename or "").suffix.lower()
    if extension not in ALLOWED_EXTENSIONS:
        return ValidationError(INVALID_TYPE_MESSAGE)

    if not content_type or not _ALLOWED_TYPES.search(content_type.lower()):
        return ValidationError(INVALID_TYPE_MESSAGE)

    if size <= 0:
        return ValidationError(f"File is empty: {filename}")

    if size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        return ValidationError(f"File too large: {filename} exceeds the {limit_mb:g} MB limit")

    return None


def validate_file_count(count: int, expected: int) -> ValidationError | None:
    """Check that exactly *expected* files were uploaded."""
    if count != expected:
        if expected == 2:
            return ValidationError("Please upload exactly 2 photos")
        return ValidationError(f"Please upload exactly {expected} photo(s)")
    return None


def validate_scene_prompt(prompt: str | None) -> ValidationError | None:
    """Check that a scene description was supplied for a composite."""
    if not prompt or not prompt.strip():
        return ValidationError(
            "Please provide a prompt describing what the people should be doing"
        )
    return None
