"""File-backed storage for uploaded photos and generated images.

There is no database: each uploaded photo and each generated image is a
single file in a flat directory, and the public URL is simply the directory
mount plus the file name.

Naming
------
Uploads::

    {epochMillis}-{uuid4 hex}{ext}

Outputs::

    {mode}-{epochMillis}-{uuid4 hex}.png

The timestamp keeps directory listings chronological; the UUID makes the
name unique without checking the directory first.

Writes go to a hidden temporary file in the same directory and are renamed
into place, so a name returned to a client always refers to a complete file.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os
import time
import uuid
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path, PurePath

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

UPLOADS_MOUNT = "/uploads"
OUTPUTS_MOUNT = "/outputs"

_SWEEPABLE_SUFFIXES = {".jpeg", ".jpg", ".png", ".webp"}


class ImageDecodeError(ValueError):
    """Raised when a provider payload cannot be decoded into an image."""

    pass


def normalize_mime(content_type: str | None) -> str:
    """Map a declared content type onto the MIME type used in data URIs."""
    value = (content_type or "").lower()
    if "png" in value:
        return "image/png"
    if "webp" in value:
        return "image/webp"
    if "jpeg" in value or "jpg" in value:
        return "image/jpeg"
    return "image/png"


@dataclass(frozen=True)
class UploadedImage:
    """A photo received from the client and stored in the uploads directory.

    Attributes:
        original_name: Filename supplied by the client.
        content_type: Declared MIME type of the upload.
        stored_name: Generated file name on disk.
        path: Absolute path of the stored file.
        size: Number of bytes stored.
    """

    original_name: str
    content_type: str
    stored_name: str
    path: Path
    size: int

    @property
    def public_path(self) -> str:
        return f"{UPLOADS_MOUNT}/{self.stored_name}"

    @property
    def mime_type(self) -> str:
        return normalize_mime(self.content_type)

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()

    def to_base64(self) -> str:
        return base64.b64encode(self.read_bytes()).decode("ascii")

    def to_data_uri(self) -> str:
        """Return the image as a ``data:<mime>;base64,...`` string."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"


@dataclass(frozen=True)
class GeneratedImage:
    """An image returned by the provider and written to the outputs directory."""

    name: str
    path: Path
    mode: str

    @property
    def public_path(self) -> str:
        return f"{OUTPUTS_MOUNT}/{self.name}"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def new_upload_name(original_name: str) -> str:
    """Generate a unique stored name that keeps the original extension."""
    extension = PurePath(original_name).suffix.lower()
    return f"{_epoch_millis()}-{uuid.uuid4().hex}{extension}"


def new_output_name(mode: str) -> str:
    """Generate a unique PNG name for a generated image."""
    return f"{mode}-{_epoch_millis()}-{uuid.uuid4().hex}.png"


def _write_atomic(path: Path, data: bytes) -> None:
    """Write *data* to *path* via a temporary file and an atomic rename."""
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def save_upload(
    data: bytes,
    original_name: str,
    content_type: str,
    uploads_dir: Path,
) -> UploadedImage:
    """Persist an accepted upload and describe where it was stored.

    Args:
        data: Raw file content.
        original_name: Filename supplied by the client.
        content_type: Declared MIME type.
        uploads_dir: Target directory.

    Returns:
        The stored :class:`UploadedImage`.
    """
    stored_name = new_upload_name(original_name)
    path = (uploads_dir / stored_name).resolve()
    _write_atomic(path, data)

    logger.info(f"Stored upload {original_name!r} as {stored_name} ({len(data)} bytes)")
    return UploadedImage(
        original_name=original_name,
        content_type=content_type,
        stored_name=stored_name,
        path=path,
        size=len(data),
    )


def decode_image_payload(payload: bytes | str) -> bytes:
    """Turn a provider payload into PNG bytes.

    *payload* is either raw image bytes (a downloaded file) or a base64
    string, optionally wrapped in a data URI.  The result is checked with
    Pillow and re-encoded as PNG when the provider returned another format.

    Raises:
        ImageDecodeError: If the payload is not valid base64, not an image, or
            larger in pixels than Pillow will open.
    """
    if isinstance(payload, str):
        text = payload.strip()
        if text.startswith("data:"):
            _, _, text = text.partition(",")
        try:
            data = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 image data: {e}") from e
    else:
        data = payload

    if not data:
        raise ImageDecodeError("Provider returned an empty image")

    try:
        with Image.open(BytesIO(data)) as candidate:
            image_format = candidate.format
            candidate.verify()
    except Image.DecompressionBombError as e:
        raise ImageDecodeError(f"Provider returned an image that is too large: {e}") from e
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise ImageDecodeError(f"Provider returned data that is not an image: {e}") from e

    if image_format == "PNG":
        return data

    # verify() leaves the image unusable, so reopen before converting.
    with Image.open(BytesIO(data)) as image:
        if image.mode not in ("RGB", "RGBA", "L", "LA", "P"):
            image = image.convert("RGBA")
        buffer = BytesIO()
        image.save(buffer, format="PNG")
    return buffer.getvalue()


def save_generated_image(payload: bytes | str, mode: str, outputs_dir: Path) -> GeneratedImage:
    """Decode a provider payload and store it in the outputs directory.

    The file is complete on disk before this function returns.

    Args:
        payload: Raw bytes or base64 text returned by the provider.
        mode: Mode label used as the file name prefix.
        outputs_dir: Target directory.

    Returns:
        The stored :class:`GeneratedImage`.

    Raises:
        ImageDecodeError: If the payload cannot be decoded.
        OSError: If the file cannot be written.
    """
    data = decode_image_payload(payload)
    name = new_output_name(mode)
    path = (outputs_dir / name).resolve()
    _write_atomic(path, data)

    logger.info(f"Saved generated image {name} ({len(data)} bytes)")
    return GeneratedImage(name=name, path=path, mode=mode)


def sweep_expired_files(directory: Path, max_age_seconds: float, now: float | None = None) -> int:
    """Delete stored images older than *max_age_seconds*.

    Age is measured from the file's modification time.  Only image files
    directly inside *directory* are considered.

    Args:
        directory: Uploads or outputs directory.
        max_age_seconds: Files older than this are removed.
        now: Reference time (defaults to ``time.time()``).

    Returns:
        Number of files deleted.
    """
    if not directory.is_dir():
        return 0

    current_time = time.time() if now is None else now
    deleted = 0

    for path in directory.iterdir():
        if not path.is_file() or path.suffix.lower() not in _SWEEPABLE_SUFFIXES:
            continue

        age_seconds = current_time - path.stat().st_mtime
        if age_seconds > max_age_seconds:
            path.unlink(missing_ok=True)
            deleted += 1
            logger.debug(f"Deleted expired file {path.name} (age: {age_seconds // 60:.0f} minutes)")

    if deleted:
        logger.info(f"Retention sweep removed {deleted} file(s) from {directory}")
    return deleted
