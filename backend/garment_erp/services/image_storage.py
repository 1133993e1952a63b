# Overview: Local-disk storage for product images, served back under /uploads.

from __future__ import annotations

import os
import uuid

from flask import current_app

from ..validation import ValidationError

URL_PREFIX = "/uploads/"
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
}


class ImageValidationError(ValidationError):
    """Rejected upload: wrong type, empty or too large."""


def upload_folder() -> str:
    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)
    return folder


def _stream_size(file) -> int:
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def validate_image(file) -> None:
    """Accepts one JPEG, PNG or WebP file no larger than MAX_IMAGE_BYTES."""
    if file is None or not file.filename:
        raise ImageValidationError("Image file is missing")

    if file.mimetype not in ALLOWED_MIME_TYPES:
        raise ImageValidationError("Only image files (JPEG, PNG, WebP) are allowed")

    max_bytes = current_app.config["MAX_IMAGE_BYTES"]
    size = _stream_size(file)
    if size == 0:
        raise ImageValidationError("Image file is empty")
    if size > max_bytes:
        raise ImageValidationError(f"Image exceeds {max_bytes // (1024 * 1024)}MB limit")


def save_image(file) -> str:
    """Stores a validated upload and returns its public URL."""
    validate_image(file)

    # Extension follows the validated MIME type, never the client filename
    ext = ALLOWED_MIME_TYPES[file.mimetype]
    filename = f"clothing-{uuid.uuid4().hex}{ext}"

    file.save(os.path.join(upload_folder(), filename))
    return URL_PREFIX + filename


def path_for(image_url: str) -> str:
    return os.path.join(current_app.config["UPLOAD_FOLDER"], os.path.basename(image_url))


def delete_image(image_url: str | None) -> bool:
    """
    Best-effort removal of a stored image. Failures are logged, never raised:
    the database change that orphaned the file has already committed.
    """
    if not image_url:
        return False
    try:
        os.remove(path_for(image_url))
        return True
    except OSError:
        current_app.logger.warning("Could not delete image file %s", image_url, exc_info=True)
        return False
