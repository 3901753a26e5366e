"""Asset upload service - photos and documents captured during inspections.

Files go to an S3-compatible bucket (production) or local disk (dev).
Images are stored as-is; the delivery constraints (max size, quality)
travel with the object as metadata and in the returned result.
"""

import json
import logging
import mimetypes
import os
import re
import uuid
from io import BytesIO
from typing import Any

import boto3
from PIL import Image, UnidentifiedImageError

from gensheet.core.config import settings

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

ALLOWED_MIME_TYPES = {
    "image/png",
    "image/jpeg",
    "image/gif",
    "image/webp",
    "image/heic",
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
    "text/csv",
}

_FOLDER_RE = re.compile(r"^[A-Za-z0-9_\-]+(/[A-Za-z0-9_\-]+)*$")


class UploadError(Exception):
    """Storage failure; surfaced to clients as a generic upload failure."""

    status_code = 500
    default_message = "Failed to upload file"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UploadNotConfiguredError(UploadError):
    status_code = 503
    default_message = "File upload is not configured"


class UploadValidationError(UploadError):
    status_code = 400
    default_message = "Invalid file"


# =============================================================================
# Storage Backend
# =============================================================================

def _get_s3_client():
    """Get boto3 S3 client."""
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL or None,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None,
    )


def _get_local_storage_path() -> str:
    """Get local storage directory path."""
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def ensure_configured() -> None:
    """
    Raises:
        UploadNotConfiguredError: s3 backend without a bucket
    """
    if settings.STORAGE_BACKEND == "s3" and not settings.S3_BUCKET:
        raise UploadNotConfiguredError()


def store_file(
    storage_key: str,
    data: bytes,
    content_type: str,
    metadata: dict[str, str] | None = None,
) -> None:
    """Store file bytes to the configured backend."""
    if settings.STORAGE_BACKEND == "s3":
        s3 = _get_s3_client()
        s3.put_object(
            Bucket=settings.S3_BUCKET,
            Key=storage_key,
            Body=data,
            ContentLength=len(data),
            ContentType=content_type,
            Metadata=metadata or {},
        )
    else:
        path = os.path.join(_get_local_storage_path(), storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)


def public_url(storage_key: str) -> str:
    """Public URL under which a stored object is served."""
    if settings.STORAGE_BACKEND == "s3":
        if settings.S3_PUBLIC_BASE_URL:
            return f"{settings.S3_PUBLIC_BASE_URL.rstrip('/')}/{storage_key}"
        if settings.S3_ENDPOINT_URL:
            return f"{settings.S3_ENDPOINT_URL.rstrip('/')}/{settings.S3_BUCKET}/{storage_key}"
        return f"https://{settings.S3_BUCKET}.s3.{settings.S3_REGION}.amazonaws.com/{storage_key}"
    return f"/uploads/{storage_key}"


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_file(content_type: str, file_size: int) -> tuple[bool, str | None]:
    """
    Validate file against the allowlist and size limit.

    Returns (is_valid, error_message)
    """
    if file_size == 0:
        return False, "File is empty"

    if content_type not in ALLOWED_MIME_TYPES:
        return False, f"Content type '{content_type}' not allowed"

    if file_size > settings.UPLOAD_MAX_BYTES:
        max_mb = settings.UPLOAD_MAX_BYTES / (1024 * 1024)
        return False, f"File size exceeds {max_mb:.0f} MB limit"

    return True, None


def normalize_folder(folder: str | None) -> str:
    """Folder under the configured root; rejects traversal and odd characters."""
    root = settings.UPLOAD_FOLDER
    if not folder or folder.strip("/") == root:
        return root
    folder = folder.strip("/")
    if not _FOLDER_RE.match(folder):
        raise UploadValidationError("Invalid folder name")
    if folder.startswith(f"{root}/"):
        return folder
    return f"{root}/{folder}"


def image_transformation() -> list[dict[str, Any]]:
    return [
        {"width": settings.IMAGE_MAX_WIDTH, "height": settings.IMAGE_MAX_HEIGHT, "crop": "limit"},
        {"quality": settings.IMAGE_QUALITY},
    ]


def _image_size(data: bytes) -> tuple[int | None, int | None]:
    try:
        with Image.open(BytesIO(data)) as image:
            return image.size
    except (UnidentifiedImageError, OSError):
        return None, None


def _file_format(filename: str | None, content_type: str) -> str | None:
    if filename and "." in filename:
        return filename.rsplit(".", 1)[-1].lower()
    guessed = mimetypes.guess_extension(content_type)
    return guessed.lstrip(".") if guessed else None


# =============================================================================
# Service Functions
# =============================================================================

def upload_asset(
    data: bytes,
    filename: str | None,
    content_type: str,
    folder: str | None = None,
) -> dict[str, Any]:
    """
    Store an uploaded asset and return its storage result.

    Raises:
        UploadNotConfiguredError: storage backend not configured
        UploadValidationError: file rejected
        UploadError: storage failure
    """
    ensure_configured()

    is_valid, error = validate_file(content_type, len(data))
    if not is_valid:
        raise UploadValidationError(error)

    target_folder = normalize_folder(folder)
    file_format = _file_format(filename, content_type)
    public_id = f"{target_folder}/{uuid.uuid4().hex}"
    storage_key = f"{public_id}.{file_format}" if file_format else public_id

    is_image = content_type.startswith("image/")
    transformation = image_transformation() if is_image else None
    metadata = {"transformation": json.dumps(transformation)} if transformation else {}

    try:
        store_file(storage_key, data, content_type, metadata)
    except Exception as e:
        logger.error(f"Asset storage failed ({settings.STORAGE_BACKEND}): {type(e).__name__}")
        raise UploadError() from e

    url = public_url(storage_key)
    result: dict[str, Any] = {
        "public_id": public_id,
        "url": url,
        "secure_url": url,
        "folder": target_folder,
        "bytes": len(data),
        "format": file_format,
        "resource_type": "image" if is_image else "raw",
        "original_filename": filename,
    }
    if is_image:
        result["width"], result["height"] = _image_size(data)
        result["transformation"] = transformation

    logger.info(f"Asset uploaded ({result['resource_type']}, {len(data)} bytes)")
    return result
