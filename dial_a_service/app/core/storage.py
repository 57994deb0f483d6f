"""
File storage for uploaded documents and pictures.

Objects are grouped in buckets; each bucket is a directory below
``settings.media_root``.  Objects are addressed by ``(bucket, path)``
and exposed to clients through :func:`public_url`, which points at the
``/storage`` route served by the application.
"""

import logging
from pathlib import Path
from typing import Optional

from .config import settings


logger = logging.getLogger(__name__)

PROVIDER_IDS_BUCKET = "provider-ids"
PROVIDER_PROFILES_BUCKET = "provider-profiles"


class StorageError(Exception):
    """Raised when an object cannot be written or located."""


def _bucket_root(bucket: str) -> Path:
    if not bucket or "/" in bucket or bucket in {".", ".."}:
        raise StorageError(f"Invalid bucket name: {bucket!r}")
    return Path(settings.media_root).resolve() / bucket


def object_path(bucket: str, path: str) -> Path:
    """Resolve the on-disk location of an object, refusing paths that escape the bucket."""
    root = _bucket_root(bucket)
    if not path or path.startswith("/") or ".." in Path(path).parts:
        raise StorageError(f"Invalid object path: {path!r}")
    target = (root / path).resolve()
    if root not in target.parents:
        raise StorageError(f"Invalid object path: {path!r}")
    return target


def upload(bucket: str, path: str, data: bytes, content_type: Optional[str] = None, upsert: bool = False) -> str:
    """Store ``data`` under ``bucket/path`` and return the object key.

    When ``upsert`` is false an existing object is not overwritten and
    a ``StorageError`` is raised instead.
    """
    target = object_path(bucket, path)
    if target.exists() and not upsert:
        raise StorageError("The resource already exists")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    logger.info("Stored %s/%s (%d bytes, %s)", bucket, path, len(data), content_type or "unknown type")
    return f"{bucket}/{path}"


def public_url(bucket: str, path: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/storage/{bucket}/{path}"


def validate_image(content_type: Optional[str], size: int) -> None:
    """Apply the upload rules shared by ID documents and profile pictures.

    Raises ``ValueError`` with a user-facing message when the upload is
    not an image or exceeds ``settings.max_upload_bytes``.
    """
    if not content_type or not content_type.startswith("image/"):
        raise ValueError("Please upload an image file")
    if size > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        raise ValueError(f"File size must be less than {limit_mb}MB")
