"""
Multipart upload handling.

Each upload category has a policy (MIME allow-list, size ceiling, file
count). Accepted files land in `<UPLOAD_DIR>/<category>/` under a generated
name and are referenced by their public `/uploads/...` path. A rejected
batch leaves nothing behind on disk.
"""

import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from fastapi import UploadFile

from intranet.config.settings import settings
from intranet.utils.exceptions import UploadRejectedException, UploadTooLargeException
from intranet.utils.logger import get_logger
from intranet.utils.metrics import uploads_total, upload_size_bytes

logger = get_logger(__name__)

PUBLIC_PREFIX = "/uploads"
MB = 1024 * 1024

IMAGE_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
DOCUMENT_TYPES = frozenset({
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/zip",
    "application/x-zip-compressed",
    "text/csv",
    "text/plain",
})


@dataclass(frozen=True)
class UploadPolicy:
    category: str
    allowed_types: frozenset
    max_size: int
    max_files: int


@dataclass
class StoredUpload:
    original_name: str
    content_type: str
    size: int
    url: str
    path: Path


POST_MEDIA = UploadPolicy("posts", IMAGE_TYPES | {"video/mp4"}, 10 * MB, 10)
NEWS_MEDIA = UploadPolicy("news", IMAGE_TYPES | {"video/mp4"}, 10 * MB, 10)
MESSAGE_MEDIA = UploadPolicy(
    "messages",
    frozenset({"image/jpeg", "image/png", "image/gif", "video/mp4", "video/mpeg", "application/pdf"}),
    10 * MB,
    10,
)
DOCUMENTS = UploadPolicy("documents", DOCUMENT_TYPES, 20 * MB, 5)
AVATARS = UploadPolicy("avatars", IMAGE_TYPES, 5 * MB, 1)
GROUP_IMAGES = UploadPolicy("groups", IMAGE_TYPES, 5 * MB, 1)


def upload_root() -> Path:
    return Path(settings.UPLOAD_DIR)


def _target_name(field: str, filename: Optional[str]) -> str:
    ext = os.path.splitext(filename or "")[1].lower()
    return f"{field}-{int(time.time() * 1000)}-{uuid.uuid4().hex}{ext}"


async def _write(upload: UploadFile, policy: UploadPolicy, field: str) -> StoredUpload:
    content_type = (upload.content_type or "").split(";")[0].strip()
    if content_type not in policy.allowed_types:
        uploads_total.labels(category=policy.category, status="rejected").inc()
        raise UploadRejectedException(f"File type {content_type or 'unknown'} is not allowed.")

    directory = upload_root() / policy.category
    directory.mkdir(parents=True, exist_ok=True)
    name = _target_name(field, upload.filename)
    path = directory / name

    size = 0
    with open(path, "wb") as out:
        while chunk := await upload.read(settings.UPLOAD_CHUNK_SIZE):
            size += len(chunk)
            if size > policy.max_size:
                break
            out.write(chunk)

    if size > policy.max_size:
        path.unlink(missing_ok=True)
        uploads_total.labels(category=policy.category, status="too_large").inc()
        raise UploadTooLargeException(
            f"{upload.filename} exceeds the {policy.max_size // MB} MB limit."
        )

    uploads_total.labels(category=policy.category, status="stored").inc()
    upload_size_bytes.labels(category=policy.category).observe(size)
    return StoredUpload(
        original_name=upload.filename or name,
        content_type=content_type,
        size=size,
        url=f"{PUBLIC_PREFIX}/{policy.category}/{name}",
        path=path,
    )


async def save_uploads(
    files: Sequence[UploadFile], policy: UploadPolicy, field: str
) -> List[StoredUpload]:
    """
    Validate and persist a batch.

    Guard: file count is checked before anything is written.
    Guard: a failure part-way removes the files already written.
    """
    files = [f for f in files if f is not None and f.filename]
    if len(files) > policy.max_files:
        uploads_total.labels(category=policy.category, status="rejected").inc()
        raise UploadRejectedException(
            f"Too many files: at most {policy.max_files} allowed for '{field}'."
        )

    stored: List[StoredUpload] = []
    try:
        for upload in files:
            stored.append(await _write(upload, policy, field))
    except Exception:
        for item in stored:
            item.path.unlink(missing_ok=True)
        raise

    logger.info(f"Stored {len(stored)} upload(s) in {policy.category}")
    return stored


def remove_upload(url: Optional[str]) -> None:
    """Best-effort removal of a stored upload by its public path."""
    if not url or not url.startswith(PUBLIC_PREFIX + "/"):
        return
    path = upload_root() / url[len(PUBLIC_PREFIX) + 1:]
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.error(f"Could not remove upload {path}: {e}")
