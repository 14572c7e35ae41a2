from __future__ import annotations

import os
import uuid

from fliq.core.config import settings

ALLOWED_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "application/pdf": ".pdf",
}
BUCKETS = ("avatars", "verification_documents")


class UploadError(ValueError):
    pass


def store_upload(*, bucket: str, owner_id: str, content: bytes, content_type: str) -> tuple[str, str]:
    """Store bytes under <bucket>/<owner>/ and return (object_key, public_url)."""
    if bucket not in BUCKETS:
        raise UploadError("unknown bucket")
    if content_type not in ALLOWED_TYPES:
        raise UploadError("only JPEG, PNG, WebP images or PDF documents are accepted")
    if bucket == "avatars" and not content_type.startswith("image/"):
        raise UploadError("avatar must be an image")
    if not content:
        raise UploadError("empty upload")
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise UploadError("file too large")

    object_key = f"{bucket}/{owner_id}/{uuid.uuid4().hex}{ALLOWED_TYPES[content_type]}"
    path = os.path.join(settings.UPLOAD_LOCAL_DIR or "./data/uploads", *object_key.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return object_key, public_url(object_key)


def public_url(object_key: str) -> str:
    return f"{settings.PUBLIC_MEDIA_URL.rstrip('/')}/{object_key}"
