import logging
import uuid
from functools import lru_cache
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from clientdesk.config import settings

logger = logging.getLogger(__name__)


class ImageUploadError(RuntimeError):
    pass


@lru_cache(maxsize=1)
def _client():
    session = boto3.session.Session()
    return session.client(
        "s3",
        region_name=settings.SPACES_REGION,
        endpoint_url=settings.SPACES_ENDPOINT,
        aws_access_key_id=settings.SPACES_KEY,
        aws_secret_access_key=settings.SPACES_SECRET,
    )


def _join_path(*segments: str) -> str:
    cleaned = [segment.strip("/") for segment in segments if segment and segment.strip("/")]
    return "/".join(cleaned)


def _safe_filename(filename: str | None) -> str:
    name = Path(filename or "image").name.replace(" ", "_")
    return f"{uuid.uuid4().hex[:8]}_{name}"


def public_url(key: str) -> str:
    return f"{settings.SPACES_CDN_URL}/{key}"


def _upload_file(data: bytes, key: str, content_type: str | None = None) -> str:
    if not settings.SPACES_NAME or not settings.SPACES_CDN_URL:
        raise ImageUploadError("Image host is not configured")

    extra_args = {"ACL": "public-read"}
    if content_type:
        extra_args["ContentType"] = content_type

    try:
        _client().put_object(
            Bucket=settings.SPACES_NAME,
            Key=key,
            Body=data,
            **extra_args
        )
    except (BotoCoreError, ClientError) as exc:
        raise ImageUploadError("Image upload failed") from exc
    return public_url(key)


def client_image_key(client_id: int, project: str, filename: str | None) -> str:
    return _join_path(settings.SPACES_BASE_PATH, "clients", str(client_id), project, _safe_filename(filename))


def upload_client_image(
    data: bytes,
    client_id: int,
    project: str,
    filename: str | None,
    content_type: str | None = None,
) -> tuple[str, str]:
    """Store a gallery image and return (public_url, storage_key)."""
    key = client_image_key(client_id, project, filename)
    url = _upload_file(data, key, content_type)
    logger.info("Uploaded client image key=%s", key)
    return url, key


def upload_profile_photo(data: bytes, user_id: int, filename: str | None, content_type: str | None = None) -> str:
    key = _join_path(settings.SPACES_BASE_PATH, "profile_photos", str(user_id), _safe_filename(filename))
    return _upload_file(data, key, content_type)


def delete_object(key: str) -> None:
    if not settings.SPACES_NAME:
        raise ImageUploadError("Image host is not configured")
    try:
        _client().delete_object(Bucket=settings.SPACES_NAME, Key=key)
    except (BotoCoreError, ClientError) as exc:
        raise ImageUploadError(f"Failed to delete {key}") from exc
