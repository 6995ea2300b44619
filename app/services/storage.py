"""
Cloudflare R2 object storage (S3-compatible API via boto3).

Keys are laid out by folder:
    documents/<uuid>.pdf                    published documents
    pending/<uuid>.pdf                      documents waiting for approval
    pending-images/<user>/<ts>-<n>.<ext>    image batches for admin conversion
    thumbnails/<document_id>_thumb.jpg      first-page previews
"""

import uuid
from functools import lru_cache
from pathlib import PurePosixPath
from urllib.parse import urlparse

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)

DOCUMENTS_FOLDER = "documents"
PENDING_FOLDER = "pending"
PENDING_IMAGES_FOLDER = "pending-images"
THUMBNAILS_FOLDER = "thumbnails"


class StorageError(Exception):
    """Raised when an object storage operation fails."""
    pass


def is_configured() -> bool:
    return bool(
        settings.r2_account_id
        and settings.r2_access_key_id
        and settings.r2_secret_access_key
        and settings.r2_bucket_name
    )


@lru_cache(maxsize=1)
def get_client():
    """Create (once) the S3 client pointed at the account's R2 endpoint."""
    if not is_configured():
        raise StorageError("R2 storage is not configured")
    return boto3.client(
        "s3",
        endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
        aws_access_key_id=settings.r2_access_key_id,
        aws_secret_access_key=settings.r2_secret_access_key,
        region_name="auto",
        config=BotoConfig(signature_version="s3v4", retries={"max_attempts": 3}),
    )


def generate_file_key(filename: str, folder: str = DOCUMENTS_FOLDER) -> str:
    """``<folder>/<uuid>.<ext>``, keeping the original extension (lowercased)."""
    ext = PurePosixPath(filename).suffix.lower().lstrip(".") or "bin"
    return f"{folder}/{uuid.uuid4()}.{ext}"


def get_public_url(key: str) -> str:
    base = settings.r2_public_url.rstrip("/")
    return f"{base}/{key}" if base else f"/{key}"


def key_from_url(url: str) -> str:
    """Recover the object key from a public URL (last two path segments)."""
    path = urlparse(url).path if "://" in url else url
    parts = [p for p in path.split("/") if p]
    return "/".join(parts[-2:])


def upload_file(data: bytes, key: str, content_type: str) -> str:
    """Upload bytes under ``key`` and return the public URL."""
    try:
        get_client().put_object(
            Bucket=settings.r2_bucket_name,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"R2 upload failed | key={key} | error={e}")
        raise StorageError(f"Failed to upload {key}") from e
    logger.info(f"Uploaded to R2 | key={key} | size={len(data)}")
    return get_public_url(key)


def get_file(key: str) -> bytes:
    try:
        response = get_client().get_object(Bucket=settings.r2_bucket_name, Key=key)
        return response["Body"].read()
    except (BotoCoreError, ClientError) as e:
        logger.error(f"R2 download failed | key={key} | error={e}")
        raise StorageError(f"Failed to fetch {key}") from e


def delete_file(key: str) -> None:
    try:
        get_client().delete_object(Bucket=settings.r2_bucket_name, Key=key)
    except (BotoCoreError, ClientError) as e:
        logger.error(f"R2 delete failed | key={key} | error={e}")
        raise StorageError(f"Failed to delete {key}") from e
    logger.info(f"Deleted from R2 | key={key}")


def copy_file(source_key: str, dest_key: str) -> str:
    """Server-side copy. Returns the public URL of the destination."""
    try:
        get_client().copy_object(
            Bucket=settings.r2_bucket_name,
            Key=dest_key,
            CopySource={"Bucket": settings.r2_bucket_name, "Key": source_key},
        )
    except (BotoCoreError, ClientError) as e:
        logger.error(f"R2 copy failed | {source_key} -> {dest_key} | error={e}")
        raise StorageError(f"Failed to copy {source_key}") from e
    return get_public_url(dest_key)


def list_objects(prefix: str = "") -> list[tuple[str, int]]:
    """Every (key, size) in the bucket, following continuation tokens."""
    objects: list[tuple[str, int]] = []
    try:
        paginator = get_client().get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=settings.r2_bucket_name, Prefix=prefix):
            for obj in page.get("Contents", []):
                objects.append((obj["Key"], obj.get("Size", 0)))
    except (BotoCoreError, ClientError) as e:
        logger.error(f"R2 list failed | prefix={prefix!r} | error={e}")
        raise StorageError("Failed to list bucket objects") from e
    return objects
