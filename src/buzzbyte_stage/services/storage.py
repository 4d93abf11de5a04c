"""Binary asset storage backends for cover images and avatars."""

from __future__ import annotations

import io
import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Protocol

from minio import Minio
from minio.error import MinioException, S3Error
from urllib3.exceptions import HTTPError

from buzzbyte_stage.core.errors import AssetStorageError
from buzzbyte_stage.core.settings import settings

logger = logging.getLogger(__name__)

_MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchObject", "ResourceNotFound"}


class AssetStorage(Protocol):
    """Minimal interface the core needs from an asset backend."""

    def save(self, data: bytes, *, prefix: str, suffix: str, content_type: str) -> str:
        """Persist ``data`` and return its storage key."""
        ...

    def delete(self, key: str) -> None:
        """Remove the object stored under ``key``; missing keys are not an error."""
        ...


def _new_key(prefix: str, suffix: str) -> str:
    return f"{prefix.strip('/')}/{secrets.token_hex(16)}{suffix}"


class LocalAssetStorage:
    """Stores assets as files beneath a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _path_for(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root not in path.parents:
            raise AssetStorageError(f"Asset key escapes storage root: {key!r}")
        return path

    def save(self, data: bytes, *, prefix: str, suffix: str, content_type: str) -> str:
        key = _new_key(prefix, suffix)
        path = self._path_for(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as exc:
            raise AssetStorageError(f"Failed to write asset {key}: {exc}") from exc
        return key

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise AssetStorageError(f"Failed to delete asset {key}: {exc}") from exc


class MinioAssetStorage:
    """Stores assets in a MinIO / S3 bucket."""

    def __init__(self, client: Minio, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def ensure_bucket(self) -> None:
        """Ensure the configured bucket exists."""
        if self.client.bucket_exists(self.bucket):  # pragma: no cover - network call
            return
        try:
            self.client.make_bucket(self.bucket)  # pragma: no cover - network call
        except S3Error as exc:  # pragma: no cover - handle race conditions
            if exc.code not in {"BucketAlreadyOwnedByYou", "BucketAlreadyExists"}:
                raise AssetStorageError(str(exc)) from exc

    def save(self, data: bytes, *, prefix: str, suffix: str, content_type: str) -> str:
        key = _new_key(prefix, suffix)
        try:
            self.client.put_object(
                self.bucket,
                key,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except (MinioException, HTTPError) as exc:
            raise AssetStorageError(f"Failed to upload asset {key}: {exc}") from exc
        return key

    def delete(self, key: str) -> None:
        try:
            self.client.remove_object(self.bucket, key)
        except S3Error as exc:
            if exc.code in _MISSING_OBJECT_CODES:
                return
            raise AssetStorageError(f"Failed to delete asset {key}: {exc}") from exc
        except (MinioException, HTTPError) as exc:
            raise AssetStorageError(f"Failed to delete asset {key}: {exc}") from exc


@lru_cache
def get_asset_storage() -> AssetStorage:
    """Return the asset backend selected by settings."""
    if settings.asset_storage_backend == "minio":
        client = Minio(
            settings.minio_endpoint,
            access_key=settings.minio_access_key,
            secret_key=settings.minio_secret_key,
            secure=settings.minio_secure,
        )
        logger.info("Using MinIO asset storage at %s", settings.minio_endpoint)
        storage = MinioAssetStorage(client, settings.minio_bucket)
        storage.ensure_bucket()
        return storage
    return LocalAssetStorage(settings.media_root)


def delete_asset_quietly(storage: AssetStorage, key: str | None) -> bool:
    """Delete ``key`` if set; log and swallow backend failures.

    Returns True when the asset is gone (or there was none), False when the
    backend failed.
    """
    if not key:
        return True
    try:
        storage.delete(key)
    except AssetStorageError as exc:
        logger.warning("Asset cleanup failed for %s: %s", key, exc)
        return False
    return True


__all__ = [
    "AssetStorage",
    "LocalAssetStorage",
    "MinioAssetStorage",
    "delete_asset_quietly",
    "get_asset_storage",
]
