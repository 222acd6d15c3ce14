"""Blob storage for avatar and cover images.

Received multipart files land in a local temp directory first. ``upload``
pushes one of them to the configured backend, ``delete`` removes the received
local file and ``destroy`` removes an object that was already uploaded.
"""

from __future__ import annotations

import logging
import mimetypes
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from uuid import uuid4

from minio import Minio
from minio.error import S3Error

from voluntree.core.config import settings

logger = logging.getLogger(__name__)


class BlobStoreError(Exception):
    """Raised when a backend cannot store or remove an object."""


@dataclass(frozen=True)
class StoredBlob:
    url: str
    key: str


def _object_key(local_path: str) -> str:
    suffix = Path(local_path).suffix.lower()
    return f"{uuid4().hex}{suffix}"


class BlobStore(ABC):
    """Interface all blob backends implement."""

    @abstractmethod
    def upload(self, local_path: str) -> StoredBlob: ...

    @abstractmethod
    def destroy(self, key: str) -> None: ...

    def delete(self, local_path: str | None) -> None:
        """Remove a received local file; a missing file is a no-op."""
        if not local_path:
            return
        try:
            os.remove(local_path)
        except FileNotFoundError:
            return


class LocalBlobStore(BlobStore):
    """Copies uploads under a media root served as static files."""

    def __init__(self, media_root: str, base_url: str) -> None:
        self.media_root = Path(media_root)
        self.base_url = base_url.rstrip("/")

    def upload(self, local_path: str) -> StoredBlob:
        if not os.path.isfile(local_path):
            raise BlobStoreError(f"local file not found: {local_path}")
        key = _object_key(local_path)
        try:
            self.media_root.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(local_path, self.media_root / key)
        except OSError as exc:
            raise BlobStoreError(str(exc)) from exc
        return StoredBlob(url=f"{self.base_url}/{key}", key=key)

    def destroy(self, key: str) -> None:
        try:
            (self.media_root / key).unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise BlobStoreError(str(exc)) from exc


class MinioBlobStore(BlobStore):
    """A thin wrapper around Minio SDK APIs for S3-compatible storage."""

    def __init__(
        self,
        bucket_name: str,
        *,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = True,
        public_base_url: str = "",
        ensure_bucket: bool = True,
    ) -> None:
        self.client = Minio(endpoint=endpoint, access_key=access_key, secret_key=secret_key, secure=secure)
        self.bucket_name = bucket_name
        protocol = "https" if secure else "http"
        self.public_base_url = (public_base_url or f"{protocol}://{endpoint}/{bucket_name}").rstrip("/")
        if ensure_bucket and not self.client.bucket_exists(bucket_name):
            self.client.make_bucket(bucket_name)

    def upload(self, local_path: str) -> StoredBlob:
        key = _object_key(local_path)
        content_type = mimetypes.guess_type(local_path)[0] or "application/octet-stream"
        try:
            self.client.fput_object(self.bucket_name, key, local_path, content_type=content_type)
        except (S3Error, OSError) as exc:
            raise BlobStoreError(str(exc)) from exc
        return StoredBlob(url=f"{self.public_base_url}/{key}", key=key)

    def destroy(self, key: str) -> None:
        try:
            self.client.remove_object(self.bucket_name, key)
        except S3Error as exc:
            if exc.code != "NoSuchKey":
                raise BlobStoreError(str(exc)) from exc


def cleanup_files(blob_store: BlobStore, *local_paths: str | None) -> None:
    """Best-effort removal of received files; failures are logged, never raised."""
    for local_path in local_paths:
        if not local_path:
            continue
        try:
            blob_store.delete(local_path)
        except Exception:
            logger.exception("Failed to delete received file %s", local_path)


def discard_blobs(blob_store: BlobStore, *blobs: StoredBlob | None) -> None:
    """Best-effort removal of objects uploaded by a request that later failed."""
    for blob in blobs:
        if blob is None:
            continue
        try:
            blob_store.destroy(blob.key)
        except Exception:
            logger.exception("Failed to destroy uploaded blob %s", blob.key)


@lru_cache
def get_blob_store() -> BlobStore:
    if settings.BLOB_BACKEND == "minio":
        return MinioBlobStore(
            settings.MINIO_BUCKET,
            endpoint=settings.MINIO_ENDPOINT,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_SECURE,
            public_base_url=settings.MINIO_PUBLIC_BASE_URL,
        )
    return LocalBlobStore(settings.MEDIA_ROOT, settings.MEDIA_BASE_URL)
