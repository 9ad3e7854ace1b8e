"""Object storage for job update attachments (local filesystem or S3)."""

import io
import logging
import os
import re
import time
import uuid
from typing import BinaryIO, Callable, Protocol
from urllib.parse import quote, unquote, urlparse
from uuid import UUID

import anyio
import boto3

from printshop.core.config import settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


# =============================================================================
# Configuration
# =============================================================================

CHUNK_SIZE = 64 * 1024
_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._ ()-]+")


def build_storage_key(
    job_id: UUID, filename: str, now_ms: int | None = None, token: str | None = None
) -> str:
    """jobs/{job_id}/updates/{ms_timestamp}_{token}_{filename}

    The random token keeps same-named files of one upload batch apart.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    if token is None:
        token = uuid.uuid4().hex[:8]
    name = os.path.basename(filename.replace("\\", "/")) or "file"
    name = _UNSAFE_NAME_CHARS.sub("_", name)
    return f"jobs/{job_id}/updates/{now_ms}_{token}_{name}"


def validate_upload(filename: str, file_size: int) -> tuple[bool, str | None]:
    """
    Validate an upload against the size limit.

    Returns (is_valid, error_message)
    """
    if not filename:
        return False, "File name is required"
    if file_size > settings.MAX_UPLOAD_SIZE_BYTES:
        max_mb = settings.MAX_UPLOAD_SIZE_BYTES / (1024 * 1024)
        return False, f"File size exceeds {max_mb:.0f} MB limit"
    return True, None


class FileStorage(Protocol):
    def store_file(
        self, storage_key: str, file: BinaryIO, progress: ProgressCallback | None = None
    ) -> None: ...

    def public_url(self, storage_key: str) -> str: ...

    def delete_by_url(self, url: str) -> None: ...


# =============================================================================
# Storage Backends
# =============================================================================

class LocalStorage:
    """Files under LOCAL_STORAGE_PATH, served by the /files router."""

    def __init__(self, root: str | None = None, url_prefix: str | None = None):
        self.root = root or settings.LOCAL_STORAGE_PATH
        self.url_prefix = (url_prefix or settings.LOCAL_FILES_URL_PREFIX).rstrip("/")

    def resolve_path(self, storage_key: str) -> str:
        """Absolute path for a key; rejects keys that escape the storage root."""
        root = os.path.realpath(self.root)
        path = os.path.realpath(os.path.join(root, storage_key))
        if os.path.commonpath([root, path]) != root:
            raise ValueError(f"Storage key escapes storage root: {storage_key}")
        return path

    def store_file(
        self, storage_key: str, file: BinaryIO, progress: ProgressCallback | None = None
    ) -> None:
        path = self.resolve_path(storage_key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file.seek(0)
        with open(path, "wb") as f:
            for chunk in iter(lambda: file.read(CHUNK_SIZE), b""):
                f.write(chunk)
                if progress:
                    progress(len(chunk))

    def public_url(self, storage_key: str) -> str:
        return f"{self.url_prefix}/{quote(storage_key)}"

    def key_from_url(self, url: str) -> str:
        path = urlparse(url).path
        prefix = f"{self.url_prefix}/"
        if not path.startswith(prefix):
            raise ValueError(f"Not a local file URL: {url}")
        return unquote(path[len(prefix):])

    def delete_by_url(self, url: str) -> None:
        os.remove(self.resolve_path(self.key_from_url(url)))


class S3Storage:
    """Objects in S3_BUCKET, addressed through S3_PUBLIC_BASE_URL."""

    def __init__(self, bucket: str | None = None, client=None):
        self.bucket = bucket or settings.S3_BUCKET
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=settings.S3_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            )
        return self._client

    @property
    def base_url(self) -> str:
        if settings.S3_PUBLIC_BASE_URL:
            return settings.S3_PUBLIC_BASE_URL.rstrip("/")
        return f"https://{self.bucket}.s3.{settings.S3_REGION}.amazonaws.com"

    def store_file(
        self, storage_key: str, file: BinaryIO, progress: ProgressCallback | None = None
    ) -> None:
        file.seek(0)
        self.client.upload_fileobj(file, self.bucket, storage_key, Callback=progress)

    def public_url(self, storage_key: str) -> str:
        return f"{self.base_url}/{quote(storage_key)}"

    def key_from_url(self, url: str) -> str:
        prefix = f"{self.base_url}/"
        if not url.startswith(prefix):
            raise ValueError(f"Not a storage URL for bucket {self.bucket}: {url}")
        return unquote(url[len(prefix):])

    def delete_by_url(self, url: str) -> None:
        self.client.delete_object(Bucket=self.bucket, Key=self.key_from_url(url))


def _get_storage_backend() -> str:
    """Get configured storage backend."""
    return settings.STORAGE_BACKEND


def get_storage() -> FileStorage:
    """Storage adapter for the configured backend."""
    if _get_storage_backend() == "s3":
        return S3Storage()
    return LocalStorage()


# =============================================================================
# Async wrappers (storage I/O runs in worker threads)
# =============================================================================

async def upload_bytes(
    storage: FileStorage,
    storage_key: str,
    content: bytes,
    progress: ProgressCallback | None = None,
) -> str:
    """Store content under storage_key and return its public URL."""

    def _store() -> None:
        storage.store_file(storage_key, io.BytesIO(content), progress)

    await anyio.to_thread.run_sync(_store)
    url = storage.public_url(storage_key)
    logger.info(f"Stored file {storage_key} ({len(content)} bytes)")
    return url


async def delete_url(storage: FileStorage, url: str) -> None:
    await anyio.to_thread.run_sync(storage.delete_by_url, url)
