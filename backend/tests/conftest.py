"""
Shared fixtures for storage and image tests
"""
import base64
import io

import pytest
from PIL import Image

from file_provider.core.config import Settings
from file_provider.core.exceptions import RemoteStorageError
from file_provider.models.file import UploadPayload
from file_provider.services.storage.bucket import BucketStorageBackend
from file_provider.services.storage.disk import DiskStorageBackend
from file_provider.services.storage.gateway import StorageGateway


class FakeBucketClient:
    """In-memory stand-in for BucketClient"""

    def __init__(self):
        self.objects = {}
        self.content_types = {}
        self.presigned = []
        self.deleted = []
        self.fail_on = set()
        self.fail_keys = set()

    def _check(self, operation, key):
        if operation in self.fail_on or key in self.fail_keys:
            raise RemoteStorageError(f"{operation} failed for {key}", path=key)

    async def upload_object(self, content, key, content_type=None):
        self._check("upload", key)
        self.objects[key] = content
        self.content_types[key] = content_type

    async def download_object(self, key):
        self._check("download", key)
        if key not in self.objects:
            raise RemoteStorageError(f"NoSuchKey: {key}", path=key)
        return self.objects[key]

    async def delete_object(self, key):
        self._check("delete", key)
        self.deleted.append(key)
        self.objects.pop(key, None)

    async def presign_url(self, key, expires_in=None):
        self._check("presign", key)
        self.presigned.append((key, expires_in))
        return f"https://bucket.example.com/{key}?X-Amz-Expires={expires_in}"


def make_payload(name: str, data: bytes) -> UploadPayload:
    """Build a base64 payload"""
    return UploadPayload(
        original_name=name,
        encoding="base64",
        content=base64.b64encode(data).decode("ascii"),
    )


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a temporary storage root"""
    return Settings(
        STORAGE_TYPE="DISK",
        STORAGE_PATH=str(tmp_path / "storage"),
        HOST_URL="https://files.example.com",
        BUCKET_NAME="test-bucket",
        BUCKET_ACCESS_KEY_ID="test-access-key",
        BUCKET_SECRET_ACCESS_KEY="test-secret-key",
    )


@pytest.fixture
def disk_backend(test_settings):
    """Disk backend rooted in tmp_path"""
    return DiskStorageBackend(
        root=test_settings.storage_root,
        temp_dir=test_settings.STORAGE_TEMP_DIR,
        host_url=test_settings.HOST_URL,
    )


@pytest.fixture
def disk_gateway(disk_backend, test_settings):
    """Gateway over the disk backend"""
    return StorageGateway(disk_backend, test_settings)


@pytest.fixture
def fake_bucket():
    """In-memory object store"""
    return FakeBucketClient()


@pytest.fixture
def bucket_gateway(fake_bucket, test_settings):
    """Gateway over the object store backend"""
    backend = BucketStorageBackend(client=fake_bucket, default_expires_in=60)
    return StorageGateway(backend, test_settings)


@pytest.fixture
def png_bytes():
    """A small PNG image"""
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()
