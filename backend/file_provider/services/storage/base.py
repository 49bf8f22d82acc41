"""
Storage Backend Interface
=========================
Capability interface shared by the disk and object store backends, and the
factory that picks one from configuration.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

from file_provider.core.config import Settings, StorageType, settings as default_settings
from file_provider.models.file import FileContentObject, FileRecord, UploadPayload


class StorageBackend(ABC):
    """
    Abstract base class for storage backends.

    Files are keyed by a numeric id plus their original name. A backend
    holds at most one file per id.
    """

    storage_type: StorageType

    @abstractmethod
    async def store(self, payload: UploadPayload, file_id: int) -> str:
        """
        Persist decoded payload bytes for a file id.

        Returns:
            Stored relative path / object key
        """

    @abstractmethod
    async def fetch(
        self,
        record: FileRecord,
        host_url: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> str:
        """Return a URL referencing the file (never the bytes)."""

    @abstractmethod
    async def read_bytes(self, record: FileRecord) -> Optional[Tuple[bytes, str]]:
        """Raw content and extension, or None when not found."""

    @abstractmethod
    async def fetch_details(self, record: FileRecord) -> Optional[FileContentObject]:
        """Materialized base64 content, or None when not found."""

    @abstractmethod
    async def update(self, payload: UploadPayload, record: FileRecord) -> str:
        """Replace the file stored for record.id with payload."""

    @abstractmethod
    async def remove(self, record: FileRecord) -> None:
        """Delete the file. Deleting an absent file is not an error."""

    def resolve_location_by_id(self, file_id: int) -> Optional[str]:
        """Local path of the file for an id; only meaningful on disk."""
        return None

    async def purge_stale_temporaries(self, max_age_seconds: int = 300) -> int:
        """Remove stale temporary uploads. Returns the number removed."""
        return 0


def get_storage_backend(config: Optional[Settings] = None) -> StorageBackend:
    """
    Factory function to get the storage backend selected by STORAGE_TYPE

    Returns:
        StorageBackend instance (DiskStorageBackend or BucketStorageBackend)
    """
    config = config or default_settings

    if config.STORAGE_TYPE == StorageType.DISK:
        from file_provider.services.storage.disk import DiskStorageBackend
        return DiskStorageBackend(
            root=config.storage_root,
            temp_dir=config.STORAGE_TEMP_DIR,
            host_url=config.HOST_URL,
        )
    elif config.STORAGE_TYPE == StorageType.BUCKET:
        from file_provider.services.storage.bucket import BucketStorageBackend
        from file_provider.services.storage.bucket_client import BucketClient
        return BucketStorageBackend(
            client=BucketClient(config),
            default_expires_in=config.PRESIGN_EXPIRES_IN,
        )
    else:
        raise ValueError(f"Unknown storage backend: {config.STORAGE_TYPE}")
