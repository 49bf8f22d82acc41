"""
Storage Gateway
===============
Uniform create/read/update/delete operations over the configured backend.
"""

from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from file_provider.core.config import Settings, StorageType, settings as default_settings
from file_provider.core.exceptions import StorageError, ValidationException
from file_provider.core.logging_config import get_logger
from file_provider.models.file import FetchResult, FileContentObject, FileRecord, UploadPayload
from file_provider.services.storage.base import StorageBackend, get_storage_backend


logger = get_logger(__name__)


def batch_expires_in(count: int, per_item: int = 5, cap: int = 60) -> int:
    """
    Presign lifetime for a batch of links

    Args:
        count: Number of records in the batch
        per_item: Seconds granted per record
        cap: Upper bound in seconds

    Returns:
        int: min(cap, count * per_item)
    """
    return min(cap, count * per_item)


def successful_urls(results: Sequence[FetchResult]) -> List[str]:
    """URLs of the batch entries that succeeded, in order"""
    return [result.url for result in results if result.ok]


class StorageGateway:
    """
    Storage Gateway

    Delegates to a single backend chosen at construction time. Failed
    writes are reported to callers as ValidationException.
    """

    def __init__(self, backend: StorageBackend, config: Optional[Settings] = None):
        self.backend = backend
        self.config = config or default_settings

    @property
    def storage_type(self) -> StorageType:
        return self.backend.storage_type

    async def store(self, payload: UploadPayload, file_id: int) -> str:
        """
        Persist an upload for a file id

        Args:
            payload: Upload payload
            file_id: Identifier assigned by the persistence layer

        Returns:
            str: Stored relative path / object key

        Raises:
            ValidationException: If the content could not be stored
        """
        try:
            return await self.backend.store(payload, file_id)
        except (StorageError, ValueError) as e:
            logger.error(f"Error saving file {file_id}: {e}")
            raise ValidationException(str(e)) from e

    async def fetch(
        self,
        record: FileRecord,
        host_url: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> str:
        """
        URL referencing the stored file

        Presigned for the object store, <host_url>/file/<id> on disk.
        """
        return await self.backend.fetch(record, host_url=host_url, expires_in=expires_in)

    async def fetch_details(self, record: FileRecord) -> Optional[FileContentObject]:
        """Materialized base64 content, None when the file is not found"""
        return await self.backend.fetch_details(record)

    async def read_bytes(self, record: FileRecord) -> Optional[Tuple[bytes, str]]:
        """Raw content and extension, None when the file is not found"""
        return await self.backend.read_bytes(record)

    async def fetch_batch(
        self,
        records: Sequence[FileRecord],
        host_url: Optional[str] = None,
    ) -> List[FetchResult]:
        """
        Fetch URLs for many records

        Presign lifetime grows with the batch size up to a cap. A failing
        record yields a FetchResult with its error instead of aborting
        the batch.

        Args:
            records: File records
            host_url: Base URL for disk links

        Returns:
            List[FetchResult]: One result per record, in order
        """
        expires_in = batch_expires_in(
            len(records),
            per_item=self.config.BATCH_PRESIGN_SECONDS_PER_ITEM,
            cap=self.config.BATCH_PRESIGN_MAX_SECONDS,
        )

        results = []
        for record in records:
            try:
                url = await self.backend.fetch(record, host_url=host_url, expires_in=expires_in)
                results.append(FetchResult(file_id=record.id, url=url))
            except StorageError as e:
                logger.warning(f"Fetch failed for file {record.id}: {e}")
                results.append(FetchResult(file_id=record.id, error=str(e)))

        return results

    async def update(self, payload: UploadPayload, record: FileRecord) -> str:
        """
        Replace the stored content of a file

        Raises:
            ValidationException: If the replacement could not be stored
        """
        try:
            return await self.backend.update(payload, record)
        except (StorageError, ValueError) as e:
            logger.error(f"Error updating file {record.id}: {e}")
            raise ValidationException(str(e)) from e

    async def remove(self, record: FileRecord) -> None:
        """Delete the stored file; deleting twice is a no-op"""
        await self.backend.remove(record)

    def resolve_location_by_id(self, file_id: int) -> Optional[str]:
        """Local path of a stored file (disk only), None when not found"""
        return self.backend.resolve_location_by_id(file_id)

    async def purge_stale_temporaries(self, max_age_seconds: Optional[int] = None) -> int:
        """Remove temporary uploads older than max_age_seconds (default from settings)"""
        if max_age_seconds is None:
            max_age_seconds = self.config.TEMP_FILE_MAX_AGE_SECONDS
        return await self.backend.purge_stale_temporaries(max_age_seconds)


@lru_cache()
def get_storage_gateway() -> StorageGateway:
    """
    Get the cached gateway for the configured backend

    Returns:
        StorageGateway: Gateway over the STORAGE_TYPE backend
    """
    return StorageGateway(get_storage_backend(default_settings), default_settings)
