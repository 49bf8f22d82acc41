"""
Object Store Backend
====================
Stores each file under the object key <file_id>/<original_name>.
"""

import base64
from pathlib import PurePosixPath
from typing import Optional, Tuple

from file_provider.core.config import StorageType
from file_provider.core.exceptions import RemoteStorageError
from file_provider.core.logging_config import get_logger
from file_provider.models.file import (
    DEFAULT_ENCODING,
    FileContentObject,
    FileRecord,
    UploadPayload,
    storage_key,
)
from file_provider.services.storage.base import StorageBackend
from file_provider.services.storage.bucket_client import BucketClient
from file_provider.services.storage.payloads import content_type_for_extension


logger = get_logger(__name__)


class BucketStorageBackend(StorageBackend):
    """
    Object store backend

    Remote failures surface as RemoteStorageError from the client.
    """

    storage_type = StorageType.BUCKET

    def __init__(self, client: BucketClient, default_expires_in: int = 60):
        self.client = client
        self.default_expires_in = default_expires_in

    async def _upload(self, payload: UploadPayload, file_id: int) -> str:
        key = storage_key(file_id, payload.original_name)
        content_type = content_type_for_extension(payload.extension)
        await self.client.upload_object(payload.decode(), key, content_type)
        return key

    async def store(self, payload: UploadPayload, file_id: int) -> str:
        """Upload payload as <file_id>/<original_name>"""
        return await self._upload(payload, file_id)

    async def fetch(
        self,
        record: FileRecord,
        host_url: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> str:
        """Presigned download URL valid for expires_in seconds"""
        return await self.client.presign_url(
            record.object_key,
            expires_in or self.default_expires_in,
        )

    async def read_bytes(self, record: FileRecord) -> Optional[Tuple[bytes, str]]:
        """Download the object for record"""
        data = await self.client.download_object(record.object_key)
        return data, PurePosixPath(record.original_name or "").suffix

    async def fetch_details(self, record: FileRecord) -> Optional[FileContentObject]:
        """Download the object for record as base64"""
        data = await self.client.download_object(record.object_key)
        return FileContentObject(
            content=base64.b64encode(data).decode("ascii"),
            extension=PurePosixPath(record.original_name or "").suffix,
            encoding=DEFAULT_ENCODING,
            original_name=record.original_name or "",
        )

    async def update(self, payload: UploadPayload, record: FileRecord) -> str:
        """
        Upload the replacement, then delete the previous object

        A failed delete leaves the previous object orphaned; it is logged
        and the update still succeeds.
        """
        key = await self._upload(payload, record.id)

        previous_key = record.object_key
        if record.original_name and previous_key != key:
            try:
                await self.client.delete_object(previous_key)
            except RemoteStorageError as e:
                logger.bind(file_id=record.id, key=previous_key, error=str(e)).warning(
                    f"Orphaned object left after update: {previous_key}"
                )

        return key

    async def remove(self, record: FileRecord) -> None:
        """Delete the object for record"""
        await self.client.delete_object(record.object_key)
