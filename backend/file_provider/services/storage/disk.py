"""
Disk Storage Backend
====================
Stores each file at <root>/<file_id>/<original_name>.
"""

import base64
import os
import shutil
import time
import uuid
from pathlib import Path
from typing import Optional, Tuple, Union

import aiofiles

from file_provider.core.config import StorageType
from file_provider.core.exceptions import StorageWriteError
from file_provider.core.logging_config import get_logger
from file_provider.models.file import (
    DEFAULT_ENCODING,
    FileContentObject,
    FileRecord,
    UploadPayload,
    storage_key,
)
from file_provider.services.storage.base import StorageBackend


logger = get_logger(__name__)


def _remove_entry(path: Path) -> None:
    """Remove a file or a whole directory tree"""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


class DiskStorageBackend(StorageBackend):
    """
    Local filesystem backend

    One directory per file id holding exactly one file. Temporary files
    live under <root>/<temp_dir> and share the filesystem with the id
    directories so that replacing a file is a single rename.
    """

    storage_type = StorageType.DISK

    def __init__(
        self,
        root: Union[str, Path],
        temp_dir: str = "temp",
        host_url: str = "http://localhost:8000",
    ):
        self.root = Path(root)
        self.temp_path = self.root / temp_dir
        self.host_url = host_url

        self.root.mkdir(parents=True, exist_ok=True)
        logger.info(f"Disk storage rooted at {self.root}")

    def _id_dir(self, file_id: int) -> Path:
        return self.root / str(file_id)

    async def _write(self, path: Path, data: bytes) -> None:
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)

    # ========================================================================
    # CREATE
    # ========================================================================

    async def store(self, payload: UploadPayload, file_id: int) -> str:
        """
        Write payload to <root>/<file_id>/<original_name>

        Args:
            payload: Upload payload
            file_id: File identifier

        Returns:
            str: Relative storage path

        Raises:
            StorageWriteError: If the directory or file cannot be written
        """
        data = payload.decode()
        storage_dir = self._id_dir(file_id)
        file_path = storage_dir / payload.original_name

        try:
            storage_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create storage directory {storage_dir}: {e}")
            raise StorageWriteError(f"Failed to create directory for file {file_id}", path=str(storage_dir)) from e

        try:
            await self._write(file_path, data)
        except OSError as e:
            logger.error(f"Failed to write {file_path}: {e}")
            shutil.rmtree(storage_dir, ignore_errors=True)
            raise StorageWriteError(f"Failed to write file {file_id}", path=str(file_path)) from e

        logger.bind(file_id=file_id, size=len(data)).info(f"File stored on disk: {file_path}")
        return storage_key(file_id, payload.original_name)

    # ========================================================================
    # READ
    # ========================================================================

    async def fetch(
        self,
        record: FileRecord,
        host_url: Optional[str] = None,
        expires_in: Optional[int] = None,
    ) -> str:
        """Stable URL served by the /file/<id> handler"""
        base = (host_url or self.host_url).rstrip("/")
        return f"{base}/file/{record.id}"

    def resolve_location_by_id(self, file_id: int) -> Optional[str]:
        """
        Path of the file stored for an id

        Args:
            file_id: File identifier

        Returns:
            Optional[str]: First entry of the id directory, None on any filesystem error
        """
        storage_dir = self._id_dir(file_id).resolve()
        try:
            file_name = sorted(os.listdir(storage_dir))[0]
        except (OSError, IndexError) as e:
            logger.warning(f"No stored file for id {file_id}: {e}")
            return None
        return str(storage_dir / file_name)

    async def read_bytes(self, record: FileRecord) -> Optional[Tuple[bytes, str]]:
        """Raw content and extension of the file stored for record.id"""
        file_path = self.resolve_location_by_id(record.id)
        if file_path is None:
            return None

        try:
            async with aiofiles.open(file_path, "rb") as f:
                data = await f.read()
        except OSError as e:
            logger.error(f"Failed to read {file_path}: {e}")
            return None

        return data, Path(file_path).suffix

    async def fetch_details(self, record: FileRecord) -> Optional[FileContentObject]:
        """Base64 content and name of the file stored for record.id"""
        file_path = self.resolve_location_by_id(record.id)
        if file_path is None:
            return None

        try:
            async with aiofiles.open(file_path, "rb") as f:
                data = await f.read()
        except OSError as e:
            logger.error(f"Failed to read {file_path}: {e}")
            return None

        path = Path(file_path)
        return FileContentObject(
            content=base64.b64encode(data).decode("ascii"),
            extension=path.suffix,
            encoding=DEFAULT_ENCODING,
            original_name=path.name,
            path=file_path,
        )

    # ========================================================================
    # UPDATE
    # ========================================================================

    async def update(self, payload: UploadPayload, record: FileRecord) -> str:
        """
        Replace the file stored for record.id

        The new content is written to the temp directory and renamed into
        place before the previous entries are deleted, so the id directory
        never goes empty.

        Raises:
            StorageWriteError: If the replacement cannot be written
        """
        data = payload.decode()
        storage_dir = self._id_dir(record.id)
        file_path = storage_dir / payload.original_name
        temp_file = self.temp_path / f"{uuid.uuid4().hex}-{payload.original_name}.part"

        try:
            storage_dir.mkdir(parents=True, exist_ok=True)
            self.temp_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to prepare directories for file {record.id}: {e}")
            raise StorageWriteError(f"Failed to create directory for file {record.id}", path=str(storage_dir)) from e

        try:
            await self._write(temp_file, data)
            os.replace(temp_file, file_path)
        except OSError as e:
            logger.error(f"Failed to replace {file_path}: {e}")
            temp_file.unlink(missing_ok=True)
            raise StorageWriteError(f"Failed to write file {record.id}", path=str(file_path)) from e

        for entry in storage_dir.iterdir():
            if entry.name == payload.original_name:
                continue
            try:
                _remove_entry(entry)
            except OSError as e:
                logger.error(f"Failed to remove previous file {entry}: {e}")
                raise StorageWriteError(f"Failed to remove previous file for {record.id}", path=str(entry)) from e

        logger.bind(file_id=record.id, size=len(data)).info(f"File replaced on disk: {file_path}")
        return storage_key(record.id, payload.original_name)

    # ========================================================================
    # DELETE
    # ========================================================================

    async def remove(self, record: FileRecord) -> None:
        """Recursively remove the id directory (absent directory is fine)"""
        storage_dir = self._id_dir(record.id)
        try:
            shutil.rmtree(storage_dir)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error(f"Failed to remove {storage_dir}: {e}")
            raise StorageWriteError(f"Failed to remove file {record.id}", path=str(storage_dir)) from e

        logger.bind(file_id=record.id).info(f"File removed from disk: {storage_dir}")

    async def purge_stale_temporaries(self, max_age_seconds: int = 300) -> int:
        """
        Remove temp entries whose mtime is older than max_age_seconds

        Listing failures are logged and end the scan. A failure on one
        entry is logged and the scan moves on.

        Returns:
            int: Number of entries removed
        """
        try:
            entries = list(self.temp_path.iterdir())
        except OSError as e:
            logger.error(f"Failed to list temporary files in {self.temp_path}: {e}")
            return 0

        now = time.time()
        removed = 0
        for entry in entries:
            try:
                if now - entry.stat().st_mtime > max_age_seconds:
                    _remove_entry(entry)
                    removed += 1
            except OSError as e:
                logger.warning(f"Failed to remove temporary file {entry}: {e}")

        if removed:
            logger.bind(path=str(self.temp_path)).info(f"Removed {removed} stale temporary files")
        return removed
