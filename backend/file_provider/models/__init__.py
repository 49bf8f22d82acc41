"""
Data Models
===========
Pydantic models for data validation and serialization.
"""

from file_provider.models.file import (
    FileRecord,
    UploadPayload,
    FileContentObject,
    FetchResult,
    storage_key,
)


__all__ = [
    "FileRecord",
    "UploadPayload",
    "FileContentObject",
    "FetchResult",
    "storage_key",
]
