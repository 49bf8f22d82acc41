"""
File Models
===========
Pydantic models for stored files, upload payloads and fetch results.
"""

import base64
import binascii
from pathlib import PurePosixPath
from typing import Optional

from pydantic import BaseModel, Field, field_validator


DEFAULT_ENCODING = "base64"


class FileRecord(BaseModel):
    """File metadata row owned by the persistence layer"""
    id: int = Field(..., description="Identifier assigned before the storage write")
    created: Optional[int] = Field(default=None, description="Creation time in epoch millis")
    path: Optional[str] = Field(default=None, description="Stored relative path or object key")
    original_name: Optional[str] = Field(default=None, description="Original filename with extension")

    @property
    def is_pending(self) -> bool:
        """A record without a stored path is a pending or failed upload"""
        return not self.path

    @property
    def object_key(self) -> str:
        """Storage key: <id>/<original_name>"""
        return storage_key(self.id, self.original_name or "")


class UploadPayload(BaseModel):
    """Encoded file content consumed once by a store or update call"""
    original_name: str = Field(..., description="Filename including extension")
    encoding: str = Field(default=DEFAULT_ENCODING)
    content: str = Field(..., description="Encoded file content")

    @field_validator("original_name")
    def require_extension(cls, v):
        """Filename must carry an extension"""
        name = PurePosixPath(v).name
        if name != v or v in ("", ".", ".."):
            raise ValueError(f"Invalid file name: {v!r}")
        if not PurePosixPath(v).suffix:
            raise ValueError(f"File name must include an extension: {v!r}")
        return v

    @property
    def extension(self) -> str:
        """Extension with leading dot"""
        return PurePosixPath(self.original_name).suffix

    def decode(self) -> bytes:
        """
        Decode content according to its transfer encoding

        Returns:
            bytes: Raw file content

        Raises:
            ValueError: If the content cannot be decoded
        """
        encoding = (self.encoding or DEFAULT_ENCODING).lower()
        if encoding == "base64":
            try:
                return base64.b64decode(self.content, validate=False)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"Invalid base64 content for {self.original_name}") from e
        if encoding == "base64url":
            padded = self.content + "=" * (-len(self.content) % 4)
            try:
                return base64.urlsafe_b64decode(padded)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"Invalid base64url content for {self.original_name}") from e
        if encoding == "hex":
            try:
                return bytes.fromhex(self.content)
            except ValueError as e:
                raise ValueError(f"Invalid hex content for {self.original_name}") from e
        if encoding in ("binary", "latin1"):
            return self.content.encode("latin-1")
        try:
            return self.content.encode(encoding)
        except LookupError as e:
            raise ValueError(f"Unsupported encoding: {self.encoding}") from e


class FileContentObject(BaseModel):
    """Fully materialized file content"""
    content: str
    extension: str = ""
    encoding: str = DEFAULT_ENCODING
    original_name: str = ""
    path: str = ""

    def decode(self) -> bytes:
        """Raw bytes of the materialized content"""
        return base64.b64decode(self.content)


class FetchResult(BaseModel):
    """Per-record outcome of a batch fetch"""
    file_id: int
    url: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.url is not None and self.error is None


def storage_key(file_id: int, original_name: str) -> str:
    """Relative storage location shared by both backends"""
    return f"{file_id}/{original_name}"
