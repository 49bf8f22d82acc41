"""
Storage Services
================
File storage abstractions (local filesystem, S3-compatible object store).
"""

from file_provider.services.storage.base import StorageBackend, get_storage_backend
from file_provider.services.storage.gateway import (
    StorageGateway,
    batch_expires_in,
    get_storage_gateway,
    successful_urls,
)
from file_provider.services.storage.payloads import (
    DecodedContent,
    content_type_for_extension,
    extract_from_data_uri,
    extract_from_file_path,
    file_size_kb,
    mime_type_from_data_uri,
    payload_from_image_data_uri,
    payload_from_pdf_data_uri,
    payload_from_uploaded_file,
    randomized_name,
)

__all__ = [
    "StorageBackend",
    "StorageGateway",
    "get_storage_backend",
    "get_storage_gateway",
    "batch_expires_in",
    "successful_urls",
    "DecodedContent",
    "content_type_for_extension",
    "extract_from_data_uri",
    "extract_from_file_path",
    "file_size_kb",
    "mime_type_from_data_uri",
    "payload_from_image_data_uri",
    "payload_from_pdf_data_uri",
    "payload_from_uploaded_file",
    "randomized_name",
]
