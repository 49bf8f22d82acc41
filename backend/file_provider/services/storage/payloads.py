"""
Payload Helpers
===============
Pure helpers for turning data URIs and files on disk into upload payloads,
plus MIME/content-type lookup and collision-resistant file naming.
"""

import base64
import re
import time
import uuid
from pathlib import Path
from typing import NamedTuple, Optional, Union

from file_provider.core.exceptions import ImageProcessingError, StorageReadError
from file_provider.models.file import DEFAULT_ENCODING, UploadPayload


# data:image/<subtype>;base64,<payload>
IMAGE_DATA_URI = re.compile(r"^data:image/([\w+]+);base64,([\s\S]+)")
# data:<type>/<subtype>;base64,<payload>
GENERIC_DATA_URI = re.compile(r"^data:([\w+/]+);base64,([\s\S]+)")
# data:application/<subtype>;base64,<payload>
APPLICATION_DATA_URI = re.compile(r"^data:application/([\w+]+);base64,([\s\S]+)")

# MIME subtypes whose file extension differs from the subtype
EXTENSION_OVERRIDES = {
    "jpeg": "jpg",
    "svg+xml": "svg",
}


class DecodedContent(NamedTuple):
    """Encoded content and its extension (leading dot, or empty)"""
    content: str
    extension: str


def _extension_for_subtype(subtype: str) -> str:
    return "." + EXTENSION_OVERRIDES.get(subtype, subtype)


def extract_from_data_uri(data: str, kind: str = "image") -> DecodedContent:
    """
    Split a base64 data URI into payload and file extension

    Input that is not a data URI is treated as already-raw content.

    Args:
        data: Data URI string
        kind: "image" to accept only image URIs, "generic" for any MIME type

    Returns:
        DecodedContent: payload and extension (empty when unmatched)
    """
    if kind == "image":
        match = IMAGE_DATA_URI.match(data or "")
        subtype = match.group(1) if match else None
    elif kind == "generic":
        match = GENERIC_DATA_URI.match(data or "")
        subtype = match.group(1).split("/")[-1] if match else None
    else:
        raise ValueError(f"Unknown data URI kind: {kind}")

    if not match:
        return DecodedContent(content=data, extension="")

    return DecodedContent(content=match.group(2), extension=_extension_for_subtype(subtype))


def extract_from_file_path(path: Union[str, Path]) -> Optional[DecodedContent]:
    """
    Read a file and base64-encode its content

    Args:
        path: File to read

    Returns:
        Optional[DecodedContent]: Encoded content and extension, None if the file does not exist
    """
    file_path = Path(path)
    if not file_path.is_file():
        return None

    content = base64.b64encode(file_path.read_bytes()).decode("ascii")
    return DecodedContent(content=content, extension=file_path.suffix)


def mime_type_from_data_uri(data: Optional[str]) -> Optional[str]:
    """MIME subtype of a data URI, e.g. "png" for data:image/png;base64,..."""
    match = GENERIC_DATA_URI.match(data or "")
    if not match:
        return None
    parts = match.group(1).split("/")
    return parts[1] if len(parts) > 1 else None


def content_type_for_extension(extension: str) -> str:
    """
    Content type for a file extension (case-insensitive, dot optional)

    Args:
        extension: File extension such as "png" or ".PDF"

    Returns:
        str: MIME content type
    """
    ext = (extension or "").lstrip(".").lower()

    if ext == "xml":
        return "application/xml"
    if ext in ("png", "jpg", "jpeg", "gif"):
        return f"image/{ext}"
    if ext in ("mp4", "avi", "mov"):
        return f"video/{ext}"
    if ext in ("mp3", "mpga"):
        return "audio/mp3"
    if ext == "pdf":
        return "application/pdf"
    return "application/octet-stream"


def randomized_name(original: str) -> str:
    """
    Prefix a filename with a millisecond timestamp and a random suffix

    Args:
        original: Original filename

    Returns:
        str: <millis>-<random>-<original>
    """
    millis = int(time.time() * 1000)
    return f"{millis}-{uuid.uuid4().hex[:8]}-{original}"


def file_size_kb(path: Union[str, Path]) -> float:
    """
    Size of a file on disk in kilobytes (1 KB = 1000 bytes)

    Raises:
        ImageProcessingError: If the file cannot be stat'ed
    """
    try:
        return Path(path).stat().st_size / 1000
    except OSError as e:
        raise ImageProcessingError("Failed to get file size from image") from e


# ============================================================================
# PAYLOAD BUILDERS
# ============================================================================

def payload_from_image_data_uri(
    data: str,
    filename: str,
    encoding: str = DEFAULT_ENCODING,
) -> UploadPayload:
    """
    Build an upload payload from an image data URI

    The stored name is randomized and suffixed with the image extension.
    Input that is not a data URI is kept as raw content and adds no
    extension, so filename must then carry its own.

    Raises:
        ValueError: If the resulting name has no extension
    """
    decoded = extract_from_data_uri(data, kind="image")
    return UploadPayload(
        content=decoded.content,
        encoding=encoding,
        original_name=randomized_name(filename) + decoded.extension,
    )


def payload_from_uploaded_file(
    path: Union[str, Path],
    filename: Optional[str] = None,
    encoding: str = DEFAULT_ENCODING,
) -> UploadPayload:
    """
    Build an upload payload from a file already written by the upload layer

    Raises:
        StorageReadError: If the file does not exist
    """
    decoded = extract_from_file_path(path)
    if decoded is None:
        raise StorageReadError(f"Uploaded file not found: {path}", path=str(path))

    return UploadPayload(
        content=decoded.content,
        encoding=encoding,
        original_name=filename or Path(path).name,
    )


def payload_from_pdf_data_uri(
    data: str,
    filename: str,
    encoding: str = DEFAULT_ENCODING,
) -> UploadPayload:
    """Build an upload payload from a data:application/<subtype> URI"""
    match = APPLICATION_DATA_URI.match(data or "")
    if not match:
        raise ValueError("Expected a data:application/<type>;base64 URI")

    return UploadPayload(
        content=match.group(2),
        encoding=encoding,
        original_name=f"{filename}.{match.group(1)}",
    )
