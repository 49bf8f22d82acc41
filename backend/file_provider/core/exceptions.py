"""
Custom Exceptions
=================
Storage and image processing exception classes.
"""

from fastapi import HTTPException, status


class StorageError(Exception):
    """Base storage exception"""
    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.message = message
        self.path = path


class StorageWriteError(StorageError):
    """Directory creation or file write failed on disk"""


class StorageReadError(StorageError):
    """File or directory is missing or unreadable"""


class RemoteStorageError(StorageError):
    """Object store operation failed"""


class ImageProcessingError(Exception):
    """Image quality reduction failed"""
    def __init__(self, detail: str = "Failed to check image size and decrease image quality"):
        super().__init__(detail)
        self.detail = detail


class ValidationException(HTTPException):
    """Upload or update rejected because storage failed"""
    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )
