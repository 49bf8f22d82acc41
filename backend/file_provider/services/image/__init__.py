"""
Image Services
==============
Image post-processing helpers.
"""

from file_provider.services.image.quality_reducer import (
    ImageQualityReducer,
    image_quality_reducer,
    jpeg_path_for,
    open_image,
)

__all__ = [
    "ImageQualityReducer",
    "image_quality_reducer",
    "jpeg_path_for",
    "open_image",
]
