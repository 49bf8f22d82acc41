"""
Image Quality Reducer
=====================
Shrinks an image below a size budget by re-encoding it as JPEG at
decreasing quality levels.
"""

import asyncio
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from file_provider.core.config import settings
from file_provider.core.exceptions import ImageProcessingError
from file_provider.core.logging_config import get_logger
from file_provider.services.storage.payloads import file_size_kb


logger = get_logger(__name__)


PathLike = Union[str, Path]


def jpeg_path_for(file_path: PathLike) -> str:
    """Sibling path with the basename cut at its first "." and a .jpg suffix"""
    path = Path(file_path)
    stem = path.name.split(".")[0]
    return str(path.with_name(f"{stem}.jpg"))


def open_image(file_path: PathLike) -> Image.Image:
    """
    Load an image fully into memory

    Raises:
        ImageProcessingError: If the file is missing or not an image
    """
    try:
        with Image.open(file_path) as img:
            img.load()
            return img.copy()
    except (OSError, SyntaxError) as e:
        raise ImageProcessingError(f"Failed to open image {file_path}") from e


class ImageQualityReducer:
    """
    Iterative lossy re-encoder

    Each step writes the image to disk and measures it, so the loop costs
    at most (start_quality / step) writes.
    """

    def __init__(self, start_quality: int = 100, step: int = 2):
        self.start_quality = start_quality
        self.step = step

    @staticmethod
    def _as_jpeg_compatible(image: Image.Image) -> Image.Image:
        if image.mode in ("RGB", "L"):
            return image
        return image.convert("RGB")

    def reduce(
        self,
        image: Image.Image,
        file_path: PathLike,
        target_size_kb: Optional[float] = None,
    ) -> str:
        """
        Re-encode image until its file is at most target_size_kb

        Args:
            image: Decoded image
            file_path: Current file of the image on disk
            target_size_kb: Size budget in kilobytes (default MAX_IMAGE_SIZE_KB)

        Returns:
            str: Path of the last file written, or file_path if it already fits

        Raises:
            ImageProcessingError: On any I/O or encoding failure
        """
        if target_size_kb is None:
            target_size_kb = settings.MAX_IMAGE_SIZE_KB

        try:
            size_kb = file_size_kb(file_path)
            quality = self.start_quality
            new_file_path = str(file_path)
            encodable = None

            while size_kb > target_size_kb and quality > 0:
                if encodable is None:
                    encodable = self._as_jpeg_compatible(image)
                new_file_path = jpeg_path_for(file_path)
                encodable.save(new_file_path, format="JPEG", quality=quality)
                size_kb = file_size_kb(new_file_path)
                logger.debug(f"Re-encoded {new_file_path} at quality {quality}: {size_kb:.1f} KB")
                quality -= self.step

            if size_kb > target_size_kb:
                logger.bind(size_kb=size_kb, target_kb=target_size_kb).warning(
                    f"Image still above budget after reduction: {new_file_path}"
                )
            return new_file_path

        except Exception as e:
            logger.error(f"Image quality reduction failed for {file_path}: {e}")
            raise ImageProcessingError() from e

    async def reduce_async(
        self,
        image: Image.Image,
        file_path: PathLike,
        target_size_kb: Optional[float] = None,
    ) -> str:
        """Run reduce in a worker thread"""
        return await asyncio.to_thread(self.reduce, image, file_path, target_size_kb)


image_quality_reducer = ImageQualityReducer()
