"""
Region blur compositor
"""
import logging
from typing import Callable, Optional, Sequence

import cv2
import numpy as np

from domain.errors import ProcessingTimeout, RegionError
from domain.models import BoundingBox, DetectedFace, PixelBuffer

logger = logging.getLogger(__name__)


class RegionBlurCompositor:
    """
    Replaces every detected face region with a blurred copy of itself.

    Regions are always cut from the untouched source image, so overlapping
    boxes never blur already-blurred pixels. Pixels outside every box are
    left as they are in the source.
    """

    def __init__(self, blur_radius: float):
        if blur_radius <= 0:
            raise ValueError(f"blur_radius must be positive, got {blur_radius}")
        self.blur_radius = blur_radius

    def composite(
        self,
        source: PixelBuffer,
        faces: Sequence[DetectedFace],
        canvas: Optional[PixelBuffer] = None,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> PixelBuffer:
        """Blur each face in detection order onto `canvas` (a copy of source by default)"""
        canvas = canvas if canvas is not None else source.copy()
        if (canvas.width, canvas.height) != (source.width, source.height):
            raise ValueError("Canvas and source dimensions differ")

        for index, face in enumerate(faces):
            if cancelled is not None and cancelled():
                raise ProcessingTimeout("Request cancelled during compositing")

            try:
                box = self.clip_box(face.box, source.width, source.height)
                if box is None:
                    logger.debug(f"Face {index} lies outside the image, not blurred")
                    continue
                blurred = self.blur_region(source.crop(box))
            except RegionError as e:
                logger.warning(f"Skipping face {index}: {e}")
                continue

            canvas.paste(blurred, int(box.left), int(box.top))

        return canvas

    @staticmethod
    def clip_box(box: BoundingBox, image_width: int, image_height: int) -> Optional[BoundingBox]:
        """Floor-truncate and clip a box; None when nothing is left"""
        try:
            clipped = box.truncated().clipped(image_width, image_height)
        except (ValueError, OverflowError, TypeError) as e:
            raise RegionError(f"Malformed bounding box {box}: {e}") from e

        if clipped.is_empty():
            return None
        return clipped

    def blur_region(self, region: np.ndarray) -> np.ndarray:
        """Gaussian blur with the configured radius used as sigma"""
        if region.size == 0:
            raise RegionError("Empty face region")
        try:
            return cv2.GaussianBlur(region, (0, 0), sigmaX=self.blur_radius)
        except cv2.error as e:
            raise RegionError(f"Blur failed: {e}") from e
