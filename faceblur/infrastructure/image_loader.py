"""
Image loader implementation
"""
import logging
from io import BytesIO

import numpy as np
import cv2
from PIL import Image, UnidentifiedImageError

from domain.errors import DecodeError
from domain.interfaces import ImageLoaderInterface
from domain.models import PixelBuffer
from config import get_config

logger = logging.getLogger(__name__)


class ImageLoader(ImageLoaderInterface):
    """Decodes uploaded image bytes into a BGR (or BGRA) pixel buffer"""

    def __init__(self, max_image_size: int = None):
        self.config = get_config()
        self.max_image_size = max_image_size or self.config.MAX_IMAGE_SIZE

    def load_from_bytes(self, data: bytes) -> PixelBuffer:
        """Load image from bytes"""
        if not data:
            raise DecodeError("Empty image buffer")

        if len(data) > self.max_image_size:
            logger.error(f"Image too large: {len(data)} bytes")
            raise DecodeError(f"Image too large: {len(data)} bytes (max {self.max_image_size})")

        buffer = PixelBuffer(pixels=self._decode_image(data))

        if not buffer.is_valid():
            raise DecodeError(
                f"Image dimensions are invalid: {buffer.width}x{buffer.height}"
            )

        return buffer

    def _decode_image(self, data: bytes) -> np.ndarray:
        """Decode image bytes to numpy array"""
        try:
            # Try PIL first (better format support)
            pil_image = Image.open(BytesIO(data))
            pil_image.load()

            # Keep transparency, otherwise normalize to RGB
            if self._has_alpha(pil_image):
                image = np.array(pil_image.convert('RGBA'))
                return cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)

            if pil_image.mode != 'RGB':
                pil_image = pil_image.convert('RGB')

            # Convert to numpy array (RGB format)
            image = np.array(pil_image)

            # Convert RGB to BGR for OpenCV/InsightFace
            return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)

        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"PIL failed, trying OpenCV: {e}")

        # Fallback to OpenCV
        nparr = np.frombuffer(data, np.uint8)
        image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)

        if image is None:
            logger.error("OpenCV failed to decode image")
            raise DecodeError("Unsupported or corrupt image data")

        return image

    @staticmethod
    def _has_alpha(pil_image: Image.Image) -> bool:
        return pil_image.mode in ('RGBA', 'LA', 'PA') or 'transparency' in pil_image.info
