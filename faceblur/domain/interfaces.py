"""
Domain interfaces (ports)
"""
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from .models import DetectedFace, DetectionOptions, HealthStatus, PixelBuffer


class FaceDetectorInterface(ABC):
    """Interface for face detection service"""

    @abstractmethod
    def detect_faces(
        self,
        image: PixelBuffer,
        options: Optional[DetectionOptions] = None,
    ) -> List[DetectedFace]:
        """Detect faces in an image, raising DetectionError on failure"""
        pass

    @abstractmethod
    def get_health(self) -> HealthStatus:
        """Get service health status"""
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Check if the detector is ready"""
        pass


class ImageLoaderInterface(ABC):
    """Interface for image decoding"""

    @abstractmethod
    def load_from_bytes(self, data: bytes) -> PixelBuffer:
        """Decode image bytes, raising DecodeError on failure"""
        pass


class OutputStoreInterface(ABC):
    """Interface for persisting result images"""

    @abstractmethod
    def save(
        self,
        canvas: PixelBuffer,
        name: str,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> str:
        """Write the canvas and return its public location"""
        pass

    @abstractmethod
    def resolve(self, filename: str) -> str:
        """Return the filesystem path of a stored result"""
        pass


class LabelClassifierInterface(ABC):
    """Interface for the external image classification service"""

    @abstractmethod
    def classify(self, data: bytes) -> str:
        """Return a single descriptive label for the image"""
        pass
