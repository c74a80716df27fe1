"""
Domain models/entities
"""
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np


class Gender(str, Enum):
    """Gender label reported by the detector"""
    MALE = "male"
    FEMALE = "female"
    UNKNOWN = "unknown"


@dataclass
class PixelBuffer:
    """
    Decoded image owned by a single request.

    Pixels are a (height, width, 3) uint8 array in BGR order, the layout
    OpenCV and InsightFace expect, or (height, width, 4) BGRA when the
    source carries transparency. The buffer doubles as the output canvas:
    `crop` reads a region, `paste` overwrites one in place, both across
    every channel.
    """
    pixels: np.ndarray

    @property
    def has_alpha(self) -> bool:
        return self.pixels.ndim == 3 and self.pixels.shape[2] == 4

    def bgr(self) -> np.ndarray:
        """Colour channels only, for consumers that expect three channels"""
        if self.has_alpha:
            return np.ascontiguousarray(self.pixels[:, :, :3])
        return self.pixels

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channels(self) -> int:
        return 1 if self.pixels.ndim == 2 else int(self.pixels.shape[2])

    def is_valid(self) -> bool:
        return self.pixels.ndim >= 2 and self.width > 0 and self.height > 0

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(pixels=self.pixels.copy())

    def crop(self, box: "BoundingBox") -> np.ndarray:
        """Copy out the pixels under an integer, already clipped box"""
        top, left = int(box.top), int(box.left)
        bottom, right = top + int(box.height), left + int(box.width)
        return self.pixels[top:bottom, left:right].copy()

    def paste(self, region: np.ndarray, left: int, top: int) -> None:
        """Overwrite the pixels at (left, top) with `region`"""
        h, w = region.shape[:2]
        if left < 0 or top < 0 or left + w > self.width or top + h > self.height:
            raise ValueError(
                f"Region {w}x{h} at ({left}, {top}) exceeds canvas {self.width}x{self.height}"
            )
        self.pixels[top:top + h, left:left + w] = region


@dataclass(frozen=True)
class BoundingBox:
    """Face bounding box in pixel coordinates"""
    left: float
    top: float
    width: float
    height: float

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def truncated(self) -> "BoundingBox":
        """Floor every coordinate, never rounding"""
        return BoundingBox(
            left=math.floor(self.left),
            top=math.floor(self.top),
            width=math.floor(self.width),
            height=math.floor(self.height),
        )

    def clipped(self, image_width: int, image_height: int) -> "BoundingBox":
        """Intersect with [0, image_width) x [0, image_height)"""
        left = max(0, self.left)
        top = max(0, self.top)
        right = min(image_width, self.left + self.width)
        bottom = min(image_height, self.top + self.height)
        return BoundingBox(
            left=left,
            top=top,
            width=max(0, right - left),
            height=max(0, bottom - top),
        )


@dataclass(frozen=True)
class DetectionOptions:
    """Optional enrichment stages computed alongside face detection"""
    landmarks: bool = True
    descriptors: bool = True
    age_gender: bool = True

    def modules(self) -> List[str]:
        """InsightFace model zoo task names needed for these options"""
        names = ["detection"]
        if self.landmarks:
            names.append("landmark_2d_106")
        if self.descriptors:
            names.append("recognition")
        if self.age_gender:
            names.append("genderage")
        return names


@dataclass(frozen=True)
class DetectedFace:
    """Detected face with its derived attributes"""
    box: BoundingBox
    age: float = 0.0
    gender: Gender = Gender.UNKNOWN
    gender_probability: float = 0.0
    descriptor: Optional[List[float]] = None  # 512-dimensional embedding
    confidence: float = 1.0
    landmarks: Optional[List[List[float]]] = None

    def __post_init__(self):
        if self.age < 0:
            raise ValueError(f"age must be >= 0, got {self.age}")
        if not 0.0 <= self.gender_probability <= 1.0:
            raise ValueError(f"gender_probability must be in [0, 1], got {self.gender_probability}")


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for positive values (2.5 -> 3)"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


@dataclass(frozen=True)
class FaceMetadata:
    """Per-face entry of a processing result"""
    age: int
    gender: Gender
    age_confidence: float
    gender_confidence: int

    @classmethod
    def from_face(cls, face: DetectedFace) -> "FaceMetadata":
        return cls(
            age=int(round_half_up(face.age)),
            gender=face.gender,
            age_confidence=round_half_up(face.age, 2),
            gender_confidence=int(round_half_up(face.gender_probability * 100)),
        )


@dataclass
class ProcessingResult:
    """Response payload, built one face at a time in detection order"""
    ages: List[int] = field(default_factory=list)
    genders: List[Gender] = field(default_factory=list)
    age_confidences: List[float] = field(default_factory=list)
    gender_confidences: List[int] = field(default_factory=list)
    output_image_location: Optional[str] = None

    def add(self, metadata: FaceMetadata) -> None:
        self.ages.append(metadata.age)
        self.genders.append(metadata.gender)
        self.age_confidences.append(metadata.age_confidence)
        self.gender_confidences.append(metadata.gender_confidence)

    def __len__(self) -> int:
        return len(self.ages)

    @property
    def is_finalized(self) -> bool:
        return bool(self.output_image_location)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "age": list(self.ages),
            "gender": [g.value for g in self.genders],
            "ageProbabilities": list(self.age_confidences),
            "genderProbabilities": list(self.gender_confidences),
            "imageUrl": self.output_image_location or "",
        }


@dataclass
class HealthStatus:
    """Service health status"""
    status: str
    model: str
    version: str

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "model": self.model,
            "version": self.version,
        }
