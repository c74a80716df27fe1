"""Shared fixtures: synthetic images and a scripted face detector."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
import pytest
from PIL import Image

from application.blur_service import FaceBlurService
from domain.errors import DetectionError
from domain.interfaces import FaceDetectorInterface
from domain.models import (
    BoundingBox, DetectedFace, DetectionOptions, Gender, HealthStatus, PixelBuffer,
)
from infrastructure.image_loader import ImageLoader
from infrastructure.output_store import LocalOutputStore


class FakeDetector(FaceDetectorInterface):
    """Returns scripted detections instead of running a model."""

    def __init__(self, faces=None, error: Optional[Exception] = None,
                 factory: Optional[Callable[[PixelBuffer], List[DetectedFace]]] = None):
        self.faces = list(faces or [])
        self.error = error
        self.factory = factory
        self.calls = 0

    def detect_faces(self, image: PixelBuffer, options: Optional[DetectionOptions] = None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.factory is not None:
            return self.factory(image)
        return list(self.faces)

    def get_health(self) -> HealthStatus:
        return HealthStatus(status="ok", model="fake", version="0")

    def is_ready(self) -> bool:
        return True


def make_face(left, top, width, height, age=30.0, gender=Gender.FEMALE, probability=0.9) -> DetectedFace:
    return DetectedFace(
        box=BoundingBox(left=left, top=top, width=width, height=height),
        age=age,
        gender=gender,
        gender_probability=probability,
    )


def encode_png(pixels_bgr: np.ndarray) -> bytes:
    buffer = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(pixels_bgr[:, :, ::-1])).save(buffer, format="PNG")
    return buffer.getvalue()


def read_png(path: Path) -> np.ndarray:
    """Decode a stored PNG back to BGR pixels."""
    with Image.open(path) as img:
        return np.array(img.convert("RGB"))[:, :, ::-1]


@pytest.fixture(autouse=True)
def _testing_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FLASK_ENV", "testing")


@pytest.fixture
def noise_pixels() -> np.ndarray:
    rng = np.random.default_rng(1234)
    return rng.integers(0, 256, size=(100, 100, 3), dtype=np.uint8)


@pytest.fixture
def noise_png(noise_pixels: np.ndarray) -> bytes:
    return encode_png(noise_pixels)


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def make_service(output_dir: Path):
    services = []

    def _make(detector: FaceDetectorInterface, **kwargs) -> FaceBlurService:
        service = FaceBlurService(
            detector=detector,
            image_loader=kwargs.pop("image_loader", None) or ImageLoader(),
            output_store=LocalOutputStore(output_dir=str(output_dir), url_prefix="/uploads"),
            **kwargs,
        )
        services.append(service)
        return service

    yield _make

    for service in services:
        service.executor.shutdown(wait=True)


@pytest.fixture
def scenario_face() -> DetectedFace:
    return make_face(10, 10, 20, 20, age=25.4, gender=Gender.MALE, probability=0.87)


@pytest.fixture
def unavailable_detector() -> FakeDetector:
    return FakeDetector(error=DetectionError("model unavailable"))
