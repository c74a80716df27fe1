"""
InsightFace implementation of face detector
"""
import time
import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, List, Optional, Tuple

import cv2
import numpy as np

import insightface
from insightface.app import FaceAnalysis
from insightface.utils import face_align

from domain.errors import DetectionError
from domain.interfaces import FaceDetectorInterface
from domain.models import (
    BoundingBox, DetectedFace, DetectionOptions, Gender, HealthStatus, PixelBuffer,
)
from infrastructure.model_cache import ModelCache
from config import get_config

logger = logging.getLogger(__name__)

# genderage network: index 1 of the first two outputs is "male"
_MALE_INDEX = 1


@dataclass
class FaceModels:
    """Loaded InsightFace models shared read-only across requests"""
    analysis: FaceAnalysis
    attribute: Optional[Any] = None  # genderage model, run separately to keep its logits

    @property
    def modules(self) -> List[str]:
        names = list(self.analysis.models.keys())
        if self.attribute is not None:
            names.append("genderage")
        return names


def load_face_models(options: DetectionOptions, config) -> FaceModels:
    """Initialize the InsightFace model pack"""
    logger.info(f"Initializing InsightFace model: {config.MODEL_NAME} ({', '.join(options.modules())})")

    # Determine providers based on GPU setting
    if config.USE_GPU:
        providers = [
            ('CUDAExecutionProvider', {'device_id': config.GPU_ID}),
            'CPUExecutionProvider'
        ]
    else:
        providers = ['CPUExecutionProvider']

    analysis = FaceAnalysis(
        name=config.MODEL_NAME,
        providers=providers,
        allowed_modules=options.modules(),
    )

    # Prepare with detection size
    analysis.prepare(
        ctx_id=config.GPU_ID if config.USE_GPU else -1,
        det_size=(config.DET_SIZE, config.DET_SIZE),
    )

    # FaceAnalysis.get() discards the gender scores, so the detector runs
    # the attribute model itself.
    attribute = analysis.models.pop("genderage", None)

    logger.info("InsightFace model initialized successfully")
    return FaceModels(analysis=analysis, attribute=attribute)


class InsightFaceDetector(FaceDetectorInterface):
    """Face detector using InsightFace library"""

    def __init__(
        self,
        model_cache: Optional[ModelCache] = None,
        options: Optional[DetectionOptions] = None,
    ):
        self.config = get_config()
        self.model_name = self.config.MODEL_NAME
        self.options = options or DetectionOptions(
            landmarks=self.config.WITH_LANDMARKS,
            descriptors=self.config.WITH_DESCRIPTORS,
            age_gender=self.config.WITH_AGE_GENDER,
        )
        self.model_cache = model_cache or ModelCache(
            partial(load_face_models, self.options, self.config),
            name=f"InsightFace {self.model_name}",
        )

    def warm_up(self) -> None:
        """Load the model now instead of on the first request"""
        self.model_cache.get()

    def detect_faces(
        self,
        image: PixelBuffer,
        options: Optional[DetectionOptions] = None,
    ) -> List[DetectedFace]:
        """Detect faces and their attributes; an alpha channel is ignored"""
        options = options or self.options
        pixels = self._compatible_pixels(image)

        models: FaceModels = self.model_cache.get()
        missing = [name for name in options.modules() if name not in models.modules]
        if missing:
            raise DetectionError(f"Detection stages not loaded: {', '.join(missing)}")

        start_time = time.time()

        try:
            faces = models.analysis.get(pixels, max_num=self.config.MAX_FACES)
        except Exception as e:
            logger.error(f"Face detection failed: {e}")
            raise DetectionError(f"Face detection failed: {e}") from e

        detected_faces: List[DetectedFace] = []

        for face in faces:
            # Get confidence score
            confidence = float(face.det_score) if face.det_score is not None else 0.0

            # Filter by minimum confidence
            if confidence < self.config.MIN_CONFIDENCE:
                continue

            # Get bounding box (x1, y1, x2, y2)
            x1, y1, x2, y2 = face.bbox.astype(float)

            age, gender, gender_probability = 0.0, Gender.UNKNOWN, 0.0
            if options.age_gender:
                age, gender, gender_probability = self._predict_age_gender(
                    models.attribute, pixels, face.bbox,
                )

            descriptor = None
            if options.descriptors and face.embedding is not None:
                descriptor = face.embedding.tolist()

            landmarks = None
            if options.landmarks and face.landmark_2d_106 is not None:
                landmarks = face.landmark_2d_106.tolist()

            detected_faces.append(DetectedFace(
                box=BoundingBox(
                    left=x1,
                    top=y1,
                    width=x2 - x1,
                    height=y2 - y1,
                ),
                age=age,
                gender=gender,
                gender_probability=gender_probability,
                descriptor=descriptor,
                confidence=confidence,
                landmarks=landmarks,
            ))

        processing_time = int((time.time() - start_time) * 1000)
        logger.info(f"Detected {len(detected_faces)} face(s) in {processing_time} ms")

        return detected_faces

    @staticmethod
    def _compatible_pixels(image: PixelBuffer) -> np.ndarray:
        """The 3-channel BGR view the models run on"""
        if not image.is_valid():
            raise DetectionError("Image buffer is empty")
        if image.pixels.ndim != 3 or image.channels not in (3, 4):
            raise DetectionError(f"Unsupported channel count: {image.channels}")
        if image.pixels.dtype != np.uint8:
            raise DetectionError(f"Unsupported pixel type: {image.pixels.dtype}")
        return image.bgr()

    @staticmethod
    def _predict_age_gender(attribute, pixels: np.ndarray, bbox) -> Tuple[float, Gender, float]:
        """Run the genderage model on an aligned face crop"""
        width, height = bbox[2] - bbox[0], bbox[3] - bbox[1]
        center = (bbox[2] + bbox[0]) / 2, (bbox[3] + bbox[1]) / 2
        input_size = attribute.input_size[0]
        scale = input_size / (max(width, height) * 1.5)

        aligned, _ = face_align.transform(pixels, center, input_size, scale, 0)
        blob = cv2.dnn.blobFromImage(
            aligned,
            1.0 / attribute.input_std,
            (input_size, input_size),
            (attribute.input_mean, attribute.input_mean, attribute.input_mean),
            swapRB=True,
        )

        try:
            pred = attribute.session.run(attribute.output_names, {attribute.input_name: blob})[0][0]
        except Exception as e:
            raise DetectionError(f"Age/gender estimation failed: {e}") from e

        return _decode_age_gender(pred)

    def get_health(self) -> HealthStatus:
        """Get health status"""
        return HealthStatus(
            status="ok" if self.is_ready() else "loading",
            model=self.model_name,
            version=insightface.__version__,
        )

    def is_ready(self) -> bool:
        """Check if detector is ready"""
        return self.model_cache.is_loaded()


def _decode_age_gender(pred: np.ndarray) -> Tuple[float, Gender, float]:
    """Map raw genderage output [female, male, age/100] to attributes"""
    logits = np.asarray(pred[:2], dtype=np.float64)
    exp = np.exp(logits - logits.max())
    probabilities = exp / exp.sum()

    index = int(np.argmax(probabilities))
    gender = Gender.MALE if index == _MALE_INDEX else Gender.FEMALE
    age = max(0.0, float(pred[2]) * 100)

    return age, gender, float(probabilities[index])
