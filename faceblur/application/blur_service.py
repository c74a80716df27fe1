"""
Face blur service - application layer
"""
import logging
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Callable, Optional

from domain.errors import DecodeError, ExternalServiceError, ProcessingTimeout
from domain.interfaces import (
    FaceDetectorInterface, ImageLoaderInterface, LabelClassifierInterface, OutputStoreInterface,
)
from domain.models import HealthStatus, ProcessingResult
from application.compositor import RegionBlurCompositor
from application.result_assembler import ResultAssembler
from infrastructure.output_store import make_output_name
from config import get_config

logger = logging.getLogger(__name__)


class FaceBlurService:
    """
    Runs the decode -> detect -> blur -> store pipeline for one upload.

    Every request owns its buffers; the only shared state is the detector's
    read-only model and the output directory, where names are unique per
    request.
    """

    def __init__(
        self,
        detector: FaceDetectorInterface,
        image_loader: ImageLoaderInterface,
        output_store: OutputStoreInterface,
        classifier: Optional[LabelClassifierInterface] = None,
        blur_radius: Optional[float] = None,
        timeout: Optional[float] = None,
        queue_timeout: Optional[float] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.config = get_config()
        self.detector = detector
        self.image_loader = image_loader
        self.output_store = output_store
        self.classifier = classifier
        self.classifier_required = self.config.CLASSIFIER_REQUIRED
        self.compositor = RegionBlurCompositor(blur_radius or self.config.BLUR_RADIUS)
        self.assembler = ResultAssembler()
        self.timeout = timeout or self.config.PROCESSING_TIMEOUT
        self.queue_timeout = queue_timeout or self.config.QUEUE_TIMEOUT
        self.executor = executor or ThreadPoolExecutor(
            max_workers=self.config.WORKER_THREADS,
            thread_name_prefix="face-blur",
        )

    def blur_faces(self, image_data: bytes, request_id: Optional[str] = None) -> ProcessingResult:
        """
        Process an upload within the configured time bound.

        The processing timeout runs from the moment a worker picks the request
        up; time spent queued behind other requests is bounded separately by
        the queue timeout.
        """
        if not image_data:
            raise DecodeError("No image data")

        request_id = request_id or uuid.uuid4().hex
        cancel = threading.Event()
        started = threading.Event()

        def run() -> ProcessingResult:
            started.set()
            return self.process(image_data, request_id, cancel.is_set)

        future = self.executor.submit(run)

        if not started.wait(timeout=self.queue_timeout) and future.cancel():
            logger.error(f"Request {request_id} waited {self.queue_timeout}s for a worker, dropping")
            raise ProcessingTimeout(f"Server busy: no worker free within {self.queue_timeout} seconds")

        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            cancel.set()
            future.cancel()
            logger.error(f"Request {request_id} exceeded {self.timeout}s, abandoning")
            raise ProcessingTimeout(f"Processing exceeded {self.timeout} seconds") from e

    def process(
        self,
        image_data: bytes,
        request_id: str,
        cancelled: Optional[Callable[[], bool]] = None,
    ) -> ProcessingResult:
        """Run the whole pipeline synchronously in the calling thread"""
        start_time = time.time()

        image = self.image_loader.load_from_bytes(image_data)
        label = self._classify(image_data)

        faces = self.detector.detect_faces(image)
        result = self.assembler.collect(faces)

        canvas = self.compositor.composite(image, faces, cancelled=cancelled)

        location = self.output_store.save(
            canvas,
            make_output_name(request_id, label),
            cancelled=cancelled,
        )

        logger.info(
            f"Request {request_id}: {len(faces)} face(s), "
            f"{int((time.time() - start_time) * 1000)} ms -> {location}"
        )
        return self.assembler.finalize(result, location)

    def _classify(self, image_data: bytes) -> Optional[str]:
        """Label for the output name; failures degrade to no label unless required"""
        if self.classifier is None:
            return None
        try:
            return self.classifier.classify(image_data)
        except ExternalServiceError as e:
            if self.classifier_required:
                raise
            logger.warning(f"Classification unavailable, using default name: {e}")
            return None

    def resolve_output(self, filename: str) -> str:
        """Filesystem path of a stored result"""
        return self.output_store.resolve(filename)

    def get_health(self) -> HealthStatus:
        """Get service health status"""
        return self.detector.get_health()

    def is_ready(self) -> bool:
        """Check if service is ready"""
        return self.detector.is_ready()

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False, cancel_futures=True)
