"""
Process-wide model cache with a one-time initialization barrier
"""
import logging
import threading
import time
from typing import Callable, Generic, Optional, TypeVar

from domain.errors import DetectionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ModelCache(Generic[T]):
    """
    Loads a heavyweight model at most once per process.

    Concurrent callers arriving before the first load completes block on the
    same lock and receive the same instance. A failed load is not cached, so
    a later caller retries it. The loaded value must be treated as read-only.
    """

    def __init__(self, loader: Callable[[], T], name: str = "model"):
        self._loader = loader
        self._name = name
        self._lock = threading.Lock()
        self._value: Optional[T] = None
        self._loaded = threading.Event()
        self.load_count = 0

    def get(self) -> T:
        """Return the loaded model, loading it on first use"""
        if self._loaded.is_set():
            return self._value

        with self._lock:
            if not self._loaded.is_set():
                self._value = self._load()
                self._loaded.set()

        return self._value

    def _load(self) -> T:
        logger.info(f"Loading {self._name}...")
        start_time = time.time()
        try:
            value = self._loader()
        except DetectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to load {self._name}: {e}")
            raise DetectionError(f"Failed to load {self._name}: {e}") from e

        self.load_count += 1
        logger.info(f"{self._name} loaded in {int((time.time() - start_time) * 1000)} ms")
        return value

    def is_loaded(self) -> bool:
        return self._loaded.is_set()
