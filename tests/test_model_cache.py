"""Tests for the one-time model initialization barrier."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from domain.errors import DetectionError
from infrastructure.model_cache import ModelCache


def test_concurrent_callers_share_a_single_load() -> None:
    calls = []
    start = threading.Event()

    def loader():
        calls.append(1)
        time.sleep(0.05)
        return object()

    cache = ModelCache(loader)

    def fetch():
        start.wait()
        return cache.get()

    with ThreadPoolExecutor(max_workers=8) as pool:
        futures = [pool.submit(fetch) for _ in range(8)]
        start.set()
        models = [f.result(timeout=5) for f in futures]

    assert len(calls) == 1
    assert cache.load_count == 1
    assert all(m is models[0] for m in models)
    assert cache.is_loaded()


def test_failed_load_is_retried_on_next_call() -> None:
    attempts = []

    def loader():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("model files missing")
        return "model"

    cache = ModelCache(loader, name="test model")

    with pytest.raises(DetectionError, match="model files missing"):
        cache.get()
    assert not cache.is_loaded()

    assert cache.get() == "model"
    assert cache.get() == "model"
    assert len(attempts) == 2
