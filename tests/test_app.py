"""Tests for the application factory."""

import pytest

pytest.importorskip("insightface")

from app import create_app  # noqa: E402
from config import get_config  # noqa: E402

from conftest import FakeDetector  # noqa: E402


def test_create_app_registers_routes(make_service) -> None:
    app = create_app(service=make_service(FakeDetector([])))

    rules = {rule.rule for rule in app.url_map.iter_rules()}

    assert {"/blur-face", "/uploads/<path:filename>", "/health", "/ready"} <= rules
    assert app.config["TESTING"] is True


def test_body_limit_leaves_room_for_form_envelope(make_service) -> None:
    app = create_app(service=make_service(FakeDetector([])))

    config = get_config()
    assert app.config["MAX_CONTENT_LENGTH"] == config.MAX_IMAGE_SIZE + config.MAX_FORM_OVERHEAD
    assert config.MAX_FORM_OVERHEAD > 0
