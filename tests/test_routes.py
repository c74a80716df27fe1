"""Tests for the HTTP blueprint."""

from __future__ import annotations

import io

import pytest
from flask import Flask

from api.routes import api, init_routes

from infrastructure.image_loader import ImageLoader

from conftest import FakeDetector


def make_client(service, max_content_length=None):
    app = Flask(__name__)
    app.config["TESTING"] = True
    app.config["MAX_CONTENT_LENGTH"] = max_content_length
    init_routes(service)
    app.register_blueprint(api)
    return app.test_client()


def upload(data: bytes, filename: str = "photo.png") -> dict:
    return {"image": (io.BytesIO(data), filename)}


@pytest.fixture
def detector(scenario_face) -> FakeDetector:
    return FakeDetector([scenario_face])


@pytest.fixture
def client(make_service, detector):
    return make_client(make_service(detector))


def test_blur_face_returns_metadata_and_url(client, noise_png) -> None:
    response = client.post("/blur-face", data=upload(noise_png), content_type="multipart/form-data")

    assert response.status_code == 200
    body = response.get_json()
    assert body["age"] == [25]
    assert body["gender"] == ["male"]
    assert body["ageProbabilities"] == pytest.approx([25.4])
    assert body["genderProbabilities"] == [87]

    image = client.get(body["imageUrl"])
    assert image.status_code == 200
    assert image.mimetype == "image/png"
    assert image.data.startswith(b"\x89PNG")


def test_missing_file_is_bad_request(client, detector) -> None:
    response = client.post("/blur-face", data={}, content_type="multipart/form-data")

    assert response.status_code == 400
    assert response.get_json()["success"] is False
    assert detector.calls == 0


def test_empty_file_is_bad_request(client, detector) -> None:
    response = client.post("/blur-face", data=upload(b""), content_type="multipart/form-data")

    assert response.status_code == 400
    assert detector.calls == 0


def test_corrupt_image_is_bad_request(client) -> None:
    response = client.post("/blur-face", data=upload(b"garbage"), content_type="multipart/form-data")

    assert response.status_code == 400


def test_detection_failure_is_server_error(make_service, unavailable_detector, noise_png) -> None:
    client = make_client(make_service(unavailable_detector))

    response = client.post("/blur-face", data=upload(noise_png), content_type="multipart/form-data")

    assert response.status_code == 500
    assert "model unavailable" in response.get_json()["error"]


def test_missing_stored_image_is_not_found(client) -> None:
    assert client.get("/uploads/result_nothing.png").status_code == 404
    assert client.get("/uploads/../conftest.py").status_code == 404


def test_health_and_ready(client) -> None:
    assert client.get("/health").get_json() == {"status": "ok", "model": "fake", "version": "0"}
    assert client.get("/ready").get_json() == {"ready": True}


def test_oversized_body_is_json_413(make_service, detector, noise_png) -> None:
    client = make_client(make_service(detector), max_content_length=1024)

    response = client.post("/blur-face", data=upload(noise_png), content_type="multipart/form-data")

    assert response.status_code == 413
    assert response.mimetype == "application/json"
    assert response.get_json()["success"] is False
    assert detector.calls == 0


def test_image_at_size_limit_fits_inside_form_envelope(make_service, detector, noise_png) -> None:
    service = make_service(detector, image_loader=ImageLoader(max_image_size=len(noise_png)))
    client = make_client(service, max_content_length=len(noise_png) + 64 * 1024)

    response = client.post("/blur-face", data=upload(noise_png), content_type="multipart/form-data")

    assert response.status_code == 200
    assert response.get_json()["age"] == [25]


def test_image_over_size_limit_is_bad_request(make_service, detector, noise_png) -> None:
    service = make_service(detector, image_loader=ImageLoader(max_image_size=len(noise_png) - 1))
    client = make_client(service, max_content_length=len(noise_png) + 64 * 1024)

    response = client.post("/blur-face", data=upload(noise_png), content_type="multipart/form-data")

    assert response.status_code == 400
    assert "too large" in response.get_json()["error"]
    assert detector.calls == 0
