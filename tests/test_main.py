"""Tests for AI Image Detector API endpoints and the HTML page."""

import asyncio
from unittest.mock import patch

from fastapi.testclient import TestClient

from src.ai_detector.config import settings
from src.ai_detector.dependencies import get_model_handle, get_session_store
from src.ai_detector.main import app, load_model
from src.ai_detector.services.controller import SessionStore
from src.ai_detector.services.model_service import ModelHandle, ModelState
from tests.conftest import StubPredictor, image_bytes


def select(client: TestClient, name: str, data: bytes, content_type: str, url: str = "/api/select"):
    return client.post(url, files={"file": (name, data, content_type)})


# ──────────────────────────────────────────────
# Health / model status
# ──────────────────────────────────────────────
def test_health_check(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_model_status(client: TestClient) -> None:
    response = client.get("/model")
    assert response.status_code == 200
    assert response.json() == {"state": "loaded", "source": "<in-memory>", "error": None}


# ──────────────────────────────────────────────
# Session cookie
# ──────────────────────────────────────────────
def test_state_sets_session_cookie(client: TestClient) -> None:
    response = client.get("/api/state")
    assert response.status_code == 200
    assert settings.session_cookie_name in response.cookies
    assert response.json()["state"] == "ready"
    assert response.json()["detect_enabled"] is True


def test_sessions_are_isolated(client: TestClient, png_bytes: bytes) -> None:
    assert select(client, "photo.png", png_bytes, "image/png").status_code == 200

    other = TestClient(app)
    assert other.get("/api/state").json()["preview_visible"] is False
    assert client.get("/api/state").json()["preview_visible"] is True


# ──────────────────────────────────────────────
# POST /api/select
# ──────────────────────────────────────────────
def test_select_png(client: TestClient, png_bytes: bytes) -> None:
    response = select(client, "photo.png", png_bytes, "image/png")
    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "file_pending"
    assert data["filename"] == "photo.png"
    assert data["preview_visible"] is True


def test_select_gif_rejected(client: TestClient) -> None:
    response = select(client, "document.gif", image_bytes("GIF", (16, 16)), "image/gif")
    assert response.status_code == 415
    assert response.json()["detail"] == "Error: Only JPG/PNG images are supported"

    state = client.get("/api/state").json()
    assert state["status"] == "Error: Only JPG/PNG images are supported"
    assert state["preview_visible"] is False
    assert state["result"] is None


def test_select_too_large(client: TestClient) -> None:
    with patch.object(settings, "max_upload_size", 10):
        response = select(client, "photo.png", image_bytes("PNG", (64, 64)), "image/png")
    assert response.status_code == 413


def test_select_no_file(client: TestClient) -> None:
    response = client.post("/api/select")
    assert response.status_code == 422  # Validation error


# ──────────────────────────────────────────────
# POST /api/detect
# ──────────────────────────────────────────────
def test_detect_real_photo(client: TestClient, png_bytes: bytes, predictor: StubPredictor) -> None:
    select(client, "photo.png", png_bytes, "image/png")

    response = client.post("/api/detect")

    assert response.status_code == 200
    data = response.json()
    assert data["state"] == "result_shown"
    assert data["result"] == {"label": "Real", "confidence": 90.0}
    assert data["result_class"] == "real"
    assert data["confidence_text"] == "Confidence: 90%"
    assert data["progress"] == 100
    assert data["status"] == "Detection complete!"
    assert predictor.calls == [(1, 224, 224, 3)]


def test_detect_ai_render(client: TestClient, jpeg_bytes: bytes, predictor: StubPredictor) -> None:
    predictor.output[:] = [[0.73, 0.27]]
    select(client, "render.jpg", jpeg_bytes, "image/jpeg")

    data = client.post("/api/detect").json()

    assert data["result"]["label"] == "AI-generated"
    assert data["result"]["confidence"] == 73.0
    assert data["result_class"] == "ai-generated"


def test_detect_without_file(client: TestClient) -> None:
    response = client.post("/api/detect")
    assert response.status_code == 400


def test_detect_undecodable_file(client: TestClient) -> None:
    select(client, "fake.jpg", b"definitely not a jpeg", "image/jpeg")

    response = client.post("/api/detect")

    assert response.status_code == 422
    assert response.json()["detail"].startswith("Detection error: Could not decode fake.jpg")
    state = client.get("/api/state").json()
    assert state["state"] == "error"
    assert state["detect_enabled"] is True
    assert state["result"] is None


def test_detect_model_not_loaded(png_bytes: bytes) -> None:
    handle = ModelHandle()
    handle.state = ModelState.FAILED
    handle.error = "[Errno -2] Name or service not known"
    store = SessionStore(handle)
    app.dependency_overrides[get_model_handle] = lambda: handle
    app.dependency_overrides[get_session_store] = lambda: store
    try:
        client = TestClient(app)
        state = client.get("/api/state").json()
        assert state["status"] == "Error loading model: [Errno -2] Name or service not known"
        assert state["detect_enabled"] is False

        select(client, "photo.png", png_bytes, "image/png")
        response = client.post("/api/detect")
        assert response.status_code == 503
        assert client.get("/model").json()["state"] == "failed"
    finally:
        app.dependency_overrides.clear()


# ──────────────────────────────────────────────
# HTML page
# ──────────────────────────────────────────────
def test_page_ready(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert "text/html" in response.headers["content-type"]
    assert "Model loaded! Ready to upload images" in response.text
    assert 'id="detect-btn">' in response.text
    assert "results-section" not in response.text


def test_page_flow(client: TestClient, png_bytes: bytes) -> None:
    response = select(client, "photo.png", png_bytes, "image/png", url="/select")
    assert response.status_code == 200  # followed the 303 back to /
    assert 'id="image-preview"' in response.text
    assert "Image uploaded! Click &#x27;Run AI Detection&#x27;" in response.text

    response = client.post("/detect")
    assert response.status_code == 200
    assert '<p id="result-text" class="real">Real</p>' in response.text
    assert "Confidence: 90%" in response.text
    assert "width: 100%" in response.text


def test_page_rejects_gif(client: TestClient) -> None:
    response = select(client, "document.gif", image_bytes("GIF", (8, 8)), "image/gif", url="/select")
    assert response.status_code == 415
    assert "Error: Only JPG/PNG images are supported" in response.text
    assert 'id="image-preview"' not in response.text


def test_page_detect_button_disabled_while_loading() -> None:
    handle = ModelHandle()
    handle.state = ModelState.LOADING
    store = SessionStore(handle)
    app.dependency_overrides[get_session_store] = lambda: store
    try:
        response = TestClient(app).get("/")
        assert 'id="detect-btn" disabled' in response.text
        assert 'http-equiv="refresh"' in response.text
        assert "width: 20%" in response.text
    finally:
        app.dependency_overrides.clear()


def test_preview(client: TestClient, png_bytes: bytes) -> None:
    assert client.get("/preview").status_code == 404

    select(client, "photo.png", png_bytes, "image/png")
    response = client.get("/preview")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content == png_bytes


def test_stylesheet(client: TestClient) -> None:
    response = client.get("/static/style.css")
    assert response.status_code == 200
    assert ".ai-generated" in response.text


# ──────────────────────────────────────────────
# Startup model load
# ──────────────────────────────────────────────
def test_background_load_records_failure(tmp_path) -> None:
    handle = ModelHandle()
    asyncio.run(load_model(handle, str(tmp_path / "missing.keras")))
    assert handle.state is ModelState.FAILED
    assert "missing.keras" in handle.error
