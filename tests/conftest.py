"""Shared fixtures: stub model, in-memory images, test client."""

import io
import time

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from src.ai_detector.dependencies import get_model_handle, get_session_store
from src.ai_detector.main import app
from src.ai_detector.services.controller import SessionStore
from src.ai_detector.services.model_service import ModelHandle


class StubPredictor:
    """Deterministic model returning a fixed ``[prob_ai, prob_real]`` pair."""

    def __init__(self, output=(0.1, 0.9), delay: float = 0.0, error: Exception | None = None):
        self.output = np.array([output], dtype=np.float32)
        self.delay = delay
        self.error = error
        self.calls: list[tuple[int, ...]] = []

    def predict(self, batch: np.ndarray) -> np.ndarray:
        self.calls.append(batch.shape)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.output


def image_bytes(fmt: str = "PNG", size: tuple[int, int] = (512, 512), color="red") -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color=color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def predictor() -> StubPredictor:
    return StubPredictor()


@pytest.fixture
def model_handle(predictor: StubPredictor) -> ModelHandle:
    return ModelHandle.from_predictor(predictor)


@pytest.fixture
def client(model_handle: ModelHandle):
    store = SessionStore(model_handle, max_sessions=10)
    app.dependency_overrides[get_model_handle] = lambda: model_handle
    app.dependency_overrides[get_session_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def png_bytes() -> bytes:
    return image_bytes("PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return image_bytes("JPEG", size=(640, 480), color="blue")
