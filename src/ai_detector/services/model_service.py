"""Service layer – detector model fetching, loading and life-cycle.

The service holds exactly one model per process in a ``ModelHandle``.
It is loaded once at startup (see ``main.lifespan``) and then shared
read-only by every session.  Supports both **full TensorFlow**
(``.keras`` / ``.h5``) and **tflite-runtime** (``.tflite``).
"""

from __future__ import annotations

import asyncio
import enum
import logging
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urlparse

import httpx
import numpy as np

from src.ai_detector.config import MODELS_DIR, settings
from src.ai_detector.errors import LoadError, ModelNotLoadedError

logger = logging.getLogger(__name__)

# ── Optional: full TensorFlow (only needed for Keras models) ──
try:
    import tensorflow as tf  # type: ignore[import-untyped]

    _HAS_TF = True
except ImportError:
    _HAS_TF = False

KERAS_SUFFIXES = {".keras", ".h5"}
TFLITE_SUFFIXES = {".tflite"}


class Predictor(Protocol):
    def predict(self, batch: np.ndarray) -> np.ndarray: ...


# ──────────────────────────────────────────────
# Predictors (one forward pass per call)
# ──────────────────────────────────────────────
class KerasPredictor:
    def __init__(self, model: Any) -> None:
        self._model = model

    def predict(self, batch: np.ndarray) -> np.ndarray:
        return np.asarray(self._model.predict(batch, verbose=0))


class TFLitePredictor:
    def __init__(self, interpreter: Any) -> None:
        self._interpreter = interpreter

    def predict(self, batch: np.ndarray) -> np.ndarray:
        interpreter = self._interpreter

        # ---------- INPUT ----------
        input_info = interpreter.get_input_details()[0]

        if input_info["dtype"] == np.uint8:
            scale, zero_point = input_info["quantization"]
            batch = (batch / scale + zero_point).astype(np.uint8)
        else:
            batch = batch.astype(np.float32)

        interpreter.set_tensor(input_info["index"], batch)
        interpreter.invoke()

        # ---------- OUTPUT ----------
        output_info = interpreter.get_output_details()[0]
        output_data = interpreter.get_tensor(output_info["index"])

        if output_info["dtype"] == np.uint8:
            scale, zero_point = output_info["quantization"]
            output_data = (output_data.astype(np.float32) - zero_point) * scale

        return np.asarray(output_data)


# ──────────────────────────────────────────────
# Loading helpers
# ──────────────────────────────────────────────
def is_remote(source: str) -> bool:
    return urlparse(source).scheme in ("http", "https")


async def fetch_model_file(url: str, dest_dir: Path = MODELS_DIR) -> Path:
    """Download the model at *url* into *dest_dir* and return the local path."""
    filename = Path(urlparse(url).path).name
    if not filename:
        raise LoadError(f"Cannot derive a model filename from {url}")

    logger.info("Downloading model from %s …", url)
    async with httpx.AsyncClient(timeout=settings.model_fetch_timeout) as client:
        response = await client.get(url, follow_redirects=True)
        response.raise_for_status()

    dest_dir.mkdir(parents=True, exist_ok=True)
    path = dest_dir / filename
    path.write_bytes(response.content)
    logger.info("Model saved to %s (%d bytes).", path, len(response.content))
    return path


def load_keras_model(path: Path) -> KerasPredictor:
    if not _HAS_TF:
        raise LoadError("Full TensorFlow is required for Keras models.")
    logger.info("Loading Keras model from %s …", path)
    return KerasPredictor(tf.keras.models.load_model(str(path)))


def load_tflite_model(path: Path) -> TFLitePredictor:
    from src.ai_detector.compat import Interpreter

    logger.info("Loading TFLite model from %s …", path)
    interpreter = Interpreter(model_path=str(path))
    interpreter.allocate_tensors()
    return TFLitePredictor(interpreter)


def load_model_file(path: Path) -> Predictor:
    """Parse the model file at *path*, choosing the runtime by suffix."""
    if not path.exists():
        raise LoadError(f"No model file found at {path}")

    suffix = path.suffix.lower()
    if suffix in KERAS_SUFFIXES:
        return load_keras_model(path)
    if suffix in TFLITE_SUFFIXES:
        return load_tflite_model(path)
    raise LoadError(f"Unsupported model format '{suffix}' ({path.name})")


# ──────────────────────────────────────────────
# Model handle
# ──────────────────────────────────────────────
class ModelState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class ModelHandle:
    """Process-wide holder of the detector model.

    Life-cycle: ``uninitialized → loading → loaded | failed``.  Once
    loaded the predictor is never replaced; ``release()`` drops it at
    shutdown.
    """

    def __init__(self) -> None:
        self.state = ModelState.UNINITIALIZED
        self.source: str | None = None
        self.error: str | None = None
        self._predictor: Predictor | None = None

    @classmethod
    def from_predictor(cls, predictor: Predictor, source: str = "<in-memory>") -> ModelHandle:
        handle = cls()
        handle._predictor = predictor
        handle.source = source
        handle.state = ModelState.LOADED
        return handle

    @property
    def is_loaded(self) -> bool:
        return self.state is ModelState.LOADED

    @property
    def predictor(self) -> Predictor:
        if self._predictor is None:
            raise ModelNotLoadedError("Model is not loaded")
        return self._predictor

    async def load(self, source: str) -> None:
        """Fetch (if remote) and parse the model at *source*.

        Raises ``LoadError``; the message is also kept in ``self.error``.
        """
        if self.state in (ModelState.LOADING, ModelState.LOADED):
            logger.warning("Model already %s – ignoring load of %s.", self.state.value, source)
            return

        self.state = ModelState.LOADING
        self.source = source
        self.error = None
        try:
            path = await fetch_model_file(source) if is_remote(source) else Path(source)
            predictor = await asyncio.to_thread(load_model_file, path)
        except LoadError as exc:
            self._fail(str(exc))
            raise
        except Exception as exc:
            self._fail(str(exc) or type(exc).__name__)
            raise LoadError(self.error) from exc

        self._predictor = predictor
        self.state = ModelState.LOADED
        logger.info("✅ Model loaded from %s.", source)

    def _fail(self, message: str) -> None:
        self.state = ModelState.FAILED
        self.error = message

    def release(self) -> None:
        """Drop the predictor (called at shutdown)."""
        self._predictor = None
        if self.state is ModelState.LOADED:
            self.state = ModelState.UNINITIALIZED
        if _HAS_TF:
            tf.keras.backend.clear_session()
        logger.info("Model released.")
