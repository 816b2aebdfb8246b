"""Service layer – image decoding and pre-processing."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image, UnidentifiedImageError

from src.ai_detector.config import IMAGE_SIZE
from src.ai_detector.errors import DecodeError, PreprocessError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageFile:
    """An uploaded file as received from the browser."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    def has_type(self, allowed: set[str]) -> bool:
        return (self.content_type or "").lower() in allowed


def decode_image(image_file: ImageFile) -> Image.Image:
    """Decode *image_file* into an RGB bitmap.

    Raises ``DecodeError`` when the bytes are not a valid image.
    """
    if not image_file.data:
        raise DecodeError(f"{image_file.filename} is empty")

    try:
        with Image.open(io.BytesIO(image_file.data)) as img:
            bitmap = img.convert("RGB")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
        raise DecodeError(f"Could not decode {image_file.filename}: {exc}") from exc

    logger.debug("Decoded %s (%dx%d)", image_file.filename, *bitmap.size)
    return bitmap


def preprocess_image(bitmap: Image.Image) -> np.ndarray:
    """Resize (nearest neighbour) and normalise to a (1, 224, 224, 3) float32 batch.

    The aspect ratio is not preserved. The resized intermediate is closed
    on every path so only the returned array outlives this call.
    """
    if bitmap.mode != "RGB":
        raise PreprocessError(f"Expected an RGB image, got mode {bitmap.mode!r}")

    resized = bitmap.resize(IMAGE_SIZE, Image.Resampling.NEAREST)
    try:
        arr = np.asarray(resized, dtype=np.float32) / 255.0
    except (ValueError, MemoryError) as exc:
        raise PreprocessError(f"Could not convert image to tensor: {exc}") from exc
    finally:
        resized.close()

    return np.expand_dims(arr, axis=0)  # (1, H, W, 3)
