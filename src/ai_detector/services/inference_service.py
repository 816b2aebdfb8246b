"""Service layer – forward pass and result shaping."""

from __future__ import annotations

import asyncio
import logging

import numpy as np

from src.ai_detector.config import LABEL_AI, LABEL_REAL
from src.ai_detector.errors import InferenceError
from src.ai_detector.schemas.detect import DetectionResult
from src.ai_detector.services.model_service import ModelHandle

logger = logging.getLogger(__name__)


def classify(output: np.ndarray) -> DetectionResult:
    """Turn the model output ``[prob_ai, prob_real]`` into a labelled result.

    Ties go to ``Real``.
    """
    probs = np.asarray(output, dtype=np.float64).reshape(-1)
    if probs.size != 2:
        raise InferenceError(f"Expected 2 output probabilities, got {probs.size}")
    if not np.all(np.isfinite(probs)) or np.any(probs < 0.0) or np.any(probs > 1.0):
        raise InferenceError(f"Model output is not a probability pair: {probs.tolist()}")

    prob_ai, prob_real = float(probs[0]), float(probs[1])
    label = LABEL_AI if prob_ai > prob_real else LABEL_REAL
    confidence = round(max(prob_ai, prob_real) * 100, 2)

    return DetectionResult(label=label, confidence=confidence)


async def run_inference(handle: ModelHandle, tensor: np.ndarray) -> DetectionResult:
    """Run one forward pass of the loaded model on *tensor* and classify it."""
    predictor = handle.predictor  # ModelNotLoadedError when absent

    try:
        output = await asyncio.to_thread(predictor.predict, tensor)
    except Exception as exc:
        raise InferenceError(str(exc) or type(exc).__name__) from exc

    result = classify(output)
    logger.info("Prediction %s (%.2f%%)", result.label, result.confidence)
    return result
