"""Compatibility shim – TFLite interpreter import.

``.tflite`` detector models can be served with the small
``tflite-runtime`` wheel; when only full ``tensorflow`` is installed its
bundled interpreter is used instead.
"""

from __future__ import annotations

try:
    from tflite_runtime.interpreter import Interpreter  # type: ignore[import-untyped]
except ImportError:
    from tensorflow.lite.python.interpreter import Interpreter  # type: ignore[import-untyped]

__all__ = ["Interpreter"]
