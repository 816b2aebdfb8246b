"""Service layer – status / progress / result writers and the HTML page."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

from src.ai_detector.config import LABEL_AI
from src.ai_detector.schemas.detect import DetectionResult, PageSnapshot

STATUS_MODEL_LOADING = "Loading AI model... (first run: ~10s)"
STATUS_MODEL_LOADED = "Model loaded! Ready to upload images"
STATUS_UNSUPPORTED_TYPE = "Error: Only JPG/PNG images are supported"
STATUS_FILE_SELECTED = "Image uploaded! Click 'Run AI Detection'"
STATUS_PROCESSING = "Processing image..."
STATUS_ANALYZING = "Analyzing image for AI generation..."
STATUS_COMPLETE = "Detection complete!"


def load_error_status(message: str) -> str:
    return f"Error loading model: {message}"


def detection_error_status(message: str) -> str:
    return f"Detection error: {message}"


@dataclass
class StatusPanel:
    """The mutable part of a session's page: status line, progress bar, result."""
    status: str = ""
    progress: int = 0
    result: DetectionResult | None = None


def update_status(panel: StatusPanel, text: str) -> None:
    panel.status = text


def update_progress(panel: StatusPanel, percent: int) -> None:
    panel.progress = percent


def display_result(panel: StatusPanel, result: DetectionResult) -> None:
    panel.result = result


def clear_result(panel: StatusPanel) -> None:
    panel.result = None


def result_css_class(label: str) -> str:
    return "ai-generated" if label == LABEL_AI else "real"


def confidence_text(confidence: float) -> str:
    """``73.0`` → ``"Confidence: 73%"``, ``91.25`` → ``"Confidence: 91.25%"``."""
    return f"Confidence: {confidence:g}%"


# ──────────────────────────────────────────────
# HTML page
# ──────────────────────────────────────────────
def render_page(snapshot: PageSnapshot) -> str:
    """Render the full page for *snapshot*; nothing else feeds the markup."""
    refresh = ""
    if snapshot.state in ("uninitialized", "model_loading", "detecting"):
        refresh = '<meta http-equiv="refresh" content="2">'

    preview = ""
    if snapshot.preview_visible:
        alt = escape(snapshot.filename or "preview")
        preview = f'<img id="image-preview" src="/preview" alt="{alt}">'

    results = ""
    if snapshot.result is not None:
        results = (
            '<section class="results-section">'
            f'<p id="result-text" class="{snapshot.result_class}">{escape(snapshot.result.label)}</p>'
            f'<p id="confidence-text">{escape(snapshot.confidence_text or "")}</p>'
            "</section>"
        )

    disabled = "" if snapshot.detect_enabled else " disabled"

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
{refresh}
<title>AI Image Detector</title>
<link rel="stylesheet" href="/static/style.css">
</head>
<body>
<main>
<h1>AI Image Detector</h1>
<form action="/select" method="post" enctype="multipart/form-data">
<input type="file" id="image-upload" name="file" accept="image/jpeg,image/png" required>
<button type="submit">Upload</button>
</form>
{preview}
<form action="/detect" method="post">
<button type="submit" id="detect-btn"{disabled}>Run AI Detection</button>
</form>
<div id="progress-bar"><div style="width: {snapshot.progress}%;"></div></div>
<p id="status">{escape(snapshot.status)}</p>
{results}
</main>
</body>
</html>
"""
