from typing import Literal

from pydantic import BaseModel, Field


class DetectionResult(BaseModel):
    """Outcome of one detection run."""
    label: Literal["AI-generated", "Real"]
    confidence: float = Field(ge=0.0, le=100.0)


class PageSnapshot(BaseModel):
    """Everything the page shows, derived from one session's state."""
    state: str
    status: str
    progress: int
    detect_enabled: bool
    preview_visible: bool
    filename: str | None = None
    result: DetectionResult | None = None
    result_class: str | None = None
    confidence_text: str | None = None
