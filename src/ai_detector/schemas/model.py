from pydantic import BaseModel


class ModelStatus(BaseModel):
    """Response schema for GET /model."""
    state: str
    source: str | None = None
    error: str | None = None
