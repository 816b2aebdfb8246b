"""Router – model status."""

from fastapi import APIRouter, Depends

from src.ai_detector.dependencies import get_model_handle
from src.ai_detector.schemas.model import ModelStatus
from src.ai_detector.services.model_service import ModelHandle

router = APIRouter(tags=["Model"])


@router.get("/model", response_model=ModelStatus)
def get_model_status(handle: ModelHandle = Depends(get_model_handle)) -> ModelStatus:
    """Return the load state of the detector model."""
    return ModelStatus(state=handle.state.value, source=handle.source, error=handle.error)
