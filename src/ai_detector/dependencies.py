"""FastAPI dependencies shared by the routers."""

from fastapi import Depends, HTTPException, Request, UploadFile

from src.ai_detector.config import settings
from src.ai_detector.errors import (
    DetectionInProgressError,
    DetectorError,
    ModelNotLoadedError,
    UnsupportedImageTypeError,
)
from src.ai_detector.services.controller import AppController, SessionStore
from src.ai_detector.services.image_service import ImageFile
from src.ai_detector.services.model_service import ModelHandle


def get_model_handle(request: Request) -> ModelHandle:
    return request.app.state.model_handle


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_controller(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> AppController:
    """Controller for the caller's session (id assigned by the session middleware)."""
    return store.get(request.state.session_id)


async def read_image_file(file: UploadFile) -> ImageFile:
    """Read an upload into an ``ImageFile``, enforcing the size limit."""
    content = await file.read()
    if len(content) > settings.max_upload_size:
        raise HTTPException(
            status_code=413,
            detail=f"File too large ({len(content)} bytes). "
                   f"Maximum size: {settings.max_upload_size} bytes.",
        )
    return ImageFile(
        filename=file.filename or "upload",
        content_type=file.content_type or "",
        data=content,
    )


def error_status_code(exc: DetectorError) -> int:
    """HTTP status for a rejected selection or a failed detection."""
    if isinstance(exc, UnsupportedImageTypeError):
        return 415
    if isinstance(exc, DetectionInProgressError):
        return 409
    if isinstance(exc, ModelNotLoadedError):
        return 503
    return 422
