"""Router – JSON API for file selection and detection."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from src.ai_detector.dependencies import error_status_code, get_controller, read_image_file
from src.ai_detector.errors import DetectorError
from src.ai_detector.schemas.detect import PageSnapshot
from src.ai_detector.services.controller import AppController

router = APIRouter(prefix="/api", tags=["Detection"])


@router.get("/state", response_model=PageSnapshot)
def get_state(controller: AppController = Depends(get_controller)) -> PageSnapshot:
    """Current page state of the caller's session."""
    return controller.snapshot()


@router.post("/select", response_model=PageSnapshot)
async def select_image(
    file: UploadFile = File(...),
    controller: AppController = Depends(get_controller),
) -> PageSnapshot:
    """
    Select the image to analyse.

    Parameters
    ----------
    file : UploadFile – JPEG or PNG image.

    Rejected with 415 for other types, 413 when too large and 409 while a
    detection is running.
    """
    image_file = await read_image_file(file)
    try:
        controller.select_file(image_file)
    except DetectorError as exc:
        raise HTTPException(status_code=error_status_code(exc), detail=str(exc))
    return controller.snapshot()


@router.post("/detect", response_model=PageSnapshot)
async def detect_image(controller: AppController = Depends(get_controller)) -> PageSnapshot:
    """
    Run AI-image detection on the selected file.

    On failure the ``detail`` is the status line shown on the page.
    """
    try:
        result = await controller.detect()
    except DetectorError as exc:
        raise HTTPException(status_code=error_status_code(exc), detail=controller.snapshot().status)

    if result is None:
        raise HTTPException(status_code=400, detail="No image selected")
    return controller.snapshot()
