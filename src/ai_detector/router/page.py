"""Router – the HTML page and its form actions."""

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from src.ai_detector.dependencies import error_status_code, get_controller, read_image_file
from src.ai_detector.errors import DetectorError
from src.ai_detector.services.controller import AppController
from src.ai_detector.services.presentation import render_page

router = APIRouter(tags=["Page"])


def _page(controller: AppController, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(render_page(controller.snapshot()), status_code=status_code)


@router.get("/", response_class=HTMLResponse)
def index(controller: AppController = Depends(get_controller)) -> HTMLResponse:
    return _page(controller)


@router.post("/select", response_class=HTMLResponse)
async def select_form(
    file: UploadFile = File(...),
    controller: AppController = Depends(get_controller),
) -> Response:
    image_file = await read_image_file(file)
    try:
        controller.select_file(image_file)
    except DetectorError as exc:
        return _page(controller, status_code=error_status_code(exc))
    return RedirectResponse("/", status_code=303)


@router.post("/detect", response_class=HTMLResponse)
async def detect_form(controller: AppController = Depends(get_controller)) -> Response:
    try:
        await controller.detect()
    except DetectorError as exc:
        return _page(controller, status_code=error_status_code(exc))
    return RedirectResponse("/", status_code=303)


@router.get("/preview")
def preview(controller: AppController = Depends(get_controller)) -> Response:
    """Bytes of the pending file, shown as the page's preview image."""
    image_file = controller.selected_file
    if image_file is None:
        raise HTTPException(status_code=404, detail="No image selected")
    return Response(
        content=image_file.data,
        media_type=image_file.content_type,
        headers={"Cache-Control": "no-store"},
    )
