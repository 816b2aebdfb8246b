"""Service layer – per-session page controller and session store.

Each browser session gets one ``AppController``.  It owns the selected
file and the status panel, and drives the detection pipeline
(decode → preprocess → inference) against the shared ``ModelHandle``.
The page is rendered only from ``AppController.snapshot()``.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import uuid
from collections import OrderedDict

from src.ai_detector.config import settings
from src.ai_detector.errors import (
    DetectionError,
    DetectionInProgressError,
    ModelNotLoadedError,
    UnsupportedImageTypeError,
)
from src.ai_detector.schemas.detect import DetectionResult, PageSnapshot
from src.ai_detector.services import presentation as ui
from src.ai_detector.services.image_service import ImageFile, decode_image, preprocess_image
from src.ai_detector.services.inference_service import run_inference
from src.ai_detector.services.model_service import ModelHandle, ModelState

logger = logging.getLogger(__name__)

# Progress checkpoints
PROGRESS_MODEL_LOADING = 20
PROGRESS_MODEL_LOADED = 100
PROGRESS_DETECT_START = 0
PROGRESS_PREPROCESSED = 30
PROGRESS_INFERRED = 80
PROGRESS_DONE = 100


class AppState(str, enum.Enum):
    UNINITIALIZED = "uninitialized"
    MODEL_LOADING = "model_loading"
    READY = "ready"
    FILE_PENDING = "file_pending"
    DETECTING = "detecting"
    RESULT_SHOWN = "result_shown"
    ERROR = "error"


class AppController:
    def __init__(self, model: ModelHandle, allowed_types: set[str] | None = None) -> None:
        self._model = model
        self._allowed_types = allowed_types or settings.allowed_mime_types_set
        self._panel = ui.StatusPanel()
        self._file: ImageFile | None = None
        self._load_failed = False
        self.state = AppState.UNINITIALIZED

    # ── model life-cycle ──
    def sync(self) -> AppState:
        """Advance out of the model-loading states once the handle settles."""
        if self.state is AppState.UNINITIALIZED:
            self.state = AppState.MODEL_LOADING
            ui.update_status(self._panel, ui.STATUS_MODEL_LOADING)
            ui.update_progress(self._panel, PROGRESS_MODEL_LOADING)

        if self.state is AppState.MODEL_LOADING:
            if self._model.state is ModelState.LOADED:
                self.state = AppState.FILE_PENDING if self._file else AppState.READY
                ui.update_status(self._panel, ui.STATUS_MODEL_LOADED)
                ui.update_progress(self._panel, PROGRESS_MODEL_LOADED)
            elif self._model.state is ModelState.FAILED:
                self.state = AppState.ERROR
                self._load_failed = True
                ui.update_status(self._panel, ui.load_error_status(self._model.error or "unknown error"))

        return self.state

    @property
    def detect_enabled(self) -> bool:
        return self._model.is_loaded and self.state is not AppState.DETECTING

    @property
    def selected_file(self) -> ImageFile | None:
        return self._file

    # ── user actions ──
    def select_file(self, image_file: ImageFile) -> None:
        """Make *image_file* the pending file.

        A rejected file leaves the previous selection, preview and state
        untouched.
        """
        self.sync()
        if self.state is AppState.DETECTING:
            raise DetectionInProgressError("Detection already running")

        if not image_file.has_type(self._allowed_types):
            ui.update_status(self._panel, ui.STATUS_UNSUPPORTED_TYPE)
            logger.info("Rejected %s (%s)", image_file.filename, image_file.content_type)
            raise UnsupportedImageTypeError(ui.STATUS_UNSUPPORTED_TYPE)

        self._file = image_file
        ui.clear_result(self._panel)
        if self._model.is_loaded:
            self.state = AppState.FILE_PENDING
            ui.update_status(self._panel, ui.STATUS_FILE_SELECTED)
        logger.info("Selected %s (%d bytes)", image_file.filename, image_file.size)

    async def detect(self) -> DetectionResult | None:
        """Run the pipeline on the pending file; ``None`` when nothing is selected.

        Raises ``DetectionError`` after putting the message on the status line.
        """
        self.sync()
        if self.state is AppState.DETECTING:
            raise DetectionInProgressError("Detection already running")
        if self._file is None:
            return None
        if not self._model.is_loaded:
            exc = ModelNotLoadedError("Model is not loaded")
            if not self._load_failed:
                ui.update_status(self._panel, ui.detection_error_status(str(exc)))
            raise exc

        image_file = self._file
        self.state = AppState.DETECTING
        ui.clear_result(self._panel)
        ui.update_status(self._panel, ui.STATUS_PROCESSING)
        ui.update_progress(self._panel, PROGRESS_DETECT_START)

        try:
            bitmap = await asyncio.to_thread(decode_image, image_file)
            try:
                tensor = preprocess_image(bitmap)
            finally:
                bitmap.close()
            ui.update_progress(self._panel, PROGRESS_PREPROCESSED)

            ui.update_status(self._panel, ui.STATUS_ANALYZING)
            result = await run_inference(self._model, tensor)
            del tensor
            ui.update_progress(self._panel, PROGRESS_INFERRED)
        except DetectionError as exc:
            logger.exception("Detection failed for %s", image_file.filename)
            self.state = AppState.ERROR
            ui.update_status(self._panel, ui.detection_error_status(str(exc)))
            raise
        else:
            ui.display_result(self._panel, result)
            ui.update_progress(self._panel, PROGRESS_DONE)
            ui.update_status(self._panel, ui.STATUS_COMPLETE)
            self.state = AppState.RESULT_SHOWN
        finally:
            # never leave the session stuck in DETECTING
            if self.state is AppState.DETECTING:
                self.state = AppState.ERROR
                ui.update_status(self._panel, ui.detection_error_status("interrupted"))

        return result

    # ── projection ──
    def snapshot(self) -> PageSnapshot:
        self.sync()
        result = self._panel.result if self.state is AppState.RESULT_SHOWN else None
        return PageSnapshot(
            state=self.state.value,
            status=self._panel.status,
            progress=self._panel.progress,
            detect_enabled=self.detect_enabled,
            preview_visible=self._file is not None,
            filename=self._file.filename if self._file else None,
            result=result,
            result_class=ui.result_css_class(result.label) if result else None,
            confidence_text=ui.confidence_text(result.confidence) if result else None,
        )


class SessionStore:
    """Session id → ``AppController``; least recently used sessions are evicted."""

    def __init__(self, model: ModelHandle, max_sessions: int = settings.max_sessions) -> None:
        self._model = model
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, AppController] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    @staticmethod
    def new_session_id() -> str:
        return uuid.uuid4().hex

    def get(self, session_id: str) -> AppController:
        controller = self._sessions.get(session_id)
        if controller is not None:
            self._sessions.move_to_end(session_id)
            return controller

        controller = AppController(self._model)
        self._sessions[session_id] = controller
        while len(self._sessions) > self._max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info("🗑️  Evicted session %s", evicted)
        return controller

    def clear(self) -> None:
        self._sessions.clear()
