"""AI Image Detector – FastAPI application entry-point."""

from contextlib import asynccontextmanager
import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.staticfiles import StaticFiles
from starlette.middleware.cors import CORSMiddleware

from src.ai_detector.config import STATIC_DIR, settings
from src.ai_detector.errors import LoadError
from src.ai_detector.router import detector, health, model, page
from src.ai_detector.services.controller import SessionStore
from src.ai_detector.services.model_service import ModelHandle

# Configure logging from settings
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def load_model(handle: ModelHandle, source: str) -> None:
    """Background model load; failures stay on the handle and reach every page."""
    try:
        await handle.load(source)
    except LoadError:
        logger.exception("❌ Model load failed – detection disabled until restart.")


# ──────────────────────────────────────────────
# Lifespan: load the model once on startup, release on shutdown
# ──────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    handle: ModelHandle = app.state.model_handle
    logger.info("🚀 Loading model from %s …", settings.model_source)
    task = asyncio.create_task(load_model(handle, settings.model_source))
    yield
    logger.info("🛑 Shutting down – releasing model and sessions …")
    if not task.done():
        task.cancel()
    handle.release()
    app.state.session_store.clear()


# ──────────────────────────────────────────────
# Application factory
# ──────────────────────────────────────────────
app = FastAPI(
    title="AI Image Detector",
    description="Tell AI-generated images from real photos.",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.model_handle = ModelHandle()
app.state.session_store = SessionStore(app.state.model_handle, max_sessions=settings.max_sessions)

# ── CORS middleware (configured from environment variables) ──
app.add_middleware(
    middleware_class=CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_methods_list,
    allow_headers=settings.cors_headers_list,
)

logger.info("CORS configured with origins: %s", settings.cors_origins_list)


# ── session cookie: one page state per browser ──
@app.middleware("http")
async def session_cookie(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    cookie_name = settings.session_cookie_name
    session_id = request.cookies.get(cookie_name)
    request.state.session_id = session_id or SessionStore.new_session_id()

    response = await call_next(request)
    if session_id is None:
        response.set_cookie(cookie_name, request.state.session_id, httponly=True, samesite="lax")
    return response


# ── register routers ──
app.include_router(health.router)
app.include_router(model.router)
app.include_router(detector.router)
app.include_router(page.router)

# ── page stylesheet ──
app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
