from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

# ──────────────────────────────────────────────
# Paths
# ──────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent          # src/
MODELS_DIR = BASE_DIR / "models"
STATIC_DIR = Path(__file__).resolve().parent / "static"


# ──────────────────────────────────────────────
# Settings (from environment variables / .env)
# ──────────────────────────────────────────────
class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # CORS settings
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000"
    cors_allow_credentials: bool = True
    cors_allow_methods: str = "GET,POST,OPTIONS"
    cors_allow_headers: str = "*"

    # Model settings
    # Local path or http(s) URL of a .keras / .h5 / .tflite file
    model_source: str = str(MODELS_DIR / "ai_image_detector.keras")
    model_fetch_timeout: float = 60.0  # seconds

    # Upload settings
    max_upload_size: int = 10 * 1024 * 1024  # 10 MB
    allowed_mime_types: str = "image/jpeg,image/png"

    # Session settings
    max_sessions: int = 100
    session_cookie_name: str = "detector_session"

    # Application settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def cors_methods_list(self) -> list[str]:
        """Parse CORS methods from comma-separated string."""
        if self.cors_allow_methods == "*":
            return ["*"]
        return [method.strip() for method in self.cors_allow_methods.split(",")]

    @property
    def cors_headers_list(self) -> list[str]:
        """Parse CORS headers from comma-separated string."""
        if self.cors_allow_headers == "*":
            return ["*"]
        return [header.strip() for header in self.cors_allow_headers.split(",")]

    @property
    def allowed_mime_types_set(self) -> set[str]:
        """Parse allowed MIME types from comma-separated string."""
        return {mime.strip().lower() for mime in self.allowed_mime_types.split(",")}


# Global settings instance
settings = Settings()

# ──────────────────────────────────────────────
# Class labels (output order of the model: [prob_ai, prob_real])
# ──────────────────────────────────────────────
LABEL_AI = "AI-generated"
LABEL_REAL = "Real"

# ──────────────────────────────────────────────
# Image pre-processing defaults
# ──────────────────────────────────────────────
IMAGE_SIZE: tuple[int, int] = (224, 224)
