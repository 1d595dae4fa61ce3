"""Environment-driven configuration for the FieldLens backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_GROQ_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_GROQ_MODEL = "meta-llama/llama-4-scout-17b-16e-instruct"


@dataclass
class AppConfig:
    """Settings shared by the application factory and request handlers.

    Attributes:
        host: Interface the server binds to.
        port: Listening port.
        groq_api_key: Credential for the inference API. May be None; the
            analyze endpoint refuses requests until it is configured.
        groq_base_url: OpenAI-compatible base URL of the inference API.
        groq_model: Multimodal model name.
        database_dir: Directory holding the SQLite file.
        upload_dir: Directory receiving uploaded images.
        log_level: Root logging level name.
    """

    host: str = "0.0.0.0"
    port: int = 3000
    groq_api_key: Optional[str] = None
    groq_base_url: str = DEFAULT_GROQ_BASE_URL
    groq_model: str = DEFAULT_GROQ_MODEL
    database_dir: Path = BASE_DIR / "database"
    upload_dir: Path = BASE_DIR / "uploads"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Build a config from environment variables, falling back to defaults."""
        port_raw = os.getenv("PORT", "").strip()
        try:
            port = int(port_raw) if port_raw else 3000
        except ValueError as exc:
            raise RuntimeError(f"PORT must be an integer, got {port_raw!r}") from exc

        api_key = os.getenv("GROQ_API_KEY")
        database_dir = os.getenv("DATABASE_DIR")
        upload_dir = os.getenv("UPLOAD_DIR")

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=port,
            groq_api_key=api_key.strip() if api_key and api_key.strip() else None,
            groq_base_url=os.getenv("GROQ_BASE_URL", DEFAULT_GROQ_BASE_URL),
            groq_model=os.getenv("GROQ_MODEL", DEFAULT_GROQ_MODEL),
            database_dir=Path(database_dir).expanduser() if database_dir else BASE_DIR / "database",
            upload_dir=Path(upload_dir).expanduser() if upload_dir else BASE_DIR / "uploads",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
