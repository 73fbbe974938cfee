from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv, load_dotenv


logger = logging.getLogger(__name__)

_env_file = find_dotenv(usecwd=True)
if _env_file:
    load_dotenv(_env_file)
else:
    logger.warning("No .env file found; using process environment only")


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. The Google API key is
    only the fallback credential; callers may supply their own per request.
    """

    def __init__(self) -> None:
        self.app_env: str = os.getenv("APP_ENV", "development")
        self.google_api_key: Optional[str] = os.getenv("GOOGLE_API_KEY") or None
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.3"))
        self.top_p: float = float(os.getenv("MODEL_TOP_P", "0.0"))
        self.top_k: int = int(os.getenv("MODEL_TOP_K", "1"))
        self.max_output_tokens: int = int(os.getenv("MODEL_MAX_OUTPUT_TOKENS", "8192"))
        self.response_language: str = os.getenv("RESPONSE_LANGUAGE", "Chinese")
        self.request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "60"))
        self.session_id_length: int = int(os.getenv("SESSION_ID_LENGTH", "12"))
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3000"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def is_development(self) -> bool:
        return self.app_env.lower() in {"dev", "development", "local"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
