from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# SQLite file in the project root, next to streamlit_app.py
DEFAULT_DB_PATH = Path(__file__).resolve().parents[1] / "meduniverse.sqlite"
DEFAULT_UPLOAD_DIR = Path(__file__).resolve().parents[1] / "uploads"


@dataclass(frozen=True)
class Settings:
    database_url: str
    jwt_secret: str
    jwt_expire_minutes: int

    gemini_api_key: str
    gemini_model: str
    openai_api_key: str
    openai_model: str
    plant_id_api_key: str
    youtube_api_key: str

    resend_api_key: str
    mail_from: str

    admin_username: str
    admin_password: str

    upload_dir: str
    http_timeout_seconds: float
    log_level: str


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings(
        database_url=_env("MEDUNIVERSE_DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}"),
        # in production: set it in the environment
        jwt_secret=_env("JWT_SECRET", "CHANGE_ME_DEV_SECRET"),
        jwt_expire_minutes=int(_env("JWT_EXPIRE_MINUTES", "60")),
        gemini_api_key=_env("GEMINI_API_KEY"),
        gemini_model=_env("GEMINI_MODEL", "gemini-1.5-flash-latest"),
        openai_api_key=_env("OPENAI_API_KEY"),
        openai_model=_env("OPENAI_MODEL", "gpt-4o-mini"),
        plant_id_api_key=_env("PLANT_ID_API_KEY"),
        youtube_api_key=_env("YOUTUBE_API_KEY"),
        resend_api_key=_env("RESEND_API_KEY"),
        mail_from=_env("MAIL_FROM", "Medical Universe <onboarding@resend.dev>"),
        admin_username=_env("ADMIN_USERNAME", "admin"),
        admin_password=_env("ADMIN_PASSWORD", "admin123"),
        upload_dir=_env("UPLOAD_DIR", str(DEFAULT_UPLOAD_DIR)),
        http_timeout_seconds=float(_env("HTTP_TIMEOUT_SECONDS", "30")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str | None = None) -> None:
    """Root logging setup, called once by the API and the CLI."""
    logging.basicConfig(
        level=level or get_settings().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
