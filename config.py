import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent


def _as_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


def _as_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "127.0.0.1")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Store settings
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///catalog.db")

    # Application settings
    app_name: str = os.getenv("APP_NAME", "Book Catalog API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    debug: bool = _as_bool(os.getenv("DEBUG", "False"))
    environment: str = os.getenv("ENVIRONMENT", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Web client settings
    cors_origins: List[str] = field(default_factory=lambda: _as_list(os.getenv("CORS_ORIGINS", "*")))
    static_dir: str = os.getenv("STATIC_DIR", str(BASE_DIR / "static"))


settings = Settings()
