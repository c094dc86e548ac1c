"""App settings: loaded from environment variables with defaults."""

import os
from typing import List
from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./bambino.db"
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings:
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8080"))
    ENV: str = os.getenv("ENV", "development")

    DATABASE_URL: str = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
    DATABASE_ECHO: bool = os.getenv("DATABASE_ECHO", "false").lower() in ("1", "true", "yes")

    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
    ]
    CORS_EXTRA_ORIGINS: str = os.getenv("CORS_EXTRA_ORIGINS", "")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    def cors_origins(self) -> List[str]:
        origins = list(self.CORS_ORIGINS)
        if self.CORS_EXTRA_ORIGINS:
            origins.extend([o.strip() for o in self.CORS_EXTRA_ORIGINS.split(",") if o.strip()])
        return origins

    # Used by: main.py at import time
    def validate(self) -> None:
        if self.LOG_LEVEL not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(VALID_LOG_LEVELS)}")

        if self.is_production and self.DATABASE_URL == DEFAULT_DATABASE_URL:
            raise ValueError("DATABASE_URL must be set explicitly in production")


settings = Settings()
