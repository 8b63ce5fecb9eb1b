"""
Application settings loaded from the environment (.env supported).
"""
import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

load_dotenv(dotenv_path=ENV_FILE)


def get_int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return int(value)


def get_float_env(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return float(value)


class Settings:
    """Runtime configuration. Read once at import time."""

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./tabulation.db")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Decimal places shown in ranking reports (raw values are never rounded)
    REPORT_DECIMAL_PLACES: int = get_int_env("REPORT_DECIMAL_PLACES", 2)

    # Allowed drift of the segment weight sum from 1.0. Category weights have no tolerance.
    SEGMENT_WEIGHT_TOLERANCE: float = get_float_env("SEGMENT_WEIGHT_TOLERANCE", 1e-4)

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


settings = Settings()
