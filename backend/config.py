"""
Runtime settings for the schedule service.

Everything is read from environment variables so the same code runs locally
(against ``schedule.db``) and in tests (against an in-memory database).
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

DEFAULT_SHEET_JSON_URL = "https://opensheet.elk.sh/{sheet_id}/{worksheet}"
DEFAULT_SHEET_CSV_URL = (
    "https://docs.google.com/spreadsheets/d/{sheet_id}/gviz/tq?tqx=out:csv&sheet={worksheet}"
)


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    if raw.lower() == "none":
        return None
    return float(raw)


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    database_url: str = "sqlite:///schedule.db"
    sheet_json_url: str = DEFAULT_SHEET_JSON_URL
    sheet_csv_url: str = DEFAULT_SHEET_CSV_URL
    # Seconds; None leaves requests without a timeout
    sheet_fetch_timeout: Optional[float] = 30.0
    default_worksheet: str = "Schedule"
    default_password: str = "password123"
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            sheet_json_url=os.environ.get("SHEET_JSON_URL", DEFAULT_SHEET_JSON_URL),
            sheet_csv_url=os.environ.get("SHEET_CSV_URL", DEFAULT_SHEET_CSV_URL),
            sheet_fetch_timeout=_env_float("SHEET_FETCH_TIMEOUT", cls.sheet_fetch_timeout),
            default_worksheet=os.environ.get("DEFAULT_WORKSHEET", cls.default_worksheet),
            default_password=os.environ.get("DEFAULT_PASSWORD", cls.default_password),
            log_level=os.environ.get("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=_env_list("CORS_ORIGINS", ["*"]),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
