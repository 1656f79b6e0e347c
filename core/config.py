from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Mapping, Optional


BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DATA_DIR = BASE_DIR / "data"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

TABLE_ENV_PREFIX = "BIGQUERY_TABLE_"


def _as_int(value: Optional[str], default: int) -> int:
    try:
        return int(str(value).strip())
    except Exception:
        return default


def _as_list(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    project_id: Optional[str] = None
    dataset: str = "frontend_custom_data"
    location: str = "US"
    table_overrides: Dict[str, str] = field(default_factory=dict)
    data_dir: Path = DEFAULT_DATA_DIR
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    log_level: str = "INFO"
    session_duration_hours: int = 6
    session_check_seconds: int = 10
    firebase_api_key: Optional[str] = None
    forecast_current_year: int = 2025

    @property
    def warehouse_enabled(self) -> bool:
        return bool(self.project_id)

    def table_for(self, query_name: str, default: str) -> str:
        return self.table_overrides.get(query_name, default)


def settings_from_env(env: Mapping[str, str]) -> Settings:
    overrides = {
        key[len(TABLE_ENV_PREFIX):].lower(): value
        for key, value in env.items()
        if key.startswith(TABLE_ENV_PREFIX) and value
    }
    return Settings(
        project_id=env.get("GCP_PROJECT_ID") or None,
        dataset=env.get("BIGQUERY_DATASET") or Settings.dataset,
        location=env.get("BIGQUERY_LOCATION") or Settings.location,
        table_overrides=overrides,
        data_dir=Path(env["DASHBOARD_DATA_DIR"]) if env.get("DASHBOARD_DATA_DIR") else DEFAULT_DATA_DIR,
        cors_origins=_as_list(env.get("CORS_ORIGINS"), DEFAULT_CORS_ORIGINS),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        session_duration_hours=_as_int(env.get("SESSION_DURATION_HOURS"), 6),
        session_check_seconds=_as_int(env.get("SESSION_CHECK_SECONDS"), 10),
        firebase_api_key=env.get("FIREBASE_API_KEY") or None,
        forecast_current_year=_as_int(env.get("FORECAST_CURRENT_YEAR"), 2025),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return settings_from_env(os.environ)
