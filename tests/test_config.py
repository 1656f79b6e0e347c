import dataclasses
from pathlib import Path

import pytest

from core.config import DEFAULT_CORS_ORIGINS, DEFAULT_DATA_DIR, Settings, settings_from_env


def test_defaults():
    settings = settings_from_env({})
    assert settings.project_id is None
    assert not settings.warehouse_enabled
    assert settings.dataset == "frontend_custom_data"
    assert settings.location == "US"
    assert settings.data_dir == DEFAULT_DATA_DIR
    assert settings.cors_origins == DEFAULT_CORS_ORIGINS
    assert settings.session_duration_hours == 6
    assert settings.session_check_seconds == 10
    assert settings.forecast_current_year == 2025


def test_env_overrides(tmp_path):
    settings = settings_from_env(
        {
            "GCP_PROJECT_ID": "proj",
            "BIGQUERY_DATASET": "ds",
            "BIGQUERY_TABLE_VEHICLE_DATA": "vehicles_v2",
            "DASHBOARD_DATA_DIR": str(tmp_path),
            "CORS_ORIGINS": "https://a.example, https://b.example,",
            "LOG_LEVEL": "debug",
            "SESSION_DURATION_HOURS": "2",
            "SESSION_CHECK_SECONDS": "oops",
            "FORECAST_CURRENT_YEAR": "2026",
        }
    )
    assert settings.warehouse_enabled
    assert settings.dataset == "ds"
    assert settings.table_for("vehicle_data", "vehicle_data") == "vehicles_v2"
    assert settings.table_for("cng_pipelines", "cng_pipelines") == "cng_pipelines"
    assert settings.data_dir == Path(tmp_path)
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
    assert settings.log_level == "DEBUG"
    assert settings.session_duration_hours == 2
    assert settings.session_check_seconds == 10
    assert settings.forecast_current_year == 2026


def test_settings_is_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        Settings().dataset = "other"  # type: ignore[misc]
