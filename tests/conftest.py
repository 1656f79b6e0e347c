from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Optional

import pytest

from core.config import Settings
from core.sources import RowSource


class FakeRowSource(RowSource):
    """In-memory row source: canned rows per query, optional failures, call log."""

    def __init__(self, rows: Optional[Mapping[str, List[Dict[str, Any]]]] = None, failures: Optional[Mapping[str, Exception]] = None):
        self.rows = dict(rows or {})
        self.failures = dict(failures or {})
        self.calls: List[tuple] = []
        self._lock = threading.Lock()

    def fetch(self, query: str, params: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        with self._lock:
            self.calls.append((query, dict(params or {})))
        if query in self.failures:
            raise self.failures[query]
        return [dict(r) for r in self.rows.get(query, [])]

    @property
    def queries(self) -> List[str]:
        return [q for q, _ in self.calls]


@pytest.fixture
def fake_source() -> FakeRowSource:
    return FakeRowSource()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path, forecast_current_year=2025)


@pytest.fixture
def client(fake_source):
    from fastapi.testclient import TestClient

    from api.main import app

    previous = app.state.row_source
    app.state.row_source = fake_source
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.state.row_source = previous


@pytest.fixture
def make_source():
    return FakeRowSource
