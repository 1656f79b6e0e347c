"""Run one catalog endpoint: parameters, fetch, normalize, post-steps, envelope."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from core.aggregate import concat_series
from core.config import Settings, get_settings
from core.endpoints import Endpoint, get_endpoint
from core.envelope import SourceError, success_payload
from core.normalizer import apply_view
from core.sources import RowSource, default_row_source, fetch_all
from core.views import get_view

logger = logging.getLogger(__name__)


async def run_endpoint(
    endpoint: Endpoint,
    raw_params: Mapping[str, Optional[str]],
    source: RowSource,
    *,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Return the success payload for ``endpoint``.

    Raises ``ParameterError`` before any fetch is attempted, and
    ``SourceError`` when any of the plan's fetches fails (no partial data).
    """
    settings = settings or get_settings()
    values = endpoint.parse_params(raw_params)
    plan = endpoint.plan_for(values)
    fetch_params = endpoint.fetch_params(values)

    try:
        results = await fetch_all(source, [(query, fetch_params) for query in plan.fetch])
    except Exception as exc:
        raise SourceError(endpoint.error, str(exc)) from exc

    series = [
        apply_view(rows, get_view(plan.view_for(i)), index_key=endpoint.index_key)
        for i, rows in enumerate(results)
    ]
    records: List[Dict[str, Any]] = concat_series(series)
    for step in plan.post:
        records = step(records, settings)

    logger.debug("%s -> %d records", endpoint.path, len(records))
    return success_payload(records, **endpoint.extras(values, plan))


def run_path(
    path: str,
    raw_params: Optional[Mapping[str, Optional[str]]] = None,
    source: Optional[RowSource] = None,
    *,
    settings: Optional[Settings] = None,
) -> Dict[str, Any]:
    """Synchronous entry point for callers without an event loop (the Streamlit app)."""
    settings = settings or get_settings()
    source = source or default_row_source(settings)
    return asyncio.run(run_endpoint(get_endpoint(path), raw_params or {}, source, settings=settings))
