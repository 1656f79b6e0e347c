"""Row sources: the warehouse (BigQuery) and the bundled CSV datasets.

Every fetch is keyed by a logical query name from ``QUERIES`` plus optional
filter parameters, and returns rows as plain dicts with whatever column
casing the underlying table uses.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from core.config import Settings, get_settings

logger = logging.getLogger(__name__)

BIGQUERY = "bigquery"
CSV = "csv"

Rows = List[Dict[str, Any]]


@dataclass(frozen=True)
class QueryDef:
    name: str
    table: str = ""
    sql: str = ""
    params: Tuple[Tuple[str, str], ...] = ()
    backend: str = BIGQUERY
    location: Optional[str] = None


def _q(name: str, table: str, sql: str, params: Tuple[Tuple[str, str], ...] = (), **kw: Any) -> QueryDef:
    return QueryDef(name=name, table=table, sql=" ".join(sql.split()), params=params, **kw)


_YEAR = ("year", "INT64")
_STATE = ("state", "STRING")
_FUEL = ("fuel_type", "STRING")
_LABEL = ("label", "STRING")

_CATALOG: Sequence[QueryDef] = [
    QueryDef(name="fuel_stations_csv", table="custom_fuel_dataset_5000.csv", backend=CSV),
    QueryDef(name="production_plants_csv", table="us_cng_fuel_suppliers.csv", backend=CSV),
    _q("vehicle_data", "vehicle_data", "SELECT * FROM {table} LIMIT 1000"),
    _q("cng_vehicle_line_chart", "cng_forecast_final_prophet", """
        SELECT year, actual_cng_vehicles, predicted_cng_vehicles, cng_price, fuel_type,
               annual_mileage, incentive, CMI_VIN
        FROM {table} ORDER BY year"""),
    _q("electric_vehicle_line_chart", "electric_forecast_final_prophet", """
        SELECT year, actual_ev_vehicles, predicted_ev_vehicles, ev_price, fuel_type,
               annual_mileage, incentive
        FROM {table} ORDER BY year"""),
    _q("cng_statewise_line_chart", "cng_prophet_forecast_2010_2040_final", """
        SELECT * FROM {table}
        WHERE year <= 2025 AND (@year IS NULL OR year = @year) ORDER BY state, year""", (_YEAR,)),
    _q("cng_yearwise", "cng_forecast_final_prophet", """
        SELECT * FROM {table} WHERE (@year IS NULL OR year = @year) ORDER BY year""", (_YEAR,)),
    _q("cng_statewise", "cng_prophet_forecast_2010_2040_final", """
        SELECT * FROM {table} WHERE (@year IS NULL OR year = @year) ORDER BY state, year""", (_YEAR,)),
    _q("electric_yearwise", "electric_forecast_final_prophet", """
        SELECT * FROM {table} WHERE (@year IS NULL OR year = @year) ORDER BY year""", (_YEAR,)),
    _q("electric_statewise", "electric_forecast_schema", """
        SELECT * FROM {table} WHERE (@year IS NULL OR year = @year) ORDER BY state, year""", (_YEAR,)),
    _q("fuel_station_concentration", "fuel_station_concentration", """
        SELECT year, state, fuel_type, concentration_vehicle_type, total_vin, fuel_station_count
        FROM {table} WHERE year = @year AND state = @state AND LOWER(fuel_type) = LOWER(@fuel_type)""",
       (_YEAR, _STATE, _FUEL)),
    _q("fuel_station_count_by_state", "fuel_stations", """
        SELECT state, COUNT(*) AS fuel_station_count FROM {table}
        WHERE LOWER(fuel_type_code) = LOWER(@fuel_type) GROUP BY state ORDER BY state""", (_FUEL,)),
    _q("incentive_vehicles", "incentives_vehicle_data", "SELECT * FROM {table} ORDER BY year"),
    _q("llm_questions", "llm_questions", """
        SELECT question, answer, fuel_type FROM {table}
        WHERE (@fuel_type IS NULL OR LOWER(fuel_type) = LOWER(@fuel_type))""", (_FUEL,)),
    _q("production_vs_consumption", "production_vs_consumption", "SELECT * FROM {table} ORDER BY year"),
    _q("vehicle_consumption", "vehicle_consumption", "SELECT * FROM {table} ORDER BY year"),
    _q("yearly_vehicle_consumption", "vehicle_consumption", "SELECT year, total_vehicle_consumption FROM {table} ORDER BY year"),
    _q("yearly_electric_vehicles", "incentives_vehicle_data", "SELECT year, electric_vehicles FROM {table} ORDER BY year"),
    _q("cng_bar_graph", "cng_supply_disposition", """
        SELECT * FROM {table} WHERE (@label IS NULL OR Label = @label) ORDER BY year""", (_LABEL,)),
    _q("cng_line_plot", "cng_outlook", """
        SELECT * FROM {table} WHERE (@label IS NULL OR Label = @label) ORDER BY year""", (_LABEL,)),
    _q("electricity_line_plot", "electricity_outlook", """
        SELECT * FROM {table} WHERE (@label IS NULL OR Label = @label) ORDER BY year""", (_LABEL,)),
    _q("electricity_fuel", "electricity_generation_by_fuel", "SELECT * FROM {table} ORDER BY year"),
    _q("electricity_generation_line_plot", "electricity_generation", "SELECT * FROM {table} ORDER BY year"),
    _q("cng_capacity_predictions", "cng_capacity_predictions", """
        SELECT * FROM {table} WHERE state = @state ORDER BY year""", (_STATE,)),
    _q("electric_capacity_predictions", "electric_capacity_predictions", """
        SELECT * FROM {table} WHERE state = @state ORDER BY year""", (_STATE,)),
    _q("cng_production_plants", "cng_production_plants", "SELECT * FROM {table}"),
    _q("electric_production_plants", "electric_production_plants", "SELECT * FROM {table}"),
    _q("cng_production_by_state", "cng_production_by_state", "SELECT * FROM {table} ORDER BY state, year"),
    _q("cng_production_statewise", "cng_production_statewise", "SELECT * FROM {table} ORDER BY state"),
    _q("electric_production_statewise", "electric_production_statewise", "SELECT * FROM {table} ORDER BY state"),
    _q("cng_pipelines", "cng_pipelines", "SELECT * FROM {table}"),
    _q("cumulative_emissions", "emission_certification", "SELECT * FROM {table}"),
    _q("statewise_emissions", "emission_certification_statewise", """
        SELECT * FROM {table} WHERE (@state IS NULL OR state = @state)""", (_STATE,)),
    _q("electricity_capacity", "electricity_capacity", "SELECT * FROM {table} ORDER BY year"),
    _q("electricity_gen_cons", "electricity_generation_consumption", "SELECT * FROM {table} ORDER BY year"),
    _q("electricity_sales", "electricity_sales", "SELECT * FROM {table} ORDER BY year"),
    _q("electricity_statewise", "electricity_statewise", "SELECT * FROM {table} ORDER BY state, year"),
    _q("overhead_using_electric", "overhead_using_electric", "SELECT * FROM {table} ORDER BY state, year"),
]

QUERIES: Dict[str, QueryDef] = {q.name: q for q in _CATALOG}


def get_query(name: str) -> QueryDef:
    try:
        return QUERIES[name]
    except KeyError:
        raise KeyError(f"Unknown query '{name}'. Available: {sorted(QUERIES)}") from None


class RowSource:
    """Fetches raw rows for a logical query."""

    def fetch(self, query: str, params: Optional[Mapping[str, Any]] = None) -> Rows:
        raise NotImplementedError


class BigQueryRowSource(RowSource):
    def __init__(self, settings: Optional[Settings] = None, client: Any = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            from google.cloud import bigquery

            self._client = bigquery.Client(project=self.settings.project_id)
        return self._client

    def table_ref(self, qdef: QueryDef) -> str:
        table = self.settings.table_for(qdef.name, qdef.table)
        return f"`{self.settings.project_id}.{self.settings.dataset}.{table}`"

    def build(self, qdef: QueryDef, params: Mapping[str, Any]) -> Tuple[str, Any]:
        from google.cloud import bigquery

        sql = qdef.sql.format(table=self.table_ref(qdef))
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter(name, type_, params.get(name))
                for name, type_ in qdef.params
            ]
        )
        return sql, job_config

    def fetch(self, query: str, params: Optional[Mapping[str, Any]] = None) -> Rows:
        qdef = get_query(query)
        if not self.settings.warehouse_enabled:
            logger.warning("Warehouse disabled (GCP_PROJECT_ID not set); %s returns no rows", query)
            return []
        sql, job_config = self.build(qdef, params or {})
        location = qdef.location or self.settings.location
        logger.debug("running %s at %s", query, location)
        result = self.client.query(sql, job_config=job_config, location=location).result()
        rows = [dict(row.items()) for row in result]
        logger.debug("%s returned %d rows", query, len(rows))
        return rows


@lru_cache(maxsize=8)
def _read_csv_cached(path: str, mtime: float) -> Tuple[Dict[str, Any], ...]:
    df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    df.columns = [str(c).strip() for c in df.columns]
    return tuple(df.to_dict(orient="records"))


class CsvRowSource(RowSource):
    """Serves the bundled CSV datasets; every value comes back as a string."""

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else get_settings().data_dir

    def fetch(self, query: str, params: Optional[Mapping[str, Any]] = None) -> Rows:
        qdef = get_query(query)
        path = self.data_dir / qdef.table
        if not path.exists():
            raise FileNotFoundError(f"Dataset not found: {path}")
        rows = _read_csv_cached(str(path), path.stat().st_mtime)
        logger.debug("%s returned %d rows from %s", query, len(rows), path.name)
        return [dict(r) for r in rows]


class RoutingRowSource(RowSource):
    """Dispatches each query to the backend its catalog entry names."""

    def __init__(self, backends: Mapping[str, RowSource]):
        self.backends = dict(backends)

    def fetch(self, query: str, params: Optional[Mapping[str, Any]] = None) -> Rows:
        backend = get_query(query).backend
        if backend not in self.backends:
            raise KeyError(f"No row source configured for backend '{backend}'")
        return self.backends[backend].fetch(query, params)


def default_row_source(settings: Optional[Settings] = None) -> RowSource:
    settings = settings or get_settings()
    return RoutingRowSource({
        BIGQUERY: BigQueryRowSource(settings),
        CSV: CsvRowSource(settings.data_dir),
    })


FetchRequest = Tuple[str, Mapping[str, Any]]


async def fetch_all(source: RowSource, requests: Sequence[FetchRequest]) -> List[Rows]:
    """Run independent fetches concurrently; any failure fails the whole batch."""
    loop = asyncio.get_running_loop()
    tasks = [loop.run_in_executor(None, source.fetch, query, dict(params)) for query, params in requests]
    return list(await asyncio.gather(*tasks))
