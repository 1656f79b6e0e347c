from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Sequence

import numpy as np
import pandas as pd


def _clean(value: Any, integral: bool = False) -> Any:
    if value is None or pd.isna(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if integral and isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def concat_series(series: Iterable[Sequence[Mapping[str, Any]]]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for rows in series:
        out.extend(dict(r) for r in rows)
    return out


def min_max_by_year_state(
    records: Sequence[Mapping[str, Any]],
    value_key: str,
    *,
    year_key: str = "year",
    state_key: str = "state",
    min_key: str = "min",
    max_key: str = "max",
) -> List[Dict[str, Any]]:
    """Reduce normalized records to one row per (year, state) with min/max of ``value_key``.

    Groups come out in order of first appearance. Missing values are skipped;
    a group with no values at all reports ``None`` for both bounds.
    """
    if not records:
        return []
    rows = [{k: r.get(k) for k in (year_key, state_key, value_key)} for r in records]
    integral = all(isinstance(r[value_key], int) for r in rows if r[value_key] is not None)
    df = pd.DataFrame.from_records(rows, columns=[year_key, state_key, value_key])
    df[value_key] = pd.to_numeric(df[value_key], errors="coerce")
    grouped = (
        df.groupby([year_key, state_key], sort=False, dropna=False)[value_key]
        .agg(["min", "max"])
        .reset_index()
    )
    return [
        {
            year_key: _clean(row[year_key], True),
            state_key: row[state_key],
            min_key: _clean(row["min"], integral),
            max_key: _clean(row["max"], integral),
        }
        for row in grouped.to_dict(orient="records")
    ]


def forecast_extremes(
    records: Sequence[Mapping[str, Any]],
    value_key: str,
    *,
    from_year: int,
    year_key: str = "year",
    group_key: str = "state",
) -> List[Dict[str, Any]]:
    """First minimum and first maximum of ``value_key`` per group, from ``from_year`` on.

    Zero and missing values never count. Ties keep the earliest record in
    input order, so callers sort by year first when they want the earliest year.
    """
    found: Dict[Any, Dict[str, Any]] = {}
    for row in records:
        year = row.get(year_key)
        value = row.get(value_key)
        if year is None or year < from_year or not value:
            continue
        group = row.get(group_key)
        cur = found.get(group)
        if cur is None:
            found[group] = {
                group_key: group,
                "minYear": year,
                "minValue": value,
                "maxYear": year,
                "maxValue": value,
            }
            continue
        if value < cur["minValue"]:
            cur["minValue"], cur["minYear"] = value, year
        if value > cur["maxValue"]:
            cur["maxValue"], cur["maxYear"] = value, year
    return list(found.values())


def sort_records(
    records: Iterable[Mapping[str, Any]],
    keys: Sequence[str],
    *,
    descending: bool = False,
) -> List[Dict[str, Any]]:
    """Stable sort on ``keys``; ``None`` sorts after every value (before, when descending)."""

    def _key(row: Mapping[str, Any]):
        return tuple((row.get(k) is None, row.get(k) if row.get(k) is not None else 0) for k in keys)

    return sorted((dict(r) for r in records), key=_key, reverse=descending)
