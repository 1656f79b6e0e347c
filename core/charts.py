from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

Records = Sequence[Mapping[str, Any]]

FUEL_COLORS = {
    "elec": "#2563eb",
    "cng": "#16a34a",
    "lng": "#0d9488",
    "bd": "#ca8a04",
    "e85": "#9333ea",
    "hy": "#0ea5e9",
    "lpg": "#ea580c",
    "rd": "#78716c",
    "unknown": "#9ca3af",
}


def _frame(records: Records) -> pd.DataFrame:
    return pd.DataFrame.from_records([dict(r) for r in records])


def _empty() -> alt.Chart:
    return alt.Chart(pd.DataFrame({"x": []})).mark_text()


# ---------------- Vehicles ----------------
def vehicle_lines(records: Records, *, title: str = "Vehicles") -> alt.Chart:
    """Actual vs predicted vehicle counts by year."""
    df = _frame(records)
    cols = [c for c in ("actualVehicles", "predictedVehicles") if c in df.columns]
    if df.empty or not cols:
        return _empty()
    long = df.melt(id_vars="year", value_vars=cols, var_name="series", value_name="vehicles")
    long["series"] = long["series"].map({"actualVehicles": "Actual", "predictedVehicles": "Predicted"})
    return (
        alt.Chart(long.dropna(subset=["vehicles"]))
        .mark_line(point=True)
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("vehicles:Q", title="Vehicles", axis=alt.Axis(format=",")),
            color=alt.Color("series:N", title=""),
            strokeDash=alt.StrokeDash("series:N", legend=None),
            tooltip=["year", "series", alt.Tooltip("vehicles:Q", format=",")],
        )
        .properties(height=300, title=title)
    )


def min_max_band(records: Records, *, state: Optional[str] = None) -> alt.Chart:
    """Min/max range per year, optionally for one state."""
    df = _frame(records)
    if df.empty:
        return _empty()
    if state:
        df = df[df["state"] == state]
    base = alt.Chart(df).encode(x=alt.X("year:O", title="Year"))
    band = base.mark_area(opacity=0.25).encode(
        y=alt.Y("min:Q", title="Vehicles", axis=alt.Axis(format=",")),
        y2="max:Q",
        color=alt.Color("state:N", title="State"),
    )
    upper = base.mark_line(point=True).encode(
        y="max:Q",
        color="state:N",
        tooltip=["year", "state", alt.Tooltip("min:Q", format=","), alt.Tooltip("max:Q", format=",")],
    )
    return (band + upper).properties(height=300)


def extremes_points(records: Records) -> alt.Chart:
    """Forecast minimum and maximum per state as labelled points."""
    df = _frame(records)
    if df.empty:
        return _empty()
    rows: List[Dict[str, Any]] = []
    for r in df.to_dict(orient="records"):
        rows.append({"state": r["state"], "kind": "Min", "year": r["minYear"], "value": r["minValue"]})
        rows.append({"state": r["state"], "kind": "Max", "year": r["maxYear"], "value": r["maxValue"]})
    return (
        alt.Chart(pd.DataFrame(rows))
        .mark_point(filled=True, size=90)
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("value:Q", title="Predicted vehicles", axis=alt.Axis(format=",")),
            color=alt.Color("kind:N", scale=alt.Scale(domain=["Min", "Max"], range=["#dc2626", "#16a34a"])),
            shape="state:N",
            tooltip=["state", "kind", "year", alt.Tooltip("value:Q", format=",")],
        )
        .properties(height=300)
    )


# ---------------- Bars ----------------
def grouped_bars(records: Records, x: str, series: Sequence[str], *, title: str = "", y_title: str = "") -> alt.Chart:
    df = _frame(records)
    cols = [c for c in series if c in df.columns]
    if df.empty or not cols:
        return _empty()
    return (
        alt.Chart(df)
        .transform_fold(cols, as_=["series", "value"])
        .mark_bar()
        .encode(
            x=alt.X(f"{x}:O", title=x.title()),
            xOffset="series:N",
            y=alt.Y("value:Q", title=y_title, axis=alt.Axis(format=",")),
            color=alt.Color("series:N", title=""),
            tooltip=[x, "series:N", alt.Tooltip("value:Q", format=",")],
        )
        .properties(height=300, title=title)
    )


def emissions_bars(records: Records) -> alt.Chart:
    df = _frame(records)
    if df.empty:
        return _empty()
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("year:O", title="Model Year"),
            y=alt.Y("sum(count):Q", title="Vehicles", stack="zero"),
            color=alt.Color("pollutant:N", title="Pollutant"),
            tooltip=["year", "pollutant", "certStatus", alt.Tooltip("sum(count):Q", format=",")],
        )
        .properties(height=320)
    )


# ---------------- Infrastructure ----------------
def station_map(records: Records) -> alt.Chart:
    df = _frame(records)
    if df.empty:
        return _empty()
    codes = list(FUEL_COLORS)
    return (
        alt.Chart(df)
        .mark_circle(size=18, opacity=0.7)
        .encode(
            longitude="lng:Q",
            latitude="lat:Q",
            color=alt.Color(
                "fuel_type:N",
                title="Fuel",
                scale=alt.Scale(domain=codes, range=[FUEL_COLORS[c] for c in codes]),
            ),
            tooltip=["station_name", "city", "state", "fuel_type"],
        )
        .project(type="albersUsa")
        .properties(height=420)
    )


def fuel_type_breakdown(records: Records) -> alt.Chart:
    df = _frame(records)
    if df.empty or "fuel_type" not in df.columns:
        return _empty()
    counts = df.groupby("fuel_type", sort=False).size().reset_index(name="stations")
    return (
        alt.Chart(counts)
        .mark_arc(innerRadius=50)
        .encode(
            theta="stations:Q",
            color=alt.Color(
                "fuel_type:N",
                title="Fuel",
                scale=alt.Scale(domain=list(FUEL_COLORS), range=list(FUEL_COLORS.values())),
            ),
            tooltip=["fuel_type", alt.Tooltip("stations:Q", format=",")],
        )
        .properties(height=300)
    )
