"""CSV export of stations, vehicle forecasts and production plants."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from core.coerce import is_blank, resolve_value
from core.envelope import ParameterError, SourceError
from core.sources import RowSource, fetch_all

logger = logging.getLogger(__name__)

EXPORT_TYPES = ("stations", "vehicles", "plants", "all")
VEHICLE_TYPES = ("cng", "electric", "hybrid")
AGGREGATIONS = ("statewise", "cumulative")

EXPORT_ERROR = "Failed to export data"

STATION_HEADERS: Tuple[str, ...] = (
    "Fuel_Type_Code", "Station_Name", "Street_Address", "Intersection_Directions",
    "City", "State", "ZIP", "Plus4", "Station_Phone", "Status_Code", "Expected_Date",
    "Groups_With_Access_Code", "Access_Days_Time", "Cards_Accepted", "BD_Blends",
    "NG_Fill_Type_Code", "NG_PSI", "EV_Level1_EVSE_Num", "EV_Level2_EVSE_Num",
    "EV_DC_Fast_Count", "EV_Other_Info", "EV_Network", "EV_Network_Web",
    "Geocode_Status", "Latitude", "Longitude", "Date_Last_Confirmed", "Updated_At",
    "Owner_Type_Code", "Federal_Agency_ID", "Federal_Agency_Name", "Open_Date",
    "Hydrogen_Status_Link", "NG_Vehicle_Class", "LPG_Primary", "E85_Blender_Pump",
    "EV_Connector_Types", "Country", "Intersection_Directions_French",
    "Access_Days_Time_French", "BD_Blends_French", "Groups_With_Access_Code_French",
    "Hydrogen_Is_Retail", "Access_Code", "Access_Detail_Code", "Federal_Agency_Code",
    "Facility_Type", "CNG_Dispenser_Num", "CNG_OnSite_Renewable_Source",
    "CNG_Total_Compression_Capacity", "CNG_Storage_Capacity", "LNG_OnSite_Renewable_Source",
    "E85_Other_Ethanol_Blends", "EV_Pricing", "EV_Pricing_French", "LPG_Nozzle_Types",
    "Hydrogen_Pressures", "Hydrogen_Standards", "CNG_Fill_Type_Code", "CNG_PSI",
    "CNG_Vehicle_Class", "LNG_Vehicle_Class", "EV_OnSite_Renewable_Source",
    "Restricted_Access", "RD_Blends", "RD_Blends_French", "RD_Blended_with_Biodiesel",
    "RD_Maximum_Biodiesel_Level", "NPS_Unit_Name", "CNG_Station_Sells_Renewable_Natural_Gas",
    "LNG_Station_Sells_Renewable_Natural_Gas", "Maximum_Vehicle_Class", "EV_Workplace_Charging",
    "Funding_Sources",
)

VEHICLE_HEADERS: Dict[Tuple[str, str], Tuple[str, ...]] = {
    ("cng", "cumulative"): (
        "Year", "CNG_Price", "Predicted_CNG_Vehicles", "Actual_CNG_Vehicles",
        "Fuel_Type", "Annual_Mileage", "Incentive", "CMI_VIN",
    ),
    ("cng", "statewise"): (
        "Year", "State", "CNG_Fuel_Price", "Predicted_CNG_Vehicles", "Actual_CNG_Vehicles", "Fuel_Type",
    ),
    ("electric", "cumulative"): (
        "Year", "EV_Price", "Predicted_EV_Vehicles", "Actual_EV_Vehicles",
        "Fuel_Type", "Annual_Mileage", "Incentive", "CMI_VIN",
    ),
    ("electric", "statewise"): (
        "Year", "State", "Electric_Price", "Predicted_EV_Vehicles", "Actual_EV_Vehicles", "Fuel_Type",
    ),
}

VEHICLE_QUERIES: Dict[Tuple[str, str], str] = {
    ("cng", "cumulative"): "cng_vehicle_line_chart",
    ("cng", "statewise"): "cng_statewise",
    ("electric", "cumulative"): "electric_vehicle_line_chart",
    ("electric", "statewise"): "electric_statewise",
}

PLANT_HEADERS: Tuple[str, ...] = ("Vendor", "Operator", "Latitude", "Longitude", "State", "Fuel_Type")


@dataclass(frozen=True)
class ExportSection:
    query: str
    headers: Tuple[str, ...]
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExportRequest:
    type: str = "all"
    vehicle_type: str = "cng"
    aggregation: str = "statewise"

    @classmethod
    def from_params(cls, raw: Mapping[str, Optional[str]]) -> "ExportRequest":
        req = cls(
            type=(raw.get("type") or "all").strip(),
            vehicle_type=(raw.get("vehicleType") or "cng").strip(),
            aggregation=(raw.get("aggregationType") or "statewise").strip(),
        )
        for name, value, allowed in (
            ("type", req.type, EXPORT_TYPES),
            ("vehicleType", req.vehicle_type, VEHICLE_TYPES),
            ("aggregationType", req.aggregation, AGGREGATIONS),
        ):
            if value not in allowed:
                raise ParameterError(f"Invalid value for {name}: '{value}'. Expected one of: {', '.join(allowed)}")
        return req

    @property
    def fuel(self) -> str:
        return "electric" if self.vehicle_type in ("electric", "hybrid") else "cng"

    def sections(self) -> List[ExportSection]:
        out: List[ExportSection] = []
        if self.type in ("stations", "all"):
            out.append(ExportSection("fuel_stations_csv", STATION_HEADERS))
        if self.type in ("vehicles", "all"):
            key = (self.fuel, self.aggregation)
            params = {"year": None} if self.aggregation == "statewise" else {}
            out.append(ExportSection(VEHICLE_QUERIES[key], VEHICLE_HEADERS[key], params))
        if self.type == "plants":
            out.append(ExportSection("production_plants_csv", PLANT_HEADERS))
        return out

    def filename(self, today: Optional[dt.date] = None) -> str:
        stamp = (today or dt.date.today()).isoformat()
        if self.type == "stations":
            return f"fuel_stations_{stamp}.csv"
        if self.type == "vehicles":
            return f"{self.fuel}_{self.aggregation}_forecast_{stamp}.csv"
        if self.type == "plants":
            return f"production_plants_{stamp}.csv"
        return f"cummins_data_{stamp}.csv"


def to_frame(rows: Sequence[Mapping[str, Any]], headers: Sequence[str]) -> pd.DataFrame:
    """Project raw rows onto fixed export columns; lookups ignore key casing."""
    records = []
    for row in rows:
        out = {}
        for header in headers:
            found, value = resolve_value(row, [header])
            out[header] = "" if not found or is_blank(value) else value
        records.append(out)
    return pd.DataFrame.from_records(records, columns=list(headers))


def render_csv(frames: Sequence[pd.DataFrame]) -> str:
    # Sections are separated by one blank line.
    return "\n".join(frame.to_csv(index=False, lineterminator="\n") for frame in frames)


async def export_csv(
    source: RowSource,
    request: ExportRequest,
    *,
    today: Optional[dt.date] = None,
) -> Tuple[str, str]:
    """Return ``(csv_text, filename)`` for ``request``."""
    sections = request.sections()
    try:
        results = await fetch_all(source, [(s.query, s.params) for s in sections])
    except Exception as exc:
        raise SourceError(EXPORT_ERROR, str(exc)) from exc

    frames = [to_frame(rows, section.headers) for rows, section in zip(results, sections)]
    content = render_csv(frames)
    filename = request.filename(today)
    logger.info("export %s: %d sections, %d bytes", filename, len(frames), len(content))
    return content, filename
