"""Registry of chart/map views.

Each view is pure configuration: an ordered list of output fields with their
source aliases, target types and defaults. Registration validates the view,
so a malformed definition fails at import time rather than on a request.
"""

from __future__ import annotations

from typing import Dict, Iterable

from core.fields import (
    FieldSpec,
    ViewSpec,
    ViewSpecError,
    category,
    constant,
    coordinate,
    fuel_type_code,
    integer,
    lower,
    money,
    number,
    state,
    text,
    year,
)

VIEWS: Dict[str, ViewSpec] = {}


def register_view(name: str, fields: Iterable[FieldSpec], *, map_view: bool = False, description: str = "") -> ViewSpec:
    if name in VIEWS:
        raise ViewSpecError(f"View '{name}' is already registered.")
    view = ViewSpec(name=name, fields=tuple(fields), drop_incomplete=map_view, description=description)
    VIEWS[name] = view
    return view


def get_view(name: str) -> ViewSpec:
    try:
        return VIEWS[name]
    except KeyError:
        raise ViewSpecError(f"Unknown view '{name}'.") from None


# ---------------- Fuel stations & infrastructure ----------------
register_view(
    "fuel_stations",
    [
        coordinate("lat", ["Latitude", "lat"]),
        coordinate("lng", ["Longitude", "lng", "lon"]),
        text("station_id", ["ID", "Station_Name"]),
        category("fuel_type", ["Fuel_Type_Code"], default="unknown", transform=lower),
        text("station_name", "Station_Name"),
        text("street_address", "Street_Address"),
        text("city", "City"),
        state("state", "State"),
        text("zip", "ZIP"),
        text("plus4", "Plus4"),
        text("country", "Country"),
        text("status_code", "Status_Code"),
        text("station_phone", "Station_Phone"),
        text("expected_date", "Expected_Date"),
        text("access_code", "Access_Code"),
    ],
    map_view=True,
    description="Alternative fuel stations with coordinates, keyed by lower-cased fuel type code.",
)

register_view(
    "fuel_station_concentration",
    [
        year(),
        state(),
        fuel_type_code("fuelType", ["fuel_type"]),
        text("concentrationVehicleType", "concentration_vehicle_type"),
        integer("totalVin", "total_vin"),
        integer("fuelStationCount", "fuel_station_count"),
    ],
)

register_view(
    "fuel_station_count",
    [state(), integer("fuelStationCount", "fuel_station_count")],
)

register_view(
    "production_plants",
    [
        text("vendor", "Vendor"),
        text("address", "Street_Address"),
        text("city", "City"),
        state("state", "State"),
        text("zip", ["Zip_Code", "ZIP"]),
        text("phone", "Telephone"),
        text("description", "Description_of_Service"),
        coordinate("lat", "Latitude"),
        coordinate("lng", "Longitude"),
    ],
    map_view=True,
)

register_view(
    "cng_production_plants",
    [
        text("plant_name", ["plant_name", "Plant_Name"]),
        state(),
        number("capacity", "capacity"),
        coordinate("latitude", "latitude"),
        coordinate("longitude", "longitude"),
    ],
    map_view=True,
)

register_view(
    "electric_production_plants",
    [
        text("plant_code", "plant_code"),
        text("plant_name", "plant_name"),
        state(),
        number("gross_generation", "gross_generation"),
        number("net_generation", "net_generation"),
        coordinate("latitude", "latitude"),
        coordinate("longitude", "longitude"),
    ],
    map_view=True,
)

register_view(
    "cng_pipelines",
    [
        text("pipeline_id", ["pipeline_id", "id"]),
        text("operator", ["Operator", "operator"]),
        text("type", ["type", "TYPE"]),
        state(),
        text("coordinates", ["coordinates", "geometry", "path"]),
    ],
)

register_view(
    "production_by_state",
    [year(), state(), number("production", ["production", "value"])],
)

register_view(
    "production_map",
    [state(), number("production", ["production", "value"]), number("consumption", "consumption")],
)

# ---------------- Vehicles ----------------
register_view(
    "vehicle_data",
    [
        state("state", "State"),
        text("city", "City"),
        integer("vehicleCount", "Vehicle_Count"),
        text("vehicleClass", "Vehicle_Class"),
        text("vehicleType", "Vehicle_Type"),
        text("fuelType", "Fuel_Type"),
    ],
)

register_view(
    "cng_vehicle_line_chart",
    [
        year(),
        integer("actualVehicles", "actual_cng_vehicles", default=None),
        integer("predictedVehicles", "predicted_cng_vehicles", default=None),
        money("cngPrice", "cng_price"),
        text("fuelType", "fuel_type", default="cng"),
        money("annualMileage", "annual_mileage"),
        integer("incentive", "incentive", default=None),
        integer("cmiVin", "CMI_VIN", default=None),
    ],
)

register_view(
    "electric_vehicle_line_chart",
    [
        year(),
        integer("actualVehicles", "actual_ev_vehicles", default=None),
        integer("predictedVehicles", "predicted_ev_vehicles", default=None),
        money("evPrice", "ev_price"),
        text("fuelType", "fuel_type", default="electric"),
        money("annualMileage", "annual_mileage"),
        integer("incentive", "incentive", default=None),
    ],
)

register_view(
    "cng_statewise_line_chart",
    [
        year(),
        state(),
        integer("vehicleCount", "predicted_cng_vehicles"),
        money("cngPrice", "cng_price"),
        integer("actualVehicles", "actual_cng_vehicles"),
        money("annualMileage", "annual_mileage"),
        integer("cmiVin", "cmi_vin", default=None),
        constant("dataType", "statewise"),
    ],
)

register_view(
    "cng_min_max_yearwise",
    [
        year(),
        constant("state", "US"),
        integer("vehicleCount", "predicted_cng_vehicles"),
        money("cngPrice", "cng_price"),
        integer("actualVehicles", "actual_cng_vehicles"),
        constant("dataType", "yearwise"),
    ],
)

register_view(
    "cng_min_max_statewise",
    [
        year(),
        state(),
        integer("vehicleCount", "predicted_cng_vehicles"),
        money("cngPrice", "cng_fuel_price"),
        integer("actualVehicles", "actual_cng_vehicles"),
        constant("dataType", "statewise"),
    ],
)

register_view(
    "electric_min_max_yearwise",
    [
        year(),
        constant("state", "US"),
        integer("vehicleCount", "predicted_ev_vehicles"),
        integer("actualVehicles", "actual_ev_vehicles"),
        constant("dataType", "yearwise"),
    ],
)

register_view(
    "electric_min_max_statewise",
    [
        year(),
        state(),
        integer("vehicleCount", "predicted_ev_vehicles"),
        integer("actualVehicles", "actual_ev_vehicles"),
        constant("dataType", "statewise"),
    ],
)

register_view(
    "incentive_vehicles",
    [year(), integer("electricVehicles", "electric_vehicles"), integer("naturalGas", "natural_gas")],
)

register_view(
    "vehicle_consumption",
    [year(), integer("total_vehicle_consumption", "total_vehicle_consumption")],
)

register_view(
    "production_vs_consumption",
    [
        year(),
        integer("total_consumption", "total_consumption"),
        integer("total_production", "total_production"),
    ],
)

register_view("yearly_vehicle_consumption", [year(), integer("value", "total_vehicle_consumption")])

register_view("yearly_electric_vehicles", [year(), integer("value", "electric_vehicles")])

# ---------------- Outlook series (long format) ----------------
_OUTLOOK_FIELDS = [
    year(),
    text("Label", "label"),
    text("Sub_Label", "sub_label"),
    text("Case", "case"),
    text("Units", "units"),
    number("value", ["value", "total"]),
    number("min", ["min", "min_value"]),
    number("max", ["max", "max_value"]),
]

register_view("cng_bar_graph", _OUTLOOK_FIELDS)
register_view("cng_line_plot", _OUTLOOK_FIELDS)
register_view("electricity_line_plot", _OUTLOOK_FIELDS)
register_view("electricity_generation_line_plot", _OUTLOOK_FIELDS)

register_view(
    "electricity_fuel",
    [year(), text("Fuel", "fuel"), text("Case", "case"), text("Units", "units"), number("value", "value")],
)

register_view(
    "cng_capacity_predictions",
    [
        year(),
        state(),
        number("actual_capacity_tcf", "actual_capacity_tcf"),
        number("predicted_capacity_tcf", "predicted_capacity_tcf"),
        number("eia_baseline_tcf", "eia_baseline_tcf"),
    ],
)

register_view(
    "electric_capacity_predictions",
    [
        year(),
        state(),
        number("actual_capacity_mwh", "actual_capacity_mwh"),
        number("predicted_capacity_mwh", "predicted_capacity_mwh"),
        number("min_predicted_capacity_mwh", "min_predicted_capacity_mwh"),
        number("max_predicted_capacity_mwh", "max_predicted_capacity_mwh"),
    ],
)

# ---------------- Electricity ----------------
_FUEL_MIX = ["coal", "petroleum", "natural_gas", "other_fossil_gas", "nuclear", "hydroelectric", "other"]

register_view("electricity_capacity", [year()] + [number(k, k) for k in _FUEL_MIX])

register_view(
    "electricity_gen_cons",
    [year()]
    + [number(k, k) for k in _FUEL_MIX]
    + [number(k, k) for k in ["residential", "commercial", "industrial", "transportation", "direct_use"]],
)

register_view(
    "electricity_sales",
    [year(), state(), text("sector", "sector"), number("sales", ["sales", "value"]), number("price", "price")],
)

register_view(
    "electricity_statewise",
    [year(), state(), number("generation", ["generation", "value"]), number("consumption", "consumption")],
)

register_view(
    "overhead_using_electric",
    [
        year(),
        state(),
        number("gross_generation", "gross_generation"),
        number("net_generation", "net_generation"),
        number("overhead_to_grid", "overhead_to_grid"),
        number("using_from_grid", "using_from_grid"),
    ],
)

# ---------------- Emissions ----------------
register_view(
    "emissions",
    [
        year("year", ["model_year", "year"]),
        state(),
        text("pollutant", "pollutant_name"),
        text("certStatus", "emission_cert_status"),
        integer("count", ["count", "vehicle_count", "total"]),
    ],
)

# ---------------- Assistant ----------------
register_view(
    "llm_questions",
    [text("question", "question"), text("answer", "answer"), text("fuelType", "fuel_type")],
)
