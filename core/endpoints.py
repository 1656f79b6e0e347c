"""Declarative endpoint catalog.

An endpoint names its query parameters, one or more fetch plans (picked by a
selector parameter when the route serves several shapes), the view applied to
the fetched rows, optional post-normalization steps and the cache lifetime.
Every reference is checked when the catalog is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from core.aggregate import forecast_extremes, min_max_by_year_state, sort_records
from core.config import Settings
from core.envelope import NO_STORE, ONE_DAY, ONE_HOUR, CachePolicy, ParameterError
from core.fields import ViewSpecError
from core.sources import QUERIES
from core.views import VIEWS

DEFAULT_PLAN = "default"
ALL = "all"

INT = "int"
STR = "str"

Records = List[Dict[str, Any]]
PostStep = Callable[[Records, Settings], Records]


@dataclass(frozen=True)
class Param:
    """One query-string parameter.

    ``target`` is the name the Row Source expects (defaults to ``name``).
    With ``all_sentinel`` the literal ``all`` means "no filter" (``None``).
    """

    name: str
    target: Optional[str] = None
    type: str = STR
    required: bool = False
    default: Any = None
    choices: Tuple[str, ...] = ()
    all_sentinel: bool = False

    @property
    def fetch_name(self) -> str:
        return self.target or self.name

    def parse(self, raw: Optional[str]) -> Any:
        value = raw.strip() if isinstance(raw, str) else raw
        if value in (None, ""):
            return self.default
        if self.all_sentinel and str(value).lower() == ALL:
            return None
        if self.choices and value not in self.choices:
            raise ParameterError(
                f"Invalid value for {self.name}: '{value}'. Expected one of: {', '.join(self.choices)}"
            )
        if self.type == INT:
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ParameterError(f"Invalid value for {self.name}: '{value}' is not an integer") from None
        return value


@dataclass(frozen=True)
class Plan:
    view: str
    fetch: Tuple[str, ...]
    post: Tuple[PostStep, ...] = ()
    extras: Mapping[str, Any] = field(default_factory=dict)
    views: Tuple[str, ...] = ()

    def view_for(self, index: int) -> str:
        """View applied to the rows of the ``index``-th fetch; ``view`` unless overridden."""
        return self.views[index] if self.views else self.view


@dataclass(frozen=True)
class Endpoint:
    path: str
    plans: Mapping[str, Plan]
    error: str
    params: Tuple[Param, ...] = ()
    select: Optional[str] = None
    cache: Optional[CachePolicy] = ONE_HOUR
    index_key: Optional[str] = None
    missing_message: Optional[str] = None
    echo: Tuple[str, ...] = ()
    echo_key: Optional[str] = None

    def parse_params(self, raw: Mapping[str, Optional[str]]) -> Dict[str, Any]:
        """Parse raw query values; raises ParameterError before anything is fetched."""
        missing = [p.name for p in self.params if p.required and not (raw.get(p.name) or "").strip()]
        if missing:
            raise ParameterError(self.missing_message or f"Missing required parameter: {', '.join(missing)}")
        return {p.name: p.parse(raw.get(p.name)) for p in self.params}

    def plan_for(self, values: Mapping[str, Any]) -> Plan:
        if self.select is None:
            return self.plans[DEFAULT_PLAN]
        key = values.get(self.select)
        if key not in self.plans:
            raise ParameterError(f"Unsupported {self.select}: '{key}'")
        return self.plans[key]

    def fetch_params(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return {p.fetch_name: values.get(p.name) for p in self.params if p.name != self.select}

    def extras(self, values: Mapping[str, Any], plan: Plan) -> Dict[str, Any]:
        out: Dict[str, Any] = dict(plan.extras)
        echoed = {name: values.get(name) for name in self.echo}
        if self.echo_key:
            out[self.echo_key] = echoed
        else:
            out.update(echoed)
        return out

    @property
    def cache_header(self) -> str:
        return self.cache.header() if self.cache is not None else NO_STORE


ENDPOINTS: Dict[str, Endpoint] = {}


def _validate(endpoint: Endpoint) -> None:
    if not endpoint.plans:
        raise ViewSpecError(f"Endpoint '{endpoint.path}' declares no plans.")
    names = [p.name for p in endpoint.params]
    if len(names) != len(set(names)):
        raise ViewSpecError(f"Endpoint '{endpoint.path}' declares a parameter twice.")
    if endpoint.select is None and DEFAULT_PLAN not in endpoint.plans:
        raise ViewSpecError(f"Endpoint '{endpoint.path}' needs a '{DEFAULT_PLAN}' plan or a selector.")
    if endpoint.select is not None and endpoint.select not in names:
        raise ViewSpecError(f"Endpoint '{endpoint.path}' selects on undeclared parameter '{endpoint.select}'.")
    for name in endpoint.echo:
        if name not in names:
            raise ViewSpecError(f"Endpoint '{endpoint.path}' echoes undeclared parameter '{name}'.")
    for key, plan in endpoint.plans.items():
        if plan.view not in VIEWS:
            raise ViewSpecError(f"Endpoint '{endpoint.path}' plan '{key}' uses unknown view '{plan.view}'.")
        if plan.views and len(plan.views) != len(plan.fetch):
            raise ViewSpecError(f"Endpoint '{endpoint.path}' plan '{key}' needs one view per fetch.")
        for view in plan.views:
            if view not in VIEWS:
                raise ViewSpecError(f"Endpoint '{endpoint.path}' plan '{key}' uses unknown view '{view}'.")
        if not plan.fetch:
            raise ViewSpecError(f"Endpoint '{endpoint.path}' plan '{key}' fetches nothing.")
        for query in plan.fetch:
            if query not in QUERIES:
                raise ViewSpecError(f"Endpoint '{endpoint.path}' plan '{key}' uses unknown query '{query}'.")


def register_endpoint(
    path: str,
    plans: Union[Plan, Mapping[str, Plan]],
    error: str,
    **kw: Any,
) -> Endpoint:
    if path in ENDPOINTS:
        raise ViewSpecError(f"Endpoint '{path}' is already registered.")
    if isinstance(plans, Plan):
        plans = {DEFAULT_PLAN: plans}
    endpoint = Endpoint(path=path, plans=dict(plans), error=error, **kw)
    _validate(endpoint)
    ENDPOINTS[path] = endpoint
    return endpoint


def get_endpoint(path: str) -> Endpoint:
    try:
        return ENDPOINTS[path.strip("/")]
    except KeyError:
        raise KeyError(f"Unknown endpoint '{path}'") from None


def simple(view: str, *queries: str, post: Sequence[PostStep] = (), **extras: Any) -> Plan:
    return Plan(view=view, fetch=tuple(queries) or (view,), post=tuple(post), extras=extras)


# ---------------- Post-normalization steps ----------------
def vehicle_min_max(records: Records, settings: Settings) -> Records:
    return min_max_by_year_state(records, "vehicleCount")


def vehicle_forecast_extremes(records: Records, settings: Settings) -> Records:
    ordered = sort_records(records, ["state", "year"])
    return forecast_extremes(ordered, "vehicleCount", from_year=settings.forecast_current_year)


# ---------------- Parameters ----------------
YEAR_ALL = Param("year", type=INT, default=None, all_sentinel=True)
OPTIONAL_STATE = Param("state")
OPTIONAL_LABEL = Param("label")
FUEL = Param("fuel", default="cng", choices=("cng", "electric"))


# ---------------- Infrastructure ----------------
register_endpoint("fuel-stations", simple("fuel_stations", "fuel_stations_csv"), "Failed to fetch fuel stations")

register_endpoint(
    "fuel-station-concentration",
    simple("fuel_station_concentration"),
    "Failed to fetch fuel station concentration data",
    params=(
        Param("year", type=INT, required=True),
        Param("state", required=True),
        Param("fuelType", target="fuel_type", required=True),
    ),
    missing_message="Missing required parameters: year, state, and fuelType",
    echo=("year", "state", "fuelType"),
    echo_key="filters",
)

register_endpoint(
    "fuel-station-concentration/count",
    simple("fuel_station_count", "fuel_station_count_by_state"),
    "Failed to fetch fuel station count data",
    params=(Param("fuelType", target="fuel_type", required=True),),
    missing_message="Missing required parameter: fuelType",
    echo=("fuelType",),
)

register_endpoint("production-plants", simple("production_plants", "production_plants_csv"), "Failed to fetch production plants")
register_endpoint("cng-production-plants", simple("cng_production_plants"), "Failed to fetch CNG production plants")
register_endpoint(
    "electric-production-plants", simple("electric_production_plants"), "Failed to fetch electric production plants"
)
register_endpoint("cng-pipelines", simple("cng_pipelines"), "Failed to fetch CNG pipelines", cache=ONE_DAY)
register_endpoint(
    "cng-production-by-state",
    simple("production_by_state", "cng_production_by_state"),
    "Failed to fetch CNG production by state",
)
register_endpoint(
    "production-map",
    {
        "cng": simple("production_map", "cng_production_statewise"),
        "electric": simple("production_map", "electric_production_statewise"),
    },
    "Failed to fetch production map data",
    params=(Param("type", default="cng", choices=("cng", "electric")),),
    select="type",
    echo=("type",),
)

# ---------------- Vehicles ----------------
register_endpoint("vehicle-data", simple("vehicle_data"), "Failed to fetch vehicle data")
register_endpoint(
    "cng-vehicle-data-line-chart", simple("cng_vehicle_line_chart"), "Failed to fetch CNG vehicle data"
)
register_endpoint(
    "electric-vehicle-data-line-chart",
    simple("electric_vehicle_line_chart"),
    "Failed to fetch electric vehicle data",
)
register_endpoint(
    "cng-vehicle-data-line-chart-statewise",
    simple("cng_statewise_line_chart"),
    "Failed to fetch statewise CNG vehicle data",
    params=(YEAR_ALL,),
)

_DATA_TYPE = Param("dataType", default="statewise", choices=("yearwise", "statewise"))

register_endpoint(
    "vehicle-data-for-min-max",
    {
        "yearwise": simple("cng_min_max_yearwise", "cng_yearwise"),
        "statewise": simple("cng_min_max_statewise", "cng_statewise"),
    },
    "Failed to fetch vehicle data",
    params=(YEAR_ALL, _DATA_TYPE),
    select="dataType",
    echo=("dataType",),
)

register_endpoint(
    "hybrid-data-for-min-max",
    {
        "yearwise": simple("electric_min_max_yearwise", "electric_yearwise"),
        "statewise": simple("electric_min_max_statewise", "electric_statewise"),
    },
    "Failed to fetch hybrid vehicle data",
    params=(YEAR_ALL, _DATA_TYPE),
    select="dataType",
    echo=("dataType",),
    cache=ONE_DAY,
)

register_endpoint(
    "vehicle-min-max-summary",
    {
        "cng": Plan(
            view="cng_min_max_statewise",
            fetch=("cng_yearwise", "cng_statewise"),
            views=("cng_min_max_yearwise", "cng_min_max_statewise"),
            post=(vehicle_min_max,),
        ),
        "electric": Plan(
            view="electric_min_max_statewise",
            fetch=("electric_yearwise", "electric_statewise"),
            views=("electric_min_max_yearwise", "electric_min_max_statewise"),
            post=(vehicle_min_max,),
        ),
    },
    "Failed to fetch vehicle min/max summary",
    params=(YEAR_ALL, FUEL),
    select="fuel",
    echo=("fuel",),
)

register_endpoint(
    "forecast-extremes",
    {
        "cng": simple("cng_min_max_statewise", "cng_statewise", post=[vehicle_forecast_extremes]),
        "electric": simple("electric_min_max_statewise", "electric_statewise", post=[vehicle_forecast_extremes]),
    },
    "Failed to compute forecast extremes",
    params=(YEAR_ALL, FUEL),
    select="fuel",
    echo=("fuel",),
)

register_endpoint(
    "incentives-vehicle-data", simple("incentive_vehicles"), "Failed to fetch incentives vehicle data"
)
register_endpoint(
    "vehicle-consumption-bar-graph", simple("vehicle_consumption"), "Failed to fetch vehicle consumption data"
)
register_endpoint(
    "production-vs-consumption-bar-graph",
    simple("production_vs_consumption"),
    "Failed to fetch production vs consumption data",
)
register_endpoint("vishnu-bar-data", simple("yearly_vehicle_consumption"), "Failed to fetch bar data")
register_endpoint("vishnu-line-data", simple("yearly_electric_vehicles"), "Failed to fetch line data")

# ---------------- Outlook & predictions ----------------
register_endpoint(
    "cng-bar-graph", simple("cng_bar_graph"), "Failed to fetch CNG bar graph data", params=(OPTIONAL_LABEL,)
)
register_endpoint(
    "cng-line-plot", simple("cng_line_plot"), "Failed to fetch CNG line plot data", params=(OPTIONAL_LABEL,)
)
register_endpoint(
    "electricity-line-plot",
    simple("electricity_line_plot"),
    "Failed to fetch electricity line plot data",
    params=(OPTIONAL_LABEL,),
)
register_endpoint(
    "electricity-fuel-bar-graph", simple("electricity_fuel"), "Failed to fetch electricity fuel data"
)
register_endpoint(
    "electricity-generation-line-plot",
    simple("electricity_generation_line_plot"),
    "Failed to fetch electricity generation data",
)
register_endpoint(
    "cng-capacity-predictions",
    simple("cng_capacity_predictions"),
    "Failed to fetch CNG prediction data",
    params=(Param("state", default="CA"),),
)
register_endpoint(
    "electric-capacity-predictions",
    simple("electric_capacity_predictions"),
    "Failed to fetch electric prediction data",
    params=(Param("state", default="CA"),),
)

# ---------------- Electricity ----------------
register_endpoint("electricity-capacity", simple("electricity_capacity"), "Failed to fetch electricity capacity")
register_endpoint(
    "electricity-gen-cons", simple("electricity_gen_cons"), "Failed to fetch electricity generation/consumption"
)
register_endpoint("electricity-sales", simple("electricity_sales"), "Failed to fetch electricity sales")
register_endpoint(
    "electricity-statewise", simple("electricity_statewise"), "Failed to fetch statewise electricity data"
)
register_endpoint(
    "overhead-using-electric", simple("overhead_using_electric"), "Failed to fetch overhead data"
)

# ---------------- Emissions ----------------
register_endpoint(
    "emission-bar-graph", simple("emissions", "cumulative_emissions"), "Failed to fetch emission data"
)
register_endpoint(
    "emission-bar-graph-statewise",
    simple("emissions", "statewise_emissions"),
    "Failed to fetch statewise emission data",
    params=(OPTIONAL_STATE,),
)

# ---------------- Assistant ----------------
register_endpoint(
    "llm-questions",
    simple("llm_questions"),
    "Failed to fetch questions",
    params=(Param("fuelType", target="fuel_type"),),
    cache=None,
    index_key="rowNumber",
)
