import asyncio

import pytest

from core.endpoints import get_endpoint
from core.envelope import ParameterError, SourceError
from core.service import run_endpoint, run_path


def run(path, params, source, settings):
    return asyncio.run(run_endpoint(get_endpoint(path), params, source, settings=settings))


def test_success_envelope(settings, make_source):
    source = make_source({"vehicle_data": [{"State": "OH", "Vehicle_Count": "12"}, {"state": "CA"}]})
    payload = run("vehicle-data", {}, source, settings)
    assert payload["success"] is True
    assert payload["count"] == 2
    assert payload["data"][0]["state"] == "OH"
    assert payload["data"][0]["vehicleCount"] == 12
    assert payload["data"][1]["vehicleCount"] == 0


def test_missing_parameter_fails_before_any_fetch(settings, make_source):
    source = make_source()
    with pytest.raises(ParameterError):
        run("fuel-station-concentration/count", {}, source, settings)
    assert source.calls == []


def test_invalid_parameter_fails_before_any_fetch(settings, make_source):
    source = make_source()
    with pytest.raises(ParameterError):
        run("vehicle-data-for-min-max", {"year": "soon"}, source, settings)
    assert source.calls == []


def test_source_failure_becomes_source_error(settings, make_source):
    source = make_source(failures={"vehicle_data": ConnectionError("warehouse unreachable")})
    with pytest.raises(SourceError) as err:
        run("vehicle-data", {}, source, settings)
    assert err.value.message == "Failed to fetch vehicle data"
    assert err.value.details == "warehouse unreachable"


def test_fan_out_fetches_all_series(settings, make_source):
    source = make_source(
        {
            "cng_yearwise": [{"year": "2030", "predicted_cng_vehicles": "500"}],
            "cng_statewise": [
                {"year": "2030", "state": "US", "predicted_cng_vehicles": "200"},
                {"year": "2030", "state": "OH", "predicted_cng_vehicles": "30"},
                {"year": "2030", "state": "OH", "predicted_cng_vehicles": "10"},
            ],
        }
    )
    payload = run("vehicle-min-max-summary", {"fuel": "cng", "year": "all"}, source, settings)
    assert sorted(source.queries) == ["cng_statewise", "cng_yearwise"]
    assert all(params == {"year": None} for _, params in source.calls)
    assert payload["fuel"] == "cng"
    assert payload["data"] == [
        {"year": 2030, "state": "US", "min": 200, "max": 500},
        {"year": 2030, "state": "OH", "min": 10, "max": 30},
    ]


def test_fan_out_failure_returns_no_partial_data(settings, make_source):
    source = make_source(
        {"electric_yearwise": [{"year": "2030", "predicted_ev_vehicles": "5"}]},
        failures={"electric_statewise": TimeoutError("statewise timed out")},
    )
    with pytest.raises(SourceError) as err:
        run("vehicle-min-max-summary", {"fuel": "electric"}, source, settings)
    assert err.value.details == "statewise timed out"


def test_forecast_extremes_endpoint(settings, make_source):
    source = make_source(
        {
            "cng_statewise": [
                {"year": "2026", "state": "OH", "predicted_cng_vehicles": "40"},
                {"year": "2024", "state": "OH", "predicted_cng_vehicles": "1"},
                {"year": "2025", "state": "OH", "predicted_cng_vehicles": "60"},
                {"year": "2027", "state": "OH", "predicted_cng_vehicles": "0"},
            ]
        }
    )
    payload = run("forecast-extremes", {}, source, settings)
    assert payload["data"] == [{"state": "OH", "minYear": 2026, "minValue": 40, "maxYear": 2025, "maxValue": 60}]


def test_min_max_echoes_data_type(settings, make_source):
    source = make_source({"cng_yearwise": [{"year": "2020", "predicted_cng_vehicles": "7", "cng_price": "2.5"}]})
    payload = run("vehicle-data-for-min-max", {"dataType": "yearwise", "year": "2020"}, source, settings)
    assert source.calls == [("cng_yearwise", {"year": 2020})]
    assert payload["dataType"] == "yearwise"
    assert payload["data"][0]["state"] == "US"
    assert payload["data"][0]["cngPrice"] == 2.5


def test_llm_questions_row_numbers(settings, make_source):
    source = make_source({"llm_questions": [{"question": "a"}, {"question": "b"}]})
    payload = run("llm-questions", {"fuelType": "cng"}, source, settings)
    assert source.calls == [("llm_questions", {"fuel_type": "cng"})]
    assert [r["rowNumber"] for r in payload["data"]] == [0, 1]


def test_map_endpoint_filters_rows(settings, make_source):
    source = make_source(
        {
            "production_plants_csv": [
                {"Vendor": "A", "Latitude": "40", "Longitude": "-80"},
                {"vendor": "B", "Latitude": "41"},
            ]
        }
    )
    payload = run("production-plants", {}, source, settings)
    assert payload["count"] == 1
    assert payload["data"][0]["vendor"] == "A"


def test_run_path_sync_wrapper(settings, make_source):
    source = make_source({"incentive_vehicles": [{"year": "2019", "electric_vehicles": "3", "natural_gas": "4"}]})
    payload = run_path("incentives-vehicle-data", None, source, settings=settings)
    assert payload["data"] == [{"year": 2019, "electricVehicles": 3, "naturalGas": 4}]
