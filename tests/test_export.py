import asyncio
import datetime as dt

import pytest

from core.envelope import ParameterError
from core.export import PLANT_HEADERS, STATION_HEADERS, ExportRequest, export_csv, to_frame

TODAY = dt.date(2024, 5, 17)


def test_request_defaults_and_validation():
    req = ExportRequest.from_params({})
    assert (req.type, req.vehicle_type, req.aggregation) == ("all", "cng", "statewise")
    with pytest.raises(ParameterError):
        ExportRequest.from_params({"aggregationType": "daily"})


@pytest.mark.parametrize(
    "params,filename",
    [
        ({"type": "stations"}, "fuel_stations_2024-05-17.csv"),
        ({"type": "vehicles", "vehicleType": "electric"}, "electric_statewise_forecast_2024-05-17.csv"),
        ({"type": "vehicles", "vehicleType": "hybrid", "aggregationType": "cumulative"}, "electric_cumulative_forecast_2024-05-17.csv"),
        ({"type": "plants"}, "production_plants_2024-05-17.csv"),
        ({}, "cummins_data_2024-05-17.csv"),
    ],
)
def test_filenames(params, filename):
    assert ExportRequest.from_params(params).filename(TODAY) == filename


def test_sections_per_type():
    assert [s.query for s in ExportRequest("all").sections()] == ["fuel_stations_csv", "cng_statewise"]
    assert [s.query for s in ExportRequest("plants").sections()] == ["production_plants_csv"]
    assert ExportRequest("vehicles", "electric", "cumulative").sections()[0].query == "electric_vehicle_line_chart"


def test_to_frame_resolves_case_insensitively():
    frame = to_frame([{"vendor": "Acme", "LATITUDE": 40.5, "State": None}], PLANT_HEADERS)
    assert list(frame.columns) == list(PLANT_HEADERS)
    row = frame.iloc[0].to_dict()
    assert row["Vendor"] == "Acme"
    assert row["Latitude"] == 40.5
    assert row["State"] == ""
    assert row["Operator"] == ""


def test_all_export_separates_sections_with_blank_line(make_source):
    source = make_source(
        {
            "fuel_stations_csv": [{"Fuel_Type_Code": "ELEC", "Station_Name": 'Lot "A", North'}],
            "cng_statewise": [{"year": "2024", "state": "OH", "cng_fuel_price": "2.9"}],
        }
    )
    content, filename = asyncio.run(export_csv(source, ExportRequest("all"), today=TODAY))
    assert filename == "cummins_data_2024-05-17.csv"
    stations, vehicles = content.split("\n\n")
    assert stations.splitlines()[0] == ",".join(STATION_HEADERS)
    assert stations.splitlines()[1].startswith('ELEC,"Lot ""A"", North",')
    assert vehicles.splitlines() == [
        "Year,State,CNG_Fuel_Price,Predicted_CNG_Vehicles,Actual_CNG_Vehicles,Fuel_Type",
        "2024,OH,2.9,,,",
    ]
    assert ("cng_statewise", {"year": None}) in source.calls


def test_empty_section_still_has_headers(make_source):
    content, _ = asyncio.run(export_csv(make_source(), ExportRequest("plants"), today=TODAY))
    assert content == ",".join(PLANT_HEADERS) + "\n"
