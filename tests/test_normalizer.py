import pytest

from core.fields import ViewSpec, category, constant, coordinate, integer, lower, money, number, text, year
from core.normalizer import apply_view, coerce_field, normalize_record, normalize_records
from core.views import VIEWS

SALES = ViewSpec(
    name="test_sales",
    fields=(
        year(),
        category("state", ["State"]),
        integer("vehicleCount", ["Vehicle_Count", "vehicle_count"]),
        money("price", "price"),
        category("fuelType", "fuel_type_code", transform=lower),
        constant("source", "warehouse"),
    ),
)

STATIONS = ViewSpec(
    name="test_stations",
    fields=(
        coordinate("lat", "Latitude"),
        coordinate("lng", "Longitude"),
        text("name", "Station_Name"),
    ),
    drop_incomplete=True,
)


@pytest.mark.parametrize(
    "record",
    [
        {},
        {"year": "2020"},
        {"State": "OH", "extra": "ignored"},
        {"year": "x", "Vehicle_Count": "12", "price": "", "fuel_type_code": None},
    ],
)
def test_key_set_always_matches_view(record):
    out = normalize_record(record, SALES)
    assert list(out) == list(SALES.keys)


@pytest.mark.parametrize("view", sorted(VIEWS.values(), key=lambda v: v.name), ids=lambda v: v.name)
def test_registered_views_produce_declared_keys(view):
    assert list(normalize_record({"unrelated": 1}, view)) == list(view.keys)


def test_case_insensitive_lookup():
    assert normalize_record({"State": "OH"}, SALES) == normalize_record({"state": "OH"}, SALES)
    assert normalize_record({"STATE": "OH"}, SALES)["state"] == "OH"


def test_default_substitution():
    out = normalize_record({"year": "not-a-number", "price": ""}, SALES)
    assert out["year"] == 0
    assert out["price"] is None
    assert out["vehicleCount"] == 0
    assert out["state"] == ""
    assert out["source"] == "warehouse"


def test_integer_truncates_decimal_strings():
    assert normalize_record({"Vehicle_Count": "41.9"}, SALES)["vehicleCount"] == 41


def test_transform_applies_only_to_found_values():
    view = ViewSpec(name="t", fields=(category("fuel", "code", default="UNKNOWN", transform=lower),))
    assert normalize_record({"code": "ELEC"}, view)["fuel"] == "elec"
    assert normalize_record({}, view)["fuel"] == "UNKNOWN"


def test_failing_transform_falls_back_to_default():
    def boom(value):
        raise RuntimeError("bad")

    spec = text("name", "name", default="?", transform=boom)
    assert coerce_field({"name": "x"}, spec) == "?"


def test_choices_reject_unknown_values():
    spec = category("kind", "kind", default="other", choices=("a", "b"))
    assert coerce_field({"kind": "a"}, spec) == "a"
    assert coerce_field({"kind": "z"}, spec) == "other"


def test_zero_is_not_replaced_by_default():
    spec = integer("n", "n", default=None)
    assert coerce_field({"n": "0"}, spec) == 0
    assert coerce_field({"n": "abc"}, spec) is None


def test_normalization_is_idempotent():
    raw = {"YEAR": "2021", "state": " CA ", "vehicle_count": "1,200", "price": "2.35", "fuel_type_code": "CNG"}
    once = normalize_record(raw, SALES)
    assert normalize_record(once, SALES) == once


@pytest.mark.parametrize("name", ["fuel_stations", "cng_vehicle_line_chart", "cng_min_max_statewise", "llm_questions"])
def test_registered_views_are_idempotent(name):
    view = VIEWS[name]
    raw = {
        "Latitude": "40.1",
        "Longitude": "-83.0",
        "ID": "17",
        "Fuel_Type_Code": "ELEC",
        "Station_Name": "Main St",
        "State": "OH",
        "year": "2024",
        "actual_cng_vehicles": "10",
        "predicted_cng_vehicles": "12.7",
        "cng_price": "2.1",
        "CMI_VIN": "5",
        "question": "Q?",
        "answer": "A.",
        "fuel_type": "cng",
    }
    once = normalize_record(raw, view)
    assert normalize_record(once, view) == once


def test_order_and_count_preserved():
    rows = [{"year": str(y)} for y in (2022, 2020, 2021)]
    out = normalize_records(rows, SALES)
    assert [r["year"] for r in out] == [2022, 2020, 2021]


def test_index_key_is_attached():
    out = normalize_records([{"year": "2020"}, {"year": "2021"}], SALES, index_key="rowNumber")
    assert [r["rowNumber"] for r in out] == [0, 1]


def test_one_bad_row_does_not_break_batch():
    rows = [{"year": "2020", "Vehicle_Count": "5"}, {"year": object(), "Vehicle_Count": ["x"]}, {"year": "2022"}]
    out = normalize_records(rows, SALES)
    assert len(out) == 3
    assert out[1]["year"] == 0
    assert out[1]["vehicleCount"] == 0


def test_map_view_drops_records_missing_a_coordinate():
    rows = [
        {"Latitude": "40.0", "Longitude": "-83.0", "Station_Name": "a"},
        {"Latitude": "41.0", "Station_Name": "b"},
        {"Latitude": "", "Longitude": "-80", "Station_Name": "c"},
        {"Latitude": "42.0", "Longitude": "-84.5", "Station_Name": "d"},
    ]
    out = apply_view(rows, STATIONS)
    assert [r["name"] for r in out] == ["a", "d"]
    assert len(out) <= len(rows)


def test_non_map_view_keeps_everything():
    view = ViewSpec(name="plain", fields=(number("lat", "Latitude"),))
    assert len(apply_view([{}, {"Latitude": "1"}], view)) == 2


def test_station_id_falls_back_to_name_when_id_is_blank():
    view = VIEWS["fuel_stations"]
    row = {"ID": "", "Station_Name": "Main St", "Latitude": "40", "Longitude": "-83", "Fuel_Type_Code": "ELEC"}
    out = normalize_record(row, view)
    assert out["station_id"] == "Main St"
    assert normalize_record(dict(row, ID="1517"), view)["station_id"] == "1517"
