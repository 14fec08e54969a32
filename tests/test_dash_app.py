import pytest
from dash import dcc, dash_table

from dash_app import (
    app, parse_number_list, run_distribution, render_result, download_csv, run_mileage,
    add_vehicle, ERROR_STYLE, WARNING_STYLE,
)


def test_parse_number_list():
    assert parse_number_list("40, 35.5; 42\n10") == [40.0, 35.5, 42.0, 10.0]
    assert parse_number_list("") == []
    assert parse_number_list(None) == []


def test_parse_number_list_rejects_text():
    with pytest.raises(ValueError):
        parse_number_list("40, lots")


def test_layout_has_form_inputs():
    layout = str(app.layout)
    for component_id in ("vehicle-table", "horizon-days", "randomize-days", "volume-gasoline", "run-btn"):
        assert component_id in layout


VANS = [
    {"plate": "ABC1D23", "tank_capacity": 50, "fuel_type": "gasoline"},
    {"plate": "XYZ9K87", "tank_capacity": 60, "fuel_type": "ethanol"},
]


def messages_of(component):
    return [p.children for p in component.children]


@pytest.fixture
def store():
    # volumes in FUEL_TYPES order: gasoline, ethanol, common diesel, diesel S10
    data, banner = run_distribution(1, VANS, 10, ["yes"], 7, 300, 200, 0, 0)
    assert banner.children == []
    return data


def test_invalid_form_does_not_run():
    rows = [{"plate": "", "tank_capacity": 0, "fuel_type": "gasoline"}]
    data, box = run_distribution(1, rows, 0, [], None, 100, 0, 0, 0)

    assert data is None
    assert box.style == ERROR_STYLE
    errors = messages_of(box)
    assert "❌ Vehicle 1: the plate is required" in errors
    assert "❌ The number of days in the month must be at least 1" in errors


def test_leftover_shows_warning_banner():
    data, messages = run_distribution(1, VANS[:1], 5, [], 1, 3, 0, 0, 0)

    assert data is not None
    banner = messages.children[0]
    assert banner.style == WARNING_STYLE
    assert "Gasoline: 3.00 L" in banner.children


def test_store_contents(store):
    assert list(store["tables"]) == ["ABC1D23", "XYZ9K87"]
    totals = {plate: rows[-1]["Quantity (L)"] for plate, rows in store["tables"].items()}
    assert sum(totals.values()) == pytest.approx(500.0, abs=0.05)
    assert store["events"][0]["Event"] == "SIM_START"


def test_each_result_tab_renders(store):
    vehicles = render_result("vehicles", store)
    assert [block.children[0].children for block in vehicles.children] == ["Plate: ABC1D23", "Plate: XYZ9K87"]

    assert isinstance(render_result("chart", store), dcc.Graph)

    fuel = render_result("fuel", store)
    assert isinstance(fuel, dash_table.DataTable)
    assert [c["id"] for c in fuel.columns] == ["Fuel", "Available (L)", "Dispensed (L)", "Leftover (L)"]

    events = render_result("events", store)
    assert events.children[1].data == store["events"]


def test_render_without_result():
    assert render_result("vehicles", None).children == "Fill in the form and generate a distribution."


def test_download_csv(store):
    sent = download_csv(1, store)
    assert sent["filename"] == "fuel_distribution.csv"
    assert sent["content"].splitlines()[0] == "Plate,Day,Fuel Type,Quantity (L)"
    assert "ABC1D23" in sent["content"]
    assert download_csv(1, None) is None


def test_add_vehicle_appends_blank_row():
    rows = add_vehicle(1, list(VANS))
    assert len(rows) == 3
    assert rows[-1]["plate"] == ""


def test_mileage_table():
    out = run_mileage(1, 1000, 10, "40, 30", "")
    table = out.children[0]
    assert [c["id"] for c in table.columns] == ["Liters", "km/L", "Total km", "Final km"]
    assert len(table.data) == 2
    assert table.data[0]["Liters"] == 40.0


@pytest.mark.parametrize("start, average, volumes, message", [
    (0, 10, "", "❌ Add at least one refuel"),
    (0, -1, "40", "❌ The average km/L must be 0 or more"),
    (-5, 10, "40", "❌ The starting odometer must be 0 or more"),
    (0, 10, "40, lots", "❌ Volumes and km/L values must be numbers"),
    (0, 10, "40, -2", "❌ Refuel volumes must be 0 or more"),
])
def test_mileage_errors(start, average, volumes, message):
    out = run_mileage(1, start, average, volumes, "")
    assert out.style == ERROR_STYLE
    assert message in messages_of(out)
