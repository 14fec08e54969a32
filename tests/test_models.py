import pytest

from models import (
    Vehicle, FuelPool, DayAllocation, AllocationResult, DispenseRecord, FUEL_TYPES,
)


def test_pool_defaults_missing_fuels_to_zero():
    pool = FuelPool({"gasoline": 100})
    assert pool.initial == {"gasoline": 100.0, "ethanol": 0.0, "common_diesel": 0.0, "diesel_s10": 0.0}
    assert pool.is_empty("ethanol")


def test_pool_debit_never_goes_negative():
    pool = FuelPool({"gasoline": 10})
    assert pool.debit("gasoline", 7) == 7
    assert pool.debit("gasoline", 7) == pytest.approx(3)
    assert pool.available("gasoline") == 0.0
    assert pool.debit("gasoline", 5) == 0.0
    assert pool.dispensed("gasoline") == pytest.approx(10)


def test_pool_clears_float_dust():
    pool = FuelPool({"ethanol": 0.3})
    pool.debit("ethanol", 0.1)
    pool.debit("ethanol", 0.2 - 1e-12)
    assert pool.is_empty("ethanol")


def test_vehicle_is_immutable():
    van = Vehicle("ABC1D23", 50, "gasoline")
    with pytest.raises(AttributeError):
        van.tank_capacity = 60
    assert van.fuel_label == "Gasoline"


def test_day_allocation_accumulates():
    day = DayAllocation(day=1, quantities={"A": 0.0, "B": 0.0})
    day.add("A", 40)
    day.add("A", 8)
    assert day.get("A") == 48
    assert day.get("B") == 0.0
    assert day.total == 48


def test_result_totals():
    vehicles = [Vehicle("A", 50, "gasoline"), Vehicle("B", 60, "ethanol")]
    days = [DayAllocation(1, {"A": 45.0, "B": 0.0}), DayAllocation(2, {"A": 0.0, "B": 50.0})]
    records = [DispenseRecord(1, "A", "gasoline", 45.0), DispenseRecord(2, "B", "ethanol", 50.0)]
    result = AllocationResult(
        vehicles=vehicles, days=days, records=records,
        initial_volumes={"gasoline": 45.0, "ethanol": 52.0, "common_diesel": 0.0, "diesel_s10": 0.0},
        leftover={"gasoline": 0.0, "ethanol": 2.0, "common_diesel": 0.0, "diesel_s10": 0.0},
    )

    assert result.horizon_days == 2
    assert not result.complete
    assert result.vehicle_total("A") == 45.0
    assert result.dispensed_by_fuel() == {"gasoline": 45.0, "ethanol": 50.0, "common_diesel": 0.0, "diesel_s10": 0.0}
    assert [(r["day"], r["plate"]) for r in result.rows()] == [(1, "A"), (1, "B"), (2, "A"), (2, "B")]
    assert set(result.dispensed_by_fuel()) == set(FUEL_TYPES)
