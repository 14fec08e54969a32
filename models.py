"""
Data Models - Fleet fuel distribution

- Vehicle: plate, tank capacity (liters), fuel type
- FuelPool: remaining liters per fuel type, never negative
- DispenseRecord: one debit credited to a vehicle on a day
- DayAllocation / AllocationResult: the day-by-day grid handed to the UI
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# ------------------------- FUEL TYPES -------------------------
GASOLINE, ETHANOL, COMMON_DIESEL, DIESEL_S10 = (
    "gasoline", "ethanol", "common_diesel", "diesel_s10"
)
FUEL_TYPES = (GASOLINE, ETHANOL, COMMON_DIESEL, DIESEL_S10)

FUEL_LABELS = {
    GASOLINE: "Gasoline",
    ETHANOL: "Ethanol",
    COMMON_DIESEL: "Common Diesel",
    DIESEL_S10: "Diesel S10",
}

# Phases a dispense can come from
DAILY, DRAIN, FOLD = "daily", "drain", "fold"


@dataclass(frozen=True)
class Vehicle:
    """A fleet vehicle. Immutable for the duration of a run."""
    plate: str
    tank_capacity: float     # Liters
    fuel_type: str           # One of FUEL_TYPES

    @property
    def fuel_label(self) -> str:
        return FUEL_LABELS.get(self.fuel_type, self.fuel_type)


class FuelPool:
    """Remaining liters per fuel type, shared by both allocation phases."""

    def __init__(self, volumes: Optional[Dict[str, float]] = None):
        volumes = volumes or {}
        self.initial: Dict[str, float] = {
            fuel: max(0.0, float(volumes.get(fuel, 0.0) or 0.0)) for fuel in FUEL_TYPES
        }
        self.remaining: Dict[str, float] = dict(self.initial)

    def available(self, fuel_type: str) -> float:
        return self.remaining.get(fuel_type, 0.0)

    def debit(self, fuel_type: str, quantity: float) -> float:
        """Take up to `quantity` liters out of the pool and return what was taken."""
        taken = min(max(0.0, quantity), self.remaining[fuel_type])
        left = self.remaining[fuel_type] - taken
        # Float subtraction can leave dust like 1e-13 behind; treat it as empty
        self.remaining[fuel_type] = left if left > 1e-9 else 0.0
        return taken

    def dispensed(self, fuel_type: str) -> float:
        return self.initial[fuel_type] - self.remaining[fuel_type]

    def is_empty(self, fuel_type: str) -> bool:
        return self.remaining[fuel_type] <= 0.0

    def __repr__(self):
        vols = ", ".join(f"{f}={v:,.2f}" for f, v in self.remaining.items())
        return f"FuelPool({vols})"


@dataclass
class DispenseRecord:
    day: int
    plate: str
    fuel_type: str           # Fuel the liters were taken from
    quantity: float
    phase: str = DAILY


@dataclass
class DayAllocation:
    """Liters dispensed to each vehicle on one day (1-based)."""
    day: int
    quantities: Dict[str, float] = field(default_factory=dict)

    def add(self, plate: str, quantity: float):
        self.quantities[plate] = self.quantities.get(plate, 0.0) + quantity

    def get(self, plate: str) -> float:
        return self.quantities.get(plate, 0.0)

    @property
    def total(self) -> float:
        return sum(self.quantities.values())


@dataclass
class AllocationResult:
    """Top-level output of one allocation run."""
    vehicles: List[Vehicle]
    days: List[DayAllocation]
    records: List[DispenseRecord]
    initial_volumes: Dict[str, float]
    leftover: Dict[str, float]
    event_log: List[Dict] = field(default_factory=list)

    @property
    def horizon_days(self) -> int:
        return len(self.days)

    @property
    def complete(self) -> bool:
        """True when every pool was drained to zero."""
        return all(v <= 0.0 for v in self.leftover.values())

    def dispensed_by_fuel(self) -> Dict[str, float]:
        totals = {fuel: 0.0 for fuel in FUEL_TYPES}
        for rec in self.records:
            totals[rec.fuel_type] += rec.quantity
        return totals

    def vehicle_total(self, plate: str) -> float:
        return sum(d.get(plate) for d in self.days)

    def rows(self) -> List[Dict]:
        """Flat rows: one per day per vehicle, vehicles in input order."""
        rows = []
        for day in self.days:
            for v in self.vehicles:
                rows.append({
                    "day": day.day,
                    "plate": v.plate,
                    "fuel_type": v.fuel_type,
                    "quantity": day.get(v.plate),
                })
        return rows
