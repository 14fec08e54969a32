#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from typing import Dict, List, Optional
import csv
import json
import os
import random
import sys

try:
    import openpyxl
    from openpyxl.utils import get_column_letter
    EXCEL_AVAILABLE = True
except ImportError:
    EXCEL_AVAILABLE = False
    print("WARNING: openpyxl not installed. Excel auto-formatting will not be available.")
    print("Install with: pip install openpyxl")

from models import (
    FUEL_TYPES, FUEL_LABELS, DAILY, DRAIN, FOLD,
    Vehicle, FuelPool, DispenseRecord, DayAllocation, AllocationResult,
)

# ------------------------- CONSTANTS -------------------------
MIN_DISPENSE = 6.0            # Liters; smaller refuels are rejected
FILL_WINDOW_LOW = 0.8         # Target volume is 80%-100% of tank capacity
REFUEL_PROBABILITY = 0.5      # Chance a vehicle refuels on a given day when days are randomized
DEFAULT_MAX_DRAIN_ATTEMPTS = 5000
DEFAULT_OUTPUT_FOLDER = os.environ.get("FUEL_OUTPUT_DIR", "/tmp")

INFO, WARNING = "Info", "Warning"


# ------------------------- DISPENSE RULE -------------------------
def distribute(vehicle: Vehicle, available: float, rng=None) -> float:
    """Liters to dispense into `vehicle` given `available` liters, or 0 if rejected."""
    rng = rng or random
    target = rng.uniform(vehicle.tank_capacity * FILL_WINDOW_LOW, vehicle.tank_capacity)
    quantity = min(target, available)
    return quantity if quantity >= MIN_DISPENSE else 0.0


# ------------------------- DISTRIBUTOR -------------------------
class FuelDistributor:
    def __init__(self, cfg, rng=None):
        self.cfg = cfg

        # Inputs
        self.vehicles: List[Vehicle] = [
            v if isinstance(v, Vehicle) else Vehicle(
                plate=str(v["plate"]),
                tank_capacity=float(v["tank_capacity"]),
                fuel_type=v["fuel_type"],
            )
            for v in cfg["vehicles"]
        ]
        self.horizon_days = int(cfg["horizon_days"])
        self.randomize_days = bool(cfg.get("randomize_days", False))
        self.max_drain_attempts = int(cfg.get("max_drain_attempts", DEFAULT_MAX_DRAIN_ATTEMPTS))
        self.output_folder = cfg.get("output_folder", DEFAULT_OUTPUT_FOLDER)

        if rng is None:
            seed = cfg.get("seed")
            rng = random.Random(seed) if seed is not None else random.Random()
        self.rng = rng

        volumes = cfg.get("fuel_volumes", {})
        self.pool = volumes if isinstance(volumes, FuelPool) else FuelPool(volumes)

        # Outputs
        self.days: List[DayAllocation] = [
            DayAllocation(day=d, quantities={v.plate: 0.0 for v in self.vehicles})
            for d in range(1, self.horizon_days + 1)
        ]
        self.records: List[DispenseRecord] = []
        self.event_log_rows: List[Dict] = []
        self.leftover: Dict[str, float] = {fuel: 0.0 for fuel in FUEL_TYPES}
        self.vehicle_by_plate: Dict[str, Vehicle] = {v.plate: v for v in self.vehicles}
        self.finished = False

        pools_str = ", ".join(f"{FUEL_LABELS[f]}: {self.pool.initial[f]:,.2f} L" for f in FUEL_TYPES)
        self._log_event(None, INFO, "SIM_START", None, None,
                        f"Simulation started for {len(self.vehicles)} vehicles over {self.horizon_days} days ({pools_str})")
        self._log_event(None, INFO, "CONFIG", None, None,
                        f"CONFIG: randomize_days={self.randomize_days}, min_dispense={MIN_DISPENSE}, "
                        f"fill_window={FILL_WINDOW_LOW:.0%}-100%, max_drain_attempts={self.max_drain_attempts}")

    # ------------------------- LOGGING -------------------------
    def _log_event(self, day: Optional[int], level: str, event: str,
                   plate: Optional[str], fuel_type: Optional[str], message: str):
        row = {
            "Day": day if day is not None else "",
            "Level": level,
            "Event": event,
            "Vehicle": plate or "",
            "Fuel": FUEL_LABELS.get(fuel_type, "") if fuel_type else "",
            "Message": message,
        }
        self.event_log_rows.append(row)

    # ------------------------- UTILITIES -------------------------
    def _headroom(self, day: int, plate: str) -> float:
        return self.vehicle_by_plate[plate].tank_capacity - self.days[day - 1].get(plate)

    def _credit(self, day: int, vehicle_plate: str, fuel_type: str, quantity: float, phase: str) -> float:
        """Debit the pool and credit the vehicle on that day. Returns liters moved."""
        taken = self.pool.debit(fuel_type, quantity)
        if taken <= 0.0:
            return 0.0
        self.days[day - 1].add(vehicle_plate, taken)
        self.records.append(DispenseRecord(day=day, plate=vehicle_plate, fuel_type=fuel_type,
                                           quantity=taken, phase=phase))
        return taken

    # ------------------------- PHASE 1: DAILY PASS -------------------------
    def simulate_day(self, day: int):
        # Random refuel order for the day
        order = self.rng.sample(self.vehicles, len(self.vehicles))
        self._log_event(day, INFO, "DAY_START", None, None,
                        "Refuel order: " + ", ".join(v.plate for v in order))

        for vehicle in order:
            if self.randomize_days and self.rng.random() >= REFUEL_PROBABILITY:
                self._log_event(day, INFO, "SKIP", vehicle.plate, vehicle.fuel_type,
                                f"{vehicle.plate} does not refuel on day {day}")
                continue

            available = self.pool.available(vehicle.fuel_type)
            quantity = distribute(vehicle, available, self.rng)
            if quantity > 0:
                taken = self._credit(day, vehicle.plate, vehicle.fuel_type, quantity, DAILY)
                self._log_event(day, INFO, "DISPENSE", vehicle.plate, vehicle.fuel_type,
                                f"{taken:,.2f} L dispensed ({self.pool.available(vehicle.fuel_type):,.2f} L left)")
            elif available > 0:
                self._log_event(day, INFO, "REJECT", vehicle.plate, vehicle.fuel_type,
                                f"Below {MIN_DISPENSE:g} L minimum with {available:,.2f} L available")

    # ------------------------- PHASE 2: REMAINDER DRAIN -------------------------
    def drain_remaining(self, fuel_type: str):
        """Push what is left of one fuel pool into random vehicles on random days."""
        if self.pool.is_empty(fuel_type) or not self.vehicles:
            self.leftover[fuel_type] = self.pool.available(fuel_type)
            return

        self._log_event(None, INFO, "DRAIN_START", None, fuel_type,
                        f"Draining {self.pool.available(fuel_type):,.2f} L remaining")

        failed_attempts = 0
        while self.pool.available(fuel_type) >= MIN_DISPENSE and failed_attempts < self.max_drain_attempts:
            vehicle = self.vehicles[self.rng.randrange(len(self.vehicles))]
            day = self.rng.randrange(self.horizon_days) + 1

            available = min(self.pool.available(fuel_type), self._headroom(day, vehicle.plate))
            quantity = distribute(vehicle, available, self.rng)
            if quantity <= 0:
                failed_attempts += 1
                continue

            failed_attempts = 0
            taken = self._credit(day, vehicle.plate, fuel_type, quantity, DRAIN)
            if vehicle.fuel_type != fuel_type:
                self._log_event(day, WARNING, "CROSS_FUEL", vehicle.plate, fuel_type,
                                f"{taken:,.2f} L of {FUEL_LABELS[fuel_type]} credited to a "
                                f"{vehicle.fuel_label} vehicle")
            else:
                self._log_event(day, INFO, "DISPENSE", vehicle.plate, fuel_type,
                                f"{taken:,.2f} L drained ({self.pool.available(fuel_type):,.2f} L left)")

        if not self.pool.is_empty(fuel_type):
            self._fold_residue(fuel_type)

        self.leftover[fuel_type] = self.pool.available(fuel_type)
        if self.leftover[fuel_type] > 0:
            self._log_event(None, WARNING, "DRAIN_LEFTOVER", None, fuel_type,
                            f"{self.leftover[fuel_type]:,.2f} L could not be dispensed without breaking "
                            f"the {MIN_DISPENSE:g} L minimum or tank capacity")
        self._log_event(None, INFO, "DRAIN_END", None, fuel_type,
                        f"{self.pool.dispensed(fuel_type):,.2f} L of {self.pool.initial[fuel_type]:,.2f} L dispensed")

    def _fold_residue(self, fuel_type: str):
        """Top up existing refuels that still have tank headroom with what the drain could not place."""
        candidates = [
            (day.day, v.plate)
            for day in self.days
            for v in self.vehicles
            if day.get(v.plate) >= MIN_DISPENSE and self._headroom(day.day, v.plate) > 0
        ]
        self.rng.shuffle(candidates)

        for day, plate in candidates:
            if self.pool.is_empty(fuel_type):
                break
            quantity = min(self.pool.available(fuel_type), self._headroom(day, plate))
            taken = self._credit(day, plate, fuel_type, quantity, FOLD)
            vehicle = self.vehicle_by_plate[plate]
            if vehicle.fuel_type != fuel_type:
                self._log_event(day, WARNING, "CROSS_FUEL", plate, fuel_type,
                                f"{taken:,.2f} L of {FUEL_LABELS[fuel_type]} folded into a "
                                f"{vehicle.fuel_label} refuel")
            else:
                self._log_event(day, INFO, "FOLD", plate, fuel_type,
                                f"{taken:,.2f} L added to an existing refuel")

    # ------------------------- RUN -------------------------
    def run(self) -> AllocationResult:
        if self.finished:
            return self.result()

        for day in range(1, self.horizon_days + 1):
            self.simulate_day(day)

        self._log_event(None, INFO, "DAILY_END", None, None,
                        "Daily pass finished: " + ", ".join(
                            f"{FUEL_LABELS[f]} {self.pool.available(f):,.2f} L left" for f in FUEL_TYPES))

        for fuel_type in FUEL_TYPES:
            self.drain_remaining(fuel_type)

        self.finished = True
        total = sum(rec.quantity for rec in self.records)
        self._log_event(None, INFO, "SIM_END", None, None,
                        f"Simulation finished: {total:,.2f} L dispensed in {len(self.records)} refuels")
        return self.result()

    def result(self) -> AllocationResult:
        return AllocationResult(
            vehicles=list(self.vehicles),
            days=self.days,
            records=self.records,
            initial_volumes=dict(self.pool.initial),
            leftover=dict(self.leftover),
            event_log=self.event_log_rows,
        )

    # ------------------------- EXPORT -------------------------
    @staticmethod
    def _can_write(path) -> bool:
        try:
            with open(path, "a"):
                return True
        except OSError:
            return False

    def _get_safe_filename(self, base_path):
        """Return base_path, or name_1.csv, name_2.csv ... when the file is held open elsewhere"""
        stem, ext = os.path.splitext(base_path)
        candidate, counter = base_path, 0
        while os.path.exists(candidate) and not self._can_write(candidate):
            counter += 1
            candidate = f"{stem}_{counter}{ext}"
        return candidate

    def save_csvs(self, output_folder=None, excel=True) -> List[str]:
        output_folder = output_folder or self.output_folder
        os.makedirs(output_folder, exist_ok=True)

        log_path = self._get_safe_filename(os.path.join(output_folder, "allocation_log.csv"))
        daily_path = self._get_safe_filename(os.path.join(output_folder, "daily_allocation.csv"))
        totals_path = self._get_safe_filename(os.path.join(output_folder, "vehicle_totals.csv"))

        # Event log
        with open(log_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["Day", "Level", "Event", "Vehicle", "Fuel", "Message"])
            writer.writeheader()
            writer.writerows(self.event_log_rows)

        # Day x vehicle grid
        plates = [v.plate for v in self.vehicles]
        with open(daily_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["Day"] + plates + ["Total (L)"])
            writer.writeheader()
            for day in self.days:
                row = {"Day": day.day}
                row.update({p: f"{day.get(p):.2f}" for p in plates})
                row["Total (L)"] = f"{day.total:.2f}"
                writer.writerow(row)

        # Per-vehicle totals
        with open(totals_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["Plate", "Fuel Type", "Tank Capacity (L)",
                                                   "Refuel Days", "Total (L)"])
            writer.writeheader()
            for v in self.vehicles:
                writer.writerow({
                    "Plate": v.plate,
                    "Fuel Type": v.fuel_label,
                    "Tank Capacity (L)": f"{v.tank_capacity:.2f}",
                    "Refuel Days": sum(1 for d in self.days if d.get(v.plate) > 0),
                    "Total (L)": f"{sum(d.get(v.plate) for d in self.days):.2f}",
                })

        paths = [log_path, daily_path, totals_path]
        print(f"Saved allocation CSVs to {output_folder}")
        if excel and EXCEL_AVAILABLE:
            paths += self._convert_to_excel_with_autofit(log_path, daily_path, totals_path)
        return paths

    def _convert_to_excel_with_autofit(self, *csv_paths) -> List[str]:
        """Convert CSV to Excel with auto-fit columns"""
        excel_files = []

        for csv_path in csv_paths:
            if not os.path.exists(csv_path):
                continue

            excel_path = csv_path.replace('.csv', '.xlsx')

            with open(csv_path, 'r', encoding='utf-8') as f:
                rows = list(csv.reader(f))

            if not rows:
                continue

            wb = openpyxl.Workbook()
            ws = wb.active
            for row_data in rows:
                ws.append(row_data)

            for col_idx, column in enumerate(ws.columns, 1):
                max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
                # Message column of the event log gets more room
                if rows[0][col_idx - 1] == "Message":
                    adjusted_width = min(max(max_length + 10, 50), 150)
                else:
                    adjusted_width = min(max(max_length + 3, 10), 60)
                ws.column_dimensions[get_column_letter(col_idx)].width = adjusted_width

            # Bold header row
            for cell in ws[1]:
                cell.font = openpyxl.styles.Font(bold=True)

            wb.save(excel_path)
            excel_files.append(excel_path)

        if excel_files:
            print("Saved Excel files with auto-fit columns:")
            for ef in excel_files:
                print(f"  - {ef}")
        return excel_files


def allocate(vehicles, pools, horizon_days, randomize_days=False, rng=None,
             max_drain_attempts=DEFAULT_MAX_DRAIN_ATTEMPTS) -> AllocationResult:
    """Distribute the pools over the fleet day by day and drain whatever is left."""
    cfg = {
        "vehicles": vehicles,
        "fuel_volumes": pools,
        "horizon_days": horizon_days,
        "randomize_days": randomize_days,
        "max_drain_attempts": max_drain_attempts,
    }
    return FuelDistributor(cfg, rng=rng).run()


# ------------------------- MAIN -------------------------
if __name__ == "__main__":
    print("FLEET FUEL DISTRIBUTION SIMULATOR")

    if len(sys.argv) < 2:
        print("Usage: python distributor.py <config.json>")
        sys.exit(1)

    from forms import build_config, FormValidationError

    with open(sys.argv[1], "r", encoding="utf-8") as f:
        payload = json.load(f)

    try:
        cfg = build_config(payload)
    except FormValidationError as e:
        print("Invalid configuration:")
        for msg in e.errors:
            print(f"  - {msg}")
        sys.exit(1)

    sim = FuelDistributor(cfg)
    result = sim.run()
    sim.save_csvs()
    if not result.complete:
        print("WARNING: some fuel could not be dispensed: " + ", ".join(
            f"{FUEL_LABELS[f]} {v:,.2f} L" for f, v in result.leftover.items() if v > 0))
    print("Done! Check output files for detailed results.")
