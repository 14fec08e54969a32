"""
Form payload validation.

Turns the raw values posted by the UI (or read from a JSON file) into the
`cfg` dict consumed by FuelDistributor. The allocator itself trusts its
input, so every bound is checked here.
"""

import math
from typing import Dict, List

from models import FUEL_TYPES, FUEL_LABELS


class FormValidationError(ValueError):
    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def _to_float(value, field_name, errors, default=None):
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is None:
            errors.append(f"{field_name} is required")
        return default
    try:
        number = float(str(value).replace(',', '.'))
    except (ValueError, TypeError):
        number = None
    if number is None or not math.isfinite(number):
        errors.append(f"{field_name} must be a number")
        return default
    return number


def parse_vehicles(rows, errors: List[str]) -> List[Dict]:
    vehicles = []
    seen = set()

    for idx, row in enumerate(rows or [], 1):
        plate = str(row.get("plate") or "").strip().upper()
        capacity = _to_float(row.get("tank_capacity"), f"Vehicle {idx}: tank capacity", errors)
        fuel_type = row.get("fuel_type") or ""

        if not plate:
            errors.append(f"Vehicle {idx}: the plate is required")
        elif plate in seen:
            errors.append(f"Vehicle {idx}: plate {plate} is listed more than once")
        seen.add(plate)

        if capacity is not None and capacity < 1:
            errors.append(f"Vehicle {idx}: the tank capacity must be at least 1")

        if fuel_type not in FUEL_TYPES:
            errors.append(f"Vehicle {idx}: the fuel type is required")

        vehicles.append({"plate": plate, "tank_capacity": capacity, "fuel_type": fuel_type})

    if not vehicles:
        errors.append("Add at least one vehicle")
    return vehicles


def build_config(payload: Dict) -> Dict:
    """Validate a form payload and return the distributor config."""
    errors: List[str] = []

    vehicles = parse_vehicles(payload.get("vehicles"), errors)

    fuel_volumes = {}
    for fuel in FUEL_TYPES:
        volume = _to_float(payload.get(fuel), f"{FUEL_LABELS[fuel]} volume", errors, default=0.0)
        if volume < 0:
            errors.append(f"{FUEL_LABELS[fuel]} volume cannot be negative")
        fuel_volumes[fuel] = volume

    horizon = _to_float(payload.get("horizon_days"), "Number of days", errors)
    if horizon is not None:
        if horizon < 1:
            errors.append("The number of days in the month must be at least 1")
        elif horizon != int(horizon):
            errors.append("The number of days must be a whole number")

    cfg = {
        "vehicles": vehicles,
        "fuel_volumes": fuel_volumes,
        "horizon_days": int(horizon) if horizon is not None else 0,
        "randomize_days": bool(payload.get("randomize_days", False)),
    }

    seed = payload.get("seed")
    if seed not in (None, ""):
        try:
            cfg["seed"] = int(seed)
        except (ValueError, TypeError, OverflowError):
            errors.append("Seed must be a whole number")

    attempts = payload.get("max_drain_attempts")
    if attempts not in (None, ""):
        try:
            cfg["max_drain_attempts"] = int(attempts)
        except (ValueError, TypeError, OverflowError):
            errors.append("Max drain attempts must be a whole number")
        else:
            if cfg["max_drain_attempts"] < 1:
                errors.append("Max drain attempts must be at least 1")

    output_folder = payload.get("output_folder")
    if output_folder not in (None, ""):
        if not isinstance(output_folder, str):
            errors.append("Output folder must be a path")
        else:
            cfg["output_folder"] = output_folder

    if errors:
        raise FormValidationError(errors)
    return cfg
