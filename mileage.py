"""
Mileage Generator

Given a starting odometer, an average km/L and a list of refuel volumes,
produces per refuel: a km/L jittered by up to +/-0.5 around the average,
the distance driven on that volume and the running odometer.
"""

import random
from typing import Dict, Iterable, List, Optional

import numpy as np

EFFICIENCY_JITTER = 0.5
MAX_REDRAWS = 100


def _draw_efficiency(rng, average_efficiency: float, excluded: set) -> float:
    for _ in range(MAX_REDRAWS):
        efficiency = round(average_efficiency + rng.uniform(-EFFICIENCY_JITTER, EFFICIENCY_JITTER), 2)
        if efficiency not in excluded:
            return efficiency
    raise ValueError(
        f"Could not draw a km/L around {average_efficiency} that avoids {sorted(excluded)}")


def accrue_mileage(start_odometer: float, average_efficiency: float, volumes: Iterable[float],
                   rng=None, excluded: Optional[Iterable[float]] = None) -> List[Dict]:
    """
    Build the mileage table for a sequence of refuels.

    Args:
        start_odometer: Odometer reading before the first refuel (km)
        average_efficiency: Average km per liter
        volumes: Liters of each refuel, in order
        rng: Random source with a `uniform` method (defaults to the random module)
        excluded: km/L values (2 decimals) that must not appear in the table

    Returns:
        List of dicts with liters, km_per_liter, total_km, final_km
    """
    rng = rng or random
    excluded_set = {round(float(x), 2) for x in (excluded or [])}
    liters = np.asarray(list(volumes), dtype=float)

    efficiencies = np.array([_draw_efficiency(rng, average_efficiency, excluded_set) for _ in liters])
    distances = liters * efficiencies
    odometer = start_odometer + np.cumsum(distances)

    return [
        {
            "liters": float(l),
            "km_per_liter": float(e),
            "total_km": round(float(d), 2),
            "final_km": round(float(o), 2),
        }
        for l, e, d, o in zip(liters, efficiencies, distances, odometer)
    ]
