"""
Result rendering helpers shared by the Dash app and exports.

Everything here reads an already computed AllocationResult; nothing is
recomputed, so rendering the same result twice gives the same tables.
"""

from typing import Dict

import pandas as pd
import plotly.graph_objects as go

from models import AllocationResult, FUEL_LABELS, FUEL_TYPES

# Fuel colors for charts
FUEL_COLORS = {
    'gasoline': '#ef4444',
    'ethanol': '#10b981',
    'common_diesel': '#f59e0b',
    'diesel_s10': '#3b82f6',
}


def allocation_frame(result: AllocationResult) -> pd.DataFrame:
    """One row per day per vehicle (vehicles in input order)."""
    df = pd.DataFrame(result.rows(), columns=["day", "plate", "fuel_type", "quantity"])
    return df


def vehicle_tables(result: AllocationResult) -> Dict[str, pd.DataFrame]:
    """Per vehicle: only the days with a refuel, plus a Total row."""
    df = allocation_frame(result)
    tables = {}

    for vehicle in result.vehicles:
        rows = df[(df["plate"] == vehicle.plate) & (df["quantity"] > 0)]
        table = pd.DataFrame({
            "Day": rows["day"].astype(str),
            "Fuel Type": vehicle.fuel_label,
            "Quantity (L)": rows["quantity"].round(2),
        })
        total = pd.DataFrame([{
            "Day": "Total",
            "Fuel Type": "",
            "Quantity (L)": round(float(rows["quantity"].sum()), 2),
        }])
        tables[vehicle.plate] = pd.concat([table, total], ignore_index=True)

    return tables


def vehicle_totals(result: AllocationResult) -> Dict[str, float]:
    tables = vehicle_tables(result)
    return {plate: float(t["Quantity (L)"].iloc[-1]) for plate, t in tables.items()}


def fuel_summary(result: AllocationResult) -> pd.DataFrame:
    dispensed = result.dispensed_by_fuel()
    return pd.DataFrame([
        {
            "Fuel": FUEL_LABELS[f],
            "Available (L)": round(result.initial_volumes.get(f, 0.0), 2),
            "Dispensed (L)": round(dispensed[f], 2),
            "Leftover (L)": round(result.leftover.get(f, 0.0), 2),
        }
        for f in FUEL_TYPES
    ])


def daily_volume_figure(result: AllocationResult) -> go.Figure:
    """Stacked bars of liters per day, split by the fuel the liters came from."""
    days = [d.day for d in result.days]
    per_fuel = {f: [0.0] * len(days) for f in FUEL_TYPES}
    for rec in result.records:
        per_fuel[rec.fuel_type][rec.day - 1] += rec.quantity

    fig = go.Figure()
    for fuel in FUEL_TYPES:
        if any(per_fuel[fuel]):
            fig.add_trace(go.Bar(x=days, y=per_fuel[fuel], name=FUEL_LABELS[fuel],
                                 marker_color=FUEL_COLORS[fuel]))
    fig.update_layout(barmode='stack', title='Liters Dispensed per Day',
                      xaxis_title='Day', yaxis_title='Liters', height=400)
    return fig
