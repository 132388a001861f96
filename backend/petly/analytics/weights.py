from typing import Sequence

import numpy as np

from ..core.timeutils import as_utc
from ..schemas.weight import WeightEntry, WeightStats


def sort_entries(entries: Sequence[WeightEntry]) -> list[WeightEntry]:
    return sorted(entries, key=lambda entry: as_utc(entry.date))


def weight_stats(entries: Sequence[WeightEntry]) -> WeightStats:
    ordered = sort_entries(entries)
    if not ordered:
        return WeightStats(entries=0)
    weights = np.array([entry.weight for entry in ordered], dtype=float)
    stats = WeightStats(
        entries=len(ordered),
        latest_weight=round(float(weights[-1]), 1),
        average_weight=round(float(weights.mean()), 1),
    )
    if len(ordered) >= 2:
        stats.weight_change = round(float(weights[-1] - weights[-2]), 1)
        first = as_utc(ordered[0].date)
        weeks = np.array([(as_utc(entry.date) - first).total_seconds() / 604800 for entry in ordered])
        if np.ptp(weeks) > 0:
            slope, _ = np.polyfit(weeks, weights, 1)
            stats.trend_lbs_per_week = round(float(slope), 2)
    return stats
