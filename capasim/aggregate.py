"""Multi-day aggregation: average every day's minute series onto one timeline."""

from __future__ import annotations

from typing import List, Sequence, Union

import numpy as np

from .models import ChartPoint, DayResult, MinuteRecord

AVERAGED_FIELDS = (
    "demand", "manual_stock", "machine_stock", "manual_shortage", "machine_shortage",
)


def round_half_up(values: np.ndarray, decimals: int = 1) -> np.ndarray:
    """Round halves away from zero for non-negative input (0.25 → 0.3)."""
    scale = 10 ** decimals
    return np.floor(values * scale + 0.5) / scale


def aggregate_days(days: Sequence[DayResult]) -> List[Union[MinuteRecord, ChartPoint]]:
    """
    Align *days* on the first day's minute timeline and average each field.

    A minute missing from some days is averaged over the days that have it.
    A single day passes through as its own MinuteRecords.
    """
    if not days:
        return []
    if len(days) == 1:
        return list(days[0].minutes)

    timeline = days[0].minutes
    position = {rec.minute: i for i, rec in enumerate(timeline)}

    # (day, minute, field); NaN where a day has no record for that minute
    grid = np.full((len(days), len(timeline), len(AVERAGED_FIELDS)), np.nan)
    for d, day in enumerate(days):
        for rec in day.minutes:
            i = position.get(rec.minute)
            if i is not None:
                grid[d, i] = [getattr(rec, f) for f in AVERAGED_FIELDS]

    means = round_half_up(np.nanmean(grid, axis=0))

    return [
        ChartPoint(
            minute=rec.minute,
            time=rec.time,
            **{f: float(v) for f, v in zip(AVERAGED_FIELDS, row)},
        )
        for rec, row in zip(timeline, means)
    ]
