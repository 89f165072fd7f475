"""
Demand and supply binning: collapse timestamped events onto minute-of-day
buckets for a single business day.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date
from typing import Dict, Iterable, Union

from .config import MINUTES_PER_DAY, MINUTES_PER_HOUR
from .models import DemandEvent, SupplyEvent

Event = Union[DemandEvent, SupplyEvent]


def to_minute(hour: int, minute: int) -> int:
    return hour * MINUTES_PER_HOUR + minute


def minute_label(minute_of_day: int) -> str:
    """``615`` → ``"10:15"``."""
    h, m = divmod(minute_of_day, MINUTES_PER_HOUR)
    return f"{h:02d}:{m:02d}"


def parse_clock(text: str) -> int:
    """
    Parse ``"H:MM"`` / ``"HH:MM"`` (seconds ignored) into minute-of-day.

    Raises ``ValueError`` for anything that is not a valid clock time.
    """
    parts = text.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"not a clock time: {text!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < MINUTES_PER_HOUR):
        raise ValueError(f"clock time out of range: {text!r}")
    return to_minute(hour, minute)


def bin_by_minute(events: Iterable[Event], day: date) -> Counter:
    """
    Sum event quantities per minute-of-day for *day*.

    Returns a ``Counter`` so minutes without events read as 0.  This is the
    single-day form of :func:`bin_by_day`; ``run_simulation`` uses the latter
    so a multi-day run reads its events once.
    """
    bins: Counter = Counter()
    for ev in events:
        if ev.day == day:
            bins[ev.minute_of_day] += ev.quantity
    return bins


def bin_by_day(events: Iterable[Event]) -> Dict[date, Counter]:
    """Single pass over *events*: ``{day: Counter(minute → quantity)}``."""
    bins: Dict[date, Counter] = defaultdict(Counter)
    for ev in events:
        if not 0 <= ev.minute_of_day < MINUTES_PER_DAY:
            raise ValueError(f"minute_of_day out of range: {ev}")
        bins[ev.day][ev.minute_of_day] += ev.quantity
    return bins
