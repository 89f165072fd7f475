"""
Event sources for the replay.

Reads already-normalized CSV exports (one row per event) and can synthesize a
reproducible demo dataset when no exports are at hand.

  demand CSV : day,time,quantity      e.g. 2025-12-01,10:15,2
  supply CSV : day,time,batches       e.g. 2025-12-01,09:40,3
"""

from __future__ import annotations

import csv
import random
from datetime import date, timedelta
from typing import List, Tuple

from .binning import parse_clock, to_minute
from .config import CLOSE_MINUTE, OPEN_MINUTE
from .log import get_logger
from .models import DemandEvent, SupplyEvent

logger = get_logger("events")


def _read_rows(path: str, columns: Tuple[str, ...]):
    """Yield ``(line_no, {column: text})`` for each non-blank row."""
    with open(path, newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        # Header variants with stray whitespace are common in spreadsheet exports
        reader.fieldnames = [(name or "").strip() for name in (reader.fieldnames or [])]
        missing = [c for c in columns if c not in reader.fieldnames]
        if missing:
            raise ValueError(f"{path}: missing column(s) {', '.join(missing)}")
        for row in reader:
            if not any((v or "").strip() for v in row.values()):
                continue
            yield reader.line_num, {c: (row[c] or "").strip() for c in columns}


def _parse_row(path: str, line_no: int, row: dict, qty_col: str) -> Tuple[date, int, int]:
    try:
        return (
            date.fromisoformat(row["day"]),
            parse_clock(row["time"]),
            int(row[qty_col]),
        )
    except ValueError as exc:
        raise ValueError(f"{path}:{line_no}: {exc}") from exc


def load_demand_csv(path: str) -> List[DemandEvent]:
    events = []
    for line_no, row in _read_rows(path, ("day", "time", "quantity")):
        day, minute, qty = _parse_row(path, line_no, row, "quantity")
        if qty < 0:
            raise ValueError(f"{path}:{line_no}: negative quantity {qty}")
        events.append(DemandEvent(day, minute, qty))
    logger.info("Loaded %d demand event(s) from %s", len(events), path)
    return events


def load_supply_csv(path: str, units_per_batch: int) -> List[SupplyEvent]:
    """Load manual batches and convert batch counts to units."""
    events, skipped = [], 0
    for line_no, row in _read_rows(path, ("day", "time", "batches")):
        day, minute, batches = _parse_row(path, line_no, row, "batches")
        if batches <= 0:
            skipped += 1
            continue
        events.append(SupplyEvent.from_batches(day, minute, batches, units_per_batch))
    if skipped:
        logger.warning("Skipped %d supply row(s) with no batches in %s", skipped, path)
    logger.info("Loaded %d supply event(s) from %s", len(events), path)
    return events


# ─────────────────────────────────────────────────────────────────────────────
# Synthetic demo data
# ─────────────────────────────────────────────────────────────────────────────

# (start, end, orders per hour); lunch and after-school rushes
DEMAND_PROFILE = [
    (to_minute(8, 0),  to_minute(11, 0), 6),
    (to_minute(11, 0), to_minute(14, 0), 22),
    (to_minute(14, 0), to_minute(16, 0), 10),
    (to_minute(16, 0), to_minute(19, 0), 26),
    (to_minute(19, 0), to_minute(22, 0), 12),
]

# Hand-cooked batches: clock time → batch count
MANUAL_SCHEDULE = [
    (to_minute(9, 30),  6),
    (to_minute(12, 0),  6),
    (to_minute(15, 30), 5),
    (to_minute(18, 0),  6),
]


def synthetic_events(
    start_day: date,
    days: int = 7,
    seed: int = 42,
    units_per_batch: int = 8,
) -> Tuple[List[DemandEvent], List[SupplyEvent]]:
    """
    Generate *days* of demand and manual-supply events.

    Orders arrive as a Poisson process whose rate follows DEMAND_PROFILE;
    each order asks for 1–3 units.  Manual batches follow MANUAL_SCHEDULE
    with a few minutes of jitter.
    """
    rng = random.Random(seed)
    demand: List[DemandEvent] = []
    supply: List[SupplyEvent] = []

    for offset in range(days):
        day = start_day + timedelta(days=offset)
        weekend = 1.3 if day.weekday() >= 5 else 1.0

        for start, end, per_hour in DEMAND_PROFILE:
            rate = per_hour * weekend / 60   # orders / minute
            t = start + rng.expovariate(rate)
            while t < end:
                demand.append(DemandEvent(day, int(t), rng.choice((1, 1, 1, 2, 2, 3))))
                t += rng.expovariate(rate)

        for minute, batches in MANUAL_SCHEDULE:
            minute = min(max(OPEN_MINUTE, minute + rng.randint(-10, 10)), CLOSE_MINUTE)
            supply.append(SupplyEvent.from_batches(day, minute, batches, units_per_batch))

    return demand, supply
