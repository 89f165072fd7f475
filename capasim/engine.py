"""
Dual-track replenishment replay on a SimPy minute clock.

Both tracks start the day empty and see the same demand:

  Manual track   ← hand-cooked batches (observed SupplyEvents)
  Machine track  ← automated line: trigger below threshold → +capacity after
                   lead time, one batch in flight at most

Each tick runs, in order:

  1. manual supply        4. manual demand
  2. machine completion   5. machine demand
  3. machine trigger      6. record
"""

from __future__ import annotations

from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from datetime import date
from typing import Callable, Iterable, List, Optional

import simpy

from .aggregate import aggregate_days
from .binning import bin_by_day, minute_label
from .config import CLOSE_MINUTE, OPEN_MINUTE
from .log import get_logger
from .models import (
    IDLE, DayResult, DemandEvent, Idle, MinuteRecord, Parameters, Producing,
    ProductionState, RunSummary, SimulationResult, SupplyEvent,
)

logger = get_logger("engine")


def _consume(stock: float, demand: int):
    """Serve *demand* from *stock*; returns ``(stock_after, shortage)``."""
    if stock >= demand:
        return stock - demand, 0
    return 0, demand - stock


class DualTrackDay:
    """
    One business day of the manual vs. automated replay.

    Usage::

        sim    = DualTrackDay(day, demand_bins, supply_bins, params)
        result = sim.run()
    """

    def __init__(
        self,
        day: date,
        demand: Counter,
        supply: Counter,
        params: Parameters,
        open_minute: int = OPEN_MINUTE,
        close_minute: int = CLOSE_MINUTE,
    ) -> None:
        self.day          = day
        self.demand       = demand
        self.supply       = supply
        self.params       = params
        self.open_minute  = open_minute
        self.close_minute = close_minute

        self.env = simpy.Environment(initial_time=open_minute)

        # ── Track state ───────────────────────────────────────────────────────
        self.manual_stock:  float = 0
        self.machine_stock: float = 0
        self.line: ProductionState = IDLE

        # ── Output ────────────────────────────────────────────────────────────
        self.records: List[MinuteRecord] = []
        self.total_manual_shortage:  float = 0
        self.total_machine_shortage: float = 0

    # =========================================================================
    # Automated line
    # =========================================================================

    def _complete_batch(self, minute: int) -> float:
        """Deliver the in-flight batch if it is due this minute."""
        if isinstance(self.line, Producing) and self.line.completes_at == minute:
            self.machine_stock += self.params.cycle_capacity_units
            self.line = IDLE
            return self.params.cycle_capacity_units
        return 0

    def _maybe_trigger(self, minute: int) -> None:
        below = self.machine_stock < self.params.trigger_threshold_units
        if below and isinstance(self.line, Idle):
            self.line = Producing(completes_at=minute + self.params.lead_time_minutes)

    # =========================================================================
    # Minute tick
    # =========================================================================

    def tick(self, minute: int) -> MinuteRecord:
        manual_in = self.supply[minute]
        self.manual_stock += manual_in

        machine_in = self._complete_batch(minute)
        self._maybe_trigger(minute)

        d = self.demand[minute]
        self.manual_stock,  manual_short  = _consume(self.manual_stock, d)
        self.machine_stock, machine_short = _consume(self.machine_stock, d)
        self.total_manual_shortage  += manual_short
        self.total_machine_shortage += machine_short

        rec = MinuteRecord(
            minute               = minute,
            time                 = minute_label(minute),
            demand               = d,
            manual_supply_added  = manual_in,
            machine_supply_added = machine_in,
            manual_stock         = self.manual_stock,
            machine_stock        = self.machine_stock,
            manual_shortage      = manual_short,
            machine_shortage     = machine_short,
            is_producing         = isinstance(self.line, Producing),
        )
        self.records.append(rec)
        return rec

    def minute_clock(self):
        """SimPy process: one tick per simulated minute, open to close."""
        while self.env.now <= self.close_minute:
            self.tick(int(self.env.now))
            yield self.env.timeout(1)

    # =========================================================================
    # Bootstrap
    # =========================================================================

    def register_processes(self) -> None:
        self.env.process(self.minute_clock())

    def run(self) -> DayResult:
        self.register_processes()
        self.env.run(until=self.close_minute + 1)
        return DayResult(
            day                    = self.day,
            minutes                = tuple(self.records),
            total_demand           = sum(self.demand.values()),
            total_manual_shortage  = self.total_manual_shortage,
            total_machine_shortage = self.total_machine_shortage,
        )


def simulate_day(
    day: date,
    demand: Counter,
    supply: Counter,
    params: Parameters,
) -> DayResult:
    """Replay one day; a pure function of its arguments."""
    return DualTrackDay(day, demand, supply, params).run()


def _simulate_packed(args) -> DayResult:
    return simulate_day(*args)


def run_simulation(
    demand_events: Iterable[DemandEvent],
    supply_events: Iterable[SupplyEvent],
    params: Parameters,
    start_day: date,
    end_day: date,
    workers: Optional[int] = None,
    progress: Optional[Callable[[DayResult], None]] = None,
) -> SimulationResult:
    """
    Replay every day in ``[start_day, end_day]`` that has demand data.

    Days are independent, so with ``workers > 1`` they are fanned out over a
    process pool; the result is identical to the sequential path.
    """
    params.validate()

    demand_by_day = bin_by_day(demand_events)
    supply_by_day = bin_by_day(supply_events)

    days = sorted(d for d in demand_by_day if start_day <= d <= end_day)
    if not days:
        logger.info("No demand data between %s and %s", start_day, end_day)
        return SimulationResult()

    jobs = [
        (day, demand_by_day[day], supply_by_day.get(day, Counter()), params)
        for day in days
    ]

    daily_results: List[DayResult] = []
    if workers and workers > 1 and len(jobs) > 1:
        with ProcessPoolExecutor(max_workers=workers) as pool:
            outcomes = pool.map(_simulate_packed, jobs)
            for res in outcomes:
                daily_results.append(res)
                if progress:
                    progress(res)
    else:
        for job in jobs:
            res = _simulate_packed(job)
            daily_results.append(res)
            if progress:
                progress(res)

    for res in daily_results:
        logger.debug(
            "%s  demand=%d  manual_short=%g  machine_short=%g",
            res.day, res.total_demand,
            res.total_manual_shortage, res.total_machine_shortage,
        )

    summary = RunSummary.from_days(daily_results)
    logger.info(
        "Simulated %d day(s): demand=%d  manual_short=%g  machine_short=%g",
        summary.total_days, summary.total_demand,
        summary.total_manual_shortage, summary.total_machine_shortage,
    )

    return SimulationResult(
        daily_results = daily_results,
        chart_data    = aggregate_days(daily_results),
        detail_data   = [(res.day, rec) for res in daily_results for rec in res.minutes],
        summary       = summary,
    )
