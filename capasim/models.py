"""Data-model classes shared across the simulation."""

from __future__ import annotations
from dataclasses import asdict, dataclass, field, replace
from datetime import date
from typing import List, Optional, Tuple, Union

from .config import DEFAULT_PARAMETERS, SCENARIOS


class ConfigurationError(ValueError):
    """Raised when a parameter set cannot produce meaningful results."""


# ── Input events ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DemandEvent:
    """Units of the ingredient demanded at one minute of one business day."""

    day:           date
    minute_of_day: int
    quantity:      int


@dataclass(frozen=True)
class SupplyEvent:
    """Units added to manual stock when a hand-cooked batch comes out."""

    day:           date
    minute_of_day: int
    quantity:      int

    @classmethod
    def from_batches(cls, day: date, minute_of_day: int,
                     batch_count: int, units_per_batch: int) -> "SupplyEvent":
        return cls(day, minute_of_day, batch_count * units_per_batch)


# ── Parameters ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Parameters:
    """Immutable policy and pricing inputs for one simulation run."""

    lead_time_minutes:       int   = DEFAULT_PARAMETERS["lead_time_minutes"]
    trigger_threshold_units: float = DEFAULT_PARAMETERS["trigger_threshold_units"]
    cycle_capacity_units:    float = DEFAULT_PARAMETERS["cycle_capacity_units"]
    avg_unit_price:          float = DEFAULT_PARAMETERS["avg_unit_price"]
    revenue_share_of_unit:   float = DEFAULT_PARAMETERS["revenue_share_of_unit"]
    units_per_manual_batch:  int   = DEFAULT_PARAMETERS["units_per_manual_batch"]

    @classmethod
    def from_scenario(cls, scenario_id: str, **overrides) -> "Parameters":
        values = dict(DEFAULT_PARAMETERS)
        values.update(SCENARIOS[scenario_id]["overrides"])
        values.update(overrides)
        return cls(**values)

    def replace(self, **changes) -> "Parameters":
        return replace(self, **changes)

    def validate(self) -> "Parameters":
        """Raise ConfigurationError on the first out-of-range field."""
        if not 0 < self.revenue_share_of_unit <= 1:
            raise ConfigurationError(
                f"revenue_share_of_unit must be in (0, 1], got {self.revenue_share_of_unit}"
            )
        if self.lead_time_minutes < 1:
            raise ConfigurationError(
                f"lead_time_minutes must be at least 1, got {self.lead_time_minutes}"
            )
        if self.trigger_threshold_units < 0:
            raise ConfigurationError(
                f"trigger_threshold_units cannot be negative, got {self.trigger_threshold_units}"
            )
        if self.cycle_capacity_units <= 0:
            raise ConfigurationError(
                f"cycle_capacity_units must be positive, got {self.cycle_capacity_units}"
            )
        if self.avg_unit_price < 0:
            raise ConfigurationError(
                f"avg_unit_price cannot be negative, got {self.avg_unit_price}"
            )
        if self.units_per_manual_batch <= 0:
            raise ConfigurationError(
                f"units_per_manual_batch must be positive, got {self.units_per_manual_batch}"
            )
        return self


# ── Automated production line state ───────────────────────────────────────────
# The line runs one batch at a time, so the state holds at most one
# scheduled completion.

@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Producing:
    completes_at: int


ProductionState = Union[Idle, Producing]
IDLE = Idle()


# ── Simulation output ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MinuteRecord:
    """State of both tracks at the end of one simulated minute."""

    minute:               int
    time:                 str
    demand:               int
    manual_supply_added:  float
    machine_supply_added: float
    manual_stock:         float
    machine_stock:        float
    manual_shortage:      float
    machine_shortage:     float
    is_producing:         bool


@dataclass(frozen=True)
class ChartPoint:
    """One minute of the multi-day averaged chart series."""

    minute:           int
    time:             str
    demand:           float
    manual_stock:     float
    machine_stock:    float
    manual_shortage:  float
    machine_shortage: float


@dataclass(frozen=True)
class DayResult:
    day:                    date
    minutes:                Tuple[MinuteRecord, ...]
    total_demand:           int
    total_manual_shortage:  float
    total_machine_shortage: float


@dataclass(frozen=True)
class RunSummary:
    total_days:             int   = 0
    total_demand:           int   = 0
    total_manual_shortage:  float = 0
    total_machine_shortage: float = 0

    @classmethod
    def from_days(cls, days: List[DayResult]) -> "RunSummary":
        return cls(
            total_days             = len(days),
            total_demand           = sum(d.total_demand for d in days),
            total_manual_shortage  = sum(d.total_manual_shortage for d in days),
            total_machine_shortage = sum(d.total_machine_shortage for d in days),
        )


@dataclass
class SimulationResult:
    """Everything one run hands to the presentation layer."""

    daily_results: List[DayResult]                        = field(default_factory=list)
    chart_data:    List[Union[MinuteRecord, ChartPoint]]  = field(default_factory=list)
    detail_data:   List[Tuple[date, MinuteRecord]]        = field(default_factory=list)
    summary:       RunSummary                             = field(default_factory=RunSummary)

    @property
    def is_multi_day(self) -> bool:
        return len(self.daily_results) > 1

    @property
    def start_day(self) -> Optional[date]:
        return self.daily_results[0].day if self.daily_results else None

    @property
    def end_day(self) -> Optional[date]:
        return self.daily_results[-1].day if self.daily_results else None


# ── Financial output ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DailyBreakdown:
    day:              date
    demand:           int
    manual_shortage:  float
    machine_shortage: float
    manual_loss:      float
    machine_loss:     float
    net_gain:         float


@dataclass(frozen=True)
class FinancialReport:
    total_demand:           int
    total_manual_shortage:  float
    total_machine_shortage: float

    manual_loss:  float
    machine_loss: float
    net_gain:     float

    avg_daily_manual_loss:  float
    avg_daily_machine_loss: float
    avg_daily_net_gain:     float
    monthly_net_gain:       float

    manual_shortage_rate:  float
    machine_shortage_rate: float

    days:            int
    is_multi_day:    bool
    daily_breakdown: Tuple[DailyBreakdown, ...] = ()

    def as_dict(self) -> dict:
        d = asdict(self)
        for row in d["daily_breakdown"]:
            row["day"] = row["day"].isoformat()
        return d
