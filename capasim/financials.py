"""Stockout loss estimation and KPI derivation."""

from __future__ import annotations

from typing import Sequence

from .config import CURRENCY_SYMBOL, DAYS_PER_MONTH
from .log import get_logger
from .models import (
    ConfigurationError, DailyBreakdown, DayResult, FinancialReport, Parameters, RunSummary,
)

logger = get_logger("financials")


def shortage_loss(shortage_units: float, params: Parameters) -> float:
    """
    Revenue forfeited by *shortage_units* missed units.

    A stockout loses the whole transaction, not just the ingredient, so the
    unit price is grossed up by the ingredient's revenue share.
    """
    if params.revenue_share_of_unit <= 0:
        raise ConfigurationError(
            f"revenue_share_of_unit must be positive, got {params.revenue_share_of_unit}"
        )
    return shortage_units * params.avg_unit_price / params.revenue_share_of_unit


def _rate(part: float, whole: float) -> float:
    return (part / whole * 100) if whole else 0.0


def daily_breakdown(days: Sequence[DayResult], params: Parameters) -> tuple:
    rows = []
    for day in days:
        manual_loss  = shortage_loss(day.total_manual_shortage, params)
        machine_loss = shortage_loss(day.total_machine_shortage, params)
        rows.append(DailyBreakdown(
            day              = day.day,
            demand           = day.total_demand,
            manual_shortage  = day.total_manual_shortage,
            machine_shortage = day.total_machine_shortage,
            manual_loss      = manual_loss,
            machine_loss     = machine_loss,
            net_gain         = shortage_loss(
                day.total_manual_shortage - day.total_machine_shortage, params
            ),
        ))
    return tuple(rows)


def compute_financials(
    summary: RunSummary,
    params: Parameters,
    daily_results: Sequence[DayResult] = (),
) -> FinancialReport:
    """
    Turn shortage totals into revenue terms.

    ``net_gain`` is positive when the automated line loses less than the
    manual process.  Per-day rows come from each day's own totals, never from
    the averaged chart series.
    """
    manual_loss  = shortage_loss(summary.total_manual_shortage, params)
    machine_loss = shortage_loss(summary.total_machine_shortage, params)
    net_gain     = manual_loss - machine_loss

    days = summary.total_days or 1
    avg_daily_net_gain = net_gain / days

    report = FinancialReport(
        total_demand           = summary.total_demand,
        total_manual_shortage  = summary.total_manual_shortage,
        total_machine_shortage = summary.total_machine_shortage,
        manual_loss            = manual_loss,
        machine_loss           = machine_loss,
        net_gain               = net_gain,
        avg_daily_manual_loss  = manual_loss / days,
        avg_daily_machine_loss = machine_loss / days,
        avg_daily_net_gain     = avg_daily_net_gain,
        monthly_net_gain       = avg_daily_net_gain * DAYS_PER_MONTH,
        manual_shortage_rate   = _rate(summary.total_manual_shortage, summary.total_demand),
        machine_shortage_rate  = _rate(summary.total_machine_shortage, summary.total_demand),
        days                   = days,
        is_multi_day           = summary.total_days > 1,
        daily_breakdown        = daily_breakdown(daily_results, params),
    )
    logger.debug("net gain %.0f over %d day(s)", net_gain, days)
    return report


# ── Formatting ────────────────────────────────────────────────────────────────

def format_currency(amount: float) -> str:
    """``12000.4`` → ``"NT$12,000"``; negatives as ``"-NT$300"``."""
    sign = "-" if round(amount) < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{abs(amount):,.0f}"


def format_percent(value: float) -> str:
    return f"{value:.1f}%"
