"""
Rich console output and Matplotlib inventory chart generation.
"""

from __future__ import annotations

import os
from datetime import date
from typing import List, Sequence, Tuple, Union

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import (
    APP_NAME, APP_TAGLINE, APP_VERSION, DEMAND_COLOR, DETAIL_PAGE_SIZE,
    MACHINE_COLOR, MANUAL_COLOR, THRESHOLD_COLOR, SCENARIOS,
)
from .financials import format_currency, format_percent
from .models import ChartPoint, FinancialReport, MinuteRecord, Parameters

console = Console()


# ─────────────────────────────────────────────────────────────────────────────
# Banner
# ─────────────────────────────────────────────────────────────────────────────

def print_banner() -> None:
    lines = [
        f"[bold white]{APP_NAME}[/bold white]",
        f"[dim]{APP_TAGLINE}[/dim]",
        "",
        "[bold cyan]Minute-resolution dual-track stockout replay[/bold cyan]",
        f"[dim]v{APP_VERSION}  ·  SimPy engine[/dim]",
    ]
    console.print(Panel("\n".join(lines), style="bold blue", expand=False))
    console.print()


def print_parameters(params: Parameters, scenario_id: str | None = None) -> None:
    title = "Parameters"
    if scenario_id:
        title += f"  —  {SCENARIOS[scenario_id]['label']}"
    t = Table(box=box.SIMPLE_HEAD, show_header=False, title=title, title_justify="left")
    t.add_column("Parameter", style="cyan", min_width=28)
    t.add_column("Value", style="white", justify="right")
    t.add_row("Automated lead time",    f"{params.lead_time_minutes} min")
    t.add_row("Trigger threshold",      f"{params.trigger_threshold_units:g} units")
    t.add_row("Cycle capacity",         f"{params.cycle_capacity_units:g} units")
    t.add_row("Average unit price",     format_currency(params.avg_unit_price))
    t.add_row("Ingredient revenue share", format_percent(params.revenue_share_of_unit * 100))
    t.add_row("Units per manual batch", f"{params.units_per_manual_batch}")
    console.print(t)
    console.print()


# ─────────────────────────────────────────────────────────────────────────────
# KPI summary
# ─────────────────────────────────────────────────────────────────────────────

def print_kpi_table(report: FinancialReport) -> None:
    span = f"{report.days}-day average" if report.is_multi_day else "single day"
    console.rule(f"[bold]Stockout P&L[/bold]  —  {span}")

    t = Table(box=box.SIMPLE_HEAD, show_header=True, header_style="bold magenta")
    t.add_column("KPI",        style="cyan",  min_width=32)
    t.add_column("Manual",     style="white", justify="right", min_width=16)
    t.add_column("Automated",  style="white", justify="right", min_width=16)

    def rate_style(v):
        colour = "green" if v <= 2 else ("yellow" if v <= 10 else "red")
        return f"[{colour}]{format_percent(v)}[/{colour}]"

    t.add_row("Total demand (units)",
              f"{report.total_demand:>12,d}", f"{report.total_demand:>12,d}")
    t.add_row("Shortage (units)",
              f"{report.total_manual_shortage:>12,.0f}",
              f"{report.total_machine_shortage:>12,.0f}")
    t.add_row("Shortage rate",
              rate_style(report.manual_shortage_rate),
              rate_style(report.machine_shortage_rate))
    t.add_row("Lost revenue",
              format_currency(report.manual_loss), format_currency(report.machine_loss))
    t.add_row("Lost revenue / day",
              format_currency(report.avg_daily_manual_loss),
              format_currency(report.avg_daily_machine_loss))
    console.print(t)

    colour = "green" if report.net_gain >= 0 else "red"
    console.print(
        f"  Net gain from automation: [{colour}]{format_currency(report.net_gain)}[/{colour}]"
        f"   ·   per day [{colour}]{format_currency(report.avg_daily_net_gain)}[/{colour}]"
        f"   ·   30-day projection [bold {colour}]"
        f"{format_currency(report.monthly_net_gain)}[/bold {colour}]"
    )
    console.print()


def print_daily_breakdown(report: FinancialReport) -> None:
    if not report.daily_breakdown:
        return
    console.rule("[bold yellow]Daily Breakdown[/bold yellow]")

    t = Table(box=box.DOUBLE_EDGE, show_header=True, header_style="bold yellow")
    t.add_column("Day",              style="cyan", no_wrap=True, min_width=10)
    t.add_column("Demand",           justify="right")
    t.add_column("Manual short",     justify="right")
    t.add_column("Auto short",       justify="right")
    t.add_column("Manual loss",      justify="right")
    t.add_column("Auto loss",        justify="right")
    t.add_column("Net gain",         justify="right")

    for row in report.daily_breakdown:
        colour = "green" if row.net_gain >= 0 else "red"
        t.add_row(
            row.day.isoformat(),
            f"{row.demand:,d}",
            f"{row.manual_shortage:,.0f}",
            f"{row.machine_shortage:,.0f}",
            format_currency(row.manual_loss),
            format_currency(row.machine_loss),
            f"[{colour}]{format_currency(row.net_gain)}[/{colour}]",
        )
    console.print(t)
    console.print()


# ─────────────────────────────────────────────────────────────────────────────
# Minute-level detail
# ─────────────────────────────────────────────────────────────────────────────

def paginate(rows: Sequence, page: int, page_size: int = DETAIL_PAGE_SIZE) -> Tuple[list, int]:
    """Return ``(rows_on_page, page_count)``; *page* is 1-based and clamped."""
    pages = max(1, -(-len(rows) // page_size))
    page  = min(max(1, page), pages)
    start = (page - 1) * page_size
    return list(rows[start:start + page_size]), pages


def print_detail_table(
    detail: Sequence[Tuple[date, MinuteRecord]],
    page: int = 1,
    only_events: bool = True,
) -> None:
    """
    Minute-by-minute table.  With *only_events* rows where nothing happened
    (no demand, no supply, no shortage) are hidden.
    """
    if only_events:
        detail = [
            (d, r) for d, r in detail
            if r.demand or r.manual_supply_added or r.machine_supply_added
            or r.manual_shortage or r.machine_shortage
        ]
    rows, pages = paginate(detail, page)
    console.rule(f"[bold]Minute Detail[/bold]  [dim]page {min(max(1, page), pages)}/{pages}[/dim]")

    t = Table(box=box.SIMPLE_HEAD, show_header=True, header_style="bold magenta")
    for col in ("Day", "Time", "Demand", "Manual +", "Auto +",
                "Manual stock", "Auto stock", "Manual short", "Auto short", "Line"):
        t.add_column(col, justify="left" if col in ("Day", "Time") else "right")

    for day, r in rows:
        t.add_row(
            day.isoformat(), r.time, f"{r.demand}",
            f"{r.manual_supply_added:g}", f"{r.machine_supply_added:g}",
            f"{r.manual_stock:g}", f"{r.machine_stock:g}",
            f"[red]{r.manual_shortage:g}[/red]" if r.manual_shortage else "0",
            f"[red]{r.machine_shortage:g}[/red]" if r.machine_shortage else "0",
            "[cyan]cooking[/cyan]" if r.is_producing else "[dim]idle[/dim]",
        )
    console.print(t)
    console.print()


# ─────────────────────────────────────────────────────────────────────────────
# Matplotlib chart
# ─────────────────────────────────────────────────────────────────────────────

def _style_ax(ax, title):
    ax.set_title(title, fontsize=9, fontweight="bold", pad=6)
    ax.tick_params(labelsize=7)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.grid(axis="y", alpha=0.3)


def plot_inventory_chart(
    chart_data: List[Union[MinuteRecord, ChartPoint]],
    params: Parameters,
    out_dir: str,
    name: str = "dashboard",
    is_multi_day: bool = False,
) -> str:
    """
    Two-panel chart: stock levels of both tracks (top) and per-minute demand
    with shortages (bottom).  Returns the saved file path.
    """
    if not chart_data:
        return ""

    minutes  = np.array([p.minute for p in chart_data])
    manual   = np.array([p.manual_stock for p in chart_data])
    machine  = np.array([p.machine_stock for p in chart_data])
    demand   = np.array([p.demand for p in chart_data])
    m_short  = np.array([p.manual_shortage for p in chart_data])
    a_short  = np.array([p.machine_shortage for p in chart_data])

    fig, axes = plt.subplots(2, 1, figsize=(13, 7), sharex=True,
                             gridspec_kw={"height_ratios": [3, 2]})
    suffix = " (multi-day average)" if is_multi_day else ""
    fig.suptitle(f"{APP_NAME}  ·  Manual vs. Automated Stock{suffix}",
                 fontsize=11, fontweight="bold")
    plt.subplots_adjust(hspace=0.25)

    # ── Stock levels ─────────────────────────────────────────────────────────
    ax = axes[0]
    ax.step(minutes, manual,  where="post", color=MANUAL_COLOR,  linewidth=1.4, label="Manual")
    ax.step(minutes, machine, where="post", color=MACHINE_COLOR, linewidth=1.4, label="Automated")
    ax.axhline(params.trigger_threshold_units, color=THRESHOLD_COLOR, linewidth=0.8,
               linestyle="--", alpha=0.8, label="Trigger threshold")
    ax.set_ylabel("Stock (units)", fontsize=8)
    ax.legend(fontsize=7, loc="upper right")
    _style_ax(ax, "Inventory")

    # ── Demand & shortages ───────────────────────────────────────────────────
    ax = axes[1]
    ax.bar(minutes, demand, width=1.0, color=DEMAND_COLOR, alpha=0.6, label="Demand")
    ax.bar(minutes, m_short, width=1.0, color=MANUAL_COLOR, alpha=0.85, label="Manual shortage")
    ax.bar(minutes, a_short, width=1.0, color=MACHINE_COLOR, alpha=0.85, label="Automated shortage")
    ax.set_ylabel("Units / min", fontsize=8)
    ax.legend(fontsize=7, loc="upper right")
    _style_ax(ax, "Demand and Shortage")

    ticks = [m for m in minutes if m % 60 == 0]
    ax.set_xticks(ticks)
    ax.set_xticklabels([p.time for p in chart_data if p.minute % 60 == 0], fontsize=7)
    ax.set_xlabel("Time of day", fontsize=8)

    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, f"{name}.png")
    fig.savefig(path, dpi=130, bbox_inches="tight")
    plt.close(fig)
    return path
