#!/usr/bin/env python3
"""
CapaSim — Ingredient Capacity P&L Simulator
===========================================

Replay historical demand against the current manual replenishment process and
a proposed automated production line, then price the stockout difference.

Usage
-----
    python main.py                                   # 7 synthetic demo days
    python main.py --demand pos.csv --supply cook.csv
    python main.py --demand pos.csv --supply cook.csv --start 2025-12-01 --end 2025-12-07
    python main.py --scenario fast_line --detail     # preset + minute table
    python main.py --capacity 96 --lead-time 40      # override single parameters
"""

import argparse
import logging
import sys
import time
from datetime import date

from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from capasim.config import REPORT_DIR, SCENARIOS
from capasim.engine import run_simulation
from capasim.events import load_demand_csv, load_supply_csv, synthetic_events
from capasim.financials import compute_financials
from capasim.log import set_level
from capasim.models import ConfigurationError, Parameters
from capasim.reports import (
    console,
    plot_inventory_chart,
    print_banner,
    print_daily_breakdown,
    print_detail_table,
    print_kpi_table,
    print_parameters,
)

# CLI flag → Parameters field
PARAM_FLAGS = {
    "lead_time":       "lead_time_minutes",
    "threshold":       "trigger_threshold_units",
    "capacity":        "cycle_capacity_units",
    "price":           "avg_unit_price",
    "revenue_share":   "revenue_share_of_unit",
    "units_per_batch": "units_per_manual_batch",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CapaSim — manual vs. automated stockout replay")
    parser.add_argument("--demand", help="Normalized demand CSV (day,time,quantity)")
    parser.add_argument("--supply", help="Normalized manual batch CSV (day,time,batches)")
    parser.add_argument("--start", type=date.fromisoformat, help="First day (YYYY-MM-DD)")
    parser.add_argument("--end",   type=date.fromisoformat, help="Last day (YYYY-MM-DD)")

    parser.add_argument("--scenario", choices=list(SCENARIOS.keys()), default="baseline",
                        help="Parameter preset (default: baseline)")
    parser.add_argument("--lead-time",       type=int,   help="Automated lead time (min)")
    parser.add_argument("--threshold",       type=float, help="Trigger threshold (units)")
    parser.add_argument("--capacity",        type=float, help="Units per automated batch")
    parser.add_argument("--price",           type=float, help="Average unit price")
    parser.add_argument("--revenue-share",   type=float, help="Ingredient share of revenue (0-1]")
    parser.add_argument("--units-per-batch", type=int,   help="Units per manual batch")

    parser.add_argument("--seed",      type=int, default=42,
                        help="Random seed for synthetic demo data (default: 42)")
    parser.add_argument("--demo-days", type=int, default=7,
                        help="Days of synthetic demo data (default: 7)")
    parser.add_argument("--workers",   type=int, default=None,
                        help="Simulate days in N worker processes")
    parser.add_argument("--detail", action="store_true", help="Print the minute detail table")
    parser.add_argument("--page",   type=int, default=1, help="Detail table page (default: 1)")
    parser.add_argument("--no-charts", action="store_true",
                        help="Skip Matplotlib chart generation")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def params_from_args(args: argparse.Namespace) -> Parameters:
    overrides = {
        field: getattr(args, flag)
        for flag, field in PARAM_FLAGS.items()
        if getattr(args, flag) is not None
    }
    return Parameters.from_scenario(args.scenario, **overrides).validate()


def load_events(args: argparse.Namespace, params: Parameters):
    if args.demand:
        demand = load_demand_csv(args.demand)
        supply = load_supply_csv(args.supply, params.units_per_manual_batch) if args.supply else []
        return demand, supply

    start = args.start or date.today()
    console.print(f"[dim]No --demand file given — using {args.demo_days} synthetic "
                  f"day(s) from {start} (seed {args.seed})[/dim]\n")
    return synthetic_events(start, args.demo_days, args.seed, params.units_per_manual_batch)


# ─────────────────────────────────────────────────────────────────────────────
# Main
# ─────────────────────────────────────────────────────────────────────────────

def run(args: argparse.Namespace) -> int:
    if args.verbose:
        set_level(logging.DEBUG)

    print_banner()

    params = params_from_args(args)
    demand, supply = load_events(args, params)
    if not demand:
        console.print("[yellow]No demand events — nothing to simulate.[/yellow]")
        return 0

    days  = sorted({ev.day for ev in demand})
    start = args.start or days[0]
    end   = args.end or days[-1]
    span  = sum(1 for d in days if start <= d <= end)

    print_parameters(params, args.scenario)

    # ── Run the replay with a progress bar ───────────────────────────────────
    wall_start = time.perf_counter()
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(bar_width=35),
        MofNCompleteColumn(),
        TextColumn("days"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        task = progress.add_task(f"[cyan]{start} → {end}", total=span)
        result = run_simulation(
            demand, supply, params, start, end,
            workers=args.workers,
            progress=lambda _day: progress.advance(task, 1),
        )
    wall_elapsed = time.perf_counter() - wall_start
    console.print(f"\n[dim]Replayed {result.summary.total_days} day(s) "
                  f"in {wall_elapsed:.2f}s[/dim]\n")

    if not result.daily_results:
        console.print(f"[yellow]No demand data between {start} and {end}.[/yellow]")
        return 0

    report = compute_financials(result.summary, params, result.daily_results)
    print_kpi_table(report)
    if report.is_multi_day:
        print_daily_breakdown(report)
    if args.detail:
        print_detail_table(result.detail_data, page=args.page)

    if not args.no_charts:
        path = plot_inventory_chart(
            result.chart_data, params, REPORT_DIR,
            name=f"dashboard_{result.start_day}_{result.end_day}",
            is_multi_day=result.is_multi_day,
        )
        if path:
            console.print(f"  [green]✓[/green]  {path}\n")
    return 0


def main() -> None:
    args = build_parser().parse_args()
    try:
        sys.exit(run(args))
    except (ConfigurationError, ValueError, OSError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
