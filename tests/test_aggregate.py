"""
Tests for multi-day aggregation.
"""

from datetime import date

import numpy as np
import pytest

from capasim.aggregate import aggregate_days, round_half_up
from capasim.binning import minute_label
from capasim.engine import run_simulation
from capasim.models import ChartPoint, DayResult, DemandEvent, MinuteRecord, Parameters


def rec(minute: int, demand=0, manual=0, machine=0, m_short=0, a_short=0) -> MinuteRecord:
    return MinuteRecord(
        minute=minute, time=minute_label(minute), demand=demand,
        manual_supply_added=0, machine_supply_added=0,
        manual_stock=manual, machine_stock=machine,
        manual_shortage=m_short, machine_shortage=a_short,
        is_producing=False,
    )


def day(n: int, *records: MinuteRecord) -> DayResult:
    return DayResult(date(2025, 12, n), tuple(records), 0, 0, 0)


class TestAggregateDays:
    def test_no_days(self):
        assert aggregate_days([]) == []

    def test_single_day_passes_through(self):
        d = day(1, rec(480, demand=3, manual=1.25), rec(481, machine=7))
        out = aggregate_days([d])
        assert out == list(d.minutes)
        assert out[0].manual_stock == 1.25

    def test_single_day_run_charts_its_own_minutes(self):
        result = run_simulation([DemandEvent(date(2025, 12, 1), 600, 40)], [], Parameters(),
                                date(2025, 12, 1), date(2025, 12, 1))
        assert result.chart_data == list(result.daily_results[0].minutes)
        assert all(isinstance(p, MinuteRecord) for p in result.chart_data)

    def test_mean_per_minute(self):
        out = aggregate_days([
            day(1, rec(480, demand=40, manual=0, machine=32, m_short=40)),
            day(2, rec(480, demand=0, manual=10, machine=72)),
        ])
        assert out == [ChartPoint(480, "08:00", 20.0, 5.0, 52.0, 20.0, 0.0)]

    def test_rounds_to_one_decimal(self):
        out = aggregate_days([
            day(1, rec(480, demand=1)),
            day(2, rec(480, demand=2)),
            day(3, rec(480, demand=2)),
        ])
        assert out[0].demand == 1.7

    def test_halves_round_up(self):
        out = aggregate_days([day(i, rec(480, machine=1 if i == 1 else 0)) for i in range(1, 5)])
        assert out[0].machine_stock == 0.3

    def test_missing_minute_shrinks_denominator(self):
        out = aggregate_days([
            day(1, rec(480, demand=4), rec(481, demand=6)),
            day(2, rec(480, demand=2)),
        ])
        assert [p.minute for p in out] == [480, 481]
        assert out[0].demand == 3.0
        assert out[1].demand == 6.0

    def test_first_day_defines_timeline(self):
        out = aggregate_days([
            day(1, rec(480), rec(481)),
            day(2, rec(480), rec(481), rec(482, demand=9)),
        ])
        assert len(out) == 2

    def test_chart_data_from_run(self):
        demand = [DemandEvent(date(2025, 12, 1), 600, 40),
                  DemandEvent(date(2025, 12, 2), 600, 20)]
        result = run_simulation(demand, [], Parameters(), date(2025, 12, 1), date(2025, 12, 2))
        assert len(result.chart_data) == 841
        point = next(p for p in result.chart_data if p.minute == 600)
        assert point.demand == 30.0
        assert point.manual_shortage == 30.0
        assert point.machine_stock == 42.0


def test_round_half_up():
    values = np.array([0.25, 0.75, 1.04, 2.0])
    assert round_half_up(values).tolist() == pytest.approx([0.3, 0.8, 1.0, 2.0])
