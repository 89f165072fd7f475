"""
Tests for the dual-track day simulator and run orchestration.

Validates:
- The documented 08:00 single-order scenario
- Per-minute ordering (supply → completion → trigger → demand)
- Stock / shortage invariants over a synthetic week
- Day selection, empty inputs and worker fan-out
"""

from collections import Counter
from datetime import date

import pytest

from capasim.binning import bin_by_day
from capasim.config import CLOSE_MINUTE, OPEN_MINUTE
from capasim.engine import DualTrackDay, run_simulation, simulate_day
from capasim.events import synthetic_events
from capasim.models import (
    IDLE, ConfigurationError, DemandEvent, Parameters, Producing, RunSummary,
    SupplyEvent,
)

DAY = date(2025, 12, 1)


def params(**kw) -> Parameters:
    base = dict(lead_time_minutes=45, trigger_threshold_units=30, cycle_capacity_units=72)
    base.update(kw)
    return Parameters(**base)


def by_minute(day_result):
    return {rec.minute: rec for rec in day_result.minutes}


def machine_shortage_for(demand: Counter, **kw) -> float:
    return simulate_day(DAY, demand, Counter(), params(**kw)).total_machine_shortage


class TestSingleOrderScenario:
    """One order of 40 units at 10:00, no manual supply."""

    @pytest.fixture
    def result(self):
        return run_simulation([DemandEvent(DAY, 600, 40)], [], params(), DAY, DAY)

    def test_window_covers_open_to_close(self, result):
        minutes = [rec.minute for rec in result.daily_results[0].minutes]
        assert minutes[0] == OPEN_MINUTE == 480
        assert minutes[-1] == CLOSE_MINUTE == 1320
        assert len(minutes) == 841
        assert minutes == sorted(minutes)

    def test_line_triggers_at_open(self, result):
        rec = by_minute(result.daily_results[0])[480]
        assert rec.is_producing is True
        assert rec.machine_stock == 0
        assert rec.time == "08:00"

    def test_batch_lands_after_lead_time(self, result):
        recs = by_minute(result.daily_results[0])
        assert recs[524].machine_supply_added == 0
        assert recs[524].is_producing is True
        assert recs[525].machine_supply_added == 72
        assert recs[525].machine_stock == 72
        assert recs[525].is_producing is False

    def test_demand_served_by_machine_but_not_manual(self, result):
        rec = by_minute(result.daily_results[0])[600]
        assert rec.demand == 40
        assert rec.machine_stock == 32
        assert rec.machine_shortage == 0
        assert rec.manual_stock == 0
        assert rec.manual_shortage == 40

    def test_no_retrigger_above_threshold(self, result):
        recs = result.daily_results[0].minutes
        assert not any(r.is_producing for r in recs if r.minute >= 525)

    def test_summary(self, result):
        assert result.summary == RunSummary(
            total_days=1, total_demand=40,
            total_manual_shortage=40, total_machine_shortage=0,
        )
        assert result.is_multi_day is False


class TestTickOrdering:
    def test_completed_batch_can_retrigger_same_minute(self):
        day = simulate_day(DAY, Counter(), Counter(),
                           params(cycle_capacity_units=10, lead_time_minutes=5))
        recs = by_minute(day)
        assert recs[485].machine_supply_added == 10
        assert recs[485].is_producing is True
        assert recs[490].machine_stock == 20
        assert recs[490].is_producing is True
        assert recs[495].machine_stock == 30
        assert recs[495].is_producing is False

    def test_manual_supply_applied_before_demand(self):
        day = simulate_day(DAY, Counter({500: 10}), Counter({500: 16}), params())
        rec = by_minute(day)[500]
        assert rec.manual_supply_added == 16
        assert rec.manual_stock == 6
        assert rec.manual_shortage == 0

    def test_partial_shortage_clamps_stock(self):
        day = simulate_day(DAY, Counter({560: 30}), Counter({540: 24}), params())
        rec = by_minute(day)[560]
        assert rec.manual_shortage == 6
        assert rec.manual_stock == 0

    def test_tracks_are_independent(self):
        demand = Counter({600: 40})
        without = simulate_day(DAY, demand, Counter(), params())
        with_supply = simulate_day(DAY, demand, Counter({590: 100}), params())
        assert [r.machine_stock for r in without.minutes] == \
               [r.machine_stock for r in with_supply.minutes]
        assert with_supply.total_manual_shortage == 0

    def test_custom_window(self):
        sim = DualTrackDay(DAY, Counter(), Counter(), params(),
                           open_minute=600, close_minute=609)
        day = sim.run()
        assert [r.minute for r in day.minutes] == list(range(600, 610))


class TestInvariants:
    @pytest.fixture(scope="class")
    def week(self):
        demand, supply = synthetic_events(DAY, days=7, seed=7)
        return run_simulation(demand, supply, params(), DAY, date(2025, 12, 7))

    def test_stock_never_negative(self, week):
        for _, rec in week.detail_data:
            assert rec.manual_stock >= 0
            assert rec.machine_stock >= 0

    def test_shortage_is_unmet_demand(self, week):
        for day in week.daily_results:
            manual, machine = 0, 0
            for rec in day.minutes:
                pre_manual  = manual + rec.manual_supply_added
                pre_machine = machine + rec.machine_supply_added
                assert rec.manual_shortage == max(rec.demand - pre_manual, 0)
                assert rec.machine_shortage == max(rec.demand - pre_machine, 0)
                manual, machine = rec.manual_stock, rec.machine_stock

    def test_one_batch_in_flight(self, week):
        lead = params().lead_time_minutes
        for day in week.daily_results:
            arrivals = [r.minute for r in day.minutes if r.machine_supply_added]
            assert all(b - a >= lead for a, b in zip(arrivals, arrivals[1:]))
            assert all(r.machine_supply_added == 72 for r in day.minutes
                       if r.machine_supply_added)

    @pytest.mark.parametrize("lead", [1, 45, 200])
    def test_line_state_after_every_tick(self, lead):
        demand, supply = synthetic_events(DAY, days=1, seed=7)
        sim = DualTrackDay(DAY, bin_by_day(demand)[DAY], bin_by_day(supply)[DAY],
                           params(lead_time_minutes=lead))
        previous, seen_producing = sim.line, False
        for minute in range(OPEN_MINUTE, CLOSE_MINUTE + 1):
            sim.tick(minute)
            line = sim.line
            if isinstance(line, Producing):
                seen_producing = True
                assert minute < line.completes_at <= minute + lead
                # an in-flight batch keeps its completion until it lands
                if isinstance(previous, Producing) and previous.completes_at > minute:
                    assert line == previous
            else:
                assert line is IDLE
            previous = line
        assert seen_producing

    def test_day_totals_match_records(self, week):
        for day in week.daily_results:
            assert day.total_manual_shortage == sum(r.manual_shortage for r in day.minutes)
            assert day.total_machine_shortage == sum(r.machine_shortage for r in day.minutes)

    def test_detail_data_flattens_days_in_order(self, week):
        assert len(week.detail_data) == 7 * 841
        days = [d for d, _ in week.detail_data]
        assert days == sorted(days)


class TestMonotonicity:
    @pytest.mark.parametrize("capacity,expected", [(72, 28), (90, 10), (100, 0), (144, 0)])
    def test_larger_batch_single_order(self, capacity, expected):
        assert machine_shortage_for(Counter({600: 100}),
                                    cycle_capacity_units=capacity) == expected

    @pytest.mark.parametrize("lead,expected", [(45, 28), (120, 28), (121, 100), (150, 100)])
    def test_longer_lead_single_order(self, lead, expected):
        assert machine_shortage_for(Counter({600: 100}), lead_time_minutes=lead) == expected

    def test_larger_batch_can_delay_retrigger(self):
        """A bigger batch keeps stock above threshold longer, so the next
        batch starts later and a later rush can hit an empty line."""
        demand = Counter({530: 50, 540: 30, 560: 40, 580: 50})
        assert machine_shortage_for(demand, cycle_capacity_units=72) == 48
        assert machine_shortage_for(demand, cycle_capacity_units=100) == 70


class TestRunSimulation:
    def test_empty_input(self):
        result = run_simulation([], [], params(), DAY, DAY)
        assert result.summary == RunSummary()
        assert result.daily_results == []
        assert result.chart_data == []
        assert result.detail_data == []

    def test_range_without_data(self):
        result = run_simulation([DemandEvent(DAY, 600, 5)], [], params(),
                                date(2026, 1, 1), date(2026, 1, 31))
        assert result.summary.total_days == 0
        assert result.chart_data == []

    def test_days_filtered_by_range(self):
        demand = [DemandEvent(date(2025, 12, d), 600, 5) for d in (1, 2, 3)]
        result = run_simulation(demand, [], params(), date(2025, 12, 2), date(2025, 12, 3))
        assert [r.day for r in result.daily_results] == [date(2025, 12, 2), date(2025, 12, 3)]
        assert result.summary.total_demand == 10
        assert result.is_multi_day is True

    def test_zero_quantity_demand_still_marks_a_day(self):
        result = run_simulation([DemandEvent(DAY, 600, 0)], [], params(), DAY, DAY)
        assert result.summary.total_days == 1
        assert result.summary.total_demand == 0

    def test_supply_on_other_days_ignored(self):
        result = run_simulation(
            [DemandEvent(DAY, 600, 10)],
            [SupplyEvent(date(2025, 12, 2), 500, 80)],
            params(), DAY, date(2025, 12, 2),
        )
        assert result.summary.total_manual_shortage == 10

    def test_progress_called_per_day(self):
        seen = []
        demand = [DemandEvent(date(2025, 12, d), 600, 5) for d in (1, 2)]
        run_simulation(demand, [], params(), DAY, date(2025, 12, 2), progress=seen.append)
        assert [r.day for r in seen] == [date(2025, 12, 1), date(2025, 12, 2)]

    def test_workers_match_sequential(self):
        demand, supply = synthetic_events(DAY, days=3, seed=3)
        end = date(2025, 12, 3)
        seq = run_simulation(demand, supply, params(), DAY, end)
        par = run_simulation(demand, supply, params(), DAY, end, workers=2)
        assert par.daily_results == seq.daily_results
        assert par.chart_data == seq.chart_data

    def test_invalid_parameters_rejected(self):
        with pytest.raises(ConfigurationError):
            run_simulation([DemandEvent(DAY, 600, 5)], [],
                           params(lead_time_minutes=0), DAY, DAY)
