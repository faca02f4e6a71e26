"""
Unit tests for the derivation engine: formulas, traffic thresholds and gates.
"""
import itertools
from dataclasses import replace

import pytest
import numpy as np

from derivation import (
    compute_inflation_adjusted, compute_baseline_coverage_ratio,
    compute_cash_runway_months, compute_drawdown_compliance,
    compute_discretionary_totals, compute_traffic_for_baseline_coverage,
    compute_traffic_for_cash_runway, compute_traffic_for_drawdown_compliance,
    compute_discretionary_slow_flag, compute_discretionary_lock, derive,
    DrawdownCompliance
)
from state_schema import (
    DEFAULT_STATE, CategoryAmounts, DiscretionarySection, RiskSection, TRAFFIC_VALUES
)


class TestInflationAndCoverage:
    """Test CPI indexing and the baseline coverage ratio"""

    def test_inflation_adjusted(self):
        assert compute_inflation_adjusted(75_000, 0.03) == pytest.approx(77_250)

    def test_inflation_adjusted_malformed_inputs(self):
        """Malformed amount or CPI are treated as zero"""
        assert compute_inflation_adjusted(float('nan'), 0.03) == 0.0
        assert compute_inflation_adjusted(1000, None) == 1000.0

    def test_coverage_ratio_basic(self):
        assert compute_baseline_coverage_ratio(92_000, 77_250) == pytest.approx(1.19094, rel=1e-4)

    def test_coverage_ratio_denominator_floor(self):
        """Zero or negative baseline divides by 1 rather than blowing up"""
        assert compute_baseline_coverage_ratio(500, 0) == 500
        assert compute_baseline_coverage_ratio(500, -10_000) == 500
        assert compute_baseline_coverage_ratio(500, 0.25) == 500

    def test_coverage_monotonic_in_income(self):
        incomes = np.linspace(0, 200_000, 50)
        ratios = [compute_baseline_coverage_ratio(income, 77_250) for income in incomes]
        assert all(b > a for a, b in zip(ratios, ratios[1:]))

    def test_coverage_monotonic_in_baseline(self):
        baselines = np.linspace(1_000, 200_000, 50)
        ratios = [compute_baseline_coverage_ratio(92_000, baseline) for baseline in baselines]
        assert all(b < a for a, b in zip(ratios, ratios[1:]))


class TestCashRunway:
    """Test runway months"""

    def test_runway_basic(self):
        months = compute_cash_runway_months(660_000, 77_250, 15_000)
        assert months == pytest.approx(660_000 / 92_250 * 12)
        assert months == pytest.approx(85.85, abs=0.01)

    def test_runway_need_floor(self):
        """Annual need is floored at 1"""
        assert compute_cash_runway_months(10, 0, 0) == 120
        assert compute_cash_runway_months(10, -5_000, 1_000) == 120

    def test_runway_malformed_cash(self):
        assert compute_cash_runway_months("oops", 77_250, 15_000) == 0.0


class TestDrawdownCompliance:
    """Test the minimum drawdown check"""

    def test_minimum_amount(self):
        drawdown = compute_drawdown_compliance(2_060_000, 0, 0.04)
        assert drawdown.min_required_amount == pytest.approx(82_400)
        assert drawdown.min_met is False

    def test_exact_minimum_is_met(self):
        """Boundary is inclusive within tolerance"""
        required = compute_drawdown_compliance(2_060_000, 0, 0.04).min_required_amount
        assert compute_drawdown_compliance(2_060_000, required, 0.04).min_met is True
        assert compute_drawdown_compliance(2_060_000, required - 5e-7, 0.04).min_met is True
        assert compute_drawdown_compliance(2_060_000, required - 1e-3, 0.04).min_met is False

    def test_negative_balance_and_rate_floor_at_zero(self):
        assert compute_drawdown_compliance(-100_000, 0, 0.04).min_required_amount == 0
        assert compute_drawdown_compliance(100_000, 0, -0.04).min_required_amount == 0
        assert compute_drawdown_compliance(-100_000, 0, 0.04).min_met is True

    def test_excess_intentional_is_display_only(self):
        """The intentional flag is carried through but never changes the traffic"""
        met = compute_drawdown_compliance(1_000_000, 50_000, 0.04, excess_intentional=False)
        assert met.excess_intentional is False
        assert compute_traffic_for_drawdown_compliance(met) == 'green'

        missed = compute_drawdown_compliance(1_000_000, 0, 0.04, excess_intentional=True)
        assert missed.excess_intentional is True
        assert compute_traffic_for_drawdown_compliance(missed) == 'red'


class TestDiscretionaryTotals:
    """Test planned/actual totals and CPI indexing of the planned total"""

    def test_totals_from_defaults(self):
        totals = compute_discretionary_totals(DEFAULT_STATE.discretionary, 0.03)
        assert totals.total_planned == 90_000
        assert totals.total_actual == 0
        assert totals.total_planned_indexed == pytest.approx(92_700)
        assert totals.variance == pytest.approx(-92_700)

    def test_same_cpi_factor_as_baseline(self):
        """Indexed planned total uses the same factor as the indexed baseline"""
        cpi = 0.045
        totals = compute_discretionary_totals(DEFAULT_STATE.discretionary, cpi)
        assert totals.total_planned_indexed == pytest.approx(
            compute_inflation_adjusted(totals.total_planned, cpi))

    def test_actual_total(self):
        discretionary = DiscretionarySection(
            planned=CategoryAmounts(travel=10_000, flying=0, other=5_000),
            actual=CategoryAmounts(travel=12_000, flying=1_000, other=500),
        )
        totals = compute_discretionary_totals(discretionary, 0.0)
        assert totals.total_planned == 15_000
        assert totals.total_actual == 13_500
        assert totals.variance == pytest.approx(-1_500)


class TestTrafficThresholds:
    """Test closed-interval boundaries of each traffic light"""

    def test_coverage_boundaries(self):
        assert compute_traffic_for_baseline_coverage(1.20) == 'green'
        assert compute_traffic_for_baseline_coverage(1.1999) == 'amber'
        assert compute_traffic_for_baseline_coverage(1.00) == 'amber'
        assert compute_traffic_for_baseline_coverage(0.999999) == 'red'

    def test_runway_boundaries(self):
        assert compute_traffic_for_cash_runway(36) == 'green'
        assert compute_traffic_for_cash_runway(35.999) == 'amber'
        assert compute_traffic_for_cash_runway(18) == 'amber'
        assert compute_traffic_for_cash_runway(17.999) == 'red'

    def test_malformed_values_are_red(self):
        assert compute_traffic_for_baseline_coverage(float('nan')) == 'red'
        assert compute_traffic_for_cash_runway(None) == 'red'

    def test_drawdown_traffic(self):
        assert compute_traffic_for_drawdown_compliance(DrawdownCompliance(100, True, False)) == 'green'
        assert compute_traffic_for_drawdown_compliance(DrawdownCompliance(100, False, True)) == 'red'


class TestSlowFlag:
    """Test the two-ambers-or-worse rule"""

    @pytest.mark.parametrize("ratings", list(itertools.product(TRAFFIC_VALUES, repeat=3)))
    def test_slow_flag_all_combinations(self, ratings):
        risk = RiskSection(*ratings)
        amber_or_worse = sum(1 for rating in ratings if rating != 'green')
        assert compute_discretionary_slow_flag(risk) is (amber_or_worse >= 2)

    def test_default_risk_is_slow(self):
        """Defaults carry two ambers"""
        assert compute_discretionary_slow_flag(DEFAULT_STATE.risk) is True


class TestCompositeLock:
    """Test the any-red veto over the four gates"""

    @pytest.mark.parametrize("gates", list(itertools.product(TRAFFIC_VALUES, repeat=4)))
    def test_lock_iff_any_red(self, gates):
        assert compute_discretionary_lock(*gates) is ('red' in gates)

    def test_all_amber_not_locked(self):
        assert compute_discretionary_lock('amber', 'amber', 'amber', 'amber') is False


class TestDerive:
    """Test the full derived bundle"""

    def test_end_to_end_default_scenario(self):
        """Default household: amber coverage, green runway, red drawdown, locked"""
        derived = derive(DEFAULT_STATE)

        assert derived.baseline_indexed == pytest.approx(77_250)
        assert derived.baseline_coverage_ratio == pytest.approx(1.1909, abs=1e-4)
        assert derived.traffic_baseline == 'amber'
        assert derived.cash_runway_months == pytest.approx(85.85, abs=0.01)
        assert derived.traffic_cash == 'green'
        assert derived.drawdown.min_required_amount == pytest.approx(82_400)
        assert derived.drawdown.min_met is False
        assert derived.traffic_drawdown == 'red'
        assert derived.lock is True
        assert derived.baseline_margin == pytest.approx(92_000 - 77_250)
        assert derived.indexed_factor == pytest.approx(1.03)
        assert derived.discretionary.total_planned_indexed == pytest.approx(92_700)

    def test_meeting_minimum_drawdown_unlocks(self):
        state = replace(DEFAULT_STATE, superannuation=replace(
            DEFAULT_STATE.superannuation, drawdown_annual=82_400))
        derived = derive(state)
        assert derived.traffic_drawdown == 'green'
        assert derived.lock is False

    def test_spouse_red_alone_locks(self):
        state = replace(
            DEFAULT_STATE,
            superannuation=replace(DEFAULT_STATE.superannuation, drawdown_annual=100_000),
            spouse=replace(DEFAULT_STATE.spouse, confidence='red'),
        )
        derived = derive(state)
        assert (derived.traffic_baseline, derived.traffic_cash, derived.traffic_drawdown) == \
            ('amber', 'green', 'green')
        assert derived.lock is True

    def test_derive_does_not_mutate_and_is_deterministic(self):
        before = DEFAULT_STATE
        first = derive(DEFAULT_STATE)
        second = derive(DEFAULT_STATE)
        assert first == second
        assert DEFAULT_STATE == before
