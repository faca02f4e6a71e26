"""
Derivation engine for the spending dashboard.
Pure functions that turn a state snapshot into coverage ratios, runway,
drawdown compliance, discretionary totals and traffic-light gates.
"""
from dataclasses import dataclass

from numeric_utils import safe_number
from state_schema import AppState, DiscretionarySection, RiskSection, Traffic


# Traffic thresholds (boundaries are inclusive)
COVERAGE_GREEN_RATIO = 1.20
COVERAGE_AMBER_RATIO = 1.00
RUNWAY_GREEN_MONTHS = 36
RUNWAY_AMBER_MONTHS = 18
DRAWDOWN_TOLERANCE = 1e-6
SLOW_FLAG_AMBER_COUNT = 2


@dataclass(frozen=True)
class DrawdownCompliance:
    """Minimum super drawdown check"""
    min_required_amount: float
    min_met: bool
    excess_intentional: bool  # display only, never affects traffic


@dataclass(frozen=True)
class DiscretionaryTotals:
    """Planned vs actual discretionary spend, with planned indexed by CPI"""
    total_planned: float
    total_actual: float
    total_planned_indexed: float
    variance: float


@dataclass(frozen=True)
class DerivedValues:
    """Everything the dashboard shows that is computed rather than entered"""
    baseline_indexed: float
    baseline_margin: float
    baseline_coverage_ratio: float
    cash_runway_months: float
    drawdown: DrawdownCompliance
    discretionary: DiscretionaryTotals
    indexed_factor: float
    traffic_baseline: Traffic
    traffic_cash: Traffic
    traffic_drawdown: Traffic
    slow_flag: bool
    lock: bool


def compute_indexed_factor(cpi_yoy: float) -> float:
    """One year of CPI growth as a multiplier"""
    return 1 + safe_number(cpi_yoy)


def compute_inflation_adjusted(amount: float, cpi_yoy: float) -> float:
    """Index an amount by one year of CPI"""
    return safe_number(amount) * compute_indexed_factor(cpi_yoy)


def compute_baseline_coverage_ratio(guaranteed_income_annual_net: float,
                                    baseline_annual_indexed: float) -> float:
    """
    How many times guaranteed income covers indexed baseline spend.

    The denominator is floored at 1 so a zero or negative baseline cannot
    blow the ratio up.
    """
    denominator = max(1.0, safe_number(baseline_annual_indexed))
    return safe_number(guaranteed_income_annual_net) / denominator


def compute_cash_runway_months(cash_balance: float,
                               baseline_annual_indexed: float,
                               contingency_annual: float) -> float:
    """
    Months of baseline plus contingency spend that cash can fund.

    Args:
        cash_balance: Liquid cash on hand
        baseline_annual_indexed: Baseline spend after CPI indexing
        contingency_annual: Annual contingency budget

    Returns:
        Runway in months
    """
    annual_need = max(1.0, safe_number(baseline_annual_indexed) + safe_number(contingency_annual))
    return safe_number(cash_balance) / annual_need * 12


def compute_drawdown_compliance(super_balance: float,
                                drawdown_annual: float,
                                min_required_drawdown_rate: float,
                                excess_intentional: bool = False) -> DrawdownCompliance:
    """
    Check the annual super drawdown against the statutory minimum.

    Args:
        super_balance: Current super balance
        drawdown_annual: Planned annual drawdown
        min_required_drawdown_rate: Minimum rate as a fraction (0.04 = 4%)
        excess_intentional: User's statement that any excess is deliberate

    Returns:
        DrawdownCompliance with the minimum amount and whether it is met
    """
    min_required_amount = (max(0.0, safe_number(super_balance))
                           * max(0.0, safe_number(min_required_drawdown_rate)))
    min_met = safe_number(drawdown_annual) >= min_required_amount - DRAWDOWN_TOLERANCE

    return DrawdownCompliance(
        min_required_amount=min_required_amount,
        min_met=min_met,
        excess_intentional=bool(excess_intentional),
    )


def compute_discretionary_totals(discretionary: DiscretionarySection,
                                 cpi_yoy: float) -> DiscretionaryTotals:
    """
    Sum planned and actual discretionary spend across all categories.

    The planned total is indexed with the same CPI factor as the baseline.
    """
    planned = discretionary.planned
    actual = discretionary.actual

    total_planned = (safe_number(planned.travel) + safe_number(planned.flying)
                     + safe_number(planned.other))
    total_actual = (safe_number(actual.travel) + safe_number(actual.flying)
                    + safe_number(actual.other))
    total_planned_indexed = total_planned * compute_indexed_factor(cpi_yoy)

    return DiscretionaryTotals(
        total_planned=total_planned,
        total_actual=total_actual,
        total_planned_indexed=total_planned_indexed,
        variance=total_actual - total_planned_indexed,
    )


def compute_traffic_for_baseline_coverage(ratio: float) -> Traffic:
    ratio = safe_number(ratio)
    if ratio >= COVERAGE_GREEN_RATIO:
        return 'green'
    if ratio >= COVERAGE_AMBER_RATIO:
        return 'amber'
    return 'red'


def compute_traffic_for_cash_runway(months: float) -> Traffic:
    months = safe_number(months)
    if months >= RUNWAY_GREEN_MONTHS:
        return 'green'
    if months >= RUNWAY_AMBER_MONTHS:
        return 'amber'
    return 'red'


def compute_traffic_for_drawdown_compliance(drawdown: DrawdownCompliance) -> Traffic:
    return 'green' if drawdown.min_met else 'red'


def compute_discretionary_slow_flag(risk: RiskSection) -> bool:
    """Two ambers (or worse) across the risk self-assessments turn the flag on"""
    ratings = [
        risk.baseline_safe_under_crash,
        risk.disc_tolerable_under_bad_run,
        risk.cash_runway_improving,
    ]
    amber_or_worse = sum(1 for rating in ratings if rating in ('amber', 'red'))
    return amber_or_worse >= SLOW_FLAG_AMBER_COUNT


def compute_discretionary_lock(traffic_baseline: Traffic,
                               traffic_cash: Traffic,
                               traffic_drawdown: Traffic,
                               spouse_confidence: Traffic) -> bool:
    """Any single red gate locks discretionary expansion"""
    return 'red' in (traffic_baseline, traffic_cash, traffic_drawdown, spouse_confidence)


def derive(state: AppState) -> DerivedValues:
    """
    Recompute every derived value from a state snapshot.

    Args:
        state: Current AppState (not modified)

    Returns:
        DerivedValues bundle
    """
    cpi_yoy = state.inflation.cpi_yoy
    income = safe_number(state.income.guaranteed_income_annual_net)

    baseline_indexed = compute_inflation_adjusted(state.baseline.baseline_spend_annual, cpi_yoy)
    coverage_ratio = compute_baseline_coverage_ratio(income, baseline_indexed)
    runway_months = compute_cash_runway_months(
        state.cash.cash_balance, baseline_indexed, state.cash.contingency_annual)

    super_section = state.superannuation
    drawdown = compute_drawdown_compliance(
        super_section.super_balance,
        super_section.drawdown_annual,
        super_section.min_required_drawdown_rate,
        super_section.excess_drawdown_intentional,
    )
    discretionary = compute_discretionary_totals(state.discretionary, cpi_yoy)

    traffic_baseline = compute_traffic_for_baseline_coverage(coverage_ratio)
    traffic_cash = compute_traffic_for_cash_runway(runway_months)
    traffic_drawdown = compute_traffic_for_drawdown_compliance(drawdown)

    return DerivedValues(
        baseline_indexed=baseline_indexed,
        baseline_margin=income - baseline_indexed,
        baseline_coverage_ratio=coverage_ratio,
        cash_runway_months=runway_months,
        drawdown=drawdown,
        discretionary=discretionary,
        indexed_factor=compute_indexed_factor(cpi_yoy),
        traffic_baseline=traffic_baseline,
        traffic_cash=traffic_cash,
        traffic_drawdown=traffic_drawdown,
        slow_flag=compute_discretionary_slow_flag(state.risk),
        lock=compute_discretionary_lock(
            traffic_baseline, traffic_cash, traffic_drawdown, state.spouse.confidence),
    )
