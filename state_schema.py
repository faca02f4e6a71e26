"""
Dashboard state schema and defaults.
Immutable section dataclasses, closed value sets and the JSON key mapping
used by the persisted record.
"""
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Literal, Tuple


# Closed value sets
TRAFFIC_VALUES = ('green', 'amber', 'red')
PHASE_VALUES = ('phase1', 'phase2', 'phase3')
SIGNAL_VALUES = ('up', 'flat', 'down')
VARIANCE_TYPES = ('intentional', 'drift')
LONG_HAUL_TRAVEL_VALUES = ('energising', 'neutral', 'taxing')
FLYING_VALUES = ('worthIt', 'marginal', 'sunset')
COMPLEXITY_VALUES = ('high', 'medium', 'low')
DISCRETIONARY_CATEGORIES = ('travel', 'flying', 'other')
DISCRETIONARY_KINDS = ('planned', 'actual')

Traffic = Literal['green', 'amber', 'red']
Phase = Literal['phase1', 'phase2', 'phase3']
Signal = Literal['up', 'flat', 'down']


def _field(key: str, kind: str, default: Any = None, choices: Tuple[str, ...] = (),
           default_factory: Any = None):
    """Declare a schema field with its persisted key and coercion kind"""
    metadata = {'key': key, 'kind': kind, 'choices': choices}
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=metadata)
    return field(default=default, metadata=metadata)


@dataclass(frozen=True)
class CategoryAmounts:
    """Annual amount per discretionary category"""
    travel: float = _field('travel', 'number', 0.0)
    flying: float = _field('flying', 'number', 0.0)
    other: float = _field('other', 'number', 0.0)


@dataclass(frozen=True)
class BaselineSection:
    baseline_spend_annual: float = _field('baselineSpendAnnual', 'number', 75_000.0)


@dataclass(frozen=True)
class IncomeSection:
    guaranteed_income_annual_net: float = _field('guaranteedIncomeAnnualNet', 'number', 92_000.0)


@dataclass(frozen=True)
class CashSection:
    cash_balance: float = _field('cashBalance', 'number', 660_000.0)
    contingency_annual: float = _field('contingencyAnnual', 'number', 15_000.0)


@dataclass(frozen=True)
class SuperSection:
    """Superannuation (pension account) balance and drawdown"""
    super_balance: float = _field('superBalance', 'number', 2_060_000.0)
    drawdown_annual: float = _field('drawdownAnnual', 'number', 0.0)
    min_required_drawdown_rate: float = _field('minRequiredDrawdownRate', 'number', 0.04)  # 0.04 = 4%
    excess_drawdown_intentional: bool = _field('excessDrawdownIntentional', 'bool', True)


@dataclass(frozen=True)
class DiscretionarySection:
    planned: CategoryAmounts = _field(
        'planned', 'amounts',
        default_factory=lambda: CategoryAmounts(travel=40_000.0, flying=30_000.0, other=20_000.0))
    actual: CategoryAmounts = _field('actual', 'amounts', default_factory=CategoryAmounts)
    variance_type: str = _field('varianceType', 'enum', 'intentional', VARIANCE_TYPES)


@dataclass(frozen=True)
class PhaseSection:
    current: Phase = _field('current', 'enum', 'phase1', PHASE_VALUES)
    years_remaining_min: int = _field('yearsRemainingMin', 'int', 6)
    years_remaining_max: int = _field('yearsRemainingMax', 'int', 9)
    next_trigger: str = _field('nextTrigger', 'str', 'Flying ends ~8 years; overseas continues ~5')


@dataclass(frozen=True)
class InflationSection:
    cpi_yoy: float = _field('cpiYoY', 'number', 0.03)  # 0.03 = 3%
    real_baseline_signal: Signal = _field('realBaselineSignal', 'enum', 'flat', SIGNAL_VALUES)
    real_discretionary_signal: Signal = _field('realDiscretionarySignal', 'enum', 'flat', SIGNAL_VALUES)


@dataclass(frozen=True)
class RiskSection:
    """Manual sequence-risk self-assessments"""
    baseline_safe_under_crash: Traffic = _field('baselineSafeUnderCrash', 'enum', 'green', TRAFFIC_VALUES)
    disc_tolerable_under_bad_run: Traffic = _field('discTolerableUnderBadRun', 'enum', 'amber', TRAFFIC_VALUES)
    cash_runway_improving: Traffic = _field('cashRunwayImproving', 'enum', 'amber', TRAFFIC_VALUES)


@dataclass(frozen=True)
class CapabilitySection:
    long_haul_travel: str = _field('longHaulTravel', 'enum', 'energising', LONG_HAUL_TRAVEL_VALUES)
    flying: str = _field('flying', 'enum', 'worthIt', FLYING_VALUES)
    complexity_tolerance: str = _field('complexityTolerance', 'enum', 'medium', COMPLEXITY_VALUES)


@dataclass(frozen=True)
class SpouseSection:
    confidence: Traffic = _field('confidence', 'enum', 'green', TRAFFIC_VALUES)
    notes: str = _field('notes', 'str', '')


@dataclass(frozen=True)
class VerdictSection:
    worked: str = _field('worked', 'str', '')
    off: str = _field('off', 'str', '')
    change: str = _field('change', 'str', '')


@dataclass(frozen=True)
class AppState:
    """Single current snapshot of everything the household has entered"""
    baseline: BaselineSection = _field('baseline', 'section', default_factory=BaselineSection)
    income: IncomeSection = _field('income', 'section', default_factory=IncomeSection)
    cash: CashSection = _field('cash', 'section', default_factory=CashSection)
    superannuation: SuperSection = _field('super', 'section', default_factory=SuperSection)
    discretionary: DiscretionarySection = _field('discretionary', 'section',
                                                 default_factory=DiscretionarySection)
    phase: PhaseSection = _field('phase', 'section', default_factory=PhaseSection)
    inflation: InflationSection = _field('inflation', 'section', default_factory=InflationSection)
    risk: RiskSection = _field('risk', 'section', default_factory=RiskSection)
    capability: CapabilitySection = _field('capability', 'section', default_factory=CapabilitySection)
    spouse: SpouseSection = _field('spouse', 'section', default_factory=SpouseSection)
    verdict: VerdictSection = _field('verdict', 'section', default_factory=VerdictSection)


DEFAULT_STATE = AppState()

# Section attribute name -> section dataclass
SECTION_TYPES = {f.name: f.type for f in fields(AppState)}


def json_key(schema_field) -> str:
    """Persisted (camelCase) key for a dataclass field"""
    return schema_field.metadata['key']


def get_schema_field(section_cls, name: str):
    """
    Look up a field of a section dataclass by attribute name.

    Raises:
        KeyError: if the section has no such field
    """
    for schema_field in fields(section_cls):
        if schema_field.name == name:
            return schema_field
    raise KeyError(f"{section_cls.__name__} has no field '{name}'")


def to_record(value: Any) -> Any:
    """Convert a section (or any schema dataclass) to its record-keyed dict"""
    if hasattr(value, '__dataclass_fields__'):
        return {json_key(f): to_record(getattr(value, f.name)) for f in fields(value)}
    return value


def state_to_dict(state: AppState) -> Dict[str, Any]:
    """
    Convert an AppState to the persisted record shape.

    Args:
        state: AppState snapshot

    Returns:
        Nested dictionary keyed by the camelCase record keys
    """
    return to_record(state)
