"""
Streamlit dashboard for the retirement spending self-assessment.
Quarterly glance, annual decision. All numbers come from the derivation
engine; every edit is applied copy-on-write and saved locally.
"""
from datetime import datetime

import streamlit as st

from charts import SPOUSE_LABELS, create_discretionary_chart, create_traffic_light_strip
from config_utils import load_dashboard_config
from io_utils import (
    CATEGORY_LABELS, export_discretionary_csv, format_currency, format_months,
    format_percent, format_ratio
)
from persistence import FileStore, StatePersistence
from session import DashboardSession
from state_schema import (
    COMPLEXITY_VALUES, DISCRETIONARY_CATEGORIES, FLYING_VALUES, LONG_HAUL_TRAVEL_VALUES,
    PHASE_VALUES, SIGNAL_VALUES, TRAFFIC_VALUES, VARIANCE_TYPES
)


TRAFFIC_ICONS = {'green': '🟢', 'amber': '🟠', 'red': '🔴'}
PHASE_LABELS = {
    'phase1': 'Phase-1 Active',
    'phase2': 'Phase-2 Step-down',
    'phase3': 'Phase-3 Home-centred',
}
SIGNAL_LABELS = {'up': '↑', 'flat': '→', 'down': '↓'}
RISK_LABELS = {'green': 'Yes', 'amber': 'Maybe', 'red': 'No'}
VARIANCE_LABELS = {'intentional': 'Intentional ✓', 'drift': 'Drift ⚠'}


def initialize_session_state():
    """Create the dashboard session once per browser session"""
    if 'dashboard_session' not in st.session_state:
        config = load_dashboard_config()
        persistence = StatePersistence(FileStore(config['state_dir']))
        st.session_state.dashboard_config = config
        st.session_state.dashboard_session = DashboardSession.start(persistence)
    if 'widget_generation' not in st.session_state:
        st.session_state.widget_generation = 0


def get_session() -> DashboardSession:
    return st.session_state.dashboard_session


def money(value: float) -> str:
    return format_currency(value, st.session_state.dashboard_config['currency_symbol'])


def _key(*parts) -> str:
    # Generation suffix lets reset rebuild every widget from the new state
    return ".".join(str(p) for p in parts) + f"#{st.session_state.widget_generation}"


def _sync_field(section: str, field_name: str, key: str, scale: float = 1.0):
    value = st.session_state[key]
    if scale != 1.0 and isinstance(value, (int, float)):
        value = value / scale
    get_session().set_field(section, field_name, value)


def _sync_discretionary(kind: str, category: str, key: str):
    get_session().set_discretionary_amount(kind, category, st.session_state[key])


def _reset_to_defaults():
    get_session().reset()
    st.session_state.widget_generation += 1


def number_field(label: str, section: str, field_name: str, percent: bool = False,
                 step: float = 1000.0, fmt: str = "%.0f", **kwargs):
    """Number input bound to one state field"""
    current = getattr(getattr(get_session().state, section), field_name)
    scale = 100.0 if percent else 1.0
    key = _key(section, field_name)
    st.number_input(
        label,
        value=float(current) * scale,
        step=step,
        format=fmt,
        key=key,
        on_change=_sync_field,
        args=(section, field_name, key, scale),
        **kwargs
    )


def int_field(label: str, section: str, field_name: str):
    current = getattr(getattr(get_session().state, section), field_name)
    key = _key(section, field_name)
    st.number_input(label, value=int(current), step=1, key=key,
                    on_change=_sync_field, args=(section, field_name, key))


def text_field(label: str, section: str, field_name: str, area: bool = False):
    current = getattr(getattr(get_session().state, section), field_name)
    key = _key(section, field_name)
    widget = st.text_area if area else st.text_input
    widget(label, value=current, key=key, on_change=_sync_field, args=(section, field_name, key))


def choice_field(label: str, section: str, field_name: str, options, labels=None,
                 selectbox: bool = False):
    """Radio (or selectbox) bound to one closed-enum state field"""
    current = getattr(getattr(get_session().state, section), field_name)
    options = list(options)
    key = _key(section, field_name)
    format_func = (lambda v: labels.get(v, str(v))) if labels else str
    widget = st.selectbox if selectbox else st.radio
    extra = {} if selectbox else {'horizontal': True}
    widget(
        label,
        options=options,
        index=options.index(current) if current in options else 0,
        format_func=format_func,
        key=key,
        on_change=_sync_field,
        args=(section, field_name, key),
        **extra
    )


def display_system_health():
    """Section A: the three computed gates"""
    session = get_session()
    state, derived = session.state, session.derived

    st.header("A: System Health")
    st.caption("If this row isn't green, nothing else matters.")

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric(f"{TRAFFIC_ICONS[derived.traffic_baseline]} Baseline Coverage Ratio",
                  format_ratio(derived.baseline_coverage_ratio))
        st.caption(f"Target ≥ 1.20× • {money(state.income.guaranteed_income_annual_net)} ÷ "
                   f"{money(derived.baseline_indexed)} (baseline indexed)")
    with col2:
        st.metric(f"{TRAFFIC_ICONS[derived.traffic_cash]} Cash Runway",
                  format_months(derived.cash_runway_months))
        st.caption(f"Target 36–60 months • {money(state.cash.cash_balance)} cash vs baseline+contingency")
    with col3:
        drawdown = derived.drawdown
        if drawdown.min_met:
            compliance = "Yes / Yes" if drawdown.excess_intentional else "Yes / No"
        else:
            compliance = "No"
        st.metric(f"{TRAFFIC_ICONS[derived.traffic_drawdown]} Super Drawdown Compliance", compliance)
        st.caption(f"Min required: {format_percent(state.superannuation.min_required_drawdown_rate)} • "
                   f"Drawdown: {money(state.superannuation.drawdown_annual)}")

    st.plotly_chart(create_traffic_light_strip(derived, state.spouse.confidence),
                    use_container_width=True)


def display_baseline_lock():
    """Section B"""
    derived = get_session().derived
    st.subheader("B: Baseline Lock")
    st.caption("Baseline must remain pension-funded under all market conditions.")
    number_field("Baseline spend (annual, current $)", 'baseline', 'baseline_spend_annual')
    st.write(f"**Baseline indexed (CPI YoY):** {money(derived.baseline_indexed)}")
    number_field("Guaranteed income (net annual)", 'income', 'guaranteed_income_annual_net')
    st.write(f"**Baseline margin (net):** {money(derived.baseline_margin)}")


def display_discretionary():
    """Section C: phase, planned vs actual, variance classification"""
    session = get_session()
    state, derived = session.state, session.derived

    st.subheader("C: Discretionary Reality")
    st.caption("Planned (indexed) vs Actual. Variance must be classified.")

    choice_field("Current phase", 'phase', 'current', PHASE_VALUES, PHASE_LABELS)
    col1, col2 = st.columns(2)
    with col1:
        int_field("Years remaining (min)", 'phase', 'years_remaining_min')
    with col2:
        int_field("Years remaining (max)", 'phase', 'years_remaining_max')
    text_field("Next trigger (plain words)", 'phase', 'next_trigger')

    st.markdown("---")
    if derived.lock:
        st.info("Planned amounts are locked while a critical gate is red.")

    for category in DISCRETIONARY_CATEGORIES:
        planned = getattr(state.discretionary.planned, category)
        actual = getattr(state.discretionary.actual, category)
        col1, col2, col3 = st.columns(3)
        planned_key = _key('planned', category)
        actual_key = _key('actual', category)
        with col1:
            st.number_input(f"{CATEGORY_LABELS[category]} planned", value=float(planned),
                            step=1000.0, format="%.0f", key=planned_key, disabled=derived.lock,
                            on_change=_sync_discretionary, args=('planned', category, planned_key))
        with col2:
            st.write(f"Indexed: {money(planned * derived.indexed_factor)}")
        with col3:
            st.number_input(f"{CATEGORY_LABELS[category]} actual", value=float(actual),
                            step=1000.0, format="%.0f", key=actual_key,
                            on_change=_sync_discretionary, args=('actual', category, actual_key))

    totals = derived.discretionary
    st.write(f"**Total planned (indexed):** {money(totals.total_planned_indexed)}")
    st.write(f"**Total actual:** {money(totals.total_actual)}")
    st.write(f"**Variance:** {money(totals.variance)}")
    choice_field("Variance classification", 'discretionary', 'variance_type',
                 VARIANCE_TYPES, VARIANCE_LABELS)


def display_cash_and_super():
    """Section D"""
    derived = get_session().derived
    st.subheader("D: Cash vs Super Engine")
    st.caption("Cash absorbs volatility. Super buys time.")

    st.markdown("**Cash**")
    number_field("Cash balance", 'cash', 'cash_balance')
    number_field("Contingency budget (annual)", 'cash', 'contingency_annual')

    st.markdown("**Super**")
    number_field("Super balance", 'superannuation', 'super_balance')
    number_field("Annual drawdown ($)", 'superannuation', 'drawdown_annual')
    number_field("Minimum required drawdown rate (%)", 'superannuation',
                 'min_required_drawdown_rate', percent=True, step=0.5, fmt="%.1f")
    st.write(f"**Minimum required ($):** {money(derived.drawdown.min_required_amount)}")
    st.write(f"**Min met:** {'Yes' if derived.drawdown.min_met else 'No'}")
    choice_field("Excess drawdown", 'superannuation', 'excess_drawdown_intentional',
                 [True, False], {True: 'Intentional', False: 'Accidental'})


def display_inflation():
    """Section E"""
    st.header("E: Inflation & Reality")
    st.caption("Nominal stability ≠ real stability.")
    col1, col2, col3 = st.columns(3)
    with col1:
        number_field("CPI YoY (%)", 'inflation', 'cpi_yoy', percent=True, step=0.1, fmt="%.1f",
                     help="Used to index baseline and planned discretionary.")
    with col2:
        choice_field("Real baseline change", 'inflation', 'real_baseline_signal',
                     SIGNAL_VALUES, SIGNAL_LABELS)
    with col3:
        choice_field("Real discretionary change", 'inflation', 'real_discretionary_signal',
                     SIGNAL_VALUES, SIGNAL_LABELS)


def display_judgements():
    """Sections F, G and H: manual risk, capability and spouse signals"""
    derived = get_session().derived
    col1, col2, col3 = st.columns(3)

    with col1:
        st.subheader("F: Risk & Resilience")
        st.caption("Sequence risk sanity check. Two ambers = slow discretionary.")
        choice_field("30% market fall tomorrow → baseline intact?", 'risk',
                     'baseline_safe_under_crash', TRAFFIC_VALUES, RISK_LABELS)
        choice_field("3 bad years → discretionary tolerable?", 'risk',
                     'disc_tolerable_under_bad_run', TRAFFIC_VALUES, RISK_LABELS)
        choice_field("Cash runway improving?", 'risk', 'cash_runway_improving',
                     TRAFFIC_VALUES, RISK_LABELS)
        if derived.slow_flag:
            st.warning("Discretionary Slow Flag: ON")
        else:
            st.success("Discretionary Slow Flag: OFF")

    with col2:
        st.subheader("G: Capability Signals")
        st.caption("Used to recommend pull-forward or stand-down. Not optimisation.")
        choice_field("Long-haul travel", 'capability', 'long_haul_travel',
                     LONG_HAUL_TRAVEL_VALUES, selectbox=True)
        choice_field("Flying", 'capability', 'flying', FLYING_VALUES,
                     {'worthIt': 'Worth it', 'marginal': 'Marginal', 'sunset': 'Sunset'},
                     selectbox=True)
        choice_field("Complexity tolerance", 'capability', 'complexity_tolerance',
                     COMPLEXITY_VALUES, selectbox=True)

    with col3:
        st.subheader("H: Spouse Confidence")
        st.caption("Red locks discretionary increases. Non-negotiable.")
        choice_field("Confidence", 'spouse', 'confidence', TRAFFIC_VALUES, SPOUSE_LABELS)
        text_field("Notes (optional)", 'spouse', 'notes', area=True)


def display_verdict():
    """Section I"""
    st.header("I: Annual Verdict")
    st.caption("Three sentences. No more.")
    col1, col2, col3 = st.columns(3)
    with col1:
        text_field("1) What worked", 'verdict', 'worked', area=True)
    with col2:
        text_field("2) What felt off", 'verdict', 'off', area=True)
    with col3:
        text_field("3) One change for next year", 'verdict', 'change', area=True)


def display_downloads():
    """Reset and export affordances"""
    session = get_session()
    state_json = session.export_json()

    col1, col2, col3 = st.columns(3)
    with col1:
        st.button("Reset to defaults", on_click=_reset_to_defaults)
    with col2:
        st.download_button(
            label="Download State JSON",
            data=state_json,
            file_name="retirement_dashboard_state.json",
            mime="application/json"
        )
    with col3:
        st.download_button(
            label="Download Discretionary CSV",
            data=export_discretionary_csv(session.state, session.derived),
            file_name="discretionary.csv",
            mime="text/csv"
        )

    with st.expander("Copy state JSON"):
        st.code(state_json, language="json")


def main():
    """Main application"""
    st.set_page_config(
        page_title="Retirement Spending Dashboard",
        page_icon="🚦",
        layout="wide"
    )

    initialize_session_state()
    session = get_session()

    st.title("🚦 Retirement Spending Command Dashboard")
    st.markdown(f"{datetime.now().year} • Quarterly glance, annual decision • Stored locally")

    if session.derived.lock:
        st.error("**LOCK:** Discretionary expansion is disabled because a critical gate is red "
                 "(system health or spouse confidence).")

    display_system_health()

    display_baseline_lock()
    st.markdown("---")
    display_discretionary()
    st.markdown("---")
    display_cash_and_super()

    st.plotly_chart(create_discretionary_chart(session.state, session.derived),
                    use_container_width=True)

    display_inflation()
    display_judgements()
    display_verdict()

    st.markdown("---")
    display_downloads()
    st.markdown("Data stored locally • no backend")


if __name__ == "__main__":
    main()
