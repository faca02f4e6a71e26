"""
Plotly charts for the spending dashboard.
"""
import plotly.graph_objects as go

from derivation import DerivedValues
from io_utils import create_discretionary_table, format_months, format_ratio
from state_schema import AppState, Traffic


TRAFFIC_COLORS = {
    'green': '#2E7D32',
    'amber': '#F9A825',
    'red': '#C62828',
}

SPOUSE_LABELS = {
    'green': 'Confident',
    'amber': 'Uneasy',
    'red': 'Stop & simplify',
}


def create_traffic_light_strip(derived: DerivedValues,
                               spouse_confidence: Traffic,
                               title: str = "System Health") -> go.Figure:
    """
    Create a row of traffic lights, one per gate that can lock discretionary spend.

    Args:
        derived: Derived values for the current snapshot
        spouse_confidence: Spouse confidence rating from the state
        title: Chart title

    Returns:
        Plotly figure
    """
    gates = [
        ('Baseline Coverage', derived.traffic_baseline, format_ratio(derived.baseline_coverage_ratio)),
        ('Cash Runway', derived.traffic_cash, format_months(derived.cash_runway_months)),
        ('Drawdown', derived.traffic_drawdown, 'Min met' if derived.drawdown.min_met else 'Below min'),
        ('Spouse', spouse_confidence, SPOUSE_LABELS.get(spouse_confidence, spouse_confidence)),
    ]

    labels = [gate[0] for gate in gates]
    colors = [TRAFFIC_COLORS.get(gate[1], 'lightgray') for gate in gates]
    values = [gate[2] for gate in gates]

    fig = go.Figure(go.Scatter(
        x=labels,
        y=[1] * len(gates),
        mode='markers+text',
        marker=dict(size=48, color=colors, line=dict(width=1, color='white')),
        text=values,
        textposition='bottom center',
        customdata=[gate[1] for gate in gates],
        hovertemplate="<b>%{x}</b><br>" +
                      "<b>Status:</b> %{customdata}<br>" +
                      "<b>Value:</b> %{text}<br>" +
                      "<extra></extra>",
        showlegend=False
    ))

    if derived.lock:
        title = f"{title}: LOCKED (a critical gate is red)"

    fig.update_layout(
        title=title,
        height=220,
        template="plotly_white",
        xaxis=dict(showgrid=False),
        yaxis=dict(visible=False, range=[0.4, 1.4]),
        margin=dict(t=60, b=20)
    )

    return fig


def create_discretionary_chart(state: AppState,
                               derived: DerivedValues,
                               title: str = "Discretionary: Planned (Indexed) vs Actual") -> go.Figure:
    """
    Create grouped bars comparing indexed planned and actual spend per category.

    Args:
        state: AppState snapshot
        derived: Derived values for the same snapshot
        title: Chart title

    Returns:
        Plotly figure
    """
    df = create_discretionary_table(state, derived)

    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=df['Category'],
        y=df['Planned (Indexed)'] / 1000,
        name='Planned (Indexed)',
        marker_color='#4ECDC4',
        hovertemplate="<b>%{x}</b><br><b>Planned:</b> $%{y:.1f}K<extra></extra>"
    ))
    fig.add_trace(go.Bar(
        x=df['Category'],
        y=df['Actual'] / 1000,
        name='Actual',
        marker_color='#FF6B6B',
        hovertemplate="<b>%{x}</b><br><b>Actual:</b> $%{y:.1f}K<extra></extra>"
    ))

    fig.update_layout(
        title=title,
        barmode='group',
        xaxis_title="Category",
        yaxis_title="Annual Amount ($000s)",
        template="plotly_white",
        height=350
    )

    return fig
