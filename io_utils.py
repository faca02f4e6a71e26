"""
IO utilities for exporting the dashboard state and formatting values.
Handles JSON export of the snapshot and the discretionary table / CSV export.
"""
import json

import pandas as pd

from derivation import DerivedValues
from numeric_utils import safe_number
from state_schema import AppState, DISCRETIONARY_CATEGORIES, state_to_dict


CATEGORY_LABELS = {
    'travel': 'Travel',
    'flying': 'Flying',
    'other': 'Other',
}


def create_state_download_json(state: AppState) -> str:
    """
    Create a human-readable JSON string of the full snapshot for copy-out.

    Args:
        state: AppState snapshot

    Returns:
        JSON string (indent 2) in the persisted record shape
    """
    return json.dumps(state_to_dict(state), indent=2)


def format_currency(value: float, symbol: str = "$") -> str:
    """
    Format a currency value as whole dollars.

    Args:
        value: Numeric value to format (malformed input formats as zero)
        symbol: Currency symbol

    Returns:
        Formatted string, e.g. "$77,250" or "-$1,250"
    """
    amount = round(safe_number(value))
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.0f}"


def format_months(value: float) -> str:
    """Format a runway as rounded months, e.g. '86 mo'"""
    return f"{round(safe_number(value)):,} mo"


def format_ratio(value: float) -> str:
    return f"{safe_number(value):.2f}×"


def format_percent(fraction: float, precision: int = 1) -> str:
    """Format a fraction as a percentage (0.03 -> '3.0%')"""
    return f"{safe_number(fraction) * 100:.{precision}f}%"


def create_discretionary_table(state: AppState, derived: DerivedValues) -> pd.DataFrame:
    """
    Build the planned / indexed / actual table shown in the discretionary section.

    Args:
        state: AppState snapshot
        derived: Derived values for the same snapshot

    Returns:
        DataFrame with one row per category
    """
    planned = state.discretionary.planned
    actual = state.discretionary.actual

    rows = []
    for category in DISCRETIONARY_CATEGORIES:
        planned_amount = safe_number(getattr(planned, category))
        rows.append({
            'Category': CATEGORY_LABELS[category],
            'Planned': planned_amount,
            'Planned (Indexed)': planned_amount * derived.indexed_factor,
            'Actual': safe_number(getattr(actual, category)),
        })

    return pd.DataFrame(rows, columns=['Category', 'Planned', 'Planned (Indexed)', 'Actual'])


def export_discretionary_csv(state: AppState, derived: DerivedValues) -> str:
    """Export the discretionary table to a CSV string"""
    df = create_discretionary_table(state, derived)
    return df.to_csv(index=False)
