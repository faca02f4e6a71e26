"""
Copy-on-write edits to the dashboard state.
Every function returns a new AppState; the input snapshot is never modified.
"""
from dataclasses import replace
from typing import Any

from state_migration import coerce_field, coerce_number, coerce_section, coerce_state
from state_schema import (
    AppState, DEFAULT_STATE, DISCRETIONARY_CATEGORIES, DISCRETIONARY_KINDS,
    SECTION_TYPES, get_schema_field, state_to_dict, to_record
)


def _section_type(section: str):
    try:
        return SECTION_TYPES[section]
    except KeyError:
        raise KeyError(f"Unknown state section '{section}'") from None


def _parse_form_number(value: Any) -> Any:
    """Form widgets may hand back numeric text; leave anything else untouched"""
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


def replace_state(new_state: Any) -> AppState:
    """
    Whole-state replacement.

    Every input goes through the coercion pass, AppState instances included;
    a well-formed instance is returned as-is.
    """
    if isinstance(new_state, AppState):
        checked = coerce_state(state_to_dict(new_state))
        return new_state if checked == new_state else checked
    return coerce_state(new_state)


def set_section(state: AppState, section: str, value: Any) -> AppState:
    """
    Replace one section.

    Args:
        state: Current snapshot
        section: Section attribute name (e.g. 'cash', 'superannuation')
        value: Section dataclass instance, or a mapping keyed by record keys

    Returns:
        New AppState
    """
    section_cls = _section_type(section)
    current = getattr(state, section)
    if isinstance(value, section_cls):
        # out-of-range fields fall back to the current section
        checked = coerce_section(section_cls, to_record(value), current)
        value = value if checked == value else checked
    else:
        value = coerce_section(section_cls, value, current)
    return replace(state, **{section: value})


def set_field(state: AppState, section: str, field_name: str, value: Any) -> AppState:
    """
    Replace a single field, keeping the current value if the input is unusable.

    Args:
        state: Current snapshot
        section: Section attribute name
        field_name: Field attribute name within the section
        value: New value from the form

    Returns:
        New AppState

    Raises:
        KeyError: for unknown section or field names
    """
    section_cls = _section_type(section)
    schema_field = get_schema_field(section_cls, field_name)
    current_section = getattr(state, section)

    if schema_field.metadata['kind'] in ('number', 'int'):
        value = _parse_form_number(value)

    new_value = coerce_field(schema_field, value, getattr(current_section, field_name))
    return replace(state, **{section: replace(current_section, **{field_name: new_value})})


def set_discretionary_amount(state: AppState, kind: str, category: str, value: Any) -> AppState:
    """
    Replace one planned or actual discretionary amount.

    Raises:
        ValueError: for an unknown kind or category
    """
    if kind not in DISCRETIONARY_KINDS:
        raise ValueError(f"kind must be one of {DISCRETIONARY_KINDS}, got '{kind}'")
    if category not in DISCRETIONARY_CATEGORIES:
        raise ValueError(f"category must be one of {DISCRETIONARY_CATEGORIES}, got '{category}'")

    discretionary = state.discretionary
    amounts = getattr(discretionary, kind)
    amount = coerce_number(_parse_form_number(value), getattr(amounts, category))

    new_amounts = replace(amounts, **{category: amount})
    return replace(state, discretionary=replace(discretionary, **{kind: new_amounts}))


def reset_state() -> AppState:
    return DEFAULT_STATE
