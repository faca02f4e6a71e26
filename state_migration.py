"""
State migration and coercion.
Repairs arbitrary decoded data (stale, partial or corrupted saves) into a
well-formed AppState. Nothing in here raises.
"""
import logging
import math
import numbers
from collections.abc import Mapping
from dataclasses import fields
from typing import Any, Tuple

from state_schema import AppState, CategoryAmounts, DEFAULT_STATE, json_key, to_record

logger = logging.getLogger(__name__)


def _is_finite_real(value: Any) -> bool:
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # ints beyond float range
        return False


def coerce_number(value: Any, default: float) -> float:
    """Accept finite real numbers only; strings and booleans fall back"""
    return float(value) if _is_finite_real(value) else default


def coerce_int(value: Any, default: int) -> int:
    """Accept finite real numbers, rounded to the nearest whole number"""
    return int(round(value)) if _is_finite_real(value) else default


def coerce_string(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def coerce_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def coerce_enum(value: Any, choices: Tuple[str, ...], default: str) -> str:
    """Exact literal membership only (no case folding)"""
    return value if isinstance(value, str) and value in choices else default


def coerce_amounts(value: Any, default: CategoryAmounts) -> CategoryAmounts:
    """
    Coerce a per-category amount mapping.

    Each category falls back individually; a non-mapping falls back as a whole.
    """
    if isinstance(value, CategoryAmounts):
        value = to_record(value)
    if not isinstance(value, Mapping):
        return default
    return CategoryAmounts(**{
        f.name: coerce_number(value.get(json_key(f)), getattr(default, f.name))
        for f in fields(CategoryAmounts)
    })


def coerce_field(schema_field, value: Any, fallback: Any) -> Any:
    """
    Coerce one value with the coercer declared for a schema field.

    Args:
        schema_field: dataclasses.Field from a section dataclass
        value: Untrusted value
        fallback: Value to use when the input is unusable

    Returns:
        Coerced value
    """
    kind = schema_field.metadata['kind']

    if kind == 'number':
        return coerce_number(value, fallback)
    if kind == 'int':
        return coerce_int(value, fallback)
    if kind == 'str':
        return coerce_string(value, fallback)
    if kind == 'bool':
        return coerce_bool(value, fallback)
    if kind == 'enum':
        return coerce_enum(value, schema_field.metadata['choices'], fallback)
    if kind == 'amounts':
        return coerce_amounts(value, fallback)

    raise ValueError(f"Unknown field kind '{kind}' for {schema_field.name}")


def coerce_section(section_cls, raw: Any, fallback_section):
    """
    Coerce one section of the record.

    A mapping is repaired field by field against fallback_section; anything
    else is replaced by fallback_section as a whole.
    """
    if not isinstance(raw, Mapping):
        return fallback_section

    values = {}
    for schema_field in fields(section_cls):
        fallback = getattr(fallback_section, schema_field.name)
        key = json_key(schema_field)
        if key in raw:
            values[schema_field.name] = coerce_field(schema_field, raw[key], fallback)
        else:
            values[schema_field.name] = fallback
    return section_cls(**values)


def coerce_state(raw: Any) -> AppState:
    """
    Produce a well-formed AppState from arbitrary decoded data.

    Args:
        raw: Decoded JSON tree (any type)

    Returns:
        AppState; DEFAULT_STATE when the top level is not a mapping
    """
    if not isinstance(raw, Mapping):
        logger.debug("Saved state is %s, not a mapping; using defaults", type(raw).__name__)
        return DEFAULT_STATE

    try:
        sections = {}
        for section_field in fields(AppState):
            default_section = getattr(DEFAULT_STATE, section_field.name)
            raw_section = raw.get(json_key(section_field))
            if not isinstance(raw_section, Mapping):
                logger.debug("Section '%s' missing or malformed; using defaults",
                             json_key(section_field))
            sections[section_field.name] = coerce_section(
                section_field.type, raw_section, default_section)
        return AppState(**sections)
    except Exception as e:
        logger.warning("Could not coerce saved state, using defaults: %s", e)
        return DEFAULT_STATE
