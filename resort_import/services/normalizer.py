from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from ..models.resort_record import FIELD_SPECS, FieldKind, FieldSpec, RawValue, ResortRecord

"""Row normalization: raw input mapping -> ResortRecord.

Each canonical field has an explicit coercion by kind:
- text:    trim; null tokens -> absent; country_code upper-cased
- number:  int/float pass through, numeric strings parsed, anything else NaN
- boolean: bool passes through, "true"/"false" (and yes/no, 1/0) parsed

Null tokens ("", "null", "undefined", case-insensitive) and NaN floats coming
from spreadsheet readers are treated as absent. Required fields fall back to
"" (text) or 0 (number) when absent.

All functions here are pure; normalize_record(raw) is deterministic.
"""

__all__ = [
    "NULL_TOKENS",
    "is_absent",
    "coerce_text",
    "coerce_number",
    "coerce_boolean",
    "coerce_field",
    "lookup_raw",
    "normalize_record",
]

NULL_TOKENS = frozenset({"", "null", "undefined"})
_TRUE_TOKENS = frozenset({"true", "yes", "y", "1"})
_FALSE_TOKENS = frozenset({"false", "no", "n", "0"})

_SPECS_BY_NAME: dict[str, FieldSpec] = {spec.name: spec for spec in FIELD_SPECS}


def is_absent(value: RawValue) -> bool:
    """True when a raw value carries no data."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True  # pandas 由来の空セル
    if isinstance(value, str) and value.strip().lower() in NULL_TOKENS:
        return True
    return False


def coerce_text(value: RawValue, upper: bool = False) -> str | None:
    if is_absent(value):
        return None
    if isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, float) and value.is_integer():
        # 1.0 -> "1" (XLSX の数値セル)
        text = str(int(value))
    else:
        text = str(value).strip()
    if not text:
        return None
    return text.upper() if upper else text


def coerce_number(value: RawValue) -> float | int | None:
    """Coerce to a number. Returns None when absent, NaN when unparseable."""
    if is_absent(value):
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip().replace(",", "") if isinstance(value, str) else str(value)
    try:
        number = float(text)
    except ValueError:
        return math.nan
    if math.isfinite(number) and number.is_integer() and "." not in text and "e" not in text.lower():
        return int(number)
    return number


def coerce_boolean(value: RawValue) -> bool | None:
    if is_absent(value):
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    token = str(value).strip().lower()
    if token in _TRUE_TOKENS:
        return True
    if token in _FALSE_TOKENS:
        return False
    return None


def coerce_field(field_name: str, value: RawValue) -> Any:
    """Coerce a single raw value for a canonical field, applying required defaults.

    Raises:
        KeyError: if field_name is not a canonical field
    """
    spec = _SPECS_BY_NAME[field_name]
    if spec.kind == FieldKind.TEXT:
        coerced: Any = coerce_text(value, upper=spec.upper)
        if coerced is None and spec.required:
            return ""
        return coerced
    if spec.kind == FieldKind.NUMBER:
        coerced = coerce_number(value)
        if coerced is None and spec.required:
            return 0
        return coerced
    return coerce_boolean(value)


def lookup_raw(raw: Mapping[str, Any], spec: FieldSpec) -> RawValue:
    """Find the raw value for a field by canonical name, then aliases.

    Keys are matched after trimming and lower-casing, so "Latitude " in a CSV
    header still maps onto lat. The first non-absent candidate wins.
    """
    folded = {str(k).strip().lower(): v for k, v in raw.items()}
    for key in (spec.name, *spec.aliases):
        if key in folded and not is_absent(folded[key]):
            return folded[key]
    return None


def normalize_record(raw: Mapping[str, Any]) -> ResortRecord:
    """Map one raw input row onto the canonical ResortRecord shape."""
    values = {spec.name: coerce_field(spec.name, lookup_raw(raw, spec)) for spec in FIELD_SPECS}
    return ResortRecord(**values)
