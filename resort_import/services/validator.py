from __future__ import annotations

import math

from ..models.config_models import DEFAULT_TERRAIN_TOLERANCE
from ..models.resort_record import FIELD_SPECS, RICHNESS_FIELDS, FieldKind, ResortRecord
from ..models.workbench_row import Completeness, RowIssue

"""Validation and completeness scoring for normalized resort records.

Errors block the row; warnings block the whole push until resolved.
"""

__all__ = [
    "TERRAIN_FIELDS",
    "validate_record",
    "completeness",
]

TERRAIN_FIELDS = ("beginner_pct", "intermediate_pct", "advanced_pct")

_OPTIONAL_NUMERIC = tuple(
    spec.name for spec in FIELD_SPECS if spec.kind == FieldKind.NUMBER and not spec.required
)


def _is_finite_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _terrain_warning(record: ResortRecord, tolerance: float) -> RowIssue | None:
    values = [record.get(f) for f in TERRAIN_FIELDS]
    present = [v for v in values if _is_finite_number(v)]
    if not any(v != 0 for v in present):
        return None
    total = sum(present)
    if abs(total - 100) > tolerance:
        shown = int(total) if float(total).is_integer() else round(total, 1)
        return RowIssue("terrain_pct", f"Terrain percentages sum to {shown}% (expected ~100%)")
    return None


def validate_record(
    record: ResortRecord,
    terrain_tolerance: float = DEFAULT_TERRAIN_TOLERANCE,
) -> tuple[tuple[RowIssue, ...], tuple[RowIssue, ...]]:
    """Validate a normalized record.

    Args:
        record: Normalized resort record
        terrain_tolerance: Allowed deviation (percentage points) of the terrain sum from 100

    Returns:
        (errors, warnings) as tuples of RowIssue
    """
    errors: list[RowIssue] = []
    warnings: list[RowIssue] = []

    if not record.name:
        errors.append(RowIssue("name", "Name is required"))
    if not record.country:
        errors.append(RowIssue("country", "Country is required"))
    if not record.country_code or len(record.country_code) != 2:
        errors.append(RowIssue("country_code", "Country code must be exactly 2 letters"))
    if not _is_finite_number(record.lat) or not -90 <= record.lat <= 90:
        errors.append(RowIssue("lat", "Latitude must be between -90 and 90"))
    if not _is_finite_number(record.lng) or not -180 <= record.lng <= 180:
        errors.append(RowIssue("lng", "Longitude must be between -180 and 180"))

    terrain = _terrain_warning(record, terrain_tolerance)
    if terrain is not None:
        warnings.append(terrain)

    for name in _OPTIONAL_NUMERIC:
        value = record.get(name)
        if isinstance(value, float) and math.isnan(value):
            warnings.append(RowIssue(name, "Expected a number"))

    return tuple(errors), tuple(warnings)


def completeness(record: ResortRecord) -> Completeness:
    """Count how many richness fields carry a usable value."""
    filled = 0
    for name in RICHNESS_FIELDS:
        value = record.get(name)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        filled += 1
    return Completeness(filled=filled, total=len(RICHNESS_FIELDS))
