from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Union

"""ResortRecord domain model for the resort import workbench.

A ResortRecord is the canonical, normalized shape of one imported resort row.
The field table (FIELD_SPECS) is the single source for aliases, target kinds
and required flags; the normalizer and validator both read it.
"""

__all__ = [
    "RawValue",
    "FieldKind",
    "FieldSpec",
    "FIELD_SPECS",
    "FIELD_NAMES",
    "RICHNESS_FIELDS",
    "ResortRecord",
]

# 入力ファイル由来の生値 (CSV は常に str, JSON/XLSX は型付き)
RawValue = Union[str, int, float, bool, None]


class FieldKind:
    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one canonical field."""
    name: str
    kind: str  # FieldKind.*
    required: bool = False
    aliases: tuple[str, ...] = ()
    upper: bool = False  # country_code 用


FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec("name", FieldKind.TEXT, required=True),
    FieldSpec("country", FieldKind.TEXT, required=True),
    FieldSpec("country_code", FieldKind.TEXT, required=True, upper=True),
    FieldSpec("lat", FieldKind.NUMBER, required=True, aliases=("latitude",)),
    FieldSpec("lng", FieldKind.NUMBER, required=True, aliases=("longitude", "lon")),
    FieldSpec("region", FieldKind.TEXT),
    FieldSpec("website", FieldKind.TEXT),
    FieldSpec("vertical_m", FieldKind.NUMBER, aliases=("vertical_drop_m",)),
    FieldSpec("runs", FieldKind.NUMBER, aliases=("number_of_runs",)),
    FieldSpec("lifts", FieldKind.NUMBER, aliases=("number_of_lifts",)),
    FieldSpec("annual_snowfall_cm", FieldKind.NUMBER),
    FieldSpec("beginner_pct", FieldKind.NUMBER),
    FieldSpec("intermediate_pct", FieldKind.NUMBER),
    FieldSpec("advanced_pct", FieldKind.NUMBER),
    FieldSpec("season_open", FieldKind.TEXT),
    FieldSpec("season_close", FieldKind.TEXT),
    FieldSpec("has_night_skiing", FieldKind.BOOLEAN),
    FieldSpec("pass_affiliation", FieldKind.TEXT),
    FieldSpec("instagram_handle", FieldKind.TEXT),
    FieldSpec("description", FieldKind.TEXT),
)

FIELD_NAMES: tuple[str, ...] = tuple(spec.name for spec in FIELD_SPECS)

# Fields counted by the completeness score.
RICHNESS_FIELDS: tuple[str, ...] = (
    "region",
    "website",
    "vertical_m",
    "runs",
    "lifts",
    "annual_snowfall_cm",
    "beginner_pct",
    "intermediate_pct",
    "advanced_pct",
    "season_open",
    "season_close",
    "pass_affiliation",
    "description",
)


@dataclass(frozen=True)
class ResortRecord:
    """Normalized resort row.

    Required fields always hold a value ("" / 0); optional fields are None
    when absent. Numeric fields may hold NaN when the source value could not
    be parsed, so that validation can report it.
    """
    name: str
    country: str
    country_code: str
    lat: float
    lng: float
    region: str | None = None
    website: str | None = None
    vertical_m: float | int | None = None
    runs: float | int | None = None
    lifts: float | int | None = None
    annual_snowfall_cm: float | int | None = None
    beginner_pct: float | int | None = None
    intermediate_pct: float | int | None = None
    advanced_pct: float | int | None = None
    season_open: str | None = None
    season_close: str | None = None
    has_night_skiing: bool | None = None
    pass_affiliation: str | None = None
    instagram_handle: str | None = None
    description: str | None = None

    def get(self, field_name: str) -> Any:
        return getattr(self, field_name)

    def to_payload(self) -> dict[str, Any]:
        """Wire representation: absent optional fields are omitted."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            out[f.name] = value
        return out

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
