from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

JurisdictionSortKey = Literal["total", "ADU"]

JURISDICTION_LIMITS = {"total": 15, "ADU": 8}
COUNTY_VALUE_LIMITS = {False: 15, True: 8}


@dataclass(frozen=True)
class LabelThresholds:
    """Counts must exceed these values before a bar/area gets a text label.

    ``None`` means the label is always shown.
    """

    year_adu: Optional[int] = 50
    year_non_adu: Optional[int] = None
    year_potential: Optional[int] = 5
    jurisdiction_adu: Optional[int] = 50
    jurisdiction_non_adu: Optional[int] = 1000
    jurisdiction_potential: Optional[int] = 10


@dataclass(frozen=True)
class PipelineOptions:
    """A ``None`` limit means the default for the selected mode (15/8)."""

    jurisdiction_sort_key: JurisdictionSortKey = "total"
    jurisdiction_limit: Optional[int] = None
    county_value_adu_only: bool = True
    county_value_limit: Optional[int] = None
    include_charts: bool = True
    labels: LabelThresholds = field(default_factory=LabelThresholds)


def _as_limit(value: object, default: Optional[int] = None) -> Optional[int]:
    if value is None:
        return default
    try:
        out = int(value)
    except Exception:
        return default
    return max(1, min(200, out))


def _as_threshold(value: object, default: Optional[int]) -> Optional[int]:
    if value is None:
        return default
    try:
        return int(value)
    except Exception:
        return default


def normalize_options(raw: Optional[dict] = None) -> PipelineOptions:
    raw = raw or {}

    sort_key = raw.get("jurisdiction_sort_key") or "total"
    if sort_key not in JURISDICTION_LIMITS:
        sort_key = "total"
    adu_only = bool(raw.get("county_value_adu_only", True))

    t = raw.get("labels") or {}
    defaults = LabelThresholds()
    labels = LabelThresholds(
        year_adu=_as_threshold(t.get("year_adu"), defaults.year_adu),
        year_non_adu=_as_threshold(t.get("year_non_adu"), defaults.year_non_adu),
        year_potential=_as_threshold(t.get("year_potential"), defaults.year_potential),
        jurisdiction_adu=_as_threshold(t.get("jurisdiction_adu"), defaults.jurisdiction_adu),
        jurisdiction_non_adu=_as_threshold(t.get("jurisdiction_non_adu"), defaults.jurisdiction_non_adu),
        jurisdiction_potential=_as_threshold(t.get("jurisdiction_potential"), defaults.jurisdiction_potential),
    )

    return PipelineOptions(
        jurisdiction_sort_key=sort_key,
        jurisdiction_limit=_as_limit(raw.get("jurisdiction_limit")),
        county_value_adu_only=adu_only,
        county_value_limit=_as_limit(raw.get("county_value_limit")),
        include_charts=bool(raw.get("include_charts", True)),
        labels=labels,
    )
