"""Job value aggregations.

Only records with a truthy job value contribute: a missing value and a value
of exactly 0 are both left out of sums and counts. Averages are reported in
thousands of currency units.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from permits_core.aggregate import (
    JOB_VALUE,
    ValueAggregate,
    average_in_thousands,
    group_by_then_aggregate,
    percentage,
    top_n,
    value_label,
)
from permits_core.filters import COUNTY_VALUE_LIMITS
from permits_core.records import CLASSIFICATIONS, PermitRecord


def job_value_by_year(records: Iterable[PermitRecord]) -> List[Dict[str, Any]]:
    groups = group_by_then_aggregate(
        records,
        key_fn=lambda r: r.year if r.year and r.has_classification and r.contributes_value else None,
        aggregator=JOB_VALUE,
        classifier_fn=lambda r: r.classification,
    )
    # A classification with no data in any year is left out of every row.
    reported = [c for c in CLASSIFICATIONS if any(c in inner for inner in groups.values())]

    out: List[Dict[str, Any]] = []
    for year in sorted(groups):
        row: Dict[str, Any] = {"year": year}
        for c in reported:
            avg = average_in_thousands(groups[year].get(c, ValueAggregate()))
            row[c.value] = avg
            row[f"{c.value}Label"] = value_label(avg)
        out.append(row)
    return out


def job_value_by_county(
    records: Iterable[PermitRecord],
    *,
    adu_only: bool = True,
    limit: Optional[int] = None,
) -> List[Dict[str, Any]]:
    if limit is None:
        limit = COUNTY_VALUE_LIMITS[bool(adu_only)]

    def _key(r: PermitRecord) -> Optional[str]:
        if not r.county or not r.contributes_value:
            return None
        if adu_only and not r.is_adu:
            return None
        return r.county

    groups = group_by_then_aggregate(records, key_fn=_key, aggregator=JOB_VALUE)
    rows = []
    for county, agg in groups.items():
        avg = average_in_thousands(agg)
        rows.append({"county": county, "avgValue": avg, "count": agg.count, "avgValueLabel": value_label(avg)})
    return top_n(rows, "avgValue", limit)


def average_adu_job_value_by_year(records: Iterable[PermitRecord]) -> List[Dict[str, Any]]:
    groups = group_by_then_aggregate(
        records,
        key_fn=lambda r: r.year if r.year and r.is_adu and r.contributes_value else None,
        aggregator=JOB_VALUE,
    )
    return [
        {"year": year, "avgValue": average_in_thousands(groups[year]), "count": groups[year].count}
        for year in sorted(groups)
    ]


def adu_job_value_percentage_by_year(records: Iterable[PermitRecord]) -> List[Dict[str, Any]]:
    groups = group_by_then_aggregate(
        records,
        key_fn=lambda r: r.year if r.year and r.contributes_value else None,
        aggregator=JOB_VALUE,
        classifier_fn=lambda r: "adu" if r.is_adu else "other",
    )
    out: List[Dict[str, Any]] = []
    for year in sorted(groups):
        inner = groups[year]
        adu_sum = inner.get("adu", ValueAggregate()).sum
        total = adu_sum + inner.get("other", ValueAggregate()).sum
        out.append({"year": year, "aduJobValuePercentage": percentage(adu_sum, total)})
    return out

