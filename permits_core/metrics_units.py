from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from permits_core.aggregate import COUNT, count_label, group_by_then_aggregate, percentage, top_n
from permits_core.filters import JURISDICTION_LIMITS, JurisdictionSortKey, LabelThresholds
from permits_core.records import CLASSIFICATIONS, Classification, PermitRecord


def _class_counts(inner: Dict[Classification, int]) -> Dict[str, int]:
    return {c.value: int(inner.get(c, 0)) for c in CLASSIFICATIONS}


def _classifier(record: PermitRecord) -> Optional[Classification]:
    return record.classification


def units_by_year(records: Iterable[PermitRecord], labels: Optional[LabelThresholds] = None) -> List[Dict[str, Any]]:
    """Record counts per classification for every year with a classified record."""
    labels = labels or LabelThresholds()
    groups = group_by_then_aggregate(
        records,
        key_fn=lambda r: r.year if r.year and r.has_classification else None,
        aggregator=COUNT,
        classifier_fn=_classifier,
    )
    out: List[Dict[str, Any]] = []
    for year in sorted(groups):
        counts = _class_counts(groups[year])
        out.append(
            {
                "year": year,
                **counts,
                "aduLabel": count_label(counts["ADU"], labels.year_adu),
                "nonAduLabel": count_label(counts["NON_ADU"], labels.year_non_adu),
                "potentialAduLabel": count_label(counts["POTENTIAL_ADU_CONVERSION"], labels.year_potential),
            }
        )
    return out


def adu_percentage_by_year(units: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for row in units:
        total = sum(int(row.get(c.value, 0) or 0) for c in CLASSIFICATIONS)
        out.append({"year": row["year"], "aduPercentage": percentage(row.get("ADU", 0) or 0, total)})
    return out


def units_by_jurisdiction(
    records: Iterable[PermitRecord],
    *,
    sort_key: JurisdictionSortKey = "total",
    limit: Optional[int] = None,
    labels: Optional[LabelThresholds] = None,
) -> List[Dict[str, Any]]:
    """Top counties by permit count.

    ``sort_key="total"`` keeps the three-way breakdown and ranks by its sum.
    ``sort_key="ADU"`` keeps only the ADU count next to a total of every record
    in the county, classified or not, and ranks by the ADU count.
    """
    if limit is None:
        limit = JURISDICTION_LIMITS.get(sort_key, 15)
    labels = labels or LabelThresholds()
    records = list(records)

    if sort_key == "ADU":
        totals = group_by_then_aggregate(records, key_fn=lambda r: r.county, aggregator=COUNT)
        adu = group_by_then_aggregate(
            records,
            key_fn=lambda r: r.county if r.is_adu else None,
            aggregator=COUNT,
        )
        rows = [{"county": county, "ADU": int(adu.get(county, 0)), "total": int(total)} for county, total in totals.items()]
        return top_n(rows, "ADU", limit)

    groups = group_by_then_aggregate(
        records,
        key_fn=lambda r: r.county if r.has_classification else None,
        aggregator=COUNT,
        classifier_fn=_classifier,
    )
    rows = []
    for county, inner in groups.items():
        counts = _class_counts(inner)
        rows.append(
            {
                "county": county,
                "total": sum(counts.values()),
                **counts,
                "aduLabel": count_label(counts["ADU"], labels.jurisdiction_adu),
                "nonAduLabel": count_label(counts["NON_ADU"], labels.jurisdiction_non_adu),
                "potentialAduLabel": count_label(counts["POTENTIAL_ADU_CONVERSION"], labels.jurisdiction_potential),
            }
        )
    return top_n(rows, "total", limit)
