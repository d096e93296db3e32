from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Callable, Dict, Iterable, List, Optional

from permits_core.charts import build_charts
from permits_core.filters import PipelineOptions
from permits_core.metrics_job_value import (
    adu_job_value_percentage_by_year,
    average_adu_job_value_by_year,
    job_value_by_county,
    job_value_by_year,
)
from permits_core.metrics_units import adu_percentage_by_year, units_by_jurisdiction, units_by_year
from permits_core.records import PermitRecord, to_permit_records

logger = logging.getLogger(__name__)

SeriesFn = Callable[[List[PermitRecord], PipelineOptions], List[Dict[str, Any]]]


def _number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return value + 0
    except TypeError:
        return 0


def series_trend(series: List[Dict[str, Any]], value_key: str) -> Dict[str, Any]:
    """Latest value of an ordered series and its change from the previous point."""
    if not series:
        return {"latest": 0, "trend": 0}
    latest = _number(series[-1].get(value_key))
    if len(series) < 2:
        return {"latest": latest, "trend": 0}
    return {"latest": latest, "trend": latest - _number(series[-2].get(value_key))}


SERIES_REGISTRY: Dict[str, SeriesFn] = {
    "unitsByYear": lambda records, opts: units_by_year(records, opts.labels),
    "aduPercentageByYear": lambda records, opts: adu_percentage_by_year(units_by_year(records, opts.labels)),
    "unitsByJurisdiction": lambda records, opts: units_by_jurisdiction(
        records,
        sort_key=opts.jurisdiction_sort_key,
        limit=opts.jurisdiction_limit,
        labels=opts.labels,
    ),
    "jobValueByYear": lambda records, opts: job_value_by_year(records),
    "jobValueByCounty": lambda records, opts: job_value_by_county(
        records,
        adu_only=opts.county_value_adu_only,
        limit=opts.county_value_limit,
    ),
    "averageAduJobValueByYear": lambda records, opts: average_adu_job_value_by_year(records),
    "aduJobValuePercentageByYear": lambda records, opts: adu_job_value_percentage_by_year(records),
}


def compute_series(name: str, rows: Iterable[Any], options: Optional[PipelineOptions] = None) -> List[Dict[str, Any]]:
    """Compute one named series. Unknown names raise KeyError."""
    fn = SERIES_REGISTRY[name]
    return fn(to_permit_records(rows), options or PipelineOptions())


def compute_overview(rows: Iterable[Any], options: Optional[PipelineOptions] = None) -> Dict[str, Any]:
    options = options or PipelineOptions()
    records = to_permit_records(rows)

    units = units_by_year(records, options.labels)
    series: Dict[str, List[Dict[str, Any]]] = {"unitsByYear": units, "aduPercentageByYear": adu_percentage_by_year(units)}
    for name, fn in SERIES_REGISTRY.items():
        if name not in series:
            series[name] = fn(records, options)

    kpis = {
        "aduUnits": series_trend(units, "ADU"),
        "aduPercentage": series_trend(series["aduPercentageByYear"], "aduPercentage"),
        "averageAduJobValue": series_trend(series["averageAduJobValueByYear"], "avgValue"),
        "aduJobValuePercentage": series_trend(series["aduJobValuePercentageByYear"], "aduJobValuePercentage"),
    }
    counts = {
        "records": len(records),
        "classified": sum(1 for r in records if r.classification is not None),
        "unrecognized": sum(1 for r in records if r.has_classification and r.classification is None),
        "withJobValue": sum(1 for r in records if r.contributes_value),
    }
    logger.debug("overview computed for %d records (%d years)", counts["records"], len(units))

    return {
        "options": asdict(options),
        "counts": counts,
        "kpis": kpis,
        "series": series,
        "charts": build_charts(series) if options.include_charts else {},
    }
