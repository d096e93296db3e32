from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

from permits_core.records import CLASSIFICATIONS

alt.data_transformers.disable_max_rows()

CLASS_DOMAIN = [c.value for c in CLASSIFICATIONS]
CLASS_RANGE = ["#3b82f6", "#10b981", "#f97316"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def _class_color(present: List[str]) -> alt.Color:
    domain = [c for c in CLASS_DOMAIN if c in present]
    range_ = [CLASS_RANGE[CLASS_DOMAIN.index(c)] for c in domain]
    return alt.Color("classification:N", title="Classification", scale=alt.Scale(domain=domain, range=range_))


def _long_by_class(series: List[Dict[str, Any]], id_col: str, value_name: str) -> pd.DataFrame:
    df = pd.DataFrame(series)
    value_vars = [c for c in CLASS_DOMAIN if c in df.columns]
    return df.melt(id_vars=[id_col], value_vars=value_vars, var_name="classification", value_name=value_name)


def units_by_year_chart(series: List[Dict[str, Any]]) -> Dict[str, Any]:
    long_df = _long_by_class(series, "year", "units")
    chart = (
        alt.Chart(long_df)
        .mark_area()
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("units:Q", stack="zero", title="Units", axis=alt.Axis(format="~s")),
            color=_class_color(long_df["classification"].unique().tolist()),
            tooltip=["year", "classification", alt.Tooltip("units:Q", format=",")],
        )
        .properties(height=300)
    )
    return to_vega_spec(chart)


def adu_percentage_chart(series: List[Dict[str, Any]]) -> Dict[str, Any]:
    chart = (
        alt.Chart(pd.DataFrame(series))
        .mark_line(point={"filled": True})
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("aduPercentage:Q", title="ADU share (%)"),
            tooltip=["year", alt.Tooltip("aduPercentage:Q", title="ADU %")],
        )
        .properties(height=260)
    )
    return to_vega_spec(chart)


def units_by_jurisdiction_chart(series: List[Dict[str, Any]]) -> Dict[str, Any]:
    order = [row["county"] for row in series]
    long_df = _long_by_class(series, "county", "units")
    chart = (
        alt.Chart(long_df)
        .mark_bar()
        .encode(
            y=alt.Y("county:N", sort=order, title="County"),
            x=alt.X("units:Q", stack="zero", title="Units", axis=alt.Axis(format="~s")),
            color=_class_color(long_df["classification"].unique().tolist()),
            tooltip=["county", "classification", alt.Tooltip("units:Q", format=",")],
        )
        .properties(height=max(200, 24 * len(order)))
    )
    return to_vega_spec(chart)


def job_value_by_year_chart(series: List[Dict[str, Any]]) -> Dict[str, Any]:
    long_df = _long_by_class(series, "year", "avgValue")
    chart = (
        alt.Chart(long_df)
        .mark_area(opacity=0.6)
        .encode(
            x=alt.X("year:O", title="Year"),
            y=alt.Y("avgValue:Q", stack=None, title="Average job value (K)"),
            color=_class_color(long_df["classification"].unique().tolist()),
            tooltip=["year", "classification", alt.Tooltip("avgValue:Q", format=",", title="Avg (K)")],
        )
        .properties(height=300)
    )
    return to_vega_spec(chart)


def job_value_by_county_chart(series: List[Dict[str, Any]]) -> Dict[str, Any]:
    order = [row["county"] for row in series]
    chart = (
        alt.Chart(pd.DataFrame(series))
        .mark_bar(color=CLASS_RANGE[0])
        .encode(
            y=alt.Y("county:N", sort=order, title="County"),
            x=alt.X("avgValue:Q", title="Average job value (K)"),
            tooltip=["county", alt.Tooltip("avgValue:Q", format=",", title="Avg (K)"), "count"],
        )
        .properties(height=max(200, 24 * len(order)))
    )
    return to_vega_spec(chart)


CHART_BUILDERS = {
    "unitsByYear": units_by_year_chart,
    "aduPercentageByYear": adu_percentage_chart,
    "unitsByJurisdiction": units_by_jurisdiction_chart,
    "jobValueByYear": job_value_by_year_chart,
    "jobValueByCounty": job_value_by_county_chart,
}


def build_charts(series: Dict[str, List[Dict[str, Any]]]) -> Dict[str, Dict[str, Any]]:
    """Vega-Lite specs for every non-empty series that has a chart builder."""
    charts: Dict[str, Dict[str, Any]] = {}
    for name, builder in CHART_BUILDERS.items():
        rows = series.get(name) or []
        if rows:
            charts[name] = builder(rows)
    return charts
