from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class LabelThresholdsModel(BaseModel):
    year_adu: Optional[int] = 50
    year_non_adu: Optional[int] = None
    year_potential: Optional[int] = 5
    jurisdiction_adu: Optional[int] = 50
    jurisdiction_non_adu: Optional[int] = 1000
    jurisdiction_potential: Optional[int] = 10


class PipelineOptionsModel(BaseModel):
    jurisdiction_sort_key: Literal["total", "ADU"] = "total"
    jurisdiction_limit: Optional[int] = None
    county_value_adu_only: bool = True
    county_value_limit: Optional[int] = None
    include_charts: bool = True
    labels: LabelThresholdsModel = Field(default_factory=LabelThresholdsModel)


class SourceResponse(BaseModel):
    source: str
    path: Optional[str] = None
    rows: int


class MetaListResponse(BaseModel):
    values: List[str]
