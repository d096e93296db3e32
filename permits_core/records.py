from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd


class Classification(str, Enum):
    ADU = "ADU"
    NON_ADU = "NON_ADU"
    POTENTIAL_ADU_CONVERSION = "POTENTIAL_ADU_CONVERSION"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Classification"]:
        """Return the matching member, or None for a missing or unrecognized label."""
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


CLASSIFICATIONS = tuple(Classification)

# Header spellings seen in permit exports, mapped to record fields.
FIELD_ALIASES = {
    "year": ("year", "YEAR", "Year"),
    "county": ("county", "COUNTY", "County"),
    "classification": ("classification", "Classification", "CLASSIFICATION"),
    "job_value": ("job_value", "jobValue", "JOB_VALUE", "Job Value"),
}


@dataclass(frozen=True)
class PermitRecord:
    year: Optional[int] = None
    county: Optional[str] = None
    classification: Optional[Classification] = None
    classification_label: Optional[str] = None
    job_value: Optional[float] = None

    @property
    def has_classification(self) -> bool:
        return bool(self.classification_label)

    @property
    def is_adu(self) -> bool:
        return self.classification is Classification.ADU

    @property
    def contributes_value(self) -> bool:
        # Zero and missing job values are both treated as absent.
        return bool(self.job_value)


def _is_missing(value: Any) -> bool:
    if value is None or value is pd.NA:
        return True
    if isinstance(value, (float, np.floating)) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _lookup(row: Mapping[str, Any], field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if key in row and not _is_missing(row[key]):
            return row[key]
    return None


def coerce_number(value: Any) -> Optional[float]:
    if _is_missing(value) or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        out = float(value)
    elif isinstance(value, str):
        try:
            out = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def coerce_year(value: Any) -> Optional[int]:
    number = coerce_number(value)
    if number is None or not number.is_integer() or number == 0:
        return None
    return int(number)


def coerce_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        value = int(value)
    text = str(value)
    return text if text.strip() else None


def to_permit_record(row: Any) -> PermitRecord:
    """Build a PermitRecord from a loosely typed row; never raises."""
    if not isinstance(row, Mapping):
        return PermitRecord()
    label = coerce_text(_lookup(row, "classification"))
    return PermitRecord(
        year=coerce_year(_lookup(row, "year")),
        county=coerce_text(_lookup(row, "county")),
        classification=Classification.parse(label),
        classification_label=label,
        job_value=coerce_number(_lookup(row, "job_value")),
    )


def to_permit_records(rows: Optional[Iterable[Any]]) -> List[PermitRecord]:
    if rows is None:
        return []
    return [row if isinstance(row, PermitRecord) else to_permit_record(row) for row in rows]
