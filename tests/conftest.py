from __future__ import annotations

from typing import Any, Dict, List

import pytest

from permits_core.records import PermitRecord, to_permit_records


def make_rows(*specs: tuple) -> List[Dict[str, Any]]:
    """Build raw rows from (year, county, classification, job_value) tuples."""
    return [
        {"YEAR": year, "COUNTY": county, "Classification": classification, "JOB_VALUE": job_value}
        for year, county, classification, job_value in specs
    ]


@pytest.fixture
def alameda_rows() -> List[Dict[str, Any]]:
    return [
        {"year": 2020, "county": "Alameda", "classification": "ADU", "jobValue": 200000},
        {"year": 2020, "county": "Alameda", "classification": "NON_ADU", "jobValue": 100000},
    ]


@pytest.fixture
def mixed_records() -> List[PermitRecord]:
    return to_permit_records(
        make_rows(
            (2019, "Alameda", "ADU", 150000),
            (2019, "Alameda", "NON_ADU", 400000),
            (2019, "Marin", "ADU", 250000),
            (2020, "Alameda", "ADU", 180000),
            (2020, "Marin", "POTENTIAL_ADU_CONVERSION", 60000),
            (2020, "Fresno", "NON_ADU", 300000),
            (2020, "Fresno", "GARAGE", 50000),
            (2021, "Fresno", "ADU", 0),
            (2021, "Fresno", "NON_ADU", None),
            (None, "Kern", "ADU", 90000),
            (2021, None, "ADU", 120000),
        )
    )
