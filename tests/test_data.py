from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from permits_core import data as data_module
from permits_core.config import load_settings
from permits_core.data import (
    DatasetError,
    dataset_from_upload,
    frame_to_rows,
    generate_sample_data,
    load_dashboard_data,
    parse_csv_text,
)
from permits_core.records import Classification

CSV_TEXT = "\n".join(
    [
        "YEAR,COUNTY,Classification,JOB_VALUE,APN",
        "2020,Alameda,ADU,200000,1-2-3",
        "2020,Alameda,NON_ADU,,4-5-6",
        "",
        "2021,Marin,POTENTIAL_ADU_CONVERSION,0,7-8-9",
    ]
)


@pytest.fixture(autouse=True)
def _clear_loader_cache():
    data_module.clear_cache()
    yield
    data_module.clear_cache()


def test_parse_csv_text_normalizes_headers_and_types() -> None:
    df = parse_csv_text(CSV_TEXT)
    assert list(df.columns) == ["year", "county", "classification", "job_value", "APN"]
    assert len(df) == 3
    rows = frame_to_rows(df)
    assert rows[1]["job_value"] is None
    assert rows[0]["APN"] == "1-2-3"


def test_parse_csv_text_empty_input_is_an_empty_frame() -> None:
    assert parse_csv_text("").empty
    assert parse_csv_text("   \n").empty
    assert frame_to_rows(parse_csv_text("YEAR,COUNTY\n")) == []


def test_parse_csv_text_raises_dataset_error_on_malformed_csv() -> None:
    with pytest.raises(DatasetError):
        parse_csv_text("YEAR,COUNTY\n2020,Alameda\n2021,Marin,extra,fields,here\n")


def test_dataset_from_upload_builds_records() -> None:
    ctx = dataset_from_upload(CSV_TEXT)
    assert ctx["source"] == "upload"
    records = ctx["records"]
    assert [r.year for r in records] == [2020, 2020, 2021]
    assert records[0].classification is Classification.ADU
    assert records[1].job_value is None
    assert not records[2].contributes_value


def test_parse_csv_text_keeps_na_like_text() -> None:
    ctx = dataset_from_upload("YEAR,COUNTY,Classification,JOB_VALUE\n2020,NA,ADU,1000\n2021,None,null,\n")
    first, second = ctx["records"]
    assert first.county == "NA"
    assert first.is_adu
    assert second.county == "None"
    assert second.classification_label == "null"
    assert second.classification is None
    assert second.job_value is None


def test_generate_sample_data_is_reproducible() -> None:
    first = generate_sample_data(1000, seed=3)
    second = generate_sample_data(1000, seed=3)
    pd.testing.assert_frame_equal(first, second)
    assert list(first.columns) == ["year", "county", "classification", "job_value"]
    assert set(first["classification"]) <= {c.value for c in Classification}
    assert (first["job_value"] == 0).any()
    assert first["job_value"].isna().any()


def test_generate_sample_data_with_no_rows() -> None:
    assert generate_sample_data(0).empty


def test_load_dashboard_data_prefers_configured_file(tmp_path: Path) -> None:
    csv_path = tmp_path / "housing_data.csv"
    csv_path.write_text(CSV_TEXT, encoding="utf-8")
    ctx = load_dashboard_data(load_settings({"data_path": csv_path}))
    assert ctx["source"] == "file"
    assert len(ctx["records"]) == 3


def test_load_dashboard_data_falls_back_to_sample(tmp_path: Path) -> None:
    settings = load_settings({"data_path": tmp_path / "missing.csv", "sample_rows": 40, "sample_seed": 1})
    ctx = load_dashboard_data(settings)
    assert ctx["source"] == "sample"
    assert len(ctx["records"]) == 40
    assert load_dashboard_data(settings) is ctx


def test_load_dashboard_data_falls_back_when_file_is_malformed(tmp_path: Path) -> None:
    csv_path = tmp_path / "broken.csv"
    csv_path.write_text("YEAR,COUNTY\n2020,Alameda\n2021,Marin,extra,fields,here\n", encoding="utf-8")
    ctx = load_dashboard_data(load_settings({"data_path": csv_path, "sample_rows": 10}))
    assert ctx["source"] == "sample"
    assert len(ctx["records"]) == 10
