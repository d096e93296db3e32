from __future__ import annotations

import logging
from pathlib import Path

import pytest

from permits_core.config import load_settings
from permits_core.filters import LabelThresholds, PipelineOptions, normalize_options
from permits_core.logging_setup import LOG_FORMAT, setup_logging


def test_defaults() -> None:
    assert normalize_options() == PipelineOptions()
    assert normalize_options({}).jurisdiction_limit is None
    assert normalize_options({}).county_value_limit is None


def test_limits_are_kept_when_given() -> None:
    opts = normalize_options({"jurisdiction_sort_key": "ADU", "jurisdiction_limit": "3", "county_value_limit": 4})
    assert opts.jurisdiction_limit == 3
    assert opts.county_value_limit == 4


def test_bad_values_fall_back_and_limits_are_clamped() -> None:
    opts = normalize_options(
        {"jurisdiction_sort_key": "median", "jurisdiction_limit": "lots", "county_value_limit": 10_000}
    )
    assert opts.jurisdiction_sort_key == "total"
    assert opts.jurisdiction_limit is None
    assert opts.county_value_limit == 200
    assert normalize_options({"jurisdiction_limit": 0}).jurisdiction_limit == 1


def test_label_thresholds_are_parsed() -> None:
    opts = normalize_options({"labels": {"year_adu": "10", "year_non_adu": 3, "jurisdiction_adu": "x"}})
    assert opts.labels == LabelThresholds(year_adu=10, year_non_adu=3)


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("PERMITS_DATA_PATH", str(tmp_path / "permits.csv"))
    monkeypatch.setenv("PERMITS_SAMPLE_ROWS", "25")
    monkeypatch.setenv("PERMITS_LOG_LEVEL", "debug")
    monkeypatch.setenv("PERMITS_CORS_ORIGINS", "http://a.test, http://b.test")
    settings = load_settings()
    assert settings.data_path == tmp_path / "permits.csv"
    assert settings.sample_rows == 25
    assert settings.log_level == "DEBUG"
    assert settings.cors_origins == ["http://a.test", "http://b.test"]


def test_settings_ignore_invalid_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PERMITS_SAMPLE_ROWS", "many")
    monkeypatch.setenv("PERMITS_LOG_LEVEL", "LOUD")
    settings = load_settings({"sample_seed": 7, "unknown": 1})
    assert settings.sample_rows == 500
    assert settings.log_level == "INFO"
    assert settings.sample_seed == 7


def test_setup_logging_installs_a_stdout_handler() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging("warning")
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert root.handlers[0].formatter._fmt == LOG_FORMAT
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
