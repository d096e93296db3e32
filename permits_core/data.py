from __future__ import annotations

import io
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd

from permits_core.config import Settings, load_settings
from permits_core.records import CLASSIFICATIONS, FIELD_ALIASES, PermitRecord, to_permit_records

logger = logging.getLogger(__name__)

PERMIT_COLUMNS = {alias: field for field, aliases in FIELD_ALIASES.items() for alias in aliases}

SAMPLE_YEARS = list(range(2018, 2025))
SAMPLE_COUNTIES = [
    "Los Angeles",
    "San Diego",
    "Orange",
    "Riverside",
    "San Bernardino",
    "Santa Clara",
    "Alameda",
    "Sacramento",
    "Contra Costa",
    "Fresno",
    "Kern",
    "San Francisco",
    "Ventura",
    "San Mateo",
    "San Joaquin",
    "Sonoma",
    "Santa Barbara",
    "Placer",
    "Marin",
    "Monterey",
]
# (mean of log job value, sigma) per classification
SAMPLE_VALUE_PARAMS = {
    "ADU": (11.9, 0.5),
    "NON_ADU": (12.8, 0.6),
    "POTENTIAL_ADU_CONVERSION": (11.2, 0.7),
}


class DatasetError(ValueError):
    """Raised when permit data cannot be parsed into a table."""


def drop_duplicate_columns(df: pd.DataFrame) -> pd.DataFrame:
    return df.loc[:, ~df.columns.duplicated()]


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Rename known header spellings to record field names, keeping the first duplicate."""
    df = df.rename(columns=lambda c: PERMIT_COLUMNS.get(str(c).strip(), c))
    return drop_duplicate_columns(df)


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    if df.empty:
        return []
    clean = df.astype(object).where(pd.notna(df), None)
    return clean.to_dict(orient="records")


def parse_csv_text(text: str) -> pd.DataFrame:
    if not text or not text.strip():
        return pd.DataFrame()
    try:
        df = pd.read_csv(
            io.StringIO(text),
            skip_blank_lines=True,
            skipinitialspace=True,
            keep_default_na=False,
            na_values=[""],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        raise DatasetError(f"CSV parsing error: {exc}") from exc
    return normalize_columns(df)


def load_csv_file(path: Path) -> pd.DataFrame:
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise DatasetError(f"Error loading data: {exc}") from exc
    return parse_csv_text(text)


def generate_sample_data(rows: int = 500, seed: int = 42) -> pd.DataFrame:
    """Synthetic permits with the same columns as the published CSV.

    ADU share grows over the years, and a small fraction of job values is zero
    or missing so the sample exercises the exclusion rules.
    """
    rng = np.random.default_rng(seed)
    if rows <= 0:
        return normalize_columns(pd.DataFrame(columns=["YEAR", "COUNTY", "Classification", "JOB_VALUE"]))

    years = rng.choice(SAMPLE_YEARS, size=rows)
    county_weights = np.linspace(3.0, 0.5, len(SAMPLE_COUNTIES))
    counties = rng.choice(SAMPLE_COUNTIES, size=rows, p=county_weights / county_weights.sum())

    labels = [c.value for c in CLASSIFICATIONS]
    classifications = []
    for year in years:
        adu_share = 0.15 + 0.05 * (int(year) - SAMPLE_YEARS[0])
        p = np.array([adu_share, 0.92 - adu_share, 0.08])
        classifications.append(rng.choice(labels, p=p / p.sum()))

    job_values = np.array([rng.lognormal(*SAMPLE_VALUE_PARAMS[c]) for c in classifications]).round(0)
    roll = rng.random(rows)
    job_values = np.where(roll < 0.03, 0.0, job_values)
    job_values = np.where((roll >= 0.03) & (roll < 0.06), np.nan, job_values)

    df = pd.DataFrame(
        {
            "YEAR": years.astype(int),
            "COUNTY": counties,
            "Classification": classifications,
            "JOB_VALUE": job_values,
        }
    )
    return normalize_columns(df)


def file_signature(path: Path) -> Optional[Tuple[str, float, int]]:
    try:
        stat = path.stat()
    except OSError:
        return None
    if not path.is_file():
        return None
    return (str(path.resolve()), stat.st_mtime, stat.st_size)


def _context(source: str, df: pd.DataFrame, path: Optional[str] = None) -> Dict[str, Any]:
    records: List[PermitRecord] = to_permit_records(frame_to_rows(df))
    return {"source": source, "path": path, "frame": df, "records": records}


@lru_cache(maxsize=4)
def _load_file_cached(file_sig: Tuple[str, float, int]) -> Dict[str, Any]:
    path = file_sig[0]
    df = load_csv_file(Path(path))
    logger.info("Loaded %d permit rows from %s", len(df), path)
    return _context("file", df, path)


@lru_cache(maxsize=4)
def _load_sample_cached(rows: int, seed: int) -> Dict[str, Any]:
    df = generate_sample_data(rows, seed)
    logger.info("Generated %d sample permit rows (seed=%d)", len(df), seed)
    return _context("sample", df)


def load_dashboard_data(settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Permit data from the configured CSV, or generated sample data when it is unavailable."""
    settings = settings or load_settings()
    sig = file_signature(Path(settings.data_path))
    if sig is not None:
        try:
            return _load_file_cached(sig)
        except DatasetError:
            logger.exception("Falling back to sample data; could not read %s", settings.data_path)
    else:
        logger.info("No permit file at %s; using sample data", settings.data_path)
    return _load_sample_cached(settings.sample_rows, settings.sample_seed)


def dataset_from_upload(text: str) -> Dict[str, Any]:
    df = parse_csv_text(text)
    logger.info("Parsed %d uploaded permit rows", len(df))
    return _context("upload", df)


def clear_cache() -> None:
    _load_file_cached.cache_clear()
    _load_sample_cached.cache_clear()
