#!/usr/bin/env python3
"""
Stage 00: Survey Loading

Purpose: Read the trimmed BRFSS extract into an in-memory table.

This stage handles:
- Reading the comma-separated extract (header row required)
- Typing the four coded columns as nullable integers
- Failing with DataUnavailable when the file is missing or unusable
- Generating a synthetic extract for demos and tests

Sentinel codes and missing cells are left untouched here; they belong to
the cleaner.

Input Files
-----------
- data_raw/brfss_extract.csv (configurable)

Output
------
- pd.DataFrame, one row per respondent, all input columns in input order

Usage
-----
    python src/pipeline.py run_report --input data_raw/brfss_extract.csv
    python src/pipeline.py make_demo --rows 500
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd
import numpy as np

from config import (
    ANALYSIS_COLUMNS,
    SURVEY_PATH,
    DEMO_ROWS,
    DEMO_SEED,
    MENTAL_HEALTH_VAR,
    DIAGNOSIS_VAR,
    ALCOHOL_VAR,
    EXERCISE_VAR,
)
from errors import DataUnavailable
from utils.helpers import ensure_dir
from stages._qa_utils import qa_for_stage


# ============================================================
# CONFIGURATION
# ============================================================

# Columns that must be present in the extract
REQUIRED_COLUMNS = list(ANALYSIS_COLUMNS)

# Nullable integer dtype keeps missing cells distinct from sentinel codes
CODE_DTYPE = 'Int64'


# ============================================================
# DATA LOADING
# ============================================================

def _coerce_codes(df: pd.DataFrame, column: str) -> pd.Series:
    """Convert a coded column to nullable integers, rejecting non-integers."""
    raw = df[column]
    numeric = pd.to_numeric(raw, errors='coerce')

    unparsed = numeric.isna() & raw.notna()
    if unparsed.any():
        row = unparsed.idxmax()
        raise DataUnavailable(
            "Non-numeric value in coded column",
            column=column, value=raw.loc[row], row=row,
        )

    fractional = numeric.notna() & (numeric.fillna(0) % 1 != 0)
    if fractional.any():
        row = fractional.idxmax()
        raise DataUnavailable(
            "Non-integer value in coded column",
            column=column, value=numeric.loc[row], row=row,
        )

    # Int64 holds magnitudes below 2**63
    out_of_range = numeric.abs() >= 2.0 ** 63
    if out_of_range.any():
        row = out_of_range.idxmax()
        raise DataUnavailable(
            "Value out of range for coded column",
            column=column, value=numeric.loc[row], row=row,
        )

    return numeric.astype(CODE_DTYPE)


def load_survey(path: Union[str, Path, None] = None) -> pd.DataFrame:
    """
    Load the survey extract.

    Parameters
    ----------
    path : str or Path, optional
        Path to the CSV extract (default: SURVEY_PATH from config)

    Returns
    -------
    pd.DataFrame
        One row per input record. Every input column is kept in its
        original order; the four coded columns are typed Int64.

    Raises
    ------
    DataUnavailable
        If the file does not exist, cannot be parsed as a table, lacks a
        required column, or holds non-integer values in a coded column
    """
    path = Path(path) if path is not None else SURVEY_PATH

    if not path.exists():
        raise DataUnavailable(f"Survey file not found: {path}")
    if not path.is_file():
        raise DataUnavailable(f"Survey path is not a file: {path}")

    try:
        df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DataUnavailable(f"Could not parse {path.name} as tabular data: {e}") from e
    except OSError as e:
        raise DataUnavailable(f"Could not read {path}: {e}") from e

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataUnavailable(f"Missing required columns in {path.name}: {missing}")

    df = df.copy()
    for column in REQUIRED_COLUMNS:
        df[column] = _coerce_codes(df, column)

    return df


# ============================================================
# DEMO DATA
# ============================================================

def generate_demo_survey(
    n: int = DEMO_ROWS,
    seed: int = DEMO_SEED
) -> pd.DataFrame:
    """
    Generate a synthetic BRFSS-like extract.

    Every sentinel code, both alcohol code families and missing cells
    appear, and poor mental-health days rise with a depression diagnosis
    so the regressions have something to find.

    Parameters
    ----------
    n : int
        Number of respondents
    seed : int
        Random seed

    Returns
    -------
    pd.DataFrame
        Raw extract with the four coded columns plus a state identifier
    """
    rng = np.random.default_rng(seed)

    diagnosis = rng.choice([1, 2, 7, 9], size=n, p=[0.22, 0.74, 0.02, 0.02])
    exercise = rng.choice([1, 2, 7, 9], size=n, p=[0.74, 0.22, 0.02, 0.02])

    # Mental health days: mostly "none", heavier tail for diagnosed respondents
    base_days = rng.poisson(np.where(diagnosis == 1, 9.0, 2.5))
    days = np.clip(base_days, 0, 30)
    mental = np.where(days == 0, 88, days)
    sentinel = rng.random(n)
    mental = np.where(sentinel < 0.02, 77, mental)
    mental = np.where((sentinel >= 0.02) & (sentinel < 0.04), 99, mental)

    # Alcohol: none, per week, per month, or not sure/refused
    kind = rng.choice(['none', 'week', 'month', 'sentinel'], size=n, p=[0.45, 0.25, 0.26, 0.04])
    alcohol = np.select(
        [kind == 'none', kind == 'week', kind == 'month'],
        [
            np.full(n, 888),
            100 + rng.integers(1, 8, size=n),
            200 + rng.integers(1, 31, size=n),
        ],
        default=rng.choice([777, 999], size=n),
    )

    df = pd.DataFrame({
        '_STATE': rng.integers(1, 57, size=n),
        MENTAL_HEALTH_VAR: pd.array(mental, dtype=CODE_DTYPE),
        DIAGNOSIS_VAR: pd.array(diagnosis, dtype=CODE_DTYPE),
        ALCOHOL_VAR: pd.array(alcohol, dtype=CODE_DTYPE),
        EXERCISE_VAR: pd.array(exercise, dtype=CODE_DTYPE),
    })

    # Blank cells
    for column, share in [
        (MENTAL_HEALTH_VAR, 0.01),
        (DIAGNOSIS_VAR, 0.01),
        (ALCOHOL_VAR, 0.05),
        (EXERCISE_VAR, 0.01),
    ]:
        df.loc[rng.random(n) < share, column] = pd.NA

    return df


def write_demo_survey(
    path: Union[str, Path, None] = None,
    n: int = DEMO_ROWS,
    seed: int = DEMO_SEED
) -> Path:
    """Write a synthetic extract as CSV and return its path."""
    path = Path(path) if path is not None else SURVEY_PATH
    ensure_dir(path.parent)
    generate_demo_survey(n=n, seed=seed).to_csv(path, index=False)
    return path


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    input_path: Optional[Path] = None,
    use_demo: bool = False,
    verbose: bool = True,
    qa: bool = True
) -> pd.DataFrame:
    """
    Execute survey loading.

    Parameters
    ----------
    input_path : Path, optional
        CSV extract to read (default: SURVEY_PATH)
    use_demo : bool
        Use a synthetic extract instead of reading a file
    verbose : bool
        Print detailed output
    qa : bool
        Write a QA report

    Returns
    -------
    pd.DataFrame
        Raw survey table
    """
    print("=" * 60)
    print("Stage 00: Survey Loading")
    print("=" * 60)

    if use_demo:
        print("\n  Generating synthetic demo survey...")
        df = generate_demo_survey()
    else:
        path = Path(input_path) if input_path is not None else SURVEY_PATH
        print(f"\n  Loading: {path}")
        df = load_survey(path)

    print(f"    -> {len(df):,} rows, {len(df.columns)} columns")

    if verbose:
        print("\n  Columns:")
        for col in df.columns:
            print(f"    - {col}: {df[col].dtype}")

    if qa:
        qa_for_stage('s00_load', df)

    print("\n" + "=" * 60)
    print("Stage 00 complete.")
    print("=" * 60)

    return df


if __name__ == '__main__':
    main()
