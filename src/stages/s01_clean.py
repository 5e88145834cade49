#!/usr/bin/env python3
"""
Stage 01: Cleaning and Recoding

Purpose: Reduce the raw extract to fully specified, unit-normalized
observations of the four analysis columns.

This stage handles:
- Column selection (everything else is discarded)
- Dropping "not sure" / "refused" codes and missing answers
- Recoding MENTHLTH 88 ("none") to 0 days
- Converting ALCDAY5 weekly/monthly codes to days per 30-day period
- Yes/No labels for ADDEPEV3 and EXERANY2 ("Yes" is the reference level)
- Median imputation of missing ALCDAY5
- Stable sort by MENTHLTH

ALCDAY5 is the only column whose missing cells survive the filter; they
are imputed with a single median computed before any value is filled.

Input
-----
- Raw survey table from s00_load

Output
------
- CleaningResult (cleaned table plus the pre-imputation missing rate)

Usage
-----
    python src/pipeline.py run_report
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd
import numpy as np

from config import (
    ANALYSIS_COLUMNS,
    SENTINEL_CODES,
    IMPUTED_COLUMNS,
    MENTAL_HEALTH_VAR,
    DIAGNOSIS_VAR,
    ALCOHOL_VAR,
    EXERCISE_VAR,
    CATEGORICAL_COLUMNS,
    MENTAL_HEALTH_NONE_CODE,
    MENTAL_HEALTH_MAX_DAYS,
    ALCOHOL_WEEKLY_CODES,
    ALCOHOL_MONTHLY_CODES,
    ALCOHOL_NONE_CODE,
    DAYS_PER_MONTH,
    DAYS_PER_WEEK,
    YES_NO_LABELS,
    REFERENCE_LEVEL,
    factor_column,
)
from errors import DataUnavailable, UnexpectedCode
from stages._qa_utils import qa_for_stage


# ============================================================
# RESULTS
# ============================================================

@dataclass
class CleaningResult:
    """Cleaned table and the bookkeeping needed to report on it."""
    table: pd.DataFrame
    n_input: int
    dropped_by_column: dict = field(default_factory=dict)
    alcohol_missing_rate: float = 0.0
    alcohol_median: Optional[int] = None
    n_imputed: int = 0

    @property
    def n_retained(self) -> int:
        return len(self.table)

    @property
    def n_dropped(self) -> int:
        return self.n_input - self.n_retained

    def to_dict(self) -> dict:
        """Scalar summary (the table itself is left out)."""
        return {
            'n_input': self.n_input,
            'n_retained': self.n_retained,
            'n_dropped': self.n_dropped,
            'alcohol_missing_rate': self.alcohol_missing_rate,
            'alcohol_median': self.alcohol_median,
            'n_imputed': self.n_imputed,
            **{f'dropped_{col}': n for col, n in self.dropped_by_column.items()},
        }


# ============================================================
# FILTERING
# ============================================================

def select_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Keep only the four analysis columns, typed as nullable integers."""
    missing = [c for c in ANALYSIS_COLUMNS if c not in df.columns]
    if missing:
        raise DataUnavailable(f"Missing required columns: {missing}")
    return df[ANALYSIS_COLUMNS].astype('Int64')


def _is_code(series: pd.Series, codes) -> pd.Series:
    return series.isin(sorted(codes)).fillna(False).astype(bool)


def valid_rows(df: pd.DataFrame) -> tuple[pd.Series, dict]:
    """
    Build the conjunctive row filter.

    A row survives only if no column holds a sentinel code and no column
    other than the imputed ones is missing.

    Returns
    -------
    tuple[pd.Series, dict]
        Boolean mask aligned with df, and per-column counts of rows that
        fail that column's condition
    """
    mask = pd.Series(True, index=df.index)
    failures = {}
    for column in ANALYSIS_COLUMNS:
        bad = _is_code(df[column], SENTINEL_CODES.get(column, ()))
        if column not in IMPUTED_COLUMNS:
            bad = bad | df[column].isna()
        failures[column] = int(bad.sum())
        mask &= ~bad
    return mask, failures


# ============================================================
# RECODING
# ============================================================

def _first_offender(series: pd.Series, bad: pd.Series, message: str) -> None:
    if bad.any():
        row = bad.idxmax()
        raise UnexpectedCode(message, column=series.name, value=series.loc[row], row=row)


def recode_mental_health(series: pd.Series) -> pd.Series:
    """Map 88 ("none") to 0 days; every other value must already be 0-30."""
    days = series.where(series != MENTAL_HEALTH_NONE_CODE, 0)
    bad = days.isna() | (days < 0) | (days > MENTAL_HEALTH_MAX_DAYS)
    _first_offender(series, bad.fillna(True).astype(bool), "No recoding rule for mental health code")
    return days.astype('int64')


def yes_no_labels(series: pd.Series) -> pd.Series:
    """
    Derive the Yes/No categorical for a 1/2 coded question.

    The reference level comes first in the category order so that
    regression contrasts compare "No" against "Yes".
    """
    known = _is_code(series, YES_NO_LABELS.keys())
    _first_offender(series, ~known, "No Yes/No label for code")
    levels = [REFERENCE_LEVEL] + [v for v in YES_NO_LABELS.values() if v != REFERENCE_LEVEL]
    labels = series.astype('int64').map(YES_NO_LABELS)
    return pd.Series(
        pd.Categorical(labels, categories=levels),
        index=series.index,
        name=factor_column(series.name),
    )


def recode_alcohol(series: pd.Series) -> pd.Series:
    """
    Normalize drinking frequency to days per 30-day period.

    101-107 (days per week) are scaled by 30/7 and rounded, so 107 becomes
    30 and nothing is clamped. 201-230 (days in past 30) lose the 200
    prefix and 888 ("none") becomes 0. Missing cells stay missing.
    """
    weekly = series.between(*ALCOHOL_WEEKLY_CODES).fillna(False).astype(bool)
    monthly = series.between(*ALCOHOL_MONTHLY_CODES).fillna(False).astype(bool)
    none = (series == ALCOHOL_NONE_CODE).fillna(False).astype(bool)
    _first_offender(
        series,
        series.notna() & ~(weekly | monthly | none),
        "No recoding rule for alcohol code",
    )

    codes = series.astype('float64')
    days = pd.Series(np.nan, index=series.index, name=series.name)
    days[weekly] = np.round((codes[weekly] - 100) * DAYS_PER_MONTH / DAYS_PER_WEEK)
    days[monthly] = codes[monthly] - 200
    days[none] = 0
    return days.astype('Int64')


def impute_median(series: pd.Series) -> tuple[pd.Series, Optional[int]]:
    """
    Fill missing values with the median of the observed ones.

    The median is computed once, before filling, and rounded to the
    column's integer domain.

    Returns
    -------
    tuple[pd.Series, int or None]
        Filled column (int64) and the median (None for an empty column)
    """
    observed = series.dropna()
    if observed.empty:
        if series.isna().any():
            raise DataUnavailable("No observed values to impute from", column=series.name)
        return series.astype('int64'), None

    median = int(np.round(float(observed.median())))
    return series.fillna(median).astype('int64'), median


# ============================================================
# PIPELINE
# ============================================================

def clean_survey(df: pd.DataFrame) -> CleaningResult:
    """
    Filter, recode, impute and sort the raw survey table.

    Parameters
    ----------
    df : pd.DataFrame
        Raw survey table (not modified)

    Returns
    -------
    CleaningResult
        Cleaned table indexed by the original row labels, plus counts,
        the pre-imputation ALCDAY5 missing rate and the imputed median

    Raises
    ------
    UnexpectedCode
        If a retained value has no recoding rule
    """
    selected = select_columns(df)
    mask, dropped = valid_rows(selected)
    kept = selected[mask]

    alcohol = recode_alcohol(kept[ALCOHOL_VAR])
    n_missing = int(alcohol.isna().sum())
    missing_rate = n_missing / len(alcohol) if len(alcohol) else 0.0
    alcohol, median = impute_median(alcohol)

    columns = {MENTAL_HEALTH_VAR: recode_mental_health(kept[MENTAL_HEALTH_VAR])}
    for column in ANALYSIS_COLUMNS[1:]:
        if column == ALCOHOL_VAR:
            columns[column] = alcohol
        else:
            columns[column] = kept[column].astype('int64')
        if column in CATEGORICAL_COLUMNS:
            columns[factor_column(column)] = yes_no_labels(kept[column])

    cleaned = pd.DataFrame(columns, index=kept.index)
    cleaned = cleaned.sort_values(MENTAL_HEALTH_VAR, kind='mergesort')

    return CleaningResult(
        table=cleaned,
        n_input=len(df),
        dropped_by_column=dropped,
        alcohol_missing_rate=missing_rate,
        alcohol_median=median,
        n_imputed=n_missing,
    )


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    df: pd.DataFrame,
    verbose: bool = True,
    qa: bool = True
) -> CleaningResult:
    """
    Execute cleaning and recoding.

    Parameters
    ----------
    df : pd.DataFrame
        Raw survey table from s00_load
    verbose : bool
        Print detailed output
    qa : bool
        Write a QA report

    Returns
    -------
    CleaningResult
    """
    print("=" * 60)
    print("Stage 01: Cleaning and Recoding")
    print("=" * 60)

    result = clean_survey(df)

    print(f"\n  Input rows: {result.n_input:,}")
    if verbose:
        print("  Rows failing each column's filter:")
        for column, n in result.dropped_by_column.items():
            print(f"    - {column}: {n:,}")
    print(f"  Dropped: {result.n_dropped:,}")
    print(f"  Retained: {result.n_retained:,}")
    print(f"\n  {ALCOHOL_VAR} missing before imputation: {result.alcohol_missing_rate:.2%}")
    if result.n_imputed:
        print(f"    -> Imputed {result.n_imputed:,} value(s) with median {result.alcohol_median}")

    if qa:
        qa_for_stage('s01_clean', result.table, result.to_dict())

    print("\n" + "=" * 60)
    print("Stage 01 complete.")
    print("=" * 60)

    return result
