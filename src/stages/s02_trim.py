#!/usr/bin/env python3
"""
Stage 02: Outlier Trimming

Purpose: Remove high-end outliers from MENTHLTH and ALCDAY5 with the
1.5 x IQR rule.

The two fences are applied one after the other: the ALCDAY5 fence is
computed on the table that is left after the MENTHLTH trim. Only upper
fences are used; both columns are floored at 0 and right-skewed.

Input
-----
- Cleaned table from s01_clean

Output
------
- TrimResult (trimmed table and the fences that produced it)

Usage
-----
    python src/pipeline.py run_report
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import (
    IQR_MULTIPLIER,
    QUANTILE_METHOD,
    TRIM_COLUMNS,
)
from stages._qa_utils import qa_for_stage


# ============================================================
# RESULTS
# ============================================================

@dataclass
class TrimResult:
    """Trimmed table with the fence and row loss of each step."""
    table: pd.DataFrame
    n_input: int
    fences: dict = field(default_factory=dict)
    removed: dict = field(default_factory=dict)

    @property
    def n_removed(self) -> int:
        return self.n_input - len(self.table)

    def to_dict(self) -> dict:
        out = {'n_input': self.n_input, 'n_removed': self.n_removed}
        for column, fence in self.fences.items():
            out[f'fence_{column}'] = fence
            out[f'removed_{column}'] = self.removed.get(column, 0)
        return out


# ============================================================
# FENCES
# ============================================================

def upper_fence(
    series: pd.Series,
    multiplier: float = IQR_MULTIPLIER
) -> float:
    """
    Compute Q3 + multiplier * IQR.

    Quartiles use linear interpolation between order statistics.

    Parameters
    ----------
    series : pd.Series
        Numeric column
    multiplier : float
        IQR multiplier

    Returns
    -------
    float
        Upper fence (NaN for an empty column)
    """
    q1, q3 = series.quantile([0.25, 0.75], interpolation=QUANTILE_METHOD)
    return float(q3 + multiplier * (q3 - q1))


def trim_upper(
    df: pd.DataFrame,
    column: str,
    multiplier: float = IQR_MULTIPLIER
) -> tuple[pd.DataFrame, float]:
    """
    Drop rows whose value in column lies above its upper fence.

    The fence is computed from df itself on every call.

    Returns
    -------
    tuple[pd.DataFrame, float]
        Retained rows (original order and labels) and the fence used
    """
    fence = upper_fence(df[column], multiplier)
    return df[~(df[column] > fence)], fence


def trim_outliers(
    df: pd.DataFrame,
    columns: list[str] = None,
    multiplier: float = IQR_MULTIPLIER
) -> TrimResult:
    """
    Apply upper-fence trimming to each column in turn.

    Parameters
    ----------
    df : pd.DataFrame
        Cleaned table (not modified)
    columns : list[str], optional
        Columns to trim, in order (default: MENTHLTH then ALCDAY5)
    multiplier : float
        IQR multiplier

    Returns
    -------
    TrimResult
    """
    columns = columns or TRIM_COLUMNS
    trimmed = df
    fences = {}
    removed = {}

    for column in columns:
        before = len(trimmed)
        trimmed, fences[column] = trim_upper(trimmed, column, multiplier)
        removed[column] = before - len(trimmed)

    return TrimResult(
        table=trimmed.copy(),
        n_input=len(df),
        fences=fences,
        removed=removed,
    )


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    df: pd.DataFrame,
    verbose: bool = True,
    qa: bool = True
) -> TrimResult:
    """
    Execute outlier trimming.

    Parameters
    ----------
    df : pd.DataFrame
        Cleaned table from s01_clean
    verbose : bool
        Print detailed output
    qa : bool
        Write a QA report

    Returns
    -------
    TrimResult
    """
    print("=" * 60)
    print("Stage 02: Outlier Trimming")
    print("=" * 60)

    result = trim_outliers(df)

    print(f"\n  Input rows: {result.n_input:,}")
    for column, fence in result.fences.items():
        print(f"  {column}: upper fence {fence:.2f}")
        if verbose:
            print(f"    -> Removed {result.removed[column]:,} row(s)")
    print(f"  Retained: {len(result.table):,}")

    if qa:
        qa_for_stage('s02_trim', result.table, result.to_dict())

    print("\n" + "=" * 60)
    print("Stage 02 complete.")
    print("=" * 60)

    return result
