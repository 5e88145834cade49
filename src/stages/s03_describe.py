#!/usr/bin/env python3
"""
Stage 03: Descriptive Statistics

Purpose: Summarize the trimmed survey table.

This stage handles:
- Five-number summaries plus mean, SD, variance and SE for MENTHLTH and ALCDAY5
- Counts and percentages per code for ADDEPEV3 and EXERANY2
- Pearson correlation matrix over the four coded columns
- MENTHLTH by diagnosis and by exercise label

Categorical columns enter the correlation matrix in their 1/2 coding,
not as labels.

Input
-----
- Trimmed table from s02_trim

Output
------
- DescriptiveReport

Usage
-----
    python src/pipeline.py run_report
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional
import math
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd
import numpy as np

from config import (
    ANALYSIS_COLUMNS,
    CATEGORICAL_COLUMNS,
    TRIM_COLUMNS,
    MENTAL_HEALTH_VAR,
    QUANTILE_METHOD,
    SUMMARY_DECIMALS,
    SE_DECIMALS,
    CORRELATION_DECIMALS,
    factor_column,
)
from stages._qa_utils import QAMetrics, generate_qa_report


# ============================================================
# RESULTS
# ============================================================

@dataclass
class NumericSummary:
    """Location, spread and precision of one numeric column."""
    column: str
    n: int
    minimum: float
    q1: float
    median: float
    mean: float
    q3: float
    maximum: float
    sd: float
    variance: float
    se: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class DescriptiveReport:
    """Everything the descriptive stage exposes to the report."""
    n_obs: int
    numeric: dict = field(default_factory=dict)
    categorical: dict = field(default_factory=dict)
    correlations: Optional[pd.DataFrame] = None
    group_means: dict = field(default_factory=dict)

    def numeric_table(self) -> pd.DataFrame:
        """Numeric summaries as one row per column."""
        return pd.DataFrame([s.to_dict() for s in self.numeric.values()]).set_index('column')


# ============================================================
# SUMMARIES
# ============================================================

def _round(value: float, decimals: Optional[int]) -> float:
    value = float(value)
    if decimals is None or math.isnan(value):
        return value
    return round(value, decimals)


def numeric_summary(
    series: pd.Series,
    decimals: Optional[int] = SUMMARY_DECIMALS,
    se_decimals: Optional[int] = SE_DECIMALS
) -> NumericSummary:
    """
    Summarize a numeric column.

    SD and variance are sample statistics (ddof=1); SE is SD / sqrt(n).
    Quartiles use linear interpolation.

    Parameters
    ----------
    series : pd.Series
        Numeric column
    decimals : int, optional
        Rounding for everything except SE (None = unrounded)
    se_decimals : int, optional
        Rounding for SE (None = unrounded)

    Returns
    -------
    NumericSummary
    """
    values = series.dropna().astype('float64')
    n = len(values)
    q1, median, q3 = values.quantile([0.25, 0.5, 0.75], interpolation=QUANTILE_METHOD)
    sd = values.std(ddof=1)
    se = sd / np.sqrt(n) if n else float('nan')

    return NumericSummary(
        column=str(series.name),
        n=n,
        minimum=_round(values.min(), decimals),
        q1=_round(q1, decimals),
        median=_round(median, decimals),
        mean=_round(values.mean(), decimals),
        q3=_round(q3, decimals),
        maximum=_round(values.max(), decimals),
        sd=_round(sd, decimals),
        variance=_round(values.var(ddof=1), decimals),
        se=_round(se, se_decimals),
    )


def categorical_summary(
    series: pd.Series,
    decimals: Optional[int] = SUMMARY_DECIMALS
) -> pd.DataFrame:
    """
    Count and percentage of rows per distinct code.

    Returns
    -------
    pd.DataFrame
        Columns: code, count, percent (of all rows), ordered by code
    """
    counts = series.value_counts(dropna=False).sort_index()
    total = len(series)
    percent = counts / total * 100 if total else counts.astype('float64')
    if decimals is not None:
        percent = percent.round(decimals)

    return pd.DataFrame({
        'code': counts.index,
        'count': counts.values.astype('int64'),
        'percent': percent.values,
    })


def correlation_matrix(
    df: pd.DataFrame,
    columns: list[str] = None,
    decimals: Optional[int] = CORRELATION_DECIMALS
) -> pd.DataFrame:
    """
    Pairwise Pearson correlations over numeric-coded columns.

    Returns
    -------
    pd.DataFrame
        Symmetric matrix with a unit diagonal, rows/columns in input order
    """
    columns = columns or ANALYSIS_COLUMNS
    corr = df[columns].astype('float64').corr(method='pearson')

    # Exact symmetry and unit diagonal
    values = (corr.to_numpy() + corr.to_numpy().T) / 2
    np.fill_diagonal(values, 1.0)
    corr = pd.DataFrame(values, index=columns, columns=columns)

    if decimals is not None:
        corr = corr.round(decimals)
    return corr


def group_means(
    df: pd.DataFrame,
    by: str,
    response: str = MENTAL_HEALTH_VAR,
    decimals: Optional[int] = SUMMARY_DECIMALS
) -> pd.DataFrame:
    """Count, mean and SD of the response within each level of a label column."""
    grouped = df.groupby(by, observed=False)[response].agg(['count', 'mean', 'std'])
    grouped = grouped.rename(columns={'std': 'sd'})
    if decimals is not None:
        grouped[['mean', 'sd']] = grouped[['mean', 'sd']].round(decimals)
    return grouped


def describe_survey(df: pd.DataFrame) -> DescriptiveReport:
    """
    Build all descriptive outputs for the trimmed table.

    Parameters
    ----------
    df : pd.DataFrame
        Trimmed table

    Returns
    -------
    DescriptiveReport
    """
    report = DescriptiveReport(n_obs=len(df))

    for column in TRIM_COLUMNS:
        report.numeric[column] = numeric_summary(df[column])

    for column in CATEGORICAL_COLUMNS:
        report.categorical[column] = categorical_summary(df[column])
        label = factor_column(column)
        if label in df.columns:
            report.group_means[column] = group_means(df, label)

    report.correlations = correlation_matrix(df)
    return report


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    df: pd.DataFrame,
    verbose: bool = True,
    qa: bool = True
) -> DescriptiveReport:
    """
    Execute descriptive statistics.

    Parameters
    ----------
    df : pd.DataFrame
        Trimmed table from s02_trim
    verbose : bool
        Print detailed output
    qa : bool
        Write a QA report

    Returns
    -------
    DescriptiveReport
    """
    print("=" * 60)
    print("Stage 03: Descriptive Statistics")
    print("=" * 60)

    report = describe_survey(df)

    print(f"\n  Observations: {report.n_obs:,}")
    print("\n  Numeric summaries:")
    print(report.numeric_table().to_string())

    if verbose:
        for column, table in report.categorical.items():
            print(f"\n  {column}:")
            print(table.to_string(index=False))
        for column, table in report.group_means.items():
            print(f"\n  {MENTAL_HEALTH_VAR} by {factor_column(column)}:")
            print(table.to_string())

    print("\n  Correlation matrix:")
    print(report.correlations.to_string())

    if qa:
        metrics = QAMetrics()
        metrics.add('n_obs', report.n_obs)
        for column, summary in report.numeric.items():
            metrics.add(f'{column}_mean', summary.mean)
            metrics.add(f'{column}_sd', summary.sd)
        generate_qa_report('s03_describe', metrics)

    print("\n" + "=" * 60)
    print("Stage 03 complete.")
    print("=" * 60)

    return report
