#!/usr/bin/env python3
"""
Quality Assurance Utilities for Pipeline Stages.

Tracks how the survey table changes from stage to stage: row counts,
missing cells in the analysis columns, duplicates, plus whatever the stage
itself wants on record (rows dropped, fences, imputed median).

Usage
-----
    from stages._qa_utils import qa_for_stage, QAMetrics

    # At the end of a pipeline stage:
    qa_for_stage('s02_trim', trimmed, {'fence_mental': 12.5})
"""
from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd

# Add parent for config import
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import (
    ANALYSIS_COLUMNS,
    ENABLE_QA_REPORTS,
    QA_REPORTS_DIR,
    QA_THRESHOLDS,
)


class QAMetrics:
    """
    Container for QA metrics collected during a pipeline stage.

    Examples
    --------
    >>> metrics = QAMetrics()
    >>> metrics.add('n_rows', 1000).add_pct('missing', 2.5)
    QAMetrics({'n_rows': 1000, 'missing_pct': 2.5})
    """

    def __init__(self):
        self._metrics: dict[str, Any] = {}

    def add(self, name: str, value: Any) -> 'QAMetrics':
        """Add a metric."""
        self._metrics[name] = value
        return self

    def add_pct(self, name: str, value: float) -> 'QAMetrics':
        """Add a percentage metric (appends '_pct' to name)."""
        self._metrics[f'{name}_pct'] = round(value, 2)
        return self

    def add_count(self, name: str, value: int) -> 'QAMetrics':
        """Add a count metric (appends '_count' to name)."""
        self._metrics[f'{name}_count'] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return self._metrics.copy()

    def __len__(self) -> int:
        return len(self._metrics)

    def __repr__(self) -> str:
        return f"QAMetrics({self._metrics})"


def _as_dict(metrics: Union[QAMetrics, dict]) -> dict[str, Any]:
    if isinstance(metrics, QAMetrics):
        return metrics.to_dict()
    return dict(metrics)


def compute_dataframe_metrics(df: pd.DataFrame) -> QAMetrics:
    """
    Compute standard QA metrics for a survey table.

    Parameters
    ----------
    df : pd.DataFrame
        The table to analyze

    Returns
    -------
    QAMetrics
        Row/column counts, missing cells overall and per analysis column,
        and duplicate rows.
    """
    metrics = QAMetrics()
    metrics.add('n_rows', len(df))
    metrics.add('n_columns', len(df.columns))

    total_cells = df.size
    missing_cells = int(df.isna().sum().sum())
    metrics.add_count('missing_cells', missing_cells)
    metrics.add_pct('missing', (missing_cells / total_cells) * 100 if total_cells else 0.0)

    for col in ANALYSIS_COLUMNS:
        if col in df.columns:
            metrics.add_count(f'{col}_missing', int(df[col].isna().sum()))

    n_duplicates = int(df.duplicated().sum())
    metrics.add_count('duplicate_rows', n_duplicates)
    metrics.add_pct('duplicate', (n_duplicates / len(df)) * 100 if len(df) else 0.0)

    return metrics


def check_thresholds(
    metrics: Union[QAMetrics, dict],
    thresholds: Optional[dict] = None,
) -> list[str]:
    """
    Check metrics against thresholds and return warnings.

    Parameters
    ----------
    metrics : QAMetrics or dict
        Metrics to check
    thresholds : dict, optional
        Keys 'max_missing_pct', 'min_row_count', 'max_duplicate_pct'.
        Defaults to QA_THRESHOLDS from config.

    Returns
    -------
    list[str]
        Warning messages for threshold violations
    """
    if thresholds is None:
        thresholds = QA_THRESHOLDS
    values = _as_dict(metrics)
    warnings = []

    if 'missing_pct' in values and 'max_missing_pct' in thresholds:
        if values['missing_pct'] > thresholds['max_missing_pct']:
            warnings.append(
                f"Missing values ({values['missing_pct']:.1f}%) exceed "
                f"threshold ({thresholds['max_missing_pct']}%)"
            )

    if 'n_rows' in values and 'min_row_count' in thresholds:
        if values['n_rows'] < thresholds['min_row_count']:
            warnings.append(
                f"Row count ({values['n_rows']}) below "
                f"threshold ({thresholds['min_row_count']})"
            )

    if 'duplicate_pct' in values and 'max_duplicate_pct' in thresholds:
        if values['duplicate_pct'] > thresholds['max_duplicate_pct']:
            warnings.append(
                f"Duplicate rows ({values['duplicate_pct']:.1f}%) exceed "
                f"threshold ({thresholds['max_duplicate_pct']}%)"
            )

    return warnings


def print_qa_summary(metrics: Union[QAMetrics, dict], stage_name: str = '') -> None:
    """Print a formatted summary of QA metrics."""
    values = _as_dict(metrics)

    print(f"\nQA Summary: {stage_name}" if stage_name else "\nQA Summary")
    print("-" * 40)
    for key, value in values.items():
        if isinstance(value, bool):
            print(f"  {key}: {value}")
        elif isinstance(value, float):
            print(f"  {key}: {value:,.2f}")
        elif isinstance(value, int):
            print(f"  {key}: {value:,}")
        else:
            print(f"  {key}: {value}")


def generate_qa_report(
    stage_name: str,
    metrics: Union[QAMetrics, dict],
    output_dir: Optional[Path] = None,
    include_timestamp: bool = True,
    enabled: Optional[bool] = None,
) -> Optional[Path]:
    """
    Write a QA report for a pipeline stage as CSV.

    Parameters
    ----------
    stage_name : str
        Name of the stage (e.g., 's01_clean')
    metrics : QAMetrics or dict
        Metrics to include in the report
    output_dir : Path, optional
        Output directory (default: QA_REPORTS_DIR from config)
    include_timestamp : bool
        Whether to include timestamp in filename
    enabled : bool, optional
        Overrides ENABLE_QA_REPORTS from config

    Returns
    -------
    Path or None
        Path to generated report, or None if QA reports are disabled
    """
    if enabled is None:
        enabled = ENABLE_QA_REPORTS
    if not enabled:
        return None

    output_dir = output_dir or QA_REPORTS_DIR
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    if include_timestamp:
        filename = f'{stage_name}_quality_{timestamp}.csv'
    else:
        filename = f'{stage_name}_quality.csv'
    report_path = output_dir / filename

    rows = [
        {'metric': key, 'value': value, 'stage': stage_name, 'timestamp': timestamp}
        for key, value in _as_dict(metrics).items()
    ]
    pd.DataFrame(rows).to_csv(report_path, index=False)

    print(f"QA report saved: {report_path}")
    return report_path


def qa_for_stage(
    stage_name: str,
    df: pd.DataFrame,
    additional_metrics: Optional[dict] = None,
    output_dir: Optional[Path] = None,
    enabled: Optional[bool] = None,
) -> Optional[Path]:
    """
    Complete QA workflow for a pipeline stage.

    Computes table metrics, merges in stage-specific ones, prints threshold
    warnings and a summary, then writes the report.

    Returns
    -------
    Path or None
        Path to generated report
    """
    metrics = compute_dataframe_metrics(df)
    for key, value in (additional_metrics or {}).items():
        metrics.add(key, value)

    warnings = check_thresholds(metrics)
    if warnings:
        print(f"\nQA Warnings for {stage_name}:")
        for warning in warnings:
            print(f"  WARNING: {warning}")

    print_qa_summary(metrics, stage_name)
    return generate_qa_report(stage_name, metrics, output_dir=output_dir, enabled=enabled)
