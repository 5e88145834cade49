#!/usr/bin/env python3
"""
Tests for src/stages/_qa_utils.py

Tests cover:
- QAMetrics container
- Table metrics and threshold checks
- Report writing (enabled and disabled)
"""
from __future__ import annotations

import pytest
import pandas as pd
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from stages._qa_utils import (
    QAMetrics,
    compute_dataframe_metrics,
    check_thresholds,
    generate_qa_report,
    qa_for_stage,
)


class TestQAMetrics:
    """Tests for the metrics container."""

    def test_chaining_and_suffixes(self):
        metrics = QAMetrics().add('n_rows', 10).add_pct('missing', 12.5).add_count('dropped', 3)

        assert metrics.to_dict() == {
            'n_rows': 10,
            'missing_pct': 12.5,
            'dropped_count': 3,
        }
        assert len(metrics) == 3

    def test_to_dict_is_a_copy(self):
        metrics = QAMetrics().add('a', 1)
        metrics.to_dict()['a'] = 2

        assert metrics.to_dict()['a'] == 1


class TestDataFrameMetrics:
    """Tests for compute_dataframe_metrics."""

    def test_counts_missing_per_analysis_column(self, ten_row_survey):
        values = compute_dataframe_metrics(ten_row_survey).to_dict()

        assert values['n_rows'] == 10
        assert values['n_columns'] == 5
        assert values['missing_cells_count'] == 1
        assert values['ALCDAY5_missing_count'] == 1
        assert values['MENTHLTH_missing_count'] == 0
        assert values['duplicate_rows_count'] == 0

    def test_duplicates(self):
        df = pd.DataFrame({'MENTHLTH': [1, 1, 2]})

        values = compute_dataframe_metrics(df).to_dict()

        assert values['duplicate_rows_count'] == 1


class TestCheckThresholds:
    """Tests for threshold warnings."""

    def test_no_warnings(self):
        assert check_thresholds({'n_rows': 100, 'missing_pct': 0.0, 'duplicate_pct': 0.0}) == []

    def test_each_threshold(self):
        thresholds = {'max_missing_pct': 1.0, 'min_row_count': 50, 'max_duplicate_pct': 1.0}

        warnings = check_thresholds(
            {'n_rows': 5, 'missing_pct': 10.0, 'duplicate_pct': 20.0},
            thresholds,
        )

        assert len(warnings) == 3
        assert any('Row count' in w for w in warnings)


class TestReports:
    """Tests for report writing."""

    def test_writes_csv(self, temp_dir):
        path = generate_qa_report(
            's01_clean',
            {'n_rows': 9},
            output_dir=temp_dir,
            include_timestamp=False,
            enabled=True,
        )

        assert path == temp_dir / 's01_clean_quality.csv'
        report = pd.read_csv(path)
        assert list(report.columns) == ['metric', 'value', 'stage', 'timestamp']
        assert report.loc[0, 'metric'] == 'n_rows'

    def test_disabled_writes_nothing(self, temp_dir):
        path = generate_qa_report('s01_clean', {'n_rows': 9}, output_dir=temp_dir, enabled=False)

        assert path is None
        assert list(temp_dir.iterdir()) == []

    def test_qa_for_stage_merges_metrics(self, temp_dir, ten_row_survey, capsys):
        path = qa_for_stage(
            's00_load', ten_row_survey, {'custom': 7},
            output_dir=temp_dir, enabled=True,
        )

        report = pd.read_csv(path)
        assert 'custom' in report['metric'].tolist()
        assert 'n_rows' in report['metric'].tolist()
        assert 'QA Summary: s00_load' in capsys.readouterr().out
