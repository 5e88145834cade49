#!/usr/bin/env python3
"""
Tests for src/stages/s05_report.py

Tests cover:
- build_report() on a hand-checked table
- Stage chaining through main() with a CSV extract and the demo survey
"""
from __future__ import annotations

import pytest
import pandas as pd
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from errors import DataUnavailable
from stages.s05_report import SurveyReport, build_report, main


class TestBuildReport:
    """Tests for the silent, in-memory pipeline."""

    def test_report_outputs(self, ten_row_survey):
        """Every report output is present and computed on the trimmed rows."""
        report = build_report(ten_row_survey)

        assert isinstance(report, SurveyReport)
        assert report.alcohol_missing_rate == pytest.approx(1 / 9)
        assert report.analysis_table.index.tolist() == [2, 5, 9, 7, 0, 8, 3]
        assert report.numeric_summaries['MENTHLTH'].median == 3
        assert report.categorical_summaries['ADDEPEV3']['count'].tolist() == [3, 4]
        assert report.correlations.shape == (4, 4)
        assert sorted(report.fitted_models) == [1, 2, 3]
        assert sorted(report.aic) == [1, 2, 3]

    def test_raw_table_untouched(self, ten_row_survey):
        before = ten_row_survey.copy()

        build_report(ten_row_survey)

        pd.testing.assert_frame_equal(ten_row_survey, before)

    def test_deterministic(self, demo_survey):
        """Two runs on the same input agree exactly."""
        first = build_report(demo_survey)
        second = build_report(demo_survey)

        pd.testing.assert_frame_equal(first.analysis_table, second.analysis_table)
        assert first.aic == second.aic


class TestMain:
    """Tests for the printed, stage-by-stage run."""

    def test_runs_from_csv(self, survey_csv, capsys):
        """All stages run and the summary is printed."""
        report = main(input_path=survey_csv, verbose=False, qa=False)

        out = capsys.readouterr().out
        assert 'Stage 00 complete.' in out
        assert 'Stage 04 complete.' in out
        assert 'REPORT SUMMARY' in out
        assert len(report.analysis_table) == 7

    def test_runs_on_demo(self, capsys):
        report = main(use_demo=True, verbose=True, qa=False)

        assert report.fitted_models
        assert 'Best by AIC' in capsys.readouterr().out

    def test_missing_input_raises(self, temp_dir):
        with pytest.raises(DataUnavailable):
            main(input_path=temp_dir / 'missing.csv', qa=False)
