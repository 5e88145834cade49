#!/usr/bin/env python3
"""
Shared pytest fixtures for the test suite.

This module provides common fixtures used across test modules including:
- Temporary directories
- Hand-built raw survey tables with known cleaned values
- CSV files of those tables
- Synthetic demo surveys
"""
from __future__ import annotations

import sys
from pathlib import Path

# Add src directory to Python path for test imports
_project_root = Path(__file__).parent.parent
_src_path = _project_root / 'src'
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))

import pytest
import pandas as pd
import numpy as np
import tempfile
import shutil


# ============================================================
# PATH FIXTURES
# ============================================================

@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def temp_dir():
    """Create a temporary directory that is cleaned up after tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


# ============================================================
# DATA FIXTURES
# ============================================================

@pytest.fixture
def ten_row_survey() -> pd.DataFrame:
    """
    Ten respondents with known cleaning outcomes.

    - row 1: MENTHLTH=99 (refused) -> dropped
    - row 2: MENTHLTH=88 (none) -> 0
    - row 3: ALCDAY5 missing -> imputed with median 5
    - ALCDAY5 of the other kept rows: 4, 0, 15, 3, 17, 0, 10, 6
    """
    return pd.DataFrame({
        '_STATE': [1, 2, 3, 4, 5, 6, 7, 8, 9, 10],
        'MENTHLTH': pd.array([5, 99, 88, 10, 2, 0, 30, 3, 7, 1], dtype='Int64'),
        'ADDEPEV3': pd.array([1, 2, 2, 1, 2, 2, 1, 2, 1, 2], dtype='Int64'),
        'ALCDAY5': pd.array([101, 888, 888, None, 215, 203, 104, 888, 210, 206], dtype='Int64'),
        'EXERANY2': pd.array([1, 2, 1, 2, 1, 1, 2, 1, 1, 2], dtype='Int64'),
    })


@pytest.fixture
def sentinel_survey() -> pd.DataFrame:
    """One row per sentinel or missing condition, plus two clean rows."""
    return pd.DataFrame({
        'MENTHLTH': pd.array([77, 99, None, 4, 4, 4, 4, 4, 4, 4, 4, 4], dtype='Int64'),
        'ADDEPEV3': pd.array([1, 1, 1, 7, 9, None, 1, 1, 1, 1, 1, 2], dtype='Int64'),
        'ALCDAY5': pd.array([888, 888, 888, 888, 888, 888, 777, 999, 888, 888, None, 201], dtype='Int64'),
        'EXERANY2': pd.array([1, 1, 1, 1, 1, 1, 1, 1, 7, 9, 1, 2], dtype='Int64'),
    })


@pytest.fixture
def survey_csv(temp_dir, ten_row_survey) -> Path:
    """The ten-row survey written as CSV."""
    path = temp_dir / 'survey.csv'
    ten_row_survey.to_csv(path, index=False)
    return path


@pytest.fixture
def demo_survey() -> pd.DataFrame:
    """Synthetic survey with every code family present."""
    from stages.s00_load import generate_demo_survey
    return generate_demo_survey(n=800, seed=7)


@pytest.fixture
def cleaned_demo(demo_survey) -> pd.DataFrame:
    """Cleaned synthetic survey."""
    from stages.s01_clean import clean_survey
    return clean_survey(demo_survey).table


@pytest.fixture
def simple_regression_df() -> pd.DataFrame:
    """Five points with slope 0.8 and intercept 1.4 under OLS."""
    return pd.DataFrame({
        'x': [0.0, 1.0, 2.0, 3.0, 4.0],
        'y': [1.0, 3.0, 2.0, 5.0, 4.0],
    })
