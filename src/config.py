#!/usr/bin/env python3
"""
Configuration constants for the BRFSS mental-health report.

This module centralizes paths, the survey codebook, methodological parameters,
and pipeline settings. Values should be customized when the report is pointed
at a different survey extract.

Usage
-----
    from config import PROJECT_ROOT, SURVEY_PATH, ENABLE_QA_REPORTS

    # Or import specific sections
    from config import (
        # Paths
        DATA_RAW_DIR,
        SURVEY_PATH,
        SPECIFICATIONS_FILE,

        # Codebook
        ANALYSIS_COLUMNS,
        SENTINEL_CODES,
        REFERENCE_LEVEL,

        # Methodological Parameters
        IQR_MULTIPLIER,
        SIGNIFICANCE_LEVEL,
    )
"""
from __future__ import annotations

from pathlib import Path


# =============================================================================
# PATHS
# =============================================================================

def _find_project_root() -> Path:
    """Find project root by looking for characteristic files."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'src').exists() and (parent / 'specifications.yml').exists():
            return parent
    # Fallback: use parent of src/
    return Path(__file__).resolve().parent.parent


PROJECT_ROOT = _find_project_root()

# Data directories
DATA_RAW_DIR = PROJECT_ROOT / 'data_raw'
DATA_WORK_DIR = PROJECT_ROOT / 'data_work'

# Survey extract (trimmed BRFSS file)
SURVEY_FILE = 'brfss_extract.csv'
SURVEY_PATH = DATA_RAW_DIR / SURVEY_FILE

# Model specifications
SPECIFICATIONS_FILE = PROJECT_ROOT / 'specifications.yml'


# =============================================================================
# QUALITY ASSURANCE
# =============================================================================

# Enable per-stage QA report generation
ENABLE_QA_REPORTS = True

# Output directory for QA reports
QA_REPORTS_DIR = DATA_WORK_DIR / 'quality'

# QA thresholds (customize per extract)
QA_THRESHOLDS = {
    'max_missing_pct': 5.0,       # Warn if >5% missing values
    'min_row_count': 10,          # Warn if fewer than 10 rows
    'max_duplicate_pct': 1.0,     # Warn if >1% duplicate rows
}


# =============================================================================
# SURVEY CODEBOOK
# =============================================================================

# Days of poor mental health in the past 30 days
MENTAL_HEALTH_VAR = 'MENTHLTH'

# Ever told you have a depressive disorder
DIAGNOSIS_VAR = 'ADDEPEV3'

# Days with at least one alcoholic drink (coded frequency)
ALCOHOL_VAR = 'ALCDAY5'

# Any physical activity in the past month
EXERCISE_VAR = 'EXERANY2'

# Column order is fixed for the cleaned table and the correlation matrix
ANALYSIS_COLUMNS = [MENTAL_HEALTH_VAR, DIAGNOSIS_VAR, ALCOHOL_VAR, EXERCISE_VAR]

# Reserved "don't know" / "refused" codes dropped by the cleaner
SENTINEL_CODES = {
    MENTAL_HEALTH_VAR: {77, 99},
    DIAGNOSIS_VAR: {7, 9},
    ALCOHOL_VAR: {777, 999},
    EXERCISE_VAR: {7, 9},
}

# Columns whose missing cells are imputed rather than dropped
IMPUTED_COLUMNS = [ALCOHOL_VAR]

# MENTHLTH: 88 = "none"
MENTAL_HEALTH_NONE_CODE = 88
MENTAL_HEALTH_MAX_DAYS = 30

# ALCDAY5: 1xx = days per week, 2xx = days in past 30, 888 = none
ALCOHOL_WEEKLY_CODES = (101, 107)
ALCOHOL_MONTHLY_CODES = (201, 230)
ALCOHOL_NONE_CODE = 888
DAYS_PER_MONTH = 30
DAYS_PER_WEEK = 7

# Yes/no questions
YES_NO_LABELS = {1: 'Yes', 2: 'No'}
CATEGORICAL_COLUMNS = [DIAGNOSIS_VAR, EXERCISE_VAR]
FACTOR_SUFFIX = '_fact'

# Baseline level for regression contrasts ("No" is compared against "Yes")
REFERENCE_LEVEL = 'Yes'


# =============================================================================
# METHODOLOGICAL PARAMETERS
# =============================================================================

# Outlier trimming (upper fence = Q3 + multiplier * IQR)
IQR_MULTIPLIER = 1.5
TRIM_COLUMNS = [MENTAL_HEALTH_VAR, ALCOHOL_VAR]

# Linear interpolation between order statistics
QUANTILE_METHOD = 'linear'

# Reporting precision
SUMMARY_DECIMALS = 2
SE_DECIMALS = 4
CORRELATION_DECIMALS = 2

# Statistical thresholds
SIGNIFICANCE_LEVEL = 0.05
CONFIDENCE_LEVEL = 0.95


# =============================================================================
# ANALYSIS ENGINE SETTINGS
# =============================================================================

# Default engine used by analysis.get_engine()
ANALYSIS_ENGINE = 'python'

# Models fitted by the report, in nesting order
DEFAULT_MODELS = ['model_1', 'model_2', 'model_3']


# =============================================================================
# DEMO DATA
# =============================================================================

DEMO_ROWS = 500
DEMO_SEED = 42


# =============================================================================
# VALIDATION
# =============================================================================

def validate_config() -> bool:
    """
    Validate configuration settings.

    Returns
    -------
    bool
        True if all validations pass

    Raises
    ------
    ValueError
        If any configuration is invalid
    """
    errors = []

    if not PROJECT_ROOT.exists():
        errors.append(f"PROJECT_ROOT does not exist: {PROJECT_ROOT}")

    if SIGNIFICANCE_LEVEL <= 0 or SIGNIFICANCE_LEVEL >= 1:
        errors.append(f"SIGNIFICANCE_LEVEL must be between 0 and 1: {SIGNIFICANCE_LEVEL}")

    if CONFIDENCE_LEVEL <= 0 or CONFIDENCE_LEVEL >= 1:
        errors.append(f"CONFIDENCE_LEVEL must be between 0 and 1: {CONFIDENCE_LEVEL}")

    if IQR_MULTIPLIER <= 0:
        errors.append(f"IQR_MULTIPLIER must be positive: {IQR_MULTIPLIER}")

    if REFERENCE_LEVEL not in YES_NO_LABELS.values():
        errors.append(f"REFERENCE_LEVEL must be one of {sorted(YES_NO_LABELS.values())}: {REFERENCE_LEVEL}")

    missing = [c for c in SENTINEL_CODES if c not in ANALYSIS_COLUMNS]
    if missing:
        errors.append(f"SENTINEL_CODES refers to unknown columns: {missing}")

    if errors:
        raise ValueError("Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors))

    return True


def ensure_directories() -> None:
    """Create required directories if they don't exist."""
    for path in [DATA_RAW_DIR, DATA_WORK_DIR, QA_REPORTS_DIR]:
        path.mkdir(parents=True, exist_ok=True)


def factor_column(column: str) -> str:
    """Name of the derived Yes/No label column for a coded column."""
    return f'{column}{FACTOR_SUFFIX}'


# =============================================================================
# MODULE INITIALIZATION
# =============================================================================

if __name__ == '__main__':
    # Print configuration when run directly
    print("BRFSS Report Configuration")
    print("=" * 50)
    print(f"PROJECT_ROOT:      {PROJECT_ROOT}")
    print(f"SURVEY_PATH:       {SURVEY_PATH}")
    print(f"SPECIFICATIONS:    {SPECIFICATIONS_FILE}")
    print()
    print(f"ENABLE_QA_REPORTS: {ENABLE_QA_REPORTS}")
    print(f"QA_REPORTS_DIR:    {QA_REPORTS_DIR}")
    print()
    print("Validating configuration...")
    try:
        validate_config()
        print("Configuration valid.")
    except ValueError as e:
        print(f"Configuration invalid:\n{e}")
