#!/usr/bin/env python3
"""
Stage 05: Report Assembly

Purpose: Run the whole analysis once, top to bottom, and collect every
output the report needs.

Data flows strictly forward:

    load -> clean -> trim -> {describe, fit models}

Output
------
- SurveyReport: numeric and categorical summaries, correlation matrix,
  fitted models with AIC by model number, and the pre-imputation
  ALCDAY5 missing rate

Usage
-----
    python src/pipeline.py run_report
    python src/pipeline.py run_report --demo --no-qa
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import sys

# Add parent directory for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from config import ALCOHOL_VAR
from stages import s00_load, s01_clean, s02_trim, s03_describe, s04_models
from stages.s01_clean import CleaningResult, clean_survey
from stages.s02_trim import TrimResult, trim_outliers
from stages.s03_describe import DescriptiveReport, describe_survey
from stages.s04_models import ModelComparison, fit_models
from utils.helpers import format_percent


# ============================================================
# RESULTS
# ============================================================

@dataclass
class SurveyReport:
    """All outputs of one pipeline run."""
    cleaning: CleaningResult
    trimming: TrimResult
    descriptives: DescriptiveReport
    models: ModelComparison

    @property
    def alcohol_missing_rate(self) -> float:
        """Share of cleaned rows with ALCDAY5 missing before imputation."""
        return self.cleaning.alcohol_missing_rate

    @property
    def analysis_table(self) -> pd.DataFrame:
        """The trimmed table every summary and model was computed on."""
        return self.trimming.table

    @property
    def numeric_summaries(self) -> dict:
        return self.descriptives.numeric

    @property
    def categorical_summaries(self) -> dict:
        return self.descriptives.categorical

    @property
    def correlations(self) -> pd.DataFrame:
        return self.descriptives.correlations

    @property
    def fitted_models(self) -> dict:
        return self.models.models

    @property
    def aic(self) -> dict[int, float]:
        return self.models.aic


# ============================================================
# PIPELINE
# ============================================================

def build_report(
    raw: pd.DataFrame,
    specifications: Optional[list[dict]] = None
) -> SurveyReport:
    """
    Run cleaning, trimming, descriptives and model fitting silently.

    Parameters
    ----------
    raw : pd.DataFrame
        Raw survey table from s00_load (not modified)
    specifications : list[dict], optional
        Model specifications (default: specifications.yml)

    Returns
    -------
    SurveyReport
    """
    cleaning = clean_survey(raw)
    trimming = trim_outliers(cleaning.table)
    return SurveyReport(
        cleaning=cleaning,
        trimming=trimming,
        descriptives=describe_survey(trimming.table),
        models=fit_models(trimming.table, specifications),
    )


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    input_path: Optional[Path] = None,
    use_demo: bool = False,
    verbose: bool = True,
    qa: bool = True
) -> SurveyReport:
    """
    Execute every stage with progress output.

    Parameters
    ----------
    input_path : Path, optional
        CSV extract (default: SURVEY_PATH)
    use_demo : bool
        Use a synthetic extract
    verbose : bool
        Print detailed output
    qa : bool
        Write QA reports

    Returns
    -------
    SurveyReport
    """
    raw = s00_load.main(input_path=input_path, use_demo=use_demo, verbose=verbose, qa=qa)
    cleaning = s01_clean.main(raw, verbose=verbose, qa=qa)

    trimming = s02_trim.main(cleaning.table, verbose=verbose, qa=qa)
    report = SurveyReport(
        cleaning=cleaning,
        trimming=trimming,
        descriptives=s03_describe.main(trimming.table, verbose=verbose, qa=qa),
        models=s04_models.main(trimming.table, verbose=verbose, qa=qa),
    )

    print("\n" + "-" * 60)
    print("REPORT SUMMARY")
    print("-" * 60)
    print(f"  Respondents loaded:   {cleaning.n_input:,}")
    print(f"  After cleaning:       {cleaning.n_retained:,}")
    print(f"  After trimming:       {len(trimming.table):,}")
    print(f"  {ALCOHOL_VAR} missing:       {format_percent(report.alcohol_missing_rate)}")
    print(f"  Models fitted:        {len(report.fitted_models)}")
    if report.models.failures:
        print(f"  Models failed:        {sorted(report.models.failures)}")
    ranks = report.models.rank_by_adj_r_squared()
    if ranks:
        print(f"  Best by adjusted R²:  model {ranks[0]}")
        print(f"  Best by AIC:          model {report.models.rank_by_aic()[0]}")

    return report
