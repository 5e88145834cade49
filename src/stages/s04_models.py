#!/usr/bin/env python3
"""
Stage 04: Model Fitting

Purpose: Fit the nested regressions of MENTHLTH and compare them.

This stage handles:
- Loading the model specifications from specifications.yml
- Fitting each model with the configured analysis engine
- Ranking models by adjusted R-squared (higher first) and AIC (lower first)
- Partial F tests between consecutive nested models

A failed fit (collinear design, too few rows) is recorded against its
model number; the other models are still fitted.

Input
-----
- Trimmed table from s02_trim
- specifications.yml

Output
------
- ModelComparison

Usage
-----
    python src/pipeline.py run_report
    python src/pipeline.py list_models
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
from scipy import stats

from config import DEFAULT_MODELS, SIGNIFICANCE_LEVEL
from analysis import (
    FittedModel,
    get_engine,
    get_specification,
    validate_specification,
)
from analysis.specifications import is_nested
from utils.helpers import format_pvalue
from stages._qa_utils import QAMetrics, generate_qa_report


# ============================================================
# RESULTS
# ============================================================

@dataclass
class NestedTest:
    """Partial F test of a model against the next larger nested model."""
    smaller: int
    larger: int
    f_stat: float
    df_num: int
    df_den: int
    p_value: float

    @property
    def significant(self) -> bool:
        return self.p_value < SIGNIFICANCE_LEVEL


@dataclass
class ModelComparison:
    """Fitted models keyed by model number (1-based, in specification order)."""
    models: dict = field(default_factory=dict)
    failures: dict = field(default_factory=dict)
    nested_tests: list = field(default_factory=list)

    @property
    def aic(self) -> dict[int, float]:
        """AIC by model number."""
        return {num: m.aic for num, m in sorted(self.models.items())}

    @property
    def adj_r_squared(self) -> dict[int, float]:
        """Adjusted R-squared by model number."""
        return {num: m.adj_r_squared for num, m in sorted(self.models.items())}

    def rank_by_adj_r_squared(self) -> list[int]:
        """Model numbers from highest to lowest adjusted R-squared."""
        return sorted(self.models, key=lambda num: (-self.models[num].adj_r_squared, num))

    def rank_by_aic(self) -> list[int]:
        """Model numbers from lowest to highest AIC."""
        return sorted(self.models, key=lambda num: (self.models[num].aic, num))

    def summary_table(self) -> pd.DataFrame:
        """One row per fitted model with fit statistics and both ranks."""
        if not self.models:
            return pd.DataFrame()
        adj_rank = {num: i + 1 for i, num in enumerate(self.rank_by_adj_r_squared())}
        aic_rank = {num: i + 1 for i, num in enumerate(self.rank_by_aic())}
        rows = []
        for num, m in sorted(self.models.items()):
            rows.append({
                'model': num,
                'formula': m.formula,
                'n_obs': m.n_obs,
                'n_params': m.n_params,
                'df_resid': m.df_resid,
                'r_squared': m.r_squared,
                'adj_r_squared': m.adj_r_squared,
                'aic': m.aic,
                'rank_adj_r_squared': adj_rank[num],
                'rank_aic': aic_rank[num],
            })
        return pd.DataFrame(rows).set_index('model')


# ============================================================
# SPECIFICATIONS
# ============================================================

def load_model_specs(
    names: Optional[list[str]] = None,
    path: Optional[Path] = None
) -> list[dict]:
    """
    Load and validate the model specifications, in model-number order.

    Raises
    ------
    ValueError
        If any specification is invalid
    """
    specs = []
    for name in names or DEFAULT_MODELS:
        spec = get_specification(name, path)
        errors = validate_specification(spec)
        if errors:
            raise ValueError(f"Invalid specification '{name}': " + '; '.join(errors))
        specs.append(spec)
    return specs


# ============================================================
# COMPARISON
# ============================================================

def nested_f_test(
    smaller: FittedModel,
    larger: FittedModel,
    smaller_num: int,
    larger_num: int
) -> NestedTest:
    """
    Partial F test for the predictors larger adds to smaller.

    Both models must be fitted on the same rows.
    """
    if smaller.n_obs != larger.n_obs:
        raise ValueError(
            f"Models {smaller_num} and {larger_num} were fitted on different rows "
            f"({smaller.n_obs} vs {larger.n_obs})"
        )
    df_num = smaller.df_resid - larger.df_resid
    df_den = larger.df_resid
    with np.errstate(divide='ignore', invalid='ignore'):
        f_stat = ((smaller.rss - larger.rss) / df_num) / (larger.rss / df_den)
    return NestedTest(
        smaller=smaller_num,
        larger=larger_num,
        f_stat=float(f_stat),
        df_num=int(df_num),
        df_den=int(df_den),
        p_value=float(stats.f.sf(f_stat, df_num, df_den)),
    )


def fit_models(
    df: pd.DataFrame,
    specifications: Optional[list[dict]] = None,
    engine=None
) -> ModelComparison:
    """
    Fit every specification and compare the results.

    Parameters
    ----------
    df : pd.DataFrame
        Trimmed table
    specifications : list[dict], optional
        Specifications in model-number order (default: load_model_specs())
    engine : AnalysisEngine, optional
        Engine instance (default: get_engine())

    Returns
    -------
    ModelComparison
    """
    specifications = specifications if specifications is not None else load_model_specs()
    engine = engine or get_engine()

    models, failures = engine.fit_batch(df, specifications)
    comparison = ModelComparison(models=models, failures=failures)

    for num, spec in enumerate(specifications[:-1], start=1):
        nxt = num + 1
        if num in comparison.models and nxt in comparison.models and is_nested(spec, specifications[num]):
            comparison.nested_tests.append(
                nested_f_test(comparison.models[num], comparison.models[nxt], num, nxt)
            )

    return comparison


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def main(
    df: pd.DataFrame,
    verbose: bool = True,
    qa: bool = True
) -> ModelComparison:
    """
    Execute model fitting.

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
    ModelComparison
    """
    print("=" * 60)
    print("Stage 04: Model Fitting")
    print("=" * 60)

    comparison = fit_models(df)

    for num, model in sorted(comparison.models.items()):
        print(f"\n  Model {num}: {model.formula}")
        if verbose:
            print(f"  {'Term':<22} {'Coef':>10} {'SE':>10} {'t':>8} {'p-value':>9}")
            print("  " + "-" * 62)
            for term, row in model.coefficient_table().iterrows():
                print(
                    f"  {term:<22} {row['estimate']:>10.4f} "
                    f"{row['std_error']:>10.4f} {row['t_stat']:>8.2f} "
                    f"{format_pvalue(row['p_value']):>9}"
                )
        print(f"    N: {model.n_obs:,}  df: {model.df_resid:,}")
        print(f"    Adj. R²: {model.adj_r_squared:.4f}  AIC: {model.aic:.2f}")

    for num, error in sorted(comparison.failures.items()):
        print(f"\n  Model {num}: ERROR: {error}")

    print("\n" + "-" * 60)
    print("MODEL COMPARISON")
    print("-" * 60)
    print(f"  By adjusted R² (best first): {comparison.rank_by_adj_r_squared()}")
    print(f"  By AIC (best first):         {comparison.rank_by_aic()}")
    for test in comparison.nested_tests:
        print(
            f"  Model {test.smaller} vs {test.larger}: F({test.df_num}, {test.df_den}) = "
            f"{test.f_stat:.3f}, p {format_pvalue(test.p_value)}"
        )

    if qa:
        metrics = QAMetrics()
        metrics.add('n_models', len(comparison.models))
        metrics.add('n_failed', len(comparison.failures))
        for num, value in comparison.aic.items():
            metrics.add(f'model_{num}_aic', round(value, 4))
        for num, value in comparison.adj_r_squared.items():
            metrics.add(f'model_{num}_adj_r_squared', round(value, 6))
        generate_qa_report('s04_models', metrics)

    print("\n" + "=" * 60)
    print("Stage 04 complete.")
    print("=" * 60)

    return comparison
