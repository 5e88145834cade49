#!/usr/bin/env python3
"""
Tests for src/analysis/engines/python_engine.py

Tests cover:
- Design matrix construction with treatment coding
- OLS estimates, standard errors and fit statistics
- SingularDesign and InsufficientData failures
- Batch fitting with failure isolation
"""
from __future__ import annotations

import pytest
import pandas as pd
import numpy as np
from pathlib import Path
import sys

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from analysis import create_specification
from analysis.base import FittedModel
from analysis.engines.python_engine import PythonEngine, build_design_matrix, INTERCEPT
from errors import InsufficientData, SingularDesign, ModelFitError


@pytest.fixture
def engine() -> PythonEngine:
    return PythonEngine()


@pytest.fixture
def labelled_df() -> pd.DataFrame:
    """Yes group at 10 and 12, No group at 2 and 4."""
    return pd.DataFrame({
        'g': pd.Categorical(['Yes', 'Yes', 'No', 'No'], categories=['Yes', 'No']),
        'y': [10.0, 12.0, 2.0, 4.0],
    })


# ============================================================
# DESIGN MATRIX TESTS
# ============================================================

class TestDesignMatrix:
    """Tests for build_design_matrix."""

    def test_numeric_predictor(self, simple_regression_df):
        X, terms = build_design_matrix(simple_regression_df, ['x'])

        assert terms == [INTERCEPT, 'x']
        assert X.shape == (5, 2)
        assert np.all(X[:, 0] == 1.0)

    def test_categorical_uses_first_level_as_baseline(self, labelled_df):
        X, terms = build_design_matrix(labelled_df, ['g'])

        assert terms == ['Intercept', 'g[T.No]']
        assert X[:, 1].tolist() == [0.0, 0.0, 1.0, 1.0]


# ============================================================
# FIT TESTS
# ============================================================

class TestFit:
    """Tests for PythonEngine.fit."""

    def test_simple_regression(self, engine, simple_regression_df):
        """Coefficients and fit statistics match the closed form."""
        model = engine.fit(simple_regression_df, create_specification('line', 'y', ['x']))

        assert isinstance(model, FittedModel)
        assert model.coefficients['Intercept'] == pytest.approx(1.4)
        assert model.coefficients['x'] == pytest.approx(0.8)
        assert model.rss == pytest.approx(3.6)
        assert model.r_squared == pytest.approx(0.64)
        assert model.adj_r_squared == pytest.approx(0.52)
        assert model.std_errors['x'] == pytest.approx(np.sqrt(0.12))
        assert model.df_resid == 3
        assert model.n_obs == 5
        assert model.sigma == pytest.approx(np.sqrt(1.2))

    def test_aic_counts_error_variance(self, engine, simple_regression_df):
        """AIC = -2 logL + 2 (k + 1) with the ML variance estimate."""
        model = engine.fit(simple_regression_df, create_specification('line', 'y', ['x']))

        log_lik = -0.5 * 5 * (np.log(2 * np.pi) + np.log(3.6 / 5) + 1)
        assert model.log_likelihood == pytest.approx(log_lik)
        assert model.aic == pytest.approx(-2 * log_lik + 6)
        assert model.aic == pytest.approx(18.546866, abs=1e-5)

    def test_p_values_and_intervals(self, engine, simple_regression_df):
        """Two-sided t test on 3 df; the interval covers the estimate."""
        from scipy import stats

        model = engine.fit(simple_regression_df, create_specification('line', 'y', ['x']))

        t = 0.8 / np.sqrt(0.12)
        assert model.t_stats['x'] == pytest.approx(t)
        assert model.p_values['x'] == pytest.approx(2 * stats.t.sf(t, 3))
        assert model.ci_lower['x'] < 0.8 < model.ci_upper['x']

    def test_categorical_baseline(self, engine, labelled_df):
        """The No coefficient is the difference of group means."""
        model = engine.fit(labelled_df, create_specification('g', 'y', ['g']))

        assert model.coefficients['Intercept'] == pytest.approx(11.0)
        assert model.coefficients['g[T.No]'] == pytest.approx(-8.0)

    def test_formula_and_metadata(self, engine, simple_regression_df):
        model = engine.fit(simple_regression_df, create_specification('line', 'y', ['x']))

        assert model.formula == 'y ~ x'
        assert model.engine == 'python'
        assert model.engine_version.startswith('numpy')
        assert set(model.residuals) == {'min', 'q1', 'median', 'q3', 'max'}

    def test_rows_with_missing_values_are_dropped(self, engine, simple_regression_df):
        df = simple_regression_df.copy()
        df.loc[5] = [np.nan, 7.0]

        model = engine.fit(df, create_specification('line', 'y', ['x']))

        assert model.n_obs == 5

    def test_collinear_predictors_raise(self, engine, simple_regression_df):
        df = simple_regression_df.assign(x2=simple_regression_df['x'] * 2)

        with pytest.raises(SingularDesign):
            engine.fit(df, create_specification('dup', 'y', ['x', 'x2']))

    def test_constant_label_raises(self, engine, labelled_df):
        """A label with only one observed level cannot be estimated."""
        df = labelled_df.copy()
        df['g'] = pd.Categorical(['Yes'] * 4, categories=['Yes', 'No'])

        with pytest.raises(SingularDesign):
            engine.fit(df, create_specification('g', 'y', ['g']))

    def test_too_few_rows_raise(self, engine, simple_regression_df):
        with pytest.raises(InsufficientData):
            engine.fit(simple_regression_df.head(2), create_specification('line', 'y', ['x']))

    def test_model_fit_errors_share_a_base(self):
        assert issubclass(SingularDesign, ModelFitError)
        assert issubclass(InsufficientData, ModelFitError)


class TestFitBatch:
    """Tests for BaseAnalysisEngine.fit_batch."""

    def test_failures_isolated(self, engine, simple_regression_df):
        df = simple_regression_df.assign(x2=simple_regression_df['x'] * 2)
        specs = [
            create_specification('good', 'y', ['x']),
            create_specification('bad', 'y', ['x', 'x2']),
        ]

        fitted, failures = engine.fit_batch(df, specs)

        assert list(fitted) == [1]
        assert fitted[1].specification == 'good'
        assert list(failures) == [2]
        assert isinstance(failures[2], SingularDesign)


class TestInstallation:
    def test_validate_installation(self, engine):
        available, message = engine.validate_installation()

        assert available is True
        assert 'numpy' in message
