"""
Python/NumPy Analysis Engine.

Ordinary least squares on an in-memory table. NumPy does the linear
algebra; SciPy supplies the t distribution for p-values and intervals.

Categorical predictors are treatment-coded against their first category,
so a pandas Categorical with categories ['Yes', 'No'] contributes a single
'var[T.No]' term measured against the 'Yes' baseline.

Usage
-----
    from analysis import get_engine

    engine = get_engine('python')
    model = engine.fit(df, {'name': 'model_1', 'outcome': 'MENTHLTH',
                            'predictors': ['ADDEPEV3_fact']})
"""
from __future__ import annotations

import time
from typing import Optional

import numpy as np
import pandas as pd
from scipy import stats

from errors import InsufficientData, SingularDesign
from ..base import BaseAnalysisEngine, FittedModel
from ..factory import register_engine
from ..specifications import spec_to_formula

INTERCEPT = 'Intercept'


def build_design_matrix(
    df: pd.DataFrame,
    predictors: list[str],
) -> tuple[np.ndarray, list[str]]:
    """
    Build the design matrix with a leading intercept column.

    Parameters
    ----------
    df : pd.DataFrame
        Data (no missing values in the predictors)
    predictors : list[str]
        Predictor columns in model order

    Returns
    -------
    tuple[np.ndarray, list[str]]
        Design matrix and its column (term) names
    """
    n = len(df)
    columns = [np.ones(n)]
    terms = [INTERCEPT]

    for var in predictors:
        series = df[var]
        if isinstance(series.dtype, pd.CategoricalDtype):
            reference, *levels = series.cat.categories
            for level in levels:
                columns.append((series == level).to_numpy(dtype='float64'))
                terms.append(f'{var}[T.{level}]')
        else:
            columns.append(series.to_numpy(dtype='float64'))
            terms.append(var)

    return np.column_stack(columns), terms


@register_engine('python')
class PythonEngine(BaseAnalysisEngine):
    """
    Native Python/NumPy OLS engine.

    Features
    --------
    - Treatment coding of categorical predictors
    - Homoskedastic standard errors, t tests and confidence intervals
    - Adjusted R-squared, Gaussian log-likelihood and AIC
    - Explicit failures for collinear designs and undersized samples
    """

    def __init__(self, confidence_level: Optional[float] = None):
        super().__init__()
        if confidence_level is None:
            from config import CONFIDENCE_LEVEL
            confidence_level = CONFIDENCE_LEVEL
        self.confidence_level = confidence_level
        self._version = f"numpy {np.__version__}"

    @property
    def name(self) -> str:
        return 'python'

    @property
    def version(self) -> str:
        return self._version

    def validate_installation(self) -> tuple[bool, str]:
        """Check that NumPy and SciPy are available."""
        try:
            import numpy
            import scipy
            return True, f"Python engine ready (numpy {numpy.__version__}, scipy {scipy.__version__})"
        except ImportError as e:
            return False, f"Missing dependency: {e}"

    def fit(self, df: pd.DataFrame, specification: dict) -> FittedModel:
        """
        Fit one specification by ordinary least squares.

        Parameters
        ----------
        df : pd.DataFrame
            Data containing the outcome and every predictor
        specification : dict
            Keys: name, outcome, predictors

        Returns
        -------
        FittedModel

        Raises
        ------
        InsufficientData
            If there are fewer rows than estimated parameters plus one
        SingularDesign
            If the design matrix is rank deficient
        """
        start_time = time.time()

        spec_name = specification.get('name', 'unnamed')
        outcome = specification['outcome']
        predictors = list(specification['predictors'])

        df_valid = df[[outcome] + predictors].dropna()
        y = df_valid[outcome].to_numpy(dtype='float64')
        X, terms = build_design_matrix(df_valid, predictors)
        n, k = X.shape

        if n < k + 1:
            raise InsufficientData(
                f"{spec_name}: {n} rows for {k} parameters",
                value=n,
            )

        if np.linalg.matrix_rank(X) < k:
            raise SingularDesign(
                f"{spec_name}: design matrix is rank deficient for terms {terms}"
            )

        ols = self._run_ols(X, y)
        dof = n - k

        t_crit = stats.t.ppf(0.5 + self.confidence_level / 2, dof)
        ci_lower = ols['beta'] - t_crit * ols['se']
        ci_upper = ols['beta'] + t_crit * ols['se']

        adj_r_squared = 1 - (1 - ols['r_squared']) * (n - 1) / dof

        # Gaussian log-likelihood at the ML variance estimate rss / n
        with np.errstate(divide='ignore'):
            log_likelihood = -0.5 * n * (np.log(2 * np.pi) + np.log(ols['rss'] / n) + 1)
        aic = -2 * log_likelihood + 2 * (k + 1)

        q = np.quantile(ols['residuals'], [0.0, 0.25, 0.5, 0.75, 1.0])

        return FittedModel(
            specification=spec_name,
            formula=spec_to_formula(specification),
            outcome=outcome,
            predictors=predictors,
            terms=terms,
            n_obs=n,
            coefficients=dict(zip(terms, ols['beta'].tolist())),
            std_errors=dict(zip(terms, ols['se'].tolist())),
            t_stats=dict(zip(terms, ols['t_stats'].tolist())),
            p_values=dict(zip(terms, ols['p_values'].tolist())),
            ci_lower=dict(zip(terms, ci_lower.tolist())),
            ci_upper=dict(zip(terms, ci_upper.tolist())),
            r_squared=float(ols['r_squared']),
            adj_r_squared=float(adj_r_squared),
            df_resid=int(dof),
            rss=float(ols['rss']),
            sigma=float(np.sqrt(ols['rss'] / dof)),
            log_likelihood=float(log_likelihood),
            aic=float(aic),
            residuals=dict(zip(['min', 'q1', 'median', 'q3', 'max'], q.tolist())),
            engine=self.name,
            engine_version=self._version,
            execution_time_seconds=time.time() - start_time,
        )

    def _run_ols(self, X: np.ndarray, y: np.ndarray) -> dict:
        """
        Solve beta = (X'X)^-1 X'y with homoskedastic standard errors.

        Returns
        -------
        dict
            beta, se, t_stats, p_values, residuals, rss, r_squared
        """
        n, k = X.shape

        XtX = X.T @ X
        try:
            XtX_inv = np.linalg.inv(XtX)
        except np.linalg.LinAlgError as e:
            raise SingularDesign(f"X'X is not invertible: {e}") from e

        beta = XtX_inv @ X.T @ y

        residuals = y - X @ beta
        rss = float(residuals @ residuals)
        tss = float(((y - y.mean()) ** 2).sum())
        r_squared = 1 - rss / tss if tss > 0 else 0.0

        dof = n - k
        s2 = rss / dof
        se = np.sqrt(np.diag(s2 * XtX_inv))

        with np.errstate(divide='ignore', invalid='ignore'):
            t_stats = beta / se
        p_values = 2 * stats.t.sf(np.abs(t_stats), dof)

        return {
            'beta': beta,
            'se': se,
            't_stats': t_stats,
            'p_values': p_values,
            'residuals': residuals,
            'rss': rss,
            'r_squared': r_squared,
        }
