"""
Base Protocol and Types for Analysis Engines.

Defines the interface that regression engines implement and the result
container they return.

Usage
-----
    from analysis.base import BaseAnalysisEngine, FittedModel

    class MyEngine(BaseAnalysisEngine):
        @property
        def name(self) -> str:
            return 'my_engine'

        def fit(self, df, specification) -> FittedModel:
            ...
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

import pandas as pd

from errors import ModelFitError


@dataclass
class FittedModel:
    """
    Result of one ordinary-least-squares fit.

    Attributes
    ----------
    specification : str
        Name of the specification that was fitted (e.g. 'model_2')
    formula : str
        Response and ordered predictors, e.g. 'MENTHLTH ~ ADDEPEV3_fact'
    outcome : str
        Response variable
    predictors : list[str]
        Predictor columns in model order
    terms : list[str]
        Design-matrix columns: 'Intercept', then one term per numeric
        predictor and one 'var[T.level]' term per non-reference level
    n_obs : int
        Number of observations used
    coefficients, std_errors, t_stats, p_values, ci_lower, ci_upper : dict
        Per-term estimates keyed by term name
    r_squared, adj_r_squared : float
        Raw and adjusted coefficient of determination
    df_resid : int
        Residual degrees of freedom (n_obs - number of terms)
    rss : float
        Residual sum of squares
    sigma : float
        Residual standard error
    log_likelihood : float
        Gaussian log-likelihood at the estimates
    aic : float
        -2 * log_likelihood + 2 * (terms + 1); the +1 counts the error variance
    residuals : dict
        Min, Q1, median, Q3 and max of the residuals
    """

    specification: str
    formula: str
    outcome: str
    predictors: list = field(default_factory=list)
    terms: list = field(default_factory=list)
    n_obs: int = 0
    coefficients: dict = field(default_factory=dict)
    std_errors: dict = field(default_factory=dict)
    t_stats: dict = field(default_factory=dict)
    p_values: dict = field(default_factory=dict)
    ci_lower: dict = field(default_factory=dict)
    ci_upper: dict = field(default_factory=dict)
    r_squared: float = 0.0
    adj_r_squared: float = 0.0
    df_resid: int = 0
    rss: float = 0.0
    sigma: float = 0.0
    log_likelihood: float = 0.0
    aic: float = 0.0
    residuals: dict = field(default_factory=dict)
    engine: str = 'unknown'
    engine_version: str = 'unknown'
    execution_time_seconds: float = 0.0

    @property
    def n_params(self) -> int:
        """Number of estimated coefficients (including the intercept)."""
        return len(self.terms)

    def coefficient_table(self) -> pd.DataFrame:
        """Coefficients as a table, one row per term."""
        return pd.DataFrame(
            {
                'estimate': self.coefficients,
                'std_error': self.std_errors,
                't_stat': self.t_stats,
                'p_value': self.p_values,
                'ci_lower': self.ci_lower,
                'ci_upper': self.ci_upper,
            }
        ).reindex(self.terms)


@runtime_checkable
class AnalysisEngine(Protocol):
    """
    Protocol defining the interface for regression engines.

    Methods
    -------
    validate_installation()
        Check if the engine's libraries are available.
    fit(df, specification)
        Fit one specification on an in-memory table.
    fit_batch(df, specifications)
        Fit several specifications, isolating failures.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def version(self) -> str:
        ...

    def validate_installation(self) -> tuple[bool, str]:
        ...

    def fit(self, df: pd.DataFrame, specification: dict) -> FittedModel:
        ...

    def fit_batch(
        self,
        df: pd.DataFrame,
        specifications: list[dict],
    ) -> tuple[dict[int, FittedModel], dict[int, ModelFitError]]:
        ...


class BaseAnalysisEngine:
    """
    Base implementation with common functionality for analysis engines.

    Concrete engines override name, version, validate_installation and fit.
    """

    @property
    def name(self) -> str:
        """Return engine name (must be overridden)."""
        raise NotImplementedError

    @property
    def version(self) -> str:
        """Return engine version (must be overridden)."""
        raise NotImplementedError

    def validate_installation(self) -> tuple[bool, str]:
        """Validate installation (must be overridden)."""
        raise NotImplementedError

    def fit(self, df: pd.DataFrame, specification: dict) -> FittedModel:
        """Fit one specification (must be overridden)."""
        raise NotImplementedError

    def fit_batch(
        self,
        df: pd.DataFrame,
        specifications: list[dict],
    ) -> tuple[dict[int, FittedModel], dict[int, ModelFitError]]:
        """
        Fit specifications in order, numbering them from 1.

        A ModelFitError is fatal to that specification only; it is kept
        under the model number and the remaining fits proceed.

        Returns
        -------
        tuple[dict, dict]
            (model number -> FittedModel, model number -> ModelFitError)
        """
        fitted = {}
        failures = {}
        for num, spec in enumerate(specifications, start=1):
            try:
                fitted[num] = self.fit(df, spec)
            except ModelFitError as e:
                failures[num] = e
        return fitted, failures
