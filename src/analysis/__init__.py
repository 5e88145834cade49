"""
Analysis Engine Package.

Fits the report's regression specifications through a registry of engines.

Usage
-----
    from analysis import get_engine, get_specification

    engine = get_engine()
    model = engine.fit(trimmed, get_specification('model_3'))
    print(model.adj_r_squared, model.aic)
"""
from __future__ import annotations

from .base import AnalysisEngine, BaseAnalysisEngine, FittedModel
from .factory import get_engine, register_engine
from .specifications import (
    load_specifications,
    get_specification,
    list_specifications,
    validate_specification,
    create_specification,
    spec_to_formula,
    is_nested,
)

__all__ = [
    # Base classes and types
    'AnalysisEngine',
    'BaseAnalysisEngine',
    'FittedModel',
    # Factory functions
    'get_engine',
    'register_engine',
    # Specification utilities
    'load_specifications',
    'get_specification',
    'list_specifications',
    'validate_specification',
    'create_specification',
    'spec_to_formula',
    'is_nested',
]
