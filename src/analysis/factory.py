"""
Engine registry.

Engines register themselves by name; stages ask for one by name or fall
back to ANALYSIS_ENGINE from config.

Usage
-----
    from analysis.factory import get_engine, register_engine

    engine = get_engine()           # configured default
    engine = get_engine('python')

    @register_engine('custom')
    class CustomEngine(BaseAnalysisEngine):
        ...
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .base import AnalysisEngine

# name -> engine class
_engine_registry: dict[str, type] = {}


def register_engine(name: str):
    """Class decorator adding an engine to the registry under `name`."""
    def decorator(cls):
        _engine_registry[name] = cls
        return cls
    return decorator


def get_engine(name: Optional[str] = None) -> 'AnalysisEngine':
    """
    Build the engine registered under `name` (case-insensitive).

    Raises
    ------
    ValueError
        If no engine is registered under that name
    """
    _ensure_engines_loaded()

    name = (name or _get_default_engine()).lower()
    try:
        engine_cls = _engine_registry[name]
    except KeyError:
        known = ', '.join(sorted(_engine_registry))
        raise ValueError(f"Unknown engine: '{name}'. Registered: {known}") from None
    return engine_cls()


def _get_default_engine() -> str:
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from config import ANALYSIS_ENGINE
    return ANALYSIS_ENGINE


def _ensure_engines_loaded() -> None:
    """Import the engines package so its decorators run."""
    if _engine_registry:
        return
    from . import engines  # noqa: F401
