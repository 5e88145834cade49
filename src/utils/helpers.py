#!/usr/bin/env python3
"""
Common utility functions for the survey pipeline.

This module provides shared helper functions used across multiple stages.
"""
from __future__ import annotations

import math
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def format_pvalue(p: float, threshold: float = 0.001) -> str:
    """Format p-value for display."""
    if math.isnan(p):
        return "NA"
    if p < threshold:
        return f"<{threshold}"
    return f"{p:.3f}"


def format_percent(fraction: float, decimals: int = 2) -> str:
    """Format a fraction in [0, 1] as a percentage."""
    return f"{fraction * 100:.{decimals}f}%"
