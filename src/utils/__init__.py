"""
Utilities package.

Provides shared utilities for the survey pipeline:
- helpers: directory, p-value and percent helpers
"""
from .helpers import ensure_dir, format_pvalue, format_percent
