"""
Model Specification Management.

Specifications define what to regress on what, independent of the engine
that fits it. They live in specifications.yml at the project root:

    model_1:
      outcome: MENTHLTH
      predictors: [ADDEPEV3_fact]
      description: Diagnosis only

Usage
-----
    from analysis.specifications import load_specifications, get_specification

    specs = load_specifications()
    spec = get_specification('model_2')
    errors = validate_specification(spec)
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import yaml


def load_specifications(path: Optional[Path] = None) -> dict[str, dict]:
    """
    Load specifications from YAML file.

    Parameters
    ----------
    path : Path, optional
        Path to specifications file. Defaults to SPECIFICATIONS_FILE from config.

    Returns
    -------
    dict[str, dict]
        specification name -> specification dict, in file order

    Raises
    ------
    FileNotFoundError
        If specifications file not found
    yaml.YAMLError
        If YAML parsing fails
    """
    if path is None:
        path = _get_default_spec_path()

    if not path.exists():
        raise FileNotFoundError(f"Specifications file not found: {path}")

    with open(path) as f:
        specs = yaml.safe_load(f)

    return specs or {}


def get_specification(name: str, path: Optional[Path] = None) -> dict:
    """
    Get a single specification by name, with 'name' filled in.

    Raises
    ------
    KeyError
        If specification not found
    """
    specs = load_specifications(path)

    if name not in specs:
        available = ', '.join(sorted(specs.keys()))
        raise KeyError(
            f"Unknown specification: '{name}'. Available: {available}"
        )

    spec = specs[name].copy()
    spec['name'] = name
    return spec


def validate_specification(spec: dict) -> list[str]:
    """
    Validate a specification dictionary.

    Returns
    -------
    list[str]
        Validation error messages (empty if valid)
    """
    errors = []

    if 'outcome' not in spec:
        errors.append("Missing required field: 'outcome'")
    elif not isinstance(spec['outcome'], str):
        errors.append("Field 'outcome' must be a string")

    if 'predictors' not in spec:
        errors.append("Missing required field: 'predictors'")
    elif not isinstance(spec['predictors'], list) or not spec['predictors']:
        errors.append("Field 'predictors' must be a non-empty list")
    elif not all(isinstance(p, str) for p in spec['predictors']):
        errors.append("All items in 'predictors' must be strings")
    elif len(set(spec['predictors'])) != len(spec['predictors']):
        errors.append("Field 'predictors' contains duplicates")
    elif spec.get('outcome') in spec['predictors']:
        errors.append("Outcome cannot also be a predictor")

    return errors


def list_specifications(path: Optional[Path] = None) -> list[str]:
    """List specification names in file order."""
    return list(load_specifications(path).keys())


def create_specification(
    name: str,
    outcome: str,
    predictors: list[str],
    description: Optional[str] = None,
) -> dict:
    """Create a specification dictionary programmatically."""
    spec = {
        'name': name,
        'outcome': outcome,
        'predictors': list(predictors),
    }
    if description:
        spec['description'] = description
    return spec


def spec_to_formula(spec: dict) -> str:
    """Render a specification as 'outcome ~ p1 + p2'."""
    return f"{spec['outcome']} ~ {' + '.join(spec['predictors'])}"


def is_nested(smaller: dict, larger: dict) -> bool:
    """True if larger has the same outcome and a superset of smaller's predictors."""
    return (
        smaller['outcome'] == larger['outcome']
        and set(smaller['predictors']) < set(larger['predictors'])
    )


def _get_default_spec_path() -> Path:
    """Get default specifications file path."""
    sys.path.insert(0, str(Path(__file__).parent.parent))
    from config import SPECIFICATIONS_FILE
    return SPECIFICATIONS_FILE
