"""
Analysis Engine Implementations.

Available Engines
-----------------
- python: NumPy least squares with SciPy t/F distributions (default)

Engines are registered via the @register_engine decorator when this
package is imported.
"""
from __future__ import annotations

# Import engines to trigger registration
from . import python_engine
