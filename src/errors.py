"""
Error types raised by the survey pipeline.

Every condition carries the offending column, value and row label when they
are known, so a failed run can be traced back to a single record.
"""
from __future__ import annotations

from typing import Any, Optional


class SurveyPipelineError(Exception):
    """Base class for all pipeline errors."""

    def __init__(
        self,
        message: str,
        column: Optional[str] = None,
        value: Any = None,
        row: Any = None,
    ):
        self.column = column
        self.value = value
        self.row = row
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        context = []
        if self.column is not None:
            context.append(f"column={self.column}")
        if self.value is not None:
            context.append(f"value={self.value!r}")
        if self.row is not None:
            context.append(f"row={self.row}")
        if context:
            return f"{message} ({', '.join(context)})"
        return message


class DataUnavailable(SurveyPipelineError):
    """Input file is missing, unreadable, or not a usable table."""


class UnexpectedCode(SurveyPipelineError):
    """A value survived filtering but matches no recoding rule."""


class ModelFitError(SurveyPipelineError):
    """A regression could not be fitted."""


class SingularDesign(ModelFitError):
    """Predictors are perfectly collinear."""


class InsufficientData(ModelFitError):
    """Too few rows for the number of estimated parameters."""
