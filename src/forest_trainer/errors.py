"""
Error taxonomy for the training pipeline.

Every stage raises one of these. The pipeline entry point catches
``PipelineError`` and turns it into a failed ``PipelineResult``; anything
else is a programming error and propagates.
"""

from typing import Iterable


class PipelineError(Exception):
    """Base class for all pipeline failures."""
    kind = 'PipelineError'


class DatasetIOError(PipelineError, IOError):
    """The training data source cannot be opened or read."""
    kind = 'IOError'


class PersistenceError(DatasetIOError):
    """A model file cannot be written or read back."""


class FormatError(PipelineError):
    """The source (or a saved model) does not have the expected structure."""
    kind = 'FormatError'


class ColumnNotFoundError(PipelineError, KeyError):
    """One or more configured columns are absent from the header."""
    kind = 'ColumnNotFoundError'

    def __init__(self, columns: Iterable[str], role: str = 'column'):
        self.columns = list(columns)
        self.role = role
        names = ', '.join(f'"{c}"' for c in self.columns)
        super().__init__(f"{role} not found in header: {names}")

    def __str__(self) -> str:
        # KeyError would repr() the message
        return self.args[0]


class InvalidRangeError(PipelineError, ValueError):
    """The start feature column appears after the end feature column."""
    kind = 'InvalidRangeError'


class NoValidDataError(PipelineError, ValueError):
    """No row survived numeric validation."""
    kind = 'NoValidDataError'


class TrainingError(PipelineError):
    """The tree-ensemble trainer rejected its inputs or failed internally."""
    kind = 'TrainingError'


class ConfigurationError(PipelineError, ValueError):
    """Invalid configuration file or option value."""
    kind = 'ConfigurationError'
