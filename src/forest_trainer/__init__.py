# Forest Trainer
"""
Offline training of random forest regression models from CSV data.

    from forest_trainer import TrainingConfig, run_pipeline
    result = run_pipeline(TrainingConfig(source='data.csv', destination='model.pkl'))
"""

from .config import HyperparameterConfig, TrainingConfig, load_config
from .errors import (
    ColumnNotFoundError,
    ConfigurationError,
    DatasetIOError,
    FormatError,
    InvalidRangeError,
    NoValidDataError,
    PersistenceError,
    PipelineError,
    TrainingError,
)
from .pipeline import PipelineResult, run_pipeline

__version__ = '0.1.0'

__all__ = [
    'ColumnNotFoundError',
    'ConfigurationError',
    'DatasetIOError',
    'FormatError',
    'HyperparameterConfig',
    'InvalidRangeError',
    'NoValidDataError',
    'PersistenceError',
    'PipelineError',
    'PipelineResult',
    'TrainingConfig',
    'TrainingError',
    'load_config',
    'run_pipeline',
]
