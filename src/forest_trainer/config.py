"""
Training configuration.

All options are gathered into an immutable ``TrainingConfig`` before the
pipeline starts and passed to ``run_pipeline`` explicitly.

JSON config files use camelCase option names, with the forest options
under ``rfOptions``::

    {
        "source": "top10_combined_df.csv",
        "destination": "top10_rf_alm_model.pkl",
        "target": "ALM",
        "startFeature": "Weight",
        "endFeature": "Pancreatic amylase",
        "rfOptions": {
            "seed": 42,
            "maxFeatures": 2,
            "replacement": false,
            "nEstimators": 150,
            "treeOptions": {"maxDepth": 10, "minNumSamples": 5}
        }
    }
"""

import argparse
import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = 'top10_combined_df.csv'
DEFAULT_DESTINATION = 'top10_rf_alm_model.pkl'
DEFAULT_TARGET_COLUMN = 'ALM'
DEFAULT_START_FEATURE_COLUMN = 'Weight'
DEFAULT_END_FEATURE_COLUMN = 'Pancreatic amylase'

MaxFeatures = Union[int, float, str]
MAX_FEATURES_NAMES = ('sqrt', 'log2')


def _require(name: str, value: Any, kinds: Tuple[type, ...], optional: bool = False) -> None:
    """Raise ConfigurationError unless value is one of kinds (bool never passes for numbers)."""
    if value is None and optional:
        return
    if isinstance(value, bool) and bool not in kinds:
        ok = False
    else:
        ok = isinstance(value, kinds)
    if not ok:
        expected = ' or '.join(k.__name__ for k in kinds)
        raise ConfigurationError(f"{name} must be {expected}, got {type(value).__name__}: {value!r}")


@dataclass(frozen=True)
class HyperparameterConfig:
    """Random forest hyperparameters."""
    seed: int = 42
    max_features: MaxFeatures = 2
    replacement: bool = False
    n_estimators: int = 150
    max_depth: Optional[int] = 10
    min_num_samples: int = 5

    def __post_init__(self):
        _require('seed', self.seed, (int,))
        _require('maxFeatures', self.max_features, (int, float, str), optional=True)
        if isinstance(self.max_features, str) and self.max_features not in MAX_FEATURES_NAMES:
            raise ConfigurationError(f"maxFeatures must be a number, 'sqrt' or 'log2', got {self.max_features!r}")
        _require('replacement', self.replacement, (bool,))
        _require('nEstimators', self.n_estimators, (int,))
        _require('treeOptions.maxDepth', self.max_depth, (int,), optional=True)
        _require('treeOptions.minNumSamples', self.min_num_samples, (int,))

    _TREE_KEYS = {'maxDepth': 'max_depth', 'minNumSamples': 'min_num_samples'}
    _TOP_KEYS = {
        'seed': 'seed',
        'maxFeatures': 'max_features',
        'replacement': 'replacement',
        'nEstimators': 'n_estimators',
    }

    def to_dict(self) -> Dict[str, Any]:
        """Return the options in their external (rfOptions) layout."""
        return {
            'seed': self.seed,
            'maxFeatures': self.max_features,
            'replacement': self.replacement,
            'nEstimators': self.n_estimators,
            'treeOptions': {
                'maxDepth': self.max_depth,
                'minNumSamples': self.min_num_samples,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'HyperparameterConfig':
        """Build from an rfOptions mapping; missing keys keep their defaults."""
        if not isinstance(data, dict):
            raise ConfigurationError(f"rfOptions must be an object, got {type(data).__name__}")

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key == 'treeOptions':
                if not isinstance(value, dict):
                    raise ConfigurationError("rfOptions.treeOptions must be an object")
                for tree_key, tree_value in value.items():
                    if tree_key not in cls._TREE_KEYS:
                        raise ConfigurationError(f"Unknown tree option: treeOptions.{tree_key}")
                    kwargs[cls._TREE_KEYS[tree_key]] = tree_value
            elif key in cls._TOP_KEYS:
                kwargs[cls._TOP_KEYS[key]] = value
            else:
                raise ConfigurationError(f"Unknown random forest option: {key}")

        return cls(**kwargs)


@dataclass(frozen=True)
class TrainingConfig:
    """Everything one training run needs."""
    source: str = DEFAULT_SOURCE
    destination: str = DEFAULT_DESTINATION
    target_column: str = DEFAULT_TARGET_COLUMN
    start_feature_column: str = DEFAULT_START_FEATURE_COLUMN
    end_feature_column: str = DEFAULT_END_FEATURE_COLUMN
    hyperparameters: HyperparameterConfig = field(default_factory=HyperparameterConfig)
    write_metadata: bool = True

    def __post_init__(self):
        _require('source', self.source, (str,))
        _require('destination', self.destination, (str,))
        _require('target', self.target_column, (str,))
        _require('startFeature', self.start_feature_column, (str,))
        _require('endFeature', self.end_feature_column, (str,))
        _require('rfOptions', self.hyperparameters, (HyperparameterConfig,))
        _require('writeMetadata', self.write_metadata, (bool,))

    _FILE_KEYS = {
        'source': 'source',
        'destination': 'destination',
        'target': 'target_column',
        'startFeature': 'start_feature_column',
        'endFeature': 'end_feature_column',
        'writeMetadata': 'write_metadata',
    }

    def with_overrides(self, **overrides: Any) -> 'TrainingConfig':
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def to_dict(self) -> Dict[str, Any]:
        result = {attr: getattr(self, name) for attr, name in self._FILE_KEYS.items()}
        result['rfOptions'] = self.hyperparameters.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainingConfig':
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration root must be a JSON object")

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key == 'rfOptions':
                kwargs['hyperparameters'] = HyperparameterConfig.from_dict(value)
            elif key in cls._FILE_KEYS:
                kwargs[cls._FILE_KEYS[key]] = value
            else:
                raise ConfigurationError(f"Unknown configuration key: {key}")

        return cls(**kwargs)


def load_config(path: Union[str, Path]) -> TrainingConfig:
    """
    Load a ``TrainingConfig`` from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        TrainingConfig with defaults for every key the file omits
    """
    logger.info(f"Loading configuration from: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in configuration file {path}: {e}") from e

    return TrainingConfig.from_dict(data)


def parse_max_features(value: str) -> MaxFeatures:
    """Parse a --max-features value: an int, a float fraction, or 'sqrt'/'log2'."""
    for cast in (int, float):
        try:
            return cast(value)
        except ValueError:
            continue
    if value not in MAX_FEATURES_NAMES:
        raise argparse.ArgumentTypeError(
            f"invalid max features {value!r}: expected an int, a fraction, 'sqrt' or 'log2'"
        )
    return value
