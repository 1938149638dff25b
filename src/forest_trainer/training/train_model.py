"""
Random forest training for forest-trainer.

Wraps scikit-learn's ``RandomForestRegressor`` behind a small trainer
interface: ``train(X, y, config) -> model handle``. The handle knows how to
serialize itself for the persister and how to come back from those bytes.

Usage:
    model = train_model(feature_set, HyperparameterConfig(seed=42))
    payload = model.serialize()
"""

import hashlib
import logging
import pickle
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

import numpy as np
from sklearn.ensemble import RandomForestRegressor
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from ..config import HyperparameterConfig
from ..data.features import FeatureSet
from ..errors import FormatError, TrainingError

logger = logging.getLogger(__name__)

PAYLOAD_FORMAT = 'forest-trainer/1'


@dataclass
class ModelMetrics:
    """In-sample regression metrics of a fitted forest."""
    mse: float = 0.0
    mae: float = 0.0
    r2: float = 0.0
    train_samples: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _generate_version() -> str:
    """Generate a version string based on timestamp."""
    timestamp = datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')
    return f"v{timestamp}"


def compute_data_hash(X: np.ndarray, y: np.ndarray) -> str:
    """SHA256 of the training arrays, truncated like registry hashes."""
    digest = hashlib.sha256()
    digest.update(np.ascontiguousarray(X, dtype=np.float64).tobytes())
    digest.update(np.ascontiguousarray(y, dtype=np.float64).tobytes())
    return digest.hexdigest()[:16]


@dataclass
class ForestModel:
    """
    Trained random forest plus everything needed to describe it.

    This is the model handle passed from the trainer to the persister.
    """
    estimator: RandomForestRegressor
    hyperparameters: HyperparameterConfig
    feature_names: Tuple[str, ...] = ()
    target_name: str = ''
    metrics: ModelMetrics = field(default_factory=ModelMetrics)
    model_version: str = field(default_factory=_generate_version)
    trained_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    training_data_hash: str = ''

    model_type = 'RandomForestRegressor'

    def predict(self, X: Any) -> np.ndarray:
        return self.estimator.predict(np.asarray(X, dtype=np.float64))

    def serialize(self) -> bytes:
        """Serialize hyperparameters and the fitted trees to bytes."""
        payload = {
            'format': PAYLOAD_FORMAT,
            'model_type': self.model_type,
            'model_version': self.model_version,
            'trained_at': self.trained_at,
            'hyperparameters': self.hyperparameters.to_dict(),
            'feature_names': list(self.feature_names),
            'target_name': self.target_name,
            'metrics': self.metrics.to_dict(),
            'training_data_hash': self.training_data_hash,
            'estimator': self.estimator,
        }
        return pickle.dumps(payload, protocol=pickle.HIGHEST_PROTOCOL)

    @classmethod
    def deserialize(cls, data: bytes) -> 'ForestModel':
        """Rebuild a model from ``serialize()`` output."""
        try:
            payload = pickle.loads(data)
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, ValueError) as e:
            raise FormatError(f"Not a serialized forest model: {e}") from e

        if not isinstance(payload, dict) or payload.get('format') != PAYLOAD_FORMAT:
            raise FormatError("Not a serialized forest model: unknown payload format")

        return cls(
            estimator=payload['estimator'],
            hyperparameters=HyperparameterConfig.from_dict(payload['hyperparameters']),
            feature_names=tuple(payload['feature_names']),
            target_name=payload['target_name'],
            metrics=ModelMetrics(**payload['metrics']),
            model_version=payload['model_version'],
            trained_at=payload['trained_at'],
            training_data_hash=payload['training_data_hash'],
        )


class Trainer(Protocol):
    """Anything that can fit a tree ensemble and return a model handle."""

    def train(self, X: np.ndarray, y: np.ndarray, config: HyperparameterConfig) -> Any:
        ...


class RandomForestTrainer:
    """Fits scikit-learn random forests from a ``HyperparameterConfig``."""

    def __init__(self, feature_names: Sequence[str] = (), target_name: str = '', n_jobs: Optional[int] = None):
        self.feature_names = tuple(feature_names)
        self.target_name = target_name
        self.n_jobs = n_jobs

    def build_estimator(self, config: HyperparameterConfig) -> RandomForestRegressor:
        return RandomForestRegressor(
            n_estimators=config.n_estimators,
            max_depth=config.max_depth,
            min_samples_leaf=config.min_num_samples,
            max_features=config.max_features,
            bootstrap=config.replacement,
            random_state=config.seed,
            n_jobs=self.n_jobs,
        )

    def train(self, X: np.ndarray, y: np.ndarray, config: HyperparameterConfig) -> ForestModel:
        estimator = self.build_estimator(config)
        estimator.fit(X, y)

        y_pred = estimator.predict(X)
        metrics = ModelMetrics(
            mse=float(mean_squared_error(y, y_pred)),
            mae=float(mean_absolute_error(y, y_pred)),
            r2=float(r2_score(y, y_pred)) if len(y) > 1 else 0.0,
            train_samples=len(y),
        )
        logger.info(f"Forest fitted - MSE: {metrics.mse:.4f}, R2: {metrics.r2:.4f}")

        return ForestModel(
            estimator=estimator,
            hyperparameters=config,
            feature_names=self.feature_names,
            target_name=self.target_name,
            metrics=metrics,
            training_data_hash=compute_data_hash(X, y),
        )


def train_model(
    feature_set: FeatureSet,
    config: HyperparameterConfig,
    trainer: Optional[Trainer] = None,
) -> Any:
    """
    Train a tree ensemble on an extracted feature set.

    The arrays are handed to the trainer as they are: no reordering,
    resampling or scaling happens here.

    Args:
        feature_set: Output of the feature extractor
        config: Hyperparameters, including the seed
        trainer: Trainer to use (defaults to RandomForestTrainer)

    Returns:
        The model handle returned by the trainer

    Raises:
        TrainingError: The trainer failed; the original exception is chained
    """
    if trainer is None:
        trainer = RandomForestTrainer(feature_set.feature_names, feature_set.target_name)

    logger.info("Starting random forest training...")
    logger.info(f"Options: {config.to_dict()}")
    started = time.perf_counter()

    try:
        model = trainer.train(feature_set.X, feature_set.y, config)
    except Exception as e:
        raise TrainingError(f"Training failed: {e}") from e

    logger.info(f"Model training complete in {time.perf_counter() - started:.2f}s")
    return model
