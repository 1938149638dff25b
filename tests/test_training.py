"""
Tests for the training orchestrator and the random forest trainer.
"""

import pickle

import numpy as np
import pytest
from sklearn.ensemble import RandomForestRegressor

from forest_trainer.config import HyperparameterConfig
from forest_trainer.data.features import FeatureSet
from forest_trainer.errors import FormatError, TrainingError
from forest_trainer.training.train_model import (
    ForestModel,
    RandomForestTrainer,
    compute_data_hash,
    train_model,
)


@pytest.fixture
def feature_set():
    rng = np.random.RandomState(0)
    X = rng.uniform(0, 10, size=(40, 3))
    y = 2 * X[:, 0] - X[:, 1] + 0.5 * X[:, 2]
    return FeatureSet(X=X, y=y, feature_names=('a', 'b', 'c'), target_name='t')


class RecordingTrainer:
    def __init__(self):
        self.calls = []

    def train(self, X, y, config):
        self.calls.append((X, y, config))
        return 'model-handle'


class FailingTrainer:
    def train(self, X, y, config):
        raise ValueError('bad shapes')


def test_train_model_passes_inputs_through_unchanged(feature_set, fast_hyperparameters):
    trainer = RecordingTrainer()

    model = train_model(feature_set, fast_hyperparameters, trainer=trainer)

    assert model == 'model-handle'
    assert len(trainer.calls) == 1
    X, y, config = trainer.calls[0]
    assert X is feature_set.X
    assert y is feature_set.y
    assert config is fast_hyperparameters


def test_train_model_wraps_trainer_failures(feature_set, fast_hyperparameters):
    with pytest.raises(TrainingError) as excinfo:
        train_model(feature_set, fast_hyperparameters, trainer=FailingTrainer())

    assert isinstance(excinfo.value.__cause__, ValueError)
    assert 'bad shapes' in str(excinfo.value)


def test_random_forest_trainer_maps_hyperparameters():
    config = HyperparameterConfig(seed=3, max_features='sqrt', replacement=True,
                                  n_estimators=12, max_depth=4, min_num_samples=6)

    estimator = RandomForestTrainer().build_estimator(config)

    assert isinstance(estimator, RandomForestRegressor)
    assert estimator.n_estimators == 12
    assert estimator.max_depth == 4
    assert estimator.min_samples_leaf == 6
    assert estimator.max_features == 'sqrt'
    assert estimator.bootstrap is True
    assert estimator.random_state == 3


def test_default_trainer_returns_fitted_forest(feature_set, fast_hyperparameters):
    model = train_model(feature_set, fast_hyperparameters)

    assert isinstance(model, ForestModel)
    assert len(model.estimator.estimators_) == fast_hyperparameters.n_estimators
    assert model.hyperparameters == fast_hyperparameters
    assert model.feature_names == ('a', 'b', 'c')
    assert model.target_name == 't'
    assert model.metrics.train_samples == 40
    assert model.training_data_hash == compute_data_hash(feature_set.X, feature_set.y)
    assert model.predict(feature_set.X[:2]).shape == (2,)


def test_same_seed_gives_same_predictions(feature_set):
    config = HyperparameterConfig(seed=11, max_features=2, replacement=True,
                                  n_estimators=8, max_depth=5, min_num_samples=2)

    first = train_model(feature_set, config)
    second = train_model(feature_set, config)

    np.testing.assert_array_equal(first.predict(feature_set.X), second.predict(feature_set.X))


@pytest.mark.parametrize('config', [
    HyperparameterConfig(n_estimators=0),
    HyperparameterConfig(max_features=0),
    HyperparameterConfig(min_num_samples=-1),
])
def test_invalid_hyperparameters_raise_training_error(feature_set, config):
    with pytest.raises(TrainingError):
        train_model(feature_set, config)


def test_serialize_round_trip_keeps_hyperparameters(feature_set, fast_hyperparameters):
    model = train_model(feature_set, fast_hyperparameters)

    restored = ForestModel.deserialize(model.serialize())

    assert restored.hyperparameters == fast_hyperparameters
    assert restored.model_version == model.model_version
    assert restored.feature_names == model.feature_names
    np.testing.assert_allclose(restored.predict(feature_set.X), model.predict(feature_set.X))


def test_deserialize_rejects_foreign_payloads():
    with pytest.raises(FormatError):
        ForestModel.deserialize(b'not a pickle')
    with pytest.raises(FormatError):
        ForestModel.deserialize(pickle.dumps({'format': 'other'}))
