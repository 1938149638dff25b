"""
pytest configuration and shared fixtures
"""

from pathlib import Path

import pytest

from forest_trainer.config import HyperparameterConfig, TrainingConfig


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV text to a file under tmp_path and return its path."""
    def _write(text: str, name: str = 'data.csv') -> Path:
        path = tmp_path / name
        path.write_text(text, encoding='utf-8')
        return path
    return _write


@pytest.fixture
def body_csv(write_csv):
    """Small body-composition dataset; target sits after the feature range."""
    rows = ['Id,Weight,Height,Age,ALM']
    for i in range(30):
        weight = 50 + i
        height = 1.50 + i * 0.01
        age = 20 + (i % 40)
        alm = round(0.3 * weight + 10 * height - 0.05 * age, 3)
        rows.append(f'p{i},{weight},{height:.2f},{age},{alm}')
    rows.append('p30,abc,1.60,30,50.0')
    rows.append('p31,60,1.70,31,NaN')
    return write_csv('\n'.join(rows) + '\n', name='body.csv')


@pytest.fixture
def fast_hyperparameters():
    return HyperparameterConfig(seed=7, max_features=2, replacement=False,
                                n_estimators=5, max_depth=3, min_num_samples=2)


@pytest.fixture
def training_config(body_csv, tmp_path, fast_hyperparameters):
    return TrainingConfig(
        source=str(body_csv),
        destination=str(tmp_path / 'model.pkl'),
        target_column='ALM',
        start_feature_column='Weight',
        end_feature_column='Age',
        hyperparameters=fast_hyperparameters,
    )
