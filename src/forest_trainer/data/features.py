"""
Feature extraction for forest training.

Resolves a contiguous, inclusive range of feature columns plus a target column
against the dataset header and turns the rows whose selected values are all
finite numbers into a feature matrix and target vector. Rows with any text,
missing or non-finite value are dropped; that is a soft cleaning policy and
succeeds as long as at least one row remains.
"""

import logging
import math
from dataclasses import dataclass
from numbers import Real
from typing import Any, Tuple

import numpy as np

from ..errors import ColumnNotFoundError, InvalidRangeError, NoValidDataError
from .loader import Dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureSet:
    """Feature matrix, target vector and the names of the feature columns."""
    X: np.ndarray
    y: np.ndarray
    feature_names: Tuple[str, ...]
    target_name: str
    dropped_rows: int = 0

    @property
    def n_samples(self) -> int:
        return len(self.y)


def is_valid_number(value: Any) -> bool:
    """True for finite real numbers (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def resolve_feature_names(
    header: Tuple[str, ...],
    start_column: str,
    end_column: str,
    target_column: str,
) -> Tuple[str, ...]:
    """
    Resolve the feature column range against a header.

    Args:
        header: Column names in file order
        start_column: First feature column (inclusive)
        end_column: Last feature column (inclusive)
        target_column: Regression target column

    Returns:
        The header slice from start_column to end_column, in header order

    Raises:
        ColumnNotFoundError: A feature bound or the target is not in the header
        InvalidRangeError: start_column comes after end_column
    """
    missing = [c for c in dict.fromkeys((start_column, end_column)) if c not in header]
    if missing:
        raise ColumnNotFoundError(missing, role='Feature column')
    if target_column not in header:
        raise ColumnNotFoundError([target_column], role='Target column')

    start_index = header.index(start_column)
    end_index = header.index(end_column)
    if start_index > end_index:
        raise InvalidRangeError(
            f'Start feature "{start_column}" (position {start_index}) must not come after '
            f'end feature "{end_column}" (position {end_index})'
        )

    return tuple(header[start_index:end_index + 1])


def extract_features(
    dataset: Dataset,
    start_column: str,
    end_column: str,
    target_column: str,
) -> FeatureSet:
    """
    Build the training matrix from a loaded dataset.

    Args:
        dataset: Loaded dataset
        start_column: First feature column (inclusive)
        end_column: Last feature column (inclusive)
        target_column: Regression target column

    Returns:
        FeatureSet whose rows keep the relative order of the dataset rows

    Raises:
        ColumnNotFoundError, InvalidRangeError: see resolve_feature_names
        NoValidDataError: No row has numeric values for every selected column
    """
    feature_names = resolve_feature_names(dataset.header, start_column, end_column, target_column)
    logger.info(f"Extracted {len(feature_names)} features: {', '.join(feature_names)}")
    logger.info(f"Target: {target_column}")

    features = dataset.select(feature_names)
    target = dataset.column(target_column)

    valid = features.map(is_valid_number).all(axis=1) & target.map(is_valid_number)
    dropped = int((~valid).sum())

    if not valid.any():
        raise NoValidDataError(
            f"No valid training rows: every row has a non-numeric value in "
            f"{', '.join(feature_names)} or {target_column}"
        )
    if dropped:
        logger.warning(f"Dropped {dropped} of {len(dataset)} rows with non-numeric values")

    X = features[valid].to_numpy(dtype=np.float64)
    y = target[valid].to_numpy(dtype=np.float64)

    logger.info(f"Feature extraction complete. Training samples: {len(y)}")
    return FeatureSet(
        X=X,
        y=y,
        feature_names=feature_names,
        target_name=target_column,
        dropped_rows=dropped,
    )
